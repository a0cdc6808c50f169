#!/usr/bin/env python3
"""Connect to a text log TCP source and print GPS positions.

Start the example server first:
    python examples/tcp_source.py

Then in another terminal:
    python examples/tcp_client.py
"""

from dflog.reader import LogStream
from dflog.sources import TCPLineSource

source = TCPLineSource("localhost", 4200, timeout=5.0)

try:
    for msg in LogStream(source, names={"GPS"}):
        print(f"lat={msg.get_float('Lat'):.7f} lng={msg.get_float('Lng'):.7f} "
              f"alt={msg.get_float('Alt'):.2f}")
except KeyboardInterrupt:
    pass
finally:
    source.close()
