#!/usr/bin/env python3
"""Serve a synthetic text dataflash log over TCP.

Each new connection first receives the FMT records, then a steady stream of
GPS / CURR / PARM lines on localhost:4200.

Usage:
    python examples/tcp_source.py

Then in another terminal:
    dflog live --tcp localhost:4200
"""

import math
import random
import socket
import time

FMT_LINES = [
    "FMT, 128, 89, FMT, BBnNZ, Type,Length,Name,Format,Columns",
    "FMT, 129, 23, PARM, Nf, Name,Value",
    "FMT, 130, 45, GPS, BIHBcLLeeEefI, Status,TimeMS,Week,NSats,HDop,Lat,Lng,RelAlt,Alt,Spd,GCrs,VZ,T",
    "FMT, 131, 21, CURR, hhhHIh, ThrOut,ThrInt,Volt,Curr,CurrTot,Vcc",
]


def make_lines(t: float, seq: int) -> list[str]:
    """Generate one batch of log lines at time t (seconds)."""
    time_ms = int(t * 1000)

    lat = -35.3632621 + 0.0005 * math.sin(2 * math.pi * t / 60.0)
    lng = 149.1652374 + 0.0005 * math.cos(2 * math.pi * t / 60.0)
    alt = 584.0 + 10.0 * math.sin(2 * math.pi * t / 20.0) + random.gauss(0, 0.2)
    spd = 5.0 + random.gauss(0, 0.3)
    gps = (f"GPS, 3, {time_ms}, 1720, 10, 1.21, {lat:.7f}, {lng:.7f}, "
           f"{alt - 584.0:.2f}, {alt:.2f}, {spd:.2f}, 87.5, -0.1, {time_ms}")

    thr = int(400 + 100 * math.sin(2 * math.pi * t / 8.0))
    volt = int(1260 - t) % 1260
    curr = (f"CURR, {thr}, {thr * 3}, {volt}, {int(1200 + random.gauss(0, 20))}, "
            f"{seq * 2}, 5012")

    lines = [gps, curr]
    if seq % 50 == 0:
        lines.append(f"PARM, BATT_CAPACITY, {3300 + seq % 7}")
    return lines


def serve(host: str = "0.0.0.0", port: int = 4200, rate_hz: float = 10.0):
    """Accept TCP connections and stream log lines."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind((host, port))
    srv.listen(1)
    print(f"Listening on {host}:{port} at {rate_hz} Hz  (Ctrl-C to stop)")

    while True:
        print("Waiting for connection...")
        conn, addr = srv.accept()
        print(f"Client connected: {addr}")
        t0 = time.monotonic()
        seq = 0
        try:
            conn.sendall("".join(f"{line}\n" for line in FMT_LINES).encode())
            while True:
                t = time.monotonic() - t0
                text = "".join(f"{line}\n" for line in make_lines(t, seq))
                conn.sendall(text.encode())

                seq += 1
                if seq % int(rate_hz) == 0:
                    print(f"  sent {seq} batches ({t:.1f}s)")

                time.sleep(1.0 / rate_hz)
        except (BrokenPipeError, ConnectionResetError):
            print("Client disconnected.")
        except KeyboardInterrupt:
            print("\nShutting down.")
            conn.close()
            srv.close()
            return


if __name__ == "__main__":
    serve()
