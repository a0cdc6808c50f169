"""Line sources for dflog streams."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import IO, Iterator, Protocol


class LineSource(Protocol):
    """Abstract line source: iterate for text lines, close when done."""

    def __iter__(self) -> Iterator[str]: ...
    def close(self) -> None: ...


class FileLineSource:
    """Lines of a text log file."""

    def __init__(self, path: str | Path, encoding: str = "utf-8",
                 errors: str = "replace"):
        self._f: IO[str] = open(path, "r", encoding=encoding, errors=errors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._f)

    def rewind(self) -> None:
        self._f.seek(0)

    def close(self) -> None:
        self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class TCPLineSource:
    """Newline-delimited text from a TCP stream (client mode)."""

    def __init__(self, host: str, port: int, timeout: float = 1.0,
                 bufsize: int = 4096):
        self._sock = socket.create_connection((host, port), timeout=timeout)
        self._bufsize = bufsize
        self._buf = bytearray()
        self._closed = False

    def __iter__(self) -> Iterator[str]:
        while not self._closed:
            try:
                chunk = self._sock.recv(self._bufsize)
            except socket.timeout:
                continue
            if not chunk:
                break
            self._buf.extend(chunk)
            while True:
                nl = self._buf.find(b"\n")
                if nl < 0:
                    break
                raw = bytes(self._buf[:nl + 1])
                del self._buf[:nl + 1]
                yield raw.decode("utf-8", "replace")

        # Peer closed mid-line
        if self._buf:
            raw = bytes(self._buf)
            self._buf.clear()
            yield raw.decode("utf-8", "replace")

    def close(self) -> None:
        self._closed = True
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class SerialLineSource:
    """UART / serial port line source (requires pyserial)."""

    def __init__(self, port: str, baudrate: int = 115200, timeout: float = 1.0):
        import serial
        self._ser = serial.Serial(port, baudrate, timeout=timeout)
        self._closed = False

    def __iter__(self) -> Iterator[str]:
        while not self._closed:
            raw = self._ser.readline()
            if not raw:
                # read timeout, nothing arrived
                continue
            yield raw.decode("utf-8", "replace")

    def close(self) -> None:
        self._closed = True
        self._ser.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
