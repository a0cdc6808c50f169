"""Lazy message streams over text dataflash logs.

A log is newline-delimited text, one comma-separated record per line:

  FMT, 128, 89, FMT, BBnNZ, Type,Length,Name,Format,Columns
  FMT, 129, 23, PARM, Nf, Name,Value
  PARM, RATE_RLL_P, 0.15

Only the FMT layout is known up front; every other layout is declared by an
FMT record before it is used.  If no FMT record has been decoded within the
first SNIFF_LINE_LIMIT lines the input is rejected.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from .decoder import LineParser, Message
from .errors import FormatError
from .faults import FaultSink
from .schema import FormatRegistry
from .sources import FileLineSource

SNIFF_LINE_LIMIT = 100


class LogStream:
    """One-pass iterator of messages decoded from a sequence of lines.

    The stream owns a private FormatRegistry.  It does not own *lines*;
    whoever opened the line source closes it.
    """

    def __init__(self, lines: Iterable[str],
                 fault_sink: FaultSink | None = None,
                 apply_scale: bool = False,
                 names: Iterable[str] | None = None,
                 sniff_limit: int = SNIFF_LINE_LIMIT):
        self._lines = iter(lines)
        self._parser = LineParser(FormatRegistry(), fault_sink, apply_scale)
        self.names = set(names) if names is not None else None
        self.sniff_limit = sniff_limit
        self.lines_read = 0
        self.seen_control = False
        self._messages = self._run()

    @property
    def registry(self) -> FormatRegistry:
        return self._parser.registry

    def __iter__(self) -> Iterator[Message]:
        return self

    def __next__(self) -> Message:
        return next(self._messages)

    def _run(self) -> Iterator[Message]:
        for line in self._lines:
            self.lines_read += 1
            if self.lines_read > self.sniff_limit and not self.seen_control:
                raise FormatError(
                    f"no FMT record in the first {self.sniff_limit} lines, "
                    "this does not look like a valid log")

            msg = self._parser.feed(line)
            if msg is None:
                continue
            if msg.format.is_control:
                self.seen_control = True

            # Control records are always parsed, only the output is filtered
            if self.names is not None and msg.name not in self.names:
                continue
            yield msg

    def close(self) -> None:
        """Stop the stream; further iteration yields nothing."""
        self._messages.close()


class LogReader:
    """Reads a text log file.  The file is closed on every exit path."""

    def __init__(self, path: str | Path, fault_sink: FaultSink | None = None,
                 apply_scale: bool = False,
                 names: Iterable[str] | None = None,
                 sniff_limit: int = SNIFF_LINE_LIMIT):
        self._path = Path(path)
        self._source: FileLineSource | None = None
        self._stream: LogStream | None = None
        self._options = dict(fault_sink=fault_sink, apply_scale=apply_scale,
                             names=names, sniff_limit=sniff_limit)

    def open(self) -> FileLineSource:
        """Open the file if needed and return its line source."""
        if self._source is None:
            self._source = FileLineSource(self._path)
        return self._source

    @property
    def registry(self) -> FormatRegistry:
        """Formats learnt by the most recent messages() pass."""
        if self._stream is None:
            raise RuntimeError("Call messages() first")
        return self._stream.registry

    @property
    def stream(self) -> LogStream | None:
        return self._stream

    def messages(self) -> Iterator[Message]:
        """Iterate over messages from the start of the file.

        Each call rewinds the file and decodes it with a fresh registry.
        """
        source = self.open()
        source.rewind()
        self._stream = LogStream(source, **self._options)
        yield from self._stream

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
        if self._source is not None:
            self._source.close()
            self._source = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()


def read_messages(path: str | Path, **kwargs) -> Iterator[Message]:
    """Yield messages from *path*, closing the file when done or abandoned."""
    with LogReader(path, **kwargs) as reader:
        yield from reader.messages()
