"""Sinks for recoverable per-line failures."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class FaultSink(Protocol):
    """Receives every line that could not be decoded, with the cause."""

    def report(self, line: str, error: Exception) -> None: ...


class LoggingFaultSink:
    """Report faults through the ``logging`` module."""

    def __init__(self, log: logging.Logger | None = None,
                 level: int = logging.WARNING):
        self._log = log or logger
        self._level = level

    def report(self, line: str, error: Exception) -> None:
        self._log.log(self._level, "malformed line %r: %s", line.rstrip("\r\n"), error)


class CollectingFaultSink:
    """Keep faults in memory, e.g. for summaries or tests."""

    def __init__(self):
        self.faults: list[tuple[str, Exception]] = []

    def report(self, line: str, error: Exception) -> None:
        self.faults.append((line, error))

    def __len__(self) -> int:
        return len(self.faults)

    def clear(self) -> None:
        self.faults.clear()
