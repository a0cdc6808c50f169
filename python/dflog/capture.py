"""Accumulate decoded messages and extract numpy columns.

Capture groups messages by format name; ``series()`` returns one field as a
numpy array and ``table()`` returns every column of a format at once.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .decoder import Message
from .schema import Element, ValueKind

_DTYPES = {
    ValueKind.INTEGER: np.int64,
    ValueKind.FLOAT: np.float64,
    ValueKind.TEXT: object,
}


def _to_array(elements: list[Element | None]) -> np.ndarray:
    kinds = {e.kind for e in elements if e is not None}
    missing = any(e is None for e in elements)
    values = [e.value if e is not None else None for e in elements]

    if kinds <= {ValueKind.INTEGER, ValueKind.FLOAT} and (missing or len(kinds) > 1):
        # Redeclared layouts: mixed int/float, or rows without the column
        return np.array([np.nan if v is None else v for v in values], dtype=np.float64)
    if len(kinds) == 1 and not missing:
        return np.array(values, dtype=_DTYPES[kinds.pop()])
    return np.array(values, dtype=object)


class Capture:
    """Transport-agnostic accumulator; the caller feeds decoded messages."""

    def __init__(self, messages: Iterable[Message] | None = None):
        self._by_name: dict[str, list[Message]] = {}
        if messages is not None:
            self.extend(messages)

    def feed(self, message: Message) -> None:
        self._by_name.setdefault(message.name, []).append(message)

    def extend(self, messages: Iterable[Message]) -> None:
        for msg in messages:
            self.feed(msg)

    def names(self) -> list[str]:
        return list(self._by_name)

    def count(self, name: str) -> int:
        return len(self._by_name.get(name, ()))

    def _messages(self, name: str) -> list[Message]:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"no messages named {name!r}") from None

    def series(self, name: str, field: str) -> np.ndarray:
        """Values of *field* across every captured *name* message.

        Messages decoded under a layout without *field* give NaN (numeric
        fields) or None.  Raises KeyError if no layout of *name* has the
        field and FieldRangeError if a message was too short to carry it.
        """
        msgs = self._messages(name)
        if not any(m.format.index_of(field) is not None for m in msgs):
            raise KeyError(f"{name} has no field {field!r}")
        return _to_array([m.element(field) if m.format.index_of(field) is not None
                          else None for m in msgs])

    def table(self, name: str) -> dict[str, np.ndarray]:
        """All columns of the latest *name* layout, as arrays."""
        msgs = self._messages(name)
        columns = msgs[-1].columns
        return {col: self.series(name, col) for col in dict.fromkeys(columns)}

    def clear(self) -> None:
        self._by_name.clear()

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_name.values())
