"""Line decoding: tokens -> typed messages, with schema learning."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from .errors import (
    DecodeError, DFLogError, FieldError, FieldRangeError, FieldTypeError,
    UnknownFormatError,
)
from .faults import FaultSink, LoggingFaultSink
from .schema import Element, FormatDefinition, FormatRegistry, ValueKind, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    """One decoded log line.

    ``format`` is the definition that was active when the line was decoded;
    later re-registrations of the same name do not affect this message.
    """

    format: FormatDefinition
    elements: tuple[Element, ...]

    @property
    def name(self) -> str:
        return self.format.name

    @property
    def columns(self) -> tuple[str, ...]:
        return self.format.columns

    def pairs(self) -> list[tuple[str, Element]]:
        return list(zip(self.format.columns, self.elements))

    def as_dict(self) -> dict[str, Any]:
        """Column name -> raw value, for columns that were decoded."""
        return {col: el.value for col, el in self.pairs()}

    def element(self, column: str) -> Element:
        idx = self.format.index_of(column)
        if idx is None:
            raise FieldError(f"{self.name} has no field {column!r}")
        if idx >= len(self.elements):
            raise FieldRangeError(
                f"{self.name}.{column} is field {idx} but only "
                f"{len(self.elements)} were decoded")
        return self.elements[idx]

    def get(self, column: str) -> int | float | str:
        return self.element(column).value

    def _typed(self, column: str, kind: ValueKind) -> Any:
        el = self.element(column)
        if el.kind is not kind:
            raise FieldTypeError(
                f"{self.name}.{column} is {el.kind.value}, not {kind.value}")
        return el.value

    def get_int(self, column: str) -> int:
        return self._typed(column, ValueKind.INTEGER)

    def get_float(self, column: str) -> float:
        return self._typed(column, ValueKind.FLOAT)

    def get_text(self, column: str) -> str:
        return self._typed(column, ValueKind.TEXT)

    def __str__(self) -> str:
        fields_str = ", ".join(f"{k}={v}" for k, v in self.pairs())
        return f"{self.name}: {fields_str}"


def decode_message(fmt: FormatDefinition, args: Sequence[str],
                   apply_scale: bool = False) -> Message:
    """Decode argument tokens against *fmt*.

    Produces one element per token, whatever the length of the format string
    or column list.  Any unknown type code or bad token fails the whole
    message.
    """
    elements = []
    for i, arg in enumerate(args):
        rule = resolve(fmt.code_at(i))
        elements.append(rule.convert(arg, apply_scale))
    return Message(fmt, tuple(elements))


@dataclass(frozen=True)
class LineResult:
    """Outcome of parsing one line.

    Blank or single-token lines have neither a message nor an error.
    """

    line: str
    message: Message | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.message is not None


def split_line(line: str) -> list[str]:
    return [tok.strip() for tok in line.split(",")]


class LineParser:
    """Stateful line decoder that learns new formats from control records.

    Owns (or is handed) a FormatRegistry.  ``parse()`` never raises for a
    malformed line; ``feed()`` additionally reports failures to the fault
    sink.
    """

    def __init__(self, registry: FormatRegistry | None = None,
                 fault_sink: FaultSink | None = None,
                 apply_scale: bool = False):
        self.registry = registry if registry is not None else FormatRegistry()
        self.fault_sink = fault_sink if fault_sink is not None else LoggingFaultSink()
        self.apply_scale = apply_scale

    def parse(self, line: str) -> LineResult:
        tokens = split_line(line)
        if len(tokens) < 2:
            return LineResult(line)

        name, args = tokens[0], tokens[1:]
        fmt = self.registry.lookup(name)
        if fmt is None:
            return LineResult(line, error=UnknownFormatError(
                f"unrecognized format: {name}"))

        try:
            msg = self._decode(fmt, args)
        except DecodeError as e:
            return LineResult(line, error=e)

        return LineResult(line, message=msg)

    def _decode(self, fmt: FormatDefinition, args: Sequence[str]) -> Message:
        try:
            if fmt.is_control:
                newfmt = FormatDefinition.from_control_args(args)
                logger.debug("adding new format: %s", newfmt)
                self.registry.register(newfmt)
            # Decoded against the format looked up above, not the one just added
            return decode_message(fmt, args, self.apply_scale)
        except DecodeError:
            raise
        except DFLogError as e:
            raise DecodeError(f"malformed {fmt.name} line: {e}") from e

    def feed(self, line: str) -> Message | None:
        """Parse *line*, report any failure, return the message if there is one."""
        result = self.parse(line)
        if result.error is not None:
            self.fault_sink.report(line, result.error)
        return result.message
