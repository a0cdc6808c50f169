"""Type codes, format definitions and the per-stream format registry."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Sequence, Union

from .errors import DecodeError, ParseError, UnknownTypeCode


class ValueKind(Enum):
    INTEGER = "int"
    FLOAT = "float"
    TEXT = "text"


# Signed 64-bit range for integer elements
INT_MIN = -(1 << 63)
INT_MAX = (1 << 63) - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")

# Excess arguments beyond the format string decode as free text
TEXT_FALLBACK_CODE = "Z"

CONTROL_NAME = "FMT"


@dataclass(frozen=True)
class Element:
    """One decoded field value, tagged with its kind."""

    kind: ValueKind
    value: Union[int, float, str]

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ConversionRule:
    """How a type code turns a raw token into an Element.

    ``scale`` is carried as metadata.  Text logs are written prescaled, so
    it is only multiplied in when the caller asks for ``apply_scale``.
    """

    code: str
    kind: ValueKind
    scale: float | None = None

    def convert(self, token: str, apply_scale: bool = False) -> Element:
        token = token.strip()
        if self.kind is ValueKind.INTEGER:
            return Element(ValueKind.INTEGER, parse_int(token))
        if self.kind is ValueKind.FLOAT:
            value = parse_float(token)
            if apply_scale and self.scale is not None:
                value *= self.scale
            return Element(ValueKind.FLOAT, value)
        return Element(ValueKind.TEXT, token)


def parse_int(token: str) -> int:
    """Parse a base-10 signed 64-bit integer literal."""
    if not _INT_RE.fullmatch(token):
        raise ParseError(f"invalid integer literal {token!r}")
    try:
        value = int(token)
    except ValueError:
        # interpreter digit limit on int() of very long strings
        raise ParseError(f"integer out of range: {token[:32]}...") from None
    if value < INT_MIN or value > INT_MAX:
        raise ParseError(f"integer out of range: {token}")
    return value


def parse_float(token: str) -> float:
    """Parse a decimal number."""
    if "_" in token:
        raise ParseError(f"invalid decimal literal {token!r}")
    try:
        return float(token)
    except ValueError:
        raise ParseError(f"invalid decimal literal {token!r}") from None


def _rules(codes: str, kind: ValueKind, scale: float | None = None) -> dict[str, ConversionRule]:
    return {c: ConversionRule(c, kind, scale) for c in codes}


# Type code -> conversion rule
#   b B h H i I q Q : signed/unsigned integers of 8..64 bits
#   f               : float
#   c C e E         : integer * 100, written prescaled
#   L               : latitude/longitude * 1e7, written prescaled
#   n N Z           : char[4] / char[16] / char[64]
#   M               : flight mode
TYPE_CODES: dict[str, ConversionRule] = {
    **_rules("bBhHiIqQ", ValueKind.INTEGER),
    **_rules("f", ValueKind.FLOAT, 1.0),
    **_rules("cCeE", ValueKind.FLOAT, 0.01),
    **_rules("L", ValueKind.FLOAT, 1.0e-7),
    **_rules("nNZM", ValueKind.TEXT),
}


def resolve(code: str) -> ConversionRule:
    """Look up the conversion rule for a single type code."""
    rule = TYPE_CODES.get(code)
    if rule is None:
        raise UnknownTypeCode(code)
    return rule


@dataclass(frozen=True)
class FormatDefinition:
    """Layout of one message kind: type codes plus ordered column names."""

    type_id: int
    name: str
    length: int
    format: str
    columns: tuple[str, ...]
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))
        # Repeated column names: the later index wins
        index = {}
        for i, col in enumerate(self.columns):
            index[col] = i
        object.__setattr__(self, "_index", index)

    @property
    def is_control(self) -> bool:
        return self.name == CONTROL_NAME

    def index_of(self, column: str) -> int | None:
        return self._index.get(column)

    def code_at(self, i: int) -> str:
        """Type code for argument *i*; arguments past the format string are text."""
        if i < len(self.format):
            return self.format[i]
        return TEXT_FALLBACK_CODE

    @classmethod
    def from_control_args(cls, args: Sequence[str]) -> FormatDefinition:
        """Build a definition from the arguments of a control record.

        Layout: type id, length, name, format string, column names...
        """
        if len(args) < 4:
            raise DecodeError(
                f"control record needs at least 4 fields, got {len(args)}")
        return cls(
            type_id=parse_int(args[0]),
            name=args[2],
            length=parse_int(args[1]),
            format=args[3],
            columns=tuple(args[4:]),
        )

    def __str__(self) -> str:
        cols = ",".join(self.columns)
        return f"{self.name}(type={self.type_id}, len={self.length}, format={self.format}, columns={cols})"


# The control record format is the only one known up front; the rest are learnt
BOOTSTRAP_FORMAT = FormatDefinition(
    0x80, CONTROL_NAME, 89, "BBnNZ",
    ("Type", "Length", "Name", "Format", "Columns"),
)


class FormatRegistry:
    """Name -> FormatDefinition, seeded with the control record format.

    Entries are replaced by name and never removed.  Not thread safe; every
    stream owns its own registry.
    """

    def __init__(self, definitions: Sequence[FormatDefinition] | None = None):
        self._formats: dict[str, FormatDefinition] = {}
        self.register(BOOTSTRAP_FORMAT)
        if definitions:
            for d in definitions:
                self.register(d)

    def register(self, definition: FormatDefinition) -> None:
        self._formats[definition.name] = definition

    def lookup(self, name: str) -> FormatDefinition | None:
        return self._formats.get(name)

    def names(self) -> list[str]:
        return list(self._formats)

    def __contains__(self, name: object) -> bool:
        return name in self._formats

    def __len__(self) -> int:
        return len(self._formats)

    def __iter__(self) -> Iterator[FormatDefinition]:
        return iter(list(self._formats.values()))
