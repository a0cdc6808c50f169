"""Exception hierarchy for dflog."""

from __future__ import annotations


class DFLogError(Exception):
    """Base class for all dflog errors."""


class UnknownTypeCode(DFLogError, KeyError):
    """A format string used a type code outside the conversion table."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return f"unknown type code {self.code!r}"


class ParseError(DFLogError, ValueError):
    """A raw token could not be converted to its declared kind."""


class DecodeError(DFLogError):
    """A whole line could not be decoded."""


class UnknownFormatError(DecodeError):
    """The line names a format that has not been declared."""


class FormatError(DFLogError):
    """The input does not look like a text dataflash log."""


class FieldError(DFLogError, KeyError):
    """A message has no column with the requested name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FieldRangeError(DFLogError, IndexError):
    """The column exists but the source line was too short to fill it."""


class FieldTypeError(DFLogError, TypeError):
    """A typed accessor was used on an element of another kind."""
