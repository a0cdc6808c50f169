"""dflog - Text dataflash log decoder and tooling."""

from .errors import (
    DFLogError, UnknownTypeCode, ParseError, DecodeError, UnknownFormatError,
    FormatError, FieldError, FieldRangeError, FieldTypeError,
)
from .schema import (
    ValueKind, Element, ConversionRule, TYPE_CODES, resolve,
    FormatDefinition, FormatRegistry, BOOTSTRAP_FORMAT,
)
from .decoder import Message, LineResult, LineParser, decode_message
from .faults import FaultSink, LoggingFaultSink, CollectingFaultSink
from .reader import LogStream, LogReader, read_messages, SNIFF_LINE_LIMIT
from .capture import Capture

__all__ = [
    "DFLogError", "UnknownTypeCode", "ParseError", "DecodeError",
    "UnknownFormatError", "FormatError", "FieldError", "FieldRangeError",
    "FieldTypeError",
    "ValueKind", "Element", "ConversionRule", "TYPE_CODES", "resolve",
    "FormatDefinition", "FormatRegistry", "BOOTSTRAP_FORMAT",
    "Message", "LineResult", "LineParser", "decode_message",
    "FaultSink", "LoggingFaultSink", "CollectingFaultSink",
    "LogStream", "LogReader", "read_messages", "SNIFF_LINE_LIMIT",
    "Capture",
]
