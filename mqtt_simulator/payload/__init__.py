"""
Payload - Typed values and binary encoding

Modularized Package:
- values.py: Value model (Bool, Integer, Float, Text, Sequence, Opaque) + errors
- parser.py: Document/fragment parser (shape dispatch, defaults, validation)
- encoder.py: Value -> bytes (width, endianness, text encoding)

Public API:
- Parse: parse_value, parse_entry, parse_document, parse_document_text
- Encode: encode, canonical_json
"""
from .values import (
    SimulatorError,
    SchemaError,
    EncodingOverflow,
    PublishFailure,
    WatchFailure,
    Endian,
    IntWidth,
    FloatWidth,
    TextEncoding,
    Bool,
    Integer,
    Float,
    Text,
    Sequence,
    Opaque,
    Value,
    TopicEntry,
)
from .parser import (
    MAX_DEPTH,
    parse_value,
    parse_entry,
    parse_document,
    parse_document_text,
    load_structured,
    describe,
)
from .encoder import encode, encode_into, canonical_json

__all__ = [
    # Errors
    "SimulatorError",
    "SchemaError",
    "EncodingOverflow",
    "PublishFailure",
    "WatchFailure",
    # Model
    "Endian",
    "IntWidth",
    "FloatWidth",
    "TextEncoding",
    "Bool",
    "Integer",
    "Float",
    "Text",
    "Sequence",
    "Opaque",
    "Value",
    "TopicEntry",
    # Parser
    "MAX_DEPTH",
    "parse_value",
    "parse_entry",
    "parse_document",
    "parse_document_text",
    "load_structured",
    "describe",
    # Encoder
    "encode",
    "encode_into",
    "canonical_json",
]
