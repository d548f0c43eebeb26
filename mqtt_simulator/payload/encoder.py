"""
Binary Encoder
==============

Codifica un Value tipado en los bytes exactos que se publican.

Reglas:
- Bool     -> 1 byte (0x01 / 0x00)
- Integer  -> ancho fijo, complemento a dos si < 0, sin signo si >= 0
- Float    -> IEEE-754 binary32 / binary64
- Text     -> UTF-8 o UTF-16 (LE/BE), sin BOM, sin terminador, sin largo
- Sequence -> concatenación de sus elementos (sin framing)
- Opaque   -> JSON compacto canónico en UTF-8

Diseño:
- Función pura (sin side effects)
- Único error posible: EncodingOverflow (valor fuera del width)
"""
import json
import struct
from typing import Any

from .values import (
    Bool,
    EncodingOverflow,
    Float,
    Integer,
    Opaque,
    Sequence,
    Text,
    Value,
)

# Formatos struct por (signed, bits) y por bits de float
_INT_FORMATS = {
    (False, 8): "B",
    (False, 16): "H",
    (False, 32): "I",
    (False, 64): "Q",
    (True, 8): "b",
    (True, 16): "h",
    (True, 32): "i",
    (True, 64): "q",
}

_FLOAT_FORMATS = {32: "f", 64: "d"}


def _encode_integer(value: Integer) -> bytes:
    if not value.fits():
        kind = "signed" if value.signed else "unsigned"
        raise EncodingOverflow(
            f"{value.value} does not fit {kind} {value.width.bits}-bit width"
        )
    fmt = value.endian.struct_prefix + _INT_FORMATS[(value.signed, value.width.bits)]
    return struct.pack(fmt, value.value)


def _encode_float(value: Float) -> bytes:
    fmt = value.endian.struct_prefix + _FLOAT_FORMATS[value.width.bits]
    try:
        return struct.pack(fmt, value.value)
    except OverflowError as e:
        # binary32 no representa el valor finito declarado
        raise EncodingOverflow(
            f"{value.value} does not fit {value.width.bits}-bit float"
        ) from e


def canonical_json(fragment: Any) -> str:
    """
    Serialización JSON canónica (compacta, orden de claves del documento).

    Valores no-JSON (ej: fechas de YAML) se serializan como string;
    NaN/Infinity no son JSON: ValueError.
    """
    return json.dumps(
        fragment,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
        allow_nan=False,
    )


def encode_into(value: Value, buffer: bytearray) -> None:
    """
    Agrega la codificación de `value` al final de `buffer`.

    Raises:
        EncodingOverflow: Si un entero/float no entra en su width
        TypeError: Si `value` no es un Value conocido
    """
    if isinstance(value, Bool):
        buffer.append(1 if value.value else 0)
    elif isinstance(value, Integer):
        buffer += _encode_integer(value)
    elif isinstance(value, Float):
        buffer += _encode_float(value)
    elif isinstance(value, Text):
        buffer += value.value.encode(value.encoding.codec)
    elif isinstance(value, Sequence):
        for item in value.items:
            encode_into(item, buffer)
    elif isinstance(value, Opaque):
        buffer += canonical_json(value.fragment).encode("utf-8")
    else:
        raise TypeError(f"Cannot encode {type(value).__name__}")


def encode(value: Value) -> bytes:
    """
    Codifica un Value en bytes.

    Args:
        value: Value tipado (resultado del parser)

    Returns:
        Payload listo para publicar

    Raises:
        EncodingOverflow: Si un entero/float no entra en su width
    """
    buffer = bytearray()
    encode_into(value, buffer)
    return bytes(buffer)


__all__ = ["encode", "encode_into", "canonical_json"]
