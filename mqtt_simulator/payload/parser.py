"""
Value Descriptor Parser
=======================

Convierte el documento (lista de entries {"topic", "data"}) en valores tipados.

Reglas de dispatch sobre el fragmento `data`:
- bool                          -> Bool
- list                          -> Sequence (recursivo, cada elemento es un fragmento)
- dict con "value" bool         -> Bool
- dict con "value" str          -> Text   (encoding opcional, default UTF8)
- dict con "value" int          -> Integer (width/endian opcionales)
- dict con "value" float        -> Float   (width 32|64, endian opcional)
- dict con "value" de otro tipo -> Opaque
- dict sin "value"              -> Opaque
- cualquier otra cosa           -> SchemaError

Diseño:
- Errores estructurales solamente (nunca dependen de estado runtime)
- Cada error lleva el path dentro del documento
- Strings nunca se coercionan a números/bools ("2" sigue siendo Text)
"""
import json
from typing import Any, Dict, Mapping, Tuple

import yaml

from .encoder import encode
from .values import (
    Bool,
    DEFAULT_ENCODING,
    DEFAULT_ENDIAN,
    DEFAULT_FLOAT_WIDTH,
    DEFAULT_INT_WIDTH,
    EncodingOverflow,
    Endian,
    Float,
    FloatWidth,
    Integer,
    IntWidth,
    Opaque,
    SchemaError,
    Sequence,
    Text,
    TextEncoding,
    TopicEntry,
    Value,
)

# Límite de anidamiento de secuencias (acota el uso de stack)
MAX_DEPTH = 64

# Rango aceptado para cualquier entero del documento (u64 ∪ i64)
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 64) - 1

_WIDTH_LABELS: Dict[str, int] = {
    "8": 8,
    "16": 16,
    "32": 32,
    "64": 64,
    # Nombres legacy
    "Eight": 8,
    "Sixteen": 16,
    "Thirtytwo": 32,
    "Sixtyfour": 64,
}

_ENDIAN_LABELS: Dict[str, Endian] = {e.value: e for e in Endian}

_ENCODING_LABELS: Dict[str, TextEncoding] = {
    "utf8": TextEncoding.UTF8,
    "utf-8": TextEncoding.UTF8,
    "utf16le": TextEncoding.UTF16LE,
    "utf-16le": TextEncoding.UTF16LE,
    "utf16be": TextEncoding.UTF16BE,
    "utf-16be": TextEncoding.UTF16BE,
}


# ============================================================================
# Field parsers
# ============================================================================

def _parse_width_bits(raw: Any, path: str) -> int:
    # bool es subclase de int: "width": true no es un width
    if isinstance(raw, bool):
        raise SchemaError(f"invalid width {raw!r}", f"{path}.width")
    if isinstance(raw, int):
        raw = str(raw)
    if isinstance(raw, str) and raw.strip() in _WIDTH_LABELS:
        return _WIDTH_LABELS[raw.strip()]
    raise SchemaError(
        f"invalid width {raw!r}, expected one of 8, 16, 32, 64",
        f"{path}.width",
    )


def parse_int_width(raw: Any, path: str = "") -> IntWidth:
    """Parsea el campo width para enteros (8/16/32/64)."""
    if raw is None:
        return DEFAULT_INT_WIDTH
    return IntWidth(_parse_width_bits(raw, path))


def parse_float_width(raw: Any, path: str = "") -> FloatWidth:
    """Parsea el campo width para floats (solo 32/64)."""
    if raw is None:
        return DEFAULT_FLOAT_WIDTH
    bits = _parse_width_bits(raw, path)
    if bits not in (32, 64):
        raise SchemaError(
            f"invalid float width {raw!r}, expected 32 or 64",
            f"{path}.width",
        )
    return FloatWidth(bits)


def parse_endian(raw: Any, path: str = "") -> Endian:
    """Parsea el campo endian (BigEndian | LittleEndian, case-sensitive)."""
    if raw is None:
        return DEFAULT_ENDIAN
    if isinstance(raw, str) and raw in _ENDIAN_LABELS:
        return _ENDIAN_LABELS[raw]
    raise SchemaError(
        f"invalid endian {raw!r}, expected BigEndian or LittleEndian",
        f"{path}.endian",
    )


def parse_encoding(raw: Any, path: str = "") -> TextEncoding:
    """Parsea el campo encoding (UTF8 | UTF16LE | UTF16BE, case-insensitive)."""
    if raw is None:
        return DEFAULT_ENCODING
    if isinstance(raw, str) and raw.strip().lower() in _ENCODING_LABELS:
        return _ENCODING_LABELS[raw.strip().lower()]
    raise SchemaError(
        f"invalid encoding {raw!r}, expected UTF8, UTF16LE or UTF16BE",
        f"{path}.encoding",
    )


# ============================================================================
# Fragment parser
# ============================================================================

def _parse_integer(fragment: Mapping[str, Any], path: str) -> Integer:
    magnitude = fragment["value"]
    width = parse_int_width(fragment.get("width"), path)
    endian = parse_endian(fragment.get("endian"), path)

    if not _INT_MIN <= magnitude <= _INT_MAX:
        raise SchemaError(f"integer {magnitude} out of 64-bit range", f"{path}.value")

    integer = Integer(magnitude, width, endian)
    if not integer.fits():
        kind = "signed" if integer.signed else "unsigned"
        raise SchemaError(
            f"integer {magnitude} does not fit {kind} {width.bits}-bit width",
            f"{path}.value",
        )
    return integer


def _check_encodable(value: Value, path: str) -> Value:
    # Cada Value aceptado por el parser se puede codificar
    try:
        encode(value)
    except EncodingOverflow as e:
        raise SchemaError(str(e), f"{path}.value") from e
    except ValueError as e:
        # UnicodeEncodeError (surrogates sueltos) / NaN-Infinity en JSON opaco
        raise SchemaError(f"value cannot be encoded: {e}", path) from e
    return value


def _parse_object(fragment: Mapping[str, Any], path: str) -> Value:
    if "value" not in fragment:
        return _check_encodable(Opaque(fragment), path)

    value = fragment["value"]

    if isinstance(value, bool):
        return Bool(value)

    if isinstance(value, str):
        return _check_encodable(
            Text(value, parse_encoding(fragment.get("encoding"), path)),
            path,
        )

    if isinstance(value, int):
        return _parse_integer(fragment, path)

    if isinstance(value, float):
        # binary32 finito fuera de rango -> SchemaError (inf/nan se codifican tal cual)
        return _check_encodable(
            Float(
                value,
                parse_float_width(fragment.get("width"), path),
                parse_endian(fragment.get("endian"), path),
            ),
            path,
        )

    # value null / lista / objeto: se publica tal cual
    return _check_encodable(Opaque(fragment), path)


def parse_value(fragment: Any, path: str = "data", depth: int = 0) -> Value:
    """
    Parsea un fragmento `data` en un Value tipado.

    Args:
        fragment: Fragmento del documento (ya deserializado)
        path: Ubicación del fragmento (para mensajes de error)
        depth: Profundidad de anidamiento actual

    Returns:
        Value (Bool, Integer, Float, Text, Sequence u Opaque)

    Raises:
        SchemaError: Si el fragmento no tiene una forma reconocida
    """
    if depth > MAX_DEPTH:
        raise SchemaError(f"nesting deeper than {MAX_DEPTH} levels", path)

    if isinstance(fragment, bool):
        return Bool(fragment)

    if isinstance(fragment, list):
        return Sequence(tuple(
            parse_value(item, f"{path}[{i}]", depth + 1)
            for i, item in enumerate(fragment)
        ))

    if isinstance(fragment, dict):
        return _parse_object(fragment, path)

    raise SchemaError(
        f"unexpected {type(fragment).__name__} {fragment!r}; "
        f"expected a boolean, a list or an object",
        path,
    )


# ============================================================================
# Entries & documents
# ============================================================================

def parse_entry(raw: Any, path: str = "entries[0]") -> TopicEntry:
    """
    Parsea una entry {"topic": str, "data": fragment}.

    Raises:
        SchemaError: Si falta topic/data o el fragmento es inválido
    """
    if not isinstance(raw, dict):
        raise SchemaError(f"entry must be an object, got {type(raw).__name__}", path)

    topic = raw.get("topic")
    if not isinstance(topic, str) or not topic:
        raise SchemaError("entry needs a non-empty string 'topic'", f"{path}.topic")

    if "data" not in raw:
        raise SchemaError("entry needs a 'data' field", f"{path}.data")

    return TopicEntry(topic, parse_value(raw["data"], f"{path}.data"))


def parse_document(raw: Any) -> Tuple[TopicEntry, ...]:
    """
    Parsea el documento completo (todo o nada).

    Args:
        raw: Documento deserializado (debe ser una lista de entries)

    Returns:
        Tuple de TopicEntry en orden de documento

    Raises:
        SchemaError: En la primera entry inválida
    """
    if not isinstance(raw, list):
        raise SchemaError(
            f"document must be a list of entries, got {type(raw).__name__}",
            "entries",
        )
    return tuple(parse_entry(item, f"entries[{i}]") for i, item in enumerate(raw))


def _reject_constant(token: str) -> Any:
    raise SchemaError(f"invalid JSON document: {token} is not a JSON number")


def load_structured(text: str, fmt: str = "json") -> Any:
    """
    Deserializa el texto del documento (json | yaml).

    Raises:
        SchemaError: Si el texto no es JSON/YAML válido (incluye NaN/Infinity)
    """
    try:
        if fmt == "yaml":
            return yaml.safe_load(text)
        return json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaError(f"invalid {fmt.upper()} document: {e}") from e
    except RecursionError as e:
        raise SchemaError(f"{fmt.upper()} document nested too deeply") from e


def parse_document_text(text: str, fmt: str = "json") -> Tuple[TopicEntry, ...]:
    """Deserializa y parsea el documento en un solo paso."""
    return parse_document(load_structured(text, fmt))


def describe(value: Value) -> Dict[str, Any]:
    """Resumen legible de un Value (para logs de reload)."""
    if isinstance(value, Bool):
        return {"type": "bool", "value": value.value}
    if isinstance(value, Integer):
        return {
            "type": "int" if value.signed else "uint",
            "value": value.value,
            "width": value.width.bits,
            "endian": value.endian.value,
        }
    if isinstance(value, Float):
        return {
            "type": "float",
            "value": value.value,
            "width": value.width.bits,
            "endian": value.endian.value,
        }
    if isinstance(value, Text):
        return {"type": "text", "length": len(value.value), "encoding": value.encoding.value}
    if isinstance(value, Sequence):
        return {"type": "sequence", "items": [describe(v) for v in value.items]}
    return {"type": "json", "keys": list(value.fragment)}


__all__ = [
    "MAX_DEPTH",
    "parse_int_width",
    "parse_float_width",
    "parse_endian",
    "parse_encoding",
    "parse_value",
    "parse_entry",
    "parse_document",
    "parse_document_text",
    "load_structured",
    "describe",
]
