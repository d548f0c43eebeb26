"""
Typed Value Model
=================

Bounded Context: Payload Algebra (valores tipados del documento)

Representación interna de los datos de cada entry del documento:
- Value: unión cerrada (Bool, Integer, Float, Text, Sequence, Opaque)
- Enums para width, endianness y encoding
- Jerarquía de errores del simulador

Design:
- Dataclasses inmutables (frozen)
- Sin dependencias externas
- Width/endian siempre explícitos después del parseo (defaults aplicados)
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple, Union


# ============================================================================
# Errors
# ============================================================================

class SimulatorError(Exception):
    """Error base del simulador."""
    pass


class SchemaError(SimulatorError, ValueError):
    """
    El documento (o una entry) no se puede interpretar.

    Attributes:
        path: Ubicación dentro del documento (ej: "entries[2].data[1]")
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        self.reason = message
        super().__init__(f"{path}: {message}" if path else message)


class EncodingOverflow(SimulatorError, OverflowError):
    """El valor no entra en el width declarado."""
    pass


class PublishFailure(SimulatorError):
    """El publisher rechazó el payload de un topic."""
    pass


class WatchFailure(SimulatorError):
    """Ya no se pueden detectar cambios del documento."""
    pass


# ============================================================================
# Enumerations
# ============================================================================

class Endian(Enum):
    BIG = "BigEndian"
    LITTLE = "LittleEndian"

    @property
    def struct_prefix(self) -> str:
        return ">" if self is Endian.BIG else "<"


class IntWidth(Enum):
    W8 = 8
    W16 = 16
    W32 = 32
    W64 = 64

    @property
    def bits(self) -> int:
        return self.value

    @property
    def signed_range(self) -> Tuple[int, int]:
        return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1

    @property
    def unsigned_range(self) -> Tuple[int, int]:
        return 0, (1 << self.bits) - 1


class FloatWidth(Enum):
    W32 = 32
    W64 = 64

    @property
    def bits(self) -> int:
        return self.value


class TextEncoding(Enum):
    UTF8 = "UTF8"
    UTF16LE = "UTF16LE"
    UTF16BE = "UTF16BE"

    @property
    def codec(self) -> str:
        """Nombre del codec Python (utf-16-le/be no escriben BOM)."""
        return {
            TextEncoding.UTF8: "utf-8",
            TextEncoding.UTF16LE: "utf-16-le",
            TextEncoding.UTF16BE: "utf-16-be",
        }[self]


DEFAULT_ENDIAN = Endian.BIG
DEFAULT_INT_WIDTH = IntWidth.W64
DEFAULT_FLOAT_WIDTH = FloatWidth.W64
DEFAULT_ENCODING = TextEncoding.UTF8


# ============================================================================
# Value variants
# ============================================================================

@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Integer:
    """
    Entero de ancho fijo.

    Signo según el valor: < 0 se codifica en complemento a dos,
    >= 0 se codifica sin signo.
    """
    value: int
    width: IntWidth = DEFAULT_INT_WIDTH
    endian: Endian = DEFAULT_ENDIAN

    @property
    def signed(self) -> bool:
        return self.value < 0

    def fits(self) -> bool:
        """True si el valor es representable en el width declarado."""
        low, high = self.width.signed_range if self.signed else self.width.unsigned_range
        return low <= self.value <= high


@dataclass(frozen=True)
class Float:
    value: float
    width: FloatWidth = DEFAULT_FLOAT_WIDTH
    endian: Endian = DEFAULT_ENDIAN


@dataclass(frozen=True)
class Text:
    value: str
    encoding: TextEncoding = DEFAULT_ENCODING


@dataclass(frozen=True)
class Sequence:
    """Secuencia heterogénea; se codifica como concatenación sin framing."""
    items: Tuple["Value", ...] = ()

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Opaque:
    """Fragmento del documento que se publica como JSON canónico."""
    fragment: Mapping[str, Any] = field(default_factory=dict, hash=False)


Value = Union[Bool, Integer, Float, Text, Sequence, Opaque]


@dataclass(frozen=True)
class TopicEntry:
    """
    Entry del documento: topic + valor tipado.

    El topic no es único; entries repetidas se publican por separado.
    """
    topic: str
    value: Value


__all__ = [
    "SimulatorError",
    "SchemaError",
    "EncodingOverflow",
    "PublishFailure",
    "WatchFailure",
    "Endian",
    "IntWidth",
    "FloatWidth",
    "TextEncoding",
    "DEFAULT_ENDIAN",
    "DEFAULT_INT_WIDTH",
    "DEFAULT_FLOAT_WIDTH",
    "DEFAULT_ENCODING",
    "Bool",
    "Integer",
    "Float",
    "Text",
    "Sequence",
    "Opaque",
    "Value",
    "TopicEntry",
]
