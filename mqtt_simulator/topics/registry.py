"""
Topic Registry
==============

Colección ordenada de (topic, Value) derivada de un parseo completo del documento.

Problema resuelto:
- El scheduler lee mientras el reload controller reemplaza
- Un reload nunca debe verse a medias

Solución:
- RegistrySnapshot inmutable (tuple de entries + versión)
- swap() reemplaza la referencia completa bajo un Lock
- Los lectores toman UN snapshot por operación (sin locks adicionales)
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from ..payload import SchemaError, TopicEntry, parse_document_text
from .watcher import Signature, file_signature

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Vista inmutable y consistente del registry.

    Attributes:
        entries: Entries en orden de documento
        version: Versión (incrementa en cada swap)
        source: Path del documento que la originó (opcional)
        loaded_at: Momento de adopción
    """
    entries: Tuple[TopicEntry, ...]
    version: int = 0
    source: Optional[str] = None
    loaded_at: Optional[datetime] = None

    def __iter__(self) -> Iterator[TopicEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def topics(self) -> List[str]:
        return [entry.topic for entry in self.entries]


def document_format(path: Union[str, Path]) -> str:
    """Formato del documento según extensión (yaml para .yaml/.yml, json para el resto)."""
    return "yaml" if Path(path).suffix.lower() in YAML_SUFFIXES else "json"


def load_document(path: Union[str, Path]) -> Tuple[TopicEntry, ...]:
    """
    Lee y parsea el documento completo.

    Args:
        path: Path al documento (JSON o YAML)

    Returns:
        Entries en orden de documento

    Raises:
        OSError: Si el archivo no se puede leer
        SchemaError: Si el contenido no es válido (sintaxis, forma, labels)
    """
    doc_path = Path(path)
    try:
        text = doc_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SchemaError(f"document is not valid UTF-8: {e}") from e
    return parse_document_text(text, document_format(doc_path))


class TopicRegistry:
    """
    Handle intercambiable al snapshot actual.

    Diseño:
    - Nunca se muta entry por entry: solo swap() completo
    - snapshot() es O(1) y devuelve siempre un estado consistente

    Usage:
        registry = TopicRegistry.from_path("data.json")   # carga inicial (fatal si falla)

        snapshot = registry.snapshot()                    # lector (scheduler)
        for entry in snapshot:
            ...

        registry.swap(load_document("data.json"))         # escritor (reload)
    """

    def __init__(
        self,
        entries: Iterable[TopicEntry] = (),
        source: Optional[Union[str, Path]] = None,
        source_signature: Signature = None,
    ):
        self._lock = Lock()
        self._source = str(source) if source is not None else None
        # (mtime_ns, size) del documento leído en la carga inicial
        self.source_signature = source_signature
        self._snapshot = RegistrySnapshot(
            entries=tuple(entries),
            version=1,
            source=self._source,
            loaded_at=datetime.now(),
        )

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "TopicRegistry":
        """
        Carga inicial desde el documento.

        No hay registry previo al que volver: cualquier error se propaga.
        La signature se toma ANTES de leer: una edición concurrente con la
        carga queda después de esa versión y el watcher la detecta.

        Raises:
            OSError: Si el archivo no se puede leer
            SchemaError: Si el documento es inválido
        """
        signature = file_signature(path)
        entries = load_document(path)
        logger.info(
            "📄 Documento inicial cargado",
            extra={
                "component": "topic_registry",
                "event": "initial_load",
                "document": str(path),
                "entries": len(entries),
            }
        )
        return cls(entries, source=path, source_signature=signature)

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def version(self) -> int:
        return self._snapshot.version

    def snapshot(self) -> RegistrySnapshot:
        """Retorna el snapshot actual (completo, nunca parcial)."""
        return self._snapshot

    def swap(self, entries: Iterable[TopicEntry]) -> RegistrySnapshot:
        """
        Reemplaza atómicamente todas las entries.

        Args:
            entries: Nuevas entries (ya parseadas y validadas)

        Returns:
            Nuevo snapshot adoptado
        """
        new_entries = tuple(entries)
        with self._lock:
            snapshot = RegistrySnapshot(
                entries=new_entries,
                version=self._snapshot.version + 1,
                source=self._source,
                loaded_at=datetime.now(),
            )
            self._snapshot = snapshot
        logger.debug(
            "Registry swapped",
            extra={
                "component": "topic_registry",
                "event": "swapped",
                "registry_version": snapshot.version,
                "entries": len(snapshot),
            }
        )
        return snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def __repr__(self) -> str:
        snapshot = self._snapshot
        return f"TopicRegistry(v{snapshot.version}, {len(snapshot)} entries, source={self._source!r})"
