"""
Document Change Watchers
========================

Capability de notificación de cambios del documento.

Contrato (ChangeSource):
- wait_for_change(stop_event): bloquea hasta un cambio (True) o hasta stop (False)
- No interpreta el contenido, solo detecta que cambió

Implementación concreta:
- FileWatcher: polling de metadata (mtime_ns, size) con debounce
  - Ráfagas de escrituras se colapsan en UN solo evento
  - El evento se emite recién cuando la metadata queda estable `debounce` segundos
  - Archivo inexistente = estado transitorio (editores que reemplazan vía rename)
  - Cualquier otro OSError = WatchFailure
"""
import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Event
from typing import Optional, Tuple, Union

from ..payload import WatchFailure

logger = logging.getLogger(__name__)

Signature = Optional[Tuple[int, int]]


def file_signature(path: Union[str, Path]) -> Signature:
    """
    Metadata que identifica una versión del archivo: (mtime_ns, size).

    Returns:
        None si el archivo no existe

    Raises:
        OSError: Cualquier otro error de stat
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return st.st_mtime_ns, st.st_size


class ChangeSource(ABC):
    """
    Clase base abstracta para fuentes de eventos de cambio.

    Implementaciones:
    - FileWatcher: polling sobre el filesystem
    """

    @abstractmethod
    def wait_for_change(self, stop_event: Event) -> bool:
        """
        Bloquea hasta detectar un cambio.

        Args:
            stop_event: Event que interrumpe la espera

        Returns:
            True si hubo cambio, False si stop_event fue seteado

        Raises:
            WatchFailure: Si la fuente ya no puede detectar cambios
        """
        pass

    def close(self) -> None:
        """Libera recursos (default: nada)."""
        pass


class FileWatcher(ChangeSource):
    """
    Watcher por polling con debounce.

    Args:
        path: Documento a observar
        poll_interval: Segundos entre stats (default 0.1)
        debounce: Segundos de quietud antes de emitir el cambio (default 0.3)
        baseline: Signature de la versión ya cargada (default: stat al construir).
            Un cambio posterior a esa versión se notifica aunque ocurra antes
            de construir el watcher.
    """

    def __init__(
        self,
        path: Union[str, Path],
        poll_interval: float = 0.1,
        debounce: float = 0.3,
        baseline: Signature = None,
    ):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {poll_interval}")
        if debounce < 0:
            raise ValueError(f"debounce must be >= 0, got {debounce}")

        self.path = Path(path)
        self.poll_interval = poll_interval
        self.debounce = debounce

        # Estado de referencia: lo último que se notificó (o el estado inicial)
        self._baseline: Signature = baseline if baseline is not None else self._stat()
        self._current: Signature = self._baseline
        self._changed_at = time.monotonic()
        self._missing_reported = False

    def _stat(self) -> Signature:
        try:
            return file_signature(self.path)
        except OSError as e:
            raise WatchFailure(f"Cannot watch {self.path}: {e}") from e

    def poll(self) -> bool:
        """
        Un paso de polling.

        Returns:
            True si hay un cambio estable (debounced) pendiente de notificar
        """
        signature = self._stat()
        now = time.monotonic()

        if signature != self._current:
            self._current = signature
            self._changed_at = now

        if signature is None:
            if not self._missing_reported:
                logger.warning(
                    "⚠️ Documento no encontrado, esperando que reaparezca",
                    extra={
                        "component": "file_watcher",
                        "event": "document_missing",
                        "document": str(self.path),
                    }
                )
                self._missing_reported = True
            return False

        if self._missing_reported:
            logger.info(
                "📄 Documento disponible nuevamente",
                extra={
                    "component": "file_watcher",
                    "event": "document_reappeared",
                    "document": str(self.path),
                }
            )
            self._missing_reported = False

        if signature == self._baseline:
            return False

        if now - self._changed_at < self.debounce:
            return False

        self._baseline = signature
        return True

    def wait_for_change(self, stop_event: Event) -> bool:
        while not stop_event.is_set():
            if self.poll():
                logger.debug(
                    "Document change detected",
                    extra={
                        "component": "file_watcher",
                        "event": "change_detected",
                        "document": str(self.path),
                    }
                )
                return True
            if stop_event.wait(timeout=self.poll_interval):
                break
        return False

    def __repr__(self) -> str:
        return (
            f"FileWatcher({str(self.path)!r}, poll_interval={self.poll_interval}, "
            f"debounce={self.debounce})"
        )
