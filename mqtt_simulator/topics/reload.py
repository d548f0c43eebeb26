"""
Reload Controller
=================

Recarga en caliente del documento: detecta cambios, re-parsea y hace swap
todo-o-nada del TopicRegistry.

Invariantes:
- Documento válido completo  -> swap atómico (una sola transición visible)
- Cualquier entry inválida   -> se descarta el intento, queda el registry previo
- Error de reload            -> se reporta (log + last_error), nunca se silencia
- WatchFailure               -> termina el thread de reload, el scheduler sigue

Diseño:
- Un thread dedicado que bloquea en ChangeSource.wait_for_change()
- Comunicación con el scheduler SOLO a través del TopicRegistry
"""
import logging
from threading import Event, Lock, Thread
from typing import Any, Dict, Optional

from ..logging import (
    generate_trace_id,
    log_error_with_context,
    log_reload,
    trace_context,
)
from ..payload import SchemaError, WatchFailure, describe
from .registry import TopicRegistry, load_document
from .watcher import ChangeSource

logger = logging.getLogger(__name__)


class ReloadController:
    """
    Observa el documento y reemplaza el registry cuando cambia.

    Usage:
        controller = ReloadController(registry, FileWatcher(path))
        controller.start()
        ...
        controller.stop()

        # O un intento sincrónico (tests, comando manual)
        adopted = controller.reload_now()
    """

    def __init__(self, registry: TopicRegistry, source: ChangeSource):
        if registry.source is None:
            raise ValueError("ReloadController requires a registry loaded from a document")

        self.registry = registry
        self.source = source
        self.path = registry.source

        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._lock = Lock()

        # Estadísticas / estado reportable
        self.successful_reloads = 0
        self.failed_reloads = 0
        self.last_error: Optional[Exception] = None
        self.watch_error: Optional[WatchFailure] = None

    def reload_now(self) -> bool:
        """
        Un intento de reload (sincrónico).

        Returns:
            True si el nuevo documento fue adoptado, False si se descartó
        """
        with self._lock, trace_context(generate_trace_id("reload")):
            try:
                entries = load_document(self.path)
            except (SchemaError, OSError) as e:
                self.failed_reloads += 1
                self.last_error = e
                log_error_with_context(
                    logger,
                    message="❌ Documento inválido, se mantiene el registry anterior",
                    exception=e,
                    component="reload_controller",
                    event="reload_rejected",
                    exc_info=False,
                    document=self.path,
                    registry_version=self.registry.version,
                    error_path=getattr(e, "path", None),
                )
                return False

            snapshot = self.registry.swap(entries)
            self.successful_reloads += 1
            self.last_error = None
            log_reload(
                logger,
                path=self.path,
                version=snapshot.version,
                entries=len(snapshot),
                topics=snapshot.topics,
            )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "Registry contents",
                    extra={
                        "component": "reload_controller",
                        "event": "registry_contents",
                        "entries": [
                            {"topic": e.topic, "value": describe(e.value)}
                            for e in snapshot.entries
                        ],
                    }
                )
            return True

    def _run(self):
        logger.info(
            "👀 Observando documento",
            extra={
                "component": "reload_controller",
                "event": "watch_started",
                "document": self.path,
                "source": repr(self.source),
            }
        )
        try:
            while not self._stop_event.is_set():
                if not self.source.wait_for_change(self._stop_event):
                    break
                self.reload_now()
        except WatchFailure as e:
            self.watch_error = e
            log_error_with_context(
                logger,
                message="❌ Watcher caído: no se detectarán más cambios (se sigue publicando el último registry)",
                exception=e,
                component="reload_controller",
                event="watch_failed",
                document=self.path,
            )
        finally:
            self.source.close()
            logger.info(
                "Watch stopped",
                extra={"component": "reload_controller", "event": "watch_stopped"}
            )

    def start(self):
        """Inicia el thread de reload."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("⚠️ ReloadController ya está corriendo")
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._run, name="reload-controller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0):
        """Detiene el thread de reload (espera hasta `timeout`)."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estadísticas del reload controller."""
        return {
            "document": self.path,
            "registry_version": self.registry.version,
            "successful_reloads": self.successful_reloads,
            "failed_reloads": self.failed_reloads,
            "last_error": str(self.last_error) if self.last_error else None,
            "watching": self.is_alive,
            "watch_error": str(self.watch_error) if self.watch_error else None,
        }
