"""
Publish Scheduler
=================

Publica el registry completo a intervalo fijo.

Cada tick:
1. Toma UN snapshot del registry (nunca ve un reload a medias)
2. Para cada entry, en orden de documento: encode -> publisher.publish
3. Fallos por entry quedan aislados (el resto del tick sigue)

Diseño:
- Thread dedicado con deadlines monotónicos (sin drift acumulado)
- Primer tick inmediato; ticks atrasados se saltean (no se acumulan)
- Después de stop() no empieza ningún tick nuevo
"""
import logging
import time
from dataclasses import dataclass, field
from threading import Event, Lock, Thread
from typing import Any, Dict, List, Optional, Tuple

from ..logging import generate_trace_id, log_tick, trace_context
from ..payload import EncodingOverflow, PublishFailure, encode
from ..topics import TopicRegistry
from .plane import Publisher

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Resultado de un tick."""
    version: int
    attempted: int = 0
    published: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class PublishScheduler:
    """
    Scheduler de publicación periódica.

    Usage:
        scheduler = PublishScheduler(registry, data_plane, interval=1.0)
        scheduler.start()
        ...
        scheduler.stop()

        # O un tick sincrónico (tests)
        report = scheduler.tick()
    """

    def __init__(
        self,
        registry: TopicRegistry,
        publisher: Publisher,
        interval: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        self.registry = registry
        self.publisher = publisher
        self.interval = interval

        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._lock = Lock()

        self.ticks = 0
        self.messages_published = 0
        self.entry_failures = 0
        self.last_report: Optional[TickReport] = None

    def tick(self) -> TickReport:
        """
        Ejecuta un tick completo sobre el snapshot actual.

        Returns:
            TickReport con publicados y fallos por topic
        """
        snapshot = self.registry.snapshot()
        report = TickReport(version=snapshot.version)
        started = time.monotonic()

        with trace_context(generate_trace_id("tick")):
            for entry in snapshot.entries:
                report.attempted += 1
                try:
                    payload = encode(entry.value)
                except EncodingOverflow as e:
                    report.failures.append((entry.topic, f"encoding overflow: {e}"))
                    logger.warning(
                        f"⚠️ Entry no codificable, se saltea en este tick: {entry.topic}",
                        extra={
                            "component": "scheduler",
                            "event": "encode_failed",
                            "mqtt_topic": entry.topic,
                            "error_type": type(e).__name__,
                            "error_message": str(e),
                        }
                    )
                    continue
                except Exception as e:
                    report.failures.append((entry.topic, f"encode error: {e}"))
                    logger.error(
                        f"❌ Error codificando {entry.topic}",
                        extra={
                            "component": "scheduler",
                            "event": "encode_exception",
                            "mqtt_topic": entry.topic,
                        },
                        exc_info=True,
                    )
                    continue

                reason = "publish failed"
                try:
                    ok = self.publisher.publish(entry.topic, payload)
                except PublishFailure as e:
                    ok = False
                    reason = f"publish failed: {e}"
                    logger.warning(
                        f"⚠️ Publish rechazado para {entry.topic}: {e}",
                        extra={
                            "component": "scheduler",
                            "event": "publish_rejected",
                            "mqtt_topic": entry.topic,
                        }
                    )
                except Exception as e:
                    ok = False
                    logger.error(
                        f"❌ Publisher falló para {entry.topic}: {e}",
                        extra={
                            "component": "scheduler",
                            "event": "publish_exception",
                            "mqtt_topic": entry.topic,
                        },
                        exc_info=True,
                    )

                if ok:
                    report.published += 1
                else:
                    report.failures.append((entry.topic, reason))

            log_tick(
                logger,
                version=report.version,
                attempted=report.attempted,
                published=report.published,
                failed=report.failed,
                duration_ms=(time.monotonic() - started) * 1000,
            )

        with self._lock:
            self.ticks += 1
            self.messages_published += report.published
            self.entry_failures += report.failed
            self.last_report = report
        return report

    def _run(self):
        logger.info(
            "▶️ Scheduler iniciado",
            extra={
                "component": "scheduler",
                "event": "started",
                "interval_s": self.interval,
            }
        )
        next_deadline = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                # Un tick roto no detiene la publicación
                logger.exception(
                    "❌ Error inesperado en tick",
                    extra={"component": "scheduler", "event": "tick_exception"}
                )

            next_deadline += self.interval
            now = time.monotonic()
            if next_deadline < now:
                skipped = int((now - next_deadline) // self.interval) + 1
                logger.debug(
                    "Tick overrun, skipping deadlines",
                    extra={"component": "scheduler", "event": "tick_overrun", "skipped": skipped}
                )
                next_deadline += skipped * self.interval

            if self._stop_event.wait(timeout=max(0.0, next_deadline - time.monotonic())):
                break

        logger.info(
            "⏹️ Scheduler detenido",
            extra={"component": "scheduler", "event": "stopped", "ticks": self.ticks}
        )

    def start(self):
        """Inicia el thread del scheduler."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("⚠️ Scheduler ya está corriendo")
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._run, name="publish-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0):
        """Señala shutdown (no empieza ningún tick nuevo) y espera al thread."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estadísticas del scheduler"""
        with self._lock:
            return {
                "ticks": self.ticks,
                "messages_published": self.messages_published,
                "entry_failures": self.entry_failures,
                "interval_s": self.interval,
                "registry_version": self.registry.version,
            }
