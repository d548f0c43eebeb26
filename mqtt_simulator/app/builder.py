"""
Simulator Builder
=================

Builder pattern para construir el simulador con todas sus dependencias.

Responsabilidad:
- Carga inicial del registry (fatal si el documento es inválido)
- Construir Data Plane (publisher MQTT)
- Construir ReloadController (watcher + reload)
- Construir PublishScheduler

Diseño:
- Builder construye, Controller orquesta lifecycle
- Toda la traducción config -> parámetros centralizada aquí
"""
import logging
from typing import Optional

from ..config import SimulatorConfig
from ..data import MQTTDataPlane, Publisher, PublishScheduler
from ..topics import FileWatcher, ReloadController, TopicRegistry

logger = logging.getLogger(__name__)


class SimulatorBuilder:
    """
    Builder para los componentes del simulador.

    Usage:
        builder = SimulatorBuilder(config)

        registry = builder.build_registry()               # SchemaError si inválido
        data_plane = builder.build_data_plane()
        reload_controller = builder.build_reload_controller(registry)
        scheduler = builder.build_scheduler(registry, data_plane)
    """

    def __init__(self, config: SimulatorConfig):
        """
        Args:
            config: SimulatorConfig validado (document.path requerido)
        """
        if not config.document.path:
            raise ValueError("A document path is required (document.path)")
        self.config = config

    def build_registry(self) -> TopicRegistry:
        """
        Carga inicial del documento.

        Raises:
            OSError: Documento ilegible
            SchemaError: Documento inválido (no hay registry previo: fatal)
        """
        logger.info(
            "Building topic registry",
            extra={
                "component": "builder",
                "event": "registry_build_start",
                "document": self.config.document.path,
            }
        )
        return TopicRegistry.from_path(self.config.document.path)

    def build_data_plane(self) -> MQTTDataPlane:
        """Construye el publisher MQTT (sin conectar)."""
        broker = self.config.mqtt.broker
        publish = self.config.mqtt.publish
        logger.info(
            "Building data plane",
            extra={
                "component": "builder",
                "event": "data_plane_build_start",
                "broker_host": broker.host,
                "broker_port": broker.port,
                "client_id": broker.client_id,
            }
        )
        return MQTTDataPlane(
            broker_host=broker.host,
            broker_port=broker.port,
            client_id=broker.client_id,
            username=broker.username,
            password=broker.password,
            qos=publish.qos,
            retain=publish.retain,
            keepalive=broker.keepalive,
            reconnect_delay=broker.reconnect_delay,
        )

    def build_reload_controller(self, registry: TopicRegistry) -> Optional[ReloadController]:
        """
        Construye el reload controller.

        Returns:
            ReloadController, o None si document.watch=False
        """
        document = self.config.document
        if not document.watch:
            logger.info(
                "Document watch disabled",
                extra={"component": "builder", "event": "reload_disabled"}
            )
            return None

        watcher = FileWatcher(
            document.path,
            poll_interval=document.poll_interval_ms / 1000.0,
            debounce=document.debounce_ms / 1000.0,
            baseline=registry.source_signature,
        )
        return ReloadController(registry, watcher)

    def build_scheduler(self, registry: TopicRegistry, publisher: Publisher) -> PublishScheduler:
        """Construye el scheduler de publicación."""
        logger.info(
            "Building publish scheduler",
            extra={
                "component": "builder",
                "event": "scheduler_build_start",
                "send_interval_ms": self.config.scheduler.send_interval_ms,
            }
        )
        return PublishScheduler(registry, publisher, interval=self.config.send_interval)
