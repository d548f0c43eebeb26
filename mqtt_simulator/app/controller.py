"""
MQTT Simulator Controller
=========================

Orquestación y lifecycle del simulador:
- Carga inicial del documento (fatal si es inválido)
- Data Plane MQTT
- ReloadController (hot reload del documento)
- PublishScheduler (publicación periódica)
- Signal handling (Ctrl+C / SIGTERM) y cleanup
"""
import argparse
import logging
import signal
import sys
from threading import Event
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import SimulatorConfig, apply_env_overrides
from ..data import MQTTDataPlane, PublishScheduler
from ..logging import log_error_with_context, setup_logging
from ..payload import SchemaError
from ..topics import ReloadController, TopicRegistry
from .builder import SimulatorBuilder

logger = logging.getLogger(__name__)


# ============================================================================
# SIMULATOR CONTROLLER
# ============================================================================
class SimulatorController:
    """
    Controlador del simulador.

    Responsabilidad: Orquestación y lifecycle management
    - Setup de componentes (delega construcción a Builder)
    - Start/stop de threads (reload + scheduler)
    - Signal handling
    - Cleanup de recursos

    Diseño:
    - Controller orquesta, no construye (delega a Builder)
    - El reload y el scheduler solo se comunican vía TopicRegistry
    """

    def __init__(self, config: SimulatorConfig, builder: Optional[SimulatorBuilder] = None):
        self.config = config
        self.builder = builder or SimulatorBuilder(config)

        # Componentes (creados en setup)
        self.registry: Optional[TopicRegistry] = None
        self.data_plane: Optional[MQTTDataPlane] = None
        self.reload_controller: Optional[ReloadController] = None
        self.scheduler: Optional[PublishScheduler] = None

        # Lifecycle
        self.shutdown_event = Event()

    def setup(self) -> bool:
        """
        Inicializa registry, MQTT, reload y scheduler.

        Returns:
            bool: True si setup exitoso, False si el documento inicial es inválido
        """
        logger.info("🚀 Inicializando MQTT simulator...")

        # 1. Documento inicial (sin registry previo: cualquier error es fatal)
        try:
            self.registry = self.builder.build_registry()
        except (SchemaError, OSError) as e:
            log_error_with_context(
                logger,
                message="❌ No se pudo cargar el documento inicial",
                exception=e,
                component="controller",
                event="initial_load_failed",
                exc_info=False,
                document=self.config.document.path,
            )
            return False

        # 2. Data Plane
        logger.info("📡 Configurando Data Plane...")
        self.data_plane = self.builder.build_data_plane()
        timeout = self.config.mqtt.publish.connect_timeout
        if not self.data_plane.connect(timeout=timeout):
            # paho sigue reintentando; los ticks reportan fallos hasta conectar
            logger.warning(
                "⚠️ Broker no disponible todavía, se publicará al reconectar",
                extra={
                    "component": "controller",
                    "event": "broker_unavailable",
                    "timeout": timeout,
                }
            )

        # 3. Hot reload
        self.reload_controller = self.builder.build_reload_controller(self.registry)
        if self.reload_controller is not None:
            self.reload_controller.start()

        # 4. Scheduler
        self.scheduler = self.builder.build_scheduler(self.registry, self.data_plane)
        self.scheduler.start()

        logger.info("✅ Setup completado")
        return True

    def request_shutdown(self):
        """Señala shutdown: el scheduler no empieza ningún tick nuevo."""
        self.shutdown_event.set()
        if self.scheduler is not None:
            self.scheduler.stop(timeout=0)

    def run(self) -> int:
        """
        Ejecuta el simulador hasta recibir shutdown.

        Returns:
            Exit code (0 = ok, 1 = setup falló)
        """
        if not self.setup():
            logger.error("❌ Setup falló")
            self.cleanup()
            return 1

        logger.info("=" * 70)
        logger.info("🎬 MQTT simulator activo y publicando")
        logger.info("=" * 70)
        logger.info(f"📄 Documento: {self.config.document.path}")
        logger.info(f"📊 Topics: {', '.join(self.registry.snapshot().topics)}")
        logger.info(f"⏱️  Intervalo: {self.config.scheduler.send_interval_ms} ms")
        logger.info("⌨️  Presiona Ctrl+C para salir")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            while not self.shutdown_event.is_set():
                self.shutdown_event.wait(timeout=1.0)
        except KeyboardInterrupt:
            logger.info("⚠️ Interrupción forzada...")
            self.request_shutdown()

        self.cleanup()
        return 0

    def _signal_handler(self, signum, frame):
        """Handler para señales (Ctrl+C / SIGTERM)"""
        logger.info("⚠️ Señal de terminación recibida...")
        self.request_shutdown()

    def cleanup(self):
        """Detiene threads y desconecta del broker."""
        logger.info("🧹 Limpiando recursos...")

        if self.scheduler is not None:
            try:
                self.scheduler.stop()
                logger.info(f"📊 Scheduler stats: {self.scheduler.get_stats()}")
            except Exception as e:
                logger.error(f"❌ Error deteniendo scheduler: {e}")

        if self.reload_controller is not None:
            try:
                self.reload_controller.stop()
                logger.info(f"📊 Reload stats: {self.reload_controller.get_stats()}")
            except Exception as e:
                logger.error(f"❌ Error deteniendo reload controller: {e}")

        if self.data_plane is not None:
            try:
                logger.info(f"📊 Data Plane stats: {self.data_plane.get_stats()}")
                self.data_plane.disconnect()
                logger.info("✅ Data Plane desconectado")
            except Exception as e:
                logger.error(f"❌ Error desconectando Data Plane: {e}")

        logger.info("👋 Hasta luego!")


# ============================================================================
# CLI
# ============================================================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqtt-simulator",
        description="Publica periódicamente los datos de un documento JSON/YAML vía MQTT "
                    "y lo recarga cuando cambia en disco"
    )
    parser.add_argument(
        "document",
        nargs="?",
        help="JSON/YAML document with the topics and data to publish"
    )
    parser.add_argument(
        "--settings",
        help="YAML settings file (see config/mqtt_simulator/config.yaml.example)"
    )
    parser.add_argument(
        "--host",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "-i", "--client-id",
        help="MQTT client id (default: mqtt-simulator)"
    )
    parser.add_argument(
        "-t", "--send-interval",
        type=int,
        help="Send interval in milliseconds (default: 1000)"
    )
    parser.add_argument(
        "--qos",
        type=int,
        choices=[0, 1, 2],
        help="QoS for published payloads (default: 1)"
    )
    parser.add_argument(
        "--retain",
        action="store_const",
        const=True,
        help="Publish with the retain flag"
    )
    parser.add_argument(
        "--no-watch",
        dest="watch",
        action="store_const",
        const=False,
        help="Do not reload the document when it changes"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        help="Log to a rotating file instead of stdout"
    )
    return parser


def load_config(args: argparse.Namespace) -> SimulatorConfig:
    """
    Construye la config final: defaults < YAML < env < CLI.

    Raises:
        ValidationError: Config inválida
        FileNotFoundError: --settings inexistente
    """
    if args.settings:
        config = SimulatorConfig.from_yaml(args.settings)
    else:
        config = SimulatorConfig(**apply_env_overrides({}))

    return config.with_overrides(
        mqtt={
            "broker": {"host": args.host, "port": args.port, "client_id": args.client_id},
            "publish": {"qos": args.qos, "retain": args.retain},
        },
        document={"path": args.document, "watch": args.watch},
        scheduler={"send_interval_ms": args.send_interval},
        logging={"level": args.log_level, "file": args.log_file},
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Punto de entrada principal"""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ValidationError as e:
        print("❌ Invalid configuration:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Error loading config: {e}", file=sys.stderr)
        return 1

    if not config.document.path:
        parser.error("a document path is required (positional argument or document.path)")

    log_cfg = config.logging
    setup_logging(
        level=log_cfg.level,
        indent=log_cfg.json_indent,
        add_fields={"client_id": config.mqtt.broker.client_id},
        log_file=log_cfg.file,
        max_bytes=log_cfg.max_bytes,
        backup_count=log_cfg.backup_count,
    )
    logging.getLogger('paho').setLevel(getattr(logging, log_cfg.paho_level))

    broker = config.mqtt.broker
    logger.info(
        f"🔧 Sending data from {config.document.path} to MQTT Broker at "
        f"{broker.host}:{broker.port} as {broker.client_id}"
    )

    controller = SimulatorController(config)
    try:
        return controller.run()
    except Exception as e:
        logger.error(f"❌ Error fatal: {e}", exc_info=True)
        return 1
