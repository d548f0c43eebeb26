"""
Structured Logging Infrastructure
==================================

Logging JSON-based para queryability en producción.

Design Philosophy:
- Solo JSON (no dual output)
- Trace correlation vía contextvars (un trace por tick y por reload)
- Helpers para casos comunes (publish MQTT, reloads, ticks, errores)
- File rotation automático (RotatingFileHandler)

Usage:
    # Setup (una vez al inicio)
    from mqtt_simulator.logging import setup_logging

    # Stdout (desarrollo)
    setup_logging(level="INFO")

    # File con rotation (producción)
    setup_logging(
        level="INFO",
        log_file="logs/mqtt_simulator.log",
        max_bytes=10*1024*1024,  # 10 MB
        backup_count=5
    )

    # Con trace propagation
    from mqtt_simulator.logging import trace_context, get_trace_id

    with trace_context(generate_trace_id("reload")):
        logger.info("Recargando documento", extra={"trace_id": get_trace_id()})
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Dict, Any
import uuid

from pythonjsonlogger.json import JsonFormatter

# ============================================================================
# Trace Context (propagación de trace_id)
# ============================================================================

# ContextVar para thread-safe trace propagation
trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)


def get_trace_id() -> Optional[str]:
    """
    Obtiene el trace_id actual del contexto.

    Returns:
        Trace ID actual o None si no hay contexto activo
    """
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Genera un nuevo trace ID único.

    Args:
        prefix: Prefijo para el trace ID (ej: "tick", "reload")

    Returns:
        Trace ID en formato: {prefix}-{short_uuid}
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Context manager para propagar trace_id en toda la call stack.

    Args:
        trace_id: ID de trace a propagar. Si None, genera uno automático.
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

class SimulatorJsonFormatter(JsonFormatter):
    """JSON formatter con nombres de campo consistentes y trace_id del contexto."""

    def __init__(self, *args, global_fields: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.global_fields = global_fields or {}

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        # Renombrar campos para consistencia
        if 'levelname' in log_record:
            log_record['level'] = log_record.pop('levelname')

        if 'name' in log_record:
            log_record['logger'] = log_record.pop('name')

        # Agregar trace_id del contexto si existe
        current_trace_id = get_trace_id()
        if current_trace_id and not log_record.get('trace_id'):
            log_record['trace_id'] = current_trace_id

        for key, value in self.global_fields.items():
            if key not in log_record:
                log_record[key] = value


def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> logging.Handler:
    """
    Configura structured logging (JSON) para toda la aplicación.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        indent: JSON indent para pretty-print (None = compact, 2 = readable)
        add_fields: Campos adicionales globales (ej: {"client_id": "sim-1"})
        log_file: Path al archivo de logs (None = stdout). Si se especifica, usa rotation.
        max_bytes: Tamaño máximo por archivo antes de rotar (default 10 MB)
        backup_count: Número de archivos backup a mantener (default 5)

    Returns:
        Handler instalado en el root logger
    """
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        print(
            f"📄 Logging to file: {log_file} "
            f"(max: {max_bytes // 1024 // 1024}MB, backups: {backup_count})",
            file=sys.stderr,
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    formatter = SimulatorJsonFormatter(
        '%(timestamp)s %(levelname)s %(name)s %(message)s',
        timestamp=True,
        json_indent=indent,
        global_fields=add_fields,
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))
    return handler


# ============================================================================
# Helper Functions (DRY para casos comunes)
# ============================================================================

def log_mqtt_publish(
    logger: logging.Logger,
    topic: str,
    qos: int,
    payload_size: int,
    success: bool = True,
    error_code: Optional[int] = None,
    component: str = "data_plane",
) -> None:
    """
    Helper para logs de publicación MQTT.

    Args:
        logger: Logger instance
        topic: MQTT topic
        qos: QoS level
        payload_size: Tamaño del payload en bytes
        success: Si la publicación fue exitosa
        error_code: Código de error MQTT (si success=False)
        component: Componente que genera el log
    """
    extra = {
        "component": component,
        "event": "published" if success else "publish_failed",
        "mqtt_topic": topic,
        "qos": qos,
        "payload_size_bytes": payload_size,
        "success": success
    }

    if error_code is not None:
        extra["mqtt_error_code"] = error_code

    if success:
        logger.debug(f"📤 Mensaje publicado a {topic}", extra=extra)
    else:
        logger.warning(f"⚠️ Error publicando a {topic}", extra=extra)


def log_reload(
    logger: logging.Logger,
    path: str,
    version: int,
    entries: int,
    topics: Optional[list] = None,
    component: str = "reload_controller",
) -> None:
    """
    Helper para logs de reload exitoso del documento.

    Args:
        logger: Logger instance
        path: Path del documento
        version: Versión del registry adoptada
        entries: Cantidad de entries
        topics: Topics publicados (opcional)
        component: Componente que genera el log
    """
    extra = {
        "component": component,
        "event": "registry_swapped",
        "document": path,
        "registry_version": version,
        "entries": entries,
    }
    if topics is not None:
        extra["topics"] = topics

    logger.info(f"🔄 Documento recargado: {entries} entries (v{version})", extra=extra)


def log_tick(
    logger: logging.Logger,
    version: int,
    attempted: int,
    published: int,
    failed: int,
    duration_ms: Optional[float] = None,
    component: str = "scheduler",
) -> None:
    """
    Helper para logs de cada tick del scheduler.

    Ticks con fallos se loggean como warning, el resto en debug.
    """
    extra = {
        "component": component,
        "event": "tick_complete",
        "registry_version": version,
        "tick": {
            "attempted": attempted,
            "published": published,
            "failed": failed,
        }
    }
    if duration_ms is not None:
        extra["tick"]["duration_ms"] = round(duration_ms, 2)

    if failed:
        logger.warning(f"⚠️ Tick con {failed}/{attempted} fallos", extra=extra)
    else:
        logger.debug(f"Tick: {published}/{attempted} publicados", extra=extra)


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    exc_info: bool = True,
    **kwargs: Any
) -> None:
    """
    Helper para logs de errores con contexto completo.

    Args:
        logger: Logger instance
        message: Mensaje de error
        exception: Excepción capturada (opcional)
        component: Componente donde ocurrió el error
        event: Evento que causó el error
        trace_id: Trace ID (usa contexto si no se especifica)
        exc_info: Incluir traceback (False para errores esperados, ej: SchemaError)
        **kwargs: Contexto adicional (topic, document, etc.)
    """
    extra = {
        "component": component,
        "trace_id": trace_id or get_trace_id()
    }

    if event:
        extra["event"] = event

    if exception:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)

    extra.update(kwargs)

    if exception:
        logger.error(f"{message}: {exception}", extra=extra, exc_info=exc_info)
    else:
        logger.error(message, extra=extra)


__all__ = [
    # Setup
    "setup_logging",
    "SimulatorJsonFormatter",
    # Trace context
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    # Helpers
    "log_mqtt_publish",
    "log_reload",
    "log_tick",
    "log_error_with_context",
]
