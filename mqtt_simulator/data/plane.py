"""
MQTT Data Plane
===============

Data Plane para publicar los payloads simulados vía MQTT.

Responsabilidad: Infraestructura MQTT (canal)
- Conecta/desconecta del broker (paho maneja keep-alive y reconexión)
- publish(topic, payload) -> bool
- NO conoce el documento ni el encoding (eso es del scheduler/encoder)
"""
import logging
from threading import Event, Lock
from typing import Any, Dict, Optional, Protocol

import paho.mqtt.client as mqtt

from ..logging import log_error_with_context, log_mqtt_publish

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Capability de publicación consumida por el scheduler."""

    def publish(self, topic: str, payload: bytes) -> bool:
        ...


class MQTTDataPlane:
    """
    Data Plane MQTT (implementa Publisher).

    Diseño:
    - Un solo cliente paho compartido por todos los topics y ticks
    - Estado de conexión en un Event (leído desde el thread del scheduler)
    - Fallos de publish se reportan como False, nunca como excepción
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        client_id: str = "mqtt-simulator",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        retain: bool = False,
        keepalive: int = 60,
        reconnect_delay: int = 3,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.qos = qos
        self.retain = retain
        self.keepalive = keepalive

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)
        self.client.reconnect_delay_set(min_delay=1, max_delay=max(1, reconnect_delay))

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()
        self._lock = Lock()
        self.messages_published = 0
        self.publish_failures = 0

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback cuando se conecta al broker"""
        if reason_code == 0:
            logger.info(
                "✅ Data Plane conectado",
                extra={
                    "component": "data_plane",
                    "event": "connected",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "client_id": self.client_id,
                }
            )
            self._connected.set()
        else:
            log_error_with_context(
                logger,
                message=f"❌ Error conectando Data Plane al broker MQTT: {reason_code}",
                component="data_plane",
                event="connection_failed",
                error_code=f"mqtt_rc_{reason_code}",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback cuando se desconecta del broker"""
        logger.warning(
            "⚠️ Data Plane desconectado",
            extra={
                "component": "data_plane",
                "event": "disconnected",
                "rc": str(reason_code),
            }
        )
        self._connected.clear()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Conecta al broker MQTT (inicia el loop de red de paho).

        La conexión es asíncrona: si el broker no responde dentro de `timeout`
        retorna False, pero paho sigue reintentando en background.
        """
        try:
            logger.info(
                "🔌 Conectando Data Plane",
                extra={
                    "component": "data_plane",
                    "event": "connecting",
                    "broker_host": self.broker_host,
                    "broker_port": self.broker_port,
                    "timeout": timeout,
                }
            )
            self.client.connect_async(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self.client.loop_start()
            return self._connected.wait(timeout=timeout)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error conectando Data Plane",
                exception=e,
                component="data_plane",
                event="connection_error",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

    def disconnect(self):
        """Desconecta del broker MQTT"""
        logger.info(
            "🔌 Desconectando Data Plane",
            extra={
                "component": "data_plane",
                "event": "disconnecting",
            }
        )
        self.client.disconnect()
        self.client.loop_stop()
        self._connected.clear()

    def publish(self, topic: str, payload: bytes) -> bool:
        """
        Publica un payload binario.

        Args:
            topic: MQTT topic
            payload: Bytes ya codificados

        Returns:
            True si paho aceptó el mensaje, False si no
        """
        if not self._connected.is_set():
            logger.warning(
                "⚠️ Data Plane no conectado, mensaje descartado",
                extra={
                    "component": "data_plane",
                    "event": "publish_skipped",
                    "reason": "not_connected",
                    "mqtt_topic": topic,
                }
            )
            self._count(success=False)
            return False

        try:
            result = self.client.publish(topic, payload, qos=self.qos, retain=self.retain)
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error en publish",
                exception=e,
                component="data_plane",
                event="publish_exception",
                mqtt_topic=topic,
            )
            self._count(success=False)
            return False

        success = result.rc == mqtt.MQTT_ERR_SUCCESS
        log_mqtt_publish(
            logger,
            topic=topic,
            qos=self.qos,
            payload_size=len(payload),
            success=success,
            error_code=None if success else result.rc,
        )
        self._count(success=success)
        return success

    def _count(self, success: bool):
        with self._lock:
            if success:
                self.messages_published += 1
            else:
                self.publish_failures += 1

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estadísticas del data plane"""
        with self._lock:
            return {
                "messages_published": self.messages_published,
                "publish_failures": self.publish_failures,
                "connected": self._connected.is_set(),
                "broker": f"{self.broker_host}:{self.broker_port}",
            }
