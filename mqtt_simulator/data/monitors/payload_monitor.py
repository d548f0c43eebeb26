#!/usr/bin/env python3
"""
Monitor de payloads MQTT
========================

Escucha los topics publicados por el simulador y muestra los bytes recibidos
(hex dump), para verificar width/endianness/encoding a mano.

Uso:
    python -m mqtt_simulator.data.monitors
    python -m mqtt_simulator.data.monitors --broker 192.168.1.100 --topic 'sensors/#'
    python -m mqtt_simulator.data.monitors --limit 10
"""
import argparse
import signal
import sys
from collections import defaultdict
from datetime import datetime
from threading import Event, Lock
from typing import Optional

import paho.mqtt.client as mqtt


def hexdump(payload: bytes, width: int = 16) -> str:
    """
    Formatea bytes como hex dump (offset, hex, ascii).

    Args:
        payload: Bytes a formatear
        width: Bytes por línea

    Returns:
        Texto multilínea ("" para payload vacío)
    """
    lines = []
    for offset in range(0, len(payload), width):
        chunk = payload[offset:offset + width]
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"  {offset:04x}  {hex_part:<{width * 3 - 1}}  {ascii_part}")
    return "\n".join(lines)


class PayloadMonitor:
    """Monitor de payloads binarios"""

    def __init__(
        self,
        broker: str,
        port: int,
        topic: str,
        limit: Optional[int] = None,
    ):
        self.broker = broker
        self.port = port
        self.topic = topic
        self.limit = limit

        self.message_count = 0
        self.topic_counts = defaultdict(int)
        self.lock = Lock()
        self.done = Event()

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id="payload_monitor",
            protocol=mqtt.MQTTv5,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión"""
        if reason_code == 0:
            print(f"✅ Conectado a {self.broker}:{self.port}")
            self.client.subscribe(self.topic, qos=0)
            print(f"📡 Escuchando: {self.topic}")
            print("\n" + "=" * 70)
            print("🎧 Monitor activo - Presiona Ctrl+C para salir")
            print("=" * 70 + "\n")
        else:
            print(f"❌ Error conectando: {reason_code}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión"""
        print(f"\n⚠️ Desconectado (rc={reason_code})")

    def _on_message(self, client, userdata, msg):
        """Callback cuando recibe un mensaje"""
        with self.lock:
            self.message_count += 1
            self.topic_counts[msg.topic] += 1
            count = self.message_count

        now = datetime.now().strftime("%H:%M:%S")
        print(f"[{now}] 📦 {msg.topic} ({len(msg.payload)} bytes)")
        if msg.payload:
            print(hexdump(msg.payload))
        print()

        if self.limit is not None and count >= self.limit:
            self.done.set()

    def run(self):
        """Inicia el monitor"""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        print(f"🔌 Conectando a {self.broker}:{self.port}...")
        try:
            self.client.connect(self.broker, self.port, keepalive=60)
            self.client.loop_start()
        except Exception as e:
            print(f"❌ Error conectando: {e}")
            return False

        while not self.done.wait(timeout=1.0):
            pass

        self.stop()
        return True

    def _signal_handler(self, signum, frame):
        """Handler para señales"""
        print("\n\n⚠️ Deteniendo monitor...")
        self.done.set()

    def stop(self):
        """Detiene el monitor y muestra estadísticas"""
        self.client.loop_stop()
        self.client.disconnect()

        print("\n" + "=" * 70)
        print("📊 ESTADÍSTICAS")
        print("=" * 70)
        print(f"Mensajes recibidos: {self.message_count}")

        if self.topic_counts:
            print("\nMensajes por topic:")
            for topic, count in sorted(
                self.topic_counts.items(),
                key=lambda x: x[1],
                reverse=True
            ):
                print(f"  {topic}: {count}")

        print("=" * 70)
        print("👋 Monitor detenido")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Monitor de payloads binarios publicados por el simulador"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--topic",
        default="#",
        help="Topic filter (default: #)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Salir después de N mensajes"
    )

    args = parser.parse_args(argv)

    monitor = PayloadMonitor(
        broker=args.broker,
        port=args.port,
        topic=args.topic,
        limit=args.limit,
    )

    sys.exit(0 if monitor.run() else 1)


if __name__ == "__main__":
    main()
