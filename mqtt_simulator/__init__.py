"""
MQTT Simulator - Hot-reloadable MQTT payload publisher
======================================================

Publica periódicamente, vía MQTT, los payloads binarios descritos en un
documento JSON/YAML y recarga el documento cuando cambia en disco.

Public API:
- SimulatorConfig: Configuración del sistema
- SimulatorController: Controlador principal
- TopicRegistry / ReloadController: Estado recargable
- MQTTDataPlane / PublishScheduler: Publicación periódica
- parse_document / encode: Modelo de valores y encoding binario

Usage:
    # CLI
    mqtt-simulator data.json --host localhost -p 1883 -t 1000
    python -m mqtt_simulator data.json

    # Or programmatically
    from mqtt_simulator import SimulatorConfig, SimulatorController

    config = SimulatorConfig().with_overrides(document={"path": "data.json"})
    SimulatorController(config).run()
"""

__version__ = "1.0.0"

from .config import SimulatorConfig
from .app import SimulatorController, main
from .data import MQTTDataPlane, PublishScheduler
from .payload import encode, parse_document, parse_value
from .topics import ReloadController, TopicRegistry

__all__ = [
    # Config
    "SimulatorConfig",
    # App
    "SimulatorController",
    "main",
    # Topics
    "TopicRegistry",
    "ReloadController",
    # Data Plane
    "MQTTDataPlane",
    "PublishScheduler",
    # Payload
    "parse_document",
    "parse_value",
    "encode",
]
