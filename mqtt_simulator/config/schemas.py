"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Prioridad (menor -> mayor):
1. Defaults de los modelos
2. Settings YAML (--settings)
3. Variables de entorno para credenciales (MQTT_USERNAME / MQTT_PASSWORD)
4. Flags de línea de comandos

Usage:
    config = SimulatorConfig.from_yaml("config/mqtt_simulator/config.yaml")
    config = config.with_overrides(document={"path": "data.json"})
"""
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


# ============================================================================
# MQTT Configuration
# ============================================================================

class MQTTBrokerSettings(BaseModel):
    """MQTT broker connection settings"""
    host: str = Field(
        default="localhost",
        description="MQTT broker hostname"
    )
    port: int = Field(
        default=1883,
        ge=1,
        le=65535,
        description="MQTT broker port"
    )
    client_id: str = Field(
        default="mqtt-simulator",
        min_length=1,
        description="MQTT client identity"
    )
    username: Optional[str] = Field(
        default=None,
        description="MQTT username (optional, from env)"
    )
    password: Optional[str] = Field(
        default=None,
        description="MQTT password (optional, from env)"
    )
    keepalive: int = Field(
        default=60,
        ge=5,
        description="Keep-alive interval in seconds"
    )
    reconnect_delay: int = Field(
        default=3,
        ge=1,
        le=300,
        description="Maximum seconds between reconnection attempts"
    )


class MQTTPublishSettings(BaseModel):
    """How simulated payloads are published"""
    qos: Literal[0, 1, 2] = Field(
        default=1,
        description="QoS for simulated payloads (default: at least once)"
    )
    retain: bool = Field(
        default=False,
        description="Publish with the retain flag"
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for the first connection before starting anyway"
    )


class MQTTSettings(BaseModel):
    """Complete MQTT configuration"""
    broker: MQTTBrokerSettings = Field(default_factory=MQTTBrokerSettings)
    publish: MQTTPublishSettings = Field(default_factory=MQTTPublishSettings)


# ============================================================================
# Document / Scheduler Configuration
# ============================================================================

class DocumentSettings(BaseModel):
    """Simulated data document and hot reload"""
    path: Optional[str] = Field(
        default=None,
        description="Path to the JSON/YAML document describing topics and data"
    )
    poll_interval_ms: int = Field(
        default=100,
        ge=10,
        le=10000,
        description="Milliseconds between document metadata checks"
    )
    debounce_ms: int = Field(
        default=300,
        ge=0,
        le=10000,
        description="Quiet period before a change is reloaded"
    )
    watch: bool = Field(
        default=True,
        description="Reload the document when it changes"
    )

    @field_validator('path')
    @classmethod
    def validate_path_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("document path must not be blank")
        return v


class SchedulerSettings(BaseModel):
    """Publish cadence"""
    send_interval_ms: int = Field(
        default=1000,
        ge=10,
        description="Send interval in milliseconds"
    )


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    paho_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='WARNING',
        description="Paho MQTT library log level"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stdout). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )

    @field_validator('level', 'paho_level', mode='before')
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


# ============================================================================
# Root Configuration
# ============================================================================

def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SimulatorConfig(BaseModel):
    """
    Root configuration with full validation.

    Loads from YAML and validates all settings.
    Environment variables override YAML for sensitive data.
    """
    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    document: DocumentSettings = Field(default_factory=DocumentSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode='after')
    def validate_debounce_vs_poll(self):
        """Debounce shorter than one poll is meaningless; it must be 0 or >= poll interval"""
        doc = self.document
        if 0 < doc.debounce_ms < doc.poll_interval_ms:
            raise ValueError(
                f"document.debounce_ms ({doc.debounce_ms}) must be 0 or >= "
                f"document.poll_interval_ms ({doc.poll_interval_ms})"
            )
        return self

    @classmethod
    def from_yaml(cls, config_path: str) -> 'SimulatorConfig':
        """
        Load and validate configuration from YAML file.

        Args:
            config_path: Path to settings YAML

        Returns:
            Validated SimulatorConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/mqtt_simulator/config.yaml.example"
            )

        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**apply_env_overrides(config_dict))

    def with_overrides(self, **sections: Dict[str, Any]) -> 'SimulatorConfig':
        """
        Returns a validated copy with the given per-section overrides.

        None values are ignored (flag not given on the command line).

        Example:
            config.with_overrides(mqtt={"broker": {"port": 1884}})
        """
        def prune(d: Dict[str, Any]) -> Dict[str, Any]:
            return {
                k: prune(v) if isinstance(v, dict) else v
                for k, v in d.items()
                if v is not None
            }

        merged = _deep_merge(self.model_dump(), prune(sections))
        return type(self)(**merged)

    @property
    def send_interval(self) -> float:
        """Send interval in seconds"""
        return self.scheduler.send_interval_ms / 1000.0


def apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Override MQTT credentials from environment variables (MQTT_USERNAME / MQTT_PASSWORD)."""
    username = os.getenv('MQTT_USERNAME')
    password = os.getenv('MQTT_PASSWORD')
    if not (username or password):
        return config_dict

    broker: Dict[str, Any] = {}
    if username:
        broker['username'] = username
    if password:
        broker['password'] = password
    return _deep_merge(config_dict, {'mqtt': {'broker': broker}})
