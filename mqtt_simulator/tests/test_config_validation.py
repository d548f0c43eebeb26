"""
Config Validation Tests
=======================

Tests de validación de configuración con Pydantic.

Invariantes testeadas:
1. Valores por defecto son válidos
2. Validación de rangos (port, qos, intervalos)
3. Validación de relaciones (debounce vs poll interval)
4. Prioridad: YAML < env (credenciales) < CLI
"""
import pytest
from pydantic import ValidationError

from mqtt_simulator.app import build_parser, load_config
from mqtt_simulator.config import (
    DocumentSettings,
    LoggingSettings,
    MQTTBrokerSettings,
    MQTTPublishSettings,
    SchedulerSettings,
    SimulatorConfig,
)


@pytest.fixture(autouse=True)
def no_mqtt_env(monkeypatch):
    monkeypatch.delenv("MQTT_USERNAME", raising=False)
    monkeypatch.delenv("MQTT_PASSWORD", raising=False)


@pytest.mark.unit
class TestDefaults:

    def test_default_values_valid(self):
        """
        Invariante: Valores por defecto deben ser válidos.
        """
        config = SimulatorConfig()

        assert config.mqtt.broker.host == "localhost"
        assert config.mqtt.broker.port == 1883
        assert config.mqtt.broker.client_id == "mqtt-simulator"
        assert config.mqtt.publish.qos == 1
        assert config.scheduler.send_interval_ms == 1000
        assert config.send_interval == 1.0
        assert config.document.path is None
        assert config.document.watch is True


@pytest.mark.unit
class TestRanges:

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            MQTTBrokerSettings(port=port)

    def test_empty_client_id(self):
        with pytest.raises(ValidationError):
            MQTTBrokerSettings(client_id="")

    def test_qos_literal(self):
        assert MQTTPublishSettings(qos=0).qos == 0
        with pytest.raises(ValidationError):
            MQTTPublishSettings(qos=3)

    def test_send_interval_minimum(self):
        with pytest.raises(ValidationError):
            SchedulerSettings(send_interval_ms=0)

    def test_blank_document_path(self):
        with pytest.raises(ValidationError):
            DocumentSettings(path="  ")

    def test_log_level_normalized(self):
        assert LoggingSettings(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")


@pytest.mark.unit
class TestRelations:

    def test_debounce_shorter_than_poll_rejected(self):
        """
        Invariante: debounce debe ser 0 o >= poll_interval_ms.
        """
        with pytest.raises(ValidationError) as exc_info:
            SimulatorConfig(document={"poll_interval_ms": 200, "debounce_ms": 50})
        assert "debounce_ms" in str(exc_info.value)

    def test_debounce_zero_allowed(self):
        config = SimulatorConfig(document={"poll_interval_ms": 200, "debounce_ms": 0})
        assert config.document.debounce_ms == 0


@pytest.mark.unit
class TestLoading:

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "mqtt:\n  broker:\n    host: broker.local\n"
            "scheduler:\n  send_interval_ms: 250\n"
        )
        config = SimulatorConfig.from_yaml(str(path))
        assert config.mqtt.broker.host == "broker.local"
        assert config.mqtt.broker.port == 1883
        assert config.send_interval == 0.25

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert SimulatorConfig.from_yaml(str(path)) == SimulatorConfig()

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SimulatorConfig.from_yaml(str(tmp_path / "missing.yaml"))

    def test_env_overrides_credentials(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("mqtt:\n  broker:\n    username: yaml_user\n")
        monkeypatch.setenv("MQTT_USERNAME", "env_user")
        monkeypatch.setenv("MQTT_PASSWORD", "secret")

        broker = SimulatorConfig.from_yaml(str(path)).mqtt.broker
        assert broker.username == "env_user"
        assert broker.password == "secret"

    def test_with_overrides_ignores_none(self):
        config = SimulatorConfig().with_overrides(
            mqtt={"broker": {"host": None, "port": 1884}},
            document={"path": "data.json"},
        )
        assert config.mqtt.broker.host == "localhost"
        assert config.mqtt.broker.port == 1884
        assert config.document.path == "data.json"

    def test_with_overrides_validates(self):
        with pytest.raises(ValidationError):
            SimulatorConfig().with_overrides(scheduler={"send_interval_ms": -5})


@pytest.mark.unit
class TestCommandLine:

    def test_defaults_from_cli(self):
        config = load_config(build_parser().parse_args(["data.json"]))
        assert config.document.path == "data.json"
        assert config.mqtt.broker.host == "localhost"
        assert config.mqtt.publish.retain is False

    def test_cli_flags(self):
        args = build_parser().parse_args([
            "data.json", "--host", "h", "-p", "1884", "-i", "sim-1",
            "-t", "500", "--qos", "0", "--retain", "--no-watch", "--log-level", "debug",
        ])
        config = load_config(args)

        assert config.mqtt.broker.host == "h"
        assert config.mqtt.broker.port == 1884
        assert config.mqtt.broker.client_id == "sim-1"
        assert config.scheduler.send_interval_ms == 500
        assert config.mqtt.publish.qos == 0
        assert config.mqtt.publish.retain is True
        assert config.document.watch is False
        assert config.logging.level == "DEBUG"

    def test_cli_overrides_settings_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "mqtt:\n  broker:\n    host: from-yaml\n    port: 1999\n"
            "document:\n  path: yaml.json\n"
        )
        args = build_parser().parse_args(["--settings", str(path), "--host", "from-cli"])
        config = load_config(args)

        assert config.mqtt.broker.host == "from-cli"
        assert config.mqtt.broker.port == 1999
        assert config.document.path == "yaml.json"

    def test_invalid_port_from_cli(self):
        with pytest.raises(ValidationError):
            load_config(build_parser().parse_args(["d.json", "-p", "70000"]))
