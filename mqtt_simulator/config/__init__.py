"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from mqtt_simulator.config import SimulatorConfig
    config = SimulatorConfig.from_yaml("config/mqtt_simulator/config.yaml")
"""
from .schemas import (
    SimulatorConfig,
    MQTTSettings,
    MQTTBrokerSettings,
    MQTTPublishSettings,
    DocumentSettings,
    SchedulerSettings,
    LoggingSettings,
    apply_env_overrides,
)

__all__ = [
    'SimulatorConfig',
    'MQTTSettings',
    'MQTTBrokerSettings',
    'MQTTPublishSettings',
    'DocumentSettings',
    'SchedulerSettings',
    'LoggingSettings',
    'apply_env_overrides',
]
