"""
Data Plane - MQTT publishing + publish scheduler
"""
from .plane import MQTTDataPlane, Publisher
from .scheduler import PublishScheduler, TickReport

__all__ = ["MQTTDataPlane", "Publisher", "PublishScheduler", "TickReport"]
