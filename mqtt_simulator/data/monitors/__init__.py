"""
Monitors - herramientas de desarrollo para inspeccionar lo publicado
"""
from .payload_monitor import PayloadMonitor, hexdump

__all__ = ["PayloadMonitor", "hexdump"]
