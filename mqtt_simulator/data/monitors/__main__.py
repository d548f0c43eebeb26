"""
Entry point for monitors
Usage:
    python -m mqtt_simulator.data.monitors [--broker HOST] [--topic FILTER]
"""
from .payload_monitor import main

if __name__ == "__main__":
    main()
