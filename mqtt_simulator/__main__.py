"""
Entry point for python -m mqtt_simulator
"""
import sys

if __name__ == "__main__":
    from .app import main
    sys.exit(main())
