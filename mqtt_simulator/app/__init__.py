"""
App - builder + controller (lifecycle) + CLI
"""
from .builder import SimulatorBuilder
from .controller import SimulatorController, build_parser, load_config, main

__all__ = ["SimulatorBuilder", "SimulatorController", "build_parser", "load_config", "main"]
