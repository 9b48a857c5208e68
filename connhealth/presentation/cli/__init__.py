"""Presentation CLI exports."""
from .health_command import HealthCommand, build_parser, run

__all__ = [
    "HealthCommand",
    "build_parser",
    "run",
]
