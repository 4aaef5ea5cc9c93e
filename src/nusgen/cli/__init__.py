"""
nusgen CLI package.

Provides modular command implementations for the nusgen CLI.
Commands use the Command pattern for clean separation and testability.
"""

from .base import CLICommand, ConfigurableCommand
from .generate import GenerateCommand
from .validate import ValidateCommand
from .presets import PresetsCommand
from .main import create_parser, main

__all__ = [
    "CLICommand",
    "ConfigurableCommand",
    "GenerateCommand",
    "ValidateCommand",
    "PresetsCommand",
    "create_parser",
    "main",
]
