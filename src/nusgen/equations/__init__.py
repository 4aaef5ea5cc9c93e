"""Equation layer: sandboxed expressions, preset gap laws and evaluators."""

from .presets import (
    PresetGapLaw,
    register_preset,
    get_preset,
    list_presets,
    preset_functions,
)
from .expression import Expression
from .evaluator import GapEquation, DensityEquation

__all__ = [
    "Expression",
    "GapEquation",
    "DensityEquation",
    "PresetGapLaw",
    "register_preset",
    "get_preset",
    "list_presets",
    "preset_functions",
]
