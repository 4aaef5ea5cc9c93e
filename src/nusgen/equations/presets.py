"""
Preset gap laws.

Presets are plain Python functions registered under a name and exposed to
the expression interpreter, so a gap equation can be as short as

    sinegap(x, d, O, N, L)

or combine presets with arbitrary arithmetic. All gap laws share the
signature ``(x, d, O, N, L)``:

- x: current sequence term along the line
- d: zero-based axis the line runs along
- O: origin of the line (tuple of floats)
- N: grid sizes (tuple of floats)
- L: scale factor being calibrated

The angular argument ``(x + sum(O)) / sum(N)`` grows from 0 at the grid
origin to 1 at the far corner, so sine-shaped laws produce small gaps near
the origin and large gaps far from it.

A negative result requests a quasirandom Poisson gap instead of a
deterministic one (see GapEquation); ``poisrnd`` encodes a rate that way.
"""

from dataclasses import dataclass
import math
from typing import Callable, Dict, List, Sequence


@dataclass(frozen=True)
class PresetGapLaw:
    """Registered preset: callable plus its human-readable definition."""

    name: str
    expression: str
    description: str
    func: Callable[..., float]


_PRESET_REGISTRY: Dict[str, PresetGapLaw] = {}


def register_preset(name: str, expression: str, description: str = "") -> Callable:
    """
    Decorator registering a preset under ``name``.

    Example:
        >>> @register_preset("constgap", "L", "Constant gap of L")
        ... def constgap(x, d, O, N, L):
        ...     return L
    """

    def _wrap(func: Callable[..., float]) -> Callable[..., float]:
        if name in _PRESET_REGISTRY:
            raise KeyError(f"Preset gap law '{name}' already exists")
        _PRESET_REGISTRY[name] = PresetGapLaw(name, expression, description, func)
        return func

    return _wrap


def get_preset(name: str) -> PresetGapLaw:
    """Look up a registered preset by name."""
    if name not in _PRESET_REGISTRY:
        raise KeyError(
            f"Preset gap law '{name}' not found. Available: {list(_PRESET_REGISTRY)}"
        )
    return _PRESET_REGISTRY[name]


def list_presets() -> List[PresetGapLaw]:
    return list(_PRESET_REGISTRY.values())


def preset_functions() -> Dict[str, Callable[..., float]]:
    """Name -> callable mapping handed to the expression interpreter."""
    return {name: preset.func for name, preset in _PRESET_REGISTRY.items()}


def _angle(x: float, O: Sequence[float], N: Sequence[float]) -> float:
    return (x + sum(O)) / sum(N)


@register_preset(
    "poisrnd",
    "-x - 2.0",
    "Request a quasirandom Poisson gap with rate x",
)
def poisrnd(x: float) -> float:
    return -x - 2.0


@register_preset(
    "sinegap",
    "L * sin((pi / 2) * (x + sum(O)) / sum(N))",
    "Deterministic sine-weighted gaps",
)
def sinegap(x: float, d: int, O: Sequence[float], N: Sequence[float], L: float) -> float:
    return L * math.sin((math.pi / 2) * _angle(x, O, N))


@register_preset(
    "poissongap",
    "poisrnd(L * sin((pi / 2) * (x + sum(O)) / sum(N)))",
    "Quasirandom Poisson gaps with a sine-weighted rate",
)
def poissongap(x: float, d: int, O: Sequence[float], N: Sequence[float], L: float) -> float:
    return poisrnd(sinegap(x, d, O, N, L))


@register_preset(
    "sineburst",
    "L * sin((pi / 2) * (x + sum(O)) / sum(N)) * sin((pi / 4) * N[d] * (x + sum(O)) / sum(N)) ** 2",
    "Sine-weighted gaps modulated into bursts along each line",
)
def sineburst(x: float, d: int, O: Sequence[float], N: Sequence[float], L: float) -> float:
    theta = _angle(x, O, N)
    return L * math.sin((math.pi / 2) * theta) * math.sin((math.pi / 4) * N[int(d)] * theta) ** 2
