"""
YAML configuration loader for nusgen.

Schedule configs may leave values open with ``${name}`` placeholders, for
example a density chosen per experiment:

    grid:
      sizes: [256]
      density: ${density}
    equation: "exp(-x[0] / ${decay})"

A placeholder is resolved from the runtime parameters (``--param
name=value`` on the command line) and then from the environment. Values
that arrive as text are read as YAML scalars, so ``density=0.125`` gives a
float and ``sizes=[64,64]`` a list. A placeholder that fills a whole value
takes the resolved value itself; one embedded in a longer string, such as
an equation, is spliced in as text.
"""

import logging
import os
from pathlib import Path
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError
import yaml

from .schema import ScheduleConfig

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{(\w+)\}")


def resolve_param(name: str, params: Dict[str, Any]) -> Any:
    """
    Value of one placeholder.

    Raises:
        ValueError: If ``name`` is neither a runtime parameter nor set in
            the environment
    """
    if name in params:
        value = params[name]
        source = "runtime parameters"
    else:
        value = os.getenv(name)
        source = "environment"
        if value is None:
            raise ValueError(
                f"Missing parameter: {name}. Pass --param {name}=VALUE or set "
                f"${name} in the environment (runtime parameters: {sorted(params)})"
            )

    if isinstance(value, str) and value.strip():
        value = yaml.safe_load(value)
    logger.debug("Resolved ${%s} = %r from %s", name, value, source)
    return value


def substitute_params(obj: Any, params: Dict[str, Any]) -> Any:
    """
    Recursively resolve ``${name}`` placeholders.

    Example:
        >>> raw = {"grid": {"sizes": ["${n1}", 64], "density": "${d}"}}
        >>> substitute_params(raw, {"n1": "128", "d": 0.25})
        {'grid': {'sizes': [128, 64], 'density': 0.25}}
        >>> substitute_params("exp(-x[0] / ${w})", {"w": 8})
        'exp(-x[0] / 8)'
    """
    if isinstance(obj, dict):
        return {k: substitute_params(v, params) for k, v in obj.items()}
    if isinstance(obj, list):
        return [substitute_params(item, params) for item in obj]
    if not isinstance(obj, str):
        return obj

    whole = PLACEHOLDER.fullmatch(obj)
    if whole:
        return resolve_param(whole.group(1), params)
    return PLACEHOLDER.sub(lambda m: str(resolve_param(m.group(1), params)), obj)


def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load a YAML mapping.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If YAML is malformed or not a mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration must be a YAML dict, got {type(raw).__name__}")

    return raw


def load_config(path: Path, runtime_params: Optional[Dict[str, Any]] = None) -> ScheduleConfig:
    """
    Load, resolve and validate a schedule configuration.

    Args:
        path: Path to YAML configuration file
        runtime_params: Values for ``${name}`` placeholders
                       (e.g., {"density": "0.2"})

    Returns:
        Validated ScheduleConfig; the equation is already compiled against
        the method's variables

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is malformed, a placeholder is unresolved, or
            validation fails

    Example:
        ```python
        config = load_config(Path("configs/rejection_1d.yaml"), {"density": "0.1"})
        ```
    """
    raw = load_yaml(path)

    # always run so the environment can fill placeholders
    raw = substitute_params(raw, runtime_params or {})

    try:
        return ScheduleConfig(**raw)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed for {path}:\n{e}") from e
