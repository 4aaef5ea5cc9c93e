"""Configuration system for nusgen."""

from .schema import (
    ScheduleConfig,
    GridConfig,
    GapConfig,
    RejectionConfig,
    JitterConfig,
    SequenceConfig,
    OutputConfig,
    LoggingConfig,
    MetadataConfig,
)
from .loader import (
    load_yaml,
    resolve_param,
    substitute_params,
    load_config,
)

__all__ = [
    "ScheduleConfig",
    "GridConfig",
    "GapConfig",
    "RejectionConfig",
    "JitterConfig",
    "SequenceConfig",
    "OutputConfig",
    "LoggingConfig",
    "MetadataConfig",
    "load_yaml",
    "resolve_param",
    "substitute_params",
    "load_config",
]
