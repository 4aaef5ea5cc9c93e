"""Schedule generators and schedule quality metrics for nusgen."""

from .base import ScheduleGenerator, register, get_generator, available_generators
from .gap import GapSequenceGenerator, CalibrationStep, GridLine, iter_lines
from .rejection import RejectionSampler
from .jitter import JitteredSampler
from .metrics import (
    ScheduleMetrics,
    compute_discrepancy,
    compute_min_spacing,
    compute_density_conformance,
    validate_schedule,
    print_schedule_report,
)

__all__ = [
    "ScheduleGenerator",
    "register",
    "get_generator",
    "available_generators",
    "GapSequenceGenerator",
    "CalibrationStep",
    "GridLine",
    "iter_lines",
    "RejectionSampler",
    "JitteredSampler",
    "ScheduleMetrics",
    "compute_discrepancy",
    "compute_min_spacing",
    "compute_density_conformance",
    "validate_schedule",
    "print_schedule_report",
]
