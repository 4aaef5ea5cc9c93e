"""nusgen - Non-uniform sampling schedule generator."""

__version__ = "1.0.0"

from .errors import (
    ScheduleError,
    GeometryError,
    EquationError,
    EquationCompileError,
    EquationEvaluationError,
    EquationDomainError,
    CalibrationError,
    SamplerExhaustedError,
)
from .grid import GridIndex, UniqueIndexCollection
from .qrng import LowDiscrepancySequence
from .equations import GapEquation, DensityEquation
from .sampling import GapSequenceGenerator, RejectionSampler, JitteredSampler

__all__ = [
    "__version__",
    "ScheduleError",
    "GeometryError",
    "EquationError",
    "EquationCompileError",
    "EquationEvaluationError",
    "EquationDomainError",
    "CalibrationError",
    "SamplerExhaustedError",
    "GridIndex",
    "UniqueIndexCollection",
    "LowDiscrepancySequence",
    "GapEquation",
    "DensityEquation",
    "GapSequenceGenerator",
    "RejectionSampler",
    "JitteredSampler",
]
