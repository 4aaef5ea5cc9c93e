"""
Exception hierarchy for schedule generation.

Every failure raised by nusgen derives from ScheduleError so callers can
catch the whole family at once:

- GeometryError: malformed grid geometry (tuple length mismatch, bad sizes)
- EquationError: anything raised by the equation layer
    - EquationCompileError: expression does not parse or uses a
      disallowed construct
    - EquationEvaluationError: the expression raised while being evaluated
    - EquationDomainError: an input or result lies outside the valid domain
- CalibrationError: gap calibration produced no well-behaved attempt
- SamplerExhaustedError: no grid cell is left to satisfy a draw

Only the gap calibration loop recovers from EquationDomainError. Everything
else propagates to the caller.
"""

from typing import Any, Dict, Optional


class ScheduleError(Exception):
    """Base class for all schedule generation failures."""


class GeometryError(ScheduleError, ValueError):
    """Grid sizes, coordinates or indices have inconsistent shapes."""


class EquationError(ScheduleError):
    """Base class for equation layer failures."""


class EquationCompileError(EquationError):
    """Expression could not be compiled into an evaluable equation."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Cannot compile equation {expression!r}: {reason}")


class EquationEvaluationError(EquationError):
    """
    Expression raised while being evaluated.

    The offending inputs are kept on the exception so the failure can be
    reproduced from the error message alone.
    """

    def __init__(self, call: str, inputs: Dict[str, Any], cause: BaseException):
        self.call = call
        self.inputs = inputs
        self.cause = cause
        args = ", ".join(f"{k}={v!r}" for k, v in inputs.items())
        super().__init__(f"{call}({args}) ==> {type(cause).__name__}: {cause}")


class EquationDomainError(EquationError):
    """
    Equation input or result lies outside the valid domain.

    For gap equations the term computed from the offending input is stored
    in ``term`` (the term is completed before the violation is reported).
    """

    def __init__(self, message: str, term: Optional[float] = None):
        self.term = term
        super().__init__(message)


class CalibrationError(ScheduleError):
    """Gap calibration never produced a well-behaved schedule."""


class SamplerExhaustedError(ScheduleError):
    """A sampler ran out of grid cells (or draws) before reaching its target."""
