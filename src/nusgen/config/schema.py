"""
Configuration schemas for nusgen using Pydantic.

Provides type-safe, validated configuration models for every stage of
schedule generation:
- Grid geometry and target density
- Generator method and its tuning knobs
- Low-discrepancy sequence settings
- Output and logging

Design principles:
- DRY: Grid validation lives in one place and is reused by the root model
- Modular: Each generator has its own config block
- Fail early: Equations are compiled while the config is validated
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from pathlib import Path

from ..equations.evaluator import DENSITY_NAMES, GAP_NAMES
from ..equations.expression import Expression
from ..errors import EquationCompileError
from ..grid.index import round_half_away


# =============================================================================
# Grid Configuration
# =============================================================================


class GridConfig(BaseModel):
    """Grid geometry and target global density."""

    sizes: list[int]
    density: float = Field(gt=0, lt=1)

    @field_validator('sizes')
    @classmethod
    def validate_sizes(cls, v: list[int]) -> list[int]:
        if not 1 <= len(v) <= 3:
            raise ValueError(f"Grid must have 1 to 3 axes, got {len(v)}")
        for axis, size in enumerate(v):
            if size < 1:
                raise ValueError(f"Invalid N{axis + 1} grid size: {size}")
        return v

    @property
    def total_points(self) -> int:
        total = 1
        for size in self.sizes:
            total *= size
        return total

    @property
    def target_count(self) -> int:
        return round_half_away(self.density * self.total_points)


# =============================================================================
# Generator Configuration
# =============================================================================


class GapConfig(BaseModel):
    """Gap sequencing calibration settings."""

    max_iterations: int = Field(default=100, ge=1)
    epsilon: float = Field(default=0.005, gt=0, lt=1)
    gain: float = Field(default=0.5, gt=0)


class RejectionConfig(BaseModel):
    """Rejection sampling settings."""

    max_draws: Optional[int] = Field(default=None, ge=1)


class JitterConfig(BaseModel):
    """Jittered-region sampling settings."""

    burn_in: int = Field(default=100, ge=0)


class SequenceConfig(BaseModel):
    """Low-discrepancy sequence settings."""

    capacity: int = Field(default=1000, ge=1)


# =============================================================================
# Output and Logging Configuration
# =============================================================================


class OutputConfig(BaseModel):
    """Schedule output configuration."""

    path: Optional[Path] = None  # stdout when absent
    format: Literal["coordinates", "indices"] = "coordinates"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["structured", "plain"] = "plain"


# =============================================================================
# Root Configuration
# =============================================================================


class MetadataConfig(BaseModel):
    """Schedule metadata."""

    name: str = ""
    description: str = ""
    author: str = ""
    created: str = ""


class ScheduleConfig(BaseModel):
    """
    Root configuration model for nusgen.

    Validates and provides type-safe access to:
    - Grid and density
    - Generator method and equation
    - Per-method settings
    - Output and logging

    Example:
        ```python
        config = load_config(Path("configs/gap_2d.yaml"))
        print(f"Target points: {config.grid.target_count}")
        ```
    """

    version: str = "1.0"
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    method: Literal["gap", "rejection", "jitter"]
    equation: str = Field(min_length=1)
    grid: GridConfig
    gap: GapConfig = Field(default_factory=GapConfig)
    rejection: RejectionConfig = Field(default_factory=RejectionConfig)
    jitter: JitterConfig = Field(default_factory=JitterConfig)
    sequence: SequenceConfig = Field(default_factory=SequenceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def equation_names(self) -> tuple[str, ...]:
        """Variables the equation may reference for the configured method."""
        return GAP_NAMES if self.method == "gap" else DENSITY_NAMES

    @model_validator(mode='after')
    def validate_target_count(self) -> 'ScheduleConfig':
        if self.grid.target_count < 1:
            raise ValueError(
                f"Density {self.grid.density} on a {self.grid.total_points}-point "
                f"grid targets zero samples"
            )
        return self

    @model_validator(mode='after')
    def validate_equation(self) -> 'ScheduleConfig':
        try:
            Expression(self.equation, self.equation_names)
        except EquationCompileError as e:
            raise ValueError(str(e))
        return self
