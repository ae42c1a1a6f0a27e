"""
curvemath configuration.

Parses curvemath.toml into typed settings for the evaluator, the
samplers and the look-up table builder:

    [evaluator]
    sqrt_domain = "strict"
    invalid_value = "nan"
    max_depth = 100

    [sampling]
    x_min = -10.0
    x_max = 10.0
    resolution = 100
    max_segment_length = 1.0
    max_draw_segment_length = 10.0
    max_subdivisions = 64

    [lut]
    size = 8192
    domain = 30.0
"""

from __future__ import annotations

import logging
import math
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from curvemath.core.errors import ConfigError
from curvemath.core.expression_lang import (
    DEFAULT_MAX_DEPTH,
    EvaluationPolicy,
    SqrtDomain,
)
from curvemath.sampling import DEFAULT_LUT_DOMAIN, DEFAULT_LUT_SIZE, MAX_SUBDIVISIONS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "curvemath.toml"


class EvaluatorConfig(BaseModel):
    """Evaluator settings."""

    model_config = ConfigDict(extra="forbid")

    sqrt_domain: SqrtDomain = SqrtDomain.STRICT
    invalid_value: float = math.nan
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)

    @field_validator("invalid_value", mode="before")
    @classmethod
    def _parse_invalid_value(cls, value: Any) -> Any:
        # TOML has nan/inf literals, but the string form is accepted too
        if isinstance(value, str):
            return float(value)
        return value


class SamplingConfig(BaseModel):
    """Uniform sampling and segmentation settings."""

    model_config = ConfigDict(extra="forbid")

    x_min: float = -10.0
    x_max: float = 10.0
    resolution: int = Field(default=100, ge=1)
    max_segment_length: float = Field(default=1.0, gt=0)
    max_draw_segment_length: float = Field(default=10.0, gt=0)
    max_subdivisions: int = Field(default=MAX_SUBDIVISIONS, ge=1)


class LutConfig(BaseModel):
    """Look-up table settings."""

    model_config = ConfigDict(extra="forbid")

    size: int = Field(default=DEFAULT_LUT_SIZE, ge=2)
    domain: float = Field(default=DEFAULT_LUT_DOMAIN, gt=0)
    fill: float = 0.0


class CurvemathConfig(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="forbid")

    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    lut: LutConfig = Field(default_factory=LutConfig)

    def policy(self, name: str = "configured") -> EvaluationPolicy:
        """Evaluation policy described by the [evaluator] section."""
        return EvaluationPolicy(
            name=name,
            sqrt_domain=self.evaluator.sqrt_domain,
            invalid_value=self.evaluator.invalid_value,
        )


def load_config(toml_path: Path | None = None) -> CurvemathConfig:
    """
    Load configuration from curvemath.toml.

    Args:
        toml_path: Path to the file. Defaults to ./curvemath.toml.

    Returns:
        CurvemathConfig with parsed values, or defaults when the file
        does not exist.

    Raises:
        ConfigError: If the file is not valid TOML or has invalid values.
    """
    path = toml_path or Path.cwd() / CONFIG_FILENAME
    if not path.exists():
        logger.debug("No config at %s, using defaults", path)
        return CurvemathConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config: {e}", path) from e

    try:
        return CurvemathConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", path) from e
