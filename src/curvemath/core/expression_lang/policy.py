"""
Evaluation policies.

Call sites disagree on a few numeric details: whether ``sqrt`` of a
negative number is NaN or ``sqrt(|a|)``, whether values near ``x = 0``
are replaced, and whether results are clamped. Instead of forking the
evaluator, each call site passes an ``EvaluationPolicy`` describing its
choices.

Usage:
    from curvemath import compile, evaluate, curve_policy

    expr = compile("1/x")
    evaluate(expr, 0.0)                          # inf
    evaluate(expr, 0.0, curve_policy(-20, 20))   # -20.0
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from curvemath.core.expression_lang.evaluator import CompiledExpression


class SqrtDomain(StrEnum):
    """How ``sqrt`` treats negative arguments."""

    STRICT = "strict"  # sqrt(-1) is NaN
    ABSOLUTE = "absolute"  # sqrt(-4) is sqrt(4)


class OutputStrategy(ABC):
    """Post-processing applied to evaluated values.

    Strategies receive the inputs and the raw outputs as float64 arrays
    (0-d for scalar evaluation) and return the adjusted outputs.
    """

    def applies_to(self, expression: CompiledExpression) -> bool:
        return True

    @abstractmethod
    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray: ...


@dataclass(frozen=True)
class NearZeroGuard(OutputStrategy):
    """
    Replace results where ``|x| < epsilon``.

    Two forms:
    - ``magnitude``: ``+magnitude`` for ``x >= 0``, ``-magnitude`` otherwise
    - ``below``/``above``: ``above`` for ``x > 0``, ``below`` otherwise

    With ``requires_division`` the guard only applies to expressions
    that divide by a power of ``x``.
    """

    epsilon: float
    magnitude: float | None = None
    below: float | None = None
    above: float | None = None
    requires_division: bool = False

    def __post_init__(self) -> None:
        if self.magnitude is None and (self.below is None or self.above is None):
            raise ValueError("NearZeroGuard needs either magnitude or both below and above")
        if self.magnitude is not None and (self.below is not None or self.above is not None):
            raise ValueError("NearZeroGuard takes magnitude or below/above, not both")

    def applies_to(self, expression: CompiledExpression) -> bool:
        return expression.divides_by_variable or not self.requires_division

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        if self.magnitude is not None:
            replacement = np.where(x >= 0, self.magnitude, -self.magnitude)
        else:
            replacement = np.where(x > 0, self.above, self.below)
        return np.where(np.abs(x) < self.epsilon, replacement, y)


@dataclass(frozen=True)
class ClampOutput(OutputStrategy):
    """
    Clip results into ``[lower, upper]``.

    Infinities are left alone unless ``clamp_infinite`` is set, so
    callers can still detect breaks. NaN is never touched.
    """

    lower: float
    upper: float
    clamp_infinite: bool = False

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(f"ClampOutput lower {self.lower} exceeds upper {self.upper}")

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        clipped = np.clip(y, self.lower, self.upper)
        if self.clamp_infinite:
            return clipped
        return np.where(np.isfinite(y), clipped, y)


class EvaluationPolicy(BaseModel):
    """Numeric choices for one family of call sites."""

    name: str = Field(default="custom", description="Label used in logs and the CLI")
    sqrt_domain: SqrtDomain = SqrtDomain.STRICT
    invalid_value: float = Field(
        default=math.nan, description="Result of expressions that failed to compile"
    )
    strategies: tuple[OutputStrategy, ...] = Field(
        default=(), description="Applied in order after evaluation"
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def with_strategies(self, *strategies: OutputStrategy) -> EvaluationPolicy:
        """Copy of this policy with extra strategies appended."""
        return self.model_copy(update={"strategies": self.strategies + strategies})


STRICT = EvaluationPolicy(name="strict")
ABSOLUTE_SQRT = EvaluationPolicy(name="absolute-sqrt", sqrt_domain=SqrtDomain.ABSOLUTE)

NAMED_POLICIES: dict[str, EvaluationPolicy] = {
    STRICT.name: STRICT,
    ABSOLUTE_SQRT.name: ABSOLUTE_SQRT,
}


def curve_policy(
    y_min: float = -20.0,
    y_max: float = 20.0,
    epsilon: float = 0.001,
) -> EvaluationPolicy:
    """Policy of the curve mesh builders.

    ``sqrt`` takes the absolute value first, results for divisions by
    ``x`` near zero snap to ``y_max``/``y_min``, and everything,
    infinities included, is clamped into ``[y_min, y_max]``.
    """
    return EvaluationPolicy(
        name="curve",
        sqrt_domain=SqrtDomain.ABSOLUTE,
        strategies=(
            NearZeroGuard(epsilon=epsilon, below=y_min, above=y_max, requires_division=True),
            ClampOutput(lower=y_min, upper=y_max, clamp_infinite=True),
        ),
    )


def mesh_policy(z_min: float = -100.0, z_max: float = 100.0) -> EvaluationPolicy:
    """Policy of the function mesh generator: strict math, finite values clamped."""
    return EvaluationPolicy(
        name="mesh",
        strategies=(ClampOutput(lower=z_min, upper=z_max),),
    )


def shader_policy(
    limit: float = 50.0,
    epsilon: float = 0.01,
    magnitude: float = 100.0,
) -> EvaluationPolicy:
    """Policy of the shader look-up table builder.

    Results are clamped to ``[-limit, limit]``; samples with
    ``|x| < epsilon`` are then replaced by ``±magnitude``, unclamped.
    """
    return EvaluationPolicy(
        name="shader",
        strategies=(
            ClampOutput(lower=-limit, upper=limit, clamp_infinite=True),
            NearZeroGuard(epsilon=epsilon, magnitude=magnitude),
        ),
    )
