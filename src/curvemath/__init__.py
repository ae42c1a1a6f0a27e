"""
curvemath - runtime formulas in x for procedural curves and look-up tables.

Compile a formula once, then evaluate it as often as needed:

    from curvemath import compile, evaluate

    expr = compile("3sin(x) + x^2")
    evaluate(expr, 0.5)

Syntax problems never raise; they are reported as diagnostics. Numeric
problems (division by zero, log of a non-positive number) show up as
NaN or infinity in the result.
"""

from __future__ import annotations

from ._version import get_version
from .composer import EquationComposer
from .core.diagnostics import Diagnostic, DiagnosticKind
from .core.errors import ConfigError, CurvemathError, ExpressionSyntaxError, SamplingError
from .core.expression_lang import (
    ABSOLUTE_SQRT,
    STRICT,
    ClampOutput,
    CompiledExpression,
    EvaluationPolicy,
    NearZeroGuard,
    OutputStrategy,
    SqrtDomain,
    compile,
    compile_expression,
    curve_policy,
    evaluate,
    evaluate_many,
    evaluate_source,
    mesh_policy,
    shader_policy,
)
from .occupancy import OccupancyTracker

__version__ = get_version()

__all__ = [
    "__version__",
    "ABSOLUTE_SQRT",
    "STRICT",
    "ClampOutput",
    "CompiledExpression",
    "ConfigError",
    "CurvemathError",
    "Diagnostic",
    "DiagnosticKind",
    "EquationComposer",
    "EvaluationPolicy",
    "ExpressionSyntaxError",
    "NearZeroGuard",
    "OccupancyTracker",
    "OutputStrategy",
    "SamplingError",
    "SqrtDomain",
    "compile",
    "compile_expression",
    "curve_policy",
    "evaluate",
    "evaluate_many",
    "evaluate_source",
    "mesh_policy",
    "shader_policy",
]
