"""
curvemath expression language.

Parser, compiler and evaluator for single-variable formulas.

Usage:
    from curvemath.core.expression_lang import compile, evaluate

    expr = compile("3sin(x) + x^2")
    result = evaluate(expr, 2.0)
"""

from curvemath.core.expression_lang.evaluator import (
    CompiledExpression,
    compile,
    compile_expression,
    evaluate,
    evaluate_many,
    evaluate_source,
)
from curvemath.core.expression_lang.parser import (
    DEFAULT_MAX_DEPTH,
    ParseResult,
    normalize_source,
    parse_expr,
)
from curvemath.core.expression_lang.policy import (
    ABSOLUTE_SQRT,
    NAMED_POLICIES,
    STRICT,
    ClampOutput,
    EvaluationPolicy,
    NearZeroGuard,
    OutputStrategy,
    SqrtDomain,
    curve_policy,
    mesh_policy,
    shader_policy,
)

__all__ = [
    "ABSOLUTE_SQRT",
    "DEFAULT_MAX_DEPTH",
    "NAMED_POLICIES",
    "STRICT",
    "ClampOutput",
    "CompiledExpression",
    "EvaluationPolicy",
    "NearZeroGuard",
    "OutputStrategy",
    "ParseResult",
    "SqrtDomain",
    "compile",
    "compile_expression",
    "curve_policy",
    "evaluate",
    "evaluate_many",
    "evaluate_source",
    "mesh_policy",
    "normalize_source",
    "parse_expr",
    "shader_policy",
]
