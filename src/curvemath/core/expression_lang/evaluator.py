"""
Compiled expressions and their evaluation.

Pure evaluation: no I/O, no side effects, no Python ``eval()``. A
``CompiledExpression`` holds an immutable stack program; every call
gets its own local stack, so one compiled expression can be evaluated
from many threads at once.

All arithmetic goes through numpy float64 ufuncs with floating-point
warnings silenced, which gives IEEE-754 results for domain anomalies:
``1/0`` is ``inf``, ``0/0`` is ``nan``, ``exp(1000)`` is ``inf``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from curvemath.core.diagnostics import Diagnostic, DiagnosticCallback
from curvemath.core.errors import ExpressionSyntaxError
from curvemath.core.expression_lang.compiler import (
    Opcode,
    Program,
    divides_by_variable,
    lower,
    references_variable,
)
from curvemath.core.expression_lang.parser import DEFAULT_MAX_DEPTH, parse_expr
from curvemath.core.expression_lang.policy import STRICT, EvaluationPolicy, SqrtDomain
from curvemath.core.ir.expressions import Expr, MathFunction

logger = logging.getLogger(__name__)


def _log(a: Any) -> Any:
    # Natural log; zero and negative arguments give NaN rather than -inf
    return np.log(np.where(a > 0, a, np.nan))


_FUNCTIONS: dict[MathFunction, Callable[[Any], Any]] = {
    MathFunction.SIN: np.sin,
    MathFunction.COS: np.cos,
    MathFunction.TAN: np.tan,
    MathFunction.ABS: np.abs,
    MathFunction.LOG: _log,
    MathFunction.LN: _log,
    MathFunction.EXP: np.exp,
    MathFunction.FLOOR: np.floor,
    MathFunction.CEIL: np.ceil,
    MathFunction.ROUND: np.rint,  # half to even
}

_BINARY: dict[Opcode, Callable[[Any, Any], Any]] = {
    Opcode.ADD: np.add,
    Opcode.SUB: np.subtract,
    Opcode.MUL: np.multiply,
    Opcode.DIV: np.divide,
    Opcode.POW: np.power,
}


def _run(program: Program, x: Any, sqrt_domain: SqrtDomain) -> Any:
    """Execute a program for a float64 scalar or array ``x``."""
    stack: list[Any] = []
    push = stack.append
    pop = stack.pop

    for opcode, operand in program:
        if opcode is Opcode.PUSH:
            push(operand)
        elif opcode is Opcode.LOAD_X:
            push(x)
        elif opcode is Opcode.CALL:
            arg = pop()
            if operand is MathFunction.SQRT:
                if sqrt_domain is SqrtDomain.ABSOLUTE:
                    arg = np.abs(arg)
                push(np.sqrt(arg))
            else:
                push(_FUNCTIONS[operand](arg))
        elif opcode is Opcode.NEG:
            push(np.negative(pop()))
        elif opcode is Opcode.SQUARE:
            a = pop()
            push(np.multiply(a, a))
        elif opcode is Opcode.CUBE:
            a = pop()
            push(np.multiply(np.multiply(a, a), a))
        else:
            right = pop()
            left = pop()
            push(_BINARY[opcode](left, right))

    return stack[-1]


@dataclass(frozen=True)
class CompiledExpression:
    """
    A formula in ``x`` parsed once and ready for repeated evaluation.

    Attributes:
        source: Normalized source (case-folded, whitespace removed)
        tree: Parsed expression tree, ``None`` if nothing usable was parsed
        program: Postfix stack program lowered from ``tree``
        diagnostics: Anomalies reported while compiling
        references_variable: Whether ``x`` occurs in the formula
        divides_by_variable: Whether some divisor is a power of ``x``
    """

    source: str
    tree: Expr | None
    program: Program = field(repr=False)
    diagnostics: tuple[Diagnostic, ...] = ()
    references_variable: bool = False
    divides_by_variable: bool = False

    @property
    def valid(self) -> bool:
        """False when compilation left no program; evaluation yields the invalid value."""
        return self.tree is not None

    def evaluate(self, x: float, policy: EvaluationPolicy = STRICT) -> float:
        """Evaluate at a single point. Never raises for float input."""
        x_value = np.float64(x)
        with np.errstate(all="ignore"):
            y = self._compute(x_value, policy)
        return float(y)

    def evaluate_many(self, xs: ArrayLike, policy: EvaluationPolicy = STRICT) -> np.ndarray:
        """Evaluate at every point of ``xs`` in one vectorised pass.

        Returns a new float64 array with the shape of ``xs``.
        """
        x_values = np.asarray(xs, dtype=np.float64)
        with np.errstate(all="ignore"):
            y = self._compute(x_values, policy)
        return np.array(np.broadcast_to(y, x_values.shape), dtype=np.float64)

    def __call__(self, x: float, policy: EvaluationPolicy = STRICT) -> float:
        return self.evaluate(x, policy)

    def raise_for_diagnostics(self) -> None:
        """Raise ExpressionSyntaxError if compilation reported anything."""
        if self.diagnostics:
            raise ExpressionSyntaxError(self.diagnostics)

    def _compute(self, x: Any, policy: EvaluationPolicy) -> Any:
        if self.program:
            y = _run(self.program, x, policy.sqrt_domain)
        else:
            y = np.float64(policy.invalid_value)
        for strategy in policy.strategies:
            if strategy.applies_to(self):
                y = strategy(x, y)
        return y


def compile_expression(
    source: str,
    *,
    on_diagnostic: DiagnosticCallback | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CompiledExpression:
    """Compile a formula in ``x``.

    Never raises. Syntax anomalies are logged, passed to
    ``on_diagnostic`` and stored on the result; a formula that cannot
    be compiled at all evaluates to the policy's invalid value.

    Args:
        source: Formula text, e.g. ``"x^2 + 3x"``.
        on_diagnostic: Optional callback receiving each Diagnostic.
        max_depth: Maximum nesting of parentheses, calls and signs.

    Returns:
        The compiled expression.
    """
    result = parse_expr(str(source), max_depth=max_depth, on_diagnostic=on_diagnostic)
    if result.tree is None:
        logger.debug("Expression %r is invalid", result.source)
        return CompiledExpression(
            source=result.source,
            tree=None,
            program=(),
            diagnostics=result.diagnostics,
        )

    program = lower(result.tree)
    logger.debug("Compiled %r into %d instructions", result.source, len(program))
    return CompiledExpression(
        source=result.source,
        tree=result.tree,
        program=program,
        diagnostics=result.diagnostics,
        references_variable=references_variable(result.tree),
        divides_by_variable=divides_by_variable(result.tree),
    )


compile = compile_expression  # noqa: A001


def evaluate(
    compiled: CompiledExpression,
    x: float,
    policy: EvaluationPolicy = STRICT,
) -> float:
    """Evaluate a compiled expression at ``x``."""
    return compiled.evaluate(x, policy)


def evaluate_many(
    compiled: CompiledExpression,
    xs: ArrayLike,
    policy: EvaluationPolicy = STRICT,
) -> np.ndarray:
    """Evaluate a compiled expression at every point of ``xs``."""
    return compiled.evaluate_many(xs, policy)


@lru_cache(maxsize=256)
def _compile_cached(source: str) -> CompiledExpression:
    return compile_expression(source)


def evaluate_source(source: str, x: float, policy: EvaluationPolicy = STRICT) -> float:
    """One-shot evaluation of a formula string.

    Compiled expressions are cached by source, so repeated calls with
    the same text do not re-parse.
    """
    return _compile_cached(source).evaluate(x, policy)
