"""
Equation composition from collected fragments.

Gameplay collects formula fragments one at a time (``"x"``, ``"+1"``,
``"sin(x)"``) and grows a single equation from them:

- the first fragment becomes the equation
- a fragment starting with ``+`` or ``-`` is appended as-is
- any other fragment multiplies the equation so far

    composer = EquationComposer()
    composer.append("x")
    composer.append("+1")
    composer.append("sin(x)")
    composer.equation  # "x+1*sin(x)"
"""

from __future__ import annotations

import logging

from curvemath.core.diagnostics import DiagnosticCallback
from curvemath.core.expression_lang import CompiledExpression, compile_expression

logger = logging.getLogger(__name__)


class EquationComposer:
    """Accumulates fragments into one formula and compiles it on demand."""

    def __init__(self, on_diagnostic: DiagnosticCallback | None = None) -> None:
        self._equation = ""
        self._compiled: CompiledExpression | None = None
        self._on_diagnostic = on_diagnostic

    @property
    def equation(self) -> str:
        return self._equation

    def append(self, fragment: str) -> str:
        """Add a fragment and return the updated equation. Blank fragments are ignored."""
        fragment = fragment.strip()
        if not fragment:
            return self._equation

        if fragment.startswith(("+", "-")):
            self._equation += fragment
        elif not self._equation:
            self._equation = fragment
        else:
            self._equation += "*" + fragment

        self._compiled = None
        logger.debug("Current equation: %s", self._equation)
        return self._equation

    def reset(self) -> None:
        self._equation = ""
        self._compiled = None

    def compile(self) -> CompiledExpression:
        """Compile the current equation, reusing the result until the next change."""
        if self._compiled is None:
            self._compiled = compile_expression(self._equation, on_diagnostic=self._on_diagnostic)
        return self._compiled
