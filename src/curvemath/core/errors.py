"""
Error types for curvemath configuration, sampling and strict checking.

The expression evaluator itself never raises: syntax anomalies are
reported as diagnostics and numeric anomalies as NaN/inf. These
exceptions cover the surfaces around it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from curvemath.core.diagnostics import Diagnostic


class CurvemathError(Exception):
    """Base exception for all curvemath errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ConfigError(CurvemathError):
    """
    Raised when curvemath.toml cannot be read or validated.

    Examples:
    - Malformed TOML
    - Unknown sqrt domain
    - Non-positive resolution
    """

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class SamplingError(CurvemathError, ValueError):
    """
    Raised when sampling arguments describe no usable domain.

    Examples:
    - resolution < 1
    - LUT size < 2
    - non-finite range bounds
    """

    pass


class ExpressionSyntaxError(CurvemathError):
    """
    Raised on request when a compiled expression carries diagnostics.

    Compilation itself never raises this; callers opt in through
    ``CompiledExpression.raise_for_diagnostics()``.
    """

    def __init__(self, diagnostics: tuple[Diagnostic, ...]):
        self.diagnostics = diagnostics
        first = diagnostics[0]
        context = ErrorContext(source=first.source, position=first.position)
        summary = first.message
        if len(diagnostics) > 1:
            summary += f" (+{len(diagnostics) - 1} more)"
        super().__init__(summary, context)


@dataclass
class ErrorContext:
    """
    Location of an anomaly inside a normalized expression source.

    Attributes:
        source: Normalized expression text
        position: Character offset (0-indexed)
    """

    source: str
    position: int

    def format(self) -> str:
        """
        Format as the source line with a caret under the position.

        Returns:
            Two lines, e.g. ``"sin(x"`` and ``"     ^"``
        """
        column = min(max(self.position, 0), len(self.source))
        return f"{self.source}\n{' ' * column}^"
