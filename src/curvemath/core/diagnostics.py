"""
Structured diagnostics for expression compilation.

Syntax anomalies never interrupt compilation. Each one becomes a
``Diagnostic`` that is logged, handed to an optional callback, and
kept on the compiled expression for later inspection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("curvemath.core.expression_lang")


class DiagnosticKind(StrEnum):
    """Kinds of syntax anomaly the parser can report."""

    UNEXPECTED_CHARACTER = "unexpected_character"
    UNEXPECTED_END = "unexpected_end"
    UNKNOWN_FUNCTION = "unknown_function"
    MISSING_ARGUMENT = "missing_argument"
    UNCLOSED_PAREN = "unclosed_paren"
    TRAILING_INPUT = "trailing_input"
    MALFORMED_NUMBER = "malformed_number"
    NESTING_TOO_DEEP = "nesting_too_deep"


# Kinds after which the expression has no usable program at all.
FATAL_KINDS = frozenset({DiagnosticKind.MALFORMED_NUMBER, DiagnosticKind.NESTING_TOO_DEEP})


class Diagnostic(BaseModel):
    """A single anomaly found while compiling an expression."""

    kind: DiagnosticKind
    message: str = Field(description="Human-readable description")
    position: int = Field(description="Offset into the normalized source")
    source: str = Field(description="Normalized expression source")

    model_config = ConfigDict(frozen=True)

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_KINDS

    def __str__(self) -> str:
        return f"{self.kind.value} at {self.position}: {self.message}"


DiagnosticCallback = Callable[[Diagnostic], None]


def report(diagnostic: Diagnostic, callback: DiagnosticCallback | None = None) -> None:
    """Log a diagnostic and forward it to the caller's callback.

    A callback that raises is logged and otherwise ignored, so a faulty
    listener cannot abort compilation.
    """
    logger.warning("Expression %r: %s", diagnostic.source, diagnostic)
    if callback is None:
        return
    try:
        callback(diagnostic)
    except Exception:
        logger.exception("Diagnostic callback failed for %r", diagnostic.source)
