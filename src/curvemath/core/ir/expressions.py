"""
Expression tree types for curvemath.

A compiled formula is a tree of frozen pydantic models over a single
free variable ``x``.

Supports:
- Arithmetic: +, -, *, / and explicit or implicit multiplication
- Exponentiation: ^ (left-associative), postfix ² and ³
- Signs: unary + and -
- Constants: e, pi
- Single-argument functions: sin, cos, tan, sqrt, abs, log, ln, exp,
  floor, ceil, round
- Sentinels: placeholders for anomalies that evaluate to a fixed value
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Operators, constants and functions
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"


class UnaryOp(StrEnum):
    """Unary operators for expressions."""

    NEG = "-"
    POS = "+"
    SQUARE = "²"
    CUBE = "³"


class ConstantName(StrEnum):
    """Named constants recognised by the parser."""

    E = "e"
    PI = "pi"


CONSTANT_VALUES: dict[ConstantName, float] = {
    ConstantName.E: math.e,
    ConstantName.PI: math.pi,
}


class MathFunction(StrEnum):
    """Built-in single-argument functions."""

    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SQRT = "sqrt"
    ABS = "abs"
    LOG = "log"
    LN = "ln"
    EXP = "exp"
    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"


# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------


class NumberLiteral(BaseModel):
    """A numeric literal such as ``2`` or ``0.5``."""

    value: float = Field(description="The literal value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return repr(self.value)


class VariableRef(BaseModel):
    """The bound variable ``x``."""

    name: str = Field(default="x", description="Variable name")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class Constant(BaseModel):
    """A named constant: ``e`` or ``pi``."""

    name: ConstantName

    model_config = ConfigDict(frozen=True)

    @property
    def value(self) -> float:
        return CONSTANT_VALUES[self.name]

    def __str__(self) -> str:
        return self.name.value


class Sentinel(BaseModel):
    """
    Placeholder for a syntax anomaly.

    Produced for unknown functions, function names without an argument
    and characters that cannot start a factor. Evaluates to ``value``.
    """

    value: float = Field(default=0.0, description="Value produced at evaluation")
    reason: str = Field(default="", description="Why the parser substituted a sentinel")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"<{self.reason or 'sentinel'}>"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr
    implicit: bool = Field(default=False, description="Multiplication by adjacency, e.g. 2x")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.implicit:
            return f"({self.left} {self.right})"
        return f"({self.left} {self.op.value} {self.right})"


class UnaryExpr(BaseModel):
    """Unary operation: sign prefix or ²/³ postfix."""

    op: UnaryOp
    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.op in (UnaryOp.SQUARE, UnaryOp.CUBE):
            return f"{self.operand}{self.op.value}"
        return f"{self.op.value}{self.operand}"


class FuncCall(BaseModel):
    """Function call: name(arg)."""

    func: MathFunction
    arg: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.func.value}({self.arg})"


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

Expr = NumberLiteral | VariableRef | Constant | Sentinel | BinaryExpr | UnaryExpr | FuncCall

# Rebuild models for recursive forward references
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()
FuncCall.model_rebuild()
