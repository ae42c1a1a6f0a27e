"""
curvemath intermediate representation.

Expression tree types are re-exported from this package.
"""

from .expressions import (
    CONSTANT_VALUES,
    BinaryExpr,
    BinaryOp,
    Constant,
    ConstantName,
    Expr,
    FuncCall,
    MathFunction,
    NumberLiteral,
    Sentinel,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)

__all__ = [
    "CONSTANT_VALUES",
    "BinaryExpr",
    "BinaryOp",
    "Constant",
    "ConstantName",
    "Expr",
    "FuncCall",
    "MathFunction",
    "NumberLiteral",
    "Sentinel",
    "UnaryExpr",
    "UnaryOp",
    "VariableRef",
]
