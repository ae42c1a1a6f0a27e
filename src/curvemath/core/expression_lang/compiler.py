"""
Lowering of expression trees into flat stack programs.

A program is a tuple of ``(Opcode, operand)`` instructions in postfix
order. Running it needs no recursion and no cursor, so one program can
be executed concurrently from any number of threads.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import IntEnum
from typing import Any

import numpy as np

from curvemath.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    Constant,
    Expr,
    FuncCall,
    NumberLiteral,
    Sentinel,
    UnaryExpr,
    UnaryOp,
    VariableRef,
)


class Opcode(IntEnum):
    """Stack machine instructions."""

    PUSH = 0
    LOAD_X = 1
    ADD = 2
    SUB = 3
    MUL = 4
    DIV = 5
    POW = 6
    NEG = 7
    SQUARE = 8
    CUBE = 9
    CALL = 10


Instruction = tuple[Opcode, Any]
Program = tuple[Instruction, ...]

_BINARY_OPCODES: dict[BinaryOp, Opcode] = {
    BinaryOp.ADD: Opcode.ADD,
    BinaryOp.SUB: Opcode.SUB,
    BinaryOp.MUL: Opcode.MUL,
    BinaryOp.DIV: Opcode.DIV,
    BinaryOp.POW: Opcode.POW,
}

_UNARY_OPCODES: dict[UnaryOp, Opcode] = {
    UnaryOp.NEG: Opcode.NEG,
    UnaryOp.SQUARE: Opcode.SQUARE,
    UnaryOp.CUBE: Opcode.CUBE,
}


def walk(tree: Expr) -> Iterator[Expr]:
    """Yield every node of the tree, parents before children."""
    pending: list[Expr] = [tree]
    while pending:
        node = pending.pop()
        yield node
        if isinstance(node, BinaryExpr):
            pending.append(node.right)
            pending.append(node.left)
        elif isinstance(node, UnaryExpr):
            pending.append(node.operand)
        elif isinstance(node, FuncCall):
            pending.append(node.arg)


def references_variable(tree: Expr) -> bool:
    """True when ``x`` appears anywhere in the tree."""
    return any(isinstance(node, VariableRef) for node in walk(tree))


def _is_variable_power(node: Expr) -> bool:
    """True for ``x``, ``-x``, ``x^n``, ``x²`` and similar: a power whose base is ``x``."""
    while True:
        if isinstance(node, VariableRef):
            return True
        if isinstance(node, UnaryExpr):
            node = node.operand
        elif isinstance(node, BinaryExpr) and node.op == BinaryOp.POW:
            node = node.left
        else:
            return False


def divides_by_variable(tree: Expr) -> bool:
    """True when some divisor is a power of ``x`` (``1/x``, ``2/x^2``, ``1/-x``).

    Divisors that merely contain ``x``, such as ``1/(x-1)``, do not
    count: they are not singular at ``x = 0``.
    """
    return any(
        isinstance(node, BinaryExpr) and node.op == BinaryOp.DIV and _is_variable_power(node.right)
        for node in walk(tree)
    )
