"""
Recursive descent parser for single-variable formulas.

The scanner is inline: the parser walks the normalized source one
character at a time, so adjacency (``2x``, ``3sin(x)``) can be read as
multiplication without a separate token stream.

Grammar (precedence low to high):
    expression  → term (("+" | "-") term)*
    term        → power (("*" | "/") power | power)*
    power       → factor ("^" factor | "²" | "³")*
    factor      → ("+" | "-") factor
                | number | "x" | "e" | "pi"
                | function "(" expression ")"
                | "(" expression ")"

Exponentiation is left-associative: ``2^3^2`` is ``(2^3)^2``. A sign
binds to its factor only, so ``-x^2`` is ``(-x)^2``.

Parsing never raises. Anomalies become diagnostics and the parser
substitutes a zero sentinel or stops consuming at the failure point.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from curvemath.core.diagnostics import (
    Diagnostic,
    DiagnosticCallback,
    DiagnosticKind,
    report,
)
from curvemath.core.ir.expressions import (
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

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100

_DIGITS = frozenset("0123456789")
_DECIMAL_SEPARATORS = frozenset(".,")
_POWER_SUFFIXES = {"²": UnaryOp.SQUARE, "³": UnaryOp.CUBE}


class _Abort(Exception):
    """Internal: stop parsing, the expression has no usable program."""


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one source string.

    ``tree`` is ``None`` when a fatal anomaly left nothing to evaluate.
    """

    source: str
    tree: Expr | None
    diagnostics: tuple[Diagnostic, ...]

    @property
    def valid(self) -> bool:
        return self.tree is not None


def normalize_source(text: str) -> str:
    """Case-fold and drop all whitespace: ``" Sin( X ) "`` → ``"sin(x)"``."""
    return "".join(text.split()).casefold()


class _Parser:
    """Recursive descent parser over a normalized source string."""

    def __init__(
        self,
        source: str,
        max_depth: int,
        on_diagnostic: DiagnosticCallback | None,
    ) -> None:
        self.source = source
        self.pos = 0
        self.depth = 0
        self.max_depth = max_depth
        self.on_diagnostic = on_diagnostic
        self.diagnostics: list[Diagnostic] = []
        self._stopped_at: int | None = None

    @property
    def current(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return ""

    def peek(self, offset: int = 1) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def advance(self) -> str:
        c = self.current
        self.pos += 1
        return c

    def _report(self, kind: DiagnosticKind, message: str, position: int | None = None) -> None:
        diagnostic = Diagnostic(
            kind=kind,
            message=message,
            position=self.pos if position is None else position,
            source=self.source,
        )
        self.diagnostics.append(diagnostic)
        report(diagnostic, self.on_diagnostic)

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self.depth += 1
        if self.depth > self.max_depth:
            self._report(
                DiagnosticKind.NESTING_TOO_DEEP,
                f"Nesting deeper than {self.max_depth} levels",
            )
            raise _Abort("nesting")
        try:
            yield
        finally:
            self.depth -= 1

    # -- Grammar rules --

    def parse(self) -> Expr:
        expr = self.parse_expression()
        if self.pos < len(self.source) and self.pos != self._stopped_at:
            self._report(
                DiagnosticKind.TRAILING_INPUT,
                f"Unexpected {self.current!r}; ignoring {self.source[self.pos:]!r}",
            )
        return expr

    def parse_expression(self) -> Expr:
        """term (('+' | '-') term)*"""
        left = self.parse_term()
        while self.current in ("+", "-"):
            op = BinaryOp.ADD if self.advance() == "+" else BinaryOp.SUB
            right = self.parse_term()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_term(self) -> Expr:
        """power (('*' | '/') power | power)*"""
        left = self.parse_power()
        while True:
            c = self.current
            if c == "*":
                self.advance()
                left = BinaryExpr(op=BinaryOp.MUL, left=left, right=self.parse_power())
            elif c == "/":
                self.advance()
                left = BinaryExpr(op=BinaryOp.DIV, left=left, right=self.parse_power())
            elif c in _DIGITS or c.isalpha() or c == "(":
                # Implicit multiplication: 2x, 3sin(x), (x+1)(x-1)
                right = self.parse_power()
                left = BinaryExpr(op=BinaryOp.MUL, left=left, right=right, implicit=True)
            else:
                return left

    def parse_power(self) -> Expr:
        """factor ('^' factor | '²' | '³')*"""
        left = self.parse_factor()
        while True:
            c = self.current
            if c in _POWER_SUFFIXES:
                self.advance()
                left = UnaryExpr(op=_POWER_SUFFIXES[c], operand=left)
            elif c == "^":
                self.advance()
                left = BinaryExpr(op=BinaryOp.POW, left=left, right=self.parse_factor())
            else:
                return left

    def parse_factor(self) -> Expr:
        """sign factor | number | 'x' | constant | function call | '(' expression ')'"""
        c = self.current

        if c in ("-", "+"):
            self.advance()
            with self._nested():
                operand = self.parse_factor()
            return UnaryExpr(op=UnaryOp.NEG if c == "-" else UnaryOp.POS, operand=operand)

        if c in _DIGITS:
            return self._parse_number()

        if c == "x":
            self.advance()
            return VariableRef()

        # 'e' only when it cannot be the start of a function name such as exp
        if c == "e" and not self.peek().isalpha():
            self.advance()
            return Constant(name=ConstantName.E)

        if self.source.startswith("pi", self.pos):
            self.pos += 2
            return Constant(name=ConstantName.PI)

        if c.isalpha():
            return self._parse_func_call()

        if c == "(":
            open_pos = self.pos
            self.advance()
            with self._nested():
                expr = self.parse_expression()
            self._close_paren(open_pos)
            return expr

        self._stopped_at = self.pos
        if c == "":
            self._report(DiagnosticKind.UNEXPECTED_END, "Expected a value at end of input")
            return Sentinel(reason="missing operand")
        self._report(DiagnosticKind.UNEXPECTED_CHARACTER, f"Unexpected character {c!r}")
        return Sentinel(reason=f"unexpected {c!r}")

    def _parse_number(self) -> Expr:
        """Digits with '.' or ',' as the decimal separator."""
        start = self.pos
        while self.current in _DIGITS or self.current in _DECIMAL_SEPARATORS:
            self.advance()
        text = self.source[start : self.pos]
        try:
            return NumberLiteral(value=float(text.replace(",", ".")))
        except ValueError:
            pass
        self._report(DiagnosticKind.MALFORMED_NUMBER, f"Malformed number {text!r}", start)
        raise _Abort(text)

    def _parse_func_call(self) -> Expr:
        """name '(' expression ')'"""
        start = self.pos
        while self.current.isalpha():
            self.advance()
        name = self.source[start : self.pos]

        if self.current != "(":
            self._report(
                DiagnosticKind.MISSING_ARGUMENT,
                f"Expected '(' after function {name!r}",
            )
            return Sentinel(reason=f"{name} without argument")

        open_pos = self.pos
        self.advance()
        with self._nested():
            arg = self.parse_expression()
        self._close_paren(open_pos)

        try:
            func = MathFunction(name)
        except ValueError:
            self._report(DiagnosticKind.UNKNOWN_FUNCTION, f"Unknown function {name!r}", start)
            return Sentinel(reason=f"unknown function {name}")
        return FuncCall(func=func, arg=arg)

    def _close_paren(self, open_pos: int) -> None:
        if self.current == ")":
            self.advance()
            return
        self._report(
            DiagnosticKind.UNCLOSED_PAREN,
            f"Missing ')' for '(' at position {open_pos}",
        )


def parse_expr(
    text: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    on_diagnostic: DiagnosticCallback | None = None,
) -> ParseResult:
    """Parse a formula into an expression tree.

    Args:
        text: Formula text, e.g. ``"3sin(x) + x^2"``. Case and whitespace
            are normalized first.
        max_depth: Maximum nesting of parentheses, calls and signs.
        on_diagnostic: Optional callback receiving each anomaly.

    Returns:
        A ParseResult. Never raises for string input.
    """
    source = normalize_source(text)
    parser = _Parser(source, max_depth, on_diagnostic)
    try:
        tree: Expr | None = parser.parse()
    except _Abort:
        tree = None
    except RecursionError:
        # Only reachable when max_depth is configured above the interpreter limit
        logger.debug("Recursion limit hit while parsing %r", source)
        diagnostic = Diagnostic(
            kind=DiagnosticKind.NESTING_TOO_DEEP,
            message="Nesting exceeds the interpreter recursion limit",
            position=parser.pos,
            source=source,
        )
        parser.diagnostics.append(diagnostic)
        report(diagnostic, on_diagnostic)
        tree = None
    return ParseResult(source=source, tree=tree, diagnostics=tuple(parser.diagnostics))
