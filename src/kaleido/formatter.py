"""AST-walking pretty-printer for Kaleidoscope source code.

Emits canonical source text with minimal parentheses. Every top-level unit
is terminated with ``;`` so that a following parenthesized expression can
never be read back as a call on the previous unit's trailing identifier.
"""

from __future__ import annotations

from collections.abc import Iterable

from kaleido.ast_nodes import (
    BinaryExpr,
    CallExpr,
    Expr,
    Function,
    NodeVisitor,
    NumberExpr,
    Prototype,
    TopLevel,
    VariableExpr,
)
from kaleido.precedence import DEFAULT_PRECEDENCE, PrecedenceTable


def format_number(value: float) -> str:
    """Render a float so that the lexer reads back the same value."""
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


class KaleidoFormatter(NodeVisitor[str]):
    """Format parsed Kaleidoscope nodes back to canonical source text."""

    def __init__(self, precedence: PrecedenceTable = DEFAULT_PRECEDENCE) -> None:
        self.precedence = precedence

    # ── Public API ─────────────────────────────────────────────

    def format_unit(self, unit: TopLevel) -> str:
        if isinstance(unit, Prototype):
            return f"extern {self.visit(unit)};"
        return f"{self.visit(unit)};"

    def format_units(self, units: Iterable[TopLevel]) -> str:
        lines = [self.format_unit(u) for u in units]
        return "\n".join(lines) + "\n" if lines else ""

    # ── Node handlers ──────────────────────────────────────────

    def visit_number(self, node: NumberExpr) -> str:
        return format_number(node.value)

    def visit_variable(self, node: VariableExpr) -> str:
        return node.name

    def visit_binary(self, node: BinaryExpr) -> str:
        return self._format_binary(node, 0)

    def visit_call(self, node: CallExpr) -> str:
        args = ", ".join(self.visit(a) for a in node.args)
        return f"{node.callee}({args})"

    def visit_prototype(self, node: Prototype) -> str:
        return f"{node.name}({' '.join(node.params)})"

    def visit_function(self, node: Function) -> str:
        body = self.visit(node.body)
        if node.is_anonymous:
            return body
        return f"def {self.visit(node.prototype)} {body}"

    # ── Expressions ────────────────────────────────────────────

    def _format_expr(self, expr: Expr, parent_prec: int) -> str:
        if isinstance(expr, BinaryExpr):
            return self._format_binary(expr, parent_prec)
        return self.visit(expr)

    def _format_binary(self, expr: BinaryExpr, parent_prec: int) -> str:
        prec = max(self.precedence.precedence(expr.op), 0)
        left = self._format_expr(expr.left, prec)
        # Equal precedence on the right needs parentheses: operators associate left.
        right = self._format_expr(expr.right, prec + 1)
        result = f"{left} {expr.op} {right}"
        if prec < parent_prec:
            return f"({result})"
        return result
