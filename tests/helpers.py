"""Shared test helpers for the Kaleidoscope test suite."""

from __future__ import annotations

from kaleido.ast_nodes import BinaryExpr, CallExpr, Function, NumberExpr, Prototype, VariableExpr
from kaleido.parser import Parser


def shape(node: object) -> object:
    """Reduce a node to nested tuples, dropping spans, for structural asserts.

    Numbers become floats, variables their names, binary operations
    ``(op, left, right)`` and calls ``("call", callee, [args])``.
    """
    if isinstance(node, NumberExpr):
        return node.value
    if isinstance(node, VariableExpr):
        return node.name
    if isinstance(node, BinaryExpr):
        return (node.op, shape(node.left), shape(node.right))
    if isinstance(node, CallExpr):
        return ("call", node.callee, [shape(a) for a in node.args])
    if isinstance(node, Prototype):
        return ("proto", node.name, list(node.params))
    if isinstance(node, Function):
        return ("function", shape(node.prototype), shape(node.body))
    raise TypeError(f"not an AST node: {node!r}")


def parse_expr(source: str, **kwargs) -> object:
    """Parse a single expression and return its shape."""
    return shape(Parser.from_source(source, "<test>", **kwargs).parse_expression())
