"""AST node definitions for the Kaleidoscope language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from kaleido.source import Span

ANON_FUNCTION_NAME = "__anon_expr"

# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class NumberExpr:
    value: float
    span: Span


@dataclass(frozen=True)
class VariableExpr:
    name: str
    span: Span


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class CallExpr:
    callee: str
    args: tuple[Expr, ...]
    span: Span


Expr = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr]


# ── Top-level units ──────────────────────────────────────────────


@dataclass(frozen=True)
class Prototype:
    """A function name and its ordered parameter names, without a body."""

    name: str
    params: tuple[str, ...]
    span: Span


@dataclass(frozen=True)
class Function:
    prototype: Prototype
    body: Expr
    span: Span

    @property
    def is_anonymous(self) -> bool:
        return self.prototype.name == ANON_FUNCTION_NAME


TopLevel = Union[Function, Prototype]
Node = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr, Prototype, Function]


# ── Dispatch ─────────────────────────────────────────────────────

T = TypeVar("T")


class NodeVisitor(Generic[T]):
    """Exhaustive dispatch over the closed node set.

    Subclasses override the ``visit_*`` handlers they support; ``visit`` is
    the single entry point.
    """

    def visit(self, node: Node) -> T:
        if isinstance(node, NumberExpr):
            return self.visit_number(node)
        if isinstance(node, VariableExpr):
            return self.visit_variable(node)
        if isinstance(node, BinaryExpr):
            return self.visit_binary(node)
        if isinstance(node, CallExpr):
            return self.visit_call(node)
        if isinstance(node, Prototype):
            return self.visit_prototype(node)
        if isinstance(node, Function):
            return self.visit_function(node)
        raise TypeError(f"not an AST node: {type(node).__name__}")

    def visit_number(self, node: NumberExpr) -> T:
        raise NotImplementedError

    def visit_variable(self, node: VariableExpr) -> T:
        raise NotImplementedError

    def visit_binary(self, node: BinaryExpr) -> T:
        raise NotImplementedError

    def visit_call(self, node: CallExpr) -> T:
        raise NotImplementedError

    def visit_prototype(self, node: Prototype) -> T:
        raise NotImplementedError

    def visit_function(self, node: Function) -> T:
        raise NotImplementedError
