"""LLVM IR generation for Kaleidoscope top-level units.

Every value is a ``double``. Functions live in a single ``llvmlite.ir``
module that grows as units are generated, so later calls can refer to
earlier definitions and externs.
"""

from __future__ import annotations

from llvmlite import ir

from kaleido.ast_nodes import (
    ANON_FUNCTION_NAME,
    BinaryExpr,
    CallExpr,
    Function,
    Node,
    NodeVisitor,
    NumberExpr,
    Prototype,
    VariableExpr,
)
from kaleido.errors import CodegenError, CodegenErrorKind

DOUBLE = ir.DoubleType()


class CodeGenerator(NodeVisitor[ir.Value]):
    """Generates LLVM IR values from AST nodes."""

    def __init__(self, module_name: str = "kaleido") -> None:
        self.module = ir.Module(name=module_name)
        self._builder: ir.IRBuilder | None = None
        self._named_values: dict[str, ir.Argument] = {}

    def generate(self, node: Node) -> ir.Value:
        """Generate the IR value for *node*. Raises CodegenError."""
        return self.visit(node)

    def ir_text(self) -> str:
        return str(self.module)

    def get_function(self, name: str) -> ir.Function | None:
        value = self.module.globals.get(name)
        if isinstance(value, ir.Function):
            return value
        return None

    # ── Expressions ──────────────────────────────────────────────

    def visit_number(self, node: NumberExpr) -> ir.Value:
        return ir.Constant(DOUBLE, node.value)

    def visit_variable(self, node: VariableExpr) -> ir.Value:
        value = self._named_values.get(node.name)
        if value is None:
            raise CodegenError(
                CodegenErrorKind.UNKNOWN_VARIABLE,
                f"Unknown variable name '{node.name}'", node.span,
            )
        return value

    def visit_binary(self, node: BinaryExpr) -> ir.Value:
        builder = self._require_builder(node)
        left = self.visit(node.left)
        right = self.visit(node.right)

        if node.op == "+":
            return builder.fadd(left, right, "addtmp")
        if node.op == "-":
            return builder.fsub(left, right, "subtmp")
        if node.op == "*":
            return builder.fmul(left, right, "multmp")
        if node.op == "<":
            cmp = builder.fcmp_unordered("<", left, right, "cmptmp")
            # Convert bool 0/1 to double 0.0 or 1.0
            return builder.uitofp(cmp, DOUBLE, "booltmp")
        raise CodegenError(
            CodegenErrorKind.UNSUPPORTED_OPERATOR,
            f"invalid binary operator '{node.op}'", node.span,
        )

    def visit_call(self, node: CallExpr) -> ir.Value:
        builder = self._require_builder(node)
        callee = self.get_function(node.callee)
        if callee is None:
            raise CodegenError(
                CodegenErrorKind.UNKNOWN_FUNCTION,
                f"Unknown function referenced '{node.callee}'", node.span,
            )
        if len(callee.args) != len(node.args):
            raise CodegenError(
                CodegenErrorKind.ARITY_MISMATCH,
                "Incorrect # arguments passed", node.span,
                notes=[f"'{node.callee}' takes {len(callee.args)} argument(s), "
                       f"got {len(node.args)}"],
            )
        args = [self.visit(arg) for arg in node.args]
        return builder.call(callee, args, "calltmp")

    def _require_builder(self, node: Node) -> ir.IRBuilder:
        # Expressions are only generated inside a function body.
        if self._builder is None:
            raise TypeError(
                f"{type(node).__name__} must be generated inside a function; "
                "wrap it with Parser.parse_top_level_expr"
            )
        return self._builder

    # ── Top-level units ──────────────────────────────────────────

    def visit_prototype(self, node: Prototype) -> ir.Function:
        seen: set[str] = set()
        for param in node.params:
            if param in seen:
                raise CodegenError(
                    CodegenErrorKind.DUPLICATE_PARAMETER,
                    f"Duplicate parameter '{param}' in prototype '{node.name}'",
                    node.span,
                )
            seen.add(param)

        name = node.name
        if name == ANON_FUNCTION_NAME:
            # Each top-level expression gets its own entry point.
            name = self.module.get_unique_name(name)

        existing = self.get_function(name)
        if existing is not None:
            if len(existing.args) != len(node.params):
                raise CodegenError(
                    CodegenErrorKind.REDEFINITION,
                    f"Redefinition of function '{node.name}' with different # args",
                    node.span,
                    notes=[f"previously declared with {len(existing.args)} argument(s)"],
                )
            return existing

        fnty = ir.FunctionType(DOUBLE, [DOUBLE] * len(node.params))
        func = ir.Function(self.module, fnty, name)
        for arg, param in zip(func.args, node.params):
            arg.name = param
        return func

    def visit_function(self, node: Function) -> ir.Function:
        func = self.visit_prototype(node.prototype)
        if not func.is_declaration:
            raise CodegenError(
                CodegenErrorKind.REDEFINITION,
                f"Function '{node.prototype.name}' cannot be redefined",
                node.prototype.span,
            )

        self._named_values = dict(zip(node.prototype.params, func.args))
        block = func.append_basic_block("entry")
        self._builder = ir.IRBuilder(block)
        try:
            retval = self.visit(node.body)
            self._builder.ret(retval)
        except CodegenError:
            if node.is_anonymous:
                del self.module.globals[func.name]
            else:
                # Leave a bare declaration so the name can be defined again.
                func.blocks.clear()
            raise
        finally:
            self._builder = None
            self._named_values = {}
        return func
