"""Top-level read/parse/generate loop shared by the REPL, CLI and LSP."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from kaleido.ast_nodes import Prototype, TopLevel
from kaleido.codegen import CodeGenerator
from kaleido.errors import CodegenError, CompileError, DiagnosticRenderer, LexError, ParseError
from kaleido.parser import Parser
from kaleido.tokens import TokenKind


@dataclass
class DriverResult:
    units: list[TopLevel] = field(default_factory=list)
    errors: list[CompileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _describe(unit: TopLevel) -> tuple[str, str]:
    """Return the (parsed, generated) headlines for a unit."""
    if isinstance(unit, Prototype):
        return "Parsed an extern.", "Read extern:"
    if unit.is_anonymous:
        return "Parsed a top-level expression.", "Read top-level expression:"
    return "Parsed a function definition.", "Read function definition:"


def _silent(*args: object, **kwargs: object) -> None:
    pass


class Driver:
    """Reads top-level units one at a time and reports each outcome.

    On a lexical or syntax error the driver skips exactly one token and
    resumes top-level parsing. Codegen errors are reported and the loop
    continues with the next unit.
    """

    def __init__(
        self,
        parser: Parser,
        codegen: CodeGenerator | None = None,
        *,
        out: Callable[..., None] = _silent,
        renderer: DiagnosticRenderer | None = None,
        prompt: str | None = None,
        verbose: bool = True,
    ) -> None:
        self.parser = parser
        self.codegen = codegen
        self.out = out
        self.renderer = renderer or DiagnosticRenderer(color=False)
        self.prompt = prompt
        self.verbose = verbose

    def parse_unit(self) -> TopLevel | None:
        """Parse the next unit, or return None at ';' (consumed) or EOF."""
        tok = self.parser.current
        if tok.kind == TokenKind.EOF:
            return None
        if tok.is_char(";"):
            self.parser.advance()
            return None
        if tok.kind == TokenKind.DEF:
            return self.parser.parse_definition()
        if tok.kind == TokenKind.EXTERN:
            return self.parser.parse_extern()
        return self.parser.parse_top_level_expr()

    def step(self, result: DriverResult) -> bool:
        """Handle one unit. Returns False once the input is exhausted."""
        if self.prompt is not None:
            self.out(self.prompt, nl=False, err=True)
        try:
            if self.parser.at_eof:
                return False
            unit = self.parse_unit()
        except (LexError, ParseError) as e:
            self._report(e, result)
            self.parser.skip_token()
            return True
        if unit is None:
            return True

        result.units.append(unit)
        parsed, generated = _describe(unit)
        if self.verbose:
            self.out(parsed, err=True)
        if self.codegen is not None:
            try:
                value = self.codegen.generate(unit)
            except CodegenError as e:
                self._report(e, result)
                return True
            if self.verbose:
                self.out(generated, err=True)
                self.out(str(value), err=True)
        return True

    def run(self) -> DriverResult:
        result = DriverResult()
        while self.step(result):
            pass
        return result

    def _report(self, error: CompileError, result: DriverResult) -> None:
        result.errors.append(error)
        for diag in error.diagnostics:
            self.out(self.renderer.render(diag), err=True)


def parse_all(parser: Parser) -> DriverResult:
    """Parse every unit of the parser's input with one-token error recovery."""
    return Driver(parser).run()
