"""Tests for the top-level driver loop."""

from __future__ import annotations

from kaleido.codegen import CodeGenerator
from kaleido.driver import Driver, DriverResult, parse_all
from kaleido.errors import CodegenError, LexError, ParseError
from kaleido.parser import Parser
from tests.helpers import shape


class Recorder:
    """Collects everything the driver prints."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, message="", **kwargs):
        self.calls.append((message, kwargs))

    @property
    def messages(self) -> list[str]:
        return [m for m, _ in self.calls]


def run(source: str, *, codegen: CodeGenerator | None = None, **kwargs):
    out = Recorder()
    driver = Driver(Parser.from_source(source, "drv.kal"), codegen, out=out, **kwargs)
    return driver.run(), out


class TestDriverParsing:
    def test_messages_per_unit(self):
        result, out = run("def f(x) x; extern g(); 1+2")
        assert result.ok
        assert out.messages == [
            "Parsed a function definition.",
            "Parsed an extern.",
            "Parsed a top-level expression.",
        ]
        assert all(kw == {"err": True} for _, kw in out.calls)

    def test_units_collected_in_order(self):
        result, _ = run("extern sin(x) def f(y) sin(y) f(1)")
        assert [shape(u) for u in result.units] == [
            ("proto", "sin", ["x"]),
            ("function", ("proto", "f", ["y"]), ("call", "sin", ["y"])),
            ("function", ("proto", "__anon_expr", []), ("call", "f", [1.0])),
        ]

    def test_semicolons_are_skipped(self):
        result, out = run(";;; 1 ;;")
        assert len(result.units) == 1
        assert out.messages == ["Parsed a top-level expression."]

    def test_empty_input(self):
        result, out = run("")
        assert result.ok
        assert result.units == []
        assert out.calls == []

    def test_quiet_mode(self):
        result, out = run("1; 2", verbose=False)
        assert len(result.units) == 2
        assert out.calls == []


class TestDriverRecovery:
    def test_parse_error_skips_one_token(self):
        result, out = run("(1+2 ; 3;")
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], ParseError)
        assert [shape(u.body) for u in result.units] == [3.0]
        assert not result.ok

    def test_error_is_rendered(self):
        _, out = run("(1+2 ;")
        rendered = out.messages[0]
        assert rendered.splitlines()[0] == "error[E200]: Expected ')'"
        assert "--> drv.kal:1:6" in rendered

    def test_lex_error_resumes_after_lexeme(self):
        result, out = run("1e; 2;")
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], LexError)
        assert [shape(u.body) for u in result.units] == [2.0]
        assert out.messages[0].startswith("error[E100]: malformed number '1e'")

    def test_keeps_going_after_bad_definition(self):
        result, _ = run("def (x) x; def ok(x) x")
        assert len(result.errors) == 2
        named = [u.prototype.name for u in result.units if not u.is_anonymous]
        assert named == ["ok"]

    def test_reserved_name_is_not_taken_for_a_top_level_expression(self):
        result, out = run("def __anon_expr() 1;")
        assert result.errors[0].message == "'__anon_expr' is reserved for top-level expressions"
        assert "Parsed a function definition." not in out.messages
        assert all(u.span.start_col != 1 for u in result.units)

    def test_every_error_is_collected(self):
        result, _ = run(") ) 1")
        assert len(result.errors) == 2
        assert len(result.units) == 1


class TestDriverCodegen:
    def test_generated_messages(self):
        result, out = run("def f(x) x*2", codegen=CodeGenerator())
        assert result.ok
        assert out.messages[:2] == ["Parsed a function definition.", "Read function definition:"]
        assert 'define double @"f"' in out.messages[2]

    def test_extern_and_top_level_messages(self):
        _, out = run("extern sin(x); sin(1)", codegen=CodeGenerator())
        assert "Read extern:" in out.messages
        assert "Read top-level expression:" in out.messages

    def test_codegen_error_is_reported_and_loop_continues(self):
        result, out = run("foo(1); def g(x) x; g(2)", codegen=CodeGenerator())
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], CodegenError)
        assert len(result.units) == 3
        assert any(m.startswith("error[E302]") for m in out.messages)

    def test_failed_body_can_still_be_called(self):
        codegen = CodeGenerator()
        result, _ = run("def f(x) y; f(2)", codegen=codegen)
        assert len(result.errors) == 1
        assert codegen.get_function("f").is_declaration


class TestDriverPrompt:
    def test_prompt_before_each_step(self):
        _, out = run("1;", prompt="ready> ", verbose=False)
        assert out.calls == [("ready> ", {"nl": False, "err": True})] * 3

    def test_no_prompt_by_default(self):
        _, out = run("1", verbose=False)
        assert out.calls == []


class TestParseAll:
    def test_returns_result(self):
        result = parse_all(Parser.from_source("def f(x) x; (1"))
        assert isinstance(result, DriverResult)
        assert len(result.units) == 1
        assert len(result.errors) == 1

    def test_parse_unit_returns_none_at_eof(self):
        driver = Driver(Parser.from_source(""))
        assert driver.parse_unit() is None
