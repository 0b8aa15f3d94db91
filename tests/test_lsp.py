"""Tests for the Kaleidoscope LSP server."""

from __future__ import annotations

from lsprotocol import types as lsp

from kaleido.errors import Severity
from kaleido.lsp import (
    _SEVERITY_MAP,
    DocumentState,
    _analyze,
    _get_word_at,
    _state,
    _unit_to_symbol,
    formatting_edits,
    hover_for,
    span_to_range,
)
from kaleido.source import Span

URI = "file:///test.kal"


class TestSpanConversion:
    def test_span_to_range_basic(self):
        r = span_to_range(Span("test.kal", 1, 1, 1, 5))
        assert (r.start.line, r.start.character) == (0, 0)
        assert (r.end.line, r.end.character) == (0, 5)

    def test_span_to_range_multiline(self):
        r = span_to_range(Span("test.kal", 5, 3, 7, 10))
        assert (r.start.line, r.start.character) == (4, 2)
        assert (r.end.line, r.end.character) == (6, 10)


class TestSeverityMap:
    def test_error_maps(self):
        assert _SEVERITY_MAP[Severity.ERROR] == lsp.DiagnosticSeverity.Error

    def test_note_maps(self):
        assert _SEVERITY_MAP[Severity.NOTE] == lsp.DiagnosticSeverity.Information


class TestGetWordAt:
    def test_word_middle(self):
        assert _get_word_at("def foo(x) x", 0, 5) == "foo"

    def test_word_end(self):
        assert _get_word_at("foo(1)", 0, 3) == "foo"

    def test_second_line(self):
        assert _get_word_at("1\nbar_2(x)", 1, 2) == "bar_2"

    def test_after_last_char(self):
        assert _get_word_at("abc", 0, 3) == "abc"

    def test_out_of_range(self):
        assert _get_word_at("abc", 4, 0) == ""
        assert _get_word_at("", 0, 0) == ""


class TestAnalyze:
    def test_clean_document(self):
        ds = _analyze(URI, "def f(x) x+1;\nf(2);\n")
        assert ds.diagnostics == []
        assert not ds.has_syntax_errors
        assert len(ds.units) == 2
        assert _state[URI] is ds

    def test_syntax_error_diagnostic(self):
        ds = _analyze(URI, "(1+2 ;")
        assert ds.has_syntax_errors
        (diag,) = ds.diagnostics
        assert diag.code == "E200"
        assert diag.message == "[E200] Expected ')'"
        assert diag.severity == lsp.DiagnosticSeverity.Error
        assert diag.source == "kaleido"
        assert (diag.range.start.line, diag.range.start.character) == (0, 5)

    def test_codegen_error_is_not_a_syntax_error(self):
        ds = _analyze(URI, "extern pow(a b);\npow(1);\n")
        assert not ds.has_syntax_errors
        (diag,) = ds.diagnostics
        assert diag.code == "E303"
        assert "'pow' takes 2 argument(s), got 1" in diag.message
        assert diag.range.start.line == 1

    def test_errors_do_not_hide_later_units(self):
        ds = _analyze(URI, ") ;\ndef g(x) x;\n")
        assert len(ds.diagnostics) == 1
        assert [u.prototype.name for u in ds.units] == ["g"]


class TestSymbols:
    def test_named_units(self):
        ds = _analyze(URI, "extern sin(x);\ndef sq(y) y*y;\nsq(2);\n")
        symbols = [_unit_to_symbol(u) for u in ds.units]
        assert symbols[2] is None
        ext, fn = symbols[0], symbols[1]
        assert (ext.name, ext.detail) == ("sin", "extern sin(x)")
        assert (fn.name, fn.detail) == ("sq", "def sq(y)")
        assert fn.kind == lsp.SymbolKind.Function
        assert fn.range.start.line == 1

    def test_prototypes_latest_wins(self):
        ds = _analyze(URI, "extern f(x);\ndef f(x) x;\n")
        kind, proto = ds.prototypes()["f"]
        assert kind == "def"
        assert proto.params == ("x",)


class TestHover:
    def test_hover_on_call(self):
        ds = _analyze(URI, "def foo(a b) a;\nfoo(1, 2);\n")
        hover = hover_for(ds, 1, 1)
        assert hover is not None
        assert hover.contents.value == "**def** `foo(a b)`"

    def test_hover_on_extern(self):
        ds = _analyze(URI, "extern cos(t);\n")
        assert hover_for(ds, 0, 8).contents.value == "**extern** `cos(t)`"

    def test_hover_on_unknown_word(self):
        ds = _analyze(URI, "def foo(a) a;\n")
        assert hover_for(ds, 0, 11) is None

    def test_hover_on_whitespace(self):
        assert hover_for(DocumentState(source="   "), 0, 1) is None


class TestFormatting:
    def test_reformat_whole_document(self):
        ds = _analyze(URI, "def f(x)   x+1\nf(2)")
        (edit,) = formatting_edits(ds)
        assert edit.new_text == "def f(x) x + 1;\nf(2);\n"
        assert (edit.range.start.line, edit.range.start.character) == (0, 0)
        assert (edit.range.end.line, edit.range.end.character) == (2, 4)

    def test_already_formatted(self):
        ds = _analyze(URI, "def f(x) x + 1;\n")
        assert formatting_edits(ds) is None

    def test_syntax_errors_block_formatting(self):
        ds = _analyze(URI, "def f(x) (x+1\n")
        assert formatting_edits(ds) is None

    def test_codegen_errors_do_not_block_formatting(self):
        ds = _analyze(URI, "foo(1)")
        (edit,) = formatting_edits(ds)
        assert edit.new_text == "foo(1);\n"
