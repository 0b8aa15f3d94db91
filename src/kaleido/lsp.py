"""Kaleidoscope Language Server: pygls-based LSP for .kal files.

Provides diagnostics, hover, document symbols and formatting via stdio
transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from kaleido import __version__
from kaleido.ast_nodes import Function, Prototype, TopLevel
from kaleido.codegen import CodeGenerator
from kaleido.driver import Driver
from kaleido.errors import CodegenError, Diagnostic, Severity
from kaleido.formatter import KaleidoFormatter
from kaleido.parser import Parser
from kaleido.source import Span

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    """Convert a kaleido Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.span is not None:
        span_range = span_to_range(d.span)
    message = d.message
    if d.notes:
        message += "\n" + "\n".join(d.notes)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="kaleido",
        code=d.code,
        message=f"[{d.code}] {message}",
    )


def _prototype_display(proto: Prototype) -> str:
    return f"{proto.name}({' '.join(proto.params)})"


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    units: list[TopLevel] = field(default_factory=list)
    has_syntax_errors: bool = False
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)

    def prototypes(self) -> dict[str, tuple[str, Prototype]]:
        """Latest declaration of each named function, keyed by name."""
        found: dict[str, tuple[str, Prototype]] = {}
        for unit in self.units:
            if isinstance(unit, Prototype):
                found[unit.name] = ("extern", unit)
            elif not unit.is_anonymous:
                found[unit.prototype.name] = ("def", unit.prototype)
        return found


server = LanguageServer(
    "kaleido-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, source: str) -> DocumentState:
    """Parse and generate every unit, cache results, return state."""
    parser = Parser.from_source(source, uri)
    result = Driver(parser, CodeGenerator()).run()

    ds = DocumentState(
        source=source,
        units=result.units,
        has_syntax_errors=any(not isinstance(e, CodegenError) for e in result.errors),
    )
    for error in result.errors:
        ds.diagnostics.extend(_compile_diag(d) for d in error.diagnostics)
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the identifier at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Try character-1 in case cursor is right after the word
        if 0 < character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1
    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1
    return text[start:end]


def _unit_to_symbol(unit: TopLevel) -> lsp.DocumentSymbol | None:
    """Convert a named top-level unit to an LSP DocumentSymbol."""
    if isinstance(unit, Prototype):
        proto, detail, span = unit, "extern", unit.span
    elif isinstance(unit, Function) and not unit.is_anonymous:
        proto, detail, span = unit.prototype, "def", unit.span
    else:
        return None
    return lsp.DocumentSymbol(
        name=proto.name,
        kind=lsp.SymbolKind.Function,
        range=span_to_range(span),
        selection_range=span_to_range(proto.span),
        detail=f"{detail} {_prototype_display(proto)}",
    )


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return hover_for(ds, params.position.line, params.position.character)


def hover_for(ds: DocumentState, line: int, character: int) -> lsp.Hover | None:
    word = _get_word_at(ds.source, line, character)
    if not word:
        return None
    entry = ds.prototypes().get(word)
    if entry is None:
        return None
    kind, proto = entry
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=f"**{kind}** `{_prototype_display(proto)}`",
    ))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return []
    symbols = (_unit_to_symbol(u) for u in ds.units)
    return [s for s in symbols if s is not None]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return formatting_edits(ds)


def formatting_edits(ds: DocumentState) -> list[lsp.TextEdit] | None:
    # Units that failed to parse are not in the AST; formatting would drop them.
    if ds.has_syntax_errors:
        return None
    formatted = KaleidoFormatter().format_units(ds.units)
    if formatted == ds.source:
        return None

    # Replace entire document
    lines = ds.source.splitlines()
    end_line = len(lines)
    end_char = len(lines[-1]) if lines else 0
    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(end_line, end_char),
        ),
        new_text=formatted,
    )]


def main() -> None:
    """Start the language server on stdio."""
    server.start_io()
