"""Diagnostics, error types and Rust-style colored rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from kaleido.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def span(self) -> Span | None:
        return self.labels[0].span if self.labels else None


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._file_cache: dict[str, SourceFile | None] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, name: str, text: str) -> None:
        """Register in-memory source text (e.g. REPL input) under *name*."""
        self._file_cache[name] = SourceFile(name, text)

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache source file, return the 1-indexed line."""
        if filename not in self._file_cache:
            path = Path(filename)
            try:
                self._file_cache[filename] = (
                    SourceFile.from_path(path) if path.is_file() else None
                )
            except OSError:
                self._file_cache[filename] = None
        source = self._file_cache[filename]
        if source is None or not 1 <= line_num <= len(source.lines):
            return None
        return source.line_at(line_num)

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}")
            gutter = f"{span.start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )
                if span.start_line == span.end_line:
                    caret_len = max(1, span.end_col - span.start_col + 1)
                    padding = " " * (span.start_col - 1)
                    lines.append(
                        f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                        f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
                    )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class _SingleError(CompileError):
    """A compile error raised for exactly one offending construct."""

    code = "E000"

    def __init__(self, message: str, span: Span | None = None,
                 notes: list[str] | None = None) -> None:
        labels = [DiagnosticLabel(span)] if span is not None else []
        diag = Diagnostic(Severity.ERROR, self.code, message, labels, notes or [])
        super().__init__([diag])
        self.message = message
        self.span = span

    @property
    def diagnostic(self) -> Diagnostic:
        return self.diagnostics[0]

    def __str__(self) -> str:
        if self.span is not None:
            return f"{self.span}: {self.message}"
        return self.message


class LexError(_SingleError):
    """A malformed lexeme. The lexer has consumed it and can continue."""

    code = "E100"


class ParseError(_SingleError):
    """A syntax error. The caller skips one token and resumes."""

    code = "E200"


class CodegenErrorKind(Enum):
    UNKNOWN_VARIABLE = "E301"
    UNKNOWN_FUNCTION = "E302"
    ARITY_MISMATCH = "E303"
    UNSUPPORTED_OPERATOR = "E304"
    REDEFINITION = "E305"
    DUPLICATE_PARAMETER = "E306"


class CodegenError(_SingleError):
    """The backend could not generate a value for a node."""

    def __init__(self, kind: CodegenErrorKind, message: str,
                 span: Span | None = None,
                 notes: list[str] | None = None) -> None:
        self.kind = kind
        self.code = kind.value
        super().__init__(message, span, notes)
