"""Pygments lexer for the Kaleidoscope language."""

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import RegexLexer, words
from pygments.token import (
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    Text,
)


class KaleidoscopeLexer(RegexLexer):
    """Pygments lexer for the Kaleidoscope language."""

    name = "Kaleidoscope"
    aliases = ["kaleidoscope", "kaleido"]
    filenames = ["*.kal", "*.ks"]
    mimetypes = ["text/x-kaleidoscope"]

    tokens = {
        "root": [
            (r"\s+", Text),
            # Declaration keywords
            (words(("def", "extern"), prefix=r"\b", suffix=r"\b"), Keyword.Declaration),
            # Numbers (float syntax covers integers)
            (r"[0-9]+\.[0-9]*([eE][+-]?[0-9]+)?", Number.Float),
            (r"\.[0-9]+([eE][+-]?[0-9]+)?", Number.Float),
            (r"[0-9]+[eE][+-]?[0-9]+", Number.Float),
            (r"[0-9]+", Number.Integer),
            # Function names in calls and prototypes
            (r"[A-Za-z_][A-Za-z0-9_]*(?=\s*\()", Name.Function),
            (r"[A-Za-z_][A-Za-z0-9_]*", Name),
            (r"[(),;]", Punctuation),
            (r"[<>+\-*/%=!&|^]", Operator),
            (r".", Error),
        ],
    }


def highlight_source(source: str) -> str:
    """Return *source* with ANSI terminal colors."""
    return highlight(source, KaleidoscopeLexer(), TerminalFormatter())
