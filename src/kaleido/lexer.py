"""Lexer for the Kaleidoscope language.

Reads a character stream on demand and classifies it into identifiers,
numbers, the ``def``/``extern`` keywords, and single unrecognized characters.
Operator and punctuation meaning is assigned later by the parser.
"""

from __future__ import annotations

import io
import math
from collections.abc import Iterator
from typing import TextIO

from kaleido.errors import LexError
from kaleido.source import Span
from kaleido.tokens import KEYWORDS, Token, TokenKind


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class Lexer:
    """Tokenizes Kaleidoscope source, one token per ``next_token`` call."""

    def __init__(self, source: str | TextIO, filename: str = "<stdin>") -> None:
        if isinstance(source, str):
            source = io.StringIO(source)
        self.stream = source
        self.filename = filename
        self.line = 1
        self.col = 1
        self._lookahead: str | None = None  # "" once the stream is exhausted

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            if tok.kind == TokenKind.EOF:
                return
            yield tok

    def lex(self) -> list[Token]:
        """Tokenize the remaining input, including the final EOF token."""
        tokens = list(self)
        tokens.append(self.next_token())
        return tokens

    def next_token(self) -> Token:
        """Return the next token. EOF is returned forever once input runs out."""
        self._skip_whitespace()
        ch = self._peek()
        line, col = self.line, self.col

        if ch == "":
            return Token(TokenKind.EOF, "", Span(self.filename, line, col, line, col))
        if _is_ident_start(ch):
            return self._lex_identifier(line, col)
        if _is_digit(ch):
            return self._lex_number(line, col)
        if ch == ".":
            self._advance()
            if _is_digit(self._peek()):
                return self._lex_number(line, col, prefix=".")
            return self._make(TokenKind.UNKNOWN, ".", line, col)

        self._advance()
        return self._make(TokenKind.UNKNOWN, ch, line, col)

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self) -> str:
        if self._lookahead is None:
            self._lookahead = self.stream.read(1)
        return self._lookahead

    def _advance(self) -> str:
        ch = self._peek()
        if ch == "":
            return ch
        self._lookahead = None
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _span(self, start_line: int, start_col: int) -> Span:
        # Lexemes never contain a newline, so the end is on the current line.
        return Span(self.filename, start_line, start_col, self.line, self.col - 1)

    def _make(self, kind: TokenKind, text: str, line: int, col: int,
              number: float | None = None) -> Token:
        return Token(kind, text, self._span(line, col), number)

    def _skip_whitespace(self) -> None:
        while self._peek().isspace():
            self._advance()

    # ── Lexemes ──────────────────────────────────────────────────

    def _lex_identifier(self, line: int, col: int) -> Token:
        chars = [self._advance()]
        while _is_ident_char(self._peek()):
            chars.append(self._advance())
        text = "".join(chars)
        kind = KEYWORDS.get(text, TokenKind.IDENTIFIER)
        return self._make(kind, text, line, col)

    def _read_digits(self, chars: list[str]) -> None:
        while _is_digit(self._peek()):
            chars.append(self._advance())

    def _lex_number(self, line: int, col: int, prefix: str = "") -> Token:
        """Lex ``digits [. digits] [exponent]`` or ``. digits [exponent]``."""
        chars = list(prefix)
        self._read_digits(chars)
        if not prefix and self._peek() == ".":
            chars.append(self._advance())
            self._read_digits(chars)
        if self._peek() in ("e", "E"):
            chars.append(self._advance())
            if self._peek() in ("+", "-"):
                chars.append(self._advance())
            self._read_digits(chars)

        text = "".join(chars)
        span = self._span(line, col)
        try:
            value = float(text)
        except ValueError:
            raise LexError(f"malformed number '{text}'", span) from None
        if not math.isfinite(value):
            raise LexError(f"number out of range '{text}'", span)
        return Token(TokenKind.NUMBER, text, span, value)
