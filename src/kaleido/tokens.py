"""Token kinds and token representation for the Kaleidoscope lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kaleido.source import Span


class TokenKind(Enum):
    EOF = auto()

    # Commands
    DEF = auto()
    EXTERN = auto()

    # Primary
    IDENTIFIER = auto()
    NUMBER = auto()

    # Any other single character: punctuation and operators
    UNKNOWN = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    span: Span
    number: float | None = None  # only set for NUMBER

    @property
    def char(self) -> str | None:
        """The raw character of an UNKNOWN token."""
        if self.kind == TokenKind.UNKNOWN:
            return self.text
        return None

    def is_char(self, ch: str) -> bool:
        """Match a token without a token class, e.g. '('."""
        return self.kind == TokenKind.UNKNOWN and self.text == ch


KEYWORDS: dict[str, TokenKind] = {
    "def": TokenKind.DEF,
    "extern": TokenKind.EXTERN,
}
