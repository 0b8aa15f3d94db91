"""Parser for the Kaleidoscope language.

Recursive descent with one token of lookahead for primaries and top-level
productions, and precedence climbing for binary operator expressions.
The parser never recovers on its own: every syntax error is raised as a
``ParseError`` and the caller decides how many tokens to skip.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from kaleido.ast_nodes import (
    ANON_FUNCTION_NAME,
    BinaryExpr,
    CallExpr,
    Expr,
    Function,
    NumberExpr,
    Prototype,
    VariableExpr,
)
from kaleido.errors import LexError, ParseError
from kaleido.lexer import Lexer
from kaleido.precedence import DEFAULT_PRECEDENCE, PrecedenceTable
from kaleido.tokens import Token, TokenKind


class NestedErrorPolicy(Enum):
    """What to do when the nested climb for a tighter operator fails."""

    PROPAGATE = "propagate"
    # Drop the nested failure, keep the primary parsed so far, keep climbing.
    LENIENT = "lenient"


class Parser:
    """Parses Kaleidoscope top-level units from a lexer."""

    def __init__(
        self,
        lexer: Lexer,
        precedence: Mapping[str, int] | None = None,
        *,
        nested_errors: NestedErrorPolicy = NestedErrorPolicy.PROPAGATE,
    ) -> None:
        if precedence is None:
            precedence = DEFAULT_PRECEDENCE
        elif not isinstance(precedence, PrecedenceTable):
            precedence = PrecedenceTable(precedence)
        self.lexer = lexer
        self.precedence: PrecedenceTable = precedence
        self.nested_errors = nested_errors
        self._current: Token | None = None
        self._lex_failed = False

    @classmethod
    def from_source(
        cls,
        source: str,
        filename: str = "<stdin>",
        precedence: Mapping[str, int] | None = None,
        *,
        nested_errors: NestedErrorPolicy = NestedErrorPolicy.PROPAGATE,
    ) -> Parser:
        return cls(Lexer(source, filename), precedence, nested_errors=nested_errors)

    # ── Token access ─────────────────────────────────────────────

    @property
    def current(self) -> Token:
        """The lookahead token, read from the lexer on first access."""
        if self._current is None:
            try:
                self._current = self.lexer.next_token()
            except LexError:
                self._lex_failed = True
                raise
            self._lex_failed = False
        return self._current

    @property
    def at_eof(self) -> bool:
        return self.current.kind == TokenKind.EOF

    def advance(self) -> Token:
        """Consume the lookahead token and return it."""
        tok = self.current
        self._current = None
        return tok

    def skip_token(self) -> None:
        """Discard exactly one token; used by callers to recover from errors.

        If the last read failed with a ``LexError``, the malformed lexeme was
        already consumed by the lexer and counts as the skipped token.
        """
        if self._lex_failed:
            self._lex_failed = False
            return
        self.advance()

    def _token_precedence(self, tok: Token) -> int:
        """Precedence of an operator token, or -1 if it is not a binary operator."""
        return self.precedence.precedence(tok.char)

    def _error(self, message: str, tok: Token) -> ParseError:
        return ParseError(message, tok.span)

    # ── Expressions ──────────────────────────────────────────────

    def parse_expression(self) -> Expr:
        """expression ::= primary binop_rhs"""
        lhs = self.parse_primary()
        return self.parse_bin_op_rhs(0, lhs)

    def parse_primary(self) -> Expr:
        """primary ::= number | identifier_expr | '(' expression ')'"""
        tok = self.current
        if tok.kind == TokenKind.IDENTIFIER:
            return self._parse_identifier_expr()
        if tok.kind == TokenKind.NUMBER:
            self.advance()
            return NumberExpr(tok.number, tok.span)
        if tok.is_char("("):
            return self._parse_paren_expr()
        raise self._error("Unknown token when expecting an expression", tok)

    def _parse_paren_expr(self) -> Expr:
        self.advance()  # '('
        expr = self.parse_expression()
        if not self.current.is_char(")"):
            raise self._error("Expected ')'", self.current)
        self.advance()  # ')'
        return expr

    def _parse_identifier_expr(self) -> Expr:
        """identifier_expr ::= identifier [ '(' (expression (',' expression)*)? ')' ]"""
        name_tok = self.advance()
        if not self.current.is_char("("):
            return VariableExpr(name_tok.text, name_tok.span)

        self.advance()  # '('
        args: list[Expr] = []
        if not self.current.is_char(")"):
            while True:
                args.append(self.parse_expression())
                if self.current.is_char(")"):
                    break
                if not self.current.is_char(","):
                    raise self._error("Expected ','", self.current)
                self.advance()  # ','

        end = self.advance()  # ')'
        return CallExpr(name_tok.text, tuple(args), name_tok.span.to(end.span))

    def parse_bin_op_rhs(self, min_precedence: int, lhs: Expr) -> Expr:
        """binop_rhs ::= (op primary)*, climbing by operator precedence."""
        while True:
            op_tok = self.current
            precedence = self._token_precedence(op_tok)
            if precedence < min_precedence:
                return lhs

            self.advance()  # operator
            rhs = self.parse_primary()

            # A tighter operator after rhs takes rhs as its own left operand.
            if precedence < self._token_precedence(self.current):
                rhs = self._parse_tighter_rhs(precedence + 1, rhs)

            lhs = BinaryExpr(op_tok.text, lhs, rhs, lhs.span.to(rhs.span))

    def _parse_tighter_rhs(self, min_precedence: int, rhs: Expr) -> Expr:
        if self.nested_errors is NestedErrorPolicy.PROPAGATE:
            return self.parse_bin_op_rhs(min_precedence, rhs)
        try:
            return self.parse_bin_op_rhs(min_precedence, rhs)
        except ParseError:
            return rhs

    # ── Top-level productions ────────────────────────────────────

    def parse_prototype(self) -> Prototype:
        """prototype ::= identifier '(' identifier* ')'"""
        name_tok = self.current
        if name_tok.kind != TokenKind.IDENTIFIER:
            raise self._error("Expected function name in prototype", name_tok)
        if name_tok.text == ANON_FUNCTION_NAME:
            raise self._error(
                f"'{ANON_FUNCTION_NAME}' is reserved for top-level expressions", name_tok,
            )
        self.advance()

        if not self.current.is_char("("):
            raise self._error("Expected '(' in prototype", self.current)
        self.advance()

        params: list[str] = []
        while self.current.kind == TokenKind.IDENTIFIER:
            params.append(self.advance().text)

        if not self.current.is_char(")"):
            raise self._error("Expected ')' in prototype", self.current)
        end = self.advance()
        return Prototype(name_tok.text, tuple(params), name_tok.span.to(end.span))

    def parse_definition(self) -> Function:
        """definition ::= 'def' prototype expression"""
        def_tok = self.current
        if def_tok.kind != TokenKind.DEF:
            raise self._error("Expected 'def'", def_tok)
        self.advance()
        proto = self.parse_prototype()
        body = self.parse_expression()
        return Function(proto, body, def_tok.span.to(body.span))

    def parse_extern(self) -> Prototype:
        """external ::= 'extern' prototype"""
        if self.current.kind != TokenKind.EXTERN:
            raise self._error("Expected 'extern'", self.current)
        self.advance()
        return self.parse_prototype()

    def parse_top_level_expr(self) -> Function:
        """toplevelexpr ::= expression, wrapped in a nameless function."""
        body = self.parse_expression()
        proto = Prototype(ANON_FUNCTION_NAME, (), body.span)
        return Function(proto, body, body.span)
