"""Kaleidoscope language front end: lexer, parser, AST and LLVM IR backend."""

__version__ = "0.1.0"
