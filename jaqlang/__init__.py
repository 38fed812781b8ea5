"""Lexer, parser and syntax tree for a jq-like JSON query language."""

__version__ = "1.3.0"
__all__ = ["ops", "syntax", "testfile", "lexer", "precedence", "parser"]