"""Lexer turning query source text into a flat stream of spanned tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from jaqlang.syntax import Span


class Delim(Enum):
    """Delimiters that group tokens."""

    PAREN = "()"
    BRACK = "[]"
    BRACE = "{}"

    @property
    def open(self) -> str:
        """The opening character."""
        return self.value[0]

    @property
    def close(self) -> str:
        """The closing character."""
        return self.value[1]


class TokenKind(Enum):
    """Kinds of tokens; fixed tokens carry their text as value."""

    NUM = "number"
    STR = "string"
    OP = "operator"
    IDENT = "identifier"
    VAR = "variable"
    OPEN = "open"
    CLOSE = "close"
    QUOTE = '"'
    DOTDOT = ".."
    DOT = "."
    COLON = ":"
    SEMICOLON = ";"
    COMMA = ","
    QUESTION = "?"
    DEF = "def"
    IF = "if"
    THEN = "then"
    ELIF = "elif"
    ELSE = "else"
    END = "end"
    OR = "or"
    AND = "and"
    AS = "as"
    REDUCE = "reduce"
    FOR = "for"
    FOREACH = "foreach"
    TRY = "try"
    CATCH = "catch"


_TEXT_KINDS = (TokenKind.NUM, TokenKind.STR, TokenKind.OP, TokenKind.IDENT)


@dataclass(frozen=True)
class Token:
    """A token; `value` holds text for literal kinds and a Delim for brackets."""

    kind: TokenKind
    value: Union[str, Delim, None] = None

    def __str__(self) -> str:
        if self.kind in _TEXT_KINDS:
            return str(self.value)
        if self.kind is TokenKind.VAR:
            return f"${self.value}"
        if self.kind is TokenKind.OPEN:
            return self.value.open
        if self.kind is TokenKind.CLOSE:
            return self.value.close
        return self.kind.value


class LexError(Exception):
    """Raised when the source cannot be split into tokens."""

    def __init__(self, message: str, span: Span) -> None:
        super().__init__(message)
        self.message = message
        self.span = span


SpannedToken = Tuple[Token, Span]

_KEYWORDS = {
    kind.value: kind
    for kind in (
        TokenKind.DEF,
        TokenKind.IF,
        TokenKind.THEN,
        TokenKind.ELIF,
        TokenKind.ELSE,
        TokenKind.END,
        TokenKind.OR,
        TokenKind.AND,
        TokenKind.AS,
        TokenKind.REDUCE,
        TokenKind.FOR,
        TokenKind.FOREACH,
        TokenKind.TRY,
        TokenKind.CATCH,
    )
}

_PUNCTUATION = [
    ("..", TokenKind.DOTDOT),
    (".", TokenKind.DOT),
    (":", TokenKind.COLON),
    (";", TokenKind.SEMICOLON),
    (",", TokenKind.COMMA),
    ("?", TokenKind.QUESTION),
]

_IDENT = re.compile(r"@?[A-Za-z_][A-Za-z0-9_]*")
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUM = re.compile(r"(?:0|[1-9][0-9]*)(?:\.[0-9]*)?(?:[eE][+-]?[0-9]+)?")
_OP = re.compile(r"[|=!<>+\-*/%][=/]?")
_HEX4 = re.compile(r"[0-9A-Fa-f]{4}")

_ESCAPES = {
    "\\": "\\",
    "/": "/",
    '"': '"',
    "b": "\x08",
    "f": "\x0c",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_OPENERS = {delim.open: delim for delim in Delim}
_CLOSERS = {delim.close: delim for delim in Delim}


class _Lexer:
    def __init__(self, src: str) -> None:
        self.src = src
        self.pos = 0

    def _peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        return self.src[index] if index < len(self.src) else None

    def _skip_padding(self) -> None:
        src = self.src
        while self.pos < len(src):
            c = src[self.pos]
            if c.isspace():
                self.pos += 1
            elif c == "#":
                newline = src.find("\n", self.pos)
                if newline < 0:
                    raise LexError("comment is not terminated by a newline", (self.pos, len(src)))
                self.pos = newline + 1
            else:
                break

    def trees(self, close: Optional[Delim] = None, opened_at: int = 0) -> List[SpannedToken]:
        tokens: List[SpannedToken] = []
        while True:
            self._skip_padding()
            c = self._peek()
            if c is None:
                if close is None:
                    return tokens
                raise LexError(f"unclosed delimiter {close.open}", (opened_at, opened_at + 1))
            if close is not None and c == close.close:
                return tokens
            if c in _CLOSERS:
                raise LexError(f"unexpected delimiter {c}", (self.pos, self.pos + 1))
            tokens.extend(self._tree())

    def _tree(self) -> List[SpannedToken]:
        c = self._peek()
        if c in _OPENERS:
            return self._delimited(_OPENERS[c])
        if c == '"':
            return self._string()
        return [self._token()]

    def _delimited(self, delim: Delim) -> List[SpannedToken]:
        start = self.pos
        self.pos += 1
        inner = self.trees(delim, start)
        self.pos += 1
        return [
            (Token(TokenKind.OPEN, delim), (start, start + 1)),
            *inner,
            (Token(TokenKind.CLOSE, delim), (self.pos - 1, self.pos)),
        ]

    def _string(self) -> List[SpannedToken]:
        start = self.pos
        self.pos += 1
        tokens: List[SpannedToken] = [(Token(TokenKind.QUOTE), (start, start + 1))]
        chars_start = self.pos
        chars: List[str] = []
        while True:
            c = self._peek()
            if c is None:
                raise LexError("unclosed string", (start, len(self.src)))
            if c == '"':
                tokens.append((Token(TokenKind.STR, "".join(chars)), (chars_start, self.pos)))
                self.pos += 1
                tokens.append((Token(TokenKind.QUOTE), (self.pos - 1, self.pos)))
                return tokens
            if c == "\\" and self._peek(1) == "(":
                tokens.append((Token(TokenKind.STR, "".join(chars)), (chars_start, self.pos)))
                self.pos += 1
                tokens.extend(self._delimited(Delim.PAREN))
                chars_start = self.pos
                chars = []
            elif c == "\\":
                chars.append(self._escape())
            else:
                chars.append(c)
                self.pos += 1

    def _escape(self) -> str:
        start = self.pos
        code = self._peek(1)
        if code is None:
            raise LexError("unexpected end of input in escape", (start, len(self.src)))
        if code in _ESCAPES:
            self.pos += 2
            return _ESCAPES[code]
        if code == "u":
            match = _HEX4.match(self.src, self.pos + 2)
            if match is None:
                raise LexError("expected four hexadecimal digits", (start, self.pos + 2))
            self.pos = match.end()
            point = int(match.group(), 16)
            if 0xD800 <= point <= 0xDFFF:
                raise LexError("invalid unicode character", (match.start(), match.end()))
            return chr(point)
        raise LexError(f"invalid escape \\{code}", (start, start + 2))

    def _token(self) -> SpannedToken:
        src, start = self.src, self.pos
        match = _IDENT.match(src, start)
        if match:
            text = match.group()
            self.pos = match.end()
            kind = _KEYWORDS.get(text)
            token = Token(kind) if kind else Token(TokenKind.IDENT, text)
            return token, (start, self.pos)
        for text, kind in _PUNCTUATION:
            if src.startswith(text, start):
                self.pos = start + len(text)
                return Token(kind), (start, self.pos)
        match = _OP.match(src, start)
        if match:
            self.pos = match.end()
            return Token(TokenKind.OP, match.group()), (start, self.pos)
        if src[start] == "$":
            match = _NAME.match(src, start + 1)
            if match:
                self.pos = match.end()
                return Token(TokenKind.VAR, match.group()), (start, self.pos)
            raise LexError("expected variable name after $", (start, start + 1))
        match = _NUM.match(src, start)
        if match:
            self.pos = match.end()
            return Token(TokenKind.NUM, match.group()), (start, self.pos)
        raise LexError(f"unexpected character {src[start]!r}", (start, start + 1))


def tokenize(src: str) -> List[SpannedToken]:
    """Split source text into (token, span) pairs; spans are character offsets.

    Raises LexError on malformed input.
    """
    return _Lexer(src).trees()