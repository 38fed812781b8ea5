"""Parser turning query source text into syntax trees."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, NoReturn, Optional, Set, Tuple

from jaqlang.lexer import Delim, LexError, Token, TokenKind, tokenize
from jaqlang.ops import MathOp, OrdOp
from jaqlang.precedence import climb
from jaqlang.syntax import (
    Arg,
    ArrayLit,
    AssignOp,
    BinaryKind,
    BinaryOp,
    Call,
    Def,
    FilterCall,
    FilterPart,
    Fold,
    FoldFilter,
    FoldType,
    Identity,
    IfThenElse,
    KeyValFilter,
    KeyValStr,
    Main,
    Neg,
    NumLit,
    ObjectLit,
    Opt,
    PathIndex,
    PathRange,
    Recurse,
    Span,
    Spanned,
    Str,
    StrLit,
    TextPart,
    TryCatch,
    TryFilter,
    VarRef,
    binary,
    make_path,
)


class ParseError(ValueError):
    """Raised when source text is not a well-formed query.

    `found` is the text of the offending token, or None at the end of input;
    `expected` lists what would have been accepted instead.
    """

    def __init__(
        self,
        message: str,
        span: Span,
        found: Optional[str] = None,
        expected: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.found = found
        self.expected = tuple(sorted(expected))


class _NoMatch(Exception):
    """Internal signal that a rule did not match at the current position."""


def _binary_ops() -> dict:
    table = {"|": BinaryOp(BinaryKind.PIPE), "//": BinaryOp(BinaryKind.ALT)}
    table.update({str(op): BinaryOp(BinaryKind.ASSIGN, op) for op in AssignOp})
    table.update({str(op): BinaryOp(BinaryKind.ORD, op) for op in OrdOp})
    table.update({str(op): BinaryOp(BinaryKind.MATH, op) for op in MathOp})
    return table


_OPERATORS = _binary_ops()

_FOLD_TYPES = {
    TokenKind.REDUCE: FoldType.REDUCE,
    TokenKind.FOR: FoldType.FOR,
    TokenKind.FOREACH: FoldType.FOREACH,
}


def _describe(kind: TokenKind, value: Any = None) -> str:
    if kind is TokenKind.OPEN:
        return value.open
    if kind is TokenKind.CLOSE:
        return value.close
    if value is not None:
        return str(value)
    return kind.value


class _Parser:
    def __init__(self, tokens: List[Tuple[Token, Span]], length: int) -> None:
        self.tokens = tokens
        self.length = length
        self.pos = 0
        self._far = -1
        self._expected: Set[str] = set()

    # -- low-level helpers ------------------------------------------------

    def _peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        return self.tokens[index][0] if index < len(self.tokens) else None

    def _is(self, kind: TokenKind, value: Any = None, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.kind is kind and (value is None or token.value == value)

    def _take(self) -> Tuple[Token, Span]:
        item = self.tokens[self.pos]
        self.pos += 1
        return item

    def _note(self, label: str) -> None:
        if self.pos > self._far:
            self._far = self.pos
            self._expected = {label}
        elif self.pos == self._far:
            self._expected.add(label)

    def _fail(self, label: str) -> NoReturn:
        self._note(label)
        raise _NoMatch

    def _expect(self, kind: TokenKind, value: Any = None, label: Optional[str] = None) -> Tuple[Token, Span]:
        if self._is(kind, value):
            return self._take()
        self._fail(label or _describe(kind, value))

    def _accept(self, kind: TokenKind, value: Any = None) -> bool:
        if self._is(kind, value):
            self.pos += 1
            return True
        self._note(_describe(kind, value))
        return False

    def _attempt(self, rule: Callable[..., Any], *args: Any) -> Any:
        saved = self.pos
        try:
            return rule(*args)
        except _NoMatch:
            self.pos = saved
            return None

    def _span_from(self, start: int) -> Span:
        return (self.tokens[start][1][0], self.tokens[self.pos - 1][1][1])

    def _separated(self, item: Callable[[], Any], sep: TokenKind, allow_trailing: bool = False) -> list:
        first = self._attempt(item)
        if first is None:
            return []
        items = [first]
        while True:
            saved = self.pos
            if not self._accept(sep):
                break
            following = self._attempt(item)
            if following is None:
                if not allow_trailing:
                    self.pos = saved
                break
            items.append(following)
        return items

    def end(self) -> None:
        if self.pos < len(self.tokens):
            self._fail("end of input")

    def error(self) -> ParseError:
        index = max(self._far, 0)
        if index < len(self.tokens):
            token, span = self.tokens[index]
            found: Optional[str] = str(token)
            head = f"Unexpected token {found}"
        else:
            span, found = (self.length, self.length + 1), None
            head = "Unexpected end of input"
        expected = sorted(self._expected)
        wanted = ", ".join(expected) if expected else "something else"
        return ParseError(f"{head}, expected {wanted}", span, found, expected)

    # -- definitions ------------------------------------------------------

    def main(self) -> Main:
        defs = self.defs()
        return Main(defs, self.filter())

    def defs(self) -> list:
        defs = []
        while True:
            definition = self._attempt(self.definition)
            if definition is None:
                return defs
            defs.append(definition)

    def definition(self) -> Def:
        self._expect(TokenKind.DEF)
        lhs = self.call(self.def_arg)
        self._expect(TokenKind.COLON)
        rhs = self.main()
        self._expect(TokenKind.SEMICOLON)
        return Def(lhs, rhs)

    def def_arg(self) -> Arg:
        if self._is(TokenKind.IDENT):
            return Arg.new_filter(self._take()[0].value)
        if self._is(TokenKind.VAR):
            return Arg.new_var(self._take()[0].value)
        self._fail("argument")

    def call(self, arg: Callable[[], Any]) -> Call:
        name = self._expect(TokenKind.IDENT, label="filter name")[0].value
        args = self._attempt(self.call_args, arg)
        return Call(name, args or [])

    def call_args(self, arg: Callable[[], Any]) -> list:
        self._expect(TokenKind.OPEN, Delim.PAREN)
        args = self._separated(arg, TokenKind.SEMICOLON)
        self._expect(TokenKind.CLOSE, Delim.PAREN)
        return args

    # -- filters ----------------------------------------------------------

    def filter(self, with_comma: bool = True) -> Spanned:
        first = self.try_catch()
        rest = []
        while True:
            saved = self.pos
            op = self._attempt(self.binary_op, with_comma)
            if op is None:
                break
            operand = self._attempt(self.try_catch)
            if operand is None:
                self.pos = saved
                break
            rest.append((op, operand))
        return climb(first, rest, binary)

    def binary_op(self, with_comma: bool) -> BinaryOp:
        token = self._peek()
        if token is not None:
            if token.kind is TokenKind.AS:
                self._take()
                var = self._expect(TokenKind.VAR, label="variable")[0].value
                self._expect(TokenKind.OP, "|")
                return BinaryOp(BinaryKind.PIPE, var=var)
            if token.kind is TokenKind.OP and token.value in _OPERATORS:
                self._take()
                return _OPERATORS[token.value]
            if token.kind is TokenKind.OR:
                self._take()
                return BinaryOp(BinaryKind.OR)
            if token.kind is TokenKind.AND:
                self._take()
                return BinaryOp(BinaryKind.AND)
            if with_comma and token.kind is TokenKind.COMMA:
                self._take()
                return BinaryOp(BinaryKind.COMMA)
        self._fail("binary operator")

    def try_catch(self) -> Spanned:
        if not self._is(TokenKind.TRY):
            return self.negation()
        start = self.pos
        self._take()
        body = self.try_catch()
        handler = self._attempt(self.catch)
        return (TryCatch(body, handler), self._span_from(start))

    def catch(self) -> Spanned:
        self._expect(TokenKind.CATCH)
        return self.try_catch()

    def negation(self) -> Spanned:
        minuses = []
        while self._is(TokenKind.OP, "-"):
            minuses.append(self._take()[1])
        inner = self.postfix_try()
        for span in reversed(minuses):
            inner = (Neg(inner), (span[0], inner[1][1]))
        return inner

    def postfix_try(self) -> Spanned:
        start = self.pos
        inner = self.named()
        marks = 0
        while self._is(TokenKind.QUESTION):
            self._take()
            marks += 1
        if not marks:
            return inner
        return (TryFilter(inner), self._span_from(start))

    def named(self) -> Spanned:
        token = self._peek()
        if token is not None and token.kind in _FOLD_TYPES:
            return self.fold()
        if token is not None and token.kind is TokenKind.IF:
            return self.if_then_else()
        return self.path_filter()

    def fold(self) -> Spanned:
        start = self.pos
        fold_type = _FOLD_TYPES[self._take()[0].kind]
        xs = self.filter()
        self._expect(TokenKind.AS)
        x = self._expect(TokenKind.VAR, label="variable")[0].value
        self._expect(TokenKind.OPEN, Delim.PAREN)
        init = self.filter()
        self._expect(TokenKind.SEMICOLON)
        update = self.filter()
        self._expect(TokenKind.CLOSE, Delim.PAREN)
        return (FoldFilter(fold_type, Fold(xs, x, init, update)), self._span_from(start))

    def if_then_else(self) -> Spanned:
        start = self.pos
        self._expect(TokenKind.IF)
        branches = [self.condition_then()]
        while self._accept(TokenKind.ELIF):
            branches.append(self.condition_then())
        otherwise = self.filter() if self._accept(TokenKind.ELSE) else None
        self._expect(TokenKind.END)
        return (IfThenElse(branches, otherwise), self._span_from(start))

    def condition_then(self) -> Tuple[Spanned, Spanned]:
        condition = self.filter()
        self._expect(TokenKind.THEN)
        return condition, self.filter()

    # -- paths ------------------------------------------------------------

    def path_filter(self) -> Spanned:
        start = self.pos
        if self._is(TokenKind.DOT):
            base = (Identity(), self._take()[1])
            parts = self._attempt(self.identity_path) or []
        else:
            base = self.atom()
            parts = self.path_parts()
        return make_path(base, parts, self._span_from(start))

    def identity_path(self) -> list:
        if self._is(TokenKind.OPEN, Delim.BRACK):
            part = self.bracket()
        else:
            part = self.index()
        return [(part, self.opt()), *self.path_parts()]

    def path_parts(self) -> list:
        parts = []
        while True:
            part = self._attempt(self.path_part)
            if part is None:
                return parts
            parts.append(part)

    def path_part(self) -> tuple:
        if self._accept(TokenKind.DOT):
            part = self.bracket() if self._is(TokenKind.OPEN, Delim.BRACK) else self.index()
        elif self._is(TokenKind.OPEN, Delim.BRACK):
            part = self.bracket()
        else:
            self._fail("path")
        return (part, self.opt())

    def opt(self) -> Opt:
        if self._is(TokenKind.QUESTION):
            self._take()
            return Opt.OPTIONAL
        return Opt.ESSENTIAL

    def index(self) -> PathIndex:
        start = self.pos
        key = self.key()
        return PathIndex((StrLit(key), self._span_from(start)))

    def key(self) -> Str:
        if self._is(TokenKind.IDENT):
            return Str.from_text(self._take()[0].value)
        self._note("object key")
        return self.string()

    def bracket(self) -> Any:
        self._expect(TokenKind.OPEN, Delim.BRACK)
        part = self.range_inner()
        self._expect(TokenKind.CLOSE, Delim.BRACK)
        return part

    def range_inner(self) -> Any:
        first = self._attempt(self.filter)
        if first is not None:
            if self._accept(TokenKind.COLON):
                return PathRange(first, self._attempt(self.filter))
            return PathIndex(first)
        if self._is(TokenKind.COLON):
            saved = self.pos
            self._take()
            end = self._attempt(self.filter)
            if end is not None:
                return PathRange(None, end)
            self.pos = saved
        return PathRange()

    # -- atoms ------------------------------------------------------------

    def atom(self) -> Spanned:
        token = self._peek()
        if token is None:
            self._fail("filter")
        kind = token.kind
        if kind is TokenKind.OPEN and token.value is Delim.PAREN:
            return self.parenthesised()
        if kind is TokenKind.QUOTE or (
            kind is TokenKind.IDENT
            and token.value.startswith("@")
            and self._is(TokenKind.QUOTE, offset=1)
        ):
            start = self.pos
            text = self.string()
            return (StrLit(text), self._span_from(start))
        if kind is TokenKind.NUM:
            return (NumLit(token.value), self._take()[1])
        if kind is TokenKind.OPEN and token.value is Delim.BRACK:
            return self.array()
        if kind is TokenKind.OPEN and token.value is Delim.BRACE:
            return self.object()
        if kind is TokenKind.IDENT:
            start = self.pos
            call = self.call(self.filter)
            return (FilterCall(call.name, call.args), self._span_from(start))
        if kind is TokenKind.VAR:
            return (VarRef(token.value), self._take()[1])
        if kind is TokenKind.DOTDOT:
            return (Recurse(), self._take()[1])
        self._fail("filter")

    def parenthesised(self) -> Spanned:
        self._expect(TokenKind.OPEN, Delim.PAREN)
        inner = self.filter()
        self._expect(TokenKind.CLOSE, Delim.PAREN)
        return inner

    def array(self) -> Spanned:
        start = self.pos
        self._expect(TokenKind.OPEN, Delim.BRACK)
        inner = self._attempt(self.filter)
        self._expect(TokenKind.CLOSE, Delim.BRACK)
        return (ArrayLit(inner), self._span_from(start))

    def object(self) -> Spanned:
        start = self.pos
        self._expect(TokenKind.OPEN, Delim.BRACE)
        items = self._separated(self.key_value, TokenKind.COMMA, allow_trailing=True)
        self._expect(TokenKind.CLOSE, Delim.BRACE)
        return (ObjectLit(items), self._span_from(start))

    def key_value(self) -> Any:
        if self._is(TokenKind.OPEN, Delim.PAREN):
            key = self.parenthesised()
            self._expect(TokenKind.COLON)
            return KeyValFilter(key, self.filter(with_comma=False))
        key = self.key()
        return KeyValStr(key, self._attempt(self.object_value))

    def object_value(self) -> Spanned:
        self._expect(TokenKind.COLON)
        return self.filter(with_comma=False)

    def string(self) -> Str:
        fmt = None
        token = self._peek()
        if token is not None and token.kind is TokenKind.IDENT and token.value.startswith("@"):
            span = self._take()[1]
            fmt = (FilterCall(token.value, []), span)
        self._expect(TokenKind.QUOTE, label="string")
        parts: list = [TextPart(self._expect(TokenKind.STR, label="string")[0].value)]
        while self._is(TokenKind.OPEN, Delim.PAREN):
            parts.append(FilterPart(self.parenthesised()))
            parts.append(TextPart(self._expect(TokenKind.STR, label="string")[0].value))
        self._expect(TokenKind.QUOTE)
        return Str(fmt, [part for part in parts if not part.is_empty()])


def _run(src: str, rule: Callable[[_Parser], Any]) -> Any:
    try:
        tokens = tokenize(src)
    except LexError as exc:
        raise ParseError(exc.message, exc.span) from exc
    parser = _Parser(tokens, len(src))
    try:
        result = rule(parser)
        parser.end()
    except _NoMatch:
        raise parser.error() from None
    return result


def parse_main(src: str) -> Main:
    """Parse definitions followed by a filter; raise ParseError if malformed."""
    return _run(src, _Parser.main)


def parse_defs(src: str) -> list:
    """Parse a sequence of definitions; raise ParseError if malformed."""
    return _run(src, _Parser.defs)