"""Syntax tree of the query language."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Tuple, Union

from jaqlang.ops import MathOp, OrdOp

Span = Tuple[int, int]
"""Position information: start and end offsets."""

Spanned = Tuple[Any, Span]
"""An object paired with its position information."""


# ---------------------------------------------------------------------------
# Definitions


@dataclass(frozen=True)
class Call:
    """Call to a filter identified by a name, with arguments."""

    name: str
    args: list = field(default_factory=list)

    def map_args(self, f: Callable[[Any], Any]) -> Call:
        """Apply a function to the call arguments."""
        return Call(self.name, [f(arg) for arg in self.args])


class ArgKind(Enum):
    """How an argument of a definition is bound."""

    VAR = "var"
    FUN = "fun"


@dataclass(frozen=True)
class Arg:
    """Argument of a definition, such as `$v` or `f` in `def foo($v; f): ...`."""

    kind: ArgKind
    name: Any

    @classmethod
    def new_var(cls, name: Any) -> Arg:
        """Create a variable argument with given name (without leading "$")."""
        return cls(ArgKind.VAR, name)

    @classmethod
    def new_filter(cls, name: Any) -> Arg:
        """Create a filter argument with given name."""
        return cls(ArgKind.FUN, name)

    def is_var(self) -> bool:
        """True if the argument is a variable."""
        return self.kind is ArgKind.VAR

    def get_var(self) -> Any:
        """The variable name if this is a variable argument, else None."""
        return self.name if self.is_var() else None

    def get_filter(self) -> Any:
        """The filter name if this is a filter argument, else None."""
        return None if self.is_var() else self.name

    def map(self, f: Callable[[Any], Any]) -> Arg:
        """Apply a function to the bound name, keeping the binding kind."""
        return Arg(self.kind, f(self.name))

    def __str__(self) -> str:
        return f"${self.name}" if self.is_var() else str(self.name)


@dataclass(frozen=True)
class Def:
    """A definition, such as `def map(f): [.[] | f];`."""

    lhs: Call
    rhs: Main


@dataclass(frozen=True)
class Main:
    """Possibly empty sequence of definitions, followed by a filter."""

    defs: list
    body: Spanned


# ---------------------------------------------------------------------------
# Operators


class AssignOp(Enum):
    """Assignment operators, such as `=`, `|=` and `+=`."""

    ASSIGN = "="
    UPDATE = "|="
    ADD = "+="
    SUB = "-="
    MUL = "*="
    DIV = "/="
    REM = "%="

    @classmethod
    def update_with(cls, op: MathOp) -> AssignOp:
        """The updating assignment for an arithmetic operator."""
        return cls(f"{op}=")

    @property
    def math(self) -> Optional[MathOp]:
        """The arithmetic operator of an updating assignment, if any."""
        if self in (AssignOp.ASSIGN, AssignOp.UPDATE):
            return None
        return MathOp(self.value[:-1])

    def __str__(self) -> str:
        return self.value


class BinaryKind(Enum):
    """The kind of a binary operator."""

    PIPE = "pipe"
    COMMA = "comma"
    ALT = "alt"
    OR = "or"
    AND = "and"
    MATH = "math"
    ASSIGN = "assign"
    ORD = "ord"


_OPERAND_TYPES = {
    BinaryKind.MATH: MathOp,
    BinaryKind.ASSIGN: AssignOp,
    BinaryKind.ORD: OrdOp,
}

_FIXED_PREC = {
    BinaryKind.PIPE: 0,
    BinaryKind.COMMA: 1,
    BinaryKind.ASSIGN: 2,
    BinaryKind.ALT: 3,
    BinaryKind.OR: 4,
    BinaryKind.AND: 5,
}

_AND_PREC = _FIXED_PREC[BinaryKind.AND]

_ORD_PREC = {
    OrdOp.EQ: _AND_PREC + 1,
    OrdOp.NE: _AND_PREC + 1,
    OrdOp.LT: _AND_PREC + 2,
    OrdOp.GT: _AND_PREC + 2,
    OrdOp.LE: _AND_PREC + 2,
    OrdOp.GE: _AND_PREC + 2,
}

_MATH_PREC = {
    MathOp.ADD: _AND_PREC + 3,
    MathOp.SUB: _AND_PREC + 3,
    MathOp.MUL: _AND_PREC + 4,
    MathOp.DIV: _AND_PREC + 4,
    MathOp.REM: _AND_PREC + 5,
}


@dataclass(frozen=True)
class BinaryOp:
    """Binary operator, such as `|`, `,`, `//`, `+` or `==`.

    `op` holds the operator for the math, assignment and ordering kinds;
    `var` holds the bound variable of `l as $x | r`.
    """

    kind: BinaryKind
    op: Union[MathOp, AssignOp, OrdOp, None] = None
    var: Optional[str] = None

    def __post_init__(self) -> None:
        expected = _OPERAND_TYPES.get(self.kind)
        if expected is None:
            if self.op is not None:
                raise ValueError(f"{self.kind.value} operator takes no operand")
        elif not isinstance(self.op, expected):
            raise TypeError(f"{self.kind.value} operator needs a {expected.__name__}")
        if self.var is not None and self.kind is not BinaryKind.PIPE:
            raise ValueError("only a pipe may bind a variable")

    def prec(self) -> int:
        """Binding strength: higher binds tighter."""
        if self.kind is BinaryKind.ORD:
            return _ORD_PREC[self.op]
        if self.kind is BinaryKind.MATH:
            return _MATH_PREC[self.op]
        return _FIXED_PREC[self.kind]

    def right_assoc(self) -> bool:
        """True for pipes and assignments."""
        return self.kind in (BinaryKind.PIPE, BinaryKind.ASSIGN)


# ---------------------------------------------------------------------------
# Object construction


@dataclass(frozen=True)
class KeyValFilter:
    """Both key and value are filters, e.g. `{(.+1): .+2}`."""

    key: Any
    value: Any

    def map(self, f: Callable[[Any], Any]) -> KeyValFilter:
        """Apply a function to the contained filters."""
        key = f(self.key)
        return KeyValFilter(key, f(self.value))


@dataclass(frozen=True)
class KeyValStr:
    """Key is a string and value is optional, e.g. `{a: 1, b}`."""

    key: Str
    value: Any = None

    def map(self, f: Callable[[Any], Any]) -> KeyValStr:
        """Apply a function to the contained filters."""
        key = self.key.map(f)
        value = None if self.value is None else f(self.value)
        return KeyValStr(key, value)


KeyVal = Union[KeyValFilter, KeyValStr]


# ---------------------------------------------------------------------------
# Folding


@dataclass(frozen=True)
class Fold:
    """Common information for folding filters such as `reduce` and `foreach`."""

    xs: Any
    x: str
    init: Any
    f: Any


class FoldType(Enum):
    """Type of folding filter."""

    REDUCE = "reduce"
    FOR = "for"
    FOREACH = "foreach"


# ---------------------------------------------------------------------------
# Paths


@dataclass(frozen=True)
class PathIndex:
    """Access arrays with integer and objects with string indices."""

    index: Any

    def map(self, f: Callable[[Any], Any]) -> PathIndex:
        """Apply a function to the contained index."""
        return PathIndex(f(self.index))


@dataclass(frozen=True)
class PathRange:
    """Iterate over arrays with optional bounds, or over objects."""

    start: Any = None
    end: Any = None

    def map(self, f: Callable[[Any], Any]) -> PathRange:
        """Apply a function to the contained bounds."""
        start = None if self.start is None else f(self.start)
        end = None if self.end is None else f(self.end)
        return PathRange(start, end)


PathPart = Union[PathIndex, PathRange]


class Opt(Enum):
    """Whether a path part is marked with `?`."""

    OPTIONAL = "optional"
    ESSENTIAL = "essential"

    def fail(self, x: Any, f: Callable[[Any], BaseException]) -> Any:
        """Return `x` if optional, otherwise raise the exception `f(x)`."""
        if self is Opt.OPTIONAL:
            return x
        raise f(x)

    def collect(self, items: Iterable[Any]) -> list:
        """Collect results, where exception instances stand for failures.

        Optional parts drop failures; essential parts raise the first one.
        """
        if self is Opt.OPTIONAL:
            return [x for x in items if not isinstance(x, BaseException)]
        collected = []
        for x in items:
            if isinstance(x, BaseException):
                raise x
            collected.append(x)
        return collected


# ---------------------------------------------------------------------------
# Interpolated strings


@dataclass(frozen=True)
class TextPart:
    """Constant part of an interpolated string."""

    text: str

    def map(self, f: Callable[[Any], Any]) -> TextPart:
        """Constant text holds no filter, so it stays the same."""
        return self

    def is_empty(self) -> bool:
        """True if the text is empty."""
        return not self.text


@dataclass(frozen=True)
class FilterPart:
    """Interpolated filter of a string."""

    filter: Any

    def map(self, f: Callable[[Any], Any]) -> FilterPart:
        """Apply a function to the interpolated filter."""
        return FilterPart(f(self.filter))

    def is_empty(self) -> bool:
        """An interpolated filter is never empty."""
        return False


StrPart = Union[TextPart, FilterPart]


@dataclass(frozen=True)
class Str:
    """A possibly interpolated string.

    `fmt` is applied to the outputs of interpolated filters
    (`tostring` if not given).
    """

    fmt: Any = None
    parts: list = field(default_factory=list)

    def map(self, f: Callable[[Any], Any]) -> Str:
        """Apply a function to the contained filters."""
        fmt = None if self.fmt is None else f(self.fmt)
        return Str(fmt, [part.map(f) for part in self.parts])

    @classmethod
    def from_text(cls, text: str) -> Str:
        """A string consisting of constant text only."""
        return cls(None, [TextPart(text)])


# ---------------------------------------------------------------------------
# Filters


@dataclass(frozen=True)
class FilterCall:
    """Call to another filter, e.g. `map(.+1)`."""

    name: str
    args: list = field(default_factory=list)


@dataclass(frozen=True)
class VarRef:
    """Variable such as `$x` (name without the leading `$`)."""

    name: str


@dataclass(frozen=True)
class NumLit:
    """Integer or floating-point number, kept as written."""

    value: str


@dataclass(frozen=True)
class StrLit:
    """String literal, possibly interpolated."""

    value: Str


@dataclass(frozen=True)
class ArrayLit:
    """Array construction; empty if `inner` is None."""

    inner: Optional[Spanned] = None


@dataclass(frozen=True)
class ObjectLit:
    """Object construction from key-value pairs."""

    items: list = field(default_factory=list)


@dataclass(frozen=True)
class Identity:
    """Identity, i.e. `.`."""


@dataclass(frozen=True)
class PathFilter:
    """Path such as `.a`, `.[][]."b"` applied to the output of `base`."""

    base: Spanned
    path: list


@dataclass(frozen=True)
class IfThenElse:
    """If-then-elif-else; `branches` holds (condition, consequence) pairs."""

    branches: list
    otherwise: Optional[Spanned] = None


@dataclass(frozen=True)
class FoldFilter:
    """`reduce`, `for` and `foreach`, e.g. `reduce .[] as $x (0; .+$x)`."""

    type: FoldType
    fold: Fold


@dataclass(frozen=True)
class TryCatch:
    """`try` with an optional `catch`."""

    body: Spanned
    handler: Optional[Spanned] = None


@dataclass(frozen=True)
class TryFilter:
    """Error suppression, e.g. `keys?`."""

    body: Spanned


@dataclass(frozen=True)
class Neg:
    """Negation."""

    body: Spanned


@dataclass(frozen=True)
class Recurse:
    """Recursion, i.e. `..`."""


@dataclass(frozen=True)
class Binary:
    """Binary operation, such as `0, 1`, `[] | .[]` or `0 == 0`."""

    lhs: Spanned
    op: BinaryOp
    rhs: Spanned


Filter = Union[
    FilterCall,
    VarRef,
    NumLit,
    StrLit,
    ArrayLit,
    ObjectLit,
    Identity,
    PathFilter,
    IfThenElse,
    FoldFilter,
    TryCatch,
    TryFilter,
    Neg,
    Recurse,
    Binary,
]


def binary(a: Spanned, op: BinaryOp, b: Spanned) -> Spanned:
    """Create a binary expression spanning both operands."""
    span = (a[1][0], b[1][1])
    return (Binary(a, op, b), span)


def make_path(f: Spanned, path: list, span: Span) -> Spanned:
    """Apply a path to the outputs of `f`; an empty path leaves `f` as is."""
    if not path:
        return f
    return (PathFilter(f, path), span)