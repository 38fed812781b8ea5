"""Arithmetic and ordering operators of the query language."""

from __future__ import annotations

import operator
from enum import Enum
from typing import Any


class MathOp(Enum):
    """Arithmetic operation, such as `+`, `-`, `*`, `/`, `%`."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    REM = "%"

    def run(self, l: Any, r: Any) -> Any:
        """Perform the arithmetic operation on the given inputs."""
        return _MATH_FUNCS[self](l, r)

    def __str__(self) -> str:
        return self.value


_MATH_FUNCS = {
    MathOp.ADD: operator.add,
    MathOp.SUB: operator.sub,
    MathOp.MUL: operator.mul,
    MathOp.DIV: operator.truediv,
    MathOp.REM: operator.mod,
}


class OrdOp(Enum):
    """An operation that orders two values, such as `<`, `<=`, `==`."""

    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    EQ = "=="
    NE = "!="

    def run(self, l: Any, r: Any) -> bool:
        """Perform the ordering operation on the given inputs."""
        return _ORD_FUNCS[self](l, r)

    def __str__(self) -> str:
        return self.value


_ORD_FUNCS = {
    OrdOp.LT: operator.lt,
    OrdOp.LE: operator.le,
    OrdOp.GT: operator.gt,
    OrdOp.GE: operator.ge,
    OrdOp.EQ: operator.eq,
    OrdOp.NE: operator.ne,
}