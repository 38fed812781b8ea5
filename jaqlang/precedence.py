"""Precedence climbing over a flat sequence of operands and operators."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Optional, Tuple


def _climbs(op: Any, following: Any) -> bool:
    return following.prec() > op.prec() or (
        following.right_assoc() and following.prec() == op.prec()
    )


class _Climber:
    def __init__(self, rest: Iterator[Tuple[Any, Any]], from_op: Callable[[Any, Any, Any], Any]):
        self._rest = rest
        self._from_op = from_op
        self._next: Optional[Tuple[Any, Any]] = next(rest, None)

    def parse(self, lhs: Any, min_prec: int) -> Any:
        while self._next is not None:
            op, rhs = self._next
            if op.prec() < min_prec:
                return lhs
            self._next = next(self._rest, None)
            while self._next is not None:
                following = self._next[0]
                if not _climbs(op, following):
                    break
                rhs = self.parse(rhs, following.prec())
            lhs = self._from_op(lhs, op, rhs)
        return lhs


def climb(first: Any, rest: Iterable[Tuple[Any, Any]], from_op: Callable[[Any, Any, Any], Any]) -> Any:
    """Combine `first` and the (operator, operand) pairs of `rest` into one tree.

    Operators provide `prec()` (higher binds tighter) and `right_assoc()`;
    `from_op(lhs, op, rhs)` builds each node.
    """
    return _Climber(iter(rest), from_op).parse(first, 0)