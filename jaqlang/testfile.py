"""Reader for files of query unit tests."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Iterable, Iterator


@dataclass(frozen=True)
class TestCase:
    """A single unit test: filter, JSON input and expected JSON outputs."""

    __test__ = False

    filter: str
    input: str
    output: list = field(default_factory=list)


def _chomp(line: str) -> str:
    return line.removesuffix("\n").removesuffix("\r")


def parse_tests(lines: Iterable[str]) -> Iterator[TestCase]:
    """Yield test cases from lines.

    Blank lines and lines starting with `#` before a test are skipped.
    A test is a filter line, an input line and output lines up to the
    next blank line.
    """
    it = (_chomp(line) for line in lines)
    while True:
        filter_ = next((line for line in it if line and not line.startswith("#")), None)
        if filter_ is None:
            return
        input_ = next(it, None)
        if input_ is None:
            return
        output = list(itertools.takewhile(bool, it))
        yield TestCase(filter_, input_, output)