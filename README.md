# jaqlang

Lexer, parser and syntax tree for a jq-like JSON query language.

`jaqlang` turns filter source such as `.[] | select(.a > 1)` or
`def inc(f): f + 1; map(inc(.))` into a tree of plain, immutable Python
objects. You can inspect that tree, transform it or hand it to an
evaluator of your own. It uses only the standard library.

## Installation

```
pip install .
```

To install with the test tools as well:

```
pip install ".[test]"
```

## Parsing filters

```python
from jaqlang.parser import parse_main, parse_defs, ParseError

main = parse_main(".a[1:] // 0")
print(main.defs)   # definitions given before the body
print(main.body)   # (filter, span) pair for the body

defs = parse_defs("def inc: . + 1; def twice(f): f | f;")
for d in defs:
    print(d.lhs.name, d.lhs.args)
```

`parse_main` reads definitions followed by a filter and returns a `Main`;
`parse_defs` reads definitions only and returns a list of `Def`.

Input that does not lex or parse raises `ParseError`. Its attributes are
`message`, `span` (start and end character offsets), `found` (the text of
the offending token, or `None` at the end of input) and `expected` (a
sorted tuple of what would have been accepted there).

```python
try:
    parse_main("1 +")
except ParseError as err:
    print(err.message, err.span)
```

## Syntax tree

The classes in `jaqlang.syntax` describe the tree:

- filters: `FilterCall`, `VarRef`, `NumLit`, `StrLit`, `ArrayLit`,
  `ObjectLit`, `Identity`, `PathFilter`, `IfThenElse`, `FoldFilter`,
  `TryCatch`, `TryFilter`, `Neg`, `Recurse` and `Binary`
- operators: `BinaryOp` (with its `BinaryKind`, `prec()` and
  `right_assoc()`), `AssignOp`, together with `MathOp` and `OrdOp` from
  `jaqlang.ops`
- object entries: `KeyValFilter` and `KeyValStr`
- folds: `Fold` and `FoldType`
- definitions: `Def`, `Main`, `Call` and `Arg`
- paths: `PathIndex`, `PathRange` and `Opt`
- strings: `Str`, `TextPart` and `FilterPart`

Every filter in the tree is paired with its span, the character range
`(start, end)` it covers in the source. The helpers `binary(a, op, b)` and
`make_path(f, path, span)` build spanned binary and path nodes.

`MathOp.run` and `OrdOp.run` apply an operator to two Python values:

```python
from jaqlang.ops import MathOp, OrdOp

MathOp.ADD.run(1, 2)      # 3
OrdOp.LE.run("a", "b")    # True
```

## Tokens

`jaqlang.lexer.tokenize` splits source text into a flat list of
`(Token, span)` pairs. A `Token` has a `kind` (a `TokenKind`) and a
`value`: the text for numbers, strings, operators, identifiers and
variables, a `Delim` for brackets, and `None` otherwise. Comments
starting with `#` and whitespace are skipped. Malformed input, such as an
unclosed bracket or string, raises `LexError` with `message` and `span`.

## Precedence climbing

`jaqlang.precedence.climb(first, rest, from_op)` combines an operand and
a sequence of `(operator, operand)` pairs into one tree. Operators must
provide `prec()` and `right_assoc()`; `from_op(lhs, op, rhs)` builds each
node. The parser uses it with `BinaryOp` and `syntax.binary`.

## Test files

`jaqlang.testfile.parse_tests` reads the line-based test format.

```
# a comment
.[0]
[1, 2]
1
```

Each test has a filter line, an input line and then its expected output
lines, and ends at the first blank line. Blank lines and `#` comment
lines before a test are skipped. It yields `TestCase` objects with the
fields `filter`, `input` and `output`, all kept as text.

## What this package does not do

`jaqlang` stops at the syntax tree. It does not evaluate filters against
JSON values, it ships no library of predefined filters such as `map` or
`select`, and it has no command-line tool for querying JSON files.