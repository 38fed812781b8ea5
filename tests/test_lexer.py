import pytest
from hypothesis import given, strategies as st

from jaqlang.lexer import Delim, LexError, Token, TokenKind, tokenize


def kinds(src):
    return [tok.kind for tok, _ in tokenize(src)]


def values(src):
    return [tok.value for tok, _ in tokenize(src)]


def test_simple_sum():
    toks = tokenize("1 + 2")
    assert toks == [
        (Token(TokenKind.NUM, "1"), (0, 1)),
        (Token(TokenKind.OP, "+"), (2, 3)),
        (Token(TokenKind.NUM, "2"), (4, 5)),
    ]


@pytest.mark.parametrize(
    "word, kind",
    [
        ("def", TokenKind.DEF),
        ("if", TokenKind.IF),
        ("then", TokenKind.THEN),
        ("elif", TokenKind.ELIF),
        ("else", TokenKind.ELSE),
        ("end", TokenKind.END),
        ("or", TokenKind.OR),
        ("and", TokenKind.AND),
        ("as", TokenKind.AS),
        ("reduce", TokenKind.REDUCE),
        ("for", TokenKind.FOR),
        ("foreach", TokenKind.FOREACH),
        ("try", TokenKind.TRY),
        ("catch", TokenKind.CATCH),
    ],
)
def test_keywords(word, kind):
    assert tokenize(word) == [(Token(kind), (0, len(word)))]
    assert str(Token(kind)) == word


def test_format_identifier_and_keyword_like():
    assert values("@base64 @if ifx") == ["@base64", "@if", "ifx"]
    assert kinds("@if") == [TokenKind.IDENT]


def test_dots():
    assert kinds("..") == [TokenKind.DOTDOT]
    assert kinds(". .") == [TokenKind.DOT, TokenKind.DOT]
    assert kinds("...") == [TokenKind.DOTDOT, TokenKind.DOT]


def test_operators_take_optional_second_char():
    assert values("// |= == != <= >= += -= !") == [
        "//", "|=", "==", "!=", "<=", ">=", "+=", "-=", "!",
    ]


def test_numbers():
    assert values("1.5e3") == ["1.5e3"]
    assert values("1.") == ["1."]
    assert values("012") == ["0", "12"]
    assert kinds(".5") == [TokenKind.DOT, TokenKind.NUM]
    assert kinds("1e") == [TokenKind.NUM, TokenKind.IDENT]


def test_variable():
    toks = tokenize("$x")
    assert toks == [(Token(TokenKind.VAR, "x"), (0, 2))]
    assert str(toks[0][0]) == "$x"


def test_delimiters_and_spans():
    toks = tokenize("[{(x)}]")
    assert [tok for tok, _ in toks] == [
        Token(TokenKind.OPEN, Delim.BRACK),
        Token(TokenKind.OPEN, Delim.BRACE),
        Token(TokenKind.OPEN, Delim.PAREN),
        Token(TokenKind.IDENT, "x"),
        Token(TokenKind.CLOSE, Delim.PAREN),
        Token(TokenKind.CLOSE, Delim.BRACE),
        Token(TokenKind.CLOSE, Delim.BRACK),
    ]
    assert [span for _, span in toks] == [(i, i + 1) for i in range(7)]
    assert "".join(str(tok) for tok, _ in toks) == "[{(x)}]"


def test_plain_string():
    toks = tokenize('"abc"')
    assert toks == [
        (Token(TokenKind.QUOTE), (0, 1)),
        (Token(TokenKind.STR, "abc"), (1, 4)),
        (Token(TokenKind.QUOTE), (4, 5)),
    ]


def test_empty_string_has_empty_text_token():
    toks = tokenize('""')
    assert toks[1] == (Token(TokenKind.STR, ""), (1, 1))


def test_interpolated_string():
    toks = [tok for tok, _ in tokenize(r'"a\(1)b"')]
    assert toks == [
        Token(TokenKind.QUOTE),
        Token(TokenKind.STR, "a"),
        Token(TokenKind.OPEN, Delim.PAREN),
        Token(TokenKind.NUM, "1"),
        Token(TokenKind.CLOSE, Delim.PAREN),
        Token(TokenKind.STR, "b"),
        Token(TokenKind.QUOTE),
    ]


def test_escapes():
    assert values(r'"\n\t\"\\\/\b\f\r"')[1] == "\n\t\"\\/\b\f\r"
    assert values(r'"\u00e9"')[1] == "\u00e9"


def test_comments_and_whitespace():
    assert values("1 # comment\n  2") == ["1", "2"]


@pytest.mark.parametrize(
    "src",
    ["(1", ")", "[1)", '"abc', r'"\q"', r'"\u12"', r'"\ud800"', "$", "@", "1 # no newline", "^"],
)
def test_errors(src):
    with pytest.raises(LexError):
        tokenize(src)


def test_error_span_points_at_unclosed_delimiter():
    with pytest.raises(LexError) as info:
        tokenize("1 + (2")
    assert info.value.span == (4, 5)


FRAGMENTS = [
    "1", "2.5", "1e3", "foo", "@base64", "$x", "..", ".", ":", ";", ",", "?",
    "|", "|=", "//", "==", "!=", "<=", "+", "-", "*", "/", "%",
    "if", "then", "reduce", "and",
]


@given(st.lists(st.sampled_from(FRAGMENTS), max_size=12))
def test_fragments_round_trip(parts):
    src = " ".join(parts)
    toks = tokenize(src)
    assert [str(tok) for tok, _ in toks] == parts
    for tok, (start, end) in toks:
        assert src[start:end] == str(tok)


@given(st.from_regex(r"[a-z_][a-z0-9_]{0,8}", fullmatch=True))
def test_identifiers(name):
    toks = tokenize(name)
    assert len(toks) == 1
    tok, span = toks[0]
    assert span == (0, len(name))
    assert str(tok) == name