import pytest
from hypothesis import given
from hypothesis import strategies as st

from tala.tala_constants import token_hashmap
from tala.tala_errors import ErrorCollector, ErrorKind
from tala.tala_lexer import CharacterStream, Lexer, Token, tokenize
from tala.tala_source import SourceFile, Span


def lex(source: str) -> tuple[list[Token], ErrorCollector]:
    errors = ErrorCollector()
    tokens = tokenize(source, errors)
    assert tokens[-1].type == "EOF"
    return tokens[:-1], errors


def types(source: str) -> list[str]:
    tokens, _ = lex(source)
    return [t.type for t in tokens]


@pytest.mark.parametrize("spelling,type_", sorted(token_hashmap.items()))  # type: ignore[misc]
def test_every_operator_spelling(spelling: str, type_: str) -> None:
    tokens, errors = lex(f" {spelling} ")
    assert [(t.type, t.value) for t in tokens] == [(type_, spelling)]
    assert not errors


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("~|!", ["BOR_NOT"]),
        ("~|", ["BOR"]),
        ("<=>", ["CMP"]),
        ("<=", ["LE"]),
        ("<-<", ["ROTL"]),
        ("<-", ["LT", "SUB"]),
        (">->", ["ROTR"]),
        ("->", ["ARROW"]),
        ("#^-", ["CLS"]),
        ("^!", ["XOR_NOT"]),
        ("^/", ["SQRT"]),
        ("||", ["OR", "OR"]),
        ("a|!b", ["IDENT", "OR_NOT", "IDENT"]),
    ],
)
def test_operators_longest_match(source: str, expected: list[str]) -> None:
    assert types(source) == expected


def test_spans_are_byte_offsets() -> None:
    tokens, _ = lex("x = 1u8")
    assert [t.span for t in tokens] == [Span(0, 1), Span(2, 3), Span(4, 7)]
    eof = tokenize("x = 1u8")[-1]
    assert eof.span == Span(7, 7)


def test_spans_count_utf8_bytes() -> None:
    tokens, _ = lex("größe = 1u8")
    assert tokens[0].type == "IDENT"
    assert tokens[0].value == "größe"
    assert tokens[0].span == Span(0, 7)
    assert tokens[1].span == Span(8, 9)
    assert tokens[2].span == Span(10, 13)


@pytest.mark.parametrize(  # type: ignore[misc]
    "literal",
    [
        "0u8",
        "255u8",
        "65535u16",
        "18446744073709551615u64",
        "0i32",
        "-128i8",
        "42i64",
        "3.5f32",
        "-1e10f64",
        "2E+3f32",
        "7f64",
        "0.25e-3f64",
        "256u8",
    ],
)
def test_typed_number_literals(literal: str) -> None:
    tokens, errors = lex(literal)
    assert [(t.type, t.value) for t in tokens] == [("NUMBER", literal)]
    assert not errors


def test_number_takes_priority_over_minus() -> None:
    assert types("-1i32") == ["NUMBER"]
    assert types("- 1i32") == ["SUB", "NUMBER"]
    assert types("a -1i32") == ["IDENT", "NUMBER"]
    assert types("a - 1i32") == ["IDENT", "SUB", "NUMBER"]


def test_unsigned_literal_has_no_sign() -> None:
    tokens, errors = lex("-1u8")
    assert [(t.type, t.value) for t in tokens] == [("SUB", "-"), ("NUMBER", "1u8")]
    assert not errors


def test_suffix_ends_number() -> None:
    assert types("1u8x") == ["NUMBER", "IDENT"]
    assert types("x1u8") == ["IDENT"]


@pytest.mark.parametrize("literal", ["3.0u8", "12", "01u8", "1.5", "1e5", "7i"])  # type: ignore[misc]
def test_malformed_number_is_one_lexical_error(literal: str) -> None:
    tokens, errors = lex(literal)
    assert [(t.type, t.value) for t in tokens] == [("ERROR", literal)]
    assert len(errors) == 1
    error = errors.errors[0]
    assert error.kind is ErrorKind.LEXICAL
    assert error.span == Span(0, len(literal))


def test_dangling_exponent_reaches_number_interpreter() -> None:
    tokens, errors = lex("1ef64 2.5e+f32")
    assert [t.type for t in tokens] == ["NUMBER", "NUMBER"]
    assert not errors


def test_malformed_number_recovers() -> None:
    tokens, errors = lex("12 + 1u8")
    assert [t.type for t in tokens] == ["ERROR", "PLUS", "NUMBER"]
    assert len(errors) == 1


@pytest.mark.parametrize("name", ["x", "_x1", "snake_case", "café", "Δt", "x1u8"])  # type: ignore[misc]
def test_identifiers(name: str) -> None:
    tokens, errors = lex(name)
    assert [(t.type, t.value) for t in tokens] == [("IDENT", name)]
    assert not errors


def test_symbol_requires_adjacent_label() -> None:
    assert types(":foo") == ["SYMBOL"]
    assert types(": foo") == ["COLON", "IDENT"]
    assert types("a: b") == ["IDENT", "COLON", "IDENT"]
    assert types("a:b") == ["IDENT", "SYMBOL"]
    assert types(":1") == ["COLON", "ERROR"]
    tokens, _ = lex(":ok.x")
    assert [(t.type, t.value) for t in tokens] == [
        ("SYMBOL", ":ok"),
        ("DOT", "."),
        ("IDENT", "x"),
    ]


def test_string_token_keeps_raw_text() -> None:
    tokens, errors = lex(r'"a\"b" c')
    assert [(t.type, t.value) for t in tokens] == [("STRING", r'"a\"b"'), ("IDENT", "c")]
    assert not errors


def test_string_may_span_lines() -> None:
    tokens, _ = lex('"one\ntwo"')
    assert [t.type for t in tokens] == ["STRING"]


def test_unterminated_string() -> None:
    tokens, errors = lex('x = "abc')
    assert [t.type for t in tokens] == ["IDENT", "ASSIGN", "ERROR"]
    assert [e.kind for e in errors] == [ErrorKind.STRING]
    assert errors.errors[0].span == Span(4, 8)


def test_comments_are_dropped_by_default() -> None:
    assert types("/* note */ x") == ["IDENT"]
    tokens = tokenize("/* note */ x", keep_comments=True)
    assert [t.type for t in tokens] == ["COMMENT", "IDENT", "EOF"]
    assert tokens[0].value == "/* note */"


def test_comment_is_non_greedy() -> None:
    assert types("/* a */ b */") == ["IDENT", "MULT", "DIV"]
    assert types("/* /* */ x") == ["IDENT"]


def test_unterminated_comment() -> None:
    tokens, errors = lex("x /* y")
    assert [t.type for t in tokens] == ["IDENT", "ERROR"]
    assert [e.kind for e in errors] == [ErrorKind.LEXICAL]
    assert errors.errors[0].span == Span(2, 6)


@pytest.mark.parametrize("char", ["@", "$", "#", "?", "`"])  # type: ignore[misc]
def test_unrecognized_character(char: str) -> None:
    tokens, errors = lex(f"a {char} b")
    assert [t.type for t in tokens] == ["IDENT", "ERROR", "IDENT"]
    assert len(errors) == 1
    assert errors.errors[0].kind is ErrorKind.LEXICAL
    assert errors.errors[0].span == Span(2, 3)


def test_empty_and_blank_input() -> None:
    assert tokenize("") == [Token("EOF", "", Span(0, 0))]
    assert [t.type for t in tokenize(" \n\t ")] == ["EOF"]


def test_character_stream_reads_past_end() -> None:
    stream = CharacterStream("a")
    assert stream.peek() == "a"
    assert stream.next() == "a"
    assert stream.peek() == ""
    assert stream.end_of_file()
    with pytest.raises(IndexError):
        stream.next()


def test_lexer_next_token_repeats_eof() -> None:
    lexer = Lexer(CharacterStream("x"))
    assert lexer.next_token().type == "IDENT"
    assert lexer.next_token().type == "EOF"
    assert lexer.next_token().type == "EOF"


def test_token_repr() -> None:
    assert repr(Token("IDENT", "x")) == "Token(IDENT, 'x')"


@given(st.text(max_size=80))  # type: ignore[misc]
def test_lexer_never_raises_and_covers_source(source: str) -> None:
    src = SourceFile(source)
    errors = ErrorCollector()
    tokens = tokenize(src, errors)

    assert tokens[-1].type == "EOF"
    assert tokens[-1].span == Span(len(src), len(src))
    previous = 0
    for tok in tokens:
        assert previous <= tok.span.lo <= tok.span.hi <= len(src)
        previous = tok.span.hi
        if tok.type != "EOF":
            assert src.slice(tok.span) == tok.value

    error_spans = {e.span for e in errors}
    for tok in tokens:
        if tok.type == "ERROR":
            assert tok.span in error_spans
