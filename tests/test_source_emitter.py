from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tala.emitters.source_emitter import SourceEmitter, emit_source
from tala.tala_ast import BiOperator, Context, NodeKind, UnOperator, Unknown
from tala.tala_literals import escape_string
from tala.tala_parser import parse_expression, parse_module
from tala.tala_source import Span

BINARY_SPELLINGS = [str(op) for op in BiOperator]
UNARY_SPELLINGS = [str(op) for op in UnOperator]


def prune(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: prune(v) for k, v in value.items() if k != "span"}
    if isinstance(value, list):
        return [prune(v) for v in value]
    return value


def emit(source: str) -> str:
    node, errors = parse_expression(source)
    assert errors == []
    return emit_source(node)


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("x", "x"),
        ("a + b * c", "(a + (b * c))"),
        ("!x", "(! x)"),
        ("-3i8", "-3i8"),
        ("1.0f32", "1.0f32"),
        ('"a\\tb"', '"a\\tb"'),
        (":sym", ":sym"),
        ("()", "()"),
        ("(x)", "x"),
        ("(x,)", "(x,)"),
        ("(a, b,)", "(a, b)"),
        ("{}", "{}"),
        ("{a: 1u8, b: c}", "{a: 1u8, b: c}"),
        ("a.b(c, d)", "a.b(c, d)"),
        ("|| -> u8", "|| -> u8"),
        ("|a: u32| -> u32 { b = a; b }", "|a: u32| -> u32 { b = a; b }"),
        ("|| -> u8 { 1u8 }()", "(|| -> u8 { 1u8 })()"),
        ("|f: || -> u8| -> u8", "|f: (|| -> u8)| -> u8"),
    ],
)
def test_emit_expression(source: str, expected: str) -> None:
    assert emit(source) == expected


def test_emit_module() -> None:
    module, errors = parse_module("x = 1u8;y=x+2u8")
    assert not errors
    assert emit_source(module) == "x = 1u8;\ny = (x + 2u8);"


def test_emitter_collects_lines() -> None:
    module, _ = parse_module("a = b; c = d")
    emitter = SourceEmitter()
    emitter.emit_module(module)
    assert emitter.lines == ["a = b;", "c = d;"]
    assert emitter.get_output() == "a = b;\nc = d;"


def test_unknown_has_no_source_form() -> None:
    unknown = Unknown(Context(NodeKind.UNKNOWN, Span(3, 3)))
    with pytest.raises(NotImplementedError, match="unknown"):
        emit_source(unknown)


def test_non_node_is_rejected() -> None:
    with pytest.raises(TypeError):
        SourceEmitter().emit_expr("x")  # type: ignore[arg-type]


def test_module_round_trip() -> None:
    source = """
    pickFirst = |a: u32, b: u32| -> u32 {
        capture = |x: u32| -> u32 { a };
        capture(b)
    };
    main = || -> u32 { pickFirst(1u32, 2u32) };
    mix = {k: (:a, "s\\n", 1.5e3f64), r: ~!x.y <=> #1 z};
    """
    module, errors = parse_module(source)
    assert not errors
    again, errors = parse_module(emit_source(module))
    assert not errors
    assert prune(again.to_dict()) == prune(module.to_dict())


@st.composite  # type: ignore[misc]
def expressions(draw: Any, depth: int = 3) -> str:
    leaves = st.one_of(
        st.from_regex(r"[a-z][a-z0-9_]{0,4}", fullmatch=True),
        st.integers(0, 255).map(lambda n: f"{n}u8"),
        st.integers(-(2**31), 2**31 - 1).map(lambda n: f"{n}i32"),
        st.floats(allow_nan=False, allow_infinity=False).map(lambda f: f"{f!r}f64"),
        st.text(max_size=5).map(escape_string),
        st.from_regex(r":[a-z]{1,4}", fullmatch=True),
    )
    if depth == 0:
        return str(draw(leaves))
    sub = expressions(depth=depth - 1)
    form = draw(st.integers(0, 8))
    if form == 0:
        op = draw(st.sampled_from(BINARY_SPELLINGS))
        return f"({draw(sub)} {op} {draw(sub)})"
    if form == 1:
        return f"{draw(st.sampled_from(UNARY_SPELLINGS))} {draw(sub)}"
    if form == 2:
        items = draw(st.lists(sub, max_size=3))
        return "(" + "".join(f"{i}, " for i in items) + ")"
    if form == 3:
        names = draw(st.lists(st.sampled_from("abc"), max_size=3))
        return "{" + ", ".join(f"{n}: {draw(sub)}" for n in names) + "}"
    if form == 4:
        return f"({draw(sub)}).field"
    if form == 5:
        args = draw(st.lists(sub, max_size=3))
        return f"({draw(sub)})(" + ", ".join(args) + ")"
    if form == 6:
        return f"|p: t, q: (u, v)| -> t {{ l = {draw(sub)}; {draw(sub)} }}"
    return str(draw(leaves))


@given(expressions())  # type: ignore[misc]
def test_emitted_expressions_reparse_to_same_tree(source: str) -> None:
    node, errors = parse_expression(source)
    assert errors == []
    emitted = emit_source(node)
    again, errors = parse_expression(emitted)
    assert errors == []
    assert prune(again.to_dict()) == prune(node.to_dict())
    # formatting is a fixed point
    assert emit_source(again) == emitted
