"""
Literal interpreters for TALA number and string tokens.

Both interpreters are pure functions of the raw token text. Failures are appended to the
caller's `ErrorCollector`; nothing is raised.

Functions:
    interpret_number(text, span, errors) -> TypedNumber | None
    render_number(number) -> str
    interpret_string(text, span, errors) -> str
    escape_string(value) -> str
"""

from __future__ import annotations

import math
import re
import struct
from enum import Enum
from typing import Any

from tala.tala_constants import (
    FLOAT_SUFFIXES,
    NUMBER_SUFFIXES,
    SIGNED_SUFFIXES,
    UNSIGNED_SUFFIXES,
)
from tala.tala_errors import ErrorCollector, ErrorKind
from tala.tala_source import Span


class NumberKind(Enum):
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"

    def __str__(self) -> str:
        return self.value

    @property
    def is_float(self) -> bool:
        return self.value in FLOAT_SUFFIXES

    @property
    def is_signed(self) -> bool:
        return self.value in SIGNED_SUFFIXES

    @property
    def bits(self) -> int:
        return int(self.value[1:])

    def int_range(self) -> tuple[int, int]:
        """Inclusive `(min, max)` for integer kinds."""
        if self.is_signed:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        return 0, (1 << self.bits) - 1


class TypedNumber:
    """A decoded numeric literal tagged with its declared kind."""

    def __init__(self, kind: NumberKind, value: int | float) -> None:
        self.kind = kind
        self.value = value

    def __repr__(self) -> str:
        return f"TypedNumber({self.kind}, {self.value!r})"

    def __str__(self) -> str:
        return render_number(self)

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, TypedNumber)
            and self.kind == other.kind
            and self.value == other.value
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.value))


_SUFFIX_PATTERN = re.compile("(" + "|".join(NUMBER_SUFFIXES) + ")$")
_INTEGER_BODY = re.compile(r"-?(?:0|[1-9][0-9]*)")
_FLOAT_BODY = re.compile(r"-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_EXPONENT = re.compile(r"[eE]")
# Digits in 2**64 - 1, the widest integer kind.
MAX_INTEGER_DIGITS = 20


def _to_f32(value: float) -> float | None:
    """Rounds to single precision; returns None when the value does not fit."""
    try:
        rounded: float = struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return None
    return rounded if math.isfinite(rounded) else None


def interpret_number(
    text: str, span: Span, errors: ErrorCollector
) -> TypedNumber | None:
    """Decodes the raw text of a NUMBER token.

    Args:
        text: Raw token text, body immediately followed by its suffix (e.g. `"-12i8"`).
        span: Span of the token, used for any error.
        errors: Shared error sink.

    Returns:
        The decoded `TypedNumber`, or None after recording a numeric error. No value is
        guessed for out-of-range or malformed input.
    """
    m = _SUFFIX_PATTERN.search(text)
    if m is None:
        errors.push(ErrorKind.NUMERIC, f"suffix mismatch: {text!r} has no type suffix", span)
        return None

    kind = NumberKind(m.group(1))
    body = text[: m.start()]

    if kind.is_float:
        if _FLOAT_BODY.fullmatch(body) is None:
            if _EXPONENT.search(body) and re.fullmatch(r"-?[0-9]+(?:\.[0-9]+)?[eE][+-]?", body):
                errors.push(ErrorKind.NUMERIC, f"malformed exponent in {text!r}", span)
            else:
                errors.push(ErrorKind.NUMERIC, f"suffix mismatch: {body!r} is not a {kind} body", span)
            return None
        value = float(body)
        if kind is NumberKind.F32:
            rounded = _to_f32(value)
        else:
            rounded = value if math.isfinite(value) else None
        if rounded is None:
            errors.push(ErrorKind.NUMERIC, f"overflow: {text!r} does not fit in {kind}", span)
            return None
        if rounded == 0.0 and re.search(r"[1-9]", body.split("e")[0].split("E")[0]):
            errors.push(ErrorKind.NUMERIC, f"underflow: {text!r} rounds to zero in {kind}", span)
            return None
        return TypedNumber(kind, rounded)

    if _INTEGER_BODY.fullmatch(body) is None:
        errors.push(ErrorKind.NUMERIC, f"suffix mismatch: {body!r} is not a {kind} body", span)
        return None
    if body.startswith("-") and kind.value in UNSIGNED_SUFFIXES:
        errors.push(ErrorKind.NUMERIC, f"suffix mismatch: unsigned {kind} cannot be negative", span)
        return None

    lo, hi = kind.int_range()
    # Longer than any width allows; also keeps int() under its digit limit.
    if len(body.lstrip("-")) > MAX_INTEGER_DIGITS:
        if body.startswith("-"):
            errors.push(ErrorKind.NUMERIC, f"underflow: {text!r} is below {kind} minimum {lo}", span)
        else:
            errors.push(ErrorKind.NUMERIC, f"overflow: {text!r} exceeds {kind} maximum {hi}", span)
        return None
    value_int = int(body)
    if value_int > hi:
        errors.push(ErrorKind.NUMERIC, f"overflow: {text!r} exceeds {kind} maximum {hi}", span)
        return None
    if value_int < lo:
        errors.push(ErrorKind.NUMERIC, f"underflow: {text!r} is below {kind} minimum {lo}", span)
        return None
    return TypedNumber(kind, value_int)


def render_number(number: TypedNumber) -> str:
    """Renders a `TypedNumber` as literal text that decodes back to the same value."""
    if number.kind.is_float:
        text = repr(float(number.value))
        if "inf" in text or "nan" in text:
            raise ValueError(f"{number!r} has no literal spelling")
        return f"{text}{number.kind}"
    return f"{number.value}{number.kind}"


_ESCAPES: dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
}
_REVERSE_ESCAPES: dict[str, str] = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\0": "\\0",
}


def interpret_string(text: str, span: Span, errors: ErrorCollector) -> str:
    """Decodes the raw text of a STRING token, quotes included.

    Unrecognized escapes record a string error covering the two-character pair and
    decode to the escaped character itself, so `"\\q"` yields `q`.
    """
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        errors.push(ErrorKind.STRING, "unterminated string literal", span)
        return text.lstrip('"')

    body = text[1:-1]
    # Byte offset of the body relative to the span; the opening quote is one byte.
    base = span.lo + 1
    out: list[str] = []
    i = 0
    consumed_bytes = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            consumed_bytes += len(ch.encode("utf-8"))
            i += 1
            continue
        if i + 1 >= len(body):
            errors.push(
                ErrorKind.STRING,
                "dangling backslash at end of string literal",
                Span(base + consumed_bytes, base + consumed_bytes + 1, span.source),
            )
            consumed_bytes += 1
            i += 1
            continue
        escaped = body[i + 1]
        width = 1 + len(escaped.encode("utf-8"))
        decoded = _ESCAPES.get(escaped)
        if decoded is None:
            errors.push(
                ErrorKind.STRING,
                f"unknown escape sequence '\\{escaped}'",
                Span(base + consumed_bytes, base + consumed_bytes + width, span.source),
            )
            decoded = escaped
        out.append(decoded)
        consumed_bytes += width
        i += 2
    return "".join(out)


def escape_string(value: str) -> str:
    """Renders `value` as a quoted TALA string literal."""
    return '"' + "".join(_REVERSE_ESCAPES.get(ch, ch) for ch in value) + '"'


__all__ = [
    "NumberKind",
    "TypedNumber",
    "escape_string",
    "interpret_number",
    "interpret_string",
    "render_number",
]
