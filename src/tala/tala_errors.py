"""
Structured parse errors for the TALA syntax layer.

Nothing in the lexer or parser raises on malformed source. Every problem is recorded
as a `ParseError` in an `ErrorCollector` owned by the top-level parse call, and the
parse carries on with a placeholder.

Classes:
    ErrorKind: Discriminates lexical, numeric, string and syntactic failures.
    ParseError: One recorded failure with its span.
    ErrorCollector: Append-only sink threaded through a single parse.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterator, TypedDict

from tala.tala_source import Span

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    LEXICAL = "lexical"
    NUMERIC = "numeric"
    STRING = "string"
    SYNTACTIC = "syntactic"

    def __str__(self) -> str:
        return self.value


class ParseErrorDict(TypedDict):
    kind: str
    message: str
    span: list[int]


class ParseError:
    """A single recorded parse failure.

    Attributes:
        kind (ErrorKind): Which stage produced the failure.
        message (str): Human-readable description.
        span (Span): Where recovery happened; never empty-sourced for lexer/parser errors.
    """

    def __init__(self, kind: ErrorKind, message: str, span: Span) -> None:
        self.kind = kind
        self.message = message
        self.span = span

    def __repr__(self) -> str:
        return f"ParseError({self.kind.name}, {self.message!r}, {self.span!r})"

    def __str__(self) -> str:
        name = self.span.source.name if self.span.source is not None else "<input>"
        return f"{name}:{self.span.lo}..{self.span.hi}: {self.kind} error: {self.message}"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, ParseError)
            and self.kind == other.kind
            and self.message == other.message
            and self.span == other.span
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.message, self.span))

    def to_dict(self) -> ParseErrorDict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "span": [self.span.lo, self.span.hi],
        }


class ErrorCollector:
    """Append-only list of `ParseError`s for one parse.

    Errors are kept in the order they were recorded and are never retracted.
    """

    def __init__(self) -> None:
        self._errors: list[ParseError] = []

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[ParseError]:
        return iter(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def push(self, kind: ErrorKind, message: str, span: Span) -> ParseError:
        error = ParseError(kind, message, span)
        logger.debug("recorded %r", error)
        self._errors.append(error)
        return error

    @property
    def errors(self) -> list[ParseError]:
        """A snapshot of the recorded errors, in order."""
        return list(self._errors)


__all__ = ["ErrorCollector", "ErrorKind", "ParseError", "ParseErrorDict"]
