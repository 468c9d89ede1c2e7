"""
Lexical analyzer for the TALA programming language.

This module converts raw source text into a stream of tokens:

Classes:
    CharacterStream: Cursor over a `SourceFile` that hands out byte-offset spans.
    Token: A single token with its type, raw text and span.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Token kinds are tried in a fixed priority order:
    1. NUMBER  - typed numeric literal, the suffix is mandatory (`1u8`, `-3i32`, `2.5e3f64`)
    2. COMMENT - `/* ... */`, non-greedy
    3. IDENT   - Unicode identifier
    4. SYMBOL  - `:` immediately followed by an identifier-shaped label
    5. STRING  - double-quoted, backslash escape pairs allowed inside
    6. operators and punctuation from `token_hashmap` (longest match); whitespace is skipped

Malformed input never raises. It is recorded in the shared `ErrorCollector` and an
`ERROR` token is emitted in its place so the parser can recover there.

Example:
    >>> lexer = Lexer(CharacterStream(SourceFile("x = 1u8")))
    >>> lexer.next_token()
    Token(IDENT, 'x')

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
"""

import logging
import re
from typing import Any

from tala.tala_constants import MAX_OPERATOR_LENGTH, token_hashmap
from tala.tala_errors import ErrorCollector, ErrorKind
from tala.tala_source import SourceFile, Span

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(
    r"(?:0|[1-9][0-9]*)(?:u16|u32|u64|u8)"
    r"|-?(?:0|[1-9][0-9]*)(?:i16|i32|i64|i8)"
    r"|-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?(?:f32|f64)"
)
# A digit-led run that failed NUMBER_PATTERN is reported as one malformed literal.
# Float literal whose exponent has no digits; passed on so the interpreter can name it.
DANGLING_EXPONENT_PATTERN = re.compile(r"-?[0-9]+(?:\.[0-9]+)?[eE][+-]?(?:f32|f64)")
MALFORMED_NUMBER_PATTERN = re.compile(r"[0-9](?:[0-9A-Za-z_]|\.[0-9]|[eE][+-][0-9])*")
COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
STRING_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)


def is_identifier_start(ch: str) -> bool:
    return ch != "" and ch.isidentifier()


def is_identifier_continue(ch: str) -> bool:
    return ch != "" and ("_" + ch).isidentifier()


class CharacterStream:
    """
    A cursor over a `SourceFile`.

    Positions are character indexes internally; everything handed out to the rest of
    the system is converted to UTF-8 byte offsets through the source file.

    Attributes:
        source (SourceFile): The buffer being read.
        position (int): Current character index.
    """

    def __init__(self, source: SourceFile | str, position: int = 0) -> None:
        self.source = source if isinstance(source, SourceFile) else SourceFile(source)
        self.text = self.source.text
        self.position = position

    def next(self) -> str:
        """Consumes and returns the next character.

        Raises:
            IndexError: If reading past the end of the source.
        """
        if self.position >= len(self.text):
            raise IndexError(
                f"CharacterStreamError: attempted to read past end of source at position=<{self.position}>"
            )
        char = self.text[self.position]
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.text):
            return ""
        return self.text[index]

    def match(self, pattern: re.Pattern[str]) -> str | None:
        """Returns the text `pattern` matches at the current position, without consuming it."""
        m = pattern.match(self.text, self.position)
        return m.group(0) if m else None

    def skip(self, count: int) -> None:
        self.position = min(self.position + count, len(self.text))

    def span_from(self, start: int) -> Span:
        """Span from character index `start` up to the current position."""
        return self.source.span(start, self.position)

    def end_of_file(self) -> bool:
        return self.position >= len(self.text)


class Token:
    """A single lexical token.

    Attributes:
        type (str): Canonical token type (e.g. 'IDENT', 'NUMBER', 'PLUS', 'EOF').
        value (str): The raw source text of the token.
        span (Span): Byte range the token covers.
    """

    def __init__(self, type_: str, value: str, span: Span | None = None) -> None:
        self.type = type_
        self.value = value
        self.span = span if span is not None else Span(0, 0)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.span == other.span
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.span))


class Lexer:
    """Lexical analyzer for TALA.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        errors (ErrorCollector): Sink for lexical and string failures.
    """

    def __init__(
        self, stream: CharacterStream, errors: ErrorCollector | None = None
    ) -> None:
        self.stream = stream
        self.errors = errors if errors is not None else ErrorCollector()

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        while not self.stream.end_of_file() and self.peek().isspace():
            self.advance()

    def _emit(self, type_: str, start: int) -> Token:
        span = self.stream.span_from(start)
        return Token(type_, self.stream.text[start : self.stream.position], span)

    def _fail(self, kind: ErrorKind, message: str, start: int) -> Token:
        token = self._emit("ERROR", start)
        self.errors.push(kind, message, token.span)
        return token

    def match_operator(self) -> Token | None:
        """Matches the longest operator or punctuation spelling at the current position."""
        start = self.stream.position
        max_token = None
        candidate = ""
        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate

        if max_token is None:
            return None
        self.stream.skip(len(max_token))
        return self._emit(token_hashmap[max_token], start)

    def next_token(self) -> Token:
        """Consumes and returns the next token; returns an EOF token at end of input."""
        self.skip_whitespace()
        start = self.stream.position
        if self.stream.end_of_file():
            return self._emit("EOF", start)

        ch = self.peek()

        # 1. Typed number literal
        number = self.stream.match(NUMBER_PATTERN) or self.stream.match(
            DANGLING_EXPONENT_PATTERN
        )
        if number is not None:
            self.stream.skip(len(number))
            return self._emit("NUMBER", start)
        if ch.isdigit():
            run = self.stream.match(MALFORMED_NUMBER_PATTERN) or ch
            self.stream.skip(len(run))
            return self._fail(
                ErrorKind.LEXICAL,
                f"malformed number literal {run!r}; a type suffix such as u8, i32 or f64 is required",
                start,
            )

        # 2. Block comment
        if ch == "/" and self.peek(1) == "*":
            comment = self.stream.match(COMMENT_PATTERN)
            if comment is None:
                self.stream.skip(len(self.stream.text))
                return self._fail(ErrorKind.LEXICAL, "unterminated comment", start)
            self.stream.skip(len(comment))
            return self._emit("COMMENT", start)

        # 3. Identifier
        if is_identifier_start(ch):
            self.advance()
            while is_identifier_continue(self.peek()):
                self.advance()
            return self._emit("IDENT", start)

        # 4. Symbol label
        if ch == ":" and is_identifier_start(self.peek(1)):
            self.advance()
            while is_identifier_continue(self.peek()):
                self.advance()
            return self._emit("SYMBOL", start)

        # 5. String
        if ch == '"':
            string = self.stream.match(STRING_PATTERN)
            if string is None:
                self.stream.skip(len(self.stream.text))
                return self._fail(ErrorKind.STRING, "unterminated string literal", start)
            self.stream.skip(len(string))
            return self._emit("STRING", start)

        # 6. Operators and punctuation
        token = self.match_operator()
        if token is not None:
            return token

        self.advance()
        return self._fail(ErrorKind.LEXICAL, f"unrecognized character {ch!r}", start)

    def tokenize(self, keep_comments: bool = False) -> list[Token]:
        """Lexes the whole stream, returning every token up to and including EOF."""
        tokens: list[Token] = []
        while True:
            tok = self.next_token()
            if tok.type == "COMMENT" and not keep_comments:
                continue
            tokens.append(tok)
            if tok.type == "EOF":
                break
        logger.debug(
            "lexed %d tokens from %s (%d lexical errors so far)",
            len(tokens),
            self.stream.source.name,
            len(self.errors),
        )
        return tokens


def tokenize(
    source: SourceFile | str,
    errors: ErrorCollector | None = None,
    keep_comments: bool = False,
) -> list[Token]:
    """Convenience wrapper: lex `source` into a token list ending with EOF."""
    return Lexer(CharacterStream(source), errors).tokenize(keep_comments=keep_comments)


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize", "token_hashmap"]
