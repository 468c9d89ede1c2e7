"""
TALA Language Parser

Parses TALA token streams into span-annotated abstract syntax trees.

The parser is hand-written precedence climbing: a single binding-power loop walks the
binary tiers below, so the Python stack grows with nesting rather than with the number
of tiers. Groups, calls, records, lambdas and prefix operators deeper than
`MAX_NESTING` are reported as a syntactic error instead of exhausting the stack.

Precedence (loosest → tightest)
-------------------------------
- or      `|` `|!`
- xor     `^` `^!`
- and     `&` `&!`
- cmp     `==` `!=` `<` `>=` `>` `<=` `<=>`   (non-associative: `a < b < c` is an error)
- bor     `~|` `~|!`
- bxor    `~^` `~^!`
- band    `~&` `~&!`
- shift   `<-<` `>->` `<<` `>>`
- sum     `+` `-`
- factor  `*` `/` `%`
- unary   `!` `~!` `#^0` `#^1` `#^-` `#$0` `#$1` `#0` `#1` `^/` (prefix)
- projection  `.field`, `(args)`, `|params| -> signature { body }`
- atom    identifier, number, string, symbol, tuple, record, `(expr)`

Module grammar
--------------
- module     = definition (";" definition)* ";"?
- definition = identifier "=" expression
- body       = "{" (statement ";")* expression "}"
- statement  = definition | expression

Recovery
--------
The parser never raises on malformed input. When no atom alternative matches, a
syntactic `ParseError` is recorded, tokens up to the next synchronization point are
skipped, and an `Unknown` node fills the atom position so every enclosing rule still
gets a well-formed child. When the missing atom is an operator's operand, the error
span starts at that operator. Missing punctuation is recorded the same way.

Entry Points
------------
- `parse_module(source)`: Parse a full module; returns `(Module, errors)`.
- `parse_expression(source)`: Parse a single expression; returns `(Expression, errors)`.
- `Parser(tokens, errors).parse()`: Parse an already-lexed token list.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tala.tala_ast import (
    BINARY_OPERATORS,
    UNARY_OPERATORS,
    Apply,
    BiOp,
    Context,
    Expression,
    Identifier,
    Lambda,
    Module,
    Node,
    NumberLiteral,
    Parameter,
    Record,
    Select,
    Statement,
    StringLiteral,
    Symbol,
    Tuple,
    UnOp,
    Unknown,
    Variable,
    is_expression,
)
from tala.tala_constants import (
    BINARY_TIERS,
    CLOSING_TOKENS,
    OPENING_TOKENS,
    SYNC_TOKENS,
    UNARY_OPERATOR_TOKENS,
    token_hashmap,
)
from tala.tala_errors import ErrorCollector, ErrorKind, ParseError
from tala.tala_lexer import Token, tokenize
from tala.tala_literals import interpret_number, interpret_string
from tala.tala_source import SourceFile, Span

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Node)
T = TypeVar("T")

# Deepest accepted nesting of groups, lambdas, records, calls and prefix operators.
MAX_NESTING = 32

_TIER_LEVELS: dict[str, int] = {
    token_type: level
    for level, (_, operators, _) in enumerate(BINARY_TIERS)
    for token_type in operators
}
_OPERATOR_TOKENS: frozenset[str] = UNARY_OPERATOR_TOKENS | frozenset(_TIER_LEVELS)

_SPELLINGS: dict[str, str] = {v: k for k, v in token_hashmap.items()}
_SPELLINGS.update(
    {
        "IDENT": "identifier",
        "NUMBER": "number literal",
        "STRING": "string literal",
        "SYMBOL": "symbol",
        "EOF": "end of input",
        "ERROR": "invalid token",
    }
)


def describe(tok: Token) -> str:
    """A short human description of a token for error messages."""
    if tok.type in ("IDENT", "NUMBER", "STRING", "SYMBOL"):
        return f"{_SPELLINGS[tok.type]} {tok.value!r}"
    spelling = _SPELLINGS.get(tok.type, tok.type)
    return spelling if tok.type in ("EOF", "ERROR") else f"'{spelling}'"


class Parser:
    """
    TALA Parser Class

    Consumes a token list (comments are dropped on construction) and builds a `Module`.

    Attributes
    ----------
    tokens : list[Token]
        The token stream, ending with EOF.
    position : int
        Index of the current token.
    errors : ErrorCollector
        Shared sink; the lexer's errors for the same source should already be in it.
    """

    def __init__(
        self, tokens: list[Token], errors: ErrorCollector | None = None
    ) -> None:
        self.tokens: list[Token] = [t for t in tokens if t.type != "COMMENT"]
        if not self.tokens or self.tokens[-1].type != "EOF":
            end = self.tokens[-1].span if self.tokens else Span(0, 0)
            self.tokens.append(Token("EOF", "", Span(end.hi, end.hi, end.source)))
        self.position: int = 0
        self.errors = errors if errors is not None else ErrorCollector()
        self.source: SourceFile | None = self.tokens[0].span.source
        self.last: Token = Token("SOF", "", Span(0, 0, self.source))
        self.depth: int = 0

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def current(self) -> Token:
        return self.tokens[min(self.position, len(self.tokens) - 1)]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.position + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        """Consumes the current token and returns it. EOF is never consumed."""
        tok = self.current()
        if tok.type != "EOF":
            self.position += 1
            self.last = tok
        return tok

    def match(self, *types: str) -> Token | None:
        if self.current().type in types:
            return self.advance()
        return None

    def expect(self, type_: str, what: str | None = None) -> Token | None:
        """Consumes a token of `type_`, or records a syntactic error without consuming."""
        tok = self.match(type_)
        if tok is None:
            expected = what or f"'{_SPELLINGS.get(type_, type_)}'"
            self._error_at_current(f"expected {expected}")
        return tok

    def expect_closing(self, closer: str) -> Token | None:
        """Consumes `closer`, skipping stray tokens in front of it.

        On a mismatch the error is recorded once, then tokens are skipped (bracket
        depth aware) until `closer` is found at depth zero. Skipping stops without
        consuming at a `;`, a different closer or end of input, which belong to an
        enclosing rule.
        """
        tok = self.match(closer)
        if tok is not None:
            return tok
        self._error_at_current(f"expected '{_SPELLINGS[closer]}'")
        depth = 0
        while True:
            tok = self.current()
            if tok.type == "EOF":
                return None
            if depth == 0:
                if tok.type == closer:
                    return self.advance()
                if tok.type == "SEMI" or tok.type in CLOSING_TOKENS:
                    return None
            if tok.type in OPENING_TOKENS:
                depth += 1
            elif tok.type in CLOSING_TOKENS:
                depth -= 1
            self.advance()

    def skip_past_semicolon(self) -> None:
        """Skips to just after the next `;` at bracket depth zero, or to end of input."""
        depth = 0
        while self.current().type != "EOF":
            tok = self.advance()
            if tok.type in OPENING_TOKENS:
                depth += 1
            elif tok.type in CLOSING_TOKENS:
                depth = max(0, depth - 1)
            elif tok.type == "SEMI" and depth == 0:
                return

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------

    def _error(self, message: str, span: Span) -> ParseError:
        return self.errors.push(ErrorKind.SYNTACTIC, message, span)

    def _error_at_current(self, message: str) -> None:
        """Records `message` at the current token unless the lexer already reported it."""
        tok = self.current()
        if tok.type != "ERROR":
            self._error(f"{message}, found {describe(tok)}", tok.span)

    def _node(self, cls: type[N], span: Span, *fields: object) -> N:
        return cls(Context(cls.KIND, span), *fields)

    def _span_from(self, start: Span) -> Span:
        """Span from `start` up to the end of the last consumed token."""
        return Span(start.lo, max(start.hi, self.last.span.hi), start.source)

    def _unknown_here(self) -> Unknown:
        """A zero-width placeholder at the current token, for an error already recorded."""
        lo = self.current().span.lo
        return self._node(Unknown, Span(lo, lo, self.source))

    def _skip_to_sync(self) -> None:
        """Skips to the next synchronization token at bracket depth zero."""
        depth = 0
        while True:
            tok = self.current()
            if tok.type == "EOF":
                return
            if depth == 0 and tok.type in SYNC_TOKENS:
                return
            if tok.type in OPENING_TOKENS:
                depth += 1
            elif tok.type in CLOSING_TOKENS:
                depth -= 1
            self.advance()

    def recover(self, message: str, start: Span | None = None) -> Unknown:
        """Panic-mode recovery at an atom position.

        Records one syntactic error and returns an `Unknown` covering the skipped region,
        widened back to `start` when given. Nothing is consumed when the current token is
        itself a synchronization point.
        """
        first = self.current()
        if first.type in SYNC_TOKENS:
            span = first.span
        else:
            self._skip_to_sync()
            span = self._span_from(first.span)
        if start is not None:
            span = start.to(span)
        logger.debug("recovering at %r: %s", first, message)
        self._error(f"{message}, found {describe(first)}", span)
        return self._node(Unknown, span)

    def _too_deep(self, start: Token) -> Unknown:
        """Abandons a construct nested past `MAX_NESTING`, from `start` to the next sync point."""
        self._skip_to_sync()
        span = self._span_from(start.span)
        logger.debug("nesting limit reached at %r", start)
        self._error(f"nesting too deep (more than {MAX_NESTING} levels)", span)
        return self._node(Unknown, span)

    def _parse_comma_list(
        self, closer: str, parse_item: Callable[[], T | None]
    ) -> tuple[list[T], Token | None]:
        """Parses `item ("," item)* ","?` up to and including `closer`."""
        items: list[T] = []
        while self.current().type not in (closer, "EOF"):
            item = parse_item()
            if item is not None:
                items.append(item)
            if self.match("COMMA") is None:
                break
        return items, self.expect_closing(closer)

    # ------------------------------------------------------------------
    # Module / statements
    # ------------------------------------------------------------------

    def parse(self) -> Module:
        """Parse a full module: definitions separated by `;`, the last one optional."""
        variables: list[Variable] = []
        while self.current().type != "EOF":
            if self.current().type != "IDENT":
                self._error_at_current("expected a definition")
                self.skip_past_semicolon()
                continue
            variables.append(self.parse_definition())
            if self.match("SEMI") or self.current().type == "EOF":
                continue
            self._error_at_current("expected ';' after definition")
            if self.current().type == "IDENT" and self.peek().type == "ASSIGN":
                # Only the separator is missing; the next definition starts here.
                continue
            self.skip_past_semicolon()

        if self.source is not None:
            span = self.source.full_span()
        else:
            span = Span(0, self.last.span.hi)
        logger.debug(
            "parsed %d definitions (%d errors recorded)", len(variables), len(self.errors)
        )
        return self._node(Module, span, tuple(variables))

    def parse_definition(self) -> Variable:
        """Parse `identifier "=" expression`; the current token must be an identifier."""
        name_tok = self.advance()
        name = self._node(Identifier, name_tok.span, name_tok.value)
        if self.expect("ASSIGN") is None and self.current().type in SYNC_TOKENS:
            initializer: Expression = self._unknown_here()
        else:
            initializer = self.parse_expression()
        return self._node(Variable, self._span_from(name.span), name, initializer)

    def parse_statement(self) -> Statement:
        """A local definition when an identifier is followed by `=`, otherwise an expression."""
        if self.current().type == "IDENT" and self.peek().type == "ASSIGN":
            return self.parse_definition()
        return self.parse_expression()

    def parse_body(self) -> tuple[tuple[Statement, ...], Expression | None]:
        """Parse a lambda body: `{ (statement ";")* result }`."""
        self.advance()  # "{"
        statements: list[Statement] = []
        result: Expression | None = None
        while True:
            tok = self.current()
            if tok.type in ("RBRACE", "EOF"):
                if tok.type == "RBRACE":
                    self._error("expected a result expression before '}'", tok.span)
                break
            stmt = self.parse_statement()
            if self.match("SEMI"):
                statements.append(stmt)
                continue
            if self.current().type == "RBRACE" and is_expression(stmt):
                result = stmt
                break
            statements.append(stmt)
            if self.current().type == "RBRACE":
                self._error(
                    "a lambda body must end with a result expression, not a definition",
                    stmt.span,
                )
            break
        self.expect_closing("RBRACE")
        return tuple(statements), result

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        return self.parse_binary(0)

    def parse_binary(self, min_level: int) -> Expression:
        """Binding-power loop over `BINARY_TIERS`.

        Consumes operators of tier `min_level` or tighter. The right operand of a tier `n`
        operator is parsed at `n + 1`, so each associative tier groups to the left and
        the whole table costs one frame per tier actually entered.
        """
        lhs = self.parse_unary()
        while True:
            level = _TIER_LEVELS.get(self.current().type)
            if level is None or level < min_level:
                return lhs
            op_tok = self.advance()
            rhs = self.parse_binary(level + 1)
            node: Expression = self._node(
                BiOp, lhs.span.to(rhs.span), lhs, BINARY_OPERATORS[op_tok.type], rhs
            )
            _, _, associative = BINARY_TIERS[level]
            if not associative and _TIER_LEVELS.get(self.current().type) == level:
                chain_tok = self.current()
                self._error(
                    f"comparison operators cannot be chained; parenthesize before {describe(chain_tok)}",
                    chain_tok.span,
                )
                while _TIER_LEVELS.get(self.current().type) == level:
                    self.advance()
                    rhs = self.parse_binary(level + 1)
                node = self._node(Unknown, lhs.span.to(rhs.span))
            lhs = node

    def parse_unary(self) -> Expression:
        """Prefix operators, right to left; each one counts as a nesting level."""
        operators: list[Token] = []
        while self.current().type in UNARY_OPERATOR_TOKENS:
            operators.append(self.advance())
        if not operators:
            return self.parse_projection()
        if self.depth + len(operators) > MAX_NESTING:
            return self._too_deep(operators[0])

        self.depth += len(operators)
        operand = self.parse_projection()
        self.depth -= len(operators)
        for tok in reversed(operators):
            operand = self._node(
                UnOp, tok.span.to(operand.span), UNARY_OPERATORS[tok.type], operand
            )
        return operand

    def parse_projection(self) -> Expression:
        """Parse a lambda or an atom, then any chain of `.field` and `(args)` suffixes."""
        if self.depth >= MAX_NESTING:
            return self._too_deep(self.current())
        self.depth += 1
        if self.current().type == "OR":
            expr = self.parse_lambda()
        else:
            expr = self.parse_atom()
        expr = self.parse_postfix(expr)
        self.depth -= 1
        return expr

    def parse_postfix(self, expr: Expression) -> Expression:
        while True:
            if self.current().type == "DOT":
                self.advance()
                field_tok = self.expect("IDENT", "a field name after '.'")
                if field_tok is None:
                    return self._node(Unknown, self._span_from(expr.span))
                field = self._node(Identifier, field_tok.span, field_tok.value)
                expr = self._node(Select, expr.span.to(field.span), expr, field)
            elif self.current().type == "LPAREN":
                self.advance()
                args, _ = self._parse_comma_list("RPAREN", self.parse_expression)
                expr = self._node(Apply, self._span_from(expr.span), expr, tuple(args))
            else:
                return expr

    def parse_lambda(self) -> Lambda:
        """Parse `|params| -> signature` with an optional `{ body }`."""
        open_tok = self.advance()  # "|"
        params, _ = self._parse_comma_list("OR", self.parse_parameter)
        if self.expect("ARROW") is None and self.current().type in SYNC_TOKENS:
            signature: Expression = self._unknown_here()
        else:
            signature = self.parse_projection()
        statements: tuple[Statement, ...] = ()
        result: Expression | None = None
        if self.current().type == "LBRACE":
            statements, result = self.parse_body()
        return self._node(
            Lambda, self._span_from(open_tok.span), tuple(params), signature, statements, result
        )

    def _parse_typed_name(self, what: str) -> tuple[Identifier, Expression] | None:
        """Parse `name ":" <value>` pairs shared by parameters and record fields.

        Parameters take a projection-level signature so that `|` and `->` end it;
        record fields take a full expression.
        """
        if self.current().type != "IDENT":
            self.recover(f"expected {what} name")
            return None
        name_tok = self.advance()
        name = self._node(Identifier, name_tok.span, name_tok.value)
        parse_value = self.parse_projection if what == "parameter" else self.parse_expression

        if self.match("COLON") is None:
            tok = self.current()
            if tok.type == "SYMBOL":
                self._error(
                    f"expected ':' after {what} name; {tok.value!r} lexes as a symbol, "
                    f"write ': {tok.value[1:]}' instead",
                    tok.span,
                )
            else:
                self._error_at_current(f"expected ':' after {what} name")
            if tok.type in SYNC_TOKENS:
                return name, self._unknown_here()
        return name, parse_value()

    def parse_parameter(self) -> Parameter | None:
        pair = self._parse_typed_name("parameter")
        if pair is None:
            return None
        name, signature = pair
        return self._node(Parameter, self._span_from(name.span), name, signature)

    def parse_record_field(self) -> tuple[Identifier, Expression] | None:
        return self._parse_typed_name("record field")

    def parse_atom(self) -> Expression:
        tok = self.current()

        if tok.type == "IDENT":
            self.advance()
            return self._node(Identifier, tok.span, tok.value)

        if tok.type == "NUMBER":
            self.advance()
            number = interpret_number(tok.value, tok.span, self.errors)
            if number is None:
                return self._node(Unknown, tok.span)
            return self._node(NumberLiteral, tok.span, number)

        if tok.type == "STRING":
            self.advance()
            return self._node(StringLiteral, tok.span, interpret_string(tok.value, tok.span, self.errors))

        if tok.type == "SYMBOL":
            self.advance()
            return self._node(Symbol, tok.span, tok.value[1:])

        if tok.type == "LPAREN":
            return self.parse_parenthesized()

        if tok.type == "LBRACE":
            self.advance()
            fields, _ = self._parse_comma_list("RBRACE", self.parse_record_field)
            return self._node(Record, self._span_from(tok.span), tuple(fields))

        if tok.type == "ERROR":
            # Already reported by the lexer.
            self.advance()
            return self._node(Unknown, tok.span)

        # An operator without its operand: the error starts at the operator.
        pending = self.last.span if self.last.type in _OPERATOR_TOKENS else None
        return self.recover("expected an expression", pending)

    def parse_parenthesized(self) -> Expression:
        """`()` is the unit tuple, `(e)` is grouping, and any comma makes a tuple: `(e,)`."""
        open_tok = self.advance()  # "("
        if self.match("RPAREN"):
            return self._node(Tuple, self._span_from(open_tok.span), ())

        first = self.parse_expression()
        if self.match("COMMA") is None:
            self.expect_closing("RPAREN")
            return first

        rest, _ = self._parse_comma_list("RPAREN", self.parse_expression)
        return self._node(Tuple, self._span_from(open_tok.span), (first, *rest))


def _prepare(source: str | SourceFile, name: str) -> tuple[SourceFile, ErrorCollector, list[Token]]:
    src = source if isinstance(source, SourceFile) else SourceFile(source, name)
    errors = ErrorCollector()
    return src, errors, tokenize(src, errors)


def parse_module(
    source: str | SourceFile, name: str = "<input>"
) -> tuple[Module, list[ParseError]]:
    """Parse a whole module.

    Args:
        source: Source text, or a `SourceFile` owned by the caller.
        name: Display name used when `source` is plain text.

    Returns:
        The best-effort `Module` and every error recorded while lexing and parsing,
        in order. An empty list means the source is well-formed.
    """
    _, errors, tokens = _prepare(source, name)
    module = Parser(tokens, errors).parse()
    return module, errors.errors


def parse_expression(
    source: str | SourceFile, name: str = "<input>"
) -> tuple[Expression, list[ParseError]]:
    """Parse a single expression; trailing input is a syntactic error."""
    _, errors, tokens = _prepare(source, name)
    parser = Parser(tokens, errors)
    expr = parser.parse_expression()
    if parser.current().type != "EOF":
        parser._error_at_current("expected end of input")
    return expr, errors.errors


__all__ = ["Parser", "describe", "parse_expression", "parse_module"]
