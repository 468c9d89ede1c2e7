"""
Defines the abstract syntax tree (AST) produced by the TALA parser.

Every node carries a `Context` holding its `NodeKind` and the `Span` it was parsed from.
Nodes are frozen dataclasses: a tree is built once during a single parse and never
mutated afterwards. Child sequences are tuples, so ownership stays strictly tree-shaped.

Classes:
    NodeKind: Closed enumeration of node kinds.
    Context: `(kind, span)` pair attached to every node.
    UnOperator, BiOperator: Operator enums whose values are their source spellings.
    Module, Variable, Identifier, Parameter: Structural nodes.
    BiOp, UnOp, NumberLiteral, StringLiteral, Symbol, Tuple, Record, Select, Apply,
    Lambda, Unknown: Expression variants. `Unknown` marks a subtree that failed to parse.

Helpers:
    Node.to_dict(): JSON-ready nested dictionaries, for the CLI and for tests.
    Node.map_context(fn): Rebuilds a tree with every context replaced by `fn(context)`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, TypedDict, Union

from tala.tala_literals import TypedNumber
from tala.tala_source import Span


class NodeKind(Enum):
    MODULE = "module"
    VARIABLE = "variable"
    UN_OP = "un_op"
    BI_OP = "bi_op"
    IDENTIFIER = "identifier"
    NUMBER_LITERAL = "number_literal"
    STRING_LITERAL = "string_literal"
    SYMBOL = "symbol"
    TUPLE = "tuple"
    RECORD = "record"
    LAMBDA = "lambda"
    PARAMETER = "parameter"
    SELECT = "select"
    APPLY = "apply"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Context:
    """Where a node came from and what it is."""

    kind: NodeKind
    span: Span


class UnOperator(Enum):
    NOT = "!"
    BNOT = "~!"
    CL0 = "#^0"
    CL1 = "#^1"
    CLS = "#^-"
    CT0 = "#$0"
    CT1 = "#$1"
    C0 = "#0"
    C1 = "#1"
    SQRT = "^/"

    def __str__(self) -> str:
        return self.value


class BiOperator(Enum):
    OR = "|"
    OR_NOT = "|!"
    XOR = "^"
    XOR_NOT = "^!"
    AND = "&"
    AND_NOT = "&!"
    EQ = "=="
    NE = "!="
    LT = "<"
    GE = ">="
    GT = ">"
    LE = "<="
    CMP = "<=>"
    BOR = "~|"
    BOR_NOT = "~|!"
    BXOR = "~^"
    BXOR_NOT = "~^!"
    BAND = "~&"
    BAND_NOT = "~&!"
    ROTL = "<-<"
    ROTR = ">->"
    SHL = "<<"
    SHR = ">>"
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    REM = "%"

    def __str__(self) -> str:
        return self.value


# Lexer token type → operator
UNARY_OPERATORS: dict[str, UnOperator] = {op.name: op for op in UnOperator}
BINARY_OPERATORS: dict[str, BiOperator] = {
    **{op.name: op for op in BiOperator},
    "PLUS": BiOperator.ADD,
    "MULT": BiOperator.MUL,
    "MOD": BiOperator.REM,
}


class ASTDict(TypedDict, total=False):
    """Serialized form of a node; see `Node.to_dict`."""

    kind: str
    span: list[int]


@dataclass(frozen=True)
class Node:
    """Base class of every AST node."""

    KIND: ClassVar[NodeKind]

    context: Context

    @property
    def span(self) -> Span:
        return self.context.span

    @property
    def kind(self) -> NodeKind:
        return self.context.kind

    def to_dict(self) -> ASTDict:
        out: dict[str, Any] = {
            "kind": self.context.kind.value,
            "span": [self.context.span.lo, self.context.span.hi],
        }
        for f in dataclasses.fields(self):
            if f.name != "context":
                out[f.name] = _to_plain(getattr(self, f.name))
        return out  # type: ignore[return-value]

    def map_context(self, mapping: Callable[[Context], Context]) -> Node:
        """Returns a copy of this tree with every node's context replaced by `mapping(context)`.

        Children are mapped before their parents are rebuilt; `self` is left untouched.
        """
        changes = {
            f.name: _map_value(getattr(self, f.name), mapping)
            for f in dataclasses.fields(self)
            if f.name != "context"
        }
        return dataclasses.replace(self, context=mapping(self.context), **changes)


def _to_plain(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_to_plain(v) for v in value]
    if isinstance(value, (UnOperator, BiOperator)):
        return value.value
    if isinstance(value, TypedNumber):
        return {"type": value.kind.value, "value": value.value}
    return value


def _map_value(value: Any, mapping: Callable[[Context], Context]) -> Any:
    if isinstance(value, Node):
        return value.map_context(mapping)
    if isinstance(value, tuple):
        return tuple(_map_value(v, mapping) for v in value)
    return value


@dataclass(frozen=True)
class Identifier(Node):
    KIND = NodeKind.IDENTIFIER

    value: str


@dataclass(frozen=True)
class NumberLiteral(Node):
    KIND = NodeKind.NUMBER_LITERAL

    value: TypedNumber


@dataclass(frozen=True)
class StringLiteral(Node):
    KIND = NodeKind.STRING_LITERAL

    value: str


@dataclass(frozen=True)
class Symbol(Node):
    """A `:label` literal; `label` excludes the sigil."""

    KIND = NodeKind.SYMBOL

    label: str


@dataclass(frozen=True)
class Tuple(Node):
    """`()`, `(a,)`, `(a, b, ...)`. Zero fields is the unit value."""

    KIND = NodeKind.TUPLE

    fields: tuple[Expression, ...]


@dataclass(frozen=True)
class Record(Node):
    """`{name: value, ...}`. Field names are not required to be unique here."""

    KIND = NodeKind.RECORD

    fields: tuple[tuple[Identifier, Expression], ...]

    def to_dict(self) -> ASTDict:
        out: dict[str, Any] = {
            "kind": self.context.kind.value,
            "span": [self.context.span.lo, self.context.span.hi],
            "fields": [
                {"name": name.to_dict(), "value": value.to_dict()}
                for name, value in self.fields
            ],
        }
        return out  # type: ignore[return-value]


@dataclass(frozen=True)
class UnOp(Node):
    KIND = NodeKind.UN_OP

    operator: UnOperator
    operand: Expression


@dataclass(frozen=True)
class BiOp(Node):
    KIND = NodeKind.BI_OP

    lhs: Expression
    operator: BiOperator
    rhs: Expression


@dataclass(frozen=True)
class Select(Node):
    """`record.field`"""

    KIND = NodeKind.SELECT

    record: Expression
    field: Identifier


@dataclass(frozen=True)
class Apply(Node):
    """`function(parameters...)`"""

    KIND = NodeKind.APPLY

    function: Expression
    parameters: tuple[Expression, ...]


@dataclass(frozen=True)
class Parameter(Node):
    KIND = NodeKind.PARAMETER

    name: Identifier
    signature: Expression


@dataclass(frozen=True)
class Lambda(Node):
    """`|params| -> signature { statements; result }`

    Without a body both `statements` and `result` are empty.
    """

    KIND = NodeKind.LAMBDA

    parameters: tuple[Parameter, ...]
    signature: Expression
    statements: tuple[Statement, ...]
    result: Expression | None


@dataclass(frozen=True)
class Unknown(Node):
    """Placeholder for a subtree that could not be parsed; an error was recorded for it."""

    KIND = NodeKind.UNKNOWN


@dataclass(frozen=True)
class Variable(Node):
    """`name = initializer`, at module level or as a lambda-local statement."""

    KIND = NodeKind.VARIABLE

    name: Identifier
    initializer: Expression


@dataclass(frozen=True)
class Module(Node):
    KIND = NodeKind.MODULE

    variables: tuple[Variable, ...]


Expression = Union[
    BiOp,
    UnOp,
    Identifier,
    NumberLiteral,
    StringLiteral,
    Symbol,
    Tuple,
    Record,
    Select,
    Apply,
    Lambda,
    Unknown,
]
EXPRESSION_TYPES: tuple[type, ...] = (
    BiOp,
    UnOp,
    Identifier,
    NumberLiteral,
    StringLiteral,
    Symbol,
    Tuple,
    Record,
    Select,
    Apply,
    Lambda,
    Unknown,
)
Statement = Union[Variable, Expression]


def is_expression(node: Any) -> bool:
    return isinstance(node, EXPRESSION_TYPES)


def contains_unknown(node: Node) -> bool:
    """True when `node` or any descendant is an `Unknown` placeholder."""
    if isinstance(node, Unknown):
        return True
    for f in dataclasses.fields(node):
        value = getattr(node, f.name)
        stack = [value]
        while stack:
            item = stack.pop()
            if isinstance(item, Node) and contains_unknown(item):
                return True
            if isinstance(item, tuple):
                stack.extend(item)
    return False


__all__ = [
    "ASTDict",
    "Apply",
    "BINARY_OPERATORS",
    "BiOp",
    "BiOperator",
    "Context",
    "EXPRESSION_TYPES",
    "Expression",
    "Identifier",
    "Lambda",
    "Module",
    "Node",
    "NodeKind",
    "NumberLiteral",
    "Parameter",
    "Record",
    "Select",
    "Statement",
    "StringLiteral",
    "Symbol",
    "Tuple",
    "UNARY_OPERATORS",
    "UnOp",
    "UnOperator",
    "Unknown",
    "Variable",
    "contains_unknown",
    "is_expression",
]
