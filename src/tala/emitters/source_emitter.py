"""
Renders TALA AST nodes back into TALA source text.

This module defines the `SourceEmitter` class, which turns a parsed `Module` (or a single
expression) into canonical surface syntax. It is the formatter counterpart of the parser:
re-parsing the emitted text yields the same tree, spans aside.

Formatting rules:
    - One definition per line, each terminated by `;`.
    - Every binary and unary operation is parenthesized, so precedence never has to be
      re-derived from the output.
    - Lambdas are parenthesized wherever a following token could otherwise attach to
      their signature (as a projection target or as another lambda's signature).
    - Strings are re-escaped and numbers rendered with `render_number`.

Raises:
    - `TypeError`: If something other than an AST node is passed in.
    - `NotImplementedError`: For `Unknown` placeholders, which have no source form.
"""

from tala.tala_ast import (
    Apply,
    BiOp,
    Identifier,
    Lambda,
    Module,
    Node,
    NumberLiteral,
    Record,
    Select,
    StringLiteral,
    Symbol,
    Tuple,
    UnOp,
    Variable,
)
from tala.tala_literals import escape_string, render_number


class SourceEmitter:
    """Emits TALA source from AST nodes.

    Attributes:
        lines (list[str]): Accumulated output lines, one per module definition.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def get_output(self) -> str:
        return "\n".join(self.lines)

    def emit_module(self, node: Module) -> None:
        for variable in node.variables:
            self.lines.append(self.emit_variable(variable) + ";")

    def emit_variable(self, node: Variable) -> str:
        return f"{node.name.value} = {self.emit_expr(node.initializer)}"

    def emit_expr(self, node: Node) -> str:
        """Dispatches to the `emit_expr_<kind>` method for `node`."""
        if not isinstance(node, Node):
            raise TypeError(f"Expected an AST node, got {type(node).__name__}")
        method = getattr(self, f"emit_expr_{node.kind.value}", None)
        if method is None:
            raise NotImplementedError(
                f"No source form for node kind '{node.kind.value}' "
                f"(span {node.span.lo}..{node.span.hi})"
            )
        result: str = method(node)
        return result

    def emit_expr_identifier(self, node: Identifier) -> str:
        return node.value

    def emit_expr_number_literal(self, node: NumberLiteral) -> str:
        return render_number(node.value)

    def emit_expr_string_literal(self, node: StringLiteral) -> str:
        return escape_string(node.value)

    def emit_expr_symbol(self, node: Symbol) -> str:
        return f":{node.label}"

    def emit_expr_tuple(self, node: Tuple) -> str:
        if len(node.fields) == 1:
            return f"({self.emit_expr(node.fields[0])},)"
        return "(" + ", ".join(self.emit_expr(f) for f in node.fields) + ")"

    def emit_expr_record(self, node: Record) -> str:
        if not node.fields:
            return "{}"
        fields = ", ".join(
            f"{name.value}: {self.emit_expr(value)}" for name, value in node.fields
        )
        return "{" + fields + "}"

    def emit_expr_un_op(self, node: UnOp) -> str:
        return f"({node.operator} {self.emit_expr(node.operand)})"

    def emit_expr_bi_op(self, node: BiOp) -> str:
        return f"({self.emit_expr(node.lhs)} {node.operator} {self.emit_expr(node.rhs)})"

    def _emit_enclosed(self, node: Node) -> str:
        """Emits `node`, wrapping lambdas in parentheses."""
        text = self.emit_expr(node)
        return f"({text})" if isinstance(node, Lambda) else text

    def emit_expr_select(self, node: Select) -> str:
        return f"{self._emit_enclosed(node.record)}.{node.field.value}"

    def emit_expr_apply(self, node: Apply) -> str:
        args = ", ".join(self.emit_expr(p) for p in node.parameters)
        return f"{self._emit_enclosed(node.function)}({args})"

    def emit_expr_lambda(self, node: Lambda) -> str:
        params = ", ".join(
            f"{p.name.value}: {self._emit_enclosed(p.signature)}" for p in node.parameters
        )
        text = f"|{params}| -> {self._emit_enclosed(node.signature)}"
        if node.result is None and not node.statements:
            return text
        body = [
            self.emit_variable(s) if isinstance(s, Variable) else self.emit_expr(s)
            for s in node.statements
        ]
        if node.result is not None:
            body.append(self.emit_expr(node.result))
        return text + " { " + "; ".join(body) + " }"


def emit_source(node: Node) -> str:
    """Renders a `Module` or a single expression as TALA source."""
    emitter = SourceEmitter()
    if isinstance(node, Module):
        emitter.emit_module(node)
        return emitter.get_output()
    return emitter.emit_expr(node)


__all__ = ["SourceEmitter", "emit_source"]
