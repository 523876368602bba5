"""
SHC Source Printer
==================

Serializes parsed functions back to SHC source text, and uses that to
check the parser against itself: printing an AST and parsing the text
again must give a structurally identical AST.

Layout
------
    fun add(a : int, p : ^int) : int {
        total : int;
        total = a + p;
        if (total > 10) {
            return 10;
        } else {
            return total;
        }
    }

Binary operators are printed without extra parentheses; the precedence
layers make the text re-parse to the same tree. Parenthesized factors
keep their parentheses.
"""

import difflib
import logging
from typing import Optional

from shc.ast import (
    ASTPrinter,
    ASTVisitor,
    Assignment,
    AssignmentStatement,
    BinaryNode,
    CallExpression,
    CallStatement,
    DeclarationStatement,
    Expression,
    ExpressionNode,
    Function,
    IfStatement,
    IntegerConstant,
    JumpKind,
    JumpStatement,
    ParenthesizedExpression,
    Statement,
    StringLiteral,
    UnaryExpression,
    Variable,
    VariableReference,
    WhileStatement,
)
from shc.errors import ShcError, RoundTripError
from shc.lexer import Lexer
from shc.parser import Parser

logger = logging.getLogger(__name__)


# Decoded characters and their SHC escape spelling
SHC_ESCAPES = {
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\\": "\\\\",
    '"': '\\"',
    "\0": "\\0",
}


def escape_shc_string(value: str) -> str:
    return "".join(SHC_ESCAPES.get(char, char) for char in value)


class SourcePrinter(ASTVisitor):
    """
    Pretty printer producing SHC source.

    Usage:
        printer = SourcePrinter()
        text = printer.print_program(functions)
    """

    def __init__(self, indent: str = "    "):
        self.indent = indent
        self.output: list[str] = []
        self.indent_level = 0

    def print_program(
        self,
        functions: list[Function],
        globals: Optional[list[Variable]] = None,
    ) -> str:
        """Print globals, then every function separated by blank lines."""
        self.output = []
        self.indent_level = 0

        if globals:
            for variable in globals:
                self._emit(f"{self._declarator(variable)};")
            self._emit()

        for function in functions:
            self.visit(function)
            self._emit()

        return "\n".join(self.output)

    def print_function(self, function: Function) -> str:
        return self.print_program([function])

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit(self, text: str = "") -> None:
        if text:
            self.output.append(f"{self.indent * self.indent_level}{text}")
        else:
            self.output.append("")

    def _body(self, statements: list[Statement]) -> None:
        self.indent_level += 1
        for stmt in statements:
            self.visit(stmt)
        self.indent_level -= 1

    def _declarator(self, variable: Variable) -> str:
        return f"{variable.name} : {variable.type_text()}"

    # =========================================================================
    # Functions and Statements
    # =========================================================================

    def visit_Function(self, node: Function):
        params = ", ".join(self._declarator(param) for param in node.parameters)
        self._emit(f"fun {node.name}({params}) : {node.return_type_text()} {{")
        self._body(node.body)
        self._emit("}")

    def visit_DeclarationStatement(self, node: DeclarationStatement):
        self._emit(f"{self._declarator(node.variable)};")

    def visit_AssignmentStatement(self, node: AssignmentStatement):
        self._emit(f"{self._assignment(node.assignment)};")

    def visit_CallStatement(self, node: CallStatement):
        self._emit(f"{self._call(node.callee, node.arguments)};")

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"if {self._node(node.condition)} {{")
        self._body(node.then_body)
        if node.else_body is not None:
            self._emit("} else {")
            self._body(node.else_body)
        self._emit("}")

    def visit_WhileStatement(self, node: WhileStatement):
        self._emit(f"while {self._node(node.condition)} {{")
        self._body(node.body)
        self._emit("}")

    def visit_JumpStatement(self, node: JumpStatement):
        if node.kind == JumpKind.RETURN:
            if node.value is not None:
                self._emit(f"return {self._expression(node.value)};")
            else:
                self._emit("return;")
        elif node.kind == JumpKind.BREAK:
            self._emit("break;")
        else:
            self._emit("continue;")

    # =========================================================================
    # Expressions
    # =========================================================================

    def _expression(self, expr: Expression) -> str:
        return ", ".join(self._assignment(slot) for slot in expr.slots)

    def _assignment(self, assignment: Assignment) -> str:
        value = self._node(assignment.value)
        if assignment.has_target:
            return f"{self._node(assignment.target)} = {value}"
        return value

    def _call(self, callee: Function, arguments: list[Expression]) -> str:
        args = ", ".join(self._expression(arg) for arg in arguments)
        return f"{callee.name}({args})"

    def _node(self, node: ExpressionNode) -> str:
        if isinstance(node, BinaryNode):
            if not node.has_left:
                return self._node(node.right)
            return f"{self._node(node.left)} {node.operator.value} {self._node(node.right)}"
        if isinstance(node, UnaryExpression):
            if node.operator is None:
                return self._node(node.operand)
            return f"{node.operator.value}{self._node(node.operand)}"
        if isinstance(node, IntegerConstant):
            return str(node.value)
        if isinstance(node, StringLiteral):
            return f'"{escape_shc_string(node.value)}"'
        if isinstance(node, ParenthesizedExpression):
            return f"({self._expression(node.expression)})"
        if isinstance(node, VariableReference):
            return "^" * node.usage_depth + node.name
        if isinstance(node, CallExpression):
            return self._call(node.callee, node.arguments)
        raise TypeError(f"cannot print {node.__class__.__name__}")


# =============================================================================
# Round-trip Self-check
# =============================================================================

def check_roundtrip(
    functions: list[Function],
    filename: str = "<roundtrip>",
    globals: Optional[list[Variable]] = None,
    indent: str = "    ",
) -> str:
    """
    Pretty-print ``functions``, parse the text again and compare.

    Returns:
        The pretty-printed source

    Raises:
        RoundTripError: If the text does not parse or parses differently
    """
    text = SourcePrinter(indent).print_program(functions, globals)

    parser = Parser(Lexer(text, filename))
    try:
        reparsed = parser.parse_program()
    except ShcError as e:
        raise RoundTripError(
            "pretty-printed source does not parse",
            hint=str(e).splitlines()[0],
        ) from e

    if reparsed == functions and parser.globals == list(globals or []):
        logger.debug(f"{filename}: round-trip check passed ({len(functions)} functions)")
        return text

    dumper = ASTPrinter()
    before = dumper.print(functions).splitlines()
    after = dumper.print(reparsed).splitlines()
    changes = [
        line for line in difflib.unified_diff(before, after, lineterm="", n=0)
        if line[:1] in "+-" and not line.startswith(("+++", "---"))
    ]
    hint = f"first difference: {changes[0]}" if changes else "global declarations differ"
    raise RoundTripError("re-parsed AST differs from the original", hint=hint)
