"""
C Code Generator for SHC
========================

This module turns parsed SHC functions into C source text. It is a
single forward walk over the finished AST; nothing is written back into
the tree.

Output Layout
-------------
1. Fixed preamble: ``#include <stdio.h>``, ``<stdlib.h>``, ``<stdint.h>``
2. Global variable declarations (only when globals are passed in)
3. One forward declaration per function
4. One definition per function, in input order

Type Mapping
------------
| SHC    | C          |
|--------|------------|
| void   | void       |
| char   | uint8_t    |
| int    | uint64_t   |

A declared indirection depth N appends N ``*`` to the mapped type.

Indirection Markers
-------------------
Every variable reference carries the depth it was declared with (D) and
the number of markers written where it is used (U). With
``stars = D - U``:

- ``stars >= 0`` emits ``stars`` dereferences before the name, so a
  plain use of ``p : ^int`` is ``*p``
- ``stars == -1`` emits a single address-of, ``&x``
- anything lower is an IndirectionError

The rule is the same for reads and for assignment targets, except that
an address-of target is rejected because ``&x = ...`` is not valid C.

Entry Point
-----------
``main`` returning plain ``int`` is emitted with an ``int`` return.
With parameters, its first two are rewritten to ``int`` and
``char**`` (argc/argv style); any further ones use the normal mapping.
"""

import logging
from typing import Optional

from shc.ast import (
    Assignment,
    AssignmentStatement,
    BaseType,
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
from shc.errors import CodeGenError, UnsupportedTypeError, IndirectionError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

PREAMBLE = [
    "#include <stdio.h>",
    "#include <stdlib.h>",
    "#include <stdint.h>",
]

C_TYPES: dict[BaseType, str] = {
    BaseType.VOID: "void",
    BaseType.CHAR: "uint8_t",
    BaseType.INT: "uint64_t",
}

# Decoded characters and their C escape spelling
C_ESCAPES = {
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\\": "\\\\",
    '"': '\\"',
}

ENTRY_POINT = "main"


def escape_c_string(value: str) -> str:
    """Re-encode a decoded string literal using C escape syntax."""
    out = []
    for i, char in enumerate(value):
        if char == "\0":
            # A following octal digit would extend a short \0 escape
            following = value[i + 1:i + 2]
            out.append("\\000" if following and following in "01234567" else "\\0")
        else:
            out.append(C_ESCAPES.get(char, char))
    return "".join(out)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates C source from parsed SHC functions.

    Usage:
        generator = CodeGenerator()
        text = generator.generate(functions)

    Attributes:
        indent: Text used for one level of indentation
    """

    def __init__(self, indent: str = "    "):
        self.indent = indent
        self._output: list[str] = []
        self._level = 0

    def generate(
        self,
        functions: list[Function],
        globals: Optional[list[Variable]] = None,
    ) -> str:
        """
        Generate C source text.

        Args:
            functions: Parsed functions in source order
            globals: Top-level variables to declare (forward-declaration mode)

        Returns:
            The complete C translation unit

        Raises:
            CodeGenError: On an unsupported type or invalid indirection
        """
        self._output = []
        self._level = 0

        for line in PREAMBLE:
            self._emit(line)
        self._emit()

        if globals:
            for variable in globals:
                self._emit(f"{self._declaration(variable)};")
            self._emit()

        if functions:
            for function in functions:
                self._emit(f"{self._signature(function)};")
            self._emit()

        for function in functions:
            self._generate_function(function)

        return "\n".join(self._output)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line at the current indentation."""
        if line:
            self._output.append(f"{self.indent * self._level}{line}")
        else:
            self._output.append("")

    def _generate_body(self, statements: list[Statement]) -> None:
        self._level += 1
        for stmt in statements:
            self._generate_statement(stmt)
        self._level -= 1

    # =========================================================================
    # Types and Declarations
    # =========================================================================

    def _type_text(self, base_type: BaseType, depth: int) -> str:
        return C_TYPES[base_type] + "*" * depth

    def _declaration(self, variable: Variable) -> str:
        """``<type> <name>`` for a parameter, local or global."""
        if variable.base_type == BaseType.VOID and variable.depth == 0:
            raise UnsupportedTypeError(
                f"variable '{variable.name}' cannot have type 'void'",
                variable.location,
                hint="use '^void' for an untyped pointer",
            )
        return f"{self._type_text(variable.base_type, variable.depth)} {variable.name}"

    def _is_entry_point(self, function: Function) -> bool:
        return (
            function.name == ENTRY_POINT
            and function.return_type == BaseType.INT
            and function.return_depth == 0
        )

    def _signature(self, function: Function) -> str:
        """Return type, name and parameter list, without a trailing ';'."""
        if self._is_entry_point(function):
            return f"int {function.name}({self._entry_parameters(function.parameters)})"

        if function.return_type == BaseType.VOID and function.return_depth > 0:
            raise UnsupportedTypeError(
                f"function '{function.name}' cannot return a pointer to void",
                function.location,
            )
        return_type = self._type_text(function.return_type, function.return_depth)
        return f"{return_type} {function.name}({self._parameter_list(function.parameters)})"

    def _parameter_list(self, parameters: list[Variable]) -> str:
        if not parameters:
            return "void"
        return ", ".join(self._declaration(param) for param in parameters)

    def _entry_parameters(self, parameters: list[Variable]) -> str:
        """Parameter list for main: argc/argv shape for the first two."""
        if not parameters:
            return "void"
        parts = [f"int {parameters[0].name}"]
        if len(parameters) > 1:
            parts.append(f"char** {parameters[1].name}")
        parts.extend(self._declaration(param) for param in parameters[2:])
        return ", ".join(parts)

    # =========================================================================
    # Function and Statement Generation
    # =========================================================================

    def _generate_function(self, function: Function) -> None:
        self._emit(f"{self._signature(function)} {{")
        self._generate_body(function.body)
        self._emit("}")
        self._emit()
        logger.debug(f"Generated function '{function.name}' ({len(function.body)} statements)")

    def _generate_statement(self, stmt: Statement) -> None:
        """Generate code for any statement."""
        if isinstance(stmt, DeclarationStatement):
            self._emit(f"{self._declaration(stmt.variable)};")
        elif isinstance(stmt, AssignmentStatement):
            self._emit(f"{self._assignment(stmt.assignment)};")
        elif isinstance(stmt, CallStatement):
            self._emit(f"{self._call(stmt.callee, stmt.arguments)};")
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        elif isinstance(stmt, WhileStatement):
            self._generate_while(stmt)
        elif isinstance(stmt, JumpStatement):
            self._generate_jump(stmt)
        else:
            raise CodeGenError(
                f"cannot generate code for {stmt.__class__.__name__}",
                stmt.location,
            )

    def _generate_if(self, stmt: IfStatement) -> None:
        """Generate an if statement; an empty else is left out."""
        self._emit(f"if {self._factor(stmt.condition)} {{")
        self._generate_body(stmt.then_body)
        if stmt.else_body:
            self._emit("} else {")
            self._generate_body(stmt.else_body)
        self._emit("}")

    def _generate_while(self, stmt: WhileStatement) -> None:
        self._emit(f"while {self._factor(stmt.condition)} {{")
        self._generate_body(stmt.body)
        self._emit("}")

    def _generate_jump(self, stmt: JumpStatement) -> None:
        if stmt.kind == JumpKind.RETURN:
            if stmt.value is not None:
                self._emit(f"return {self._expression(stmt.value)};")
            else:
                self._emit("return;")
        elif stmt.kind == JumpKind.BREAK:
            self._emit("break;")
        else:
            self._emit("continue;")

    # =========================================================================
    # Expression Generation
    # =========================================================================

    def _expression(self, expr: Expression) -> str:
        return ", ".join(self._assignment(slot) for slot in expr.slots)

    def _assignment(self, assignment: Assignment) -> str:
        value = self._node(assignment.value)
        if assignment.has_target:
            return f"{self._reference(assignment.target, is_target=True)} = {value}"
        return value

    def _node(self, node: ExpressionNode) -> str:
        """Generate any node of the precedence layers."""
        if isinstance(node, BinaryNode):
            if not node.has_left:
                return self._node(node.right)
            left = self._node(node.left)
            right = self._node(node.right)
            return f"({left} {node.operator.value} {right})"

        if isinstance(node, UnaryExpression):
            return self._unary(node)

        return self._factor(node)

    def _unary(self, node: UnaryExpression) -> str:
        if node.operator is None:
            return self._node(node.operand)

        operand = self._node(node.operand)
        # Keeps '- -x' from becoming the '--' operator
        if isinstance(node.operand, UnaryExpression) and node.operand.operator is not None:
            operand = f"({operand})"
        return f"{node.operator.value}{operand}"

    def _factor(self, factor: ExpressionNode) -> str:
        if isinstance(factor, IntegerConstant):
            return str(factor.value)

        if isinstance(factor, StringLiteral):
            return f'"{escape_c_string(factor.value)}"'

        if isinstance(factor, ParenthesizedExpression):
            inner = self._expression(factor.expression)
            if is_wrapped(factor.expression):
                return inner
            return f"({inner})"

        if isinstance(factor, VariableReference):
            return self._reference(factor)

        if isinstance(factor, CallExpression):
            return self._call(factor.callee, factor.arguments)

        raise CodeGenError(
            f"cannot generate code for {factor.__class__.__name__}",
            factor.location,
        )

    def _call(self, callee: Function, arguments: list[Expression]) -> str:
        args = ", ".join(self._expression(arg) for arg in arguments)
        return f"{callee.name}({args})"

    def _reference(self, ref: VariableReference, is_target: bool = False) -> str:
        """
        Apply the ``stars = declared - usage`` rule to a variable use.

        Raises:
            IndirectionError: If usage exceeds the declared depth by more
                than one, or an address-of is used as an assignment target
        """
        stars = ref.declared_depth - ref.usage_depth
        if stars >= 0:
            return "*" * stars + ref.name

        if stars < -1:
            raise IndirectionError(
                f"'{ref.name}' is declared with {ref.declared_depth} indirection "
                f"level(s) but used with {ref.usage_depth} marker(s)",
                ref.location,
                hint="at most one marker beyond the declared depth (address-of) is allowed",
            )

        if is_target:
            raise IndirectionError(
                f"cannot assign to the address of '{ref.name}'",
                ref.location,
                hint=f"use at most {ref.declared_depth} marker(s) on an assignment target",
            )

        return "&" + ref.name


def is_wrapped(expression: Expression) -> bool:
    """
    True when the generated text of ``expression`` is already enclosed
    in parentheses, i.e. its outermost real node is a binary operation.
    """
    if len(expression.slots) != 1 or expression.slots[0].has_target:
        return False

    node = expression.slots[0].value
    while isinstance(node, BinaryNode) and not node.has_left:
        node = node.right
    return isinstance(node, BinaryNode)
