"""
SHC Abstract Syntax Tree (AST) Definitions
==========================================

This module defines the AST node types built by the SHC parser and read
by the code generator, the source printer and the AST dumper.

Node Hierarchy
--------------
ASTNode (base)
├── Variable - parameter or local (name, base type, indirection depth)
├── Function - definition or call placeholder
├── Expression - comma-separated Assignment slots
│   └── Assignment - optional target reference + or-layer value
├── ExpressionNode
│   ├── BinaryNode (six precedence layers, loosest first)
│   │   ├── OrExpression            ||
│   │   ├── AndExpression           &&
│   │   ├── EqualityExpression      == !=
│   │   ├── RelationalExpression    < > <= >=
│   │   ├── AdditiveExpression      + -
│   │   └── MultiplicativeExpression * / %
│   ├── UnaryExpression - optional prefix operator + inner unary/factor
│   └── Factor
│       ├── IntegerConstant
│       ├── StringLiteral
│       ├── ParenthesizedExpression
│       ├── VariableReference
│       └── CallExpression
└── Statement
    ├── IfStatement
    ├── WhileStatement
    ├── DeclarationStatement
    ├── CallStatement
    ├── JumpStatement (return / break / continue)
    └── AssignmentStatement

Design Notes
------------
- All nodes are dataclasses and carry the source location they came from.
- Locations are excluded from equality, so two trees compare equal when
  their shapes, names, values and depths match. The round-trip check
  relies on this.
- A binary node without ``left`` is a pass-through: it has no operator
  and means exactly its ``right`` child. ``has_left`` is the only test
  used to tell the two apart.
- A variable reference keeps both the marker count written at the use
  site and the variable's declared depth; they are never merged here.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Union

from shc.errors import SourceLocation


# =============================================================================
# Types
# =============================================================================

class BaseType(Enum):
    """The three primitive types. The value is the SHC keyword."""
    VOID = "void"
    CHAR = "char"
    INT = "int"


# =============================================================================
# AST Node Base Class
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears (not compared)
    """
    location: SourceLocation = field(compare=False)


# =============================================================================
# Declarations
# =============================================================================

@dataclass
class Variable(ASTNode):
    """
    A parameter or local variable.

    Owned by its Function for the Function's whole lifetime and never
    mutated after construction.

    Attributes:
        name: Variable name
        base_type: void, char or int
        depth: Number of indirection markers in the declared type
    """
    name: str = ""
    base_type: BaseType = BaseType.INT
    depth: int = 0

    def type_text(self) -> str:
        """SHC spelling of the declared type, e.g. '^^char'."""
        return "^" * self.depth + self.base_type.value


@dataclass
class Function(ASTNode):
    """
    Function definition, or a call-target placeholder.

    A placeholder carries only a name; its return type is void and its
    lists are empty. Locals are appended in declaration order while the
    body is parsed.

    Attributes:
        name: Function name
        return_type: Base type returned
        return_depth: Indirection depth of the return type
        parameters: Ordered parameters
        locals: Ordered local variables
        body: Ordered statements
        is_placeholder: True for call targets built from a name only
    """
    name: str = ""
    return_type: BaseType = BaseType.VOID
    return_depth: int = 0
    parameters: list[Variable] = field(default_factory=list)
    locals: list[Variable] = field(default_factory=list)
    body: list["Statement"] = field(default_factory=list)
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, name: str, location: SourceLocation) -> "Function":
        """Build the name-only callee used by call sites."""
        return cls(location=location, name=name, is_placeholder=True)

    def return_type_text(self) -> str:
        return "^" * self.return_depth + self.return_type.value


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class ExpressionNode(ASTNode):
    """Base class for nodes inside the precedence layers."""
    pass


class BinaryOperator(Enum):
    """Binary operators. The value is the operator text."""
    # Logical
    LOGICAL_OR = "||"
    LOGICAL_AND = "&&"

    # Comparison
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    GREATER = ">"
    LESS_EQ = "<="
    GREATER_EQ = ">="

    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"


class UnaryOperator(Enum):
    """Prefix operators. Indirection markers are not operators; they
    are folded into the variable reference they precede."""
    POSITIVE = "+"
    NEGATE = "-"
    LOGICAL_NOT = "!"


@dataclass
class BinaryNode(ExpressionNode):
    """
    One node of a binary precedence layer.

    ``left`` is a node of the same layer, ``right`` a node of the next
    tighter layer (a UnaryExpression below MultiplicativeExpression).

    Attributes:
        left: Accumulated left operand, absent for a pass-through node
        operator: The operator, present exactly when left is
        right: Right operand
    """
    left: Optional["BinaryNode"] = None
    operator: Optional[BinaryOperator] = None
    right: Optional[ExpressionNode] = None

    @property
    def has_left(self) -> bool:
        return self.left is not None


@dataclass
class OrExpression(BinaryNode):
    """``||`` layer (loosest)."""
    pass


@dataclass
class AndExpression(BinaryNode):
    """``&&`` layer."""
    pass


@dataclass
class EqualityExpression(BinaryNode):
    """``==`` and ``!=`` layer."""
    pass


@dataclass
class RelationalExpression(BinaryNode):
    """``<``, ``>``, ``<=`` and ``>=`` layer."""
    pass


@dataclass
class AdditiveExpression(BinaryNode):
    """``+`` and ``-`` layer."""
    pass


@dataclass
class MultiplicativeExpression(BinaryNode):
    """``*``, ``/`` and ``%`` layer (tightest binary layer)."""
    pass


@dataclass
class UnaryExpression(ExpressionNode):
    """
    Unary layer.

    With an operator, ``operand`` is another UnaryExpression; without
    one, it is the terminal Factor.
    """
    operator: Optional[UnaryOperator] = None
    operand: Union["UnaryExpression", "Factor", None] = None


@dataclass
class Factor(ExpressionNode):
    """Base class for terminal expression nodes."""
    pass


@dataclass
class IntegerConstant(Factor):
    """Integer literal, character literal (its code) or true/false (1/0)."""
    value: int = 0


@dataclass
class StringLiteral(Factor):
    """String literal holding the decoded characters."""
    value: str = ""


@dataclass
class ParenthesizedExpression(Factor):
    """``( expression )``; also the shape of if/while conditions."""
    expression: Optional["Expression"] = None


@dataclass
class VariableReference(Factor):
    """
    Use of a declared variable.

    Attributes:
        variable: The resolved parameter or local
        usage_depth: Indirection markers written at the use site
    """
    variable: Optional[Variable] = None
    usage_depth: int = 0

    @property
    def name(self) -> str:
        return self.variable.name

    @property
    def declared_depth(self) -> int:
        return self.variable.depth


@dataclass
class CallExpression(Factor):
    """
    Function call.

    Attributes:
        callee: Placeholder Function carrying the callee name
        arguments: Ordered argument expressions
    """
    callee: Optional[Function] = None
    arguments: list["Expression"] = field(default_factory=list)


@dataclass
class Assignment(ASTNode):
    """
    One expression slot: a plain value, or a store when target is set.

    Attributes:
        target: Assigned variable reference (absent for a plain value)
        value: Or-layer root of the value
    """
    target: Optional[VariableReference] = None
    value: Optional[OrExpression] = None

    @property
    def has_target(self) -> bool:
        return self.target is not None


@dataclass
class Expression(ASTNode):
    """
    Comma-separated list of slots. The grammar only ever fills one.
    """
    slots: list[Assignment] = field(default_factory=list)


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(ASTNode):
    """Base class for all statement nodes."""
    pass


@dataclass
class IfStatement(Statement):
    """
    ``if (cond) ... [else ...]``.

    Attributes:
        condition: The parenthesized condition
        then_body: Statements run when the condition holds
        else_body: Statements of the else branch, absent without one
    """
    condition: Optional[ParenthesizedExpression] = None
    then_body: list[Statement] = field(default_factory=list)
    else_body: Optional[list[Statement]] = None


@dataclass
class WhileStatement(Statement):
    """``while (cond) ...``."""
    condition: Optional[ParenthesizedExpression] = None
    body: list[Statement] = field(default_factory=list)


@dataclass
class DeclarationStatement(Statement):
    """Local declaration ``name : type;`` (any initializer is dropped)."""
    variable: Optional[Variable] = None


@dataclass
class CallStatement(Statement):
    """``name(args);``."""
    callee: Optional[Function] = None
    arguments: list[Expression] = field(default_factory=list)


class JumpKind(Enum):
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()


@dataclass
class JumpStatement(Statement):
    """
    ``return [expr];``, ``break;`` or ``continue;``.

    Attributes:
        kind: Which jump
        value: Returned expression, only ever present for RETURN
    """
    kind: JumpKind = JumpKind.RETURN
    value: Optional[Expression] = None


@dataclass
class AssignmentStatement(Statement):
    """``name = expr;`` or ``^name = expr;``."""
    assignment: Optional[Assignment] = None


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care
    about; everything else falls through to generic_visit.

    Usage:
        class MyVisitor(ASTVisitor):
            def visit_Function(self, node):
                ...

        MyVisitor().visit(function)
    """

    def visit(self, node: ASTNode):
        """Dispatch to ``visit_<ClassName>``."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)

    def visit_Function(self, node: Function): return self.generic_visit(node)
    def visit_Variable(self, node: Variable): return self.generic_visit(node)
    def visit_IfStatement(self, node: IfStatement): return self.generic_visit(node)
    def visit_WhileStatement(self, node: WhileStatement): return self.generic_visit(node)
    def visit_DeclarationStatement(self, node: DeclarationStatement): return self.generic_visit(node)
    def visit_CallStatement(self, node: CallStatement): return self.generic_visit(node)
    def visit_JumpStatement(self, node: JumpStatement): return self.generic_visit(node)
    def visit_AssignmentStatement(self, node: AssignmentStatement): return self.generic_visit(node)


# =============================================================================
# AST Dumper
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Structural dump of parsed functions for debugging and diffing.

    Every binary node with a left operand is wrapped in parentheses, so
    the dump shows how the precedence layers grouped each expression.

    Usage:
        printer = ASTPrinter()
        print(printer.print(functions))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, nodes: Union[ASTNode, list[ASTNode]]) -> str:
        """Dump one node or a list of nodes and return the text."""
        self.output = []
        self.indent_level = 0
        if isinstance(nodes, list):
            for node in nodes:
                self.visit(node)
        else:
            self.visit(nodes)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _indent(self) -> None:
        self.indent_level += 1

    def _dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def _block(self, title: str, statements: list[Statement]) -> None:
        self._emit(title)
        self._indent()
        for stmt in statements:
            self.visit(stmt)
        self._dedent()

    def visit_Function(self, node: Function):
        self._emit(f"Function {node.name} : {node.return_type_text()}")
        self._indent()
        self._emit("params:")
        self._indent()
        for param in node.parameters:
            self.visit(param)
        self._dedent()
        self._emit("locals:")
        self._indent()
        for local in node.locals:
            self.visit(local)
        self._dedent()
        self._block("body:", node.body)
        self._dedent()

    def visit_Variable(self, node: Variable):
        self._emit(f"{node.type_text()} {node.name}")

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If {self._expr_str(node.condition)}")
        self._indent()
        self._block("Then:", node.then_body)
        if node.else_body is not None:
            self._block("Else:", node.else_body)
        self._dedent()

    def visit_WhileStatement(self, node: WhileStatement):
        self._block(f"While {self._expr_str(node.condition)}", node.body)

    def visit_DeclarationStatement(self, node: DeclarationStatement):
        self._emit(f"Declare {node.variable.type_text()} {node.variable.name}")

    def visit_CallStatement(self, node: CallStatement):
        args = ", ".join(self._expr_str(arg) for arg in node.arguments)
        self._emit(f"Call {node.callee.name}({args})")

    def visit_JumpStatement(self, node: JumpStatement):
        label = node.kind.name.capitalize()
        if node.value is not None:
            self._emit(f"{label} {self._expr_str(node.value)}")
        else:
            self._emit(label)

    def visit_AssignmentStatement(self, node: AssignmentStatement):
        self._emit(f"Assign {self._expr_str(node.assignment)}")

    def _expr_str(self, expr) -> str:
        """Convert an expression-level node to a one-line string."""
        if expr is None:
            return ""
        if isinstance(expr, Expression):
            return ", ".join(self._expr_str(slot) for slot in expr.slots)
        if isinstance(expr, Assignment):
            value = self._expr_str(expr.value)
            if expr.has_target:
                return f"{self._expr_str(expr.target)} = {value}"
            return value
        if isinstance(expr, BinaryNode):
            if not expr.has_left:
                return self._expr_str(expr.right)
            left = self._expr_str(expr.left)
            right = self._expr_str(expr.right)
            return f"({left} {expr.operator.value} {right})"
        if isinstance(expr, UnaryExpression):
            if expr.operator is None:
                return self._expr_str(expr.operand)
            return f"{expr.operator.value}{self._expr_str(expr.operand)}"
        if isinstance(expr, IntegerConstant):
            return str(expr.value)
        if isinstance(expr, StringLiteral):
            return repr(expr.value)
        if isinstance(expr, ParenthesizedExpression):
            return f"({self._expr_str(expr.expression)})"
        if isinstance(expr, VariableReference):
            return f"{'^' * expr.usage_depth}{expr.name}"
        if isinstance(expr, CallExpression):
            args = ", ".join(self._expr_str(arg) for arg in expr.arguments)
            return f"{expr.callee.name}({args})"
        return f"<{expr.__class__.__name__}>"
