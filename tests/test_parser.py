"""
SHC Parser Test Suite
=====================

Tests for the recursive descent parser: functions and declarations,
statements, the layered expression grammar, indirection markers, name
resolution and the fail-fast error behaviour.
"""

import pytest

from shc.ast import (
    ASTPrinter,
    AssignmentStatement,
    BaseType,
    CallExpression,
    CallStatement,
    DeclarationStatement,
    IfStatement,
    IntegerConstant,
    JumpKind,
    JumpStatement,
    ParenthesizedExpression,
    StringLiteral,
    UnaryExpression,
    Variable,
    VariableReference,
    WhileStatement,
)
from shc.errors import (
    DuplicateDeclarationError,
    InvalidNumberError,
    MissingTokenError,
    MultipleDeclarationError,
    ShcSyntaxError,
    UndeclaredIdentifierError,
    UnexpectedTokenError,
)
from shc.lexer import Lexer, TokenType
from shc.parser import Parser, parse_source


# =============================================================================
# Helpers
# =============================================================================

def parse_one(source: str):
    """Parse source that holds exactly one function."""
    functions = parse_source(source, "test.shc")
    assert len(functions) == 1
    return functions[0]


def body_lines(source: str) -> list[str]:
    """ASTPrinter dump of the single function, stripped, from 'body:' on."""
    lines = [line.strip() for line in ASTPrinter().print(parse_one(source)).splitlines()]
    return lines[lines.index("body:") + 1:]


def expr_dump(expression: str, decls: str = "a : int; b : int; c : int;") -> str:
    """Dump the value of ``x = <expression>;`` inside a function."""
    source = f"fun f() : void {{ x : int; {decls} x = {expression}; }}"
    return body_lines(source)[-1][len("Assign x = "):]


def value_of(stmt: AssignmentStatement):
    """Innermost node of an assignment value, skipping pass-through layers."""
    node = stmt.assignment.value
    while not isinstance(node, UnaryExpression) and not node.has_left:
        node = node.right
    return node


# =============================================================================
# Function and Declaration Tests
# =============================================================================

class TestFunctions:
    """Tests for function items and their declarations."""

    def test_reference_scenario(self):
        """Declaration, precedence-shaped assignment and return."""
        func = parse_one("fun main(): int { x : int; x = 1 + 2 * 3; return x; }")
        assert ASTPrinter().print(func) == (
            "Function main : int\n"
            "  params:\n"
            "  locals:\n"
            "    int x\n"
            "  body:\n"
            "    Declare int x\n"
            "    Assign x = (1 + (2 * 3))\n"
            "    Return x"
        )

    def test_signature(self):
        func = parse_one("fun f(a : int, p : ^^char) : ^int { }")
        assert func.name == "f"
        assert func.return_type == BaseType.INT
        assert func.return_depth == 1
        assert [(p.name, p.base_type, p.depth) for p in func.parameters] == [
            ("a", BaseType.INT, 0),
            ("p", BaseType.CHAR, 2),
        ]
        assert func.body == []
        assert not func.is_placeholder

    def test_function_location_is_fun_keyword(self):
        func = parse_one("\n  fun f() : void {}")
        assert (func.location.line, func.location.column) == (2, 3)

    def test_multiple_functions_in_order(self):
        functions = parse_source("fun a() : void {} fun b() : void {} fun c() : void {}")
        assert [f.name for f in functions] == ["a", "b", "c"]

    def test_empty_program(self):
        assert parse_source("") == []

    def test_locals_in_declaration_order(self):
        func = parse_one("fun f() : void { a : int; if (true) { b : ^char; } c : void; }")
        assert [v.name for v in func.locals] == ["a", "b", "c"]
        assert func.locals[1] == Variable(location=None, name="b", base_type=BaseType.CHAR, depth=1)

    def test_initializer_is_dropped(self):
        func = parse_one("fun f() : void { x : int = 5; }")
        assert len(func.body) == 1
        assert isinstance(func.body[0], DeclarationStatement)
        assert func.body[0].variable is func.locals[0]

    def test_void_return_with_markers_rejected(self):
        with pytest.raises(ShcSyntaxError, match="'void' return type"):
            parse_source("fun f() : ^void {}")

    def test_missing_return_type(self):
        with pytest.raises(MissingTokenError):
            parse_source("fun f() {}")

    def test_multiple_declaration_rejected(self):
        with pytest.raises(MultipleDeclarationError):
            parse_source("fun f() : void { x : int, y : int; }")


# =============================================================================
# Global Declaration Tests
# =============================================================================

class TestGlobals:
    """Top-level declarations are collected but not visible to functions."""

    def test_globals_collected(self):
        parser = Parser(Lexer("g : int; h : ^char = 3; fun f() : void {}", "test.shc"))
        functions = parser.parse_program()
        assert [f.name for f in functions] == ["f"]
        assert [(g.name, g.depth) for g in parser.globals] == [("g", 0), ("h", 1)]

    def test_globals_not_visible(self):
        with pytest.raises(UndeclaredIdentifierError):
            parse_source("g : int; fun f() : void { g = 1; }")

    def test_global_initializer_sees_no_names(self):
        with pytest.raises(UndeclaredIdentifierError):
            parse_source("g : int; h : int = g;")

    def test_stray_top_level_token(self):
        with pytest.raises(UnexpectedTokenError):
            parse_source("42")


# =============================================================================
# Statement Tests
# =============================================================================

class TestStatements:
    """Tests for each statement form."""

    def test_if_else(self):
        source = "fun f(a : int) : void { if (a > 1) { a = 1; } else a = 2; }"
        assert body_lines(source) == [
            "If ((a > 1))",
            "Then:",
            "Assign a = 1",
            "Else:",
            "Assign a = 2",
        ]

    def test_if_without_else(self):
        func = parse_one("fun f(a : int) : void { if (a) a = 1; }")
        stmt = func.body[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.condition, ParenthesizedExpression)
        assert stmt.else_body is None
        assert len(stmt.then_body) == 1

    def test_empty_else_is_kept(self):
        func = parse_one("fun f(a : int) : void { if (a) a = 1; else {} }")
        assert func.body[0].else_body == []

    def test_dangling_else_binds_inner(self):
        func = parse_one("fun f(a : int) : void { if (a) if (a) a = 1; else a = 2; }")
        outer = func.body[0]
        assert outer.else_body is None
        assert outer.then_body[0].else_body is not None

    def test_while_break_continue(self):
        func = parse_one("fun f(a : int) : void { while (a) { break; continue; } }")
        loop = func.body[0]
        assert isinstance(loop, WhileStatement)
        assert [s.kind for s in loop.body] == [JumpKind.BREAK, JumpKind.CONTINUE]

    def test_return_forms(self):
        func = parse_one("fun f() : int { return; return 1; }")
        bare, valued = func.body
        assert isinstance(bare, JumpStatement) and bare.value is None
        assert valued.value.slots[0].value is not None

    def test_call_statement(self):
        func = parse_one('fun f() : void { print("hi", 1); }')
        stmt = func.body[0]
        assert isinstance(stmt, CallStatement)
        assert stmt.callee.name == "print"
        assert stmt.callee.is_placeholder
        assert len(stmt.arguments) == 2

    def test_blocks_are_spliced(self):
        func = parse_one("fun f() : void { x : int; { x = 1; { x = 2; } } }")
        assert [type(s) for s in func.body] == [
            DeclarationStatement,
            AssignmentStatement,
            AssignmentStatement,
        ]

    def test_empty_statements_vanish(self):
        func = parse_one("fun f() : void { ; ; x : int; ; }")
        assert len(func.body) == 1

    def test_missing_semicolon(self):
        with pytest.raises(MissingTokenError) as exc:
            parse_source("fun f() : void { x : int x = 1; }")
        assert exc.value.message == "expected ';' before 'x'"

    def test_missing_closing_brace(self):
        with pytest.raises(MissingTokenError, match="end of input"):
            parse_source("fun f() : void { x : int;")

    def test_name_without_statement_form(self):
        with pytest.raises(UnexpectedTokenError):
            parse_source("fun f(a : int) : void { a + 1; }")

    def test_brackets_are_not_grammar(self):
        with pytest.raises(ShcSyntaxError):
            parse_source("fun f(a : int) : void { a = a[1]; }")


# =============================================================================
# Expression Tests
# =============================================================================

class TestExpressions:
    """Tests for the layered expression grammar."""

    def test_precedence_ladder(self):
        decls = "a : int; b : int; c : int; d : int; e : int; g : int; h : int;"
        assert expr_dump("a || b && c == d < e + g * h", decls) == (
            "(a || (b && (c == (d < (e + (g * h))))))"
        )

    def test_left_associative(self):
        assert expr_dump("a - b - c") == "((a - b) - c)"
        assert expr_dump("a / b % c") == "((a / b) % c)"

    def test_parentheses_override(self):
        assert expr_dump("(a + b) * c") == "(((a + b)) * c)"

    def test_unary_operators(self):
        assert expr_dump("-a") == "-a"
        assert expr_dump("!a") == "!a"
        assert expr_dump("- -a") == "--a"
        assert expr_dump("-a * b") == "(-a * b)"

    def test_literal_factors(self):
        func = parse_one("fun f() : void { x : int; x = 'A'; x = true; x = false; x = \"s\"; }")
        values = [value_of(s).operand for s in func.body[1:]]
        assert values[:3] == [
            IntegerConstant(location=None, value=65),
            IntegerConstant(location=None, value=1),
            IntegerConstant(location=None, value=0),
        ]
        assert values[3] == StringLiteral(location=None, value="s")

    def test_call_in_expression(self):
        func = parse_one("fun f() : int { return g(1, h()); }")
        call = func.body[0].value.slots[0].value
        while not isinstance(call, UnaryExpression):
            call = call.right
        call = call.operand
        assert isinstance(call, CallExpression)
        assert call.callee.name == "g"
        assert len(call.arguments) == 2

    def test_lexical_error_surfaces(self):
        with pytest.raises(InvalidNumberError):
            parse_source("fun f() : void { x : int; x = 01; }")


# =============================================================================
# Indirection Marker Tests
# =============================================================================

class TestMarkers:
    """Usage depth is the number of markers written at the use site."""

    def test_marked_reads(self):
        func = parse_one("fun f(p : ^int) : void { x : int; x = ^p; x = &x; x = p; }")
        depths = [value_of(s).operand.usage_depth for s in func.body[1:]]
        assert depths == [1, 1, 0]

    def test_reference_resolves_declaration(self):
        func = parse_one("fun f(p : ^^int) : void { ^^p = 3; }")
        target = func.body[0].assignment.target
        assert isinstance(target, VariableReference)
        assert target.variable is func.parameters[0]
        assert target.usage_depth == 2
        assert target.declared_depth == 2

    def test_marker_on_call_rejected(self):
        with pytest.raises(ShcSyntaxError, match="cannot be applied to a call"):
            parse_source("fun f() : void { x : int; x = ^g(); }")

    def test_marker_needs_name(self):
        with pytest.raises(MissingTokenError):
            parse_source("fun f() : void { x : int; x = ^1; }")

    def test_dereference_assignment_needs_equals(self):
        with pytest.raises(UnexpectedTokenError):
            parse_source("fun f(p : ^int) : void { ^p; }")


# =============================================================================
# Name Resolution Tests
# =============================================================================

class TestNames:
    """Tests for the symbol table and block visibility."""

    def test_undeclared(self):
        with pytest.raises(UndeclaredIdentifierError) as exc:
            parse_source("fun f() : void { y = 1; }", "test.shc")
        assert exc.value.identifier == "y"
        assert str(exc.value).startswith("test.shc:1:18: error: undeclared identifier 'y'")

    def test_use_before_declaration(self):
        with pytest.raises(UndeclaredIdentifierError):
            parse_source("fun f() : void { x = 1; x : int; }")

    def test_similar_name_hint(self):
        with pytest.raises(UndeclaredIdentifierError) as exc:
            parse_source("fun f(count : int) : void { cuont = 1; }")
        assert exc.value.similar_identifiers == ["count"]
        assert "hint: did you mean 'count'?" in str(exc.value)

    def test_nested_block_sees_earlier_locals(self):
        func = parse_one("fun f() : void { x : int; while (x) { x = x - 1; } }")
        assert len(func.locals) == 1

    @pytest.mark.parametrize("source", [
        "fun f() : int { if (true) { y : int; } y = 2; return 0; }",
        "fun f() : int { if (true) y : int; y = 2; return 0; }",
        "fun f(a : int) : void { if (a) { } else { y : int; } y = 2; }",
        "fun f(a : int) : void { while (a) { y : int; a = 0; } y = 2; }",
    ])
    def test_body_local_out_of_scope_after_body(self, source):
        """Names declared in an if, else or while body end with it."""
        with pytest.raises(UndeclaredIdentifierError) as exc:
            parse_source(source)
        assert exc.value.identifier == "y"

    def test_else_does_not_see_then_locals(self):
        with pytest.raises(UndeclaredIdentifierError):
            parse_source("fun f(a : int) : void { if (a) { y : int; } else { y = 1; } }")

    def test_body_local_visible_inside_body(self):
        func = parse_one("fun f(a : int) : void { while (a) { y : int; y = a; if (y) { y = 0; } } }")
        assert [v.name for v in func.locals] == ["y"]

    def test_sibling_bodies_may_reuse_name(self):
        func = parse_one(
            "fun f(a : int) : void { if (a) { t : int; } else { t : char; } while (a) { t : int; } }"
        )
        assert [v.name for v in func.locals] == ["t", "t", "t"]

    def test_body_local_cannot_shadow_outer(self):
        with pytest.raises(DuplicateDeclarationError):
            parse_source("fun f() : void { x : int; if (x) { x : char; } }")

    def test_bare_block_names_stay_visible(self):
        """A bare block is spliced into its sequence, so its names remain."""
        func = parse_one("fun f() : void { { y : int; } y = 2; }")
        assert func.body[-1].assignment.target.name == "y"

    def test_duplicate_local(self):
        with pytest.raises(DuplicateDeclarationError) as exc:
            parse_source("fun f() : void { x : int; x : char; }")
        assert exc.value.original_location.column == 18

    def test_local_shadowing_parameter(self):
        with pytest.raises(DuplicateDeclarationError):
            parse_source("fun f(x : int) : void { x : int; }")

    def test_duplicate_parameter(self):
        with pytest.raises(DuplicateDeclarationError):
            parse_source("fun f(x : int, x : char) : void {}")

    def test_names_are_per_function(self):
        functions = parse_source(
            "fun a() : void { x : int; } fun b() : void { x : char; }"
        )
        assert functions[0].locals[0].base_type == BaseType.INT
        assert functions[1].locals[0].base_type == BaseType.CHAR


# =============================================================================
# Token Consumption Tests
# =============================================================================

class TestTokenCount:
    """The parser counts tokens as it pulls them from the lexer."""

    def test_counts_consumed_tokens(self):
        parser = Parser(Lexer("fun f() : void {}", "test.shc"))
        parser.parse_program()
        assert parser.token_count == 8

    def test_stops_at_first_error(self):
        """Nothing after the failing token is consumed."""
        parser = Parser(Lexer("fun f( { } fun g() : void {}", "test.shc"))
        with pytest.raises(MissingTokenError):
            parser.parse_program()
        assert parser.token_count == 3
        current = parser.lexer.current()
        assert (current.type, current.column) == (TokenType.LBRACE, 8)
