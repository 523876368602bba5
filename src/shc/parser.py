"""
SHC Recursive Descent Parser
============================

This module implements a recursive descent parser for SHC. It pulls
tokens from the lexer one at a time and builds the AST, resolving every
variable use against the enclosing function's symbol table.

Grammar (Simplified EBNF)
-------------------------
program         ::= (function | global_decl)*
function        ::= 'fun' IDENTIFIER '(' params? ')' ':' type '{' statement* '}'
params          ::= declarator (',' declarator)*
declarator      ::= IDENTIFIER ':' type
type            ::= '^'* ('void' | 'char' | 'int')
global_decl     ::= declarator ('=' expression)? ';'

statement       ::= '{' statement* '}'
                  | 'if' condition body ('else' body)?
                  | 'while' condition body
                  | 'return' expression? ';'
                  | 'break' ';' | 'continue' ';'
                  | declarator ('=' expression)? ';'
                  | IDENTIFIER '(' args? ')' ';'
                  | '^'* IDENTIFIER '=' or_expr ';'
                  | ';'
condition       ::= '(' expression ')'
body            ::= statement

expression      ::= or_expr
or_expr         ::= and_expr ('||' and_expr)*
and_expr        ::= equality ('&&' equality)*
equality        ::= relational (('==' | '!=') relational)*
relational      ::= additive (('<' | '>' | '<=' | '>=') additive)*
additive        ::= multiplicative (('+' | '-') multiplicative)*
multiplicative  ::= unary (('*' | '/' | '%') unary)*
unary           ::= ('+' | '-' | '!') unary | '^'+ IDENTIFIER | factor
factor          ::= NUMBER | CHAR_LITERAL | STRING | 'true' | 'false'
                  | '(' expression ')'
                  | IDENTIFIER ('(' args? ')')?
args            ::= expression (',' expression)*

The indirection marker is written ``^`` (``&`` is accepted as the same
token). Each binary layer is left-associative; the layers themselves
encode precedence, so no operator table is needed.

Names
-----
Parameters and locals live in a per-function Scope. A local becomes
visible at its declaration statement and stays visible until the end of
the if, else or while body that declared it (or the function, at top
level); redeclaring a visible name is an error. Top-level
declarations are syntax-checked and collected in ``Parser.globals`` but
are not visible inside functions. Calls are not checked against any
signature.

Error Handling
--------------
Parsing is fail-fast: the first lexical, syntax or name error is raised
and nothing after it is read.
"""

import logging
from typing import Callable, Optional

from shc.ast import (
    Assignment,
    AssignmentStatement,
    BaseType,
    BinaryNode,
    BinaryOperator,
    CallExpression,
    CallStatement,
    DeclarationStatement,
    Expression,
    Factor,
    Function,
    IfStatement,
    IntegerConstant,
    JumpKind,
    JumpStatement,
    ParenthesizedExpression,
    Statement,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
    Variable,
    VariableReference,
    WhileStatement,
    OrExpression,
    AndExpression,
    EqualityExpression,
    RelationalExpression,
    AdditiveExpression,
    MultiplicativeExpression,
)
from shc.errors import (
    LexicalError,
    ShcSyntaxError,
    UnexpectedTokenError,
    MissingTokenError,
    MultipleDeclarationError,
    UndeclaredIdentifierError,
    DuplicateDeclarationError,
)
from shc.lexer import Lexer, Token, TokenType
from shc.symbols import Scope

logger = logging.getLogger(__name__)


# =============================================================================
# Operator Tables
# =============================================================================

OR_OPERATORS = {TokenType.OR: BinaryOperator.LOGICAL_OR}

AND_OPERATORS = {TokenType.AND: BinaryOperator.LOGICAL_AND}

EQUALITY_OPERATORS = {
    TokenType.EQ: BinaryOperator.EQUAL,
    TokenType.NE: BinaryOperator.NOT_EQUAL,
}

RELATIONAL_OPERATORS = {
    TokenType.LT: BinaryOperator.LESS,
    TokenType.GT: BinaryOperator.GREATER,
    TokenType.LE: BinaryOperator.LESS_EQ,
    TokenType.GE: BinaryOperator.GREATER_EQ,
}

ADDITIVE_OPERATORS = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUBTRACT,
}

MULTIPLICATIVE_OPERATORS = {
    TokenType.STAR: BinaryOperator.MULTIPLY,
    TokenType.SLASH: BinaryOperator.DIVIDE,
    TokenType.PERCENT: BinaryOperator.MODULO,
}

UNARY_OPERATORS = {
    TokenType.PLUS: UnaryOperator.POSITIVE,
    TokenType.MINUS: UnaryOperator.NEGATE,
    TokenType.NOT: UnaryOperator.LOGICAL_NOT,
}

BASE_TYPES = {
    TokenType.VOID: BaseType.VOID,
    TokenType.CHAR: BaseType.CHAR,
    TokenType.INT: BaseType.INT,
}

# Tokens that open an integer-valued factor
INTEGER_FACTORS = (
    TokenType.NUMBER,
    TokenType.CHAR_LITERAL,
    TokenType.TRUE,
    TokenType.FALSE,
)


class Parser:
    """
    Recursive descent parser for SHC.

    The parser owns its lexer and drives it to completion. It keeps
    exactly one token of lookahead, the lexer's current token.

    Attributes:
        lexer: Token source
        filename: Source filename for error reporting
        source_lines: Original source lines for error context
        globals: Top-level variable declarations, in source order
        token_count: Tokens consumed so far (EOF is never consumed)
    """

    def __init__(self, lexer: Lexer, source_lines: Optional[list[str]] = None):
        """
        Initialize the parser.

        Args:
            lexer: Lexer positioned at the first token
            source_lines: Source lines for error context (defaults to
                          the lexer's source split into lines)
        """
        self.lexer = lexer
        self.filename = lexer.filename
        if source_lines is None:
            source_lines = lexer.source.splitlines()
        self.source_lines = source_lines
        self.globals: list[Variable] = []
        self.token_count = 0

    def parse_program(self) -> list[Function]:
        """
        Parse the whole token stream.

        Returns:
            Functions in source order

        Raises:
            ShcError: On the first lexical, syntax or name error
        """
        functions = []

        while not self._check(TokenType.EOF):
            if self._check(TokenType.FUN):
                functions.append(self._parse_function())
            elif self._check(TokenType.IDENTIFIER):
                self.globals.append(self._parse_global_declaration())
            else:
                raise self._unexpected(self._peek(), "'fun' or a global declaration")

        logger.debug(
            f"{self.filename}: parsed {len(functions)} functions, "
            f"{len(self.globals)} globals"
        )
        return functions

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _peek(self) -> Token:
        """
        Look at the current token.

        Raises:
            LexicalError: If the lexer produced an ERROR token
        """
        token = self.lexer.current()
        if token.type == TokenType.ERROR:
            if self.lexer.error is not None:
                raise self.lexer.error
            raise LexicalError(str(token.value), token.location, end_location=token.end_location)
        return token

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._peek()
        self.lexer.advance()
        self.token_count += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        """Check if current token is one of the given types."""
        return self._peek().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """
        Consume current token if it matches one of the types.

        Returns:
            The consumed token, or None if no match
        """
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, description: str) -> Token:
        """
        Expect and consume a specific token type.

        Raises:
            MissingTokenError: If the expected token is not found
        """
        if self._check(token_type):
            return self._advance()

        current = self._peek()
        raise MissingTokenError(
            description,
            current.location,
            self._get_source_line(current.line),
            end_location=current.end_location,
            found=current.describe(),
        )

    def _get_source_line(self, line: int) -> Optional[str]:
        """Get source line for error reporting."""
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _unexpected(self, token: Token, expected: str) -> UnexpectedTokenError:
        return UnexpectedTokenError(
            token.describe(),
            expected=expected,
            location=token.location,
            source_line=self._get_source_line(token.line),
            end_location=token.end_location,
        )

    # =========================================================================
    # Top-Level Parsing
    # =========================================================================

    def _parse_function(self) -> Function:
        """Parse ``fun name(params) : type { statements }``."""
        fun_token = self._expect(TokenType.FUN, "'fun'")
        name_token = self._expect(TokenType.IDENTIFIER, "function name")

        function = Function(location=fun_token.location, name=name_token.value)
        scope = Scope(function)

        self._expect(TokenType.LPAREN, "'('")
        if not self._check(TokenType.RPAREN):
            while True:
                self._parse_parameter(scope)
                if not self._match(TokenType.COMMA):
                    break
        self._expect(TokenType.RPAREN, "')'")

        self._expect(TokenType.COLON, "':' before the return type")
        function.return_type, function.return_depth = self._parse_return_type()

        self._expect(TokenType.LBRACE, "'{'")
        function.body = self._parse_statement_sequence(scope)
        self._expect(TokenType.RBRACE, "'}'")

        logger.debug(
            f"Parsed function '{function.name}' "
            f"({len(function.parameters)} params, {len(function.locals)} locals, "
            f"{len(function.body)} statements)"
        )
        return function

    def _parse_parameter(self, scope: Scope) -> None:
        """Parse one ``name : type`` parameter and register it."""
        variable = self._parse_declarator()
        existing = scope.declare_parameter(variable)
        if existing is not None:
            raise DuplicateDeclarationError(
                variable.name,
                variable.location,
                original_location=existing.location,
                source_line=self._get_source_line(variable.location.line),
            )

    def _parse_declarator(self) -> Variable:
        """Parse ``name : type`` into a Variable."""
        name_token = self._expect(TokenType.IDENTIFIER, "variable name")
        return self._parse_declarator_type(name_token)

    def _parse_declarator_type(self, name_token: Token) -> Variable:
        """Parse the ``: type`` part of a declarator whose name was consumed."""
        self._expect(TokenType.COLON, "':' after variable name")
        base_type, depth = self._parse_type()
        return Variable(
            location=name_token.location,
            name=name_token.value,
            base_type=base_type,
            depth=depth,
        )

    def _parse_type(self) -> tuple[BaseType, int]:
        """Parse ``'^'* base-type`` into (base type, indirection depth)."""
        depth = 0
        while self._match(TokenType.CARET):
            depth += 1

        token = self._peek()
        if token.type in BASE_TYPES:
            self._advance()
            return BASE_TYPES[token.type], depth

        raise self._unexpected(token, "a type ('void', 'char' or 'int')")

    def _parse_return_type(self) -> tuple[BaseType, int]:
        """Parse a return type; ``void`` may not carry markers."""
        start = self._peek()
        base_type, depth = self._parse_type()
        if base_type == BaseType.VOID and depth > 0:
            raise ShcSyntaxError(
                "a 'void' return type cannot carry indirection markers",
                start.location,
                hint="return '^char' or '^int' for a pointer result",
                source_line=self._get_source_line(start.line),
            )
        return base_type, depth

    def _parse_global_declaration(self) -> Variable:
        """
        Parse a top-level ``name : type [= expr];``.

        The initializer is checked for syntax and dropped. No names are
        visible to it.
        """
        variable = self._parse_declarator()
        if self._match(TokenType.ASSIGN):
            self._parse_expression(Scope(Function.placeholder("<global>", variable.location)))
        self._finish_declaration()
        return variable

    def _finish_declaration(self) -> None:
        """Reject a second declarator, then expect ';'."""
        if self._check(TokenType.COMMA):
            comma = self._peek()
            raise MultipleDeclarationError(
                comma.location,
                self._get_source_line(comma.line),
            )
        self._expect(TokenType.SEMICOLON, "';'")

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement_sequence(self, scope: Scope) -> list[Statement]:
        """Parse statements up to (not including) the closing '}'."""
        statements = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            statements.extend(self._parse_statement(scope))
        return statements

    def _parse_statement(self, scope: Scope) -> list[Statement]:
        """
        Parse any statement.

        Returns a list: a block contributes all of its statements and
        an empty ';' contributes none.
        """
        token = self._peek()

        if token.type == TokenType.LBRACE:
            return self._parse_block(scope)
        if token.type == TokenType.IF:
            return [self._parse_if_statement(scope)]
        if token.type == TokenType.WHILE:
            return [self._parse_while_statement(scope)]
        if token.type == TokenType.RETURN:
            return [self._parse_return_statement(scope)]
        if token.type == TokenType.BREAK:
            return [self._parse_simple_jump(JumpKind.BREAK)]
        if token.type == TokenType.CONTINUE:
            return [self._parse_simple_jump(JumpKind.CONTINUE)]
        if token.type == TokenType.SEMICOLON:
            self._advance()
            return []
        if token.type == TokenType.IDENTIFIER:
            return [self._parse_identifier_statement(scope)]
        if token.type == TokenType.CARET:
            return [self._parse_dereference_assignment(scope)]

        raise self._unexpected(token, "a statement")

    def _parse_block(self, scope: Scope) -> list[Statement]:
        """Parse ``{ statements }``."""
        self._expect(TokenType.LBRACE, "'{'")
        statements = self._parse_statement_sequence(scope)
        self._expect(TokenType.RBRACE, "'}'")
        return statements

    def _parse_body(self, scope: Scope) -> list[Statement]:
        """
        Parse the body of an if, else or while.

        The body is emitted inside its own C braces, so names declared
        in it go out of scope when it ends.
        """
        scope.push_block()
        statements = self._parse_statement(scope)
        scope.pop_block()
        return statements

    def _parse_condition(self, scope: Scope) -> ParenthesizedExpression:
        """Parse the ``( expression )`` of an if or while."""
        lparen = self._expect(TokenType.LPAREN, "'('")
        expression = self._parse_expression(scope)
        self._expect(TokenType.RPAREN, "')'")
        return ParenthesizedExpression(location=lparen.location, expression=expression)

    def _parse_if_statement(self, scope: Scope) -> IfStatement:
        """Parse if statement. A dangling else binds to the nearest if."""
        location = self._expect(TokenType.IF, "'if'").location
        condition = self._parse_condition(scope)
        then_body = self._parse_body(scope)

        else_body = None
        if self._match(TokenType.ELSE):
            else_body = self._parse_body(scope)

        return IfStatement(
            location=location,
            condition=condition,
            then_body=then_body,
            else_body=else_body,
        )

    def _parse_while_statement(self, scope: Scope) -> WhileStatement:
        """Parse while statement."""
        location = self._expect(TokenType.WHILE, "'while'").location
        condition = self._parse_condition(scope)
        body = self._parse_body(scope)
        return WhileStatement(location=location, condition=condition, body=body)

    def _parse_return_statement(self, scope: Scope) -> JumpStatement:
        """Parse return statement."""
        location = self._expect(TokenType.RETURN, "'return'").location

        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression(scope)

        self._expect(TokenType.SEMICOLON, "';'")
        return JumpStatement(location=location, kind=JumpKind.RETURN, value=value)

    def _parse_simple_jump(self, kind: JumpKind) -> JumpStatement:
        """Parse ``break;`` or ``continue;``."""
        location = self._advance().location
        self._expect(TokenType.SEMICOLON, "';'")
        return JumpStatement(location=location, kind=kind)

    def _parse_identifier_statement(self, scope: Scope) -> Statement:
        """
        Parse a statement that starts with a name: a declaration, a call
        or an assignment, decided by the token after the name.
        """
        name_token = self._advance()

        if self._check(TokenType.COLON):
            return self._parse_local_declaration(name_token, scope)

        if self._check(TokenType.LPAREN):
            call = self._parse_call(name_token, scope)
            self._expect(TokenType.SEMICOLON, "';'")
            return CallStatement(
                location=call.location,
                callee=call.callee,
                arguments=call.arguments,
            )

        if self._check(TokenType.ASSIGN):
            target = self._resolve(name_token, 0, scope)
            return self._parse_assignment_rest(target, scope)

        raise self._unexpected(self._peek(), f"':', '(' or '=' after '{name_token.value}'")

    def _parse_local_declaration(self, name_token: Token, scope: Scope) -> DeclarationStatement:
        """
        Parse ``name : type [= initializer];`` and register the local.

        The initializer is parsed and dropped.
        """
        existing = scope.lookup(name_token.value)
        if existing is not None:
            raise DuplicateDeclarationError(
                name_token.value,
                name_token.location,
                original_location=existing.location,
                source_line=self._get_source_line(name_token.line),
            )

        variable = self._parse_declarator_type(name_token)
        if self._match(TokenType.ASSIGN):
            self._parse_expression(scope)
        self._finish_declaration()

        scope.declare_local(variable)
        return DeclarationStatement(location=variable.location, variable=variable)

    def _parse_dereference_assignment(self, scope: Scope) -> AssignmentStatement:
        """Parse ``^...^name = value;``."""
        target = self._parse_marked_reference(scope)
        if not self._check(TokenType.ASSIGN):
            raise self._unexpected(self._peek(), "'=' after the assignment target")
        return self._parse_assignment_rest(target, scope)

    def _parse_assignment_rest(self, target: VariableReference, scope: Scope) -> AssignmentStatement:
        """Parse ``= or_expr ;`` for an already resolved target."""
        self._expect(TokenType.ASSIGN, "'='")
        value = self._parse_or(scope)
        self._expect(TokenType.SEMICOLON, "';'")
        assignment = Assignment(location=target.location, target=target, value=value)
        return AssignmentStatement(location=target.location, assignment=assignment)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self, scope: Scope) -> Expression:
        """Parse an expression: a single value slot."""
        value = self._parse_or(scope)
        slot = Assignment(location=value.location, value=value)
        return Expression(location=value.location, slots=[slot])

    def _parse_or(self, scope: Scope) -> OrExpression:
        """Parse logical OR expression (||)."""
        return self._parse_binary(scope, self._parse_and, OR_OPERATORS, OrExpression)

    def _parse_and(self, scope: Scope) -> AndExpression:
        """Parse logical AND expression (&&)."""
        return self._parse_binary(scope, self._parse_equality, AND_OPERATORS, AndExpression)

    def _parse_equality(self, scope: Scope) -> EqualityExpression:
        """Parse equality expression (== !=)."""
        return self._parse_binary(
            scope, self._parse_relational, EQUALITY_OPERATORS, EqualityExpression
        )

    def _parse_relational(self, scope: Scope) -> RelationalExpression:
        """Parse relational expression (< > <= >=)."""
        return self._parse_binary(
            scope, self._parse_additive, RELATIONAL_OPERATORS, RelationalExpression
        )

    def _parse_additive(self, scope: Scope) -> AdditiveExpression:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            scope, self._parse_multiplicative, ADDITIVE_OPERATORS, AdditiveExpression
        )

    def _parse_multiplicative(self, scope: Scope) -> MultiplicativeExpression:
        """Parse multiplicative expression (* / %)."""
        return self._parse_binary(
            scope, self._parse_unary, MULTIPLICATIVE_OPERATORS, MultiplicativeExpression
        )

    def _parse_binary(
        self,
        scope: Scope,
        operand_parser: Callable,
        operators: dict[TokenType, BinaryOperator],
        node_class: type,
    ) -> BinaryNode:
        """
        Generic left-associative layer parser.

        The first operand becomes a pass-through node; each further
        operator wraps the node built so far as the new ``left``.

        Args:
            operand_parser: Parser for the next tighter layer
            operators: Map of token types to this layer's operators
            node_class: BinaryNode subclass for this layer
        """
        right = operand_parser(scope)
        node = node_class(location=right.location, right=right)

        while self._peek().type in operators:
            op_token = self._advance()
            right = operand_parser(scope)
            node = node_class(
                location=node.location,
                left=node,
                operator=operators[op_token.type],
                right=right,
            )

        return node

    def _parse_unary(self, scope: Scope) -> UnaryExpression:
        """Parse unary expression (+ - ! and indirection markers)."""
        token = self._peek()

        if token.type in UNARY_OPERATORS:
            self._advance()
            operand = self._parse_unary(scope)
            return UnaryExpression(
                location=token.location,
                operator=UNARY_OPERATORS[token.type],
                operand=operand,
            )

        if token.type == TokenType.CARET:
            return UnaryExpression(
                location=token.location,
                operand=self._parse_marked_reference(scope),
            )

        return UnaryExpression(location=token.location, operand=self._parse_factor(scope))

    def _parse_marked_reference(self, scope: Scope) -> VariableReference:
        """
        Parse ``'^'+ name`` into a reference whose usage depth is the
        number of markers.
        """
        first = self._peek()
        usage_depth = 0
        while self._match(TokenType.CARET):
            usage_depth += 1

        name_token = self._expect(TokenType.IDENTIFIER, "variable name after '^'")
        if self._check(TokenType.LPAREN):
            raise ShcSyntaxError(
                "indirection markers cannot be applied to a call",
                first.location,
                hint="store the result in a variable first",
                source_line=self._get_source_line(first.line),
                end_location=name_token.end_location,
            )
        return self._resolve(name_token, usage_depth, scope, first)

    def _parse_factor(self, scope: Scope) -> Factor:
        """Parse literals, parenthesized expressions, names and calls."""
        token = self._peek()

        if token.type in INTEGER_FACTORS:
            self._advance()
            return IntegerConstant(location=token.location, value=token.value)

        if token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(location=token.location, value=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expression = self._parse_expression(scope)
            self._expect(TokenType.RPAREN, "')'")
            return ParenthesizedExpression(location=token.location, expression=expression)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                return self._parse_call(token, scope)
            return self._resolve(token, 0, scope)

        raise self._unexpected(token, "an expression")

    def _parse_call(self, name_token: Token, scope: Scope) -> CallExpression:
        """Parse ``( args )`` after a callee name."""
        self._expect(TokenType.LPAREN, "'('")

        arguments = []
        if not self._check(TokenType.RPAREN):
            while True:
                arguments.append(self._parse_expression(scope))
                if not self._match(TokenType.COMMA):
                    break

        self._expect(TokenType.RPAREN, "')'")

        return CallExpression(
            location=name_token.location,
            callee=Function.placeholder(name_token.value, name_token.location),
            arguments=arguments,
        )

    def _resolve(
        self,
        name_token: Token,
        usage_depth: int,
        scope: Scope,
        start: Optional[Token] = None,
    ) -> VariableReference:
        """
        Look a name up in the scope and build a reference to it.

        Raises:
            UndeclaredIdentifierError: If the name is not visible here
        """
        variable = scope.lookup(name_token.value)
        if variable is None:
            raise UndeclaredIdentifierError(
                name_token.value,
                location=name_token.location,
                source_line=self._get_source_line(name_token.line),
                similar_identifiers=scope.similar_names(name_token.value),
                end_location=name_token.end_location,
            )

        location = (start or name_token).location
        return VariableReference(location=location, variable=variable, usage_depth=usage_depth)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> list[Function]:
    """
    Parse SHC source code into a list of Functions.

    Raises:
        ShcError: If lexing or parsing fails
    """
    return Parser(Lexer(source, filename)).parse_program()
