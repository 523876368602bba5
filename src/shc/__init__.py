"""
SHC Compiler
============

A compiler for SHC, a small C-like language with a single, overloaded
indirection marker, producing portable C source.

Pipeline
--------
    SHC Source → Lexer → Parser → AST → Code Generator → C

The indirection marker (``^`` or ``&``) is resolved against each
variable's declared pointer depth: a use with fewer markers than the
declaration dereferences, one marker more takes the address.

Usage
-----
>>> from shc import compile_shc
>>> source = '''
... fun main() : int {
...     x : int;
...     x = 1 + 2 * 3;
...     return x;
... }
... '''
>>> print(compile_shc(source))  # C source

Or use the command-line tool:
    $ shcc prog.shc
"""

# =============================================================================
# Version Information
# =============================================================================

__version__ = "0.1.0"

# =============================================================================
# Public API Imports
# =============================================================================

from shc.compiler import (
    ShcCompiler,
    CompilerOptions,
    CompilerResult,
    lex,
    parse,
    generate,
    compile_shc,
    compile_file,
)
from shc.errors import (
    SourceLocation,
    ShcError,
    LexicalError,
    ShcSyntaxError,
    ShcSemanticError,
    UndeclaredIdentifierError,
    DuplicateDeclarationError,
    CodeGenError,
    UnsupportedTypeError,
    IndirectionError,
    RoundTripError,
)
from shc.lexer import Lexer, Token, TokenType
from shc.parser import Parser, parse_source
from shc.codegen import CodeGenerator
from shc.printer import SourcePrinter, check_roundtrip
from shc.ast import (
    ASTNode,
    ASTPrinter,
    BaseType,
    Variable,
    Function,
    Expression,
    Assignment,
    VariableReference,
    CallExpression,
    IntegerConstant,
    StringLiteral,
    IfStatement,
    WhileStatement,
    DeclarationStatement,
    CallStatement,
    JumpStatement,
    AssignmentStatement,
)

__all__ = [
    # Version
    "__version__",
    # Main API
    "ShcCompiler",
    "CompilerOptions",
    "CompilerResult",
    "lex",
    "parse",
    "generate",
    "compile_shc",
    "compile_file",
    # Errors
    "SourceLocation",
    "ShcError",
    "LexicalError",
    "ShcSyntaxError",
    "ShcSemanticError",
    "UndeclaredIdentifierError",
    "DuplicateDeclarationError",
    "CodeGenError",
    "UnsupportedTypeError",
    "IndirectionError",
    "RoundTripError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    # Printers
    "SourcePrinter",
    "check_roundtrip",
    "ASTPrinter",
    # AST Nodes
    "ASTNode",
    "BaseType",
    "Variable",
    "Function",
    "Expression",
    "Assignment",
    "VariableReference",
    "CallExpression",
    "IntegerConstant",
    "StringLiteral",
    "IfStatement",
    "WhileStatement",
    "DeclarationStatement",
    "CallStatement",
    "JumpStatement",
    "AssignmentStatement",
]
