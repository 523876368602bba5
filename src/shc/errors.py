"""
SHC Compiler Error Hierarchy
============================

This module defines the exception hierarchy for the SHC compiler.
All exceptions inherit from ShcError, allowing callers to catch every
compiler failure with a single except clause.

Exception Hierarchy
-------------------
ShcError (base)
├── LexicalError - malformed tokens
│   ├── UnterminatedStringError - missing closing quote
│   ├── UnterminatedCharError - malformed character literal
│   ├── UnterminatedCommentError - missing closing */
│   ├── InvalidEscapeError - unknown escape sequence
│   ├── InvalidNumberError - leading zero or overflow
│   ├── InvalidCharacterError - unexpected character
│   └── SourceReadError - source file cannot be opened
├── ShcSyntaxError - grammar violations
│   ├── UnexpectedTokenError - wrong token for the current rule
│   ├── MissingTokenError - required token is absent
│   └── MultipleDeclarationError - two names in one declaration
├── ShcSemanticError - name resolution
│   ├── UndeclaredIdentifierError - use before declaration
│   └── DuplicateDeclarationError - name already visible
├── CodeGenError - emission failures
│   ├── UnsupportedTypeError - type with no C mapping
│   └── IndirectionError - invalid indirection marker usage
└── RoundTripError - pretty-print self-check mismatch

Error Message Format
--------------------
All errors include source location information and follow this format:

    filename:line:column: error: description
        source_line_text
            ^^^^^ (span of the offending token)
    hint: suggestion for fixing

Example:
    prog.shc:3:5: error: undeclared identifier 'cuont'
        cuont = 1;
        ^^^^^
    hint: did you mean 'count'?

The compiler is fail-fast: the first error aborts compilation of the
current file and exactly one error is raised.
"""

from dataclasses import dataclass
from typing import Optional, List


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base SHC Exception
# =============================================================================

class ShcError(Exception):
    """
    Base exception for all SHC compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error starts
        end_location: Last character of the offending span (optional)
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.end_location = end_location
        super().__init__(self._format_message())

    def with_source_line(self, source_line: Optional[str]) -> "ShcError":
        """Attach source context after construction and refresh the message."""
        self.source_line = source_line
        self.args = (self._format_message(),)
        return self

    def _caret_width(self) -> int:
        """Number of carets needed to underline the offending span."""
        if self.end_location is None or self.location is None:
            return 1
        if self.end_location.line != self.location.line:
            return 1
        return max(1, self.end_location.column - self.location.column + 1)

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            prog.shc:3:5: error: undeclared identifier 'cuont'
                cuont = 1;
                ^^^^^
            hint: did you mean 'count'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}{'^' * self._caret_width()}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class LexicalError(ShcError):
    """
    Malformed token in SHC source.

    The lexer never raises these directly; it records the error and
    produces an ERROR token. The parser raises the recorded error when
    it reaches that token.
    """
    pass


class UnterminatedStringError(LexicalError):
    """String literal not closed before the end of its line."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        super().__init__(
            "unterminated string literal",
            location=location,
            hint="add closing '\"' to complete the string",
            source_line=source_line,
            end_location=end_location,
        )


class UnterminatedCharError(LexicalError):
    """Character literal that is empty, too long, or not closed."""

    def __init__(
        self,
        message: str = "malformed character literal",
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        super().__init__(
            message,
            location=location,
            hint="character literals hold exactly one character, e.g. 'a' or '\\n'",
            source_line=source_line,
            end_location=end_location,
        )


class UnterminatedCommentError(LexicalError):
    """Block comment still open at end of input."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "unterminated block comment",
            location=location,
            hint="add closing */ to terminate the comment",
            source_line=source_line,
        )


class InvalidEscapeError(LexicalError):
    """Unknown backslash escape in a string or character literal."""

    def __init__(
        self,
        escape: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        self.escape = escape
        super().__init__(
            f"invalid escape sequence '\\{escape}'",
            location=location,
            hint="valid escapes are \\n \\t \\r \\\\ \\' \\\" \\0",
            source_line=source_line,
            end_location=end_location,
        )


class InvalidNumberError(LexicalError):
    """Integer literal with a leading zero or outside the 32-bit range."""
    pass


class InvalidCharacterError(LexicalError):
    """Character that starts no token."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character '{char}' (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class SourceReadError(LexicalError):
    """Source file could not be opened or decoded."""
    pass


# =============================================================================
# Syntax Errors
# =============================================================================

class ShcSyntaxError(ShcError):
    """
    Grammar violation in SHC source.

    Examples:
        - Missing semicolon
        - Mismatched braces
        - Declaration without a type
    """
    pass


class UnexpectedTokenError(ShcSyntaxError):
    """
    Unexpected token during parsing.

    Raised when the parser encounters a token that doesn't match
    the expected grammar rule.
    """

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        self.found = found
        self.expected = expected

        hint = None
        if expected:
            hint = f"expected {expected}"

        super().__init__(
            f"unexpected token '{found}'",
            location=location,
            hint=hint,
            source_line=source_line,
            end_location=end_location,
        )


class MissingTokenError(ShcSyntaxError):
    """Required token (like ';' or ')') not found where expected."""

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        end_location: Optional[SourceLocation] = None,
        found: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        message = f"expected {expected}"
        if found:
            message = f"{message} before '{found}'"

        super().__init__(
            message,
            location=location,
            source_line=source_line,
            end_location=end_location,
        )


class MultipleDeclarationError(ShcSyntaxError):
    """A second name follows a comma in a declaration."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "multiple declarations on one line are not allowed",
            location=location,
            hint="declare each variable in its own statement",
            source_line=source_line,
        )


# =============================================================================
# Semantic Errors
# =============================================================================

class ShcSemanticError(ShcError):
    """Syntactically valid code that violates name-resolution rules."""
    pass


class UndeclaredIdentifierError(ShcSemanticError):
    """
    Reference to an undeclared identifier.

    Locals are visible only after their declaration, so a use before
    the declaration statement is reported here too. Similarly-named
    identifiers are suggested in the hint.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_identifiers: Optional[List[str]] = None,
        end_location: Optional[SourceLocation] = None,
    ):
        self.identifier = identifier
        self.similar_identifiers = similar_identifiers or []

        hint = None
        if self.similar_identifiers:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_identifiers[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undeclared identifier '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
            end_location=end_location,
        )


class DuplicateDeclarationError(ShcSemanticError):
    """Name declared while a parameter or local of that name is visible."""

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.identifier = identifier
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{identifier}' was first declared at {original_location}"

        super().__init__(
            f"redeclaration of '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Code Generation Errors
# =============================================================================

class CodeGenError(ShcError):
    """Error raised while emitting C from a parsed program."""
    pass


class UnsupportedTypeError(CodeGenError):
    """Declared type that has no C mapping (e.g. a plain void variable)."""
    pass


class IndirectionError(CodeGenError):
    """
    Invalid indirection marker usage.

    Raised when a use site carries more than one marker beyond the
    declared depth, or when an address-of lands on an assignment target.
    """
    pass


# =============================================================================
# Self-check Errors
# =============================================================================

class RoundTripError(ShcError):
    """Pretty-printed source did not re-parse to the same AST."""
    pass
