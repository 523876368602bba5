"""
SHC Lexer (Tokenizer)
=====================

This module implements the lexer for SHC, a small C-like language with
an explicit pointer-indirection marker. It converts source text into a
lazily produced stream of positioned tokens for the parser.

Token Categories
----------------
- Keywords: fun, if, else, while, return, break, continue, void, int, char
- Boolean literals: true (1), false (0)
- Identifiers: variable and function names
- Numbers: decimal only; ``0`` alone is valid, ``01`` is rejected
- Strings: "double quoted"
- Characters: 'single quoted'
- Operators: + - * / % = == != < > <= >= && || ! ^ &
- Delimiters: ( ) { } [ ] , ; :

Both ``^`` and ``&`` are the indirection marker and lex to CARET.

Comments
--------
- Single-line: // comment
- Multi-line: /* comment */ (an unclosed comment is an error)

Escape Sequences
----------------
\\n (newline), \\t (tab), \\r (return), \\\\ (backslash),
\\' (quote), \\" (double quote), \\0 (null). Any other escape is an error.

Error Handling
--------------
The lexer never raises. A malformed token produces an ERROR token whose
value is the error message; the typed error is kept on ``Lexer.error``
and the parser raises it when it reaches the token. Once an ERROR or
EOF token has been produced, ``advance()`` keeps returning it.

Example Usage
-------------
>>> from shc.lexer import Lexer
>>> lexer = Lexer('fun main(): int { return 0; }', "test.shc")
>>> for token in lexer.tokenize():
...     print(token)
Token(FUN, 'fun', 1:1)
Token(IDENTIFIER, 'main', 1:5)
Token(LPAREN, '(', 1:9)
Token(RPAREN, ')', 1:10)
Token(COLON, ':', 1:11)
Token(INT, 'int', 1:13)
Token(LBRACE, '{', 1:17)
Token(RETURN, 'return', 1:19)
Token(NUMBER, 0, 1:26)
Token(SEMICOLON, ';', 1:27)
Token(RBRACE, '}', 1:29)
Token(EOF, 1:30)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Iterator, Optional, Union

from shc.errors import (
    SourceLocation,
    LexicalError,
    UnterminatedStringError,
    UnterminatedCharError,
    UnterminatedCommentError,
    InvalidEscapeError,
    InvalidNumberError,
    InvalidCharacterError,
    SourceReadError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for the SHC language.

    Keywords are distinguished from identifiers to simplify parsing.
    """

    # === Structural Tokens ===
    EOF = auto()            # End of source
    ERROR = auto()          # Lexical error, value holds the message

    # === Identifiers and Literals ===
    IDENTIFIER = auto()     # Variable/function names
    NUMBER = auto()         # Decimal integer literals
    STRING = auto()         # String literals "..."
    CHAR_LITERAL = auto()   # Character literals '...'
    TRUE = auto()           # true (value 1)
    FALSE = auto()          # false (value 0)

    # === Keywords - Declarations ===
    FUN = auto()            # fun
    VOID = auto()           # void
    CHAR = auto()           # char
    INT = auto()            # int

    # === Keywords - Control Flow ===
    IF = auto()             # if
    ELSE = auto()           # else
    WHILE = auto()          # while
    RETURN = auto()         # return
    BREAK = auto()          # break
    CONTINUE = auto()       # continue

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    PERCENT = auto()        # %

    # === Comparison and Logical Operators ===
    EQ = auto()             # ==
    NE = auto()             # !=
    LT = auto()             # <
    GT = auto()             # >
    LE = auto()             # <=
    GE = auto()             # >=
    AND = auto()            # &&
    OR = auto()             # ||
    NOT = auto()            # !

    # === Assignment and Indirection ===
    ASSIGN = auto()         # =
    CARET = auto()          # ^ or & (indirection marker)

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    COLON = auto()          # :


# =============================================================================
# Keyword and Symbol Tables
# =============================================================================

KEYWORDS: dict[str, TokenType] = {
    "fun": TokenType.FUN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "return": TokenType.RETURN,
    "break": TokenType.BREAK,
    "continue": TokenType.CONTINUE,
    "void": TokenType.VOID,
    "int": TokenType.INT,
    "char": TokenType.CHAR,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

# Values carried by the boolean literal tokens
BOOLEAN_VALUES: dict[TokenType, int] = {
    TokenType.TRUE: 1,
    TokenType.FALSE: 0,
}

# Tried before SINGLE_CHAR_SYMBOLS (maximal munch)
TWO_CHAR_SYMBOLS: dict[str, TokenType] = {
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

SINGLE_CHAR_SYMBOLS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
    "^": TokenType.CARET,
    "&": TokenType.CARET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from SHC source code.

    Attributes:
        type: The TokenType classification
        value: Identifier/keyword text, decoded integer or character code,
               decoded string, or the message of an ERROR token
        line: Line number of the first character (1-indexed)
        column: Column number of the first character (1-indexed)
        filename: Name of the source file
        end_line: Line number of the last character
        end_column: Column number of the last character
    """
    type: TokenType
    value: Union[str, int, None]
    line: int
    column: int
    filename: str
    end_line: int
    end_column: int

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def end_location(self) -> SourceLocation:
        """Return the location of the token's last character."""
        return SourceLocation(self.filename, self.end_line, self.end_column)

    def is_type_keyword(self) -> bool:
        """Return True if this token names a base type."""
        return self.type in (TokenType.VOID, TokenType.CHAR, TokenType.INT)

    def describe(self) -> str:
        """Short text used in parser error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.STRING:
            return f'"{self.value}"'
        if self.value is None:
            return self.type.name.lower()
        return str(self.value)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes SHC source code on demand.

    The first token is computed at construction. ``current()`` returns
    it and ``advance()`` replaces it with the next one, so the parser
    drives the lexer one token at a time.

    Usage:
        lexer = Lexer(source_text, filename)
        while lexer.current().type != TokenType.EOF:
            ...
            lexer.advance()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        error: The lexical error behind an ERROR token, if one occurred
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    # Escape sequences in strings and characters
    ESCAPE_SEQUENCES = {
        "n": "\n",      # Newline
        "t": "\t",      # Tab
        "r": "\r",      # Carriage return
        "\\": "\\",     # Backslash
        "'": "'",       # Single quote
        '"': '"',       # Double quote
        "0": "\0",      # Null
    }

    # Largest integer literal (32-bit signed range)
    INT_MAX = 2**31 - 1

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer and compute the first token.

        Args:
            source: The SHC source code to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source
        self.filename = filename
        self.error: Optional[LexicalError] = None

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1

        # Track line start position for error reporting
        self._line_start_pos = 0

        self._current = self._next_token()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Lexer":
        """
        Create a lexer over the contents of a source file.

        If the file cannot be read, the returned lexer's first token is
        an ERROR token and ``error`` holds a SourceReadError.
        """
        try:
            source = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            lexer = cls("", str(path))
            lexer.error = SourceReadError(
                f"cannot open source file: {e}",
                SourceLocation(str(path), 1, 1),
            )
            lexer._current = lexer._error_token(lexer.error)
            return lexer
        return cls(source, str(path))

    # =========================================================================
    # Public Token Access
    # =========================================================================

    def current(self) -> Token:
        """Return the current token without consuming it."""
        return self._current

    def advance(self) -> Token:
        """
        Consume the current token and compute the next one.

        Returns:
            The new current token
        """
        if self._current.type in (TokenType.EOF, TokenType.ERROR):
            return self._current
        self._current = self._next_token()
        return self._current

    def tokenize(self) -> Iterator[Token]:
        """
        Generate the remaining tokens, ending with EOF or ERROR.

        Yields:
            Token objects representing each lexical element
        """
        while True:
            token = self._current
            yield token
            if token.type in (TokenType.EOF, TokenType.ERROR):
                return
            self.advance()

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """
        Consume and return the current character, advancing position.

        Updates line and column tracking for error reporting.
        """
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _next_token(self) -> Token:
        """Skip trivia and scan one token, turning failures into ERROR tokens."""
        try:
            self._skip_whitespace_and_comments()
            if self._at_end():
                logger.debug(f"{self.filename}: end of source at line {self._line}")
                return self._make_token(TokenType.EOF, None, self._line, self._column)
            return self._scan_token()
        except LexicalError as e:
            self.error = e
            return self._error_token(e)

    def _make_token(
        self,
        token_type: TokenType,
        value: Union[str, int, None],
        start_line: int,
        start_column: int,
    ) -> Token:
        """
        Create a token spanning from the start position to the last
        consumed character.
        """
        end_column = max(start_column, self._column - 1)
        end_line = self._line
        if token_type == TokenType.EOF:
            end_column = start_column
        return Token(
            type=token_type,
            value=value,
            line=start_line,
            column=start_column,
            filename=self.filename,
            end_line=end_line,
            end_column=end_column,
        )

    def _error_token(self, error: LexicalError) -> Token:
        """Build the ERROR token that stands in for a lexical error."""
        location = error.location or SourceLocation(self.filename, self._line, self._column)
        end = error.end_location or location
        return Token(
            type=TokenType.ERROR,
            value=error.message,
            line=location.line,
            column=location.column,
            filename=self.filename,
            end_line=end.line,
            end_column=end.column,
        )

    def _location(self, line: int, column: int) -> SourceLocation:
        return SourceLocation(self.filename, line, column)

    def _here(self) -> SourceLocation:
        """Location of the last consumed character."""
        return SourceLocation(self.filename, self._line, max(1, self._column - 1))

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace, blank lines and comments."""
        while not self._at_end():
            char = self._peek()

            if char.isspace():
                self._advance()
                continue

            # Single-line comment: //
            if char == "/" and self._peek(1) == "/":
                self._skip_single_line_comment()
                continue

            # Multi-line comment: /* */
            if char == "/" and self._peek(1) == "*":
                self._skip_multi_line_comment()
                continue

            break

    def _skip_single_line_comment(self) -> None:
        """Skip a single-line comment (// ...)."""
        while not self._at_end() and self._peek() != "\n":
            self._advance()

    def _skip_multi_line_comment(self) -> None:
        """
        Skip a multi-line comment (/* ... */).

        Raises:
            UnterminatedCommentError: If input ends before */
        """
        start_line = self._line
        start_col = self._column
        source_line = self._get_current_line()

        # Consume the /*
        self._advance()
        self._advance()

        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()

        raise UnterminatedCommentError(self._location(start_line, start_col), source_line)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan the next token from source."""
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char in string.digits:
            return self._scan_number(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        if char == "'":
            return self._scan_char(start_line, start_column)

        return self._scan_symbol(start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier or keyword.

        ``true`` and ``false`` become boolean tokens carrying 1 and 0.
        """
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)

        if name in KEYWORDS:
            token_type = KEYWORDS[name]
            value = BOOLEAN_VALUES.get(token_type, name)
            return self._make_token(token_type, value, start_line, start_column)

        return self._make_token(TokenType.IDENTIFIER, name, start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan a decimal integer literal.

        ``0`` on its own is valid; a leading zero followed by more digits
        is rejected, and values beyond the 32-bit signed range overflow.
        """
        source_line = self._get_current_line()
        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())

        text = "".join(chars)
        start = self._location(start_line, start_column)

        if len(text) > 1 and text[0] == "0":
            raise InvalidNumberError(
                f"invalid integer literal '{text}'",
                start,
                hint="leading zeros are not allowed (no octal literals)",
                source_line=source_line,
                end_location=self._here(),
            )

        value = int(text)
        if value > self.INT_MAX:
            raise InvalidNumberError(
                f"integer literal '{text}' is too large",
                start,
                hint=f"the largest integer literal is {self.INT_MAX}",
                source_line=source_line,
                end_location=self._here(),
            )

        return self._make_token(TokenType.NUMBER, value, start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """Scan a double-quoted string literal, decoding escapes."""
        source_line = self._get_current_line()
        self._advance()  # consume opening "

        chars = []
        while not self._at_end():
            char = self._peek()

            if char == '"':
                self._advance()  # consume closing "
                return self._make_token(
                    TokenType.STRING,
                    "".join(chars),
                    start_line,
                    start_column,
                )

            if char == "\n":
                break

            if char == "\\":
                chars.append(self._scan_escape_sequence(source_line))
            else:
                chars.append(self._advance())

        raise UnterminatedStringError(
            self._location(start_line, start_column),
            source_line,
            end_location=self._here(),
        )

    def _scan_char(self, start_line: int, start_column: int) -> Token:
        """
        Scan a single-quoted character literal.

        The token value is the character code.
        """
        source_line = self._get_current_line()
        start = self._location(start_line, start_column)
        self._advance()  # consume opening '

        if self._at_end() or self._peek() in ("\n", "'"):
            raise UnterminatedCharError(
                "empty or unterminated character literal",
                start,
                source_line,
                end_location=self._here(),
            )

        if self._peek() == "\\":
            char = self._scan_escape_sequence(source_line)
        else:
            char = self._advance()

        if self._peek() != "'":
            raise UnterminatedCharError(
                "character literal too long or missing closing quote",
                start,
                source_line,
                end_location=self._here(),
            )
        self._advance()  # consume closing '

        return self._make_token(TokenType.CHAR_LITERAL, ord(char), start_line, start_column)

    def _scan_escape_sequence(self, source_line: str) -> str:
        """
        Scan a backslash escape and return the character it denotes.

        Raises:
            InvalidEscapeError: If the escape is not one of the seven
                recognised sequences
        """
        start = self._location(self._line, self._column)
        self._advance()  # consume backslash

        char = self._peek()
        if char and char in self.ESCAPE_SEQUENCES:
            self._advance()
            return self.ESCAPE_SEQUENCES[char]

        if char and char != "\n":
            self._advance()
        raise InvalidEscapeError(
            char if char != "\n" else "newline",
            start,
            source_line,
            end_location=self._here(),
        )

    def _scan_symbol(self, start_line: int, start_column: int) -> Token:
        """Scan an operator or delimiter using maximal munch."""
        pair = self._peek() + self._peek(1)
        if pair in TWO_CHAR_SYMBOLS:
            self._advance()
            self._advance()
            return self._make_token(TWO_CHAR_SYMBOLS[pair], pair, start_line, start_column)

        char = self._peek()
        if char in SINGLE_CHAR_SYMBOLS:
            self._advance()
            return self._make_token(SINGLE_CHAR_SYMBOLS[char], char, start_line, start_column)

        raise InvalidCharacterError(
            char,
            self._location(start_line, start_column),
            self._get_current_line(),
        )

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _get_current_line(self) -> str:
        """Get the current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]
