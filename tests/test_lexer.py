# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the SHC lexer/tokenizer.
#
# Test coverage includes:
#   - Keywords, identifiers and boolean literals
#   - Decimal numbers, leading-zero and overflow rejection
#   - String and character literals with escape sequences
#   - Operators, maximal munch and the two indirection spellings
#   - Comments and position tracking
#   - Error tokens and the sticky end of the stream
# =============================================================================

import pytest

from shc.lexer import Lexer, TokenType, Token
from shc.errors import (
    InvalidCharacterError,
    InvalidEscapeError,
    InvalidNumberError,
    SourceReadError,
    UnterminatedCharError,
    UnterminatedCommentError,
    UnterminatedStringError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def tokenize(source: str) -> list[Token]:
    """Tokenize and drop the trailing EOF token."""
    tokens = list(Lexer(source, "test.shc").tokenize())
    assert tokens[-1].type in (TokenType.EOF, TokenType.ERROR)
    if tokens[-1].type == TokenType.EOF:
        tokens = tokens[:-1]
    return tokens


def types(source: str) -> list[TokenType]:
    return [t.type for t in tokenize(source)]


# =============================================================================
# Structural Tests
# =============================================================================

class TestStructure:
    """Tests for empty input, whitespace and comments."""

    def test_empty_source(self):
        """Empty source should produce only EOF."""
        tokens = list(Lexer("", "test.shc").tokenize())
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_and_blank_lines(self):
        """Blank lines are skipped transparently."""
        tokens = tokenize("\n\n   \t\n  x")
        assert len(tokens) == 1
        assert tokens[0].line == 4
        assert tokens[0].column == 3

    def test_single_line_comment(self):
        assert types("// comment\n42") == [TokenType.NUMBER]

    def test_multi_line_comment(self):
        tokens = tokenize("/* one\ntwo */ 42")
        assert [t.type for t in tokens] == [TokenType.NUMBER]
        assert tokens[0].line == 2

    def test_unterminated_comment(self):
        """An unclosed block comment is an error at the comment start."""
        lexer = Lexer("x /* never closed", "test.shc")
        tokens = list(lexer.tokenize())
        assert tokens[-1].type == TokenType.ERROR
        assert isinstance(lexer.error, UnterminatedCommentError)
        assert lexer.error.location.column == 3

    def test_eof_is_sticky(self):
        """advance() keeps returning EOF once the input is exhausted."""
        lexer = Lexer("x", "test.shc")
        assert lexer.advance().type == TokenType.EOF
        assert lexer.advance().type == TokenType.EOF
        assert lexer.current().type == TokenType.EOF

    def test_token_positions(self):
        tokens = tokenize("fun main() : int {\n  return 0;\n}")
        ret = tokens[7]
        assert ret.type == TokenType.RETURN
        assert (ret.line, ret.column) == (2, 3)
        assert (ret.end_line, ret.end_column) == (2, 8)

    def test_repr(self):
        token = tokenize("count")[0]
        assert repr(token) == "Token(IDENTIFIER, 'count', 1:1)"


# =============================================================================
# Keyword and Identifier Tests
# =============================================================================

class TestKeywords:
    """Tests for keywords, identifiers and booleans."""

    @pytest.mark.parametrize("text,expected", [
        ("fun", TokenType.FUN),
        ("if", TokenType.IF),
        ("else", TokenType.ELSE),
        ("while", TokenType.WHILE),
        ("return", TokenType.RETURN),
        ("break", TokenType.BREAK),
        ("continue", TokenType.CONTINUE),
        ("void", TokenType.VOID),
        ("char", TokenType.CHAR),
        ("int", TokenType.INT),
    ])
    def test_keyword(self, text, expected):
        assert types(text) == [expected]

    def test_identifier(self):
        token = tokenize("_my_var2")[0]
        assert token.type == TokenType.IDENTIFIER
        assert token.value == "_my_var2"

    def test_keyword_prefix_is_identifier(self):
        """A keyword followed by more identifier characters is an identifier."""
        token = tokenize("funny")[0]
        assert token.type == TokenType.IDENTIFIER

    def test_booleans_carry_values(self):
        true, false = tokenize("true false")
        assert (true.type, true.value) == (TokenType.TRUE, 1)
        assert (false.type, false.value) == (TokenType.FALSE, 0)

    def test_type_keyword_check(self):
        assert tokenize("char")[0].is_type_keyword()
        assert not tokenize("fun")[0].is_type_keyword()


# =============================================================================
# Number Tests
# =============================================================================

class TestNumbers:
    """Tests for decimal integer literals."""

    def test_zero(self):
        token = tokenize("0")[0]
        assert (token.type, token.value) == (TokenType.NUMBER, 0)

    def test_decimal(self):
        assert tokenize("12345")[0].value == 12345

    def test_largest_literal(self):
        assert tokenize("2147483647")[0].value == 2**31 - 1

    def test_leading_zero_rejected(self):
        lexer = Lexer("01", "test.shc")
        token = lexer.current()
        assert token.type == TokenType.ERROR
        assert token.value == "invalid integer literal '01'"
        assert isinstance(lexer.error, InvalidNumberError)

    def test_overflow_rejected(self):
        lexer = Lexer("2147483648", "test.shc")
        assert lexer.current().type == TokenType.ERROR
        assert isinstance(lexer.error, InvalidNumberError)
        assert "too large" in lexer.error.message

    def test_number_then_identifier(self):
        assert types("12abc") == [TokenType.NUMBER, TokenType.IDENTIFIER]


# =============================================================================
# String and Character Tests
# =============================================================================

class TestLiterals:
    """Tests for string and character literals."""

    def test_simple_string(self):
        token = tokenize('"hello world"')[0]
        assert token.type == TokenType.STRING
        assert token.value == "hello world"

    def test_string_escapes(self):
        token = tokenize(r'"a\nb\tc\rd\\e\"f\'g\0"')[0]
        assert token.value == "a\nb\tc\rd\\e\"f'g\0"

    def test_invalid_escape(self):
        lexer = Lexer(r'"bad\q"', "test.shc")
        assert lexer.current().type == TokenType.ERROR
        assert isinstance(lexer.error, InvalidEscapeError)
        assert lexer.error.escape == "q"

    def test_unterminated_string(self):
        lexer = Lexer('"open\nx', "test.shc")
        assert lexer.current().type == TokenType.ERROR
        assert isinstance(lexer.error, UnterminatedStringError)
        assert (lexer.error.location.line, lexer.error.location.column) == (1, 1)

    def test_char_literal_is_code(self):
        token = tokenize("'A'")[0]
        assert (token.type, token.value) == (TokenType.CHAR_LITERAL, 65)

    def test_char_escape(self):
        assert tokenize(r"'\n'")[0].value == 10
        assert tokenize(r"'\''")[0].value == 39

    @pytest.mark.parametrize("source", ["''", "'ab'", "'a"])
    def test_malformed_char(self, source):
        lexer = Lexer(source, "test.shc")
        assert lexer.current().type == TokenType.ERROR
        assert isinstance(lexer.error, UnterminatedCharError)


# =============================================================================
# Operator Tests
# =============================================================================

class TestOperators:
    """Tests for operators and delimiters."""

    def test_two_character_operators(self):
        assert types("== != <= >= && ||") == [
            TokenType.EQ, TokenType.NE, TokenType.LE,
            TokenType.GE, TokenType.AND, TokenType.OR,
        ]

    def test_single_character_operators(self):
        assert types("+ - * / % = < > !") == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.PERCENT, TokenType.ASSIGN, TokenType.LT, TokenType.GT,
            TokenType.NOT,
        ]

    def test_maximal_munch(self):
        assert types("a<=b") == [TokenType.IDENTIFIER, TokenType.LE, TokenType.IDENTIFIER]
        assert types("a<b") == [TokenType.IDENTIFIER, TokenType.LT, TokenType.IDENTIFIER]

    def test_both_markers_are_caret(self):
        assert types("^x &x") == [
            TokenType.CARET, TokenType.IDENTIFIER,
            TokenType.CARET, TokenType.IDENTIFIER,
        ]

    def test_delimiters(self):
        assert types("( ) { } [ ] , ; :") == [
            TokenType.LPAREN, TokenType.RPAREN, TokenType.LBRACE, TokenType.RBRACE,
            TokenType.LBRACKET, TokenType.RBRACKET, TokenType.COMMA,
            TokenType.SEMICOLON, TokenType.COLON,
        ]

    def test_invalid_character(self):
        lexer = Lexer("x = y | z;", "test.shc")
        tokens = list(lexer.tokenize())
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.ASSIGN, TokenType.IDENTIFIER, TokenType.ERROR,
        ]
        assert isinstance(lexer.error, InvalidCharacterError)
        assert lexer.error.char == "|"


# =============================================================================
# Error Token Tests
# =============================================================================

class TestErrorTokens:
    """The lexer reports failures as ERROR tokens instead of raising."""

    def test_error_token_carries_message(self):
        lexer = Lexer("x @", "test.shc")
        tokens = list(lexer.tokenize())
        error = tokens[-1]
        assert error.type == TokenType.ERROR
        assert error.value == lexer.error.message
        assert (error.line, error.column) == (1, 3)

    def test_error_is_sticky(self):
        lexer = Lexer("@ x y", "test.shc")
        first = lexer.current()
        assert lexer.advance() is first
        assert lexer.advance() is first

    def test_error_message_has_caret_span(self):
        lexer = Lexer("x = 0123;", "test.shc")
        list(lexer.tokenize())
        text = str(lexer.error)
        assert text.splitlines()[0] == "test.shc:1:5: error: invalid integer literal '0123'"
        assert "    x = 0123;" in text
        assert "        ^^^^" in text

    def test_unreadable_file(self, tmp_path):
        lexer = Lexer.from_file(tmp_path / "missing.shc")
        assert lexer.current().type == TokenType.ERROR
        assert isinstance(lexer.error, SourceReadError)

    def test_from_file(self, tmp_path):
        path = tmp_path / "prog.shc"
        path.write_text("fun f() : void {}")
        lexer = Lexer.from_file(path)
        assert lexer.filename == str(path)
        assert lexer.current().type == TokenType.FUN
