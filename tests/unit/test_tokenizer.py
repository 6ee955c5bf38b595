"""Tests for the BQL tokenizer.

Covers:
- Token kinds for literals, operators, punctuation and keywords
- Newline handling (automatic statement terminators)
- Positions and illegal input
"""

from __future__ import annotations

import pytest

from bql.core.lang.tokenizer import Lexer, Position, TokenKind, tokenize


def kinds(source: str) -> list[TokenKind]:
    return [t.kind for t in tokenize(source)]


# ============================================================================
# Basic tokens
# ============================================================================


class TestTokenizer:
    """Tokenizer produces correct token sequences."""

    def test_assignment(self) -> None:
        tokens = tokenize("five = 5;")
        assert [(t.kind, t.value) for t in tokens] == [
            (TokenKind.IDENT, "five"),
            (TokenKind.ASSIGN, "="),
            (TokenKind.INT, "5"),
            (TokenKind.SEMICOLON, ";"),
            (TokenKind.EOF, ""),
        ]

    def test_string(self) -> None:
        tokens = tokenize('"hello world"')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == "hello world"

    def test_string_has_no_escapes(self) -> None:
        tokens = tokenize('"a\\n"')
        assert tokens[0].value == "a\\n"

    def test_unterminated_string_runs_to_end(self) -> None:
        tokens = tokenize('"abc')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == "abc"
        assert tokens[1].kind == TokenKind.EOF

    def test_identifier_with_digits_and_underscore(self) -> None:
        tokens = tokenize("_foo1 bar_2")
        assert tokens[0].value == "_foo1"
        assert tokens[1].value == "bar_2"

    def test_keywords(self) -> None:
        assert kinds("fn if else true false return")[:-1] == [
            TokenKind.FUNCTION,
            TokenKind.IF,
            TokenKind.ELSE,
            TokenKind.TRUE,
            TokenKind.FALSE,
            TokenKind.RETURN,
        ]

    @pytest.mark.parametrize(
        "source,kind",
        [
            ("==", TokenKind.EQ),
            ("!=", TokenKind.NE),
            ("<=", TokenKind.LE),
            (">=", TokenKind.GE),
            ("&&", TokenKind.AND),
            ("||", TokenKind.OR),
            ("<", TokenKind.LT),
            (">", TokenKind.GT),
            ("!", TokenKind.BANG),
            ("%", TokenKind.PERCENT),
            (":", TokenKind.COLON),
        ],
    )
    def test_operators(self, source: str, kind: TokenKind) -> None:
        tokens = tokenize(source)
        assert tokens[0].kind == kind
        assert tokens[0].value == source

    def test_punctuation(self) -> None:
        assert kinds("(){}[],;")[:-1] == [
            TokenKind.LPAREN,
            TokenKind.RPAREN,
            TokenKind.LBRACE,
            TokenKind.RBRACE,
            TokenKind.LBRACKET,
            TokenKind.RBRACKET,
            TokenKind.COMMA,
            TokenKind.SEMICOLON,
        ]

    def test_eof_repeats(self) -> None:
        lexer = Lexer("x")
        lexer.next_token()
        assert lexer.next_token().kind == TokenKind.EOF
        assert lexer.next_token().kind == TokenKind.EOF

    def test_iteration_stops_after_eof(self) -> None:
        tokens = list(Lexer("1 + 2"))
        assert [t.kind for t in tokens] == [
            TokenKind.INT,
            TokenKind.PLUS,
            TokenKind.INT,
            TokenKind.EOF,
        ]


# ============================================================================
# Newlines
# ============================================================================


class TestNewlines:
    """Newlines terminate statements only after value-ending tokens."""

    def test_newline_after_identifier_is_semicolon(self) -> None:
        tokens = tokenize("x\ny")
        assert [t.kind for t in tokens] == [
            TokenKind.IDENT,
            TokenKind.SEMICOLON,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]
        assert tokens[1].value == "\n"

    def test_newline_after_operator_is_skipped(self) -> None:
        assert kinds("1 +\n2") == [TokenKind.INT, TokenKind.PLUS, TokenKind.INT, TokenKind.EOF]

    def test_newline_after_open_brace_is_skipped(self) -> None:
        assert kinds("{\nx") == [TokenKind.LBRACE, TokenKind.IDENT, TokenKind.EOF]

    @pytest.mark.parametrize("source", ['"s"\n', "1\n", "true\n", "false\n", ")\n", "]\n", "}\n"])
    def test_value_ending_tokens(self, source: str) -> None:
        assert kinds(source)[1] == TokenKind.SEMICOLON

    def test_blank_lines_collapse(self) -> None:
        assert kinds("x\n\n\ny") == [
            TokenKind.IDENT,
            TokenKind.SEMICOLON,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]

    def test_explicit_semicolon_then_newline(self) -> None:
        assert kinds("x;\ny") == [
            TokenKind.IDENT,
            TokenKind.SEMICOLON,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]

    def test_program_sample(self) -> None:
        source = "add = fn(x, y) {\n  x + y\n}\nresult = add(five, ten)\n"
        values = [t.value for t in tokenize(source)]
        assert values == [
            "add", "=", "fn", "(", "x", ",", "y", ")", "{",
            "x", "+", "y", "\n",
            "}", "\n",
            "result", "=", "add", "(", "five", ",", "ten", ")", "\n",
            "",
        ]  # fmt: skip


# ============================================================================
# Positions and illegal input
# ============================================================================


class TestPositions:
    def test_positions_are_one_based(self) -> None:
        tokens = tokenize("a\n  bc")
        assert tokens[0].pos == Position(1, 1)
        assert tokens[1].pos == Position(1, 2)
        assert tokens[2].pos == Position(2, 3)

    def test_position_str(self) -> None:
        assert str(Position(3, 7)) == "3:7"

    def test_position_after_multiline_string(self) -> None:
        tokens = tokenize('"a\nb" x')
        assert tokens[1].pos == Position(2, 4)

    def test_eof_position(self) -> None:
        tokens = tokenize("ab")
        assert tokens[-1].pos == Position(1, 3)


class TestIllegal:
    @pytest.mark.parametrize("source", ["@", "&", "|", "#", "."])
    def test_illegal_character(self, source: str) -> None:
        tokens = tokenize(source)
        assert tokens[0].kind == TokenKind.ILLEGAL
        assert tokens[0].value == source

    def test_lone_ampersand_followed_by_token(self) -> None:
        assert kinds("a & b") == [
            TokenKind.IDENT,
            TokenKind.ILLEGAL,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]
