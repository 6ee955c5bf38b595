"""
Tokenizer for the BQL language.

Converts source text into a lazy stream of typed tokens. Newlines are
insignificant whitespace except directly after a token that can end a
statement, where they are emitted as SEMICOLON tokens.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum
from typing import NamedTuple


class TokenKind(StrEnum):
    """Token types for the BQL language."""

    ILLEGAL = "ILLEGAL"
    EOF = "EOF"

    # Literals
    IDENT = "IDENT"
    INT = "INT"
    STRING = "STRING"

    # Operators
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    BANG = "!"
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    AND = "&&"
    OR = "||"

    # Punctuation
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"

    # Keywords
    IF = "IF"
    ELSE = "ELSE"
    TRUE = "TRUE"
    FALSE = "FALSE"
    FUNCTION = "FUNCTION"
    RETURN = "RETURN"


class Position(NamedTuple):
    """1-based line and column of the first character of a token."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class Token:
    """A single token from the tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: Position) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_KEYWORDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "fn": TokenKind.FUNCTION,
    "return": TokenKind.RETURN,
}

_TWO_CHAR: dict[str, TokenKind] = {
    "==": TokenKind.EQ,
    "!=": TokenKind.NE,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
    "&&": TokenKind.AND,
    "||": TokenKind.OR,
}

_SINGLE_CHAR: dict[str, TokenKind] = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "!": TokenKind.BANG,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
}

# Tokens after which a newline terminates the statement
_TERMINATES_LINE = frozenset(
    {
        TokenKind.IDENT,
        TokenKind.INT,
        TokenKind.STRING,
        TokenKind.TRUE,
        TokenKind.FALSE,
        TokenKind.RPAREN,
        TokenKind.RBRACKET,
        TokenKind.RBRACE,
    }
)


def _is_letter(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z") or c == "_"


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


class Lexer:
    """Pull-based tokenizer.

    Call :meth:`next_token` repeatedly; once the input is exhausted every
    further call returns an EOF token. Iterating a ``Lexer`` yields tokens up
    to and including the first EOF.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.i = 0
        self.line = 1
        self.line_start = 0
        # True when the last emitted token may end a statement
        self.insert_semicolon = False

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind == TokenKind.EOF:
                return

    @property
    def _pos(self) -> Position:
        return Position(self.line, self.i - self.line_start + 1)

    def _newline(self) -> None:
        self.line += 1
        self.line_start = self.i

    def _skip_whitespace(self) -> None:
        source = self.source
        n = len(source)
        while self.i < n:
            c = source[self.i]
            if c in " \t\r":
                self.i += 1
            elif c == "\n" and not self.insert_semicolon:
                self.i += 1
                self._newline()
            else:
                return

    def next_token(self) -> Token:
        self._skip_whitespace()
        tok = self._scan()
        self.insert_semicolon = tok.kind in _TERMINATES_LINE
        return tok

    def _scan(self) -> Token:
        source = self.source
        n = len(source)
        pos = self._pos

        if self.i >= n:
            return Token(TokenKind.EOF, "", pos)

        c = source[self.i]

        # Newline promoted to a statement terminator
        if c == "\n":
            self.i += 1
            self._newline()
            return Token(TokenKind.SEMICOLON, "\n", pos)

        if c == '"':
            return Token(TokenKind.STRING, self._read_string(), pos)

        if _is_letter(c):
            start = self.i
            while self.i < n and (_is_letter(source[self.i]) or _is_digit(source[self.i])):
                self.i += 1
            word = source[start : self.i]
            return Token(_KEYWORDS.get(word, TokenKind.IDENT), word, pos)

        if _is_digit(c):
            start = self.i
            while self.i < n and _is_digit(source[self.i]):
                self.i += 1
            return Token(TokenKind.INT, source[start : self.i], pos)

        two = source[self.i : self.i + 2]
        if two in _TWO_CHAR:
            self.i += 2
            return Token(_TWO_CHAR[two], two, pos)

        self.i += 1
        if c in _SINGLE_CHAR:
            return Token(_SINGLE_CHAR[c], c, pos)

        return Token(TokenKind.ILLEGAL, c, pos)

    def _read_string(self) -> str:
        """Read a string literal; an unterminated string runs to end of input."""
        source = self.source
        n = len(source)
        self.i += 1  # opening quote
        start = self.i
        while self.i < n and source[self.i] != '"':
            if source[self.i] == "\n":
                self.i += 1
                self._newline()
                continue
            self.i += 1
        value = source[start : self.i]
        if self.i < n:
            self.i += 1  # closing quote
        return value


def tokenize(source: str) -> list[Token]:
    """Tokenize a whole source string into a list ending with EOF."""
    return list(Lexer(source))
