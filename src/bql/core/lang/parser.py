"""
Pratt parser for the BQL language.

Grammar (precedence low to high):
    program     → statement*
    statement   → assign | return | block | expr_stmt      (then ";" / newline / "}" / EOF)
    assign      → IDENT "=" expr
    return      → "return" expr
    block       → "{" statement* "}"
    expr        → or_expr
    or_expr     → and_expr ("||" and_expr)*
    and_expr    → eq_expr ("&&" eq_expr)*
    eq_expr     → rel_expr (("==" | "!=") rel_expr)*
    rel_expr    → add_expr (("<" | ">" | "<=" | ">=") add_expr)*
    add_expr    → mul_expr (("+" | "-") mul_expr)*
    mul_expr    → prefix (("*" | "/" | "%") prefix)*
    prefix      → ("!" | "-") prefix | postfix
    postfix     → primary ("(" args ")" | "[" expr "]")*
    primary     → INT | STRING | "true" | "false" | IDENT | "(" expr ")"
                | "if" "(" expr ")" block ("else" block)?
                | "fn" "(" params ")" block
                | "[" (expr ("," expr)*)? "]"
                | "{" (expr ":" expr ("," expr ":" expr)*)? "}"

The parser never raises. Errors are collected as "line:column: message"
strings in ``Parser.errors``; a failing rule returns ``None`` and its
callers propagate it, after which the statement loop skips ahead to the
next statement boundary and carries on.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum

from bql.core.ir.nodes import (
    ArrayLiteral,
    AssignStatement,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    Expression,
    ExpressionStatement,
    FunctionLiteral,
    HashMapLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
)
from bql.core.ir.objects import INT64_MAX
from bql.core.lang.tokenizer import Lexer, Position, Token, TokenKind


class Precedence(IntEnum):
    """Binding power of operators, lowest first."""

    LOWEST = 1
    LOGICAL_OR = 2  # ||
    LOGICAL_AND = 3  # &&
    EQUALS = 4  # == !=
    LESSGREATER = 5  # < > <= >=
    SUM = 6  # + -
    PRODUCT = 7  # * / %
    PREFIX = 8  # -x !x
    CALL = 9  # f(x) xs[i]


_PRECEDENCES: dict[TokenKind, Precedence] = {
    TokenKind.OR: Precedence.LOGICAL_OR,
    TokenKind.AND: Precedence.LOGICAL_AND,
    TokenKind.EQ: Precedence.EQUALS,
    TokenKind.NE: Precedence.EQUALS,
    TokenKind.LT: Precedence.LESSGREATER,
    TokenKind.GT: Precedence.LESSGREATER,
    TokenKind.LE: Precedence.LESSGREATER,
    TokenKind.GE: Precedence.LESSGREATER,
    TokenKind.PLUS: Precedence.SUM,
    TokenKind.MINUS: Precedence.SUM,
    TokenKind.STAR: Precedence.PRODUCT,
    TokenKind.SLASH: Precedence.PRODUCT,
    TokenKind.PERCENT: Precedence.PRODUCT,
    TokenKind.LPAREN: Precedence.CALL,
    TokenKind.LBRACKET: Precedence.CALL,
}

PrefixParseFn = Callable[[], Expression | None]
InfixParseFn = Callable[[Expression], Expression | None]


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.ILLEGAL:
        return f"illegal character {tok.value!r}"
    return str(tok.kind)


class Parser:
    """Pratt parser over a token stream pulled lazily from a ``Lexer``."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.errors: list[str] = []

        self.current = lexer.next_token()
        self.peek = lexer.next_token()

        self._prefix_parsers: dict[TokenKind, PrefixParseFn] = {
            TokenKind.IDENT: self._parse_identifier,
            TokenKind.INT: self._parse_integer,
            TokenKind.STRING: self._parse_string,
            TokenKind.TRUE: self._parse_boolean,
            TokenKind.FALSE: self._parse_boolean,
            TokenKind.BANG: self._parse_prefix_expression,
            TokenKind.MINUS: self._parse_prefix_expression,
            TokenKind.LPAREN: self._parse_grouped_expression,
            TokenKind.IF: self._parse_if_expression,
            TokenKind.FUNCTION: self._parse_function_literal,
            TokenKind.LBRACKET: self._parse_array_literal,
            TokenKind.LBRACE: self._parse_hashmap_literal,
        }

        self._infix_parsers: dict[TokenKind, InfixParseFn] = {
            kind: self._parse_infix_expression
            for kind in _PRECEDENCES
            if kind not in (TokenKind.LPAREN, TokenKind.LBRACKET)
        }
        self._infix_parsers[TokenKind.LPAREN] = self._parse_call_expression
        self._infix_parsers[TokenKind.LBRACKET] = self._parse_index_expression

    # -- Token helpers --

    def advance(self) -> Token:
        tok = self.current
        self.current = self.peek
        self.peek = self.lexer.next_token()
        return tok

    def expect_peek(self, kind: TokenKind) -> bool:
        """Advance onto the next token if it has ``kind``; record an error otherwise."""
        if self.peek.kind == kind:
            self.advance()
            return True
        self._error(self.peek.pos, f"expected next token: {kind}, got {_describe(self.peek)}")
        return False

    def _error(self, pos: Position, message: str) -> None:
        self.errors.append(f"{pos}: {message}")

    def _peek_precedence(self) -> Precedence:
        return _PRECEDENCES.get(self.peek.kind, Precedence.LOWEST)

    def _skip_newlines(self) -> None:
        """Skip newline-synthesised semicolons inside bracketed lists."""
        while self.peek.kind == TokenKind.SEMICOLON and self.peek.value == "\n":
            self.advance()

    def _synchronize(self) -> None:
        """Skip to the start of the next statement after a syntax error.

        Braces opened while skipping are consumed through their matching
        ``}``, so a broken function header does not leave its body behind.
        Stops on an unmatched ``}`` (the end of the enclosing block).
        """
        depth = 0
        while self.current.kind != TokenKind.EOF:
            kind = self.current.kind
            if kind == TokenKind.LBRACE:
                depth += 1
            elif kind == TokenKind.RBRACE:
                if depth == 0:
                    break
                depth -= 1
            elif kind == TokenKind.SEMICOLON and depth == 0:
                self.advance()
                break
            self.advance()

    # -- Statements --

    def parse_program(self) -> Program:
        statements: list[Statement] = []
        recovering = False
        while self.current.kind != TokenKind.EOF:
            if self.current.kind == TokenKind.RBRACE:
                # A stray } right after recovery closes a construct whose
                # opening brace was consumed before the error.
                if not recovering:
                    self._error(self.current.pos, "unexpected }")
                recovering = False
                self.advance()
                continue
            before = len(self.errors)
            stmt = self._parse_terminated_statement()
            recovering = len(self.errors) > before
            if stmt is not None:
                statements.append(stmt)
        return Program(statements=statements)

    def _parse_terminated_statement(self) -> Statement | None:
        """Parse one statement and step past its terminator.

        On return the current token is the first token of the next
        statement, a closing brace, or EOF.
        """
        if self.current.kind == TokenKind.SEMICOLON:
            self.advance()
            return None
        return self._terminate(self.parse_statement())

    def _terminate(self, stmt: Statement | None) -> Statement | None:
        if stmt is None:
            self._synchronize()
            return None

        if self.peek.kind == TokenKind.SEMICOLON:
            self.advance()
            self.advance()
        elif self.peek.kind in (TokenKind.RBRACE, TokenKind.EOF):
            self.advance()
        else:
            self._error(
                self.peek.pos,
                f"expected ; or newline after statement, got {_describe(self.peek)}",
            )
            self.advance()
            self._synchronize()
        return stmt

    def parse_statement(self) -> Statement | None:
        """Parse the statement starting at the current token.

        Leaves the current token on the last token of the statement.
        """
        kind = self.current.kind
        if kind == TokenKind.IDENT and self.peek.kind == TokenKind.ASSIGN:
            return self._parse_assign_statement()
        if kind == TokenKind.RETURN:
            return self._parse_return_statement()
        if kind == TokenKind.LBRACE:
            return self._parse_brace_statement()
        return self._parse_expression_statement()

    def _parse_assign_statement(self) -> AssignStatement | None:
        name = Identifier(name=self.current.value)
        self.advance()  # ident
        self.advance()  # =
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        return AssignStatement(name=name, value=value)

    def _parse_return_statement(self) -> ReturnStatement | None:
        self.advance()
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        return ReturnStatement(value=value)

    def _parse_expression_statement(self) -> ExpressionStatement | None:
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        return ExpressionStatement(expression=expression)

    def _parse_brace_statement(self) -> Statement | None:
        """A ``{`` at statement start: a block, or a hashmap literal expression.

        ``{}`` and ``{key: ...}`` are hashmaps; anything else is a block.
        """
        self._skip_newlines()
        if self.peek.kind == TokenKind.RBRACE:
            self.advance()
            return self._finish_expression_statement(HashMapLiteral())

        self.advance()
        if self.current.kind == TokenKind.SEMICOLON:
            return self._parse_block_rest([])

        first = self.parse_statement()
        if isinstance(first, ExpressionStatement) and self.peek.kind == TokenKind.COLON:
            hashmap = self._parse_hashmap_rest(first.expression)
            if hashmap is None:
                return None
            return self._finish_expression_statement(hashmap)

        statements: list[Statement] = []
        stmt = self._terminate(first)
        if stmt is not None:
            statements.append(stmt)
        return self._parse_block_rest(statements)

    def _finish_expression_statement(self, left: Expression) -> ExpressionStatement | None:
        expression = self._parse_infix(left, Precedence.LOWEST)
        if expression is None:
            return None
        return ExpressionStatement(expression=expression)

    def _parse_block_statement(self) -> BlockStatement | None:
        """'{' statement* '}' with the current token on '{'."""
        self.advance()
        return self._parse_block_rest([])

    def _parse_block_rest(self, statements: list[Statement]) -> BlockStatement | None:
        while self.current.kind not in (TokenKind.RBRACE, TokenKind.EOF):
            stmt = self._parse_terminated_statement()
            if stmt is not None:
                statements.append(stmt)

        if self.current.kind != TokenKind.RBRACE:
            self._error(self.current.pos, f"expected next token: }}, got {_describe(self.current)}")
            return None
        return BlockStatement(statements=statements)

    # -- Expressions --

    def parse_expression(self, precedence: Precedence) -> Expression | None:
        prefix = self._prefix_parsers.get(self.current.kind)
        if prefix is None:
            if self.current.kind == TokenKind.ILLEGAL:
                self._error(self.current.pos, _describe(self.current))
            else:
                self._error(
                    self.current.pos,
                    f"prefix parse function for {self.current.kind} not found",
                )
            return None

        left = prefix()
        if left is None:
            return None
        return self._parse_infix(left, precedence)

    def _parse_infix(self, left: Expression, precedence: Precedence) -> Expression | None:
        while self.peek.kind != TokenKind.SEMICOLON and precedence < self._peek_precedence():
            infix = self._infix_parsers.get(self.peek.kind)
            if infix is None:
                return left
            self.advance()
            combined = infix(left)
            if combined is None:
                return None
            left = combined
        return left

    def _parse_identifier(self) -> Expression:
        return Identifier(name=self.current.value)

    def _parse_integer(self) -> Expression | None:
        literal = self.current.value
        value = int(literal)
        if value > INT64_MAX:
            self._error(self.current.pos, f"could not parse {literal!r} as integer")
            return None
        return IntegerLiteral(value=value)

    def _parse_string(self) -> Expression:
        return StringLiteral(value=self.current.value)

    def _parse_boolean(self) -> Expression:
        return BooleanLiteral(value=self.current.kind == TokenKind.TRUE)

    def _parse_prefix_expression(self) -> Expression | None:
        operator = self.current.value
        self.advance()
        right = self.parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(operator=operator, right=right)

    def _parse_infix_expression(self, left: Expression) -> Expression | None:
        operator = self.current.value
        precedence = _PRECEDENCES[self.current.kind]
        self.advance()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(operator=operator, left=left, right=right)

    def _parse_grouped_expression(self) -> Expression | None:
        self.advance()
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        self._skip_newlines()
        if not self.expect_peek(TokenKind.RPAREN):
            return None
        return expression

    def _parse_if_expression(self) -> Expression | None:
        if not self.expect_peek(TokenKind.LPAREN):
            return None
        self.advance()
        condition = self.parse_expression(Precedence.LOWEST)
        if condition is None:
            return None
        if not self.expect_peek(TokenKind.RPAREN):
            return None
        if not self.expect_peek(TokenKind.LBRACE):
            return None

        consequence = self._parse_block_statement()
        if consequence is None:
            return None

        alternative = None
        if self.peek.kind == TokenKind.ELSE:
            self.advance()
            if not self.expect_peek(TokenKind.LBRACE):
                return None
            alternative = self._parse_block_statement()
            if alternative is None:
                return None

        return IfExpression(condition=condition, consequence=consequence, alternative=alternative)

    def _parse_function_literal(self) -> Expression | None:
        if not self.expect_peek(TokenKind.LPAREN):
            return None
        parameters = self._parse_function_parameters()
        if parameters is None:
            return None
        if not self.expect_peek(TokenKind.LBRACE):
            return None
        body = self._parse_block_statement()
        if body is None:
            return None
        return FunctionLiteral(parameters=parameters, body=body)

    def _parse_function_parameters(self) -> list[Identifier] | None:
        """IDENT (',' IDENT)* ')' with the current token on '('."""
        parameters: list[Identifier] = []
        if self.peek.kind == TokenKind.RPAREN:
            self.advance()
            return parameters

        if not self.expect_peek(TokenKind.IDENT):
            return None
        parameters.append(Identifier(name=self.current.value))

        while self.peek.kind == TokenKind.COMMA:
            self.advance()
            if not self.expect_peek(TokenKind.IDENT):
                return None
            parameters.append(Identifier(name=self.current.value))

        if not self.expect_peek(TokenKind.RPAREN):
            return None
        return parameters

    def _parse_call_expression(self, function: Expression) -> Expression | None:
        arguments = self._parse_expression_list(TokenKind.RPAREN)
        if arguments is None:
            return None
        return CallExpression(function=function, arguments=arguments)

    def _parse_array_literal(self) -> Expression | None:
        elements = self._parse_expression_list(TokenKind.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(elements=elements)

    def _parse_expression_list(self, end: TokenKind) -> list[Expression] | None:
        """expr (',' expr)* followed by ``end``, with the current token on the opener."""
        items: list[Expression] = []
        self._skip_newlines()
        if self.peek.kind == end:
            self.advance()
            return items

        self.advance()
        item = self.parse_expression(Precedence.LOWEST)
        if item is None:
            return None
        items.append(item)
        self._skip_newlines()

        while self.peek.kind == TokenKind.COMMA:
            self.advance()
            self._skip_newlines()
            self.advance()
            item = self.parse_expression(Precedence.LOWEST)
            if item is None:
                return None
            items.append(item)
            self._skip_newlines()

        if not self.expect_peek(end):
            return None
        return items

    def _parse_index_expression(self, left: Expression) -> Expression | None:
        self.advance()
        index = self.parse_expression(Precedence.LOWEST)
        if index is None:
            return None
        self._skip_newlines()
        if not self.expect_peek(TokenKind.RBRACKET):
            return None
        return IndexExpression(left=left, index=index)

    def _parse_hashmap_literal(self) -> Expression | None:
        self._skip_newlines()
        if self.peek.kind == TokenKind.RBRACE:
            self.advance()
            return HashMapLiteral()

        self.advance()
        key = self.parse_expression(Precedence.LOWEST)
        if key is None:
            return None
        return self._parse_hashmap_rest(key)

    def _parse_hashmap_rest(self, first_key: Expression) -> HashMapLiteral | None:
        """Parse the rest of a hashmap once its first key has been read."""
        pairs: list[tuple[Expression, Expression]] = []
        key = first_key
        while True:
            if not self.expect_peek(TokenKind.COLON):
                return None
            self.advance()
            value = self.parse_expression(Precedence.LOWEST)
            if value is None:
                return None
            pairs.append((key, value))
            self._skip_newlines()

            if self.peek.kind != TokenKind.COMMA:
                break
            self.advance()
            self._skip_newlines()
            self.advance()
            next_key = self.parse_expression(Precedence.LOWEST)
            if next_key is None:
                return None
            key = next_key

        if not self.expect_peek(TokenKind.RBRACE):
            return None
        return HashMapLiteral(pairs=pairs)


def parse_program(source: str) -> tuple[Program, list[str]]:
    """Parse source text into a program plus the list of syntax errors.

    Args:
        source: BQL source text.

    Returns:
        The (possibly partial) program and its syntax errors, in source
        order. The program must not be evaluated if errors is non-empty.
        Input nested deeper than the interpreter stack allows gives an
        empty program and a "maximum nesting depth exceeded" error.
    """
    parser = Parser(Lexer(source))
    try:
        program = parser.parse_program()
    except RecursionError:
        parser._error(parser.current.pos, "maximum nesting depth exceeded")
        program = Program()
    return program, parser.errors
