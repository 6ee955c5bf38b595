"""
Abstract syntax tree for BQL programs.

Every node is a frozen pydantic model; a parsed ``Program`` is read-only
for the lifetime of any evaluation that uses it. ``str(node)`` renders a
canonical, fully parenthesised form of the source, which is what the
parser tests compare against.

Statements:
- AssignStatement: x = expr
- ReturnStatement: return expr
- ExpressionStatement: expr
- BlockStatement: { stmt; stmt }

Expressions:
- Literals: 42, "text", true, false
- Identifier: x
- PrefixExpression: -x, !x
- InfixExpression: a + b, a && b, ...
- IfExpression: if (c) { ... } else { ... }
- FunctionLiteral: fn(a, b) { ... }
- CallExpression: f(1, 2)
- ArrayLiteral: [1, 2, 3]
- IndexExpression: xs[0], m["key"]
- HashMapLiteral: {"a": 1, 2: true}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class IntegerLiteral(BaseModel):
    """A signed 64-bit integer literal."""

    value: int

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.value)


class BooleanLiteral(BaseModel):
    """``true`` or ``false``."""

    value: bool

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "true" if self.value else "false"


class StringLiteral(BaseModel):
    """A double-quoted string literal (no escape processing)."""

    value: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f'"{self.value}"'


class Identifier(BaseModel):
    """A variable or function name."""

    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class PrefixExpression(BaseModel):
    """Unary operation: ``!right`` or ``-right``."""

    operator: str
    right: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


class InfixExpression(BaseModel):
    """Binary operation: left op right."""

    operator: str
    left: Expression
    right: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


class IfExpression(BaseModel):
    """
    Conditional expression.

    Evaluates to the value of the branch taken, or null when the condition
    is false and there is no ``else`` block.
    """

    condition: Expression
    consequence: BlockStatement
    alternative: BlockStatement | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        out = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            out += f" else {self.alternative}"
        return out


class FunctionLiteral(BaseModel):
    """Anonymous function: ``fn(a, b) { body }``."""

    parameters: list[Identifier] = Field(default_factory=list)
    body: BlockStatement

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


class CallExpression(BaseModel):
    """Call of any expression that evaluates to a function or builtin."""

    function: Expression
    arguments: list[Expression] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


class ArrayLiteral(BaseModel):
    """Ordered list of element expressions."""

    elements: list[Expression] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


class IndexExpression(BaseModel):
    """``left[index]`` on an array or hashmap."""

    left: Expression
    index: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


class HashMapLiteral(BaseModel):
    """``{key: value, ...}``; pairs are kept in source order."""

    pairs: list[tuple[Expression, Expression]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class AssignStatement(BaseModel):
    """Bind ``name`` in the current scope."""

    name: Identifier
    value: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.name} = {self.value};"


class ReturnStatement(BaseModel):
    value: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"return {self.value};"


class ExpressionStatement(BaseModel):
    expression: Expression

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.expression)


class BlockStatement(BaseModel):
    """Brace-delimited statements. Blocks do not open a new scope."""

    statements: list[Statement] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        body = "; ".join(str(s).rstrip(";") for s in self.statements)
        return "{ " + body + " }" if body else "{ }"


class Program(BaseModel):
    """Root of a parsed source text."""

    statements: list[Statement] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

Expression = (
    IntegerLiteral
    | BooleanLiteral
    | StringLiteral
    | Identifier
    | PrefixExpression
    | InfixExpression
    | IfExpression
    | FunctionLiteral
    | CallExpression
    | ArrayLiteral
    | IndexExpression
    | HashMapLiteral
)

Statement = AssignStatement | ReturnStatement | ExpressionStatement | BlockStatement

Node = Program | Statement | Expression

# Rebuild models for recursive forward references
PrefixExpression.model_rebuild()
InfixExpression.model_rebuild()
IfExpression.model_rebuild()
FunctionLiteral.model_rebuild()
CallExpression.model_rebuild()
ArrayLiteral.model_rebuild()
IndexExpression.model_rebuild()
HashMapLiteral.model_rebuild()
AssignStatement.model_rebuild()
ReturnStatement.model_rebuild()
ExpressionStatement.model_rebuild()
BlockStatement.model_rebuild()
Program.model_rebuild()
