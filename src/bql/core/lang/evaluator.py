"""
Tree-walking evaluator for BQL.

Evaluates AST nodes against an ``Environment``. Runtime failures are
returned as ``Error`` objects and short-circuit enclosing blocks exactly
like exceptions would; ``ReturnValue`` objects travel up to the nearest
function call (or the program) the same way.

Pure evaluation: no I/O and no use of Python's eval().
"""

from __future__ import annotations

from bql.core.errors import EvaluationError
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
    Node,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
)
from bql.core.ir.objects import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Boolean,
    Builtin,
    Environment,
    Error,
    Function,
    HashMap,
    Hashable,
    Integer,
    Object,
    ReturnValue,
    String,
    native_bool_to_boolean,
    wrap_int64,
)
from bql.core.lang.builtins import BUILTINS


def evaluate(node: Node, env: Environment) -> Object | None:
    """Evaluate a node in ``env``.

    Args:
        node: Any AST node; usually a ``Program``.
        env: Scope to read and bind names in.

    Returns:
        The resulting object, or None when the node produces no value
        (an assignment, an empty program or block).
    """
    return _eval(node, env)


def _is_signal(obj: Object | None) -> bool:
    """Errors and return values stop evaluation and travel upward unchanged."""
    return isinstance(obj, (Error, ReturnValue))


def _eval(node: Node, env: Environment) -> Object | None:
    """Dispatch evaluation to the appropriate handler."""
    # Statements
    if isinstance(node, Program):
        return _eval_program(node.statements, env)

    if isinstance(node, BlockStatement):
        return _eval_block(node.statements, env)

    if isinstance(node, ExpressionStatement):
        return _eval(node.expression, env)

    if isinstance(node, AssignStatement):
        value = _eval_value(node.value, env)
        if _is_signal(value):
            return value
        env.set(node.name.name, value)
        return None

    if isinstance(node, ReturnStatement):
        value = _eval_value(node.value, env)
        if _is_signal(value):
            return value
        return ReturnValue(value)

    # Literals
    if isinstance(node, IntegerLiteral):
        return Integer(node.value)

    if isinstance(node, BooleanLiteral):
        return native_bool_to_boolean(node.value)

    if isinstance(node, StringLiteral):
        return String(node.value)

    # Expressions
    if isinstance(node, Identifier):
        return _eval_identifier(node, env)

    if isinstance(node, PrefixExpression):
        right = _eval_value(node.right, env)
        if _is_signal(right):
            return right
        return _eval_prefix(node.operator, right)

    if isinstance(node, InfixExpression):
        left = _eval_value(node.left, env)
        if _is_signal(left):
            return left
        right = _eval_value(node.right, env)
        if _is_signal(right):
            return right
        return _eval_infix(node.operator, left, right)

    if isinstance(node, IfExpression):
        return _eval_if(node, env)

    if isinstance(node, FunctionLiteral):
        return Function(parameters=node.parameters, body=node.body, env=env)

    if isinstance(node, CallExpression):
        return _eval_call(node, env)

    if isinstance(node, ArrayLiteral):
        elements = _eval_expressions(node.elements, env)
        if not isinstance(elements, list):
            return elements
        return Array(elements)

    if isinstance(node, IndexExpression):
        left = _eval_value(node.left, env)
        if _is_signal(left):
            return left
        index = _eval_value(node.index, env)
        if _is_signal(index):
            return index
        return _eval_index(left, index)

    if isinstance(node, HashMapLiteral):
        return _eval_hashmap(node, env)

    raise EvaluationError(f"Unknown node type: {type(node).__name__}")


def _eval_value(node: Expression, env: Environment) -> Object:
    """Evaluate an expression in value position; no value becomes null."""
    result = _eval(node, env)
    return NULL if result is None else result


def _eval_program(statements: list[Statement], env: Environment) -> Object | None:
    result: Object | None = None
    for stmt in statements:
        result = _eval(stmt, env)
        if isinstance(result, ReturnValue):
            return result.value
        if isinstance(result, Error):
            return result
    return result


def _eval_block(statements: list[Statement], env: Environment) -> Object | None:
    """Like a program, but a ``ReturnValue`` is passed up still wrapped."""
    result: Object | None = None
    for stmt in statements:
        result = _eval(stmt, env)
        if isinstance(result, (ReturnValue, Error)):
            return result
    return result


def _eval_expressions(nodes: list[Expression], env: Environment) -> list[Object] | Object:
    """Evaluate left to right; the first error replaces the whole result."""
    values: list[Object] = []
    for node in nodes:
        value = _eval_value(node, env)
        if _is_signal(value):
            return value
        values.append(value)
    return values


def _eval_identifier(node: Identifier, env: Environment) -> Object:
    value = env.get(node.name)
    if value is not None:
        return value
    builtin = BUILTINS.get(node.name)
    if builtin is not None:
        return builtin
    return Error(f"identifier not found: {node.name}")


# -- Operators --


def _eval_prefix(operator: str, right: Object) -> Object:
    if operator == "!":
        return _eval_bang(right)
    if operator == "-":
        if not isinstance(right, Integer):
            return Error(f"unknown operator: -{right.type}")
        return Integer(wrap_int64(-right.value))
    return Error(f"unknown operator: {operator}{right.type}")


def _eval_bang(right: Object) -> Object:
    # Anything that is not a boolean negates to false
    if right is TRUE:
        return FALSE
    if right is FALSE:
        return TRUE
    return FALSE


def _eval_infix(operator: str, left: Object, right: Object) -> Object:
    if left.type != right.type:
        return Error(f"type mismatch: {left.type} {operator} {right.type}")

    if operator in ("&&", "||"):
        if not isinstance(left, Boolean) or not isinstance(right, Boolean):
            return Error(f"type mismatch: {left.type} {operator} {right.type}")
        if operator == "&&":
            return native_bool_to_boolean(left.value and right.value)
        return native_bool_to_boolean(left.value or right.value)

    if isinstance(left, Integer) and isinstance(right, Integer):
        return _eval_integer_infix(operator, left, right)

    if isinstance(left, String) and isinstance(right, String):
        return _eval_string_infix(operator, left, right)

    # Booleans and null are singletons; collections and functions compare by identity
    if operator == "==":
        return native_bool_to_boolean(left is right)
    if operator == "!=":
        return native_bool_to_boolean(left is not right)

    return Error(f"unknown operator: {left.type} {operator} {right.type}")


def _eval_integer_infix(operator: str, left: Integer, right: Integer) -> Object:
    lv = left.value
    rv = right.value

    # Arithmetic
    if operator == "+":
        return Integer(wrap_int64(lv + rv))
    if operator == "-":
        return Integer(wrap_int64(lv - rv))
    if operator == "*":
        return Integer(wrap_int64(lv * rv))
    if operator == "/":
        if rv == 0:
            return Error("division by zero")
        return Integer(wrap_int64(_truncated_div(lv, rv)))
    if operator == "%":
        if rv == 0:
            return Error("modulo by zero")
        return Integer(wrap_int64(lv - rv * _truncated_div(lv, rv)))

    # Comparison
    if operator == "==":
        return native_bool_to_boolean(lv == rv)
    if operator == "!=":
        return native_bool_to_boolean(lv != rv)
    if operator == "<":
        return native_bool_to_boolean(lv < rv)
    if operator == ">":
        return native_bool_to_boolean(lv > rv)
    if operator == "<=":
        return native_bool_to_boolean(lv <= rv)
    if operator == ">=":
        return native_bool_to_boolean(lv >= rv)

    return Error(f"unknown operator: {left.type} {operator} {right.type}")


def _truncated_div(a: int, b: int) -> int:
    """Integer division rounding toward zero, as machine integers do."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _eval_string_infix(operator: str, left: String, right: String) -> Object:
    lv = left.value
    rv = right.value

    if operator == "+":
        return String(lv + rv)
    if operator == "==":
        return native_bool_to_boolean(lv == rv)
    if operator == "!=":
        return native_bool_to_boolean(lv != rv)
    if operator == "<":
        return native_bool_to_boolean(lv < rv)
    if operator == ">":
        return native_bool_to_boolean(lv > rv)
    if operator == "<=":
        return native_bool_to_boolean(lv <= rv)
    if operator == ">=":
        return native_bool_to_boolean(lv >= rv)

    return Error(f"unknown operator: {left.type} {operator} {right.type}")


# -- Control flow and functions --


def _eval_if(node: IfExpression, env: Environment) -> Object:
    condition = _eval_value(node.condition, env)
    if _is_signal(condition):
        return condition

    if condition is not TRUE and condition is not FALSE:
        return Error("non boolean condition in if statement")

    if condition is TRUE:
        result = _eval(node.consequence, env)
    elif node.alternative is not None:
        result = _eval(node.alternative, env)
    else:
        return NULL
    return NULL if result is None else result


def _eval_call(node: CallExpression, env: Environment) -> Object:
    function = _eval_value(node.function, env)
    if _is_signal(function):
        return function

    args = _eval_expressions(node.arguments, env)
    if not isinstance(args, list):
        return args

    return _apply_function(function, args)


def _apply_function(function: Object, args: list[Object]) -> Object:
    if isinstance(function, Function):
        if len(args) != len(function.parameters):
            return Error(
                f"wrong number of arguments: {len(args)} want: {len(function.parameters)}"
            )
        call_env = Environment.enclosed(function.env)
        for param, arg in zip(function.parameters, args):
            call_env.set(param.name, arg)
        result = _eval(function.body, call_env)
        if isinstance(result, ReturnValue):
            return result.value
        return NULL if result is None else result

    if isinstance(function, Builtin):
        return function.fn(*args)

    return Error(f"call not a function: {function.type}")


# -- Collections --


def _eval_index(left: Object, index: Object) -> Object:
    if isinstance(left, Array):
        if not isinstance(index, Integer):
            return Error(f"index operator not supported: {left.type}[{index.type}]")
        i = index.value
        if i < 0 or i >= len(left.elements):
            return NULL
        return left.elements[i]

    if isinstance(left, HashMap):
        if not isinstance(index, Hashable):
            return Error(f"unusable as hash key: {index.type}")
        value = left.get(index)
        return NULL if value is None else value

    return Error(f"index operator not supported: {left.type}")


def _eval_hashmap(node: HashMapLiteral, env: Environment) -> Object:
    hashmap = HashMap()
    for key_node, value_node in node.pairs:
        key = _eval_value(key_node, env)
        if _is_signal(key):
            return key
        if not isinstance(key, Hashable):
            return Error(f"unusable as hash key: {key.type}")

        value = _eval_value(value_node, env)
        if _is_signal(value):
            return value

        hashmap.put(key, value)
    return hashmap
