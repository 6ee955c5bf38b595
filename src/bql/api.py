"""
Host-facing entry points for running BQL code.

Usage:
    from bql.api import evaluate

    result, error = evaluate("y = 2\\nx + y", {"x": 40})
    # result == 42, error is None

``evaluate`` never raises for problems in the program or its inputs; it
returns them as the second tuple element. ``execute`` is the raising
variant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from bql.core.adapter import bind, to_native
from bql.core.errors import BqlError, BqlSyntaxError, ConversionError, EvaluationError
from bql.core.ir.nodes import Program
from bql.core.ir.objects import Environment
from bql.core.lang.evaluator import evaluate as evaluate_node
from bql.core.lang.parser import parse_program

logger = logging.getLogger(__name__)


def parse(source: str) -> Program:
    """Parse source text into a program.

    Raises:
        BqlSyntaxError: With every syntax error found, in source order.
    """
    program, errors = parse_program(source)
    if errors:
        logger.debug("Parse failed with %d error(s)", len(errors))
        raise BqlSyntaxError(errors)
    return program


def execute(
    source: str,
    bindings: Mapping[str, Any] | None = None,
    names: Iterable[str] | None = None,
) -> Any:
    """Parse and evaluate ``source``, returning the result as a native value.

    Args:
        source: BQL source text.
        bindings: Input variables as native values.
        names: Optional subset of ``bindings`` to expose to the program;
            each listed name must be present.

    Returns:
        The native value of the program result, or None when the program
        produces no value.

    Raises:
        BqlSyntaxError: If the source does not parse.
        ConversionError: If an input or the result cannot be converted.
        EvaluationError: If evaluation produces a runtime error.
    """
    program = parse(source)

    env = Environment()
    try:
        bind(env, bindings or {}, names)
    except RecursionError as e:
        raise ConversionError("input nested too deeply") from e

    try:
        result = evaluate_node(program, env)
        if result is None:
            logger.debug("Program produced no value")
            return None
        logger.debug("Program evaluated to %s", result.type)
        return to_native(result)
    except RecursionError as e:
        raise EvaluationError("maximum recursion depth exceeded") from e


def evaluate(
    source: str,
    bindings: Mapping[str, Any] | None = None,
    names: Iterable[str] | None = None,
) -> tuple[Any, BqlError | None]:
    """Parse and evaluate ``source``.

    Same arguments as :func:`execute`.

    Returns:
        ``(result, None)`` on success, ``(None, error)`` on failure. Errors
        are never partial: a failed call has no result.
    """
    try:
        return execute(source, bindings, names), None
    except BqlError as e:
        logger.debug("Evaluation failed: %s", e)
        return None, e
