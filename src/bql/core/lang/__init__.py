"""
BQL language core.

Tokenizer, parser, and evaluator for the embeddable BQL scripting language.

Usage:
    from bql.core.ir.objects import Environment
    from bql.core.lang import evaluate, parse_program

    program, errors = parse_program("x = 2; x * 21")
    result = evaluate(program, Environment())
    # result.inspect() == "42"
"""

from bql.core.lang.builtins import BUILTINS
from bql.core.lang.evaluator import evaluate
from bql.core.lang.parser import Parser, parse_program
from bql.core.lang.tokenizer import Lexer, Token, TokenKind, tokenize

__all__ = [
    "BUILTINS",
    "Lexer",
    "Parser",
    "Token",
    "TokenKind",
    "evaluate",
    "parse_program",
    "tokenize",
]
