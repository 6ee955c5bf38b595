"""
BQL - a small embeddable expression and scripting language.

Host applications pass named input values, run a short program, and get
a single native result back.
"""

from __future__ import annotations

from ._version import get_version
from .api import evaluate, execute, parse
from .core.errors import BqlError, BqlSyntaxError, ConversionError, EvaluationError

__version__ = get_version()

__all__ = [
    "__version__",
    "evaluate",
    "execute",
    "parse",
    "BqlError",
    "BqlSyntaxError",
    "ConversionError",
    "EvaluationError",
]
