"""
Runtime settings for BQL tooling.

Settings come from environment variables so a host process (or the CLI)
can tune logging and the interpreter stack without code changes:

    BQL_LOG_LEVEL        logging level name for the CLI (default WARNING)
    BQL_RECURSION_LIMIT  Python recursion limit to apply before evaluating
                         deeply recursive programs (default: leave as is)

Usage:
    from bql.core.settings import get_settings

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG_LEVEL_VAR = "BQL_LOG_LEVEL"
RECURSION_LIMIT_VAR = "BQL_RECURSION_LIMIT"

_DEFAULT_LOG_LEVEL = "WARNING"
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BqlSettings:
    """Resolved settings."""

    log_level: str = _DEFAULT_LOG_LEVEL
    recursion_limit: int | None = None


def get_settings() -> BqlSettings:
    """Read settings from the process environment.

    Invalid values fall back to the defaults with a warning. Level names
    are case-insensitive, so ``BQL_LOG_LEVEL=debug`` gives ``"DEBUG"``.
    """
    return BqlSettings(
        log_level=_read_log_level(),
        recursion_limit=_read_recursion_limit(),
    )


def _read_log_level() -> str:
    value = os.environ.get(LOG_LEVEL_VAR, "").upper().strip()
    if not value:
        return _DEFAULT_LOG_LEVEL
    if value not in _VALID_LOG_LEVELS:
        logger.warning(
            "Unknown %s value '%s'. Using '%s'.",
            LOG_LEVEL_VAR,
            value,
            _DEFAULT_LOG_LEVEL,
        )
        return _DEFAULT_LOG_LEVEL
    return value


def _read_recursion_limit() -> int | None:
    value = os.environ.get(RECURSION_LIMIT_VAR, "").strip()
    if not value:
        return None
    try:
        limit = int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s value '%s'.", RECURSION_LIMIT_VAR, value)
        return None
    if limit <= 0:
        logger.warning("Ignoring non-positive %s value '%s'.", RECURSION_LIMIT_VAR, value)
        return None
    return limit
