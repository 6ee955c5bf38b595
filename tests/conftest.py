"""Shared pytest fixtures for BQL tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_program(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes BQL source to a file under tmp_path."""

    def _write(source: str, name: str = "prog.bql") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
