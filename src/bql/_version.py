"""Version lookup for the bql distribution."""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def get_version() -> str:
    """Return the installed version, or the source checkout's version."""
    try:
        return _metadata_version("bql")
    except PackageNotFoundError:
        pass
    if _PYPROJECT.is_file():
        with _PYPROJECT.open("rb") as f:
            return str(tomllib.load(f)["project"]["version"])
    return "0.0.0"
