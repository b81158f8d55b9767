"""
Service identity helpers for log records (`service` and `version` fields).

Installed distributions answer through `importlib.metadata`; a source checkout
falls back to the nearest `pyproject.toml`.
"""

import tomllib
from functools import lru_cache
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any

DISTRIBUTION_NAME = "users-crud"


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def _pyproject_project_table() -> dict[str, Any]:
    pyproject = find_pyproject(Path(__file__).resolve().parent)
    if pyproject is None:
        return {}
    try:
        with pyproject.open("rb") as f:
            return tomllib.load(f).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return {}


@lru_cache()
def get_project_name(default: str = DISTRIBUTION_NAME) -> str:
    return _pyproject_project_table().get("name") or default


@lru_cache()
def get_project_version(default: str = "unknown") -> str:
    """
    Version of the running service:
    - the installed distribution's version when available (containers, wheels);
    - otherwise project.version from pyproject.toml;
    - otherwise `default`.
    """
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        return _pyproject_project_table().get("version") or default
