"""
Package version lookup.

A source checkout reports the version declared in its own pyproject.toml, so
a bumped version shows up without reinstalling. Installed copies fall back to
the distribution metadata. A pyproject.toml that declares some other project
(e.g. when bugmark is vendored into a larger tree) is ignored.
"""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DIST_NAME = "bugmark"
UNKNOWN_VERSION = "0.0.0"

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version(pyproject: Path) -> str | None:
    try:
        project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    if project.get("name") != DIST_NAME:
        return None
    return project.get("version")


def get_version(pyproject: Path = PYPROJECT) -> str:
    """Version of the running bugmark, or ``0.0.0`` when it cannot be determined."""
    found = _checkout_version(pyproject)
    if found:
        return found
    try:
        return _metadata_version(DIST_NAME)
    except PackageNotFoundError:
        return UNKNOWN_VERSION
