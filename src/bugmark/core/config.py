"""
bugmark.toml loading.

Example::

    [bugmark]
    search_radius = 30
    relative = true
    only_update_on_main_branch = false
    main_branches = ["main", "master"]
    store = ".bugmark/bookmarks.json"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .paths import AbsolutePathCodec, PathCodec, WorkspacePathCodec

CONFIG_FILENAME = "bugmark.toml"
DEFAULT_SEARCH_RADIUS = 30
DEFAULT_STORE = ".bugmark/bookmarks.json"


@dataclass
class BugmarkSettings:
    """Workspace settings for bookmark tracking."""

    root: Path = field(default_factory=Path.cwd)
    search_radius: int = DEFAULT_SEARCH_RADIUS  # lines examined on each side
    relative: bool = False  # store workspace-relative paths
    only_update_on_main_branch: bool = False
    main_branches: list[str] = field(default_factory=lambda: ["main", "master"])
    store: str = DEFAULT_STORE

    def __post_init__(self) -> None:
        if isinstance(self.search_radius, bool) or not isinstance(self.search_radius, int):
            raise ConfigError(f"search_radius must be an integer, got {self.search_radius!r}")
        if self.search_radius < 0:
            raise ConfigError(f"search_radius must be non-negative, got {self.search_radius}")

    @property
    def store_path(self) -> Path:
        path = Path(self.store)
        return path if path.is_absolute() else self.root / path

    def codec(self) -> PathCodec:
        if self.relative:
            return WorkspacePathCodec([self.root])
        return AbsolutePathCodec()


def _flag(section: dict, key: str) -> bool:
    value = section.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def load_settings(root: Path) -> BugmarkSettings:
    """
    Load settings from ``root/bugmark.toml``.

    Args:
        root: Workspace root directory

    Returns:
        BugmarkSettings; defaults when the file does not exist

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    config_file = root / CONFIG_FILENAME
    if not config_file.exists():
        return BugmarkSettings(root=root)

    try:
        data = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read {config_file}: {e}") from e

    section = data.get("bugmark", {})
    if not isinstance(section, dict):
        raise ConfigError(f"[bugmark] in {config_file} must be a table")

    main_branches = section.get("main_branches", ["main", "master"])
    if not isinstance(main_branches, list) or not all(isinstance(b, str) for b in main_branches):
        raise ConfigError("main_branches must be a list of branch names")

    return BugmarkSettings(
        root=root,
        search_radius=section.get("search_radius", DEFAULT_SEARCH_RADIUS),
        relative=_flag(section, "relative"),
        only_update_on_main_branch=_flag(section, "only_update_on_main_branch"),
        main_branches=main_branches,
        store=str(section.get("store", DEFAULT_STORE)),
    )


__all__ = [
    "BugmarkSettings",
    "CONFIG_FILENAME",
    "DEFAULT_SEARCH_RADIUS",
    "load_settings",
]
