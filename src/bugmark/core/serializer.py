"""
Persistence of the record tree.

The persisted form is a nested mapping: keys are path segments, values are
either LocationFact records or further mappings. The top-level mapping holds
the root's children.
"""

import json
import logging
from pathlib import Path
from typing import Any

from .errors import StructuralError
from .tree import RootNode

logger = logging.getLogger(__name__)


def load_tree(blob: Any) -> RootNode:
    """
    Build a root from persisted data.

    Args:
        blob: Top-level mapping, or None/empty for a fresh store

    Returns:
        RootNode with all folders and bookmarks restored

    Raises:
        StructuralError: If any entry is malformed
    """
    if blob is None or blob == {}:
        return RootNode()
    return RootNode.from_mapping(blob)


def dump_tree(root: RootNode) -> dict[str, Any]:
    """Convert a root to its persisted mapping."""
    return root.serialize()


class BookmarkStore:
    """
    JSON file holding the bookmark tree.

    Typically ``<workspace>/.bugmark/bookmarks.json``.
    """

    def __init__(self, path: Path):
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> RootNode:
        """
        Load the tree; a missing or empty file yields an empty root.

        Raises:
            StructuralError: If the file is not valid JSON or holds malformed entries
        """
        if not self.path.exists():
            logger.debug("No bookmark store at %s, starting empty", self.path)
            return RootNode()

        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return RootNode()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StructuralError(f"Bookmark store {self.path} is not valid JSON: {e}") from e
        return load_tree(data)

    def save(self, root: RootNode) -> None:
        """Write the tree, creating the parent directory if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(dump_tree(root), f, indent=2)
            f.write("\n")
        logger.info("Saved bookmarks to %s", self.path)


__all__ = ["BookmarkStore", "dump_tree", "load_tree"]
