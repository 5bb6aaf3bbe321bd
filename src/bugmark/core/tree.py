"""
The bookmark record tree.

A tree is made of two node kinds: ``FolderNode`` (labelled children) and
``BookmarkNode`` (one LocationFact). The root is an unlabelled folder. Each
node is owned by its parent's child mapping; the link back to the parent is a
weak reference used for path reconstruction and detaching.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import make_structural_error
from .models import LocationFact, looks_like_fact

PATH_SEPARATOR = "/"


def check_label(label: str, where: str | None = None) -> None:
    """Raise StructuralError unless ``label`` can be a single path segment."""
    if not isinstance(label, str) or not label:
        raise make_structural_error("bookmark labels must be non-empty strings", where)
    if PATH_SEPARATOR in label:
        raise make_structural_error(f"label {label!r} must not contain '{PATH_SEPARATOR}'", where)


def split_path(path: str) -> list[str]:
    """Split ``"a/b/c"`` into segments, rejecting empty ones."""
    segments = path.split(PATH_SEPARATOR)
    for segment in segments:
        check_label(segment, path)
    return segments


def join_path(segments: Sequence[str]) -> str:
    return PATH_SEPARATOR.join(segments)


class RecordNode:
    """Common behaviour of folders and bookmarks."""

    def __init__(self, label: str):
        self._check_own_label(label)
        self.label = label
        self.checked = False  # derived from breakpoints, never persisted
        self._parent: weakref.ref[FolderNode] | None = None

    def _check_own_label(self, label: str) -> None:
        check_label(label)

    # -- links -------------------------------------------------------------

    @property
    def parent(self) -> FolderNode | None:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return False

    @property
    def segments(self) -> list[str]:
        """Labels from the root (exclusive) down to this node."""
        labels: list[str] = []
        node: RecordNode | None = self
        while node is not None and not node.is_root:
            labels.append(node.label)
            node = node.parent
        return labels[::-1]

    @property
    def path(self) -> str:
        return join_path(self.segments)

    @property
    def is_attached(self) -> bool:
        """Whether this node is still reachable from a root."""
        node: RecordNode | None = self
        while node is not None:
            if node.is_root:
                return True
            parent = node.parent
            if parent is None or parent.get_child(node.label) is not node:
                return False
            node = parent
        return False

    def ancestors(self) -> Iterator[FolderNode]:
        """Parents from nearest to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    # -- structure ---------------------------------------------------------

    def find_down(self, segments: Sequence[str]) -> tuple[int, RecordNode]:
        """
        Follow ``segments`` through child labels as far as they match.

        Returns:
            (number of matched segments, deepest node reached)
        """
        node: RecordNode = self
        depth = 0
        for segment in segments:
            if not isinstance(node, FolderNode):
                break
            child = node.get_child(segment)
            if child is None:
                break
            node = child
            depth += 1
        return depth, node

    def add_down(self, segments: Sequence[str], item: RecordNode) -> RecordNode:
        raise make_structural_error(
            "path prefix is itself a bookmark, not a folder", self.path or None
        )

    def remove_from_parent(self) -> FolderNode:
        """Detach this node (and its subtree). Returns the former parent."""
        parent = self.parent
        if parent is None:
            raise make_structural_error("node has no parent; it is a root or already removed")
        parent._detach(self)
        return parent

    def iter_nodes(self) -> Iterator[RecordNode]:
        """Post-order traversal: children before their parent."""
        yield self

    def iter_bookmarks(self) -> Iterator[BookmarkNode]:
        for node in self.iter_nodes():
            if isinstance(node, BookmarkNode):
                yield node

    # -- persistence -------------------------------------------------------

    def serialize(self) -> dict[str, Any]:
        raise NotImplementedError

    @staticmethod
    def deserialize(label: str, blob: Any, where: str | None = None) -> RecordNode:
        """
        Build a node from persisted data, classifying it by shape.

        A mapping with ``file``, ``lineno`` and ``content`` is a bookmark; any
        other mapping is a folder. Anything else is rejected.

        Raises:
            StructuralError: If the data (or any nested entry) is malformed
        """
        where = label if where is None else where
        if looks_like_fact(blob):
            try:
                fact = LocationFact.model_validate(blob)
            except PydanticValidationError as e:
                problems = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                )
                raise make_structural_error(f"invalid bookmark record ({problems})", where) from e
            return BookmarkNode(label, fact)

        if isinstance(blob, dict):
            folder = FolderNode(label)
            for key, value in blob.items():
                child_where = f"{where}{PATH_SEPARATOR}{key}" if where else str(key)
                check_label(key, child_where)
                folder.add_child(RecordNode.deserialize(key, value, child_where))
            return folder

        raise make_structural_error(
            f"expected a bookmark record or a folder mapping, got {type(blob).__name__}",
            where or None,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path or '<root>'!r})"


class BookmarkNode(RecordNode):
    """A leaf holding exactly one remembered location."""

    def __init__(self, label: str, fact: LocationFact):
        super().__init__(label)
        self.fact = fact

    def serialize(self) -> dict[str, Any]:
        return self.fact.to_record()


class FolderNode(RecordNode):
    """An interior node whose children are kept sorted by label."""

    def __init__(self, label: str, children: Sequence[RecordNode] = ()):
        super().__init__(label)
        self._children: dict[str, RecordNode] = {}
        for child in children:
            self.add_child(child)

    @property
    def children(self) -> list[RecordNode]:
        return list(self._children.values())

    def get_child(self, label: str) -> RecordNode | None:
        return self._children.get(label)

    def add_child(self, item: RecordNode) -> RecordNode:
        if item.parent is not None:
            raise make_structural_error("node is already attached elsewhere", item.path)
        if item.label in self._children:
            where = join_path([*self.segments, item.label])
            raise make_structural_error("a sibling with this label already exists", where)
        self._children[item.label] = item
        self._children = dict(sorted(self._children.items()))
        item._parent = weakref.ref(self)
        return item

    def add_down(self, segments: Sequence[str], item: RecordNode) -> RecordNode:
        """
        Insert ``item`` below this folder, creating one folder per segment.

        Returns:
            The inserted item
        """
        for label in segments:
            check_label(label)
        node = item
        for label in reversed(segments):
            node = FolderNode(label, [node])
        self.add_child(node)
        return item

    def _detach(self, item: RecordNode) -> None:
        if self._children.get(item.label) is not item:
            raise make_structural_error("node is not a child of its recorded parent", item.path)
        del self._children[item.label]
        item._parent = None

    def iter_nodes(self) -> Iterator[RecordNode]:
        for child in self.children:
            yield from child.iter_nodes()
        yield self

    def serialize(self) -> dict[str, Any]:
        return {child.label: child.serialize() for child in self.children}


class RootNode(FolderNode):
    """The unlabelled top of a record tree."""

    def __init__(self, children: Sequence[RecordNode] = ()):
        super().__init__("", children)

    def _check_own_label(self, label: str) -> None:
        pass

    @property
    def is_root(self) -> bool:
        return True

    def remove_from_parent(self) -> FolderNode:
        raise make_structural_error("the root cannot be removed")

    @classmethod
    def from_mapping(cls, blob: Any) -> RootNode:
        """Build a root from the persisted top-level mapping."""
        if blob is None:
            return cls()
        if looks_like_fact(blob) or not isinstance(blob, dict):
            raise make_structural_error(
                "the bookmark store must be a mapping of labels to folders or bookmarks"
            )
        root = cls()
        for key, value in blob.items():
            check_label(key, str(key))
            root.add_child(RecordNode.deserialize(key, value, key))
        return root


__all__ = [
    "PATH_SEPARATOR",
    "RecordNode",
    "BookmarkNode",
    "FolderNode",
    "RootNode",
    "check_label",
    "split_path",
    "join_path",
]
