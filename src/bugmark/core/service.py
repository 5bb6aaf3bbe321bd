"""
Bookmark service: the command surface a presentation layer talks to.

Owns the record tree and its persistence, runs reconciliation, keeps
checkbox state in sync with breakpoints, and tells subscribers which subtree
changed after each operation (``None`` meaning "everything").
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from bugmark.providers.breakpoints import InMemoryBreakpointStore
from bugmark.providers.documents import FileDocumentProvider
from bugmark.providers.git import GitProvider
from bugmark.providers.protocols import BreakpointStore, CursorProvider

from .checkbox import CheckboxSync, ToggleResult
from .config import BugmarkSettings
from .edits import TextChange, apply_change, apply_rename
from .errors import BugmarkError, ErrorContext, NotFoundError, StructuralError
from .models import LocationFact
from .paths import PathCodec
from .reconcile import ReconcileOutcome, Reconciler
from .serializer import BookmarkStore
from .tree import BookmarkNode, FolderNode, RecordNode, RootNode, split_path

logger = logging.getLogger(__name__)

Listener = Callable[[RecordNode | None], None]


@dataclass
class ReconcileSummary:
    """Result of reconciling every bookmark."""

    updated: list[BookmarkNode] = field(default_factory=list)
    stale: list[BookmarkNode] = field(default_factory=list)
    total: int = 0


class BookmarkService:
    """Record tree plus the operations that keep it correct and persisted."""

    def __init__(
        self,
        store: BookmarkStore,
        reconciler: Reconciler,
        breakpoints: BreakpointStore,
        codec: PathCodec,
        cursor: CursorProvider | None = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.breakpoints = breakpoints
        self.codec = codec
        self.cursor = cursor
        self._listeners: list[Listener] = []
        self.root = store.load()
        self.checkboxes = CheckboxSync(self.root, breakpoints, reconciler, on_change=self._notify)

    @classmethod
    def from_settings(
        cls,
        settings: BugmarkSettings,
        breakpoints: BreakpointStore | None = None,
        cursor: CursorProvider | None = None,
    ) -> BookmarkService:
        """Wire the service to git, the filesystem and a JSON store."""
        codec = settings.codec()
        reconciler = Reconciler(GitProvider(codec), FileDocumentProvider(codec), settings)
        return cls(
            BookmarkStore(settings.store_path),
            reconciler,
            breakpoints if breakpoints is not None else InMemoryBreakpointStore(),
            codec,
            cursor,
        )

    # -- notifications -------------------------------------------------------

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register a "subtree changed" listener; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, node: RecordNode | None) -> None:
        for listener in list(self._listeners):
            listener(node)

    def refresh(self, node: RecordNode | None) -> None:
        if node is None or node.is_root or not node.is_attached:
            node = None
        self._notify(node)

    # -- load / store --------------------------------------------------------

    def load(self) -> RootNode:
        """Reload the tree from the store, discarding in-memory state."""
        self.root = self.store.load()
        self.checkboxes.root = self.root
        self.refresh(None)
        return self.root

    def save(self) -> None:
        self.store.save(self.root)

    # -- tree commands -------------------------------------------------------

    def find(self, path: str) -> RecordNode:
        """
        Look up a node by slash-joined path.

        Raises:
            NotFoundError: If no node lives at ``path``
        """
        segments = split_path(path)
        depth, node = self.root.find_down(segments)
        if depth != len(segments):
            raise NotFoundError("no bookmark or folder with this name", ErrorContext(path=path))
        return node

    def _insert(self, segments: Sequence[str], item: RecordNode) -> RecordNode:
        depth, node = self.root.find_down(segments)
        node.add_down(segments[depth:], item)
        return node

    def add_item_with_path(self, segments: Sequence[str], item: RecordNode) -> RecordNode:
        """
        Insert ``item`` under the folder path ``segments``, creating folders.

        Raises:
            StructuralError: If a prefix of the path is a bookmark, or the
                label is already taken
        """
        changed = self._insert(segments, item)
        self.refresh(changed)
        self.save()
        return item

    async def mark_line(self, path: str) -> BookmarkNode:
        """Bookmark the cursor line under ``path`` (last segment is the label)."""
        if self.cursor is None:
            raise BugmarkError("no cursor provider configured")
        segments = split_path(path)
        label = segments.pop()
        cursor = await self.cursor.capture()
        fact = LocationFact(
            file=cursor.file,
            lineno=cursor.line,
            content=cursor.text,
            revision=await self.reconciler.head(cursor.file),
        )
        item = BookmarkNode(label, fact)
        self.add_item_with_path(segments, item)
        logger.info("Marked %s at %s:%d", path, fact.file, fact.lineno + 1)
        return item

    def remove_item(self, node: RecordNode) -> FolderNode:
        """Remove a node and its subtree. Returns the former parent."""
        parent = node.remove_from_parent()
        self.refresh(parent)
        self.save()
        return parent

    def rename_item(self, node: RecordNode, new_path: str) -> RecordNode:
        """
        Move/relabel ``node`` to ``new_path``.

        On failure the node is put back where it was and the error re-raised.
        """
        segments = split_path(new_path)
        new_label = segments.pop()
        old_label = node.label
        old_parent = node.remove_from_parent()

        node.label = new_label
        try:
            changed = self._insert(segments, node)
        except StructuralError:
            node.label = old_label
            old_parent.add_child(node)
            raise

        self.refresh(old_parent)
        self.refresh(changed)
        self.save()
        return node

    # -- reconciliation ------------------------------------------------------

    async def reconcile_node(self, node: BookmarkNode) -> ReconcileOutcome | None:
        """
        Reconcile one bookmark, sharing an in-flight run for the same node.

        Returns:
            The outcome, or None when the node was removed meanwhile (the
            result is then discarded)
        """
        outcome = await self.reconciler.reconcile_once(node, node.fact)

        if not node.is_attached:
            logger.debug("Discarding reconciliation of removed bookmark %r", node.label)
            return None
        if outcome.changed and node.fact is not outcome.fact:
            node.fact = outcome.fact
        return outcome

    async def goto(self, node: BookmarkNode) -> LocationFact | None:
        """
        Reconcile a bookmark for navigation.

        Returns:
            Where to navigate: the re-anchored location, or the last known
            one when the line could not be found; None if the node was removed
        """
        outcome = await self.reconcile_node(node)
        if outcome is None:
            return None
        if outcome.changed:
            self.save()
            self.refresh(node)
        return outcome.fact

    async def reconcile_all(self) -> ReconcileSummary:
        """Reconcile every bookmark, persisting re-anchored ones."""
        summary = ReconcileSummary()
        with self.reconciler.memo():
            for leaf in list(self.root.iter_bookmarks()):
                summary.total += 1
                outcome = await self.reconcile_node(leaf)
                if outcome is None:
                    continue
                if outcome.changed:
                    summary.updated.append(leaf)
                if not outcome.found:
                    summary.stale.append(leaf)
        if summary.updated:
            self.save()
            self.refresh(None)
        return summary

    # -- checkboxes ----------------------------------------------------------

    async def toggle(self, node: RecordNode, checked: bool) -> ToggleResult:
        """Checkbox toggled in the UI: add/remove the matching breakpoints."""
        result = await self.checkboxes.toggle(node, checked)
        if result.facts_modified:
            self.save()
        if result.changed is not None:
            self.refresh(result.changed)
        return result

    async def refresh_checked(self) -> RecordNode | None:
        """Recompute checked state from breakpoints and refresh what changed."""
        changed = await self.checkboxes.recompute()
        if changed is not None:
            self.refresh(changed)
        return changed

    # -- document events -----------------------------------------------------

    def apply_edit(self, file: str | Path, changes: Sequence[TextChange]) -> int:
        """
        Shift bookmarks in ``file`` for a batch of edits.

        Returns:
            Number of bookmarks moved
        """
        encoded = self.codec.encode(file)
        moved = 0
        for leaf in self.root.iter_bookmarks():
            if leaf.fact.file != encoded:
                continue
            touched = False
            for change in changes:
                touched = apply_change(leaf.fact, change) or touched
            moved += touched
        if moved:
            self.save()
            self.refresh(None)
        return moved

    def apply_rename(self, old: str | Path, new: str | Path) -> int:
        """
        Follow a file or directory rename.

        Returns:
            Number of bookmarks rewritten
        """
        old_encoded, new_encoded = self.codec.encode(old), self.codec.encode(new)
        renamed = sum(apply_rename(leaf.fact, old_encoded, new_encoded) for leaf in self.root.iter_bookmarks())
        if renamed:
            self.save()
            self.refresh(None)
        return renamed

    def close(self) -> None:
        self.checkboxes.close()


__all__ = ["BookmarkService", "ReconcileSummary"]
