"""
Checked state of bookmarks, mirrored from the breakpoint set.

A bookmark is checked when a breakpoint sits on its reconciled line; a folder
is checked when it has children and all of them are checked. Recomputation
walks the tree post-order and reports one node: the lowest common ancestor of
everything whose state changed, so the presentation layer can refresh just
that subtree.

Toggling a checkbox goes the other way: breakpoints are added or removed for
every bookmark below the toggled node. While a toggle runs, breakpoint change
notifications (caused by the toggle itself) do not trigger a recompute.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from bugmark.providers.protocols import Breakpoint, BreakpointChange

from .errors import NotFoundError
from .tree import BookmarkNode, FolderNode, RecordNode, RootNode

if TYPE_CHECKING:
    from bugmark.providers.protocols import BreakpointStore

    from .reconcile import Reconciler

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[RecordNode | None], None]


def folder_state(folder: FolderNode) -> bool:
    """An empty folder is unchecked; otherwise all children must be checked."""
    children = folder.children
    return bool(children) and all(child.checked for child in children)


def lowest_common_ancestor(root: RootNode, nodes: Sequence[RecordNode]) -> RecordNode | None:
    """Deepest node of ``root`` that contains every node in ``nodes``."""
    if not nodes:
        return None
    common = nodes[0].segments
    for node in nodes[1:]:
        segments = node.segments
        depth = 0
        while depth < min(len(common), len(segments)) and common[depth] == segments[depth]:
            depth += 1
        common = common[:depth]
    return root.find_down(common)[1]


@dataclass
class ToggleResult:
    """What a checkbox toggle did."""

    changed: RecordNode | None  # subtree to refresh
    facts_modified: bool  # some stored fact was re-anchored and should be saved


class CheckboxSync:
    """Keeps node ``checked`` flags and the breakpoint set in agreement."""

    def __init__(
        self,
        root: RootNode,
        breakpoints: BreakpointStore,
        reconciler: Reconciler,
        on_change: ChangeCallback | None = None,
    ):
        self.root = root
        self.breakpoints = breakpoints
        self.reconciler = reconciler
        self.on_change = on_change
        self.passes = 0
        self.pending: asyncio.Task[RecordNode | None] | None = None
        self._guard_depth = 0
        self._rerun = False
        self._unsubscribe = breakpoints.subscribe(self.on_breakpoints_changed)

    def close(self) -> None:
        self._unsubscribe()

    # -- reentrancy guard ----------------------------------------------------

    @property
    def syncing(self) -> bool:
        return self._guard_depth > 0

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Hold while changing breakpoints from the tree side."""
        self._guard_depth += 1
        try:
            yield
        finally:
            self._guard_depth -= 1

    # -- breakpoints -> tree -------------------------------------------------

    def on_breakpoints_changed(self, change: BreakpointChange) -> asyncio.Task[RecordNode | None] | None:
        """Breakpoint store listener: schedule a recompute unless we caused the change."""
        if self.syncing:
            logger.debug("Ignoring breakpoint change made by a checkbox toggle")
            return None
        return self.schedule_recompute()

    def schedule_recompute(self) -> asyncio.Task[RecordNode | None] | None:
        """Run a recompute in the background, coalescing bursts of requests."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; checkbox recompute skipped")
            return None
        if self.pending is not None and not self.pending.done():
            self._rerun = True
            return self.pending
        self.pending = loop.create_task(self._run_pending())
        return self.pending

    async def _run_pending(self) -> RecordNode | None:
        changed: RecordNode | None = None
        while True:
            self._rerun = False
            report = await self.recompute()
            if report is not None:
                changed = report
                if self.on_change is not None:
                    self.on_change(None if report.is_root else report)
            if not self._rerun:
                return changed

    async def leaf_state(self, node: BookmarkNode) -> bool:
        """Whether a breakpoint sits on the bookmark's reconciled line."""
        fact = node.fact.clone()
        await self.reconciler.fix_file_location(fact)
        if not any(bp.file == fact.file for bp in self.breakpoints):
            return False
        await self.reconciler.fix_line_number(fact)
        return Breakpoint(fact.file, fact.lineno) in self.breakpoints

    async def recompute(self, node: RecordNode | None = None) -> RecordNode | None:
        """
        Recompute checked state below ``node`` (default: the whole tree).

        Returns:
            The lowest common ancestor of all nodes whose state changed, or
            None when nothing changed
        """
        self.passes += 1
        with self.reconciler.memo():
            return await self._recompute(node if node is not None else self.root)

    async def _recompute(self, node: RecordNode) -> RecordNode | None:
        reports: list[RecordNode] = []
        if isinstance(node, FolderNode):
            for child in node.children:
                report = await self._recompute(child)
                if report is not None:
                    reports.append(report)
            state = folder_state(node)
        else:
            state = await self.leaf_state(cast(BookmarkNode, node))

        changed = state != node.checked
        node.checked = state
        if changed or len(reports) > 1:
            return node
        if reports:
            return reports[0]
        return None

    # -- tree -> breakpoints -------------------------------------------------

    async def toggle(self, node: RecordNode, checked: bool) -> ToggleResult:
        """
        Set every bookmark below ``node`` to ``checked``.

        Bookmarks already in that state are left alone, so a folder with
        mixed children never adds duplicates or removes absent breakpoints.
        """
        changed: list[RecordNode] = []
        modified = False

        with self.guard(), self.reconciler.memo():
            for leaf in list(node.iter_bookmarks()):
                outcome = await self.reconciler.reconcile_once(leaf, leaf.fact)
                if not leaf.is_attached:
                    # Removed while reconciling
                    continue
                if outcome.changed:
                    leaf.fact = outcome.fact
                    modified = True
                breakpoint = Breakpoint(outcome.fact.file, outcome.fact.lineno)
                present = breakpoint in self.breakpoints
                if checked and not present:
                    self.breakpoints.add(breakpoint)
                elif not checked and present:
                    try:
                        self.breakpoints.remove(breakpoint)
                    except NotFoundError:
                        logger.debug("Breakpoint %s already gone", breakpoint)
                if leaf.checked != checked:
                    leaf.checked = checked
                    changed.append(leaf)

        for folder in [n for n in node.iter_nodes() if isinstance(n, FolderNode)]:
            changed.extend(self._rederive(folder))
        for ancestor in node.ancestors():
            changed.extend(self._rederive(ancestor))

        attached = [n for n in changed if n.is_attached]
        return ToggleResult(lowest_common_ancestor(self.root, attached), modified)

    @staticmethod
    def _rederive(folder: FolderNode) -> list[RecordNode]:
        state = folder_state(folder)
        if state == folder.checked:
            return []
        folder.checked = state
        return [folder]


__all__ = [
    "CheckboxSync",
    "ToggleResult",
    "folder_state",
    "lowest_common_ancestor",
]
