"""Tests for bugmark.core.checkbox — checked state mirrored from breakpoints."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from bugmark.core.checkbox import CheckboxSync, folder_state, lowest_common_ancestor
from bugmark.core.models import LocationFact
from bugmark.core.reconcile import Reconciler
from bugmark.core.tree import BookmarkNode, FolderNode, RecordNode, RootNode
from bugmark.providers.breakpoints import InMemoryBreakpointStore
from bugmark.providers.protocols import Breakpoint


def node(root: RootNode, path: str) -> RecordNode:
    depth, found = root.find_down(path.split("/"))
    assert depth == len(path.split("/"))
    return found


@pytest.fixture
def changes() -> list[RecordNode | None]:
    return []


@pytest.fixture
def sync(
    sample_tree: RootNode,
    breakpoints: InMemoryBreakpointStore,
    reconciler: Reconciler,
    changes: list[RecordNode | None],
) -> Iterator[CheckboxSync]:
    checkbox_sync = CheckboxSync(sample_tree, breakpoints, reconciler, on_change=changes.append)
    yield checkbox_sync
    checkbox_sync.close()


@pytest.fixture
def make_sync(
    sample_tree: RootNode, reconciler: Reconciler
) -> Iterator[Callable[..., CheckboxSync]]:
    """Build a CheckboxSync over a store that already holds ``breakpoints``."""
    created: list[CheckboxSync] = []

    def factory(*breakpoints: tuple[str, int]) -> CheckboxSync:
        store = InMemoryBreakpointStore(Breakpoint(*bp) for bp in breakpoints)
        checkbox_sync = CheckboxSync(sample_tree, store, reconciler)
        created.append(checkbox_sync)
        return checkbox_sync

    yield factory
    for checkbox_sync in created:
        checkbox_sync.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_empty_folder_is_unchecked(self) -> None:
        assert folder_state(FolderNode("empty")) is False

    def test_folder_needs_all_children(self) -> None:
        a = BookmarkNode("a", LocationFact(file="f", lineno=0, content="x"))
        b = BookmarkNode("b", LocationFact(file="f", lineno=1, content="y"))
        folder = FolderNode("f", [a, b])
        a.checked = True
        assert not folder_state(folder)
        b.checked = True
        assert folder_state(folder)

    def test_lowest_common_ancestor(self, sample_tree: RootNode) -> None:
        get, post = node(sample_tree, "api/get"), node(sample_tree, "api/post")
        helper = node(sample_tree, "core/util/helper")
        assert lowest_common_ancestor(sample_tree, [get, post]).label == "api"
        assert lowest_common_ancestor(sample_tree, [get, helper]) is sample_tree
        assert lowest_common_ancestor(sample_tree, [get]) is get
        assert lowest_common_ancestor(sample_tree, []) is None


# ---------------------------------------------------------------------------
# recompute
# ---------------------------------------------------------------------------


class TestRecompute:
    @pytest.mark.asyncio
    async def test_no_breakpoints_no_change(self, make_sync) -> None:
        sync = make_sync()
        assert await sync.recompute() is None
        assert sync.passes == 1

    @pytest.mark.asyncio
    async def test_single_flip_reports_the_leaf(self, make_sync, sample_tree: RootNode) -> None:
        sync = make_sync(("a.py", 3))
        changed = await sync.recompute()
        assert changed is node(sample_tree, "api/get")
        assert changed.checked
        assert not node(sample_tree, "api").checked

    @pytest.mark.asyncio
    async def test_sibling_flips_report_their_folder(
        self, make_sync, sample_tree: RootNode
    ) -> None:
        sync = make_sync(("a.py", 3), ("a.py", 5))
        changed = await sync.recompute()
        assert changed is node(sample_tree, "api")
        assert changed.checked
        assert not sample_tree.checked

    @pytest.mark.asyncio
    async def test_distant_flips_report_root(self, make_sync, sample_tree: RootNode) -> None:
        sync = make_sync(("a.py", 3), ("b.py", 0))
        changed = await sync.recompute()
        assert changed is sample_tree
        assert node(sample_tree, "core").checked
        assert node(sample_tree, "core/util").checked

    @pytest.mark.asyncio
    async def test_second_pass_reports_nothing(self, make_sync) -> None:
        sync = make_sync(("a.py", 3))
        await sync.recompute()
        assert await sync.recompute() is None
        assert sync.passes == 2

    @pytest.mark.asyncio
    async def test_all_checked_checks_root(self, make_sync, sample_tree: RootNode) -> None:
        sync = make_sync(("a.py", 0), ("a.py", 3), ("a.py", 5), ("b.py", 0))
        await sync.recompute()
        assert sample_tree.checked
        assert all(n.checked for n in sample_tree.iter_nodes())

    @pytest.mark.asyncio
    async def test_breakpoint_follows_moved_line(self, make_sync, sample_tree: RootNode) -> None:
        moved = node(sample_tree, "api/post")
        moved.fact.lineno = 2
        sync = make_sync(("a.py", 5))
        assert await sync.recompute() is moved
        # Checking never rewrites the stored fact
        assert moved.fact.lineno == 2

    @pytest.mark.asyncio
    async def test_breakpoint_in_other_file_ignored(self, make_sync) -> None:
        sync = make_sync(("c.py", 3))
        assert await sync.recompute() is None

    @pytest.mark.asyncio
    async def test_subtree_recompute(self, make_sync, sample_tree: RootNode) -> None:
        sync = make_sync(("a.py", 0))
        assert await sync.recompute(node(sample_tree, "api")) is None
        assert not node(sample_tree, "top").checked

    @pytest.mark.asyncio
    async def test_recompute_single_bookmark(self, make_sync, sample_tree: RootNode) -> None:
        sync = make_sync(("a.py", 3))
        get = node(sample_tree, "api/get")
        assert await sync.recompute(get) is get
        assert get.checked
        assert not node(sample_tree, "api").checked


# ---------------------------------------------------------------------------
# Breakpoint notifications
# ---------------------------------------------------------------------------


class TestNotifications:
    @pytest.mark.asyncio
    async def test_change_schedules_recompute(
        self, sync: CheckboxSync, sample_tree: RootNode, changes: list
    ) -> None:
        sync.breakpoints.add(Breakpoint("a.py", 3))
        assert sync.pending is not None
        await sync.pending
        assert sync.passes == 1
        assert changes == [node(sample_tree, "api/get")]

    @pytest.mark.asyncio
    async def test_burst_is_coalesced(self, sync: CheckboxSync) -> None:
        first = sync.on_breakpoints_changed(None)
        second = sync.on_breakpoints_changed(None)
        assert first is second
        await first
        assert sync.passes == 1

    @pytest.mark.asyncio
    async def test_guard_suppresses_recompute(self, sync: CheckboxSync) -> None:
        with sync.guard():
            assert sync.syncing
            sync.breakpoints.add(Breakpoint("a.py", 3))
        assert sync.pending is None
        assert not sync.syncing
        assert sync.passes == 0

    def test_without_event_loop_nothing_scheduled(self, sync: CheckboxSync) -> None:
        assert sync.schedule_recompute() is None

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, sync: CheckboxSync) -> None:
        sync.close()
        sync.breakpoints.add(Breakpoint("a.py", 3))
        assert sync.pending is None


# ---------------------------------------------------------------------------
# toggle
# ---------------------------------------------------------------------------


class TestToggle:
    @pytest.mark.asyncio
    async def test_check_leaf_adds_breakpoint(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        get = node(sample_tree, "api/get")
        result = await sync.toggle(get, True)
        assert Breakpoint("a.py", 3) in breakpoints
        assert get.checked
        assert result.changed is get
        assert sync.pending is None
        assert sync.passes == 0

    @pytest.mark.asyncio
    async def test_mixed_folder_only_touches_differing_leaves(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        breakpoints.add(Breakpoint("a.py", 3))
        await sync.pending
        api = node(sample_tree, "api")

        result = await sync.toggle(api, True)
        assert sorted(bp.line for bp in breakpoints) == [3, 5]
        assert api.checked
        assert result.changed is api

    @pytest.mark.asyncio
    async def test_uncheck_folder_removes_breakpoints(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        api = node(sample_tree, "api")
        await sync.toggle(api, True)
        result = await sync.toggle(api, False)
        assert len(breakpoints) == 0
        assert not api.checked
        assert result.changed is api

    @pytest.mark.asyncio
    async def test_uncheck_without_breakpoint_is_harmless(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        result = await sync.toggle(node(sample_tree, "top"), False)
        assert len(breakpoints) == 0
        assert result.changed is None

    @pytest.mark.asyncio
    async def test_check_root_checks_everything(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        result = await sync.toggle(sample_tree, True)
        assert len(breakpoints) == 4
        assert sample_tree.checked
        assert result.changed is sample_tree

    @pytest.mark.asyncio
    async def test_toggle_reanchors_moved_leaf(
        self, sync: CheckboxSync, sample_tree: RootNode, breakpoints: InMemoryBreakpointStore
    ) -> None:
        post = node(sample_tree, "api/post")
        post.fact.lineno = 2
        result = await sync.toggle(post, True)
        assert Breakpoint("a.py", 5) in breakpoints
        assert post.fact.lineno == 5
        assert result.facts_modified

    @pytest.mark.asyncio
    async def test_ancestors_rederived(
        self, sync: CheckboxSync, sample_tree: RootNode
    ) -> None:
        result = await sync.toggle(node(sample_tree, "core/util/helper"), True)
        assert node(sample_tree, "core/util").checked
        assert node(sample_tree, "core").checked
        assert result.changed is node(sample_tree, "core")
