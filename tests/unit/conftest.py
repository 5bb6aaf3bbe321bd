"""
Fakes for the collaborators the core talks to.

``FakeVCS`` and ``FakeDocuments`` stand in for git and the filesystem so
reconciliation can be tested without either. They count calls so tests can
check memoization.
"""

from __future__ import annotations

from collections import Counter

import pytest

from bugmark.core.config import BugmarkSettings
from bugmark.core.errors import ExternalUnavailable
from bugmark.core.reconcile import Reconciler
from bugmark.providers.breakpoints import InMemoryBreakpointStore
from bugmark.providers.documents import LinesDocument


class FakeVCS:
    """In-memory VersionControlProvider."""

    def __init__(
        self,
        head: str = "c2",
        diffs: dict[tuple[str, str], str] | None = None,
        renames: dict[str, str] | None = None,
        revisions: set[str] | None = None,
        dirty: bool = False,
        branch: str | None = "main",
        repo: bool = True,
    ):
        self.head_revision = head
        self.diffs = diffs or {}
        self.renames = renames or {}
        self.revisions = revisions if revisions is not None else {"c1", head}
        self.dirty = dirty
        self.branch = branch
        self.repo = repo
        self.calls: Counter[str] = Counter()

    async def has_repository(self, file: str) -> bool:
        self.calls["has_repository"] += 1
        return self.repo

    async def has_revision(self, file: str, revision: str) -> bool:
        self.calls["has_revision"] += 1
        return revision in self.revisions

    async def head(self, file: str) -> str:
        self.calls["head"] += 1
        return self.head_revision

    async def diff(self, file: str, revision: str) -> str:
        self.calls["diff"] += 1
        return self.diffs.get((file, revision), "")

    async def renamed_path(self, file: str, revision: str) -> str | None:
        self.calls["renamed_path"] += 1
        return self.renames.get(file)

    async def is_dirty(self, file: str) -> bool:
        self.calls["is_dirty"] += 1
        return self.dirty

    async def current_branch(self, file: str) -> str | None:
        self.calls["current_branch"] += 1
        return self.branch


class FakeDocuments:
    """In-memory DocumentProvider keyed by encoded path."""

    def __init__(self, files: dict[str, list[str]] | None = None):
        self.files = files or {}
        self.opened: Counter[str] = Counter()

    async def open(self, file: str) -> LinesDocument:
        self.opened[file] += 1
        if file not in self.files:
            raise ExternalUnavailable(f"no such document: {file}")
        return LinesDocument(self.files[file])


@pytest.fixture
def fake_vcs_cls() -> type[FakeVCS]:
    return FakeVCS


@pytest.fixture
def vcs() -> FakeVCS:
    return FakeVCS()


@pytest.fixture
def documents(sample_source: list[str]) -> FakeDocuments:
    return FakeDocuments(
        {
            "a.py": list(sample_source),
            "b.py": ["x = 1", "y = 2"],
        }
    )


@pytest.fixture
def settings(workspace) -> BugmarkSettings:
    return BugmarkSettings(root=workspace, search_radius=5)


@pytest.fixture
def reconciler(vcs: FakeVCS, documents: FakeDocuments, settings: BugmarkSettings) -> Reconciler:
    return Reconciler(vcs, documents, settings)


@pytest.fixture
def breakpoints() -> InMemoryBreakpointStore:
    return InMemoryBreakpointStore()
