"""
Reconciliation of remembered locations against the current code.

A fact is reconciled in three steps:

1. follow a file rename recorded by the VCS since the fact's revision,
2. translate its line through the diff from that revision to HEAD,
3. fuzzy-search around the translated line for the remembered text.

Every external failure degrades to "no information": the step is skipped and
the fact keeps its last known position.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from .config import BugmarkSettings
from .diff_translate import translate_line
from .errors import ExternalUnavailable
from .fuzzy import locate_line
from .models import LocationFact

if TYPE_CHECKING:
    from bugmark.providers.protocols import DocumentProvider, VersionControlProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ReconcileOutcome:
    """Result of reconciling one fact."""

    fact: LocationFact  # the stored fact, or a working copy of it
    found: bool  # fuzzy search re-anchored the line
    changed: bool  # the stored fact was modified and should be persisted
    in_place: bool


class LookupMemo:
    """
    Shares VCS lookups among everyone asking during one pass.

    The first caller for a key starts the lookup; later callers await the
    same task. Failures are shared too.
    """

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    async def get(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
        return await asyncio.shield(task)


class Reconciler:
    """Keeps LocationFacts pointing at the right line."""

    def __init__(
        self,
        vcs: VersionControlProvider | None,
        documents: DocumentProvider,
        settings: BugmarkSettings,
    ):
        self.vcs = vcs
        self.documents = documents
        self.settings = settings
        self._memo: LookupMemo | None = None
        self._inflight: dict[Hashable, asyncio.Future[ReconcileOutcome]] = {}

    @contextmanager
    def memo(self) -> Iterator[LookupMemo]:
        """Memoize VCS lookups per (revision, file) until the block exits."""
        previous = self._memo
        self._memo = memo = LookupMemo()
        try:
            yield memo
        finally:
            self._memo = previous

    async def _lookup(
        self, kind: str, revision: str | None, file: str, factory: Callable[[], Awaitable[T]]
    ) -> T:
        if self._memo is None:
            return await factory()
        return await self._memo.get((kind, revision, file), factory)

    async def _has_repository(self, file: str) -> bool:
        if self.vcs is None:
            return False
        try:
            return await self._lookup("repo", None, file, partial(self.vcs.has_repository, file))
        except ExternalUnavailable as e:
            logger.debug("No repository for %s: %s", file, e)
            return False

    async def head(self, file: str) -> str | None:
        """Current head commit for ``file``, or None without a repository."""
        if self.vcs is None:
            return None
        try:
            return await self._lookup("head", None, file, partial(self.vcs.head, file))
        except ExternalUnavailable as e:
            logger.debug("Cannot resolve HEAD for %s: %s", file, e)
            return None

    async def should_update_in_place(self, fact: LocationFact) -> bool:
        """
        Whether reconciliation may rewrite the stored fact.

        Without a repository there is nothing to disagree with. With one,
        uncommitted changes (or a non-main branch when so configured) make
        the result temporary, so reconciliation works on a copy.
        """
        if self.vcs is None or not await self._has_repository(fact.file):
            return True
        try:
            if await self.vcs.is_dirty(fact.file):
                return False
            if self.settings.only_update_on_main_branch:
                branch = await self.vcs.current_branch(fact.file)
                return branch in self.settings.main_branches
        except ExternalUnavailable as e:
            logger.debug("Cannot inspect working tree for %s: %s", fact.file, e)
            return False
        return True

    async def fix_file_location(self, fact: LocationFact) -> bool:
        """Follow a rename of ``fact.file`` since ``fact.revision``. Returns True if moved."""
        if self.vcs is None or not fact.revision:
            return False
        try:
            renamed = await self._lookup(
                "rename",
                fact.revision,
                fact.file,
                partial(self.vcs.renamed_path, fact.file, fact.revision),
            )
        except ExternalUnavailable as e:
            logger.debug("Rename detection unavailable for %s: %s", fact.file, e)
            return False
        if renamed and renamed != fact.file:
            logger.info("Bookmark file %s was renamed to %s", fact.file, renamed)
            fact.file = renamed
            return True
        return False

    async def translate(self, fact: LocationFact) -> int:
        """Predict the fact's current 0-indexed line from the diff since its revision."""
        if self.vcs is None or not fact.revision:
            return fact.lineno
        revision = fact.revision
        try:
            known = await self._lookup(
                "revision", revision, fact.file, partial(self.vcs.has_revision, fact.file, revision)
            )
            if not known:
                logger.debug("Revision %s not found for %s", revision, fact.file)
                return fact.lineno
            diff = await self._lookup(
                "diff", revision, fact.file, partial(self.vcs.diff, fact.file, revision)
            )
        except ExternalUnavailable as e:
            logger.debug("Diff unavailable for %s@%s: %s", fact.file, revision, e)
            return fact.lineno
        # Diffs count lines from 1
        return max(translate_line(diff, fact.lineno + 1) - 1, 0)

    async def fix_line_number(self, fact: LocationFact) -> bool:
        """
        Re-anchor ``fact`` on the current document.

        Returns:
            True when the line was found. On failure the position is left
            alone and the fact is flagged as deleted (unless the document
            itself could not be opened).
        """
        try:
            document = await self.documents.open(fact.file)
        except ExternalUnavailable as e:
            logger.debug("Document unavailable for %s: %s", fact.file, e)
            return False

        candidate = await self.translate(fact)
        match = locate_line(document, candidate, fact.content, self.settings.search_radius)
        if not match.found:
            logger.warning(
                "Could not find %r near %s:%d; keeping last known line",
                fact.content,
                fact.file,
                fact.lineno + 1,
            )
            fact.deleted = True
            return False

        fact.lineno = match.line
        fact.content = document.line_at(match.line)
        fact.deleted = None
        head = await self.head(fact.file)
        if head:
            fact.revision = head
        return True

    async def reconcile(self, fact: LocationFact, *, allow_in_place: bool = True) -> ReconcileOutcome:
        """
        Reconcile a fact, in place when allowed and safe, else on a copy.

        Args:
            fact: The stored fact
            allow_in_place: False to never modify ``fact`` (e.g. when only
                checking breakpoints)
        """
        in_place = allow_in_place and await self.should_update_in_place(fact)
        target = fact if in_place else fact.clone()
        before = target.clone()

        await self.fix_file_location(target)
        found = await self.fix_line_number(target)

        changed = in_place and not before.same_location(target)
        return ReconcileOutcome(fact=target, found=found, changed=changed, in_place=in_place)

    async def reconcile_once(self, key: Hashable, fact: LocationFact) -> ReconcileOutcome:
        """
        Reconcile a copy of ``fact``, sharing one in-flight run per ``key``.

        Callers asking for the same key while a run is pending await that
        run instead of starting another, so one bookmark is never reconciled
        twice at once. The stored ``fact`` is not modified.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self.reconcile(fact.clone()))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)


__all__ = ["LookupMemo", "ReconcileOutcome", "Reconciler"]
