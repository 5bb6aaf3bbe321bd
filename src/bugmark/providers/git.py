"""Version-control lookups via the ``git`` CLI."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
from pathlib import Path

from bugmark.core.errors import ErrorContext, ExternalUnavailable
from bugmark.core.paths import PathCodec

logger = logging.getLogger(__name__)


def _find_git() -> str | None:
    """Locate the ``git`` binary."""
    return shutil.which("git")


def _run_git(args: list[str], cwd: Path, *, timeout: int = 30, check: bool = True) -> str:
    """Run a ``git`` subcommand in ``cwd`` and return stdout."""
    git = _find_git()
    if git is None:
        raise ExternalUnavailable("git executable not found on PATH")

    cmd = [git, *args]
    logger.debug("Running: %s (in %s)", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd, cwd=cwd, capture_output=True, text=True, timeout=timeout, errors="replace"
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ExternalUnavailable(f"git {args[0]} failed: {e}") from e
    if check and result.returncode != 0:
        raise ExternalUnavailable(
            f"git {args[0]} failed (rc={result.returncode}): {result.stderr.strip()}"
        )
    return result.stdout


def parse_renames(name_status: str) -> dict[str, str]:
    """Map old path to new path from ``git diff --name-status -M`` output."""
    renames: dict[str, str] = {}
    for line in name_status.splitlines():
        parts = line.split("\t")
        if len(parts) == 3 and parts[0].startswith("R"):
            renames[parts[1]] = parts[2]
    return renames


class GitProvider:
    """
    VersionControlProvider backed by the ``git`` command line.

    Blocking git calls run in a worker thread so the event loop stays free.
    """

    def __init__(self, codec: PathCodec):
        self.codec = codec
        self._toplevels: dict[Path, Path | None] = {}

    def _toplevel(self, file: str) -> Path | None:
        directory = self.codec.decode(file).absolute().parent
        if directory not in self._toplevels:
            if not directory.is_dir():
                self._toplevels[directory] = None
            else:
                out = _run_git(["rev-parse", "--show-toplevel"], directory, check=False)
                self._toplevels[directory] = Path(out.strip()) if out.strip() else None
        return self._toplevels[directory]

    def _require_toplevel(self, file: str) -> Path:
        top = self._toplevel(file)
        if top is None:
            raise ExternalUnavailable("not inside a git repository", ErrorContext(file=file))
        return top

    def _relative(self, file: str, top: Path) -> str:
        path = self.codec.decode(file).absolute()
        try:
            return path.relative_to(top).as_posix()
        except ValueError:
            pass
        # Symlinked checkouts report a resolved toplevel
        try:
            return path.resolve().relative_to(top.resolve()).as_posix()
        except ValueError as e:
            raise ExternalUnavailable(f"{path} is outside {top}", ErrorContext(file=file)) from e

    # -- blocking implementations -----------------------------------------

    def _has_revision(self, file: str, revision: str) -> bool:
        top = self._require_toplevel(file)
        try:
            _run_git(["cat-file", "-e", f"{revision}^{{commit}}"], top)
        except ExternalUnavailable:
            return False
        return True

    def _head(self, file: str) -> str:
        top = self._require_toplevel(file)
        return _run_git(["rev-parse", "HEAD"], top).strip()

    def _diff(self, file: str, revision: str) -> str:
        top = self._require_toplevel(file)
        rel = self._relative(file, top)
        paths = [rel]
        # A file renamed since the revision diffs against its old name
        status = _run_git(["diff", "--name-status", "-M", revision, "HEAD"], top)
        for old, new in parse_renames(status).items():
            if new == rel:
                paths = [old, rel]
                break
        return _run_git(
            ["diff", "--no-color", "--no-ext-diff", "-M", "-U3", revision, "HEAD", "--", *paths],
            top,
        )

    def _renamed_path(self, file: str, revision: str) -> str | None:
        top = self._require_toplevel(file)
        rel = self._relative(file, top)
        out = _run_git(["diff", "--name-status", "-M", revision, "HEAD"], top)
        new_rel = parse_renames(out).get(rel)
        if new_rel is None:
            return None
        return self.codec.encode(top / new_rel)

    def _is_dirty(self, file: str) -> bool:
        top = self._require_toplevel(file)
        return bool(_run_git(["status", "--porcelain", "--untracked-files=no"], top).strip())

    def _current_branch(self, file: str) -> str | None:
        top = self._require_toplevel(file)
        branch = _run_git(["rev-parse", "--abbrev-ref", "HEAD"], top).strip()
        return None if branch == "HEAD" else branch

    # -- VersionControlProvider ------------------------------------------

    async def has_repository(self, file: str) -> bool:
        return await asyncio.to_thread(self._toplevel, file) is not None

    async def has_revision(self, file: str, revision: str) -> bool:
        return await asyncio.to_thread(self._has_revision, file, revision)

    async def head(self, file: str) -> str:
        return await asyncio.to_thread(self._head, file)

    async def diff(self, file: str, revision: str) -> str:
        return await asyncio.to_thread(self._diff, file, revision)

    async def renamed_path(self, file: str, revision: str) -> str | None:
        return await asyncio.to_thread(self._renamed_path, file, revision)

    async def is_dirty(self, file: str) -> bool:
        return await asyncio.to_thread(self._is_dirty, file)

    async def current_branch(self, file: str) -> str | None:
        return await asyncio.to_thread(self._current_branch, file)


__all__ = ["GitProvider", "parse_renames"]
