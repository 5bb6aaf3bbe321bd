"""In-memory breakpoint set with change notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from bugmark.core.errors import ErrorContext, NotFoundError

from .protocols import Breakpoint, BreakpointChange

logger = logging.getLogger(__name__)

Listener = Callable[[BreakpointChange], None]


class InMemoryBreakpointStore:
    """
    A set of breakpoints that tells subscribers about every change.

    Listeners are called synchronously, after the set has been updated.
    """

    def __init__(self, breakpoints: Iterable[Breakpoint] = ()):
        self._breakpoints: set[Breakpoint] = set(breakpoints)
        self._listeners: list[Listener] = []

    def __contains__(self, breakpoint: object) -> bool:
        return breakpoint in self._breakpoints

    def __iter__(self) -> Iterator[Breakpoint]:
        return iter(sorted(self._breakpoints, key=lambda bp: (bp.file, bp.line)))

    def __len__(self) -> int:
        return len(self._breakpoints)

    def add(self, breakpoint: Breakpoint) -> None:
        if breakpoint in self._breakpoints:
            return
        self._breakpoints.add(breakpoint)
        logger.debug("Breakpoint added at %s:%d", breakpoint.file, breakpoint.line + 1)
        self._notify(BreakpointChange(added=(breakpoint,)))

    def remove(self, breakpoint: Breakpoint) -> None:
        if breakpoint not in self._breakpoints:
            raise NotFoundError(
                "no breakpoint at this location",
                ErrorContext(file=breakpoint.file, line=breakpoint.line),
            )
        self._breakpoints.discard(breakpoint)
        logger.debug("Breakpoint removed at %s:%d", breakpoint.file, breakpoint.line + 1)
        self._notify(BreakpointChange(removed=(breakpoint,)))

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, change: BreakpointChange) -> None:
        for listener in list(self._listeners):
            listener(change)


__all__ = ["InMemoryBreakpointStore"]
