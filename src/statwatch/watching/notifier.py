"""Two-phase change notifications.

Pre-commit listeners are called while the walk runs, once per path whose
record was recomputed, with ``(path, previous)``. Post-commit listeners are
called after the cache has been updated, with ``(path, previous, current)``;
``current`` is None for removals.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

from statwatch.logging import get_logger
from statwatch.watching.records import StatRecord

log = get_logger("watching.notifier")

PreCommitListener = Callable[[str, "StatRecord | None"], None]
ChangeListener = Callable[[str, "StatRecord | None", "StatRecord | None"], None]
ErrorSink = Callable[[BaseException], None]


@dataclass(frozen=True)
class ChangeEvent:
    """One committed change."""

    path: str
    previous: StatRecord | None
    current: StatRecord | None

    @property
    def change_type(self) -> str:
        if self.previous is None:
            return "created"
        if self.current is None:
            return "deleted"
        return "modified"


class Notifier:
    """Multi-subscriber surface for both notification phases.

    A listener that raises is reported to the error sink; the remaining
    listeners still run. After ``clear()`` nothing is delivered, even to a
    listener list that was snapshotted before the call.
    """

    def __init__(self, error_sink: ErrorSink) -> None:
        self._error_sink = error_sink
        self._pre_commit: list[PreCommitListener] = []
        self._change: list[ChangeListener] = []
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def pre_commit_count(self) -> int:
        return len(self._pre_commit)

    @property
    def change_count(self) -> int:
        return len(self._change)

    def on_pre_commit(self, listener: PreCommitListener) -> Callable[[], None]:
        """Subscribe to pre-commit notifications.

        Returns:
            Unsubscribe function.
        """
        with self._lock:
            self._pre_commit.append(listener)
        return lambda: self._remove(self._pre_commit, listener)

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to post-commit notifications.

        Returns:
            Unsubscribe function.
        """
        with self._lock:
            self._change.append(listener)
        return lambda: self._remove(self._change, listener)

    def _remove(self, listeners: list, listener: Callable[..., None]) -> None:
        with self._lock:
            if listener in listeners:
                listeners.remove(listener)

    def clear(self) -> None:
        """Detach every listener."""
        with self._lock:
            self._pre_commit.clear()
            self._change.clear()
            self._generation += 1

    def _deliver(self, listeners: list, *args: object) -> None:
        with self._lock:
            snapshot = list(listeners)
            generation = self._generation
        for listener in snapshot:
            if self._generation != generation:
                return
            try:
                listener(*args)
            except Exception as e:
                log.error("Error in watcher listener for %s: %s", args[0], e)
                self._error_sink(e)

    def emit_pre_commit(self, path: str, previous: StatRecord | None) -> None:
        self._deliver(self._pre_commit, path, previous)

    def emit_change(self, event: ChangeEvent) -> None:
        self._deliver(self._change, event.path, event.previous, event.current)
