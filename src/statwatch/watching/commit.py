"""Reconcile a pending generation into the authoritative cache."""

from __future__ import annotations

from statwatch.watching.generation import PendingGeneration
from statwatch.watching.notifier import ChangeEvent
from statwatch.watching.records import StatRecord


def commit_generation(
    cache: dict[str, StatRecord],
    generation: PendingGeneration,
    *,
    initialized: bool,
) -> list[ChangeEvent]:
    """Install staged records, drop vanished paths, and report what changed.

    Every staged record replaces (or adds) its cache entry. Every cached
    path that was neither restaged nor marked unchanged is removed. The
    cache is fully updated before this returns, so callers can emit the
    events knowing no partial state is visible.

    Args:
        cache: The watcher's cache, mutated in place.
        generation: Records and unchanged paths from the finished walk.
        initialized: False for the first tick, which only sets the baseline.

    Returns:
        One ChangeEvent per added, replaced, or removed path; empty on the
        first tick.
    """
    events: list[ChangeEvent] = []

    for path, record in generation.records.items():
        previous = cache.get(path)
        cache[path] = record
        events.append(ChangeEvent(path, previous, record))

    removed = [path for path in cache if not generation.is_accounted_for(path)]
    for path in removed:
        events.append(ChangeEvent(path, cache.pop(path), None))

    return events if initialized else []
