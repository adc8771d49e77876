"""Shared test utilities for statwatch tests."""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable
from typing import Any

from statwatch.watching.filesystem import OsFileSystem
from statwatch.watching.records import FileKind, StatRecord

# Long enough that the scheduler never fires during a test that drives
# ticks by hand.
MANUAL_INTERVAL = 3_600_000


def create_record(
    kind: FileKind = FileKind.FILE,
    ctime_ms: float = 1_000.0,
    size: int = 0,
    children: list[str] | None = None,
    link_target: str | None = None,
    **overrides: Any,
) -> StatRecord:
    """Create a StatRecord without touching the filesystem."""
    if kind is FileKind.DIR and children is None:
        children = []
    fields: dict[str, Any] = {
        "kind": kind,
        "dev": 1,
        "ino": 1,
        "mode": 0o100644,
        "nlink": 1,
        "uid": 0,
        "gid": 0,
        "rdev": 0,
        "size": size,
        "blksize": 4096,
        "blocks": 0,
        "atime_ms": ctime_ms,
        "mtime_ms": ctime_ms,
        "ctime_ms": ctime_ms,
        "birthtime_ms": 0.0,
        "children": children,
        "link_target": link_target,
    }
    fields.update(overrides)
    return StatRecord(**fields)


class FaultyFileSystem(OsFileSystem):
    """OsFileSystem that raises configured errors for chosen paths.

    ``faults`` maps (operation, path) to the exception to raise, where
    operation is "lstat", "listdir" or "readlink".
    """

    def __init__(self, faults: dict[tuple[str, str], BaseException] | None = None) -> None:
        super().__init__()
        self.faults = faults or {}
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, path: str) -> None:
        self.calls.append((operation, path))
        fault = self.faults.get((operation, path))
        if fault is not None:
            raise fault

    async def lstat(self, path: str) -> os.stat_result:
        self._check("lstat", path)
        return await super().lstat(path)

    async def listdir(self, path: str) -> list[str]:
        self._check("listdir", path)
        return await super().listdir(path)

    async def readlink(self, path: str) -> str:
        self._check("readlink", path)
        return await super().readlink(path)


class ChangeRecorder:
    """Collects post-commit notifications."""

    def __init__(self) -> None:
        self.events: list[tuple[str, StatRecord | None, StatRecord | None]] = []

    def __call__(self, path: str, previous: StatRecord | None, current: StatRecord | None) -> None:
        self.events.append((path, previous, current))

    def for_path(self, path: str) -> list[tuple[str, StatRecord | None, StatRecord | None]]:
        return [event for event in self.events if event[0] == path]

    def clear(self) -> None:
        self.events.clear()


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` on the running loop until true or timed out."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


def wait_until_sync(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Blocking variant of ``wait_until`` for tests without an event loop."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
