"""Recursive stat walk that fills the pending generation for one tick."""

from __future__ import annotations

import os
from collections.abc import Mapping

from statwatch.logging import TRACE, get_logger
from statwatch.watching.errors import is_transient
from statwatch.watching.filesystem import FileSystem
from statwatch.watching.generation import PendingGeneration
from statwatch.watching.notifier import Notifier
from statwatch.watching.records import FileKind, StatRecord, classify
from statwatch.watching.tasks import gather_or_cancel

log = get_logger("watching.walker")


class StatWalker:
    """Visits every reachable entry under a root and stages changed records.

    The root's immediate children are always visited; deeper levels only
    when ``recursive`` is set. A path whose cached ctime is not older than
    the observed one is marked unchanged and keeps its cached record.

    Directories are descended before that check, since editing a file does
    not bump its parent's ctime. With ``short_circuit`` an unchanged
    directory is not listed again; the entry names cached for it are
    visited instead.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        cache: Mapping[str, StatRecord],
        generation: PendingGeneration,
        notifier: Notifier,
        *,
        recursive: bool = False,
        short_circuit: bool = False,
    ) -> None:
        self._fs = filesystem
        self._cache = cache
        self._generation = generation
        self._notifier = notifier
        self._recursive = recursive
        self._short_circuit = short_circuit

    @property
    def recursive(self) -> bool:
        return self._recursive

    async def walk(self, root: str) -> None:
        """Visit ``root`` and everything reachable below it."""
        await self._visit(root, recurse=True)

    async def _visit(self, path: str, recurse: bool) -> None:
        try:
            await self._visit_unguarded(path, recurse)
        except OSError as e:
            if not is_transient(e):
                raise
            log.log(TRACE, "Skipping %s: %s", path, e.strerror or e)

    async def _visit_unguarded(self, path: str, recurse: bool) -> None:
        previous = self._cache.get(path)
        st = await self._fs.lstat(path)
        kind = classify(path, st.st_mode)
        ctime_ms = st.st_ctime_ns / 1_000_000
        unchanged = previous is not None and previous.ctime_ms >= ctime_ms

        children: list[str] | None = None
        if kind is FileKind.DIR:
            if unchanged and self._short_circuit and previous.children is not None:
                # Entry names cannot change without bumping the directory's ctime
                children = list(previous.children)
            else:
                children = await self._fs.listdir(path)
            if recurse:
                await gather_or_cancel(
                    self._visit(os.path.join(path, name), self._recursive) for name in children
                )

        if unchanged:
            self._generation.mark_unchanged(path)
            return

        link_target = await self._fs.readlink(path) if kind is FileKind.SYMLINK else None
        record = StatRecord.from_stat(st, kind, children=children, link_target=link_target)
        self._generation.stage(path, record)
        log.log(TRACE, "Staged %s (%s)", path, kind.value)
        self._notifier.emit_pre_commit(path, previous)
