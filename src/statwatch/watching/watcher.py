"""Polling directory watcher.

StatDirWatcher walks a directory tree every ``interval`` milliseconds,
keeps a cache of StatRecords keyed by absolute path, and reports what
changed between polls. Polling is slower than native notification but
works the same on network mounts, container overlays, and other places
where inotify and friends are missing or unreliable.

Each tick:
1. The walker lstats every reachable path. Paths whose ctime has not moved
   keep their cached record; the rest get a new pending record and a
   pre-commit notification ``(path, previous)``.
2. Augmentations registered during the walk are awaited and merged.
3. The pending generation is committed into the cache; paths that were not
   seen are removed.
4. Post-commit notifications ``(path, previous, current)`` are emitted
   (never on the first tick, which only records the baseline).
5. The next tick is armed.

Example:
    watcher = StatDirWatcher("/mnt/share", {"recursive": True, "interval": 2003})

    def on_change(path, previous, current):
        print(path, "deleted" if current is None else current.kind.value)

    watcher.on_change(on_change)
    ...
    watcher.stop()
"""

from __future__ import annotations

import asyncio
import os
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from statwatch.config import WatcherConfig, load_config
from statwatch.logging import get_logger
from statwatch.watching.augment import AugmentationRegistry, FieldsSource
from statwatch.watching.commit import commit_generation
from statwatch.watching.errors import SymlinkDepthError, SymlinkLoopError
from statwatch.watching.filesystem import FileSystem, OsFileSystem
from statwatch.watching.generation import PendingGeneration
from statwatch.watching.notifier import (
    ChangeListener,
    ErrorSink,
    Notifier,
    PreCommitListener,
)
from statwatch.watching.records import FileKind, StatRecord
from statwatch.watching.scheduler import LoopThread, TickScheduler
from statwatch.watching.walker import StatWalker

log = get_logger("watching")


def _coerce_options(options: WatcherConfig | Mapping[str, Any] | None) -> WatcherConfig:
    if options is None:
        return WatcherConfig()
    if isinstance(options, WatcherConfig):
        return replace(options)
    return WatcherConfig(**dict(options))


class StatDirWatcher:
    """Watches one directory tree by periodic stat polling.

    The first tick runs one interval after construction. If constructed
    inside a running event loop the watcher schedules on that loop;
    otherwise it starts a private loop on a daemon thread. Listeners are
    called on the thread running the watcher's loop.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        options: WatcherConfig | Mapping[str, Any] | None = None,
        *,
        on_error: ErrorSink | None = None,
        filesystem: FileSystem | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Create the watcher and arm its first tick.

        Args:
            directory: Root of the tree to watch; made absolute.
            options: WatcherConfig, or a mapping of its fields
                (persistent, recursive, interval, ...).
            on_error: Receives tick-level failures and listener errors.
                Defaults to logging a warning.
            filesystem: Filesystem primitives; defaults to OsFileSystem.
            loop: Event loop to schedule on. Defaults to the running loop,
                or a private loop thread when none is running.

        Raises:
            ValueError: If an option has an invalid value.
            TypeError: If ``options`` contains an unknown key.
        """
        self._root = os.path.abspath(os.fspath(directory))
        self._options = _coerce_options(options)
        self._error_sink = on_error

        # Replaced contents only; the dict object lives as long as the watcher
        self._cache: dict[str, StatRecord] = {}
        self._cache_view = MappingProxyType(self._cache)

        self._notifier = Notifier(self._report)
        self._generation = PendingGeneration()
        self._augmentations = AugmentationRegistry(self._generation)
        self._walker = StatWalker(
            filesystem or OsFileSystem(timeout=self._options.stat_timeout),
            self._cache_view,
            self._generation,
            self._notifier,
            recursive=self._options.recursive,
            short_circuit=self._options.short_circuit_unchanged_dirs,
        )

        self._initialized = False
        self._completed_ticks = 0
        self._tick_lock = threading.Lock()
        self._stopped = False

        self._loop_thread: LoopThread | None = None
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._loop_thread = LoopThread(name=f"statwatch:{os.path.basename(self._root)}")
                loop = self._loop_thread.loop

        self._scheduler = TickScheduler(
            self._tick,
            self._options.interval_seconds,
            loop,
            persistent=self._options.persistent,
            on_stopped=self._loop_thread.stop if self._loop_thread else None,
        )
        if self._loop_thread is not None:
            self._loop_thread.start()
        self._scheduler.start()

        log.info(
            "Watching %s (interval: %dms, recursive: %s)",
            self._root,
            self._options.interval,
            self._options.recursive,
        )

    @classmethod
    def from_config(
        cls,
        directory: str | os.PathLike[str],
        *,
        on_error: ErrorSink | None = None,
        filesystem: FileSystem | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        **overrides: Any,
    ) -> StatDirWatcher:
        """Create a watcher using options from the YAML config cascade.

        The directory's own ``.statwatch/config.yaml`` is included. Keyword
        overrides win over every config source.
        """
        config = load_config(session_root=directory)
        options = replace(config.watcher, **overrides)
        return cls(directory, options, on_error=on_error, filesystem=filesystem, loop=loop)

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "watching"
        return f"<StatDirWatcher {self._root!r} {state} entries={len(self._cache)}>"

    # -- readable state ----------------------------------------------------

    @property
    def root(self) -> str:
        return self._root

    @property
    def options(self) -> WatcherConfig:
        return self._options

    @property
    def cached_stats(self) -> Mapping[str, StatRecord]:
        """Read-only view of the cache, keyed by absolute path.

        Always the same view object; its contents change only when a tick
        commits.
        """
        return self._cache_view

    @property
    def initialized(self) -> bool:
        """True once a tick has committed the baseline."""
        return self._initialized

    @property
    def completed_ticks(self) -> int:
        return self._completed_ticks

    @property
    def is_ticking(self) -> bool:
        return self._tick_lock.locked()

    @property
    def is_walking(self) -> bool:
        """True while augmentations are accepted."""
        return self._augmentations.is_open

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def persistent(self) -> bool:
        return self._scheduler.keeps_alive

    # -- listeners ---------------------------------------------------------

    def on_pre_commit(self, listener: PreCommitListener) -> Callable[[], None]:
        """Call ``listener(path, previous)`` as each changed record is computed.

        The listener may call ``add_to_pending`` for ``path``.

        Returns:
            Unsubscribe function.
        """
        return self._notifier.on_pre_commit(listener)

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener(path, previous, current)`` after each commit.

        ``previous`` is None for new paths and ``current`` is None for
        removed ones.

        Returns:
            Unsubscribe function.
        """
        return self._notifier.on_change(listener)

    # -- operations --------------------------------------------------------

    def add_to_pending(self, path: str | os.PathLike[str], fields: FieldsSource) -> None:
        """Merge ``fields`` onto the record about to be committed for ``path``.

        ``fields`` may be a mapping, an awaitable resolving to one, or a
        concurrent.futures.Future. Everything registered is awaited before
        the tick commits.

        Raises:
            AugmentationWindowError: If no walk is in progress.
            UnknownPendingPathError: If ``path`` has no pending record.
        """
        self._augmentations.register(os.path.abspath(os.fspath(path)), fields)

    def ref(self) -> None:
        """Keep the interpreter alive while watching."""
        self._scheduler.ref()

    def unref(self) -> None:
        """Allow the interpreter to exit while watching."""
        self._scheduler.unref()

    def lookup_stat(self, path: str | os.PathLike[str]) -> StatRecord | None:
        """Look up ``path`` in the cache, following cached symlinks.

        Relative link targets are resolved against the link's directory.
        Only the final component is followed; a symlinked parent directory
        is not resolved.

        Returns:
            The first non-symlink record, or None if any hop is not cached.

        Raises:
            SymlinkDepthError: After more than ``max_symlink_hops`` hops.
            SymlinkLoopError: If a hop revisits an earlier path.
        """
        requested = os.path.abspath(os.fspath(path))
        chain = [requested]
        current = requested
        while True:
            record = self._cache.get(current)
            if record is None or record.kind is not FileKind.SYMLINK:
                return record
            if len(chain) - 1 >= self._options.max_symlink_hops:
                raise SymlinkDepthError(requested, self._options.max_symlink_hops)
            target = os.path.normpath(
                os.path.join(os.path.dirname(current), record.link_target or "")
            )
            if target in chain:
                raise SymlinkLoopError(requested, chain + [target])
            chain.append(target)
            current = target

    async def tick(self) -> None:
        """Run one walk, augment, commit, notify cycle.

        Errors other than per-path not-found/permission-denied are reported
        to the error sink; they never propagate. A call made while another
        tick is in flight is skipped.

        Awaited from a different event loop than the watcher's, the tick is
        handed to the watcher's loop so listeners still run on its thread.
        """
        loop = self._scheduler.loop
        if loop.is_running() and asyncio.get_running_loop() is not loop:
            await asyncio.wrap_future(asyncio.run_coroutine_threadsafe(self._tick(), loop))
            return
        await self._tick()

    async def _tick(self) -> None:
        if not self._tick_lock.acquire(blocking=False):
            log.debug("Tick already in flight for %s, skipping", self._root)
            return

        started = time.monotonic()
        try:
            self._generation.clear()
            self._augmentations.clear()

            self._augmentations.open()
            try:
                await self._walker.walk(self._root)
            finally:
                self._augmentations.close()

            await self._augmentations.resolve()

            events = commit_generation(
                self._cache, self._generation, initialized=self._initialized
            )
            if not self._initialized:
                log.debug("Baseline for %s: %d entries", self._root, len(self._cache))
            self._initialized = True
            self._completed_ticks += 1

            for event in events:
                self._notifier.emit_change(event)

            log.debug(
                "Tick for %s: %d changed, %d unchanged, %d event(s) in %.1fms",
                self._root,
                len(self._generation),
                len(self._generation.unchanged),
                len(events),
                (time.monotonic() - started) * 1000,
            )
        except Exception as e:
            self._report(e)
        finally:
            self._augmentations.clear()
            self._generation.clear()
            self._tick_lock.release()

    def stop(self) -> None:
        """Stop watching. Idempotent.

        Detaches every listener first, so nothing is delivered once this
        returns. A tick that is already running is not awaited; it may still
        commit into the cache. Use ``wait_stopped()`` or ``join()`` to wait.
        """
        if self._stopped:
            return
        self._stopped = True
        self._notifier.clear()
        self._scheduler.stop()
        log.info("Stopped watching %s", self._root)

    async def wait_stopped(self, timeout: float | None = None) -> bool:
        """Wait until stopped and no tick is in flight.

        Returns:
            False if ``timeout`` elapsed first.
        """
        return await self._scheduler.wait_async(timeout)

    def join(self, timeout: float | None = None) -> bool:
        """Blocking version of ``wait_stopped()``.

        Also joins the private loop thread, if the watcher started one.
        """
        drained = self._scheduler.wait(timeout)
        if drained and self._loop_thread is not None:
            self._loop_thread.join(timeout)
        return drained

    def __enter__(self) -> StatDirWatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    async def __aenter__(self) -> StatDirWatcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        self.stop()

    # -- error reporting ---------------------------------------------------

    def _report(self, error: BaseException) -> None:
        if self._error_sink is None:
            log.warning("Watcher error for %s: %s", self._root, error, exc_info=error)
            return
        try:
            self._error_sink(error)
        except Exception as e:
            log.error("Error sink raised while reporting %r: %s", error, e)
