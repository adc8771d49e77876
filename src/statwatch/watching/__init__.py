"""Polling directory watcher.

Walks a directory tree at a fixed interval, caches a StatRecord per entry,
and reports changes in two phases: pre-commit (while the walk runs, with
a chance to augment the record) and post-commit (after the cache has been
updated).
"""

from statwatch.watching.augment import AugmentationRegistry
from statwatch.watching.commit import commit_generation
from statwatch.watching.errors import (
    AugmentationWindowError,
    FilesystemTimeoutError,
    SymlinkDepthError,
    SymlinkLoopError,
    SymlinkResolutionError,
    UnexpectedFileTypeError,
    UnknownPendingPathError,
    WatcherError,
    is_transient,
)
from statwatch.watching.filesystem import FileSystem, OsFileSystem
from statwatch.watching.generation import PendingGeneration
from statwatch.watching.notifier import ChangeEvent, Notifier
from statwatch.watching.records import FileKind, StatRecord
from statwatch.watching.scheduler import KeepAlive, LoopThread, TickScheduler
from statwatch.watching.walker import StatWalker
from statwatch.watching.watcher import StatDirWatcher

__all__ = [
    "StatDirWatcher",
    "StatRecord",
    "FileKind",
    "ChangeEvent",
    "Notifier",
    "StatWalker",
    "PendingGeneration",
    "AugmentationRegistry",
    "commit_generation",
    "TickScheduler",
    "KeepAlive",
    "LoopThread",
    "FileSystem",
    "OsFileSystem",
    "WatcherError",
    "AugmentationWindowError",
    "UnknownPendingPathError",
    "UnexpectedFileTypeError",
    "FilesystemTimeoutError",
    "SymlinkResolutionError",
    "SymlinkLoopError",
    "SymlinkDepthError",
    "is_transient",
]
