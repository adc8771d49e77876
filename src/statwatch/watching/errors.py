"""Exceptions raised by the watcher engine."""

from __future__ import annotations

import errno

# Per-path failures that mean "gone or unreadable right now". The path is
# dropped from the tick instead of failing it.
TRANSIENT_ERRNOS = frozenset({errno.ENOENT, errno.EACCES})


class WatcherError(Exception):
    """Base class for statwatch errors."""


class AugmentationWindowError(WatcherError, RuntimeError):
    """Raised when an augmentation is registered outside a tick's walk.

    Augmentations can only be added from pre-commit listeners (or anything
    else running while the walk is in progress).
    """

    def __init__(self) -> None:
        super().__init__(
            "augmentations can only be registered while a tick is walking "
            "(e.g. from a pre-commit listener)"
        )


class UnknownPendingPathError(WatcherError, KeyError):
    """Raised when augmenting a path that has no pending record this tick."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"no pending record for {self.path!r} in the current tick"


class UnexpectedFileTypeError(WatcherError):
    """lstat returned a mode that matches none of the known file kinds."""

    def __init__(self, path: str, mode: int) -> None:
        super().__init__(f"unrecognized file type for {path!r} (mode {mode:#o})")
        self.path = path
        self.mode = mode


class FilesystemTimeoutError(WatcherError, TimeoutError):
    """A filesystem call exceeded the configured stat_timeout."""

    def __init__(self, operation: str, path: str, timeout: float) -> None:
        super().__init__(f"{operation}({path!r}) did not complete within {timeout:g}s")
        self.operation = operation
        self.path = path
        self.timeout = timeout


class SymlinkResolutionError(WatcherError):
    """Base class for lookup_stat failures."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class SymlinkLoopError(SymlinkResolutionError):
    """A chain of cached symlinks points back at itself."""

    def __init__(self, path: str, chain: list[str]) -> None:
        super().__init__(path, f"symlink loop resolving {path!r}: {' -> '.join(chain)}")
        self.chain = chain


class SymlinkDepthError(SymlinkResolutionError):
    """Too many symlink hops while resolving a path."""

    def __init__(self, path: str, max_hops: int) -> None:
        super().__init__(path, f"more than {max_hops} symlink hops resolving {path!r}")
        self.max_hops = max_hops


def is_transient(exc: BaseException) -> bool:
    """True for per-path errors that should drop the path, not fail the tick."""
    return isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS
