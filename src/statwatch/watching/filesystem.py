"""Filesystem primitives the walker calls into.

The walker only needs three operations. They are behind a protocol so that
tests (and unusual mounts) can supply their own implementation.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from statwatch.watching.errors import FilesystemTimeoutError

T = TypeVar("T")


class FileSystem(Protocol):
    """Async filesystem capability used by StatWalker."""

    async def lstat(self, path: str) -> os.stat_result:
        """Stat ``path`` without following a final symlink."""
        ...

    async def listdir(self, path: str) -> list[str]:
        """Names of the immediate children of directory ``path``."""
        ...

    async def readlink(self, path: str) -> str:
        """Raw destination of symlink ``path``."""
        ...


class OsFileSystem:
    """FileSystem backed by the ``os`` module.

    Each blocking call runs in the default executor so sibling paths can be
    visited concurrently. With ``timeout`` set, a call that takes longer
    raises FilesystemTimeoutError; the worker thread itself cannot be
    interrupted and finishes in the background.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def _call(self, operation: str, path: str, func: Callable[[str], T]) -> T:
        call: Awaitable[T] = asyncio.to_thread(func, path)
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self._timeout)
        except TimeoutError:
            raise FilesystemTimeoutError(operation, path, self._timeout) from None

    async def lstat(self, path: str) -> os.stat_result:
        return await self._call("lstat", path, os.lstat)

    async def listdir(self, path: str) -> list[str]:
        return await self._call("listdir", path, os.listdir)

    async def readlink(self, path: str) -> str:
        return await self._call("readlink", path, os.readlink)
