"""Small asyncio helpers shared by the walker and the augmentation registry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Like asyncio.gather, but cancels the remaining tasks on first failure.

    Plain gather leaves siblings running after one raises; for the walker
    that would let a failed tick keep writing into the next tick's state.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Let cancellations land before the caller moves on
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
