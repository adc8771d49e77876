"""Registry for asynchronous enrichment of pending records.

Listeners of the pre-commit notification may attach extra fields to the
record that is about to be committed (a content hash, a MIME type, ...).
The value can be computed asynchronously; every registered task is awaited
before the tick commits, so the fields are visible on the record delivered
with that same tick's change notification.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from collections.abc import Awaitable, Mapping
from typing import Any, Union

from statwatch.logging import get_logger
from statwatch.watching.errors import AugmentationWindowError, UnknownPendingPathError
from statwatch.watching.generation import PendingGeneration
from statwatch.watching.tasks import gather_or_cancel

log = get_logger("watching.augment")

Fields = Mapping[str, Any]
FieldsSource = Union[Fields, Awaitable[Fields], concurrent.futures.Future]


async def _resolve_fields(source: FieldsSource) -> dict[str, Any]:
    if isinstance(source, concurrent.futures.Future):
        value = await asyncio.wrap_future(source)
    elif inspect.isawaitable(source):
        value = await source
    else:
        value = source
    if not isinstance(value, Mapping):
        raise TypeError(f"augmentation must resolve to a mapping, got {type(value).__name__}")
    return dict(value)


class AugmentationRegistry:
    """Collects augmentation tasks during a tick's walk."""

    def __init__(self, generation: PendingGeneration) -> None:
        self._generation = generation
        self._pending: list[tuple[str, FieldsSource]] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        """True while the walk is running and registrations are accepted."""
        return self._open

    def __len__(self) -> int:
        return len(self._pending)

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def register(self, path: str, fields: FieldsSource) -> None:
        """Queue ``fields`` to be merged onto the pending record for ``path``.

        Args:
            path: Absolute path that has a pending record this tick.
            fields: A mapping, an awaitable of one, or a concurrent Future of one.

        Raises:
            AugmentationWindowError: If no walk is in progress.
            UnknownPendingPathError: If ``path`` has no pending record.
        """
        if not self._open:
            raise AugmentationWindowError()
        if path not in self._generation:
            raise UnknownPendingPathError(path)
        self._pending.append((path, fields))

    async def resolve(self) -> None:
        """Await every registered task and merge the results.

        The first failure cancels the rest and propagates.
        """
        pending, self._pending = self._pending, []
        if not pending:
            return
        log.debug("Resolving %d augmentation(s)", len(pending))
        results = await gather_or_cancel(_resolve_fields(source) for _, source in pending)
        for (path, _), fields in zip(pending, results):
            record = self._generation.get(path)
            if record is not None:
                record.merge(fields)

    def clear(self) -> None:
        """Drop unresolved registrations (after a failed tick)."""
        for _, source in self._pending:
            if inspect.iscoroutine(source):
                source.close()
        self._pending.clear()
        self._open = False
