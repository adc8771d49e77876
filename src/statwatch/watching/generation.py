"""Per-tick holding area for records that have not been committed yet."""

from __future__ import annotations

from statwatch.watching.records import StatRecord


class PendingGeneration:
    """Records computed during the current tick, plus the unchanged set.

    ``records`` holds new or replaced records; ``unchanged`` holds paths
    whose cached record is still current. Both are emptied at the start of
    every tick and consumed by commit.
    """

    def __init__(self) -> None:
        self.records: dict[str, StatRecord] = {}
        self.unchanged: set[str] = set()

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, path: object) -> bool:
        return path in self.records

    def get(self, path: str) -> StatRecord | None:
        return self.records.get(path)

    def stage(self, path: str, record: StatRecord) -> None:
        self.records[path] = record

    def mark_unchanged(self, path: str) -> None:
        self.unchanged.add(path)

    def is_accounted_for(self, path: str) -> bool:
        """True if ``path`` was either recomputed or confirmed unchanged."""
        return path in self.records or path in self.unchanged

    def clear(self) -> None:
        self.records.clear()
        self.unchanged.clear()
