"""Normalized per-entry metadata records."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from statwatch.watching.errors import UnexpectedFileTypeError


class FileKind(str, Enum):
    """Type of a filesystem entry, as seen by lstat."""

    BLOCK = "block"
    CHAR = "char"
    DIR = "dir"
    PIPE = "pipe"
    FILE = "file"
    SOCKET = "socket"
    SYMLINK = "symlink"


# Directories are checked first, then the remaining types in this order.
_KIND_TESTS = (
    (stat.S_ISDIR, FileKind.DIR),
    (stat.S_ISBLK, FileKind.BLOCK),
    (stat.S_ISCHR, FileKind.CHAR),
    (stat.S_ISFIFO, FileKind.PIPE),
    (stat.S_ISREG, FileKind.FILE),
    (stat.S_ISSOCK, FileKind.SOCKET),
    (stat.S_ISLNK, FileKind.SYMLINK),
)


def classify(path: str, mode: int) -> FileKind:
    """Map an st_mode to its FileKind.

    Raises:
        UnexpectedFileTypeError: If the mode is none of the known kinds.
    """
    for test, kind in _KIND_TESTS:
        if test(mode):
            return kind
    raise UnexpectedFileTypeError(path, mode)


def _ns_to_ms(ns: int) -> float:
    return ns / 1_000_000


def _ms_to_datetime(ms: float) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


@dataclass
class StatRecord:
    """Snapshot of one filesystem entry.

    ``children`` is set only for directories and ``link_target`` only for
    symlinks. Timestamps are epoch milliseconds; the matching properties
    return UTC datetimes. ``extra`` holds fields merged in by augmentations.
    """

    kind: FileKind
    dev: int
    ino: int
    mode: int
    nlink: int
    uid: int
    gid: int
    rdev: int
    size: int
    blksize: int
    blocks: int
    atime_ms: float
    mtime_ms: float
    ctime_ms: float
    birthtime_ms: float
    children: list[str] | None = None
    link_target: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if (self.children is not None) != (self.kind is FileKind.DIR):
            raise ValueError(f"children must be set exactly for directories, kind={self.kind.value}")
        if (self.link_target is not None) != (self.kind is FileKind.SYMLINK):
            raise ValueError(f"link_target must be set exactly for symlinks, kind={self.kind.value}")

    @classmethod
    def from_stat(
        cls,
        st: os.stat_result,
        kind: FileKind,
        *,
        children: list[str] | None = None,
        link_target: str | None = None,
    ) -> StatRecord:
        """Build a record from an lstat result."""
        birthtime = getattr(st, "st_birthtime_ns", None)
        if birthtime is None:
            # macOS/BSD expose st_birthtime only as float seconds
            seconds = getattr(st, "st_birthtime", None)
            birthtime_ms = seconds * 1000 if seconds is not None else 0.0
        else:
            birthtime_ms = _ns_to_ms(birthtime)

        return cls(
            kind=kind,
            dev=st.st_dev,
            ino=st.st_ino,
            mode=st.st_mode,
            nlink=st.st_nlink,
            uid=st.st_uid,
            gid=st.st_gid,
            rdev=getattr(st, "st_rdev", 0),
            size=st.st_size,
            blksize=getattr(st, "st_blksize", 0),
            blocks=getattr(st, "st_blocks", 0),
            atime_ms=_ns_to_ms(st.st_atime_ns),
            mtime_ms=_ns_to_ms(st.st_mtime_ns),
            ctime_ms=_ns_to_ms(st.st_ctime_ns),
            birthtime_ms=birthtime_ms,
            children=children,
            link_target=link_target,
        )

    @property
    def atime(self) -> datetime:
        return _ms_to_datetime(self.atime_ms)

    @property
    def mtime(self) -> datetime:
        return _ms_to_datetime(self.mtime_ms)

    @property
    def ctime(self) -> datetime:
        return _ms_to_datetime(self.ctime_ms)

    @property
    def birthtime(self) -> datetime:
        return _ms_to_datetime(self.birthtime_ms)

    @property
    def is_dir(self) -> bool:
        return self.kind is FileKind.DIR

    @property
    def is_symlink(self) -> bool:
        return self.kind is FileKind.SYMLINK

    def merge(self, fields: dict[str, Any]) -> None:
        """Attach augmentation fields to this record."""
        self.extra.update(fields)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict (event payloads, logging)."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "dev": self.dev,
            "ino": self.ino,
            "mode": self.mode,
            "nlink": self.nlink,
            "uid": self.uid,
            "gid": self.gid,
            "rdev": self.rdev,
            "size": self.size,
            "blksize": self.blksize,
            "blocks": self.blocks,
            "atime_ms": self.atime_ms,
            "mtime_ms": self.mtime_ms,
            "ctime_ms": self.ctime_ms,
            "birthtime_ms": self.birthtime_ms,
        }
        if self.children is not None:
            data["children"] = list(self.children)
        if self.link_target is not None:
            data["link_target"] = self.link_target
        data.update(self.extra)
        return data
