"""Configuration schema dataclasses for statwatch.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Deliberately not a round number, so many watchers started together drift
# apart instead of hitting the filesystem in lockstep.
DEFAULT_INTERVAL_MS = 5007

# Same bound Linux applies when resolving nested symlinks (MAXSYMLINKS).
DEFAULT_MAX_SYMLINK_HOPS = 40


@dataclass
class WatcherConfig:
    """Options recognized by StatDirWatcher.

    Example config.yaml:
        watcher:
          recursive: true
          interval: 2003
          stat_timeout: 10.0
    """

    persistent: bool = False  # Keep the interpreter alive while watching
    recursive: bool = False  # Descend below the root's immediate children
    interval: int = DEFAULT_INTERVAL_MS  # Milliseconds between ticks
    stat_timeout: float | None = None  # Seconds per filesystem call, None = unbounded
    short_circuit_unchanged_dirs: bool = False  # Skip listing dirs whose ctime is unchanged
    max_symlink_hops: int = DEFAULT_MAX_SYMLINK_HOPS

    def __post_init__(self) -> None:
        for name in ("persistent", "recursive", "short_circuit_unchanged_dirs"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean, got {value!r}")
        # bool is an int subclass; reject it explicitly
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ValueError(f"interval must be a positive integer, got {self.interval!r}")
        if self.interval <= 0:
            raise ValueError(f"interval must be a positive integer, got {self.interval!r}")
        if self.stat_timeout is not None and (
            isinstance(self.stat_timeout, bool)
            or not isinstance(self.stat_timeout, (int, float))
            or self.stat_timeout <= 0
        ):
            raise ValueError(f"stat_timeout must be positive, got {self.stat_timeout!r}")
        if (
            isinstance(self.max_symlink_hops, bool)
            or not isinstance(self.max_symlink_hops, int)
            or self.max_symlink_hops < 0
        ):
            raise ValueError(
                f"max_symlink_hops must be a non-negative integer, got {self.max_symlink_hops!r}"
            )

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections, kept for callers that extend the file
    extra: dict[str, Any] = field(default_factory=dict)
