"""statwatch: stat-polling directory watcher for filesystems without reliable change events."""

__version__ = "0.1.0"

# Public API
from statwatch.config import Config, LoggingConfig, WatcherConfig, get_config, load_config
from statwatch.logging import get_logger, setup_logging
from statwatch.watching import (
    AugmentationWindowError,
    ChangeEvent,
    FileKind,
    FileSystem,
    OsFileSystem,
    StatDirWatcher,
    StatRecord,
    SymlinkDepthError,
    SymlinkLoopError,
    SymlinkResolutionError,
    UnknownPendingPathError,
    WatcherError,
)

__all__ = [
    "__version__",
    # Watcher
    "StatDirWatcher",
    "StatRecord",
    "FileKind",
    "ChangeEvent",
    "FileSystem",
    "OsFileSystem",
    # Errors
    "WatcherError",
    "AugmentationWindowError",
    "UnknownPendingPathError",
    "SymlinkResolutionError",
    "SymlinkLoopError",
    "SymlinkDepthError",
    # Config and logging
    "Config",
    "WatcherConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "setup_logging",
    "get_logger",
]
