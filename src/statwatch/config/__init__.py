"""Configuration management for statwatch.

Hierarchical YAML configuration:
- System-level config (/etc/statwatch/ or %PROGRAMDATA%)
- User-level config (~/.config/statwatch/, ~/.statwatch/ or %APPDATA%)
- Project-level config (<watched root>/.statwatch/)
- Environment variable overrides (highest priority)

Example usage:
    from statwatch.config import load_config

    config = load_config(session_root="/srv/share")
    print(config.watcher.interval, config.watcher.recursive)
"""

from statwatch.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from statwatch.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from statwatch.config.schema import (
    DEFAULT_INTERVAL_MS,
    Config,
    LoggingConfig,
    WatcherConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "WatcherConfig",
    "LoggingConfig",
    "DEFAULT_INTERVAL_MS",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
