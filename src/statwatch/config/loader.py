"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from statwatch.config.merge import merge_configs
from statwatch.config.paths import get_config_paths
from statwatch.config.schema import Config, LoggingConfig, WatcherConfig

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("statwatch.config")

_cached_config: Config | None = None

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        if data is not None:
            _log.warning("Ignoring %s: top level is not a mapping", path)
        return {}
    return data


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Environment variables take highest priority.

    Returns:
        Config dict with values from environment.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("STATWATCH_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    watcher: dict[str, Any] = {}
    interval = os.environ.get("STATWATCH_INTERVAL")
    if interval:
        try:
            watcher["interval"] = int(interval)
        except ValueError:
            raise ValueError(f"STATWATCH_INTERVAL must be an integer, got {interval!r}") from None
    for name, key in (("STATWATCH_RECURSIVE", "recursive"), ("STATWATCH_PERSISTENT", "persistent")):
        raw = os.environ.get(name)
        if raw is not None:
            watcher[key] = _parse_bool(name, raw)
    if watcher:
        overrides["watcher"] = watcher

    return overrides


def _bool_option(section: dict[str, Any], key: str, default: bool) -> Any:
    value = section.get(key, default)
    if isinstance(value, str):
        return _parse_bool(f"watcher.{key}", value)
    # Anything else that is not a bool is rejected by WatcherConfig
    return value


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Raises:
        ValueError: If a watcher option has an invalid value.
    """
    watcher_data = data.get("watcher") or {}
    defaults = WatcherConfig()
    watcher = WatcherConfig(
        persistent=_bool_option(watcher_data, "persistent", defaults.persistent),
        recursive=_bool_option(watcher_data, "recursive", defaults.recursive),
        interval=watcher_data.get("interval", defaults.interval),
        stat_timeout=watcher_data.get("stat_timeout", defaults.stat_timeout),
        short_circuit_unchanged_dirs=_bool_option(
            watcher_data, "short_circuit_unchanged_dirs", defaults.short_circuit_unchanged_dirs
        ),
        max_symlink_hops=watcher_data.get("max_symlink_hops", defaults.max_symlink_hops),
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    known_keys = {"watcher", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(watcher=watcher, logging=logging_config, extra=extra)


def load_config(session_root: str | os.PathLike[str] | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config (<session_root>/.statwatch/config.yaml)
    3. User config
    4. System config

    Args:
        session_root: Watched directory, for the project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and session_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []
    for path in get_config_paths(session_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Only the global config is cached
    if session_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Drop the cached global config (tests, forced reloads)."""
    global _cached_config
    _cached_config = None
