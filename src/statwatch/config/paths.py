"""Where statwatch looks for config.yaml.

- Windows: %PROGRAMDATA%\\statwatch (system), %APPDATA%\\statwatch (user)
- Unix: /etc/statwatch (system); $XDG_CONFIG_HOME, ~/.config/statwatch or
  ~/.statwatch (user)
- Watched tree: <root>/.statwatch/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "statwatch"
DOT_DIR = ".statwatch"


def get_system_config_path() -> Path | None:
    """System-wide config file, which may not exist."""
    if sys.platform != "win32":
        return Path("/etc") / APP_NAME / CONFIG_FILENAME
    program_data = os.environ.get("PROGRAMDATA")
    if program_data:
        return Path(program_data) / APP_NAME / CONFIG_FILENAME
    return None


def get_user_config_path() -> Path | None:
    """Per-user config file, which may not exist."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        return Path(app_data) / APP_NAME / CONFIG_FILENAME if app_data else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / DOT_DIR / CONFIG_FILENAME


def get_project_config_path(watch_root: str | os.PathLike[str]) -> Path:
    """Config file stored inside the watched tree itself."""
    return Path(watch_root) / DOT_DIR / CONFIG_FILENAME


def get_config_paths(watch_root: str | os.PathLike[str] | None = None) -> list[Path]:
    """All candidate config paths, lowest priority first.

    Later paths override earlier ones when merging.
    """
    candidates = [get_system_config_path(), get_user_config_path()]
    if watch_root:
        candidates.append(get_project_config_path(watch_root))
    return [p for p in candidates if p is not None]
