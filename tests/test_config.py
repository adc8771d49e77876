"""Tests for the configuration module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from statwatch.config import (
    Config,
    WatcherConfig,
    get_config,
    load_config,
    reset_config,
)
from statwatch.config.loader import env_overrides, load_yaml_file
from statwatch.config.merge import deep_merge, merge_configs
from statwatch.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)


@pytest.fixture(autouse=True)
def isolated_user_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the real user config out of these tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_simple_override(self) -> None:
        assert deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        base = {"watcher": {"interval": 5007, "recursive": False}}
        result = deep_merge(base, {"watcher": {"recursive": True}})
        assert result == {"watcher": {"interval": 5007, "recursive": True}}

    def test_none_does_not_override(self) -> None:
        assert deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_list_replaced_not_merged(self) -> None:
        assert deep_merge({"items": [1, 2, 3]}, {"items": [4, 5]})["items"] == [4, 5]

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_merge_configs_multiple(self) -> None:
        assert merge_configs({"a": 1, "b": 2}, {"b": 3}, {}, {"c": 4}) == {"a": 1, "b": 3, "c": 4}


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_windows_paths(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("PROGRAMDATA", "C:\\ProgramData")
        monkeypatch.setenv("APPDATA", "C:\\Users\\Test\\AppData\\Roaming")

        assert "ProgramData" in str(get_system_config_path())
        assert "AppData" in str(get_user_config_path())

    def test_windows_without_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.delenv("PROGRAMDATA", raising=False)
        monkeypatch.delenv("APPDATA", raising=False)

        assert get_system_config_path() is None
        assert get_user_config_path() is None
        assert get_config_paths() == []

    def test_unix_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert get_system_config_path() == Path("/etc/statwatch/config.yaml")

    def test_unix_user_path_xdg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/home/test/.config-custom")
        assert get_user_config_path() == Path("/home/test/.config-custom/statwatch/config.yaml")

    def test_project_config_path(self) -> None:
        assert get_project_config_path("/srv/share") == Path("/srv/share/.statwatch/config.yaml")

    def test_get_config_paths_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        paths = get_config_paths(watch_root="/project")
        assert len(paths) == 3
        assert "etc" in paths[0].parts
        assert "project" in paths[2].parts


class TestConfigLoading:
    """Test configuration loading."""

    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        root = tmp_path / "project"
        (root / ".statwatch").mkdir(parents=True)
        return root

    def test_defaults(self, tmp_path: Path) -> None:
        config = load_config(session_root=str(tmp_path))
        assert isinstance(config, Config)
        assert config.watcher == WatcherConfig()
        assert config.watcher.interval == 5007
        assert config.logging.file is None

    def test_load_project_yaml(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text(
            """
watcher:
  recursive: true
  interval: 2003
  stat_timeout: 4.5
  short_circuit_unchanged_dirs: true
logging:
  level: debug
"""
        )
        config = load_config(session_root=str(project))
        assert config.watcher.recursive is True
        assert config.watcher.interval == 2003
        assert config.watcher.interval_seconds == pytest.approx(2.003)
        assert config.watcher.stat_timeout == 4.5
        assert config.watcher.short_circuit_unchanged_dirs is True
        assert config.watcher.persistent is False
        assert config.logging.level == "debug"

    def test_user_and_project_cascade(self, project: Path, tmp_path: Path) -> None:
        user_dir = tmp_path / "xdg" / "statwatch"
        user_dir.mkdir(parents=True)
        (user_dir / "config.yaml").write_text("watcher:\n  interval: 1000\n  recursive: true\n")
        (project / ".statwatch" / "config.yaml").write_text("watcher:\n  interval: 3001\n")

        config = load_config(session_root=str(project))
        assert config.watcher.interval == 3001
        assert config.watcher.recursive is True

    def test_env_overrides_files(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (project / ".statwatch" / "config.yaml").write_text("watcher:\n  interval: 3001\n")
        monkeypatch.setenv("STATWATCH_INTERVAL", "777")
        monkeypatch.setenv("STATWATCH_RECURSIVE", "yes")
        monkeypatch.setenv("STATWATCH_LOG", "/tmp/statwatch.log")

        config = load_config(session_root=str(project))
        assert config.watcher.interval == 777
        assert config.watcher.recursive is True
        assert config.logging.file == "/tmp/statwatch.log"

    def test_bad_env_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STATWATCH_INTERVAL", "fast")
        with pytest.raises(ValueError, match="STATWATCH_INTERVAL"):
            env_overrides()

        monkeypatch.setenv("STATWATCH_INTERVAL", "10")
        monkeypatch.setenv("STATWATCH_PERSISTENT", "maybe")
        with pytest.raises(ValueError, match="STATWATCH_PERSISTENT"):
            env_overrides()

    def test_invalid_yaml_uses_defaults(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text("invalid: yaml: :")
        config = load_config(session_root=str(project))
        assert config.watcher == WatcherConfig()

    def test_non_mapping_yaml_ignored(self, project: Path) -> None:
        path = project / ".statwatch" / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_yaml_file(path) == {}

    def test_invalid_interval_in_file_raises(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text("watcher:\n  interval: -1\n")
        with pytest.raises(ValueError, match="interval"):
            load_config(session_root=str(project))

    def test_quoted_booleans_in_file(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text(
            'watcher:\n  persistent: "no"\n  recursive: "on"\n'
        )
        config = load_config(session_root=str(project))
        assert config.watcher.persistent is False
        assert config.watcher.recursive is True

    def test_invalid_boolean_in_file_raises(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text("watcher:\n  persistent: sometimes\n")
        with pytest.raises(ValueError, match="watcher.persistent"):
            load_config(session_root=str(project))

    def test_non_boolean_in_file_raises(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text("watcher:\n  recursive: 1\n")
        with pytest.raises(ValueError, match="recursive"):
            load_config(session_root=str(project))

    @pytest.mark.parametrize(
        "field, value",
        [
            ("persistent", "yes"),
            ("short_circuit_unchanged_dirs", 0),
            ("max_symlink_hops", None),
            ("max_symlink_hops", -1),
            ("max_symlink_hops", 2.5),
            ("stat_timeout", "10"),
        ],
    )
    def test_watcher_config_rejects_bad_types(self, field: str, value: object) -> None:
        with pytest.raises(ValueError, match=field):
            WatcherConfig(**{field: value})

    def test_extra_fields_preserved(self, project: Path) -> None:
        (project / ".statwatch" / "config.yaml").write_text("custom_field: custom_value\n")
        config = load_config(session_root=str(project))
        assert config.extra == {"custom_field": "custom_value"}


class TestConfigCaching:
    """Test config caching behavior."""

    def test_get_config_caches(self) -> None:
        assert get_config() is get_config()

    def test_reset_clears_cache(self) -> None:
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_project_config_not_cached(self, tmp_path: Path) -> None:
        project_config = load_config(session_root=str(tmp_path))
        assert get_config() is not project_config
