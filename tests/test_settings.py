"""Tests for worktree_io.settings: file/env precedence, get/set and error paths."""

from pathlib import Path

import pytest
import tomlkit

import worktree_io.settings as settings_module
from worktree_io.errors import ConfigError
from worktree_io.settings import get_settings, get_value, set_value, write_default_config


def _write_config(path: Path, config: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(config))


class TestGetSettings:
    def test_defaults_without_file(self, config_path: Path) -> None:
        s = get_settings()
        assert s.editor_command is None
        assert s.open_editor is True
        assert s.pre_open_hook is None
        assert s.post_open_hook is None
        assert s.workspace_root is None

    def test_reads_nested_tables(self, config_path: Path) -> None:
        _write_config(
            config_path,
            {
                "editor": {"command": "zed ."},
                "open": {"editor": False},
                "hooks": {"pre:open": "echo pre", "post:open": "echo post"},
                "workspace": {"root": "/srv/trees"},
            },
        )
        s = get_settings()
        assert s.editor_command == "zed ."
        assert s.open_editor is False
        assert s.pre_open_hook == "echo pre"
        assert s.post_open_hook == "echo post"
        assert s.workspace_root == Path("/srv/trees")

    def test_env_var_takes_precedence_over_toml(self, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_config(config_path, {"editor": {"command": "zed ."}, "open": {"editor": True}})
        monkeypatch.setenv("WORKTREE_EDITOR_COMMAND", "nvim .")
        monkeypatch.setenv("WORKTREE_OPEN_EDITOR", "false")

        s = get_settings()
        assert s.editor_command == "nvim ."
        assert s.open_editor is False

    def test_workspace_root_expands_user(self, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(config_path.parent))
        _write_config(config_path, {"workspace": {"root": "~/trees"}})
        assert get_settings().workspace_root == config_path.parent / "trees"

    def test_relative_workspace_root_made_absolute(self, config_path: Path) -> None:
        _write_config(config_path, {"workspace": {"root": "trees"}})
        root = get_settings().workspace_root
        assert root is not None
        assert root.is_absolute()
        assert root == Path.cwd() / "trees"

    def test_unknown_tables_ignored(self, config_path: Path) -> None:
        _write_config(config_path, {"editor": {"command": "code .", "theme": "dark"}, "extra": {"x": 1}})
        assert get_settings().editor_command == "code ."

    def test_invalid_toml_raises(self, config_path: Path) -> None:
        config_path.parent.mkdir(parents=True)
        config_path.write_text("[editor\ncommand = ")
        with pytest.raises(ConfigError, match="Failed to read config"):
            get_settings()

    def test_invalid_value_raises(self, config_path: Path) -> None:
        _write_config(config_path, {"open": {"editor": "sometimes"}})
        with pytest.raises(ConfigError, match="Invalid configuration"):
            get_settings()

    def test_file_is_cached_until_saved(self, config_path: Path) -> None:
        _write_config(config_path, {"editor": {"command": "zed ."}})
        assert get_settings().editor_command == "zed ."

        _write_config(config_path, {"editor": {"command": "vim ."}})
        assert get_settings().editor_command == "zed ."

        set_value("open.editor", "true")
        assert get_settings().editor_command == "vim ."


class TestGetValue:
    def test_unset_string_is_empty(self, config_path: Path) -> None:
        assert get_value("editor.command") == ""

    def test_bool_rendering(self, config_path: Path) -> None:
        assert get_value("open.editor") == "true"
        _write_config(config_path, {"open": {"editor": False}})
        settings_module._load_toml.cache_clear()
        assert get_value("open.editor") == "false"

    def test_reflects_env(self, config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORKTREE_PRE_OPEN_HOOK", "echo from env")
        assert get_value("hooks.pre:open") == "echo from env"

    def test_unknown_key(self, config_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown config key: editor.theme"):
            get_value("editor.theme")


class TestSetValue:
    def test_creates_file_and_table(self, config_path: Path) -> None:
        set_value("editor.command", "cursor .")

        assert config_path.exists()
        doc = tomlkit.parse(config_path.read_text())
        assert doc["editor"]["command"] == "cursor ."
        assert get_value("editor.command") == "cursor ."

    def test_bool_key(self, config_path: Path) -> None:
        set_value("open.editor", "FALSE")
        assert tomlkit.parse(config_path.read_text())["open"]["editor"] is False
        assert get_settings().open_editor is False

    def test_bad_bool(self, config_path: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid boolean value: maybe"):
            set_value("open.editor", "maybe")
        assert not config_path.exists()

    def test_unknown_key(self, config_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown config key"):
            set_value("nope", "x")

    def test_empty_value_unsets(self, config_path: Path) -> None:
        set_value("editor.command", "code .")
        set_value("editor.command", "")
        assert "command" not in tomlkit.parse(config_path.read_text())["editor"]
        assert get_value("editor.command") == ""

    def test_multiline_hook_round_trips(self, config_path: Path) -> None:
        script = '#!/usr/bin/env bash\necho "{{owner}}/{{repo}}"\n'
        set_value("hooks.post:open", script)
        assert get_value("hooks.post:open") == script

    def test_preserves_comments_and_other_keys(self, config_path: Path) -> None:
        config_path.parent.mkdir(parents=True)
        config_path.write_text('# my worktree config\n[editor]\ncommand = "zed ."  # fast\n\n[open]\neditor = true\n')

        set_value("open.editor", "false")

        text = config_path.read_text()
        assert "# my worktree config" in text
        assert "# fast" in text
        assert 'command = "zed ."' in text
        assert "editor = false" in text


class TestWriteDefaultConfig:
    def test_writes_expected_tables(self, config_path: Path) -> None:
        write_default_config()
        doc = tomlkit.parse(config_path.read_text())
        assert set(doc) == {"editor", "open", "hooks"}
        assert doc["open"]["editor"] is True

    def test_overwrites_existing(self, config_path: Path) -> None:
        set_value("editor.command", "zed .")
        write_default_config()
        assert get_value("editor.command") == ""

    def test_write_failure_raises(self, config_path: Path) -> None:
        blocker = config_path.parent
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_text("not a directory")
        with pytest.raises(ConfigError, match="Failed to write config"):
            write_default_config()

    def test_config_path_default(self) -> None:
        assert settings_module.CONFIG_PATH.parts[-3:] == (".config", "worktree", "config.toml")
