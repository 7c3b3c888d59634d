"""User configuration: ~/.config/worktree/config.toml plus WORKTREE_* environment overrides.

File layout::

    [editor]
    command = "code ."

    [open]
    editor = true

    [hooks]
    "pre:open" = "echo opening {{owner}}/{{repo}}#{{issue}}"
    "post:open" = "..."

    [workspace]
    root = "~/worktrees"
"""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from tomlkit.exceptions import TOMLKitError

from worktree_io.errors import ConfigError

CONFIG_PATH = Path.home() / ".config" / "worktree" / "config.toml"

# dotted key -> (TOML table, key inside the table, WorktreeSettings field)
CONFIG_KEYS: dict[str, tuple[str, str, str]] = {
    "editor.command": ("editor", "command", "editor_command"),
    "open.editor": ("open", "editor", "open_editor"),
    "hooks.pre:open": ("hooks", "pre:open", "pre_open_hook"),
    "hooks.post:open": ("hooks", "post:open", "post_open_hook"),
    "workspace.root": ("workspace", "root", "workspace_root"),
}
_BOOL_KEYS = {"open.editor"}


class WorktreeSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WORKTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    editor_command: str | None = None  # e.g. "code .", where "." becomes the workspace path
    open_editor: bool = True
    pre_open_hook: str | None = None
    post_open_hook: str | None = None
    workspace_root: Path | None = None  # None means ~/worktrees

    @field_validator("workspace_root")
    @classmethod
    def _expand_root(cls, value: Path | None) -> Path | None:
        # git -C runs inside the mirror, so relative roots would resolve against it
        return value.expanduser().absolute() if value is not None else None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Config file values arrive as init kwargs; the environment must win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def _read_document() -> tomlkit.TOMLDocument:
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    try:
        with CONFIG_PATH.open() as fh:
            return tomlkit.load(fh)
    except (OSError, TOMLKitError) as exc:
        raise ConfigError(f"Failed to read config at {CONFIG_PATH}: {exc}") from exc


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/worktree/config.toml, returning an empty document if missing."""
    return _read_document()


def _flatten(config: Mapping[str, Any]) -> dict[str, Any]:
    """Map the nested TOML tables onto WorktreeSettings field names."""
    flat: dict[str, Any] = {}
    for table, key, field in CONFIG_KEYS.values():
        section = config.get(table)
        if isinstance(section, Mapping) and key in section:
            flat[field] = section[key]
    return flat


def get_settings() -> WorktreeSettings:
    """Resolve settings. Precedence: WORKTREE_* env vars, .env in cwd, config file, defaults."""
    try:
        return WorktreeSettings(**_flatten(_load_toml().unwrap()))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {CONFIG_PATH} or WORKTREE_* environment: {exc}") from exc


def save_document(doc: tomlkit.TOMLDocument) -> None:
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
    except OSError as exc:
        raise ConfigError(f"Failed to write config to {CONFIG_PATH}: {exc}") from exc
    _load_toml.cache_clear()


def write_default_config() -> None:
    doc = tomlkit.document()
    doc.add("editor", tomlkit.table())
    open_table = tomlkit.table()
    open_table.add("editor", True)
    doc.add("open", open_table)
    doc.add("hooks", tomlkit.table())
    save_document(doc)


def _lookup(key: str) -> tuple[str, str, str]:
    try:
        return CONFIG_KEYS[key]
    except KeyError:
        raise ConfigError(f"Unknown config key: {key}. Valid keys: {', '.join(CONFIG_KEYS)}") from None


def _parse_bool(value: str) -> bool:
    match value.strip().lower():
        case "true":
            return True
        case "false":
            return False
        case _:
            raise ConfigError(f"Invalid boolean value: {value}")


def get_value(key: str) -> str:
    """Return the resolved value for a dotted config key, as the CLI prints it."""
    _, _, field = _lookup(key)
    value = getattr(get_settings(), field)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_value(key: str, value: str) -> None:
    """Write a dotted config key to the config file, keeping existing comments.

    An empty value removes a string key.
    """
    table, name, _ = _lookup(key)
    parsed: bool | str = _parse_bool(value) if key in _BOOL_KEYS else value

    doc = _read_document()
    if table not in doc:
        doc.add(table, tomlkit.table())
    section = doc[table]

    if parsed == "":
        if name in section:
            del section[name]
    elif isinstance(parsed, str) and "\n" in parsed:
        section[name] = tomlkit.string(parsed, multiline=True)
    else:
        section[name] = parsed

    save_document(doc)
