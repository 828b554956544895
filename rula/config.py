"""Persistent JSON config and per-user storage locations.

Holds the terminal wrapper, editor, file-search root/depth, result limit,
and dormant-visibility preference.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir, user_data_dir

APP_NAME = "rula"
CONFIG_FILENAME = "config.json"
APP_CACHE_FILENAME = "apps.json"
DB_FILENAME = "db.sqlite"
CONFIG_ENV_VAR = "RULA_CONFIG"

CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
APP_CACHE_PATH = Path(user_cache_dir(APP_NAME, appauthor=False)) / APP_CACHE_FILENAME
DB_PATH = Path(user_data_dir(APP_NAME, appauthor=False)) / DB_FILENAME

DEFAULT_TERMINAL_COMMAND = ("kitty", "-e")
DEFAULT_EDITOR_COMMAND = ("nvim",)
DEFAULT_FILE_SEARCH_MAX_DEPTH = 5
DEFAULT_RESULT_LIMIT = 50


def _load_config_path() -> Path:
    """Return the config path, honoring the ``RULA_CONFIG`` override."""
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = _load_config_path()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    config_path = _load_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _load_command(key: str, default: tuple[str, ...]) -> list[str]:
    """Read a command argv list; only non-empty lists of non-empty strings are accepted."""
    value = load_config().get(key)
    if not isinstance(value, list) or not value:
        return list(default)
    if not all(isinstance(part, str) and part for part in value):
        return list(default)
    return list(value)


def _load_positive_int(key: str, default: int) -> int:
    """Read a positive integer; booleans and non-integers fall back to ``default``."""
    value = load_config().get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def load_terminal_command() -> list[str]:
    """Return the argv prefix used to run a program inside a terminal window."""
    return _load_command("terminal_command", DEFAULT_TERMINAL_COMMAND)


def load_editor_command() -> list[str]:
    """Return the argv prefix used to open a file from the file search."""
    return _load_command("editor_command", DEFAULT_EDITOR_COMMAND)


def load_file_search_root() -> Path:
    """Return the root directory walked by file search (home by default)."""
    value = load_config().get("file_search_root")
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return Path.home()


def load_file_search_max_depth() -> int:
    return _load_positive_int("file_search_max_depth", DEFAULT_FILE_SEARCH_MAX_DEPTH)


def load_result_limit() -> int:
    return _load_positive_int("result_limit", DEFAULT_RESULT_LIMIT)


def load_show_dormant() -> bool:
    """Return persisted dormant-visibility preference.

    Only explicit boolean values are accepted; any other type falls back to
    ``False``.
    """
    value = load_config().get("show_dormant")
    return bool(value) if isinstance(value, bool) else False


def save_show_dormant(show_dormant: bool) -> None:
    """Persist dormant-visibility preference as a boolean."""
    config = load_config()
    config["show_dormant"] = bool(show_dormant)
    save_config(config)
