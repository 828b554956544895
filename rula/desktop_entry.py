"""Minimal freedesktop ``.desktop`` file reader.

Only the ``[Desktop Entry]`` group is read. Keys keep their first value when
repeated; localized keys such as ``Name[de]`` are distinct keys.
"""

from __future__ import annotations

from pathlib import Path

DESKTOP_ENTRY_GROUP = "Desktop Entry"


def parse_desktop_entry_text(text: str) -> dict[str, str] | None:
    """Return the ``[Desktop Entry]`` key/value map, or ``None`` when absent."""
    section: dict[str, str] | None = None
    in_group = False
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            in_group = line[1:-1] == DESKTOP_ENTRY_GROUP
            if in_group and section is None:
                section = {}
            continue
        if not in_group or section is None:
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key and key not in section:
            section[key] = value.strip()
    return section


def read_desktop_entry(path: Path) -> dict[str, str] | None:
    """Read and parse ``path``; unreadable or undecodable files yield ``None``."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return parse_desktop_entry_text(text)


def strip_field_codes(exec_command: str) -> str:
    """Drop ``%``-prefixed field-code tokens (``%f``, ``%U``...) from a command."""
    return " ".join(token for token in exec_command.split() if not token.startswith("%"))
