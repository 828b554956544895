"""Best-effort discovery cache of app identities.

Stores ``{name, exec, is_cli_only}`` triples as a JSON array. Reading never
fails: missing, empty, or malformed content is reported as a cache miss.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from . import config
from .entries import AppIdentity

logger = logging.getLogger(__name__)


def _cache_path(path: Path | None) -> Path:
    return config.APP_CACHE_PATH if path is None else path


def _identity_from_json(item: object) -> AppIdentity | None:
    """Decode one cached object; entries with wrong field types are dropped."""
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    exec_command = item.get("exec")
    is_cli_only = item.get("is_cli_only")
    if not isinstance(name, str) or not name:
        return None
    if not isinstance(exec_command, str) or not isinstance(is_cli_only, bool):
        return None
    return AppIdentity(name=name, exec=exec_command, is_cli_only=is_cli_only)


def load_app_cache(path: Path | None = None) -> list[AppIdentity] | None:
    """Load cached identities, or ``None`` on any kind of cache miss."""
    cache_path = _cache_path(path)
    try:
        raw = cache_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("app cache miss (%s): %s", cache_path, exc)
        return None
    if not raw.strip():
        logger.debug("app cache miss (%s): empty", cache_path)
        return None
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.debug("app cache miss (%s): %s", cache_path, exc)
        return None
    if not isinstance(data, list):
        logger.debug("app cache miss (%s): not a JSON array", cache_path)
        return None

    identities: list[AppIdentity] = []
    for item in data:
        identity = _identity_from_json(item)
        if identity is None:
            logger.debug("app cache miss (%s): malformed entry %r", cache_path, item)
            return None
        identities.append(identity)
    if not identities:
        return None
    return identities


def save_app_cache(identities: Iterable[AppIdentity], path: Path | None = None) -> bool:
    """Overwrite the cache with ``identities``; returns ``False`` on write failure."""
    cache_path = _cache_path(path)
    payload = [
        {"name": identity.name, "exec": identity.exec, "is_cli_only": identity.is_cli_only}
        for identity in identities
    ]
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(json.dumps(payload), encoding="utf-8")
    except (OSError, TypeError) as exc:
        logger.debug("app cache write failed (%s): %s", cache_path, exc)
        return False
    return True
