"""SQLite-backed preference store for per-entity usage statistics.

Every mutation is a single ``INSERT ... ON CONFLICT DO UPDATE`` statement so
it is atomic without a separate existence check. Opening the store is the
only fatal operation; failed writes are logged and reported as ``False``.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

from . import config
from .entries import PreferenceRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS app_prefs (
    app_name TEXT PRIMARY KEY,
    is_tui BOOLEAN NOT NULL DEFAULT 0,
    score INTEGER NOT NULL DEFAULT 0,
    usage INTEGER NOT NULL DEFAULT 0,
    last_used INTEGER DEFAULT 0
)
"""


class StoreUnavailable(RuntimeError):
    """Raised when the preference database cannot be opened or created."""


def _row_to_record(is_tui: object, score: object, usage: object, last_used: object) -> PreferenceRecord:
    return PreferenceRecord(
        is_tui=bool(is_tui),
        score=int(score or 0),
        usage=int(usage or 0),
        last_used=int(last_used or 0),
    )


class PreferenceStore:
    """Durable name-keyed table of ``PreferenceRecord`` rows."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    @classmethod
    def open(cls, path: Path | str | None = None) -> PreferenceStore:
        """Open (and idempotently create) the store at ``path``.

        ``path`` defaults to ``config.DB_PATH``; ``":memory:"`` is accepted.
        Raises ``StoreUnavailable`` on any failure.
        """
        target = config.DB_PATH if path is None else path
        try:
            if str(target) != ":memory:":
                Path(target).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(target))
            connection.execute(_SCHEMA)
            connection.commit()
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"cannot open preference store at {target}: {exc}") from exc
        return cls(connection)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> PreferenceStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _execute_write(self, sql: str, params: tuple[object, ...]) -> bool:
        try:
            with self._conn:
                self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            logger.debug("preference write failed (%s): %s", params[0], exc)
            return False
        return True

    def record_launch(self, name: str, now: int | None = None) -> bool:
        """Increment usage and stamp ``last_used``; creates the row on first launch."""
        if now is None:
            now = int(time.time())
        return self._execute_write(
            "INSERT INTO app_prefs (app_name, usage, last_used) VALUES (?, 1, ?) "
            "ON CONFLICT(app_name) DO UPDATE SET usage = usage + 1, last_used = excluded.last_used",
            (name, now),
        )

    def set_tui(self, name: str, is_tui: bool) -> bool:
        """Set only the TUI flag, creating a zero-usage row when absent."""
        return self._execute_write(
            "INSERT INTO app_prefs (app_name, is_tui) VALUES (?, ?) "
            "ON CONFLICT(app_name) DO UPDATE SET is_tui = excluded.is_tui",
            (name, bool(is_tui)),
        )

    def set_base_score(self, name: str, score: int) -> bool:
        """Overwrite the base score (bulk seeding), leaving usage untouched."""
        return self._execute_write(
            "INSERT INTO app_prefs (app_name, score) VALUES (?, ?) "
            "ON CONFLICT(app_name) DO UPDATE SET score = excluded.score",
            (name, int(score)),
        )

    def has_entry(self, name: str) -> bool:
        try:
            row = self._conn.execute("SELECT 1 FROM app_prefs WHERE app_name = ?", (name,)).fetchone()
        except sqlite3.Error as exc:
            logger.debug("preference lookup failed (%s): %s", name, exc)
            return False
        return row is not None

    def lookup(self, name: str) -> PreferenceRecord:
        """Return the record for ``name``, or defaults when absent or unreadable."""
        try:
            row = self._conn.execute(
                "SELECT is_tui, score, usage, last_used FROM app_prefs WHERE app_name = ?",
                (name,),
            ).fetchone()
        except sqlite3.Error as exc:
            logger.debug("preference lookup failed (%s): %s", name, exc)
            return PreferenceRecord()
        if row is None:
            return PreferenceRecord()
        return _row_to_record(*row)

    def lookup_all(self) -> dict[str, PreferenceRecord]:
        """Read every row in one query and return a name-keyed map."""
        try:
            rows = self._conn.execute(
                "SELECT app_name, is_tui, score, usage, last_used FROM app_prefs"
            ).fetchall()
        except sqlite3.Error as exc:
            logger.debug("bulk preference read failed: %s", exc)
            return {}
        return {name: _row_to_record(*values) for name, *values in rows}
