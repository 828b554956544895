from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rula.entries import PreferenceRecord
from rula.prefs import PreferenceStore, StoreUnavailable


class PreferenceStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = PreferenceStore.open(":memory:")

    def tearDown(self) -> None:
        self.store.close()

    def test_lookup_of_absent_name_returns_defaults(self) -> None:
        self.assertEqual(self.store.lookup("missing"), PreferenceRecord(False, 0, 0, 0))
        self.assertFalse(self.store.has_entry("missing"))

    def test_record_launch_creates_then_increments(self) -> None:
        self.assertTrue(self.store.record_launch("vim", now=100))
        self.assertEqual(self.store.lookup("vim"), PreferenceRecord(usage=1, last_used=100))

        self.store.record_launch("vim", now=200)
        self.store.record_launch("vim", now=300)

        self.assertEqual(self.store.lookup("vim"), PreferenceRecord(usage=3, last_used=300))

    def test_set_tui_on_absent_name_creates_zero_usage_row(self) -> None:
        self.assertTrue(self.store.set_tui("htop", True))

        self.assertEqual(self.store.lookup("htop"), PreferenceRecord(is_tui=True, score=0, usage=0, last_used=0))

    def test_set_tui_only_changes_flag(self) -> None:
        self.store.record_launch("htop", now=50)
        self.store.set_base_score("htop", 50)

        self.store.set_tui("htop", True)
        self.store.set_tui("htop", False)

        self.assertEqual(self.store.lookup("htop"), PreferenceRecord(is_tui=False, score=50, usage=1, last_used=50))

    def test_set_base_score_overwrites_score_and_keeps_usage(self) -> None:
        self.store.record_launch("git", now=10)
        self.store.set_base_score("git", 50)
        self.store.set_base_score("git", 20)
        self.store.set_base_score("ls", 50)

        self.assertEqual(self.store.lookup("git"), PreferenceRecord(score=20, usage=1, last_used=10))
        self.assertEqual(self.store.lookup("ls"), PreferenceRecord(score=50))

    def test_lookup_all_reads_every_row_in_one_query(self) -> None:
        self.store.record_launch("a", now=1)
        self.store.set_tui("b", True)
        self.store.set_base_score("c", 50)
        queries: list[str] = []
        self.store._conn.set_trace_callback(queries.append)

        data = self.store.lookup_all()

        self.assertEqual(len([sql for sql in queries if sql.lstrip().upper().startswith("SELECT")]), 1)
        self.assertEqual(set(data), {"a", "b", "c"})
        self.assertEqual(data["a"], PreferenceRecord(usage=1, last_used=1))
        self.assertTrue(data["b"].is_tui)
        self.assertEqual(data["c"].score, 50)

    def test_failed_write_is_reported_as_false(self) -> None:
        self.store._conn.execute("DROP TABLE app_prefs")

        self.assertFalse(self.store.record_launch("vim"))
        self.assertFalse(self.store.set_tui("vim", True))
        self.assertEqual(self.store.lookup("vim"), PreferenceRecord())
        self.assertEqual(self.store.lookup_all(), {})

    def test_open_creates_parent_directory_and_persists(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            db_path = Path(tmp) / "nested" / "db.sqlite"
            with PreferenceStore.open(db_path) as store:
                store.record_launch("vim", now=5)
            with PreferenceStore.open(db_path) as reopened:
                self.assertEqual(reopened.lookup("vim").usage, 1)

    def test_open_uses_configured_default_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            db_path = Path(tmp) / "db.sqlite"
            with mock.patch("rula.config.DB_PATH", db_path):
                PreferenceStore.open().close()

            self.assertTrue(db_path.exists())

    def test_open_failure_raises_store_unavailable(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("x", encoding="utf-8")

            with self.assertRaises(StoreUnavailable):
                PreferenceStore.open(blocker / "db.sqlite")


if __name__ == "__main__":
    unittest.main()
