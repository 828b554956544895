"""CLI dispatch tests.

Verifies how ``rula.cli.main`` routes maintenance operations and queries,
using temporary cache/store/config locations.
"""

from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from rula import app_cache, cli
from rula.entries import AppIdentity
from rula.launch import LaunchIntent
from rula.prefs import PreferenceStore, StoreUnavailable


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        self.config_path = root / "config.json"
        self.cache_path = root / "cache" / "apps.json"
        self.db_path = root / "data" / "db.sqlite"
        self.patches = [
            mock.patch("rula.config.APP_CACHE_PATH", self.cache_path),
            mock.patch("rula.config.DB_PATH", self.db_path),
            mock.patch.dict(os.environ, {"RULA_CONFIG": str(self.config_path)}),
        ]
        for patcher in self.patches:
            patcher.start()
        app_cache.save_app_cache(
            [
                AppIdentity("Firefox", "firefox %u", False),
                AppIdentity("htop", "htop", True),
                AppIdentity("vim", "vim", True),
            ]
        )

    def tearDown(self) -> None:
        for patcher in reversed(self.patches):
            patcher.stop()
        self.tmp.cleanup()

    def _run(self, *argv: str) -> str:
        out = io.StringIO()
        with redirect_stdout(out):
            cli.main(list(argv))
        return out.getvalue()

    def test_default_lists_apps_by_score(self) -> None:
        with PreferenceStore.open(self.db_path) as store:
            store.set_base_score("vim", 50)

        lines = self._run().splitlines()

        self.assertEqual([line.split()[-1] for line in lines], ["vim", "Firefox", "htop"])
        self.assertTrue(lines[0].strip().startswith("50"))

    def test_query_prints_only_matches(self) -> None:
        output = self._run("--query", "fire")

        self.assertIn("Firefox", output)
        self.assertNotIn("htop", output)

    def test_set_tui_and_launch_use_the_store(self) -> None:
        self._run("--set-tui", "vim", "on")
        with mock.patch("rula.cli.spawn_detached", return_value=True) as spawn:
            self._run("--launch", "vim")

        intent = spawn.call_args.args[0]
        self.assertTrue(intent.needs_terminal)
        with PreferenceStore.open(self.db_path) as store:
            self.assertEqual(store.lookup("vim").usage, 1)
            self.assertTrue(store.lookup("vim").is_tui)

    def test_launch_unknown_name_exits(self) -> None:
        with self.assertRaises(SystemExit):
            self._run("--launch", "nothing-here")

    def test_rebuild_cache_rescans(self) -> None:
        with mock.patch("rula.discovery.scan_identities", return_value=[AppIdentity("ls", "ls", True)]):
            output = self._run("--rebuild-cache")

        self.assertIn("1 apps", output)
        self.assertEqual(app_cache.load_app_cache(), [AppIdentity("ls", "ls", True)])

    def test_seed_uses_package_source(self) -> None:
        source = mock.Mock()
        source.binary_names.return_value = ["vim", "ls"]
        with mock.patch("rula.cli.PacmanSeedSource", return_value=source):
            output = self._run("--seed")

        self.assertIn("Seeded 2 apps", output)

    def test_files_query_uses_root_option(self) -> None:
        files_root = Path(self.tmp.name) / "tree"
        (files_root / "src").mkdir(parents=True)
        (files_root / "src" / "main.rs").write_text("fn main() {}\n", encoding="utf-8")

        output = self._run("--files", "main", "--root", str(files_root))

        self.assertEqual(output.splitlines(), [str(files_root / "src" / "main.rs")])

    def test_pick_launches_top_match_with_configured_terminal(self) -> None:
        self.config_path.write_text(json.dumps({"terminal_command": ["foot", "-e"]}), encoding="utf-8")
        with mock.patch("rula.cli.spawn_detached", return_value=True) as spawn:
            self._run("--pick", "htp")

        intent, terminal_command = spawn.call_args.args
        self.assertEqual(intent, LaunchIntent("htop", (), True))
        self.assertEqual(terminal_command, ["foot", "-e"])
        with PreferenceStore.open(self.db_path) as store:
            self.assertEqual(store.lookup("htop").usage, 1)

    def test_pick_without_match_exits(self) -> None:
        with mock.patch("rula.cli.spawn_detached") as spawn:
            with self.assertRaises(SystemExit):
                self._run("--pick", "zzz")

        spawn.assert_not_called()

    def test_open_uses_configured_editor_and_root_option(self) -> None:
        files_root = Path(self.tmp.name) / "tree"
        (files_root / "src").mkdir(parents=True)
        target = files_root / "src" / "main.rs"
        target.write_text("fn main() {}\n", encoding="utf-8")
        self.config_path.write_text(
            json.dumps({"terminal_command": ["foot", "-e"], "editor_command": ["hx"]}),
            encoding="utf-8",
        )

        with mock.patch("rula.cli.spawn_detached", return_value=True) as spawn:
            self._run("--open", "main", "--root", str(files_root))

        self.assertEqual(spawn.call_args.args[0], LaunchIntent("foot", ("-e", "hx", str(target)), False))

    def test_store_unavailable_exits_with_message(self) -> None:
        with mock.patch("rula.cli.PreferenceStore.open", side_effect=StoreUnavailable("no store")):
            with self.assertRaises(SystemExit) as ctx:
                self._run("--list")

        self.assertEqual(str(ctx.exception), "no store")


if __name__ == "__main__":
    unittest.main()
