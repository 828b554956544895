"""Command-line front door for rula.

Handles the one-shot maintenance operations (seeding, cache rebuild) and
prints ranked app or file results for a query. Launching a named app, or the
best match for a query through a launcher session, records its usage and
spawns it detached.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .discovery import load_apps, rebuild_app_cache
from .entries import AppEntry
from .launch import app_launch_intent, spawn_detached
from .prefs import PreferenceStore, StoreUnavailable
from .search import rank_apps, rank_files
from .seeding import PacmanSeedSource, seed_preferences
from .session import MODE_FILES, LauncherSession


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _on_off(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("on", "true", "1", "yes"):
        return True
    if lowered in ("off", "false", "0", "no"):
        return False
    raise argparse.ArgumentTypeError(f"expected on/off, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rula",
        description="Rank installed applications and files by fuzzy relevance and usage.",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--seed", action="store_true", help="Seed base scores from the package manager and exit.")
    actions.add_argument("--rebuild-cache", action="store_true", help="Re-scan applications and rewrite the cache.")
    actions.add_argument("--list", action="store_true", help="Print the ranked application list (default).")
    actions.add_argument("--query", metavar="TEXT", help="Print applications matching TEXT.")
    actions.add_argument("--files", metavar="TEXT", help="Print files matching TEXT.")
    actions.add_argument("--launch", metavar="NAME", help="Launch the application named NAME.")
    actions.add_argument("--pick", metavar="TEXT", help="Launch the best-ranked application matching TEXT.")
    actions.add_argument("--open", metavar="TEXT", help="Open the best-ranked file matching TEXT in the editor.")
    actions.add_argument(
        "--set-tui",
        nargs=2,
        metavar=("NAME", "on|off"),
        help="Mark NAME as a terminal application (on) or not (off).",
    )
    parser.add_argument("--root", default=None, help="Root directory for --files (default: config or home).")
    parser.add_argument("--limit", type=_positive_int, default=None, help="Maximum number of results.")
    parser.add_argument("--show-dormant", action="store_true", help="Include apps unused for 30+ days.")
    parser.add_argument("--verbose", action="store_true", help="Log skipped sources and failed writes to stderr.")
    return parser


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        sys.stdout.write(line + "\n")


def _format_app_rows(apps: list[AppEntry]) -> list[str]:
    return [f"{app.total_score:>6}  {'cli' if app.is_cli_only else 'app'}  {app.name}" for app in apps]


def _pick_and_launch(session: LauncherSession, text: str, show_dormant: bool, files: bool) -> int:
    """Launch the top result for ``text`` the way the interactive launcher would."""
    if files:
        session.toggle_mode()
    elif show_dormant:
        session.state.show_dormant = True
    session.set_query(text)
    intent = session.launch_selection()
    if intent is None:
        raise SystemExit(f"No match for {text!r}")
    return 0 if spawn_detached(intent, session.terminal_command) else 1


def run(args: argparse.Namespace, store: PreferenceStore) -> int:
    limit = args.limit if args.limit is not None else config.load_result_limit()
    show_dormant = args.show_dormant or config.load_show_dormant()

    if args.seed:
        count = seed_preferences(store, PacmanSeedSource())
        sys.stdout.write(f"Seeded {count} apps.\n")
        return 0

    if args.rebuild_cache:
        identities = rebuild_app_cache()
        sys.stdout.write(f"Cache rebuilt with {len(identities)} apps.\n")
        return 0

    if args.set_tui is not None:
        name, flag = args.set_tui
        try:
            is_tui = _on_off(flag)
        except argparse.ArgumentTypeError as exc:
            raise SystemExit(str(exc)) from exc
        return 0 if store.set_tui(name, is_tui) else 1

    root = Path(args.root).expanduser() if args.root else None

    if args.pick is not None or args.open is not None:
        session = LauncherSession.from_config(store, root)
        if args.open is not None:
            return _pick_and_launch(session, args.open, show_dormant, files=True)
        return _pick_and_launch(session, args.pick, show_dormant, files=False)

    if args.files is not None:
        root = root or config.load_file_search_root()
        _print_lines(
            rank_files(
                args.files,
                root,
                limit=limit,
                max_depth=config.load_file_search_max_depth(),
            )
        )
        return 0

    apps = load_apps(store)

    if args.launch is not None:
        match = next((app for app in apps if app.name == args.launch), None)
        if match is None:
            raise SystemExit(f"Unknown application: {args.launch}")
        intent = app_launch_intent(match, store)
        if intent is None:
            raise SystemExit(f"Cannot parse launch command for {args.launch}: {match.exec!r}")
        return 0 if spawn_detached(intent, config.load_terminal_command()) else 1

    if args.query is not None:
        _print_lines(_format_app_rows(rank_apps(args.query, apps, limit=limit, show_dormant=show_dormant)))
        return 0

    listed = rank_apps("", apps, show_dormant=show_dormant)
    if args.limit is not None:
        listed = listed[: args.limit]
    _print_lines(_format_app_rows(listed))
    return 0


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the requested operation.

    Failing to open the preference store exits with a message, since ranking
    has no usage history without it.
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s", stream=sys.stderr)

    try:
        store = PreferenceStore.open()
    except StoreUnavailable as exc:
        raise SystemExit(str(exc)) from exc
    with store:
        status = run(args, store)
    if status:
        raise SystemExit(status)


if __name__ == "__main__":
    main()
