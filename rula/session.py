"""Interactive launcher session state.

Holds the query line, the active search mode, the current result list, and
selection. Front ends (terminal UI, scripts) drive it through the action
methods and read ``state`` back; nothing here renders or reads keys.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from . import config
from .discovery import load_apps
from .entries import AppEntry
from .launch import LaunchIntent, app_launch_intent, file_launch_intent
from .prefs import PreferenceStore
from .search import APP_RESULT_LIMIT, rank_apps, rank_files

MODE_APPS = "apps"
MODE_FILES = "files"
INPUT_INSERT = "insert"
INPUT_NORMAL = "normal"


@dataclass
class SessionState:
    query: str = ""
    cursor: int = 0
    mode: str = MODE_APPS
    input_mode: str = INPUT_INSERT
    selected: int = 0
    show_dormant: bool = False
    filtered_apps: list[AppEntry] = field(default_factory=list)
    filtered_files: list[str] = field(default_factory=list)
    should_quit: bool = False
    launch_intent: LaunchIntent | None = None


class LauncherSession:
    """Stateful controller for one launcher run."""

    def __init__(
        self,
        store: PreferenceStore,
        apps: Sequence[AppEntry],
        *,
        search_files: Callable[[str, int], list[str]] | None = None,
        result_limit: int = APP_RESULT_LIMIT,
        show_dormant: bool = False,
        persist_dormant: bool = False,
        terminal_command: Sequence[str] = config.DEFAULT_TERMINAL_COMMAND,
        editor_command: Sequence[str] = config.DEFAULT_EDITOR_COMMAND,
    ) -> None:
        self.store = store
        self.all_apps = list(apps)
        self.result_limit = result_limit
        self.terminal_command = list(terminal_command)
        self.editor_command = list(editor_command)
        self.persist_dormant = persist_dormant
        self._search_files = search_files or (lambda query, limit: rank_files(query, limit=limit))
        self.state = SessionState(show_dormant=show_dormant)
        self.update_search()

    @classmethod
    def from_config(cls, store: PreferenceStore, root: Path | None = None) -> LauncherSession:
        """Build a session from the discovered apps and the persisted config.

        File search walks ``root`` (the configured root when omitted) to the
        configured depth, and toggling dormant visibility is saved back to the
        config file.
        """
        root = root or config.load_file_search_root()
        max_depth = config.load_file_search_max_depth()
        return cls(
            store,
            load_apps(store),
            search_files=lambda query, limit: rank_files(query, root, limit=limit, max_depth=max_depth),
            result_limit=config.load_result_limit(),
            show_dormant=config.load_show_dormant(),
            persist_dormant=True,
            terminal_command=config.load_terminal_command(),
            editor_command=config.load_editor_command(),
        )

    # Query editing

    def insert_char(self, char: str) -> None:
        state = self.state
        state.query = state.query[: state.cursor] + char + state.query[state.cursor :]
        state.cursor += len(char)
        self.update_search()

    def backspace(self) -> None:
        state = self.state
        if state.cursor <= 0:
            return
        state.query = state.query[: state.cursor - 1] + state.query[state.cursor :]
        state.cursor -= 1
        self.update_search()

    def delete_char(self) -> None:
        state = self.state
        if state.cursor >= len(state.query):
            return
        state.query = state.query[: state.cursor] + state.query[state.cursor + 1 :]
        self.update_search()

    def move_cursor_left(self) -> None:
        self.state.cursor = max(0, self.state.cursor - 1)

    def move_cursor_right(self) -> None:
        self.state.cursor = min(len(self.state.query), self.state.cursor + 1)

    def move_cursor_start(self) -> None:
        self.state.cursor = 0

    def move_cursor_end(self) -> None:
        self.state.cursor = len(self.state.query)

    def set_query(self, text: str) -> None:
        self.state.query = text
        self.state.cursor = len(text)
        self.update_search()

    def clear_input(self) -> None:
        self.state.query = ""
        self.state.cursor = 0
        self.update_search()

    # Modes

    def enter_normal_mode(self) -> None:
        self.state.input_mode = INPUT_NORMAL

    def enter_insert_mode(self) -> None:
        self.state.input_mode = INPUT_INSERT

    def toggle_mode(self) -> None:
        self.state.mode = MODE_FILES if self.state.mode == MODE_APPS else MODE_APPS
        self.update_search()

    def toggle_dormant(self) -> None:
        self.state.show_dormant = not self.state.show_dormant
        if self.persist_dormant:
            config.save_show_dormant(self.state.show_dormant)
        self.update_search()

    # Selection

    def result_count(self) -> int:
        if self.state.mode == MODE_APPS:
            return len(self.state.filtered_apps)
        return len(self.state.filtered_files)

    def next(self) -> None:
        count = self.result_count()
        if count > 0:
            self.state.selected = (self.state.selected + 1) % count

    def previous(self) -> None:
        count = self.result_count()
        if count > 0:
            self.state.selected = (self.state.selected - 1) % count

    def go_top(self) -> None:
        self.state.selected = 0

    def go_bottom(self) -> None:
        self.state.selected = max(0, self.result_count() - 1)

    def selected_app(self) -> AppEntry | None:
        apps = self.state.filtered_apps
        if self.state.mode != MODE_APPS or not apps:
            return None
        return apps[min(self.state.selected, len(apps) - 1)]

    # Search

    def update_search(self) -> None:
        """Re-rank for the current query; selection goes back to the top."""
        state = self.state
        state.selected = 0
        if state.mode == MODE_APPS:
            state.filtered_apps = rank_apps(
                state.query,
                self.all_apps,
                limit=self.result_limit,
                show_dormant=state.show_dormant,
            )
        elif state.query:
            state.filtered_files = self._search_files(state.query, self.result_limit)
        else:
            state.filtered_files = []

    def tui_flags(self, entries: Sequence[AppEntry]) -> dict[str, bool]:
        """TUI flag per visible entry, read with one bulk query for a render pass.

        Entries without a stored record report ``is_cli_only``, matching the
        terminal decision made at launch.
        """
        records = self.store.lookup_all()
        return {
            entry.name: records[entry.name].is_tui if entry.name in records else entry.is_cli_only
            for entry in entries
        }

    # Actions

    def toggle_tui_preference(self) -> bool:
        app = self.selected_app()
        if app is None:
            return False
        current = self.store.lookup(app.name).is_tui
        return self.store.set_tui(app.name, not current)

    def launch_selection(self) -> LaunchIntent | None:
        """Build the intent for the selected row and mark the session finished."""
        state = self.state
        intent: LaunchIntent | None = None
        if state.mode == MODE_APPS:
            app = self.selected_app()
            if app is not None:
                intent = app_launch_intent(app, self.store)
        elif state.filtered_files:
            path = state.filtered_files[min(state.selected, len(state.filtered_files) - 1)]
            intent = file_launch_intent(path, self.terminal_command, self.editor_command)
        if intent is not None:
            state.launch_intent = intent
            state.should_quit = True
        return intent

    def quit(self) -> None:
        self.state.should_quit = True
