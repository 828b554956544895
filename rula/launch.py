"""Launch intents and the detached-process collaborator.

Ranking code only produces ``LaunchIntent`` values; ``spawn_detached`` is the
single place that starts processes.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from .desktop_entry import strip_field_codes
from .entries import AppEntry
from .prefs import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaunchIntent:
    program: str
    args: tuple[str, ...] = ()
    needs_terminal: bool = False

    def argv(self, terminal_command: Sequence[str] = ()) -> list[str]:
        """Full argv, wrapped in ``terminal_command`` when a terminal is needed."""
        base = [self.program, *self.args]
        if self.needs_terminal and terminal_command:
            return [*terminal_command, *base]
        return base


def split_exec(exec_command: str) -> list[str]:
    """Split a launch command with shell-word rules after dropping field codes."""
    try:
        return shlex.split(strip_field_codes(exec_command))
    except ValueError:
        return []


def app_launch_intent(entry: AppEntry, store: PreferenceStore) -> LaunchIntent | None:
    """Record a launch of ``entry`` and return how to start it.

    The terminal decision uses the stored TUI flag when the entity already
    has a preference row, else falls back to ``is_cli_only``. The flag is read
    before the launch is recorded, so the first launch of a command-line tool
    opens in a terminal instead of seeing the fresh row's ``is_tui=False``.
    """
    argv = split_exec(entry.exec)
    if not argv:
        return None
    if store.has_entry(entry.name):
        needs_terminal = store.lookup(entry.name).is_tui
    else:
        needs_terminal = entry.is_cli_only
    store.record_launch(entry.name)
    return LaunchIntent(program=argv[0], args=tuple(argv[1:]), needs_terminal=needs_terminal)


def file_launch_intent(
    path: str,
    terminal_command: Sequence[str],
    editor_command: Sequence[str],
) -> LaunchIntent | None:
    """Open ``path`` in the editor inside a terminal window."""
    argv = [*terminal_command, *editor_command, path]
    if not argv or argv[0] == path:
        return None
    return LaunchIntent(program=argv[0], args=tuple(argv[1:]), needs_terminal=False)


def spawn_detached(intent: LaunchIntent, terminal_command: Sequence[str] = ()) -> bool:
    """Start ``intent`` in its own session with stdio detached.

    Returns ``False`` when the program could not be started.
    """
    argv = intent.argv(terminal_command)
    try:
        subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        logger.debug("failed to spawn %s: %s", argv[0], exc)
        return False
    return True
