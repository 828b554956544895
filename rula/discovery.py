"""Source enumeration and app-list loading.

Sources are scanned in a fixed priority order (desktop entries, then
``$PATH`` executables) and deduplicated by name with first-found winning.
Unreadable directories and malformed files are skipped, never fatal.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from . import app_cache
from .desktop_entry import read_desktop_entry, strip_field_codes
from .entries import AppEntry, AppIdentity
from .prefs import PreferenceStore
from .scoring import enrich

logger = logging.getLogger(__name__)

SYSTEM_DESKTOP_DIRS = (
    Path("/usr/share/applications"),
    Path("/usr/local/share/applications"),
    Path("/home/linuxbrew/.linuxbrew/share/applications"),
)
USER_DESKTOP_SUBDIR = Path(".local/share/applications")
EXCLUDED_PATH_SEGMENTS = ("/sbin", "/games", "/lib")
EXECUTABLE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def default_desktop_dirs() -> list[Path]:
    """System directories first, then the per-user applications directory."""
    return [*SYSTEM_DESKTOP_DIRS, Path.home() / USER_DESKTOP_SUBDIR]


def simple_executable_name(exec_command: str) -> str:
    """Basename of the first token of a launch command (``""`` when empty)."""
    tokens = exec_command.split()
    if not tokens:
        return ""
    return os.path.basename(tokens[0]) or tokens[0]


def _sorted_dir_entries(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as entries:
            children = list(entries)
    except OSError as exc:
        logger.debug("skipping source directory %s: %s", directory, exc)
        return []
    children.sort(key=lambda entry: entry.name)
    return children


def iter_desktop_identities(directories: Iterable[Path], known_execs: set[str]) -> Iterator[AppIdentity]:
    """Yield identities from ``*.desktop`` files, non-recursively per directory.

    The simple executable name of every accepted entry is added to
    ``known_execs`` so later ``$PATH`` scanning can suppress duplicates.
    """
    for directory in directories:
        for child in _sorted_dir_entries(directory):
            if not child.name.endswith(".desktop"):
                continue
            section = read_desktop_entry(Path(child.path))
            if section is None:
                logger.debug("skipping unparseable desktop entry %s", child.path)
                continue
            if section.get("NoDisplay", "").strip().lower() == "true":
                continue
            name = section.get("Name", "").strip()
            exec_command = strip_field_codes(section.get("Exec", ""))
            if not name or not exec_command:
                continue
            known_execs.add(simple_executable_name(exec_command))
            yield AppIdentity(name=name, exec=exec_command, is_cli_only=False)


def path_search_dirs(path_value: str | None = None) -> list[Path]:
    """Split ``$PATH`` and drop ``sbin``/``games``/``lib`` directories."""
    if path_value is None:
        path_value = os.environ.get("PATH", "")
    dirs: list[Path] = []
    for raw in path_value.split(os.pathsep):
        if not raw:
            continue
        if any(segment in raw for segment in EXCLUDED_PATH_SEGMENTS):
            continue
        dirs.append(Path(raw))
    return dirs


def _is_executable_file(entry: os.DirEntry[str]) -> bool:
    try:
        if not entry.is_file():
            return False
        mode = entry.stat().st_mode
    except OSError:
        return False
    return bool(mode & EXECUTABLE_BITS)


def iter_path_identities(directories: Iterable[Path], known_execs: set[str]) -> Iterator[AppIdentity]:
    """Yield command-line executables not already provided by a desktop entry."""
    for directory in directories:
        for child in _sorted_dir_entries(directory):
            name = child.name
            if "." in name or name in known_execs:
                continue
            if not _is_executable_file(child):
                continue
            yield AppIdentity(name=name, exec=name, is_cli_only=True)


def scan_identities(
    desktop_dirs: Iterable[Path] | None = None,
    path_dirs: Iterable[Path] | None = None,
) -> list[AppIdentity]:
    """Enumerate every source in priority order and deduplicate by name."""
    if desktop_dirs is None:
        desktop_dirs = default_desktop_dirs()
    if path_dirs is None:
        path_dirs = path_search_dirs()

    known_execs: set[str] = set()
    sources: list[Callable[[], Iterator[AppIdentity]]] = [
        lambda: iter_desktop_identities(desktop_dirs, known_execs),
        lambda: iter_path_identities(path_dirs, known_execs),
    ]

    identities: list[AppIdentity] = []
    seen_names: set[str] = set()
    for source in sources:
        for identity in source():
            if identity.name in seen_names:
                continue
            seen_names.add(identity.name)
            identities.append(identity)
    return identities


def scan_apps_fresh(
    store: PreferenceStore,
    cache_path: Path | None = None,
    now: int | None = None,
) -> list[AppEntry]:
    """Full enumeration; writes the discovery cache and returns the ranked list."""
    identities = scan_identities()
    app_cache.save_app_cache(identities, cache_path)
    return enrich(identities, store.lookup_all(), now)


def load_apps(store: PreferenceStore, cache_path: Path | None = None, now: int | None = None) -> list[AppEntry]:
    """Return the ranked app list, using the discovery cache when it is usable."""
    cached = app_cache.load_app_cache(cache_path)
    if cached is None:
        return scan_apps_fresh(store, cache_path, now)
    return enrich(cached, store.lookup_all(), now)


def rebuild_app_cache(cache_path: Path | None = None) -> list[AppIdentity]:
    """Re-enumerate all sources and overwrite the cache regardless of its state."""
    identities = scan_identities()
    app_cache.save_app_cache(identities, cache_path)
    return identities
