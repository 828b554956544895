"""Git-backed ignore rules for file-search walks.

Asks git which paths below a directory are ignored and answers membership
queries from that snapshot. Snapshots are cached per directory and reloaded
when the directory changes or the snapshot gets old.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path

MATCHER_CACHE_MAX = 32
MATCHER_CACHE_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class GitIgnoreMatcher:
    """Ignored files and directories below ``root`` as absolute paths."""

    root: Path
    ignored_files: frozenset[Path]
    ignored_dirs: frozenset[Path]

    def is_ignored(self, path: Path) -> bool:
        """Return whether ``path`` or one of its ancestors up to ``root`` is ignored."""
        if path in self.ignored_files:
            return True
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        current = self.root
        for part in relative.parts:
            current = current / part
            if current in self.ignored_dirs:
                return True
        return False


@dataclass(frozen=True)
class _CachedMatcher:
    matcher: GitIgnoreMatcher | None
    root_mtime_ns: int | None
    loaded_at: float


_MATCHER_CACHE: OrderedDict[Path, _CachedMatcher] = OrderedDict()


def clear_gitignore_cache() -> None:
    _MATCHER_CACHE.clear()


def _git_output(args: list[str]) -> bytes | None:
    try:
        proc = subprocess.run(
            ["git", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return proc.stdout


def _load_matcher(root: Path) -> GitIgnoreMatcher | None:
    """Build a matcher from ``git ls-files``; ``None`` outside a repository."""
    if shutil.which("git") is None:
        return None

    top_level = _git_output(["-C", str(root), "rev-parse", "--show-toplevel"])
    if not top_level or not top_level.strip():
        return None

    listing = _git_output(
        ["-C", str(root), "ls-files", "-z", "--others", "--ignored", "--exclude-standard", "--directory"]
    )
    if listing is None:
        return None

    ignored_files: set[Path] = set()
    ignored_dirs: set[Path] = set()
    for raw in listing.split(b"\x00"):
        if not raw:
            continue
        relative = raw.decode("utf-8", errors="replace")
        absolute = root / relative.rstrip("/")
        if relative.endswith("/"):
            ignored_dirs.add(absolute)
        else:
            ignored_files.add(absolute)

    return GitIgnoreMatcher(root=root, ignored_files=frozenset(ignored_files), ignored_dirs=frozenset(ignored_dirs))


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


def get_gitignore_matcher(root: Path) -> GitIgnoreMatcher | None:
    """Return the cached matcher for ``root``, reloading stale snapshots."""
    root_mtime_ns = _mtime_ns(root)
    now = time.monotonic()
    cached = _MATCHER_CACHE.get(root)
    if (
        cached is not None
        and cached.root_mtime_ns == root_mtime_ns
        and now - cached.loaded_at <= MATCHER_CACHE_TTL_SECONDS
    ):
        _MATCHER_CACHE.move_to_end(root)
        return cached.matcher

    matcher = _load_matcher(root)
    _MATCHER_CACHE[root] = _CachedMatcher(matcher=matcher, root_mtime_ns=root_mtime_ns, loaded_at=now)
    _MATCHER_CACHE.move_to_end(root)
    while len(_MATCHER_CACHE) > MATCHER_CACHE_MAX:
        _MATCHER_CACHE.popitem(last=False)
    return matcher
