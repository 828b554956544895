"""Query-driven file search over a bounded directory walk.

Candidates are pre-filtered while walking and collection stops at a fixed
multiple of the requested limit, so large trees terminate early. ``rg`` is
used for the walk when installed; otherwise ``os.walk`` with the git-backed
ignore matcher plus the patterns of any ``.ignore`` files, which ``rg`` also
honors.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

from ..gitignore import GitIgnoreMatcher, get_gitignore_matcher
from .fuzzy import MAX_SCORING_WORKERS, score_candidates

logger = logging.getLogger(__name__)

FILE_RESULT_LIMIT = 50
FILE_SEARCH_MAX_DEPTH = 5
CANDIDATE_CAP_MULTIPLIER = 10
IGNORE_FILENAME = ".ignore"


def to_search_relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def contains_query_chars(query_folded: str, candidate: str) -> bool:
    """Cheap pre-filter: every query character occurs somewhere in ``candidate``."""
    candidate_folded = candidate.casefold()
    return all(char in candidate_folded for char in query_folded)


def read_ignore_rules(directory: Path) -> list[tuple[Path, str, bool, bool]]:
    """Parse ``directory/.ignore`` into ``(base, pattern, anchored, dir_only)`` rules.

    Blank lines, comments and ``!`` negations are skipped. A pattern holding a
    slash matches the path relative to ``directory``; otherwise it matches any
    name below it.
    """
    try:
        text = (directory / IGNORE_FILENAME).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    rules = []
    for line in text.splitlines():
        pattern = line.strip()
        if not pattern or pattern.startswith(("#", "!")):
            continue
        dir_only = pattern.endswith("/")
        pattern = pattern.rstrip("/")
        anchored = "/" in pattern
        pattern = pattern.lstrip("/")
        if pattern:
            rules.append((directory, pattern, anchored, dir_only))
    return rules


def is_ignored_by_rules(path: Path, is_dir: bool, rules: list[tuple[Path, str, bool, bool]]) -> bool:
    for base, pattern, anchored, dir_only in rules:
        if dir_only and not is_dir:
            continue
        if anchored:
            try:
                target = path.relative_to(base).as_posix()
            except ValueError:
                continue
        else:
            target = path.name
        if fnmatch.fnmatchcase(target, pattern):
            return True
    return False


def _iter_files_walk(
    root: Path,
    max_depth: int,
    show_hidden: bool,
    skip_gitignored: bool,
) -> Iterator[Path]:
    """Yield files up to ``max_depth`` levels below ``root`` in sorted order.

    A nested directory holding ``.git`` switches to that repository's ignore
    matcher for its subtree. ``.ignore`` rules apply to the directory that
    holds the file and everything below it.
    """
    root_matcher = get_gitignore_matcher(root) if skip_gitignored else None
    matchers: dict[str, GitIgnoreMatcher | None] = {str(root): root_matcher}
    inherited_rules: dict[str, list[tuple[Path, str, bool, bool]]] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        depth = 0 if base == root else len(base.relative_to(root).parts)
        matcher = matchers.pop(dirpath, None)
        if skip_gitignored and base != root and (base / ".git").exists():
            matcher = get_gitignore_matcher(base) or matcher
        rules = inherited_rules.pop(dirpath, [])
        if skip_gitignored:
            rules = rules + read_ignore_rules(base)

        if not show_hidden:
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
            filenames = [name for name in filenames if not name.startswith(".")]
        if matcher is not None:
            dirnames[:] = [name for name in dirnames if not matcher.is_ignored(base / name)]
            filenames = [name for name in filenames if not matcher.is_ignored(base / name)]
        if rules:
            dirnames[:] = [name for name in dirnames if not is_ignored_by_rules(base / name, True, rules)]
            filenames = [name for name in filenames if not is_ignored_by_rules(base / name, False, rules)]
        if depth + 1 >= max_depth:
            dirnames[:] = []
        dirnames.sort(key=str.lower)
        filenames.sort(key=str.lower)
        for name in dirnames:
            matchers[os.path.join(dirpath, name)] = matcher
            inherited_rules[os.path.join(dirpath, name)] = rules

        for filename in filenames:
            path = base / filename
            if path.is_file():
                yield path


def _open_rg_files(root: Path, max_depth: int, show_hidden: bool, skip_gitignored: bool) -> subprocess.Popen | None:
    if shutil.which("rg") is None:
        return None

    cmd = ["rg", "--files", "--sort", "path", "--max-depth", str(max_depth)]
    if not skip_gitignored:
        cmd.append("--no-ignore")
    if show_hidden:
        cmd.append("--hidden")

    try:
        return subprocess.Popen(
            cmd,
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        logger.debug("rg unavailable, falling back to os.walk: %s", exc)
        return None


def _iter_files_rg(proc: subprocess.Popen, root: Path, show_hidden: bool) -> Iterator[Path]:
    try:
        assert proc.stdout is not None
        for raw in proc.stdout:
            relative = raw.rstrip("\r\n")
            if not relative:
                continue
            relative_path = Path(relative)
            if relative_path.is_absolute() or ".." in relative_path.parts:
                continue
            if not show_hidden and any(part.startswith(".") for part in relative_path.parts):
                continue
            yield root / relative_path
    finally:
        if proc.poll() is None:
            proc.kill()
        proc.communicate()


def iter_search_files(
    root: Path,
    *,
    max_depth: int = FILE_SEARCH_MAX_DEPTH,
    show_hidden: bool = False,
    skip_gitignored: bool = True,
    use_rg: bool = True,
) -> Iterator[Path]:
    """Lazily yield walkable files below ``root``; closing the iterator stops the walk."""
    proc = _open_rg_files(root, max_depth, show_hidden, skip_gitignored) if use_rg else None
    if proc is not None:
        return _iter_files_rg(proc, root, show_hidden)
    return _iter_files_walk(root, max_depth, show_hidden, skip_gitignored)


def collect_candidates(query: str, root: Path, cap: int, **walk_options: object) -> list[tuple[Path, str]]:
    """Walk ``root`` keeping pre-filtered ``(path, label)`` pairs, up to ``cap`` of them."""
    query_folded = query.casefold()
    candidates: list[tuple[Path, str]] = []
    files = iter_search_files(root, **walk_options)
    try:
        for path in files:
            label = to_search_relative(path, root)
            if not contains_query_chars(query_folded, label):
                continue
            candidates.append((path, label))
            if len(candidates) >= cap:
                break
    finally:
        close = getattr(files, "close", None)
        if close is not None:
            close()
    return candidates


def rank_files(
    query: str,
    root: Path | None = None,
    *,
    limit: int = FILE_RESULT_LIMIT,
    max_depth: int = FILE_SEARCH_MAX_DEPTH,
    show_hidden: bool = False,
    skip_gitignored: bool = True,
    use_rg: bool = True,
    max_workers: int = MAX_SCORING_WORKERS,
) -> list[str]:
    """Return up to ``limit`` file paths below ``root`` ranked by fuzzy affinity.

    An empty query returns nothing without touching the filesystem. Labels
    are matched relative to ``root``; ties in affinity keep walk order.
    """
    if not query:
        return []
    if root is None:
        root = Path.home()
    max_results = max(1, limit)

    candidates = collect_candidates(
        query,
        root,
        max_results * CANDIDATE_CAP_MULTIPLIER,
        max_depth=max_depth,
        show_hidden=show_hidden,
        skip_gitignored=skip_gitignored,
        use_rg=use_rg,
    )
    scores = score_candidates(query, [label for _path, label in candidates], max_workers=max_workers)
    scored = [(score, path) for score, (path, _label) in zip(scores, candidates) if score is not None]
    scored.sort(key=lambda item: -item[0])
    return [str(path) for _score, path in scored[:max_results]]
