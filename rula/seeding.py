"""Bulk seeding of base scores from an external package database.

The package database is reached through a ``SeedSource``; the bundled
``PacmanSeedSource`` lists binaries of explicitly installed pacman packages.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Protocol

from .prefs import PreferenceStore

logger = logging.getLogger(__name__)

DEFAULT_SEED_SCORE = 50


class SeedSource(Protocol):
    def binary_names(self) -> Iterable[str]: ...


class PacmanSeedSource:
    """Binaries under ``bin_dir`` owned by explicitly installed pacman packages."""

    def __init__(self, bin_dir: str = "/usr/bin/") -> None:
        self.bin_dir = bin_dir.rstrip("/") + "/"

    def _run(self, args: list[str]) -> str | None:
        try:
            proc = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.debug("seed source command %s failed: %s", args[0], exc)
            return None
        return proc.stdout

    def binary_names(self) -> list[str]:
        if shutil.which("pacman") is None:
            logger.debug("pacman not found; nothing to seed")
            return []
        packages_text = self._run(["pacman", "-Qqe"])
        if not packages_text:
            return []
        packages = packages_text.split()
        listing = self._run(["pacman", "-Ql", *packages])
        if not listing:
            return []

        names: list[str] = []
        for line in listing.splitlines():
            parts = line.split()
            if len(parts) < 2 or not parts[1].startswith(self.bin_dir) or parts[1].endswith("/"):
                continue
            name = PurePosixPath(parts[1]).name
            if name:
                names.append(name)
        return names


def seed_preferences(store: PreferenceStore, source: SeedSource, score: int = DEFAULT_SEED_SCORE) -> int:
    """Set ``score`` as the base score of every distinct name from ``source``.

    Returns the number of names whose upsert succeeded. Re-running with the
    same source leaves the store unchanged.
    """
    seeded = 0
    seen: set[str] = set()
    for name in source.binary_names():
        if name in seen:
            continue
        seen.add(name)
        if store.set_base_score(name, score):
            seeded += 1
    return seeded
