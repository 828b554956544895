"""Score composition and preference enrichment.

Derived values are always recomputed from current preference data; nothing
computed here is ever persisted.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping

from .entries import AppEntry, AppIdentity, PreferenceRecord

USAGE_WEIGHT = 10
DORMANT_AFTER_SECONDS = 30 * 24 * 60 * 60

_DEFAULT_RECORD = PreferenceRecord()


def compose_score(record: PreferenceRecord, now: int) -> tuple[int, bool]:
    """Return ``(total_score, is_dormant)`` for one preference record.

    Dormancy requires a recorded launch strictly more than 30 days before
    ``now``; a never-used entity (``last_used == 0``) is not dormant.
    """
    total_score = record.score + record.usage * USAGE_WEIGHT
    is_dormant = record.last_used != 0 and (now - record.last_used) > DORMANT_AFTER_SECONDS
    return total_score, is_dormant


def ranking_key(entry: AppEntry) -> tuple[int, str]:
    """Sort key for the full app list: score descending, then name ascending."""
    return (-entry.total_score, entry.name)


def enrich(
    identities: Iterable[AppIdentity],
    preferences: Mapping[str, PreferenceRecord],
    now: int | None = None,
) -> list[AppEntry]:
    """Join identities with preference data and return the ranked list.

    ``preferences`` is expected to come from a single bulk read of the store.
    """
    if now is None:
        now = int(time.time())
    entries: list[AppEntry] = []
    for identity in identities:
        total_score, is_dormant = compose_score(preferences.get(identity.name, _DEFAULT_RECORD), now)
        entries.append(AppEntry(identity=identity, total_score=total_score, is_dormant=is_dormant))
    entries.sort(key=ranking_key)
    return entries
