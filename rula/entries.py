"""Domain datatypes for discovered launchable entities.

``AppIdentity`` is the stable part persisted in the discovery cache.
``PreferenceRecord`` mirrors one preference-store row. ``AppEntry`` joins an
identity with the derived ranking view and is never serialized.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AppIdentity:
    """Stable identity of one launchable entity; ``name`` is the dedup key."""

    name: str
    exec: str
    is_cli_only: bool


@dataclass(frozen=True)
class PreferenceRecord:
    """Per-entity usage statistics and manual flags."""

    is_tui: bool = False
    score: int = 0
    usage: int = 0
    last_used: int = 0  # epoch seconds, 0 = never


@dataclass(frozen=True)
class AppEntry:
    """Ranking-ready entity: identity plus values derived from preferences."""

    identity: AppIdentity
    total_score: int = 0
    is_dormant: bool = False

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def exec(self) -> str:
        return self.identity.exec

    @property
    def is_cli_only(self) -> bool:
        return self.identity.is_cli_only


__all__ = [
    "AppEntry",
    "AppIdentity",
    "PreferenceRecord",
]
