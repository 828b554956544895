"""Shared fuzzy matcher and the in-memory app ranking pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from ..entries import AppEntry

APP_RESULT_LIMIT = 50
PARALLEL_MIN_CANDIDATES = 256
MAX_SCORING_WORKERS = 8


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score ``query`` as a case-folded subsequence of ``candidate``.

    Contiguous runs and matches at word boundaries score higher, gaps and
    long candidates score lower. Returns ``None`` when some query character
    cannot be matched in order.
    """
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def _score_chunk(query: str, candidates: Sequence[str]) -> list[int | None]:
    return [fuzzy_score(query, candidate) for candidate in candidates]


def score_candidates(
    query: str,
    candidates: Sequence[str],
    *,
    max_workers: int = MAX_SCORING_WORKERS,
    parallel_min_candidates: int = PARALLEL_MIN_CANDIDATES,
) -> list[int | None]:
    """Score every candidate, fanning out over a thread pool for large inputs.

    The returned list is aligned with ``candidates``; scoring order across
    workers does not matter because results are gathered by position.
    """
    if len(candidates) < parallel_min_candidates or max_workers <= 1:
        return _score_chunk(query, candidates)

    workers = min(max_workers, len(candidates))
    chunk_size = -(-len(candidates) // workers)
    chunks = [candidates[start : start + chunk_size] for start in range(0, len(candidates), chunk_size)]
    scores: list[int | None] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rula-fuzzy") as executor:
        for chunk_scores in executor.map(lambda chunk: _score_chunk(query, chunk), chunks):
            scores.extend(chunk_scores)
    return scores


def visible_apps(apps: Sequence[AppEntry], show_dormant: bool) -> list[AppEntry]:
    """Project out dormant entries unless requested; relative order is kept."""
    if show_dormant:
        return list(apps)
    return [app for app in apps if not app.is_dormant]


def rank_apps(
    query: str,
    apps: Sequence[AppEntry],
    *,
    limit: int = APP_RESULT_LIMIT,
    show_dormant: bool = False,
    max_workers: int = MAX_SCORING_WORKERS,
) -> list[AppEntry]:
    """Rank ``apps`` (already sorted by total score) against ``query``.

    An empty query returns the whole list. Otherwise matches are ordered by
    affinity, then total score, then name, and capped at ``limit`` before the
    dormancy filter is applied.
    """
    if not query:
        return visible_apps(apps, show_dormant)

    scores = score_candidates(query, [app.name for app in apps], max_workers=max_workers)
    scored = [(score, app) for score, app in zip(scores, apps) if score is not None]
    scored.sort(key=lambda item: (-item[0], -item[1].total_score, item[1].name))
    matched = [app for _score, app in scored[: max(1, limit)]]
    return visible_apps(matched, show_dormant)
