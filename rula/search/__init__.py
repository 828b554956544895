"""Search package exports.

Combines the shared fuzzy matcher, app ranking, and file search in one
import surface.
"""

from __future__ import annotations

from .files import FILE_RESULT_LIMIT, FILE_SEARCH_MAX_DEPTH, iter_search_files, rank_files
from .fuzzy import APP_RESULT_LIMIT, fuzzy_score, rank_apps, score_candidates, visible_apps

__all__ = [
    "APP_RESULT_LIMIT",
    "FILE_RESULT_LIMIT",
    "FILE_SEARCH_MAX_DEPTH",
    "fuzzy_score",
    "iter_search_files",
    "rank_apps",
    "rank_files",
    "score_candidates",
    "visible_apps",
]
