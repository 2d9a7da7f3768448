"""Deterministic ordering of repository candidates."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError
from .models import RepositoryCandidate

RankingKey = Tuple[int, int, int, int, str]


def ranking_key(candidate: RepositoryCandidate) -> RankingKey:
    """Sort key for the best-variant heuristic; ascending order puts Best first.

    Keys, each breaking ties in the previous one: dirty before clean, newer
    activity first, more commits ahead first, fewer commits behind first, then
    path ascending. Paths are unique, so the order is total.
    """
    return (
        0 if candidate.dirty_flag else 1,
        -candidate.activity_epoch,
        -candidate.ahead_count,
        candidate.behind_count,
        candidate.path,
    )


def _timestamp_key(candidate: RepositoryCandidate) -> Tuple[int, str]:
    return (-candidate.activity_epoch, candidate.path)


def _dirty_key(candidate: RepositoryCandidate) -> Tuple[int, str]:
    return (0 if candidate.dirty_flag else 1, candidate.path)


_SORT_KEYS: Dict[str, Callable[[RepositoryCandidate], tuple]] = {
    "best": ranking_key,
    "timestamp": _timestamp_key,
    "dirty": _dirty_key,
}


def rank_candidates(candidates: Iterable[RepositoryCandidate]) -> List[RepositoryCandidate]:
    """Return candidates ordered by the best-variant heuristic."""
    return sorted(candidates, key=ranking_key)


def select_best(candidates: Iterable[RepositoryCandidate]) -> Optional[RepositoryCandidate]:
    """Return the single top-ranked candidate, or None when there are none."""
    ranked = rank_candidates(candidates)
    return ranked[0] if ranked else None


def order_candidates(
    candidates: Iterable[RepositoryCandidate], sort_mode: str = "best"
) -> List[RepositoryCandidate]:
    """Order candidates for display using ``best``, ``timestamp`` or ``dirty``."""
    try:
        key = _SORT_KEYS[sort_mode]
    except KeyError:
        raise ConfigurationError(f"Invalid sort mode: {sort_mode!r}") from None
    return sorted(candidates, key=key)


__all__ = ["RankingKey", "order_candidates", "rank_candidates", "ranking_key", "select_best"]
