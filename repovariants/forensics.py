"""Activity timeline and "probable last active" analysis."""

from __future__ import annotations

from typing import Iterable, List

from .models import ForensicReport, RepositoryCandidate, TimelineRow

MIN_BAR_WIDTH = 5
HEURISTIC_NOTE = (
    "heuristic: newest commit or file modification, not proof of the authoritative copy"
)


def bar_width(activity_epoch: int, min_epoch: int, max_epoch: int) -> int:
    """Scale an activity epoch into [MIN_BAR_WIDTH, 100] relative to the observed range."""
    span = max(1, max_epoch - min_epoch)
    width = (activity_epoch - min_epoch) * 100 // span
    return max(MIN_BAR_WIDTH, min(100, width))


def build_forensic_report(candidates: Iterable[RepositoryCandidate]) -> ForensicReport:
    """Order candidates by activity (newest first) and compute timeline rows."""
    ordered: List[RepositoryCandidate] = sorted(
        candidates, key=lambda c: (-c.activity_epoch, c.path)
    )
    if not ordered:
        return ForensicReport(
            candidates=[],
            rows=[],
            min_activity_epoch=0,
            max_activity_epoch=0,
            probable_last_active=None,
        )

    epochs = [candidate.activity_epoch for candidate in ordered]
    min_epoch, max_epoch = min(epochs), max(epochs)
    rows = [
        TimelineRow(
            activity_epoch=candidate.activity_epoch,
            activity_human=candidate.activity_human,
            path=candidate.path,
            branch_name=candidate.branch_name,
            bar_width=bar_width(candidate.activity_epoch, min_epoch, max_epoch),
        )
        for candidate in ordered
    ]
    return ForensicReport(
        candidates=ordered,
        rows=rows,
        min_activity_epoch=min_epoch,
        max_activity_epoch=max_epoch,
        probable_last_active=ordered[0],
    )


__all__ = ["HEURISTIC_NOTE", "MIN_BAR_WIDTH", "bar_width", "build_forensic_report"]
