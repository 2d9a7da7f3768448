"""JSON and CSV renderers plus the dictionary views they share."""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Dict, List, Optional

from ..git.status import group_by_kind
from ..models import DiffReport, ForensicReport, RankedResult, RepositoryCandidate

CSV_COLUMNS = [
    "best",
    "path",
    "branch",
    "last_commit_epoch",
    "last_commit",
    "dirty",
    "staged",
    "unstaged",
    "untracked",
    "ahead",
    "behind",
    "has_upstream",
    "latest_file_epoch",
    "latest_file_path",
    "activity_epoch",
    "warnings",
]


def candidate_to_dict(
    candidate: RepositoryCandidate,
    *,
    is_best: bool,
    dirty_detail: bool = False,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "path": candidate.path,
        "name": candidate.name,
        "branch": candidate.branch_name,
        "last_commit_epoch": candidate.last_commit_epoch,
        "last_commit": candidate.last_commit_human,
        "dirty": candidate.dirty_flag,
        "staged": candidate.staged_count,
        "unstaged": candidate.unstaged_count,
        "untracked": candidate.untracked_count,
        "ahead": candidate.ahead_count,
        "behind": candidate.behind_count,
        "has_upstream": candidate.has_upstream,
        "latest_file_epoch": candidate.latest_file_epoch,
        "latest_file_path": candidate.latest_file_path,
        "activity_epoch": candidate.activity_epoch,
        "best": is_best,
        "warnings": list(candidate.warnings),
    }
    if dirty_detail:
        data["changes"] = {
            kind.value: paths for kind, paths in group_by_kind(candidate.changes).items()
        }
    return data


def diff_report_to_dict(report: DiffReport) -> Dict[str, Any]:
    summary = report.summary
    data: Dict[str, Any] = {
        "best_path": report.best_path,
        "other_path": report.other_path,
        "mode": report.mode,
        "summary": summary.as_counts(),
        "by_top_level": summary.by_top_level,
        "by_extension": summary.by_extension,
        "artifact_path": str(report.artifact_path) if report.artifact_path else None,
    }
    if report.mode == "per-file":
        data["records"] = [
            {
                "category": record.category.value,
                "relative_path": record.relative_path,
                "best_checksum": record.best_checksum,
                "other_checksum": record.other_checksum,
                "detail": record.detail,
            }
            for record in report.records
        ]
    return data


def forensic_to_dict(report: Optional[ForensicReport]) -> Optional[Dict[str, Any]]:
    if report is None:
        return None
    last = report.probable_last_active
    return {
        "min_activity_epoch": report.min_activity_epoch,
        "max_activity_epoch": report.max_activity_epoch,
        "probable_last_active": last.path if last is not None else None,
        "timeline": [
            {
                "activity_epoch": row.activity_epoch,
                "activity": row.activity_human,
                "path": row.path,
                "branch": row.branch_name,
                "bar_width": row.bar_width,
            }
            for row in report.rows
        ],
    }


def render_json(result: RankedResult, *, dirty_detail: bool = False) -> str:
    """One object per candidate, in display order, each with an explicit ``best`` flag."""
    payload: List[Dict[str, Any]] = [
        candidate_to_dict(candidate, is_best=candidate is result.best, dirty_detail=dirty_detail)
        for candidate in result.candidates
    ]
    return json.dumps(payload, indent=2) + "\n"


def render_csv(result: RankedResult) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for candidate in result.candidates:
        row = candidate_to_dict(candidate, is_best=candidate is result.best)
        row["warnings"] = "; ".join(row["warnings"])
        writer.writerow(row)
    return buffer.getvalue()


__all__ = [
    "CSV_COLUMNS",
    "candidate_to_dict",
    "diff_report_to_dict",
    "forensic_to_dict",
    "render_csv",
    "render_json",
]
