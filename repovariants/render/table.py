"""Aligned terminal table with semantic colour classes."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..forensics import HEURISTIC_NOTE
from ..git.status import group_by_kind
from ..models import ChangeKind, DiffReport, RankedResult, RepositoryCandidate

_ANSI = {
    "warning": "\033[31m",
    "positive": "\033[32m",
    "caution": "\033[33m",
    "muted": "\033[36m",
    "highlight": "\033[1m",
    "reset": "\033[0m",
}

_TIMELINE_WIDTH = 40

_KIND_ORDER = (
    ChangeKind.MODIFIED,
    ChangeKind.ADDED,
    ChangeKind.DELETED,
    ChangeKind.RENAMED,
    ChangeKind.UNTRACKED,
)


class _Cell:
    __slots__ = ("text", "style")

    def __init__(self, text: object, style: Optional[str] = None) -> None:
        self.text = str(text)
        self.style = style


def _paint(text: str, style: Optional[str], color: bool) -> str:
    if not color or not style:
        return text
    return f"{_ANSI[style]}{text}{_ANSI['reset']}"


def _status_cell(candidate: RepositoryCandidate) -> _Cell:
    return _Cell(candidate.dirty_label, "warning" if candidate.dirty_flag else "muted")


def _count_cell(value: int, style: str) -> _Cell:
    return _Cell(value, style if value else None)


def _row_cells(candidate: RepositoryCandidate, is_best: bool, forensic: bool) -> List[_Cell]:
    cells = [
        _Cell("*" if is_best else "", "highlight" if is_best else None),
        _Cell(candidate.path, "highlight" if is_best else None),
        _Cell(candidate.branch_name),
        _Cell(candidate.last_commit_human),
        _status_cell(candidate),
        _count_cell(candidate.ahead_count, "positive"),
        _count_cell(candidate.behind_count, "caution"),
    ]
    if forensic:
        cells.extend(
            [
                _Cell(candidate.latest_file_human),
                _Cell(candidate.staged_count),
                _Cell(candidate.unstaged_count),
                _Cell(candidate.untracked_count),
                _Cell(candidate.activity_epoch),
            ]
        )
    return cells


def _headers(forensic: bool) -> List[str]:
    headers = ["", "Path", "Branch", "Last commit", "Status", "Ahead", "Behind"]
    if forensic:
        headers.extend(["Last file change", "Staged", "Unstaged", "Untracked", "Activity"])
    return headers


def _format_rows(headers: Sequence[str], rows: Sequence[Sequence[_Cell]], color: bool) -> List[str]:
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell.text))

    lines = ["  ".join(header.ljust(widths[i]) for i, header in enumerate(headers)).rstrip()]
    lines.append("  ".join("-" * width for width in widths))
    for row in rows:
        # Pad before painting so escape codes never skew the alignment.
        padded = [_paint(cell.text.ljust(widths[i]), cell.style, color) for i, cell in enumerate(row)]
        lines.append("  ".join(padded).rstrip())
    return lines


def _dirty_detail_lines(candidates: Sequence[RepositoryCandidate], color: bool) -> List[str]:
    lines: List[str] = []
    for candidate in candidates:
        if not candidate.dirty_flag:
            continue
        lines.append("")
        lines.append(_paint(f"Changes in {candidate.path}:", "warning", color))
        grouped = group_by_kind(candidate.changes)
        for kind in _KIND_ORDER:
            paths = grouped.get(kind)
            if not paths:
                continue
            lines.append(f"  {kind.value.capitalize()} ({len(paths)}):")
            lines.extend(f"    {path}" for path in paths)
    return lines


def _breakdown_lines(title: str, breakdown: Dict[str, Dict[str, int]]) -> List[str]:
    if not breakdown:
        return []
    lines = [f"  {title}:"]
    for key in sorted(breakdown):
        counts = breakdown[key]
        parts = ", ".join(f"{category}={counts[category]}" for category in sorted(counts))
        lines.append(f"    {key}: {parts}")
    return lines


def _diff_lines(report: DiffReport, grouped_summary: bool, color: bool) -> List[str]:
    summary = report.summary
    lines = [
        "",
        _paint(f"Best {report.best_path} vs {report.other_path}", "highlight", color),
        f"  only in best: {summary.only_in_best}  only in other: {summary.only_in_other}"
        f"  content differs: {summary.content_differs}",
    ]
    lines.extend(_breakdown_lines("by directory", summary.by_top_level))
    if grouped_summary:
        lines.extend(_breakdown_lines("by extension", summary.by_extension))
    if report.mode == "per-file":
        for record in report.records:
            line = f"  [{record.category.value}] {record.relative_path}"
            if record.best_checksum or record.other_checksum:
                line += f"  best={record.best_checksum or '-'} other={record.other_checksum or '-'}"
            if record.detail:
                line = _paint(f"{line}  ({record.detail})", "warning", color)
            lines.append(line)
    if report.artifact_path is not None:
        lines.append(f"  full diff: {report.artifact_path}")
    return lines


def _timeline_lines(result: RankedResult, color: bool) -> List[str]:
    forensic = result.forensic
    if forensic is None or not forensic.rows:
        return []
    lines = ["", "Activity timeline (most recent first):"]
    for row in forensic.rows:
        filled = max(1, row.bar_width * _TIMELINE_WIDTH // 100)
        bar = "#" * filled + " " * (_TIMELINE_WIDTH - filled)
        lines.append(f"  {row.activity_human}  |{bar}|  {row.path} ({row.branch_name})")
    last = forensic.probable_last_active
    if last is not None:
        lines.append("")
        lines.append(_paint(f"Probable last active: {last.path} ({last.activity_human})", "highlight", color))
        lines.append(f"  {HEURISTIC_NOTE}")
    return lines


def render_table(
    result: RankedResult,
    *,
    color: bool = False,
    dirty_detail: bool = False,
    grouped_summary: bool = False,
) -> str:
    """Render ``result.candidates`` in the order given, marking Best with ``*``."""
    forensic = result.forensic is not None
    rows = [
        _row_cells(candidate, candidate is result.best, forensic)
        for candidate in result.candidates
    ]
    lines = _format_rows(_headers(forensic), rows, color)

    warned = [candidate for candidate in result.candidates if candidate.warnings]
    if warned:
        lines.append("")
        lines.append(_paint("Warnings:", "caution", color))
        for candidate in warned:
            for warning in candidate.warnings:
                lines.append(f"  {candidate.path}: {warning}")

    if dirty_detail:
        lines.extend(_dirty_detail_lines(result.candidates, color))
    for report in result.diff_reports:
        lines.extend(_diff_lines(report, grouped_summary, color))
    lines.extend(_timeline_lines(result, color))
    return "\n".join(lines) + "\n"


__all__ = ["render_table"]
