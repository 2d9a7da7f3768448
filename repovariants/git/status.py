"""Classification of `git status --porcelain` output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..models import ChangeKind, StatusEntry

_BLANK = (" ", "?", "!")


@dataclass(frozen=True)
class StatusSummary:
    """Counts derived from one pass over the status entries."""

    staged: int = 0
    unstaged: int = 0
    untracked: int = 0

    @property
    def dirty(self) -> bool:
        return bool(self.staged or self.unstaged or self.untracked)


def classify_status(index: str, worktree: str) -> ChangeKind:
    """Map a two-character status code to a change kind.

    The index column wins when it carries a change, so ``AM`` is an addition
    that was edited again and ``RM`` is a rename.
    """
    if index == "?" and worktree == "?":
        return ChangeKind.UNTRACKED
    for column in (index, worktree):
        if column in _BLANK:
            continue
        if column == "A":
            return ChangeKind.ADDED
        if column == "D":
            return ChangeKind.DELETED
        if column in ("R", "C"):
            return ChangeKind.RENAMED
        return ChangeKind.MODIFIED
    return ChangeKind.UNMODIFIED


def parse_porcelain(output: str) -> List[StatusEntry]:
    """Parse porcelain v1 lines (``XY path`` or ``XY old -> new``) into entries."""
    entries: List[StatusEntry] = []
    for line in output.splitlines():
        if len(line) < 4 or not line.strip():
            continue
        index, worktree = line[0], line[1]
        path = line[3:]
        if " -> " in path and (index in ("R", "C") or worktree in ("R", "C")):
            path = path.split(" -> ", 1)[1]
        path = _unquote(path)
        entries.append(
            StatusEntry(index=index, worktree=worktree, path=path, kind=classify_status(index, worktree))
        )
    return entries


def summarize_status(entries: Iterable[StatusEntry]) -> StatusSummary:
    """Count staged, unstaged and untracked paths.

    A partially staged path (both columns set) counts in both buckets.
    """
    staged = unstaged = untracked = 0
    for entry in entries:
        if entry.kind is ChangeKind.UNTRACKED:
            untracked += 1
            continue
        if entry.staged:
            staged += 1
        if entry.unstaged:
            unstaged += 1
    return StatusSummary(staged=staged, unstaged=unstaged, untracked=untracked)


def group_by_kind(entries: Iterable[StatusEntry]) -> Dict[ChangeKind, List[str]]:
    """Group changed paths by kind, keeping only kinds that occur."""
    grouped: Dict[ChangeKind, List[str]] = {}
    for entry in entries:
        if entry.kind is ChangeKind.UNMODIFIED:
            continue
        grouped.setdefault(entry.kind, []).append(entry.path)
    return grouped


def _unquote(path: str) -> str:
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        inner = path[1:-1]
        return inner.replace('\\"', '"').replace("\\\\", "\\")
    return path


__all__ = ["StatusSummary", "classify_status", "group_by_kind", "parse_porcelain", "summarize_status"]
