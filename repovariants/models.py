"""Core data models shared across repovariants components."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

NO_COMMITS_LABEL = "NO COMMITS"
UNKNOWN_EPOCH_LABEL = "N/A"
UNKNOWN_BRANCH = "UNKNOWN"


def format_epoch(epoch: int) -> str:
    """Render an epoch as local time, or ``N/A`` for the unknown sentinel 0."""
    if not epoch:
        return UNKNOWN_EPOCH_LABEL
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M:%S")


class ChangeKind(str, Enum):
    """Classification of one `git status --porcelain` entry."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNTRACKED = "untracked"
    UNMODIFIED = "unmodified"


class DiffCategory(str, Enum):
    """Kinds of discrepancy between Best and another variant."""

    ONLY_IN_BEST = "only-in-best"
    ONLY_IN_OTHER = "only-in-other"
    CONTENT_DIFFERS = "content-differs"


@dataclass(frozen=True)
class StatusEntry:
    """One changed path reported by the working-tree status."""

    index: str
    worktree: str
    path: str
    kind: ChangeKind

    @property
    def staged(self) -> bool:
        return self.index not in (" ", "?", "!")

    @property
    def unstaged(self) -> bool:
        return self.worktree not in (" ", "?", "!")


@dataclass
class RepositoryCandidate:
    """Metadata describing one discovered copy of a repository."""

    path: str
    branch_name: str = UNKNOWN_BRANCH
    last_commit_epoch: int = 0
    last_commit_human: str = NO_COMMITS_LABEL
    dirty_flag: bool = False
    staged_count: int = 0
    unstaged_count: int = 0
    untracked_count: int = 0
    ahead_count: int = 0
    behind_count: int = 0
    has_upstream: bool = False
    latest_file_epoch: int = 0
    latest_file_path: str = ""
    changes: List[StatusEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def activity_epoch(self) -> int:
        """The more recent of the last commit and the newest file modification."""
        return max(self.last_commit_epoch, self.latest_file_epoch)

    @property
    def activity_human(self) -> str:
        return format_epoch(self.activity_epoch)

    @property
    def latest_file_human(self) -> str:
        return format_epoch(self.latest_file_epoch)

    @property
    def dirty_label(self) -> str:
        return "dirty" if self.dirty_flag else "clean"

    @property
    def name(self) -> str:
        return os.path.basename(os.path.normpath(self.path))


@dataclass(frozen=True)
class DiffRecord:
    """One classified discrepancy between Best and another variant."""

    category: DiffCategory
    relative_path: str
    other_repo_path: str
    best_checksum: Optional[str] = None
    other_checksum: Optional[str] = None
    detail: Optional[str] = None

    @property
    def is_anomaly(self) -> bool:
        """True when the path could not be read and was recorded as differing."""
        return self.detail is not None


@dataclass
class DiffSummary:
    """Category counts with per-subdirectory and per-extension breakdowns."""

    only_in_best: int = 0
    only_in_other: int = 0
    content_differs: int = 0
    by_top_level: Dict[str, Dict[str, int]] = field(default_factory=dict)
    by_extension: Dict[str, Dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.only_in_best + self.only_in_other + self.content_differs

    def as_counts(self) -> Dict[str, int]:
        return {
            "only_in_best": self.only_in_best,
            "only_in_other": self.only_in_other,
            "content_differs": self.content_differs,
        }


@dataclass
class DiffReport:
    """Outcome of comparing Best against one other variant."""

    best_path: str
    other_path: str
    mode: str
    summary: DiffSummary
    records: List[DiffRecord] = field(default_factory=list)
    artifact_path: Optional[Path] = None


@dataclass(frozen=True)
class TimelineRow:
    """One row of the forensic activity timeline."""

    activity_epoch: int
    activity_human: str
    path: str
    branch_name: str
    bar_width: int


@dataclass
class ForensicReport:
    """Candidates in timeline order plus the activity range used for scaling."""

    candidates: List[RepositoryCandidate]
    rows: List[TimelineRow]
    min_activity_epoch: int
    max_activity_epoch: int
    probable_last_active: Optional[RepositoryCandidate]


@dataclass
class RankedResult:
    """Everything produced by one comparison run, ready for rendering."""

    root_path: str
    name_prefix: str
    run_stamp: str
    candidates: List[RepositoryCandidate]
    best: Optional[RepositoryCandidate] = None
    diff_reports: List[DiffReport] = field(default_factory=list)
    forensic: Optional[ForensicReport] = None
    artifacts: List[Path] = field(default_factory=list)

    @property
    def best_path(self) -> Optional[str]:
        return self.best.path if self.best is not None else None
