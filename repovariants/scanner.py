"""Per-repository metadata extraction."""

from __future__ import annotations

import os
import stat
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence, Tuple, TypeVar

from .config import DEFAULT_EXCLUDE_DIRS
from .errors import PartialScanError
from .git import GitClient, summarize_status
from .logging import get_logger
from .models import NO_COMMITS_LABEL, UNKNOWN_BRANCH, RepositoryCandidate, format_epoch

_T = TypeVar("_T")


def truncate_ns(mtime_ns: int) -> int:
    """Convert nanoseconds to whole epoch seconds, truncating toward zero."""
    seconds = abs(mtime_ns) // 1_000_000_000
    return seconds if mtime_ns >= 0 else -seconds


def latest_file_change(
    root: Path,
    *,
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Tuple[int, str]:
    """Return ``(epoch, path)`` of the most recently modified regular file below ``root``.

    Excluded directories are pruned before descending. Unreadable directories
    and files are skipped. Ties on the timestamp go to the lexicographically
    greatest path. An empty tree yields ``(0, "")``. Raises ``PartialScanError``
    once ``deadline`` (a ``clock`` value) has passed.
    """
    excluded = set(exclude_dirs)
    best: Tuple[int, str] = (0, "")

    for dirpath, dirnames, filenames in os.walk(root, onerror=lambda _err: None):
        if deadline is not None and clock() > deadline:
            raise PartialScanError(f"latest-file scan exceeded its time budget in {dirpath}")
        dirnames[:] = [name for name in dirnames if name not in excluded]
        for filename in filenames:
            full_path = os.path.join(dirpath, filename)
            try:
                stat_result = os.lstat(full_path)
            except OSError:
                continue
            if not stat.S_ISREG(stat_result.st_mode):
                continue
            entry = (truncate_ns(stat_result.st_mtime_ns), full_path)
            if entry > best:
                best = entry
    return best


class MetadataScanner:
    """Collects branch, commit, status, upstream and file-activity metadata for a repository."""

    def __init__(
        self,
        git: GitClient | None = None,
        *,
        exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.git = git or GitClient(timeout=timeout)
        self.exclude_dirs = tuple(exclude_dirs)
        self.timeout = timeout
        self._clock = clock
        self.logger = get_logger("scanner")

    def scan(self, path: str) -> RepositoryCandidate:
        """Return a candidate for ``path``; query failures become sentinels plus warnings."""
        repo = Path(path)
        candidate = RepositoryCandidate(path=str(repo))
        deadline = self._clock() + self.timeout if self.timeout is not None else None
        self.logger.debug("Scanning %s", repo)

        candidate.branch_name = self._guarded(
            candidate, "branch", lambda: self.git.branch_name(repo), UNKNOWN_BRANCH
        )

        commit_epoch = self._guarded(
            candidate, "last commit", lambda: self.git.last_commit_epoch(repo), 0
        )
        candidate.last_commit_epoch = commit_epoch
        candidate.last_commit_human = format_epoch(commit_epoch) if commit_epoch else NO_COMMITS_LABEL

        entries = self._guarded(candidate, "status", lambda: self.git.status_entries(repo), None)
        if entries is not None:
            summary = summarize_status(entries)
            candidate.changes = list(entries)
            candidate.staged_count = summary.staged
            candidate.unstaged_count = summary.unstaged
            candidate.untracked_count = summary.untracked
            candidate.dirty_flag = summary.dirty

        ahead, behind, has_upstream = self._guarded(
            candidate, "ahead/behind", lambda: self.git.ahead_behind(repo), (0, 0, False)
        )
        candidate.ahead_count = ahead
        candidate.behind_count = behind
        candidate.has_upstream = has_upstream

        latest_epoch, latest_path = self._guarded(
            candidate,
            "latest file",
            lambda: latest_file_change(
                repo,
                exclude_dirs=self.exclude_dirs,
                deadline=deadline,
                clock=self._clock,
            ),
            (0, ""),
        )
        candidate.latest_file_epoch = latest_epoch
        candidate.latest_file_path = latest_path

        self.logger.debug(
            "  branch=%s commit=%s dirty=%s staged=%d unstaged=%d untracked=%d ahead=%d behind=%d latest=%s",
            candidate.branch_name,
            candidate.last_commit_epoch,
            candidate.dirty_label,
            candidate.staged_count,
            candidate.unstaged_count,
            candidate.untracked_count,
            candidate.ahead_count,
            candidate.behind_count,
            candidate.latest_file_epoch,
        )
        return candidate

    def iter_scan(self, paths: Iterable[str], *, workers: int = 1) -> Iterator[RepositoryCandidate]:
        """Yield one candidate per path, in completion order when ``workers`` > 1."""
        pending = list(paths)
        if workers <= 1 or len(pending) <= 1:
            for path in pending:
                yield self.scan(path)
            return

        with ThreadPoolExecutor(
            max_workers=min(workers, len(pending)),
            thread_name_prefix="repovariants-scan",
        ) as pool:
            futures = [pool.submit(self.scan, path) for path in pending]
            for future in as_completed(futures):
                yield future.result()

    # ------------------------------------------------------------------
    # Internals

    def _guarded(
        self,
        candidate: RepositoryCandidate,
        label: str,
        query: Callable[[], _T],
        fallback: _T,
    ) -> _T:
        try:
            return query()
        except PartialScanError as exc:
            message = f"{label}: {exc}"
            candidate.warnings.append(message)
            self.logger.warning("%s: %s", candidate.path, message)
            return fallback


__all__ = ["MetadataScanner", "latest_file_change", "truncate_ns"]
