"""Read-only git queries used by the metadata scanner."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from ..errors import PartialScanError
from ..models import StatusEntry
from .status import parse_porcelain


class GitClient:
    """Runs git commands through an injectable runner.

    The runner is called as ``runner(args, cwd=Path, timeout=float | None)``,
    returns stdout, and raises ``subprocess.CalledProcessError`` on a non-zero
    exit. Every query either returns a value or raises ``PartialScanError``.
    """

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self.timeout = timeout

    def branch_name(self, repo: Path) -> str:
        try:
            name = self._run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=repo).strip()
        except PartialScanError:
            # Unborn branch: HEAD does not resolve yet but still names a branch.
            name = self._run(["git", "symbolic-ref", "--short", "HEAD"], cwd=repo).strip()
        if not name:
            raise PartialScanError("git reported an empty branch name")
        return name

    def last_commit_epoch(self, repo: Path) -> int:
        """Committer time of HEAD, or 0 when the repository has no commits."""
        try:
            output = self._run(["git", "log", "-1", "--format=%ct"], cwd=repo).strip()
        except PartialScanError:
            if not self.has_commits(repo):
                return 0
            raise
        if not output:
            return 0
        try:
            return int(output.split()[0])
        except ValueError as exc:
            raise PartialScanError(f"unexpected commit timestamp {output!r}") from exc

    def has_commits(self, repo: Path) -> bool:
        try:
            self._run(["git", "rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo)
        except PartialScanError:
            return False
        return True

    def status_entries(self, repo: Path) -> List[StatusEntry]:
        output = self._run(["git", "status", "--porcelain", "--untracked-files=all"], cwd=repo)
        return parse_porcelain(output)

    def upstream(self, repo: Path) -> Optional[str]:
        """Name of the upstream tracking ref, or None when none is configured."""
        try:
            name = self._run(
                ["git", "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"],
                cwd=repo,
            ).strip()
        except PartialScanError:
            return None
        return name or None

    def ahead_behind(self, repo: Path) -> Tuple[int, int, bool]:
        """Return ``(ahead, behind, has_upstream)``; no upstream yields ``(0, 0, False)``."""
        if self.upstream(repo) is None:
            return 0, 0, False
        output = self._run(
            ["git", "rev-list", "--left-right", "--count", "@{u}...HEAD"],
            cwd=repo,
        ).split()
        if len(output) != 2:
            raise PartialScanError(f"unexpected rev-list output {' '.join(output)!r}")
        try:
            behind, ahead = int(output[0]), int(output[1])
        except ValueError as exc:
            raise PartialScanError(f"unexpected rev-list output {' '.join(output)!r}") from exc
        return ahead, behind, True

    # ------------------------------------------------------------------
    # Internals

    def _run(self, args: Iterable[str], *, cwd: Path) -> str:
        args = list(args)
        try:
            return self._runner(args, cwd=cwd, timeout=self.timeout)
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise PartialScanError(
                f"{' '.join(args)} exited with {exc.returncode}" + (f": {stderr}" if stderr else "")
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise PartialScanError(f"{' '.join(args)} timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise PartialScanError(f"{' '.join(args)} could not run: {exc}") from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        timeout: Optional[float] = None,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
        return completed.stdout


__all__ = ["GitClient"]
