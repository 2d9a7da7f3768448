"""Helpers for constructing repository variant trees and stub git runners in tests."""

from __future__ import annotations

import os
import subprocess
import textwrap
from pathlib import Path
from typing import Callable, Mapping, Sequence, Union

from repovariants.models import RepositoryCandidate

Response = Union[str, BaseException]


class VariantBuilder:
    """Writes throwaway repository copies below a shared root folder."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "variants"
        self.root.mkdir()

    def repo(
        self,
        relative: str,
        files: Mapping[str, str] | None = None,
        *,
        marker: str = "dir",
    ) -> Path:
        """Create a repository at ``root/relative`` with a `.git` directory or pointer file."""
        path = self.root / relative
        path.mkdir(parents=True, exist_ok=True)
        if marker == "dir":
            (path / ".git").mkdir(exist_ok=True)
        elif marker == "file":
            (path / ".git").write_text("gitdir: /elsewhere/.git/worktrees/x\n", encoding="utf-8")
        if files:
            self.write(path, files)
        return path

    def write(self, repo: Path, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into ``repo``."""
        for relative, content in files.items():
            target = repo / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(content), encoding="utf-8")

    @staticmethod
    def touch(path: Path, epoch: int, *, nanos: int = 0) -> None:
        """Set the modification time of ``path`` to ``epoch`` seconds plus ``nanos``."""
        stamp = epoch * 1_000_000_000 + nanos
        os.utime(path, ns=(stamp, stamp))


def stub_runner(
    responses: Mapping[tuple, Response],
    calls: list | None = None,
) -> Callable[..., str]:
    """Return a git runner answering by the longest matching argument prefix.

    Unknown commands fail like git would, with ``CalledProcessError``.
    """
    ordered: Sequence[tuple] = sorted(responses, key=len, reverse=True)

    def runner(args, cwd, timeout=None):  # type: ignore[no-untyped-def]
        if calls is not None:
            calls.append((list(args), Path(cwd)))
        for prefix in ordered:
            if tuple(args[: len(prefix)]) == prefix:
                response = responses[prefix]
                if isinstance(response, BaseException):
                    raise response
                return response
        raise subprocess.CalledProcessError(128, list(args), stderr="fatal: unsupported in stub")

    return runner


def candidate(path: str, **overrides: object) -> RepositoryCandidate:
    """Build a candidate with neutral defaults."""
    return RepositoryCandidate(path=path, **overrides)  # type: ignore[arg-type]


__all__ = ["VariantBuilder", "candidate", "stub_runner"]
