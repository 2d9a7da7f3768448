"""Tests for repovariants.scanner."""

from __future__ import annotations

import itertools
import os
import subprocess
from pathlib import Path
from typing import Iterator

import pytest

from repovariants.errors import PartialScanError
from repovariants.git import GitClient
from repovariants.models import NO_COMMITS_LABEL, UNKNOWN_BRANCH
from repovariants.ranking import rank_candidates
from repovariants.scanner import MetadataScanner, latest_file_change, truncate_ns
from tests._fixtures.variant_builder import VariantBuilder, stub_runner

_BRANCH = ("git", "rev-parse", "--abbrev-ref", "HEAD")
_LOG = ("git", "log", "-1", "--format=%ct")
_STATUS = ("git", "status", "--porcelain", "--untracked-files=all")


def _healthy_runner(status: str = "", epoch: str = "1700000000\n"):  # type: ignore[no-untyped-def]
    return stub_runner({_BRANCH: "main\n", _LOG: epoch, _STATUS: status})


def test_truncate_ns_never_rounds_up() -> None:
    assert truncate_ns(1_999_999_999) == 1
    assert truncate_ns(2_000_000_000) == 2
    assert truncate_ns(0) == 0


def test_latest_file_change_prunes_excluded_directories(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app", {"src/main.py": "x\n", "build/out.bin": "y\n", ".idea/ws.xml": "z\n"})
    variant_builder.touch(repo / "src" / "main.py", 1_000)
    variant_builder.touch(repo / "build" / "out.bin", 9_000)
    variant_builder.touch(repo / ".idea" / "ws.xml", 9_000)
    (repo / ".git" / "index").write_text("i", encoding="utf-8")
    variant_builder.touch(repo / ".git" / "index", 9_000)

    epoch, path = latest_file_change(repo)

    assert epoch == 1_000
    assert path == str(repo / "src" / "main.py")


def test_latest_file_change_breaks_ties_by_greatest_path(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app", {"a.txt": "a\n", "b.txt": "b\n"})
    variant_builder.touch(repo / "a.txt", 5_000, nanos=900_000_000)
    variant_builder.touch(repo / "b.txt", 5_000, nanos=100_000_000)

    epoch, path = latest_file_change(repo)

    assert epoch == 5_000
    assert path == str(repo / "b.txt")


def test_latest_file_change_skips_unreadable_directories(
    variant_builder: VariantBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo = variant_builder.repo("app", {"src/main.py": "x\n", "secret/newer.txt": "y\n"})
    variant_builder.touch(repo / "src" / "main.py", 1_000)
    variant_builder.touch(repo / "secret" / "newer.txt", 9_000)
    locked = (repo / "secret").resolve()
    real_scandir = os.scandir

    def guarded_scandir(path: str = ".") -> Iterator[os.DirEntry]:
        if Path(path).resolve() == locked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", guarded_scandir)

    epoch, path = latest_file_change(repo)

    assert epoch == 1_000
    assert path == str(repo / "src" / "main.py")


def test_latest_file_change_on_empty_tree(tmp_path: Path) -> None:
    assert latest_file_change(tmp_path) == (0, "")


def test_latest_file_change_honours_deadline(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app", {"a.txt": "a\n"})

    with pytest.raises(PartialScanError):
        latest_file_change(repo, deadline=1.0, clock=lambda: 2.0)


def test_scan_collects_metadata(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app", {"a.py": "print()\n"})
    variant_builder.touch(repo / "a.py", 1_600_000_000)
    git = GitClient(runner=_healthy_runner(status="MM a.py\n?? new.txt\n"))

    candidate = MetadataScanner(git=git).scan(str(repo))

    assert candidate.path == str(repo)
    assert candidate.branch_name == "main"
    assert candidate.last_commit_epoch == 1_700_000_000
    assert candidate.dirty_flag is True
    assert (candidate.staged_count, candidate.unstaged_count, candidate.untracked_count) == (1, 1, 1)
    assert (candidate.ahead_count, candidate.behind_count, candidate.has_upstream) == (0, 0, False)
    assert candidate.latest_file_epoch == 1_600_000_000
    assert candidate.latest_file_path == str(repo / "a.py")
    assert candidate.activity_epoch == max(candidate.last_commit_epoch, candidate.latest_file_epoch)
    assert [entry.path for entry in candidate.changes] == ["a.py", "new.txt"]
    assert candidate.warnings == []


def test_scan_handles_repository_without_commits(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app")
    runner = stub_runner(
        {
            _BRANCH: subprocess.CalledProcessError(128, list(_BRANCH)),
            ("git", "symbolic-ref", "--short", "HEAD"): "main\n",
            _LOG: subprocess.CalledProcessError(128, list(_LOG)),
            _STATUS: "",
        }
    )

    candidate = MetadataScanner(git=GitClient(runner=runner)).scan(str(repo))

    assert candidate.branch_name == "main"
    assert candidate.last_commit_epoch == 0
    assert candidate.last_commit_human == NO_COMMITS_LABEL
    assert candidate.dirty_flag is False
    assert candidate.warnings == []


def test_scan_substitutes_sentinels_for_failed_git_queries(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app")

    candidate = MetadataScanner(git=GitClient(runner=stub_runner({}))).scan(str(repo))

    assert candidate.branch_name == UNKNOWN_BRANCH
    assert candidate.last_commit_epoch == 0
    assert candidate.dirty_flag is False
    assert any(warning.startswith("branch:") for warning in candidate.warnings)
    assert any(warning.startswith("status:") for warning in candidate.warnings)


def test_scan_records_timeout_of_latest_file_walk(variant_builder: VariantBuilder) -> None:
    repo = variant_builder.repo("app", {"a.txt": "a\n"})
    ticks = itertools.count(0, 100)
    scanner = MetadataScanner(
        git=GitClient(runner=_healthy_runner()),
        timeout=5,
        clock=lambda: next(ticks),
    )

    candidate = scanner.scan(str(repo))

    assert (candidate.latest_file_epoch, candidate.latest_file_path) == (0, "")
    assert any(warning.startswith("latest file:") for warning in candidate.warnings)
    assert candidate.last_commit_epoch == 1_700_000_000


def test_iter_scan_result_order_does_not_affect_ranking(variant_builder: VariantBuilder) -> None:
    paths = [str(variant_builder.repo(f"app_{index}", {"f.txt": f"{index}\n"})) for index in range(5)]
    for index, path in enumerate(paths):
        variant_builder.touch(Path(path) / "f.txt", 1_000 + index)
    scanner = MetadataScanner(git=GitClient(runner=_healthy_runner(epoch="500\n")))

    sequential = list(scanner.iter_scan(paths, workers=1))
    parallel = list(scanner.iter_scan(reversed(paths), workers=4))

    assert sorted(c.path for c in parallel) == sorted(paths)
    assert [c.path for c in rank_candidates(sequential)] == [c.path for c in rank_candidates(parallel)]
    assert rank_candidates(parallel)[0].path == paths[-1]
