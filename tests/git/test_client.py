"""Tests for the git query client."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from repovariants.errors import PartialScanError
from repovariants.git import GitClient
from repovariants.models import ChangeKind
from tests._fixtures.variant_builder import stub_runner

_BRANCH = ("git", "rev-parse", "--abbrev-ref", "HEAD")
_SYMBOLIC = ("git", "symbolic-ref", "--short", "HEAD")
_LOG = ("git", "log", "-1", "--format=%ct")
_VERIFY = ("git", "rev-parse", "--verify", "--quiet", "HEAD")
_UPSTREAM = ("git", "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}")
_REV_LIST = ("git", "rev-list", "--left-right", "--count", "@{u}...HEAD")
_STATUS = ("git", "status", "--porcelain", "--untracked-files=all")


def _failure(*args: str) -> subprocess.CalledProcessError:
    return subprocess.CalledProcessError(128, list(args), stderr="fatal: failure")


def test_branch_name_uses_rev_parse(tmp_path: Path) -> None:
    calls: list = []
    client = GitClient(runner=stub_runner({_BRANCH: "feature/x\n"}, calls), timeout=7)

    assert client.branch_name(tmp_path) == "feature/x"
    assert calls == [(list(_BRANCH), tmp_path)]


def test_branch_name_falls_back_for_unborn_branch(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_BRANCH: _failure(*_BRANCH), _SYMBOLIC: "main\n"}))

    assert client.branch_name(tmp_path) == "main"


def test_last_commit_epoch_parses_committer_time(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_LOG: "1700000000\n"}))

    assert client.last_commit_epoch(tmp_path) == 1700000000


def test_last_commit_epoch_is_zero_without_commits(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_LOG: _failure(*_LOG), _VERIFY: _failure(*_VERIFY)}))

    assert client.last_commit_epoch(tmp_path) == 0


def test_last_commit_epoch_rejects_garbage(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_LOG: "not-a-number\n"}))

    with pytest.raises(PartialScanError):
        client.last_commit_epoch(tmp_path)


def test_status_entries_parse_porcelain(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_STATUS: "MM a.py\n?? b.txt\n"}))

    entries = client.status_entries(tmp_path)

    assert [(entry.path, entry.kind) for entry in entries] == [
        ("a.py", ChangeKind.MODIFIED),
        ("b.txt", ChangeKind.UNTRACKED),
    ]


def test_ahead_behind_reads_left_right_counts(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_UPSTREAM: "origin/main\n", _REV_LIST: "3\t5\n"}))

    assert client.ahead_behind(tmp_path) == (5, 3, True)


def test_ahead_behind_without_upstream_is_not_an_error(tmp_path: Path) -> None:
    client = GitClient(runner=stub_runner({_UPSTREAM: _failure(*_UPSTREAM)}))

    assert client.upstream(tmp_path) is None
    assert client.ahead_behind(tmp_path) == (0, 0, False)


def test_timeouts_and_missing_git_become_partial_scan_errors(tmp_path: Path) -> None:
    timed_out = GitClient(runner=stub_runner({_STATUS: subprocess.TimeoutExpired(list(_STATUS), 5)}))
    missing = GitClient(runner=stub_runner({_STATUS: FileNotFoundError(2, "No such file", "git")}))

    with pytest.raises(PartialScanError, match="timed out"):
        timed_out.status_entries(tmp_path)
    with pytest.raises(PartialScanError, match="could not run"):
        missing.status_entries(tmp_path)


def test_runner_receives_timeout(tmp_path: Path) -> None:
    seen: dict = {}

    def runner(args, cwd, timeout=None):  # type: ignore[no-untyped-def]
        seen["timeout"] = timeout
        seen["cwd"] = cwd
        return "main\n"

    GitClient(runner=runner, timeout=12.5).branch_name(tmp_path)

    assert seen == {"timeout": 12.5, "cwd": tmp_path}
