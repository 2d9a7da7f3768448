"""Tree comparison between the Best variant and the other variants."""

from __future__ import annotations

import difflib
import hashlib
import os
import stat
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..errors import DiffComparisonError
from ..logging import get_logger
from ..models import DiffCategory, DiffRecord, DiffReport, DiffSummary
from ..patterns import matches_any

DIFF_MODES = ("summary", "per-file", "full")

VCS_DIRS = (".git", ".hg", ".svn")

_CHUNK_SIZE = 1024 * 1024
_BINARY_SNIFF = 8192
_MAX_NAME = 240
_ROOT_GROUP = "."
_NO_EXTENSION = "(none)"


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _files_equal(left: Path, right: Path) -> bool:
    if left.stat().st_size != right.stat().st_size:
        return False
    with left.open("rb") as a, right.open("rb") as b:
        while True:
            chunk_a = a.read(_CHUNK_SIZE)
            chunk_b = b.read(_CHUNK_SIZE)
            if chunk_a != chunk_b:
                return False
            if not chunk_a:
                return True


def _collect_files(
    root: Path, excluded: Set[str]
) -> Tuple[Set[str], List[Tuple[str, str]]]:
    """Return repository-relative file paths and ``(relative_path, error)`` pairs for unreadable directories."""
    files: Set[str] = set()
    errors: List[Tuple[str, str]] = []

    def _onerror(err: OSError) -> None:
        location = Path(err.filename) if err.filename else root
        try:
            relative = location.relative_to(root).as_posix()
        except ValueError:
            relative = str(location)
        errors.append((relative or _ROOT_GROUP, err.strerror or str(err)))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_onerror):
        dirnames[:] = [name for name in dirnames if name not in excluded]
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix() if current != root else ""
        for filename in filenames:
            files.add(f"{rel_dir}/{filename}" if rel_dir else filename)
        # Symlinks to directories are listed as directories but never walked.
        for name in list(dirnames):
            if os.path.islink(os.path.join(dirpath, name)):
                dirnames.remove(name)
                files.add(f"{rel_dir}/{name}" if rel_dir else name)
    return files, errors


def _compare_file(best_root: Path, other_root: Path, relative: str) -> bool:
    """Return True when both sides hold the same bytes; raise DiffComparisonError when unreadable."""
    left = best_root / relative
    right = other_root / relative
    try:
        left_link = stat.S_ISLNK(os.lstat(left).st_mode)
        right_link = stat.S_ISLNK(os.lstat(right).st_mode)
        if left_link or right_link:
            return left_link and right_link and os.readlink(left) == os.readlink(right)
        return _files_equal(left, right)
    except OSError as exc:
        raise DiffComparisonError(relative, exc.strerror or str(exc)) from exc


def _is_under_any(relative: str, directories: Set[str]) -> bool:
    if _ROOT_GROUP in directories:
        return True
    return any(relative == d or relative.startswith(d + "/") for d in directories)


def compare_trees(
    best_path: str | Path,
    other_path: str | Path,
    *,
    excluded_dirs: Sequence[str] = VCS_DIRS,
) -> List[DiffRecord]:
    """Classify every discrepancy between two trees, ordered by relative path.

    One unreadable path becomes one ``content-differs`` record carrying a
    ``detail`` message; the comparison itself never aborts.
    """
    best_root = Path(best_path)
    other_root = Path(other_path)
    excluded = set(excluded_dirs)
    other_label = str(other_path)

    best_files, best_errors = _collect_files(best_root, excluded)
    other_files, other_errors = _collect_files(other_root, excluded)

    # Files under a directory that could not be listed on either side are not one-sided.
    unreadable = {relative for relative, _ in [*best_errors, *other_errors]}
    if unreadable:
        best_files = {path for path in best_files if not _is_under_any(path, unreadable)}
        other_files = {path for path in other_files if not _is_under_any(path, unreadable)}


    records: Dict[str, DiffRecord] = {}
    for relative, message in [*best_errors, *other_errors]:
        records.setdefault(
            relative,
            DiffRecord(
                category=DiffCategory.CONTENT_DIFFERS,
                relative_path=relative,
                other_repo_path=other_label,
                detail=message,
            ),
        )

    for relative in best_files - other_files:
        records.setdefault(
            relative,
            DiffRecord(DiffCategory.ONLY_IN_BEST, relative, other_label),
        )
    for relative in other_files - best_files:
        records.setdefault(
            relative,
            DiffRecord(DiffCategory.ONLY_IN_OTHER, relative, other_label),
        )
    for relative in best_files & other_files:
        try:
            same = _compare_file(best_root, other_root, relative)
        except DiffComparisonError as exc:
            records[relative] = DiffRecord(
                DiffCategory.CONTENT_DIFFERS,
                relative,
                other_label,
                detail=str(exc),
            )
            continue
        if not same:
            records.setdefault(
                relative,
                DiffRecord(DiffCategory.CONTENT_DIFFERS, relative, other_label),
            )

    return [records[key] for key in sorted(records)]


def filter_records(records: Iterable[DiffRecord], patterns: Sequence[str]) -> List[DiffRecord]:
    """Keep records whose path matches at least one pattern; no patterns keeps all."""
    return [record for record in records if matches_any(record.relative_path, patterns)]


def summarize(records: Iterable[DiffRecord]) -> DiffSummary:
    """Count records per category, per top-level directory and per extension."""
    summary = DiffSummary()
    for record in records:
        category = record.category.value
        if record.category is DiffCategory.ONLY_IN_BEST:
            summary.only_in_best += 1
        elif record.category is DiffCategory.ONLY_IN_OTHER:
            summary.only_in_other += 1
        else:
            summary.content_differs += 1

        group = record.relative_path.split("/", 1)[0] if "/" in record.relative_path else _ROOT_GROUP
        bucket = summary.by_top_level.setdefault(group, {})
        bucket[category] = bucket.get(category, 0) + 1

        extension = os.path.splitext(record.relative_path.rsplit("/", 1)[-1])[1].lower() or _NO_EXTENSION
        ext_bucket = summary.by_extension.setdefault(extension, {})
        ext_bucket[category] = ext_bucket.get(category, 0) + 1
    return summary


def full_diff_filename(name_prefix: str, best_path: str, other_path: str, run_stamp: str) -> str:
    """Deterministic artifact name for one (Best, Other) pair."""
    safe_best = _safe_component(best_path)
    safe_other = _safe_component(other_path)
    name = f"{name_prefix}_full_diff_{safe_best}_VS_{safe_other}_{run_stamp}.diff"
    if len(name) <= _MAX_NAME:
        return name
    digest = hashlib.sha1(f"{best_path}\0{other_path}".encode("utf-8")).hexdigest()[:12]
    return f"{name_prefix}_full_diff_{safe_best[-60:]}_VS_{safe_other[-60:]}_{digest}_{run_stamp}.diff"


def _safe_component(path: str) -> str:
    cleaned = str(path)
    for char in ("/", "\\", " ", ":"):
        cleaned = cleaned.replace(char, "_")
    return cleaned.strip("_") or "root"


class DiffEngine:
    """Compares Best against another variant at summary, per-file or full granularity."""

    def __init__(self, *, excluded_dirs: Sequence[str] = VCS_DIRS) -> None:
        self.excluded_dirs = tuple(excluded_dirs)
        self.logger = get_logger("diff")

    def compare(
        self,
        best_path: str,
        other_path: str,
        mode: str,
        *,
        patterns: Sequence[str] = (),
        checksum: bool = False,
        output_dir: Path | None = None,
        artifact_name: str | None = None,
    ) -> DiffReport:
        """Return the filtered records and their summary; ``full`` also writes a unified diff.

        Patterns apply identically in every mode, so the summary counts always
        equal the number of per-file records and a full diff only contains
        hunks for matching paths.
        """
        if mode not in DIFF_MODES:
            raise ValueError(f"Unknown diff mode: {mode!r}")

        self.logger.debug("Comparing %s against %s (%s)", other_path, best_path, mode)
        records = filter_records(
            compare_trees(best_path, other_path, excluded_dirs=self.excluded_dirs),
            patterns,
        )
        for record in records:
            if record.is_anomaly:
                self.logger.warning(
                    "Could not compare %s in %s: %s", record.relative_path, other_path, record.detail
                )

        if checksum and mode == "per-file":
            records = [self._with_checksums(best_path, other_path, record) for record in records]

        report = DiffReport(
            best_path=best_path,
            other_path=other_path,
            mode=mode,
            summary=summarize(records),
            records=records,
        )

        if mode == "full":
            directory = output_dir or Path(".")
            name = artifact_name or full_diff_filename("variants", best_path, other_path, "latest")
            report.artifact_path = self.write_full_diff(best_path, other_path, records, directory / name)
            self.logger.info("Wrote full diff to %s", report.artifact_path)
        return report

    def write_full_diff(
        self,
        best_path: str,
        other_path: str,
        records: Sequence[DiffRecord],
        destination: Path,
    ) -> Path:
        """Write a unified diff covering ``records`` to ``destination``."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(f"# best : {best_path}\n")
            handle.write(f"# other: {other_path}\n")
            for record in records:
                for line in self._record_hunks(Path(best_path), Path(other_path), record):
                    handle.write(line)
        return destination

    # ------------------------------------------------------------------
    # Internals

    def _with_checksums(self, best_path: str, other_path: str, record: DiffRecord) -> DiffRecord:
        if record.category is not DiffCategory.CONTENT_DIFFERS or record.is_anomaly:
            return record
        return replace(
            record,
            best_checksum=self._safe_hash(Path(best_path) / record.relative_path),
            other_checksum=self._safe_hash(Path(other_path) / record.relative_path),
        )

    def _safe_hash(self, path: Path) -> Optional[str]:
        try:
            return _hash_file(path)
        except OSError as exc:
            self.logger.warning("Could not hash %s: %s", path, exc)
            return None

    def _record_hunks(self, best_root: Path, other_root: Path, record: DiffRecord) -> Iterator[str]:
        relative = record.relative_path
        if record.is_anomaly:
            yield f"# unreadable: {relative}: {record.detail}\n"
            return

        left_label = f"a/{relative}"
        right_label = f"b/{relative}"
        try:
            left = self._read_side(best_root / relative) if record.category is not DiffCategory.ONLY_IN_OTHER else b""
            right = self._read_side(other_root / relative) if record.category is not DiffCategory.ONLY_IN_BEST else b""
        except OSError as exc:
            yield f"# unreadable: {relative}: {exc.strerror or exc}\n"
            return

        if record.category is DiffCategory.ONLY_IN_BEST:
            right_label = "/dev/null"
        elif record.category is DiffCategory.ONLY_IN_OTHER:
            left_label = "/dev/null"

        left_text = _decode_text(left)
        right_text = _decode_text(right)
        if left_text is None or right_text is None:
            yield f"Binary files {left_label} and {right_label} differ\n"
            return

        yield f"diff -ru {left_label} {right_label}\n"
        for line in difflib.unified_diff(
            _diff_lines(left_text),
            _diff_lines(right_text),
            fromfile=left_label,
            tofile=right_label,
        ):
            yield line

    @staticmethod
    def _read_side(path: Path) -> bytes:
        if path.is_symlink():
            return os.readlink(path).encode("utf-8", "surrogateescape")
        return path.read_bytes()


def _decode_text(data: bytes) -> Optional[str]:
    if b"\0" in data[:_BINARY_SNIFF]:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _diff_lines(text: str) -> List[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith(("\n", "\r")):
        lines[-1] = lines[-1] + "\n\\ No newline at end of file\n"
    return lines


__all__ = [
    "DIFF_MODES",
    "DiffEngine",
    "VCS_DIRS",
    "compare_trees",
    "filter_records",
    "full_diff_filename",
    "summarize",
]
