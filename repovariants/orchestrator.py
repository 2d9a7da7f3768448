"""Pipeline orchestration for compare and forensic runs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Sequence

from .config import CompareOptions, validate_options
from .diff.engine import DiffEngine, full_diff_filename
from .errors import NotFoundError
from .forensics import build_forensic_report
from .locator import find_repositories
from .logging import get_logger
from .models import DiffReport, ForensicReport, RankedResult, RepositoryCandidate
from .ranking import order_candidates, select_best
from .render.html import html_report_filename, write_html_report
from .scanner import MetadataScanner

RUN_STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def make_run_stamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(RUN_STAMP_FORMAT)


class Orchestrator:
    """Coordinates discovery, scanning, ranking, diffing and report artifacts."""

    def __init__(
        self,
        locator: Callable[..., List[str]] = find_repositories,
        scanner: MetadataScanner | None = None,
        diff_engine: DiffEngine | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.locator = locator
        self.scanner = scanner
        self.diff_engine = diff_engine or DiffEngine()
        self._clock = clock
        self.logger = get_logger("orchestrator")

    def compare(
        self,
        root_path: str,
        name_prefix: str,
        options: CompareOptions | None = None,
        *,
        run_stamp: str | None = None,
    ) -> RankedResult:
        """Run one comparison and return the ranked result with any artifacts written."""
        options = options or CompareOptions()
        validate_options(root_path, name_prefix, options)

        root = Path(root_path).expanduser()
        if not root.is_dir():
            raise NotFoundError(f"Root folder does not exist: {root_path}")

        stamp = run_stamp or make_run_stamp(self._clock())
        result = RankedResult(root_path=str(root), name_prefix=name_prefix, run_stamp=stamp, candidates=[])

        paths = self.locator(root, name_prefix, max_depth=options.max_depth)
        self.logger.info("Found %d repositories matching '%s' under %s", len(paths), name_prefix, root)
        if not paths:
            return result

        scanner = self.scanner or MetadataScanner(
            exclude_dirs=options.exclude_dirs,
            timeout=options.timeout,
        )
        candidates = list(scanner.iter_scan(paths, workers=options.workers))

        result.candidates = order_candidates(candidates, options.sort)
        if options.compute_best:
            result.best = select_best(candidates)
            if result.best is not None:
                self.logger.info("Best variant: %s", result.best.path)
        if options.top is not None and len(result.candidates) > options.top:
            self.logger.info("Showing the first %d of %d variants", options.top, len(result.candidates))
            result.candidates = result.candidates[: options.top]

        if options.diff_level != "none" and result.best is not None:
            result.diff_reports = self._run_diffs(result, options)
            result.artifacts.extend(
                report.artifact_path for report in result.diff_reports if report.artifact_path
            )

        if options.forensic:
            result.forensic = _visible_forensic(build_forensic_report(candidates), result.candidates)

        if options.output_format == "html":
            destination = options.output_dir / html_report_filename(
                name_prefix, stamp, forensic=options.forensic
            )
            result.artifacts.append(write_html_report(result, destination))
            self.logger.info("Wrote HTML report to %s", destination)
        return result

    # ------------------------------------------------------------------
    # Internals

    def _run_diffs(self, result: RankedResult, options: CompareOptions) -> List[DiffReport]:
        best = result.best
        if best is None:
            return []
        others: Sequence[RepositoryCandidate] = [c for c in result.candidates if c is not best]
        if not others:
            return []

        def _compare(other: RepositoryCandidate) -> DiffReport:
            return self.diff_engine.compare(
                best.path,
                other.path,
                options.diff_level,
                patterns=options.diff_patterns,
                checksum=options.checksum,
                output_dir=options.output_dir,
                artifact_name=full_diff_filename(result.name_prefix, best.path, other.path, result.run_stamp),
            )

        if options.workers <= 1 or len(others) == 1:
            return [_compare(other) for other in others]

        with ThreadPoolExecutor(
            max_workers=min(options.workers, len(others)),
            thread_name_prefix="repovariants-diff",
        ) as pool:
            # map() yields in submission order, so reports follow the display order.
            return list(pool.map(_compare, others))


def _visible_forensic(report: ForensicReport, shown: Sequence[RepositoryCandidate]) -> ForensicReport:
    """Restrict timeline rows to the displayed variants; the activity range still spans all of them."""
    paths = {candidate.path for candidate in shown}
    if len(paths) == len(report.rows):
        return report
    return replace(
        report,
        candidates=[candidate for candidate in report.candidates if candidate.path in paths],
        rows=[row for row in report.rows if row.path in paths],
    )


def compare_variants(
    root_path: str,
    name_prefix: str,
    options: CompareOptions | None = None,
) -> RankedResult:
    """Locate, scan, rank and optionally diff every variant of ``name_prefix`` under ``root_path``."""
    return Orchestrator().compare(root_path, name_prefix, options)


__all__ = ["Orchestrator", "RUN_STAMP_FORMAT", "compare_variants", "make_run_stamp"]
