"""CLI entrypoints for repovariants commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .config import DIFF_LEVELS, OUTPUT_FORMATS, SORT_MODES, CompareOptions, load_config
from .errors import ConfigurationError, NotFoundError
from .logging import comparison_log_path, configure_logging, rotate_logs
from .models import RankedResult
from .orchestrator import Orchestrator, make_run_stamp
from .render import render_csv, render_json, render_table


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", help="Folder to search for repository variants.")
    parser.add_argument("prefix", help="Substring that variant directory names must contain.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .repovariants.yml or the directory holding it (defaults to the current directory).",
    )
    parser.add_argument(
        "--output",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Report format.",
    )
    parser.add_argument(
        "--sort",
        choices=SORT_MODES,
        default=None,
        help="Display order of the table (Best is always chosen by the full ranking).",
    )
    parser.add_argument("--dirty-detail", action="store_true", default=None, help="List changed files of dirty variants.")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum directory depth searched below root.")
    parser.add_argument("--workers", type=int, default=None, help="Number of repositories scanned in parallel.")
    parser.add_argument("--timeout", type=float, default=None, help="Per-repository scan budget in seconds.")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for diff, HTML and log artifacts.")
    parser.add_argument("--log", action="store_true", default=None, help="Also write a rotated log file to the output directory.")
    parser.add_argument("--top", type=int, default=None, help="Show only the first N variants of the display order.")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colours in the table.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repovariants",
        description="Find copies of a repository, rank them and show how they diverge.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare_parser = subparsers.add_parser(
        "compare",
        help="Rank repository variants and diff them against the Best one.",
    )
    _add_verbose_option(compare_parser, suppress_default=True)
    _add_scan_options(compare_parser)
    compare_parser.add_argument(
        "--diff-level",
        choices=DIFF_LEVELS,
        default=None,
        help="Granularity of the comparison against Best.",
    )
    compare_parser.add_argument(
        "--diff-pattern",
        dest="diff_patterns",
        action="append",
        default=None,
        help="Glob restricting diffed paths; repeat for several patterns.",
    )
    compare_parser.add_argument("--checksum", action="store_true", default=None, help="Add SHA-256 digests to per-file differences.")
    compare_parser.add_argument("--grouped-summary", action="store_true", default=None, help="Also break diff counts down by file extension.")
    compare_parser.add_argument(
        "--no-best",
        dest="compute_best",
        action="store_false",
        default=None,
        help="Skip choosing a Best variant.",
    )

    forensic_parser = subparsers.add_parser(
        "forensic",
        help="Show an activity timeline and the probable last active variant.",
    )
    _add_verbose_option(forensic_parser, suppress_default=True)
    _add_scan_options(forensic_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _resolve_options(args: argparse.Namespace) -> tuple[CompareOptions, bool, int, int]:
    config = load_config(args.config if args.config is not None else Path.cwd())
    options = config.options
    overrides = {
        "output_format": args.output,
        "sort": args.sort,
        "dirty_detail": args.dirty_detail,
        "max_depth": args.max_depth,
        "workers": args.workers,
        "timeout": args.timeout,
        "output_dir": args.output_dir,
        "top": args.top,
    }
    if args.command == "compare":
        overrides.update(
            {
                "diff_level": args.diff_level,
                "diff_patterns": args.diff_patterns,
                "checksum": args.checksum,
                "grouped_summary": args.grouped_summary,
                "compute_best": args.compute_best,
            }
        )
    else:
        overrides.update({"forensic": True, "diff_level": "none"})
        if args.sort is None and config.options.sort == "best":
            overrides["sort"] = "timestamp"
    options = replace(options, **{key: value for key, value in overrides.items() if value is not None})
    log_to_file = bool(args.log) or config.logging.file
    return options, log_to_file, config.logging.keep, config.logging.max_age_days


def _print_result(result: RankedResult, options: CompareOptions, *, color: bool) -> None:
    if options.output_format == "json":
        sys.stdout.write(render_json(result, dirty_detail=options.dirty_detail))
    elif options.output_format == "csv":
        sys.stdout.write(render_csv(result))
    elif options.output_format == "html":
        for artifact in result.artifacts:
            print(f"Wrote {_relativize(artifact)}")
    else:
        sys.stdout.write(
            render_table(
                result,
                color=color,
                dirty_detail=options.dirty_detail,
                grouped_summary=options.grouped_summary,
            )
        )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repovariants commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        configure_logging(verbose=bool(args.verbose))
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    try:
        options, log_to_file, keep, max_age_days = _resolve_options(args)
    except ConfigurationError as exc:
        parser.exit(1, f"{exc}\n")

    run_stamp = make_run_stamp()
    log_file = None
    if log_to_file:
        rotate_logs(options.output_dir, args.prefix, keep=keep, max_age_days=max_age_days)
        log_file = comparison_log_path(options.output_dir, args.prefix, run_stamp, options.diff_level)
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    try:
        result = Orchestrator().compare(args.root, args.prefix, options, run_stamp=run_stamp)
    except (ConfigurationError, NotFoundError) as exc:
        parser.exit(1, f"{exc}\n")

    if not result.candidates and options.output_format in ("table", "html"):
        print(f"No repositories matching '{args.prefix}' found under {result.root_path}")
        return

    color = not args.no_color and sys.stdout.isatty()
    _print_result(result, options, color=color)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
