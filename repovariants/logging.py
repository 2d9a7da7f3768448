"""Logging utilities for repovariants commands."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List

_LOGGER_NAME = "repovariants"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repovariants hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the repovariants logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[repovariants] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def comparison_log_path(directory: Path, prefix: str, run_stamp: str, diff_level: str) -> Path:
    """Return the log file path for one comparison run."""
    return directory / f"{prefix}_comparison_{run_stamp}_{diff_level}.log"


def rotate_logs(
    directory: Path,
    prefix: str,
    *,
    keep: int = 20,
    max_age_days: int = 30,
    now: float | None = None,
) -> List[Path]:
    """Delete comparison logs older than ``max_age_days`` and all but the newest ``keep``.

    Returns the removed paths. Files that vanish or cannot be removed are skipped.
    """
    if not directory.is_dir():
        return []

    current = time.time() if now is None else now
    cutoff = current - max_age_days * 86400
    removed: List[Path] = []

    survivors: List[tuple[float, Path]] = []
    for path in directory.glob(f"{prefix}_comparison_*.log"):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        if mtime < cutoff:
            if _unlink(path):
                removed.append(path)
            continue
        survivors.append((mtime, path))

    survivors.sort(key=lambda item: (item[0], item[1].name), reverse=True)
    for _, path in survivors[max(keep, 0):]:
        if _unlink(path):
            removed.append(path)
    return removed


def _unlink(path: Path) -> bool:
    try:
        path.unlink()
    except OSError:
        return False
    return True


__all__ = ["comparison_log_path", "configure_logging", "get_logger", "rotate_logs"]
