"""Configuration loading (.repovariants.yml) and option validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigurationError

CONFIG_FILENAME = ".repovariants.yml"

DIFF_LEVELS = ("none", "summary", "per-file", "full")
OUTPUT_FORMATS = ("table", "json", "csv", "html")
SORT_MODES = ("best", "timestamp", "dirty")

DEFAULT_EXCLUDE_DIRS = (
    ".git",
    ".hg",
    ".svn",
    "build",
    ".dart_tool",
    ".idea",
    ".vscode",
)


@dataclass
class CompareOptions:
    """Options for one comparison run."""

    diff_level: str = "none"
    diff_patterns: List[str] = field(default_factory=list)
    checksum: bool = False
    dirty_detail: bool = False
    output_format: str = "table"
    compute_best: bool = True
    sort: str = "best"
    grouped_summary: bool = False
    forensic: bool = False
    max_depth: int = 8
    workers: int = 4
    timeout: Optional[float] = 120.0
    output_dir: Path = field(default_factory=lambda: Path("."))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    top: Optional[int] = None


@dataclass
class LoggingConfig:
    """Log file and rotation settings."""

    file: bool = False
    keep: int = 20
    max_age_days: int = 30


@dataclass
class VariantsConfig:
    """Represents the settings defined in .repovariants.yml."""

    root: Path
    options: CompareOptions = field(default_factory=CompareOptions)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path) -> VariantsConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return VariantsConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    options = CompareOptions()

    diff_data = _as_dict(data.get("diff"))
    if diff_data:
        options.diff_level = _as_str(diff_data.get("level")) or options.diff_level
        options.diff_patterns = _as_str_list(diff_data.get("patterns"))
        options.checksum = _as_bool(diff_data.get("checksum")) or False
        options.grouped_summary = _as_bool(diff_data.get("grouped_summary")) or False

    output_data = _as_dict(data.get("output"))
    if output_data:
        options.output_format = _as_str(output_data.get("format")) or options.output_format
        directory = _as_str(output_data.get("directory"))
        if directory:
            options.output_dir = root / directory
        dirty_detail = _as_bool(output_data.get("dirty_detail"))
        if dirty_detail is not None:
            options.dirty_detail = dirty_detail
        top = _as_int(output_data.get("top"))
        if top is not None:
            options.top = top

    ranking_data = _as_dict(data.get("ranking"))
    if ranking_data:
        options.sort = _as_str(ranking_data.get("sort")) or options.sort
        compute_best = _as_bool(ranking_data.get("compute_best"))
        if compute_best is not None:
            options.compute_best = compute_best

    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        max_depth = _as_int(scan_data.get("max_depth"))
        if max_depth is not None:
            options.max_depth = max_depth
        workers = _as_int(scan_data.get("workers"))
        if workers is not None:
            options.workers = workers
        if "timeout" in scan_data:
            options.timeout = _as_float(scan_data.get("timeout"))
        exclude_dirs = _as_str_list(scan_data.get("exclude_dirs"))
        if exclude_dirs:
            options.exclude_dirs = exclude_dirs

    logging_config = LoggingConfig()
    logging_data = _as_dict(data.get("logging"))
    if logging_data:
        logging_config.file = _as_bool(logging_data.get("file")) or False
        keep = _as_int(logging_data.get("keep"))
        if keep is not None:
            logging_config.keep = keep
        max_age = _as_int(logging_data.get("max_age_days"))
        if max_age is not None:
            logging_config.max_age_days = max_age

    return VariantsConfig(root=root, options=options, logging=logging_config)


def validate_options(root_path: str | None, name_prefix: str | None, options: CompareOptions) -> None:
    """Reject missing inputs and invalid option values before any scan begins."""
    if not root_path or not str(root_path).strip():
        raise ConfigurationError("root path is required")
    if not name_prefix or not name_prefix.strip():
        raise ConfigurationError("repository name prefix is required")
    if options.diff_level not in DIFF_LEVELS:
        raise ConfigurationError(
            f"Invalid diff level: {options.diff_level!r} (expected one of {', '.join(DIFF_LEVELS)})"
        )
    if options.output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"Invalid output format: {options.output_format!r} (expected one of {', '.join(OUTPUT_FORMATS)})"
        )
    if options.sort not in SORT_MODES:
        raise ConfigurationError(
            f"Invalid sort mode: {options.sort!r} (expected one of {', '.join(SORT_MODES)})"
        )
    if options.workers < 1:
        raise ConfigurationError("workers must be at least 1")
    if options.max_depth < 1:
        raise ConfigurationError("max depth must be at least 1")
    if options.timeout is not None and options.timeout <= 0:
        raise ConfigurationError("timeout must be positive")
    if options.top is not None and options.top < 1:
        raise ConfigurationError("top must be at least 1")
    if options.diff_level != "none" and not options.compute_best:
        raise ConfigurationError("diffing requires a Best variant; enable best computation")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CompareOptions",
    "DEFAULT_EXCLUDE_DIRS",
    "DIFF_LEVELS",
    "LoggingConfig",
    "OUTPUT_FORMATS",
    "SORT_MODES",
    "VariantsConfig",
    "load_config",
    "validate_options",
]
