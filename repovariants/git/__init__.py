"""Git query and status classification helpers."""

from .client import GitClient
from .status import StatusSummary, classify_status, group_by_kind, parse_porcelain, summarize_status

__all__ = [
    "GitClient",
    "StatusSummary",
    "classify_status",
    "group_by_kind",
    "parse_porcelain",
    "summarize_status",
]
