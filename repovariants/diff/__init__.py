"""Tree comparison between repository variants."""

from .engine import DIFF_MODES, DiffEngine, compare_trees, filter_records, full_diff_filename, summarize

__all__ = [
    "DIFF_MODES",
    "DiffEngine",
    "compare_trees",
    "filter_records",
    "full_diff_filename",
    "summarize",
]
