"""Glob pattern matching for diff filtering."""

from __future__ import annotations

from fnmatch import fnmatch
from typing import Sequence


def pattern_matches(path: str, pattern: str) -> bool:
    """Return True when a repository-relative path matches one glob pattern.

    ``dir/`` and ``dir/**`` match everything below ``dir``; ``**/name`` matches
    at any depth; other wildcards use fnmatch semantics over the whole path,
    where ``*`` also crosses ``/``; a bare name matches that path or a basename.
    """
    normalized = path.replace("\\", "/")
    if pattern.endswith("/**"):
        prefix = pattern[:-3]
        return normalized == prefix or normalized.startswith(f"{prefix}/")
    if pattern.endswith("/"):
        return normalized.startswith(pattern)
    if pattern.startswith("**/"):
        suffix = pattern[3:]
        return (
            fnmatch(normalized, suffix)
            or fnmatch(normalized, f"*/{suffix}")
            or fnmatch(normalized, pattern)
        )
    if "/" in pattern or any(ch in pattern for ch in "*?["):
        return fnmatch(normalized, pattern)
    if normalized == pattern:
        return True
    return normalized.endswith(f"/{pattern}")


def matches_any(path: str, patterns: Sequence[str]) -> bool:
    """Inclusion filter: an empty pattern set matches every path."""
    if not patterns:
        return True
    return any(pattern_matches(path, pattern) for pattern in patterns)


__all__ = ["matches_any", "pattern_matches"]
