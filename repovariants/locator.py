"""Discovery of repository variants below a root folder."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from .errors import NotFoundError
from .logging import get_logger

DEFAULT_MAX_DEPTH = 8

_VCS_MARKERS = (".git",)

_logger = get_logger("locator")


def has_vcs_marker(path: Path) -> bool:
    """True when ``path`` holds a `.git` directory or a `.git` pointer file."""
    return any((path / marker).exists() for marker in _VCS_MARKERS)


def find_repositories(
    root: str | Path,
    name_prefix: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Return sorted paths of directories whose name contains ``name_prefix`` and hold VCS metadata.

    The walk descends at most ``max_depth`` levels below ``root`` and never enters
    `.git` directories. Unreadable directories are skipped. An empty result is
    a valid outcome; only a missing ``root`` raises ``NotFoundError``.
    """
    root_path = Path(root).expanduser()
    if not root_path.is_dir():
        raise NotFoundError(f"Root folder does not exist: {root}")
    root_path = root_path.resolve()

    matches: List[str] = []
    base_depth = len(root_path.parts)
    if name_prefix in root_path.name and has_vcs_marker(root_path):
        matches.append(str(root_path))

    def _onerror(err: OSError) -> None:
        _logger.debug("Skipping unreadable directory %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, _filenames in os.walk(root_path, onerror=_onerror):
        current = Path(dirpath)
        depth = len(current.parts) - base_depth

        dirnames[:] = sorted(name for name in dirnames if name not in _VCS_MARKERS)
        if depth >= max_depth:
            dirnames[:] = []

        for name in dirnames:
            if name_prefix not in name:
                continue
            candidate = current / name
            if has_vcs_marker(candidate):
                _logger.debug("Candidate repository: %s", candidate)
                matches.append(str(candidate))
            else:
                _logger.debug("Name matches but no VCS metadata: %s", candidate)

    matches.sort()
    return matches


__all__ = ["DEFAULT_MAX_DEPTH", "find_repositories", "has_vcs_marker"]
