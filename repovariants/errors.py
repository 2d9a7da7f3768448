"""Error taxonomy for repository variant comparison."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when required inputs are missing or an option value is invalid."""


class NotFoundError(FileNotFoundError):
    """Raised when the scan root does not exist."""


class PartialScanError(RuntimeError):
    """Raised by a single metadata query; recovered inside the scanner."""


class DiffComparisonError(RuntimeError):
    """Raised when one path cannot be compared; recovered as an anomaly record."""

    def __init__(self, relative_path: str, message: str) -> None:
        super().__init__(f"{relative_path}: {message}")
        self.relative_path = relative_path


__all__ = [
    "ConfigurationError",
    "DiffComparisonError",
    "NotFoundError",
    "PartialScanError",
]
