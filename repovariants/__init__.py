"""Discover, rank and compare copies of a repository."""

from .config import CompareOptions
from .models import DiffRecord, DiffReport, ForensicReport, RankedResult, RepositoryCandidate
from .orchestrator import Orchestrator, compare_variants

__all__ = [
    "CompareOptions",
    "DiffRecord",
    "DiffReport",
    "ForensicReport",
    "Orchestrator",
    "RankedResult",
    "RepositoryCandidate",
    "compare_variants",
]
