from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.variant_builder import VariantBuilder


@pytest.fixture
def variant_builder(tmp_path: Path) -> VariantBuilder:
    """Provide a reusable variant tree builder rooted at the pytest tmp_path."""
    return VariantBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_repovariants_logger() -> Iterator[None]:
    """Drop handlers installed by configure_logging so tests stay independent."""
    yield
    logger = logging.getLogger("repovariants")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
