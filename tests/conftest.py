from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.vault_builder import VaultBuilder


@pytest.fixture
def vault_builder(tmp_path: Path) -> VaultBuilder:
    """Provide a reusable vault builder rooted at the pytest tmp_path."""
    return VaultBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_vaultsite_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("vaultsite")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
