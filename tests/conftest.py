"""Shared fixtures for model defaults tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from model_defaults.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Reload settings from the (possibly patched) environment in every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def engine() -> Iterator[Engine]:
    """In-memory SQLite engine shared by all sessions of one test."""
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()
