"""Shared fixtures."""

from pathlib import Path

import pytest

from favstash.config import configure_logging
from favstash.core.catalog_manager import CategoryManager, TagManager
from favstash.core.database import Database
from favstash.core.favorite_manager import FavoriteManager
from favstash.core.migrations import ensure_schema


@pytest.fixture(scope="session", autouse=True)
def test_logging():
    """Configure logging once per test session."""
    configure_logging("DEBUG")


@pytest.fixture
def database(tmp_path: Path) -> Database:
    """Migrated store in a temporary directory."""
    db = Database(tmp_path / "favstash.db")
    with db.connection() as conn:
        ensure_schema(conn)
    return db


@pytest.fixture
def favorites(database) -> FavoriteManager:
    return FavoriteManager(database)


@pytest.fixture
def categories(database) -> CategoryManager:
    return CategoryManager(database)


@pytest.fixture
def tags(database) -> TagManager:
    return TagManager(database)
