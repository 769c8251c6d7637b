"""Versioned schema migrations for the favorites store.

Each migration moves the store from version N-1 to N and runs inside a single
transaction together with its ledger row, so a failure leaves the store at
N-1. The ``schema_migrations`` ledger is the only record of what has run.
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, List, Set

from .database import StoreError, atomic, utc_now

logger = logging.getLogger(__name__)


class MigrationError(StoreError):
    """A schema migration failed and was rolled back."""

    pass


FAVORITES_DDL = """
CREATE TABLE {name} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER,
    text TEXT NOT NULL,
    url TEXT NOT NULL,
    tags TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    FOREIGN KEY (category_id) REFERENCES categories (id)
)
"""


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    apply: Callable[[sqlite3.Connection], None]


def _table_exists(conn: sqlite3.Connection, table: str) -> bool:
    row = conn.execute(
        "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return row[0] > 0


def _columns(conn: sqlite3.Connection, table: str) -> Set[str]:
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}


def _create_base_tables(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS tags (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        )
        """
    )
    # A favorites table from a store that predates the ledger is kept as-is;
    # the next migration brings its columns up to date.
    if not _table_exists(conn, "favorites"):
        conn.execute(FAVORITES_DDL.format(name="favorites"))


def _known_category(column: str) -> str:
    """SQL for ``column`` when it names an existing category, else NULL.

    Legacy rows may hold '' or ids of deleted categories; copying them as-is
    would fail the foreign key check.
    """
    return f"(SELECT c.id FROM categories c WHERE c.id = {column})"


def _backfill_created_at(conn: sqlite3.Connection) -> None:
    if "created_at" in _columns(conn, "favorites"):
        return

    logger.info("Rebuilding favorites table to add created_at")
    conn.execute("DROP TABLE IF EXISTS favorites_new")
    conn.execute(FAVORITES_DDL.format(name="favorites_new"))
    conn.execute(
        """
        INSERT INTO favorites_new (id, category_id, text, url, tags, created_at)
        SELECT id, {category}, text, url, COALESCE(tags, '[]'), ?
        FROM favorites
        """.format(category=_known_category("favorites.category_id")),
        (utc_now(),),
    )
    conn.execute("DROP TABLE favorites")
    conn.execute("ALTER TABLE favorites_new RENAME TO favorites")


def _consolidate_bookmarks(conn: sqlite3.Connection) -> None:
    """Fold the legacy bookmarks + bookmark_tags layout into favorites."""
    if not _table_exists(conn, "bookmarks"):
        return

    has_join_table = _table_exists(conn, "bookmark_tags")
    category_expr = _known_category("b.category_id")
    created_expr = "COALESCE(b.created_at, :now)" if "created_at" in _columns(
        conn, "bookmarks"
    ) else ":now"
    tags_expr = (
        """
        (SELECT json_group_array(t.name)
         FROM bookmark_tags bt JOIN tags t ON t.id = bt.tag_id
         WHERE bt.bookmark_id = b.id)
        """
        if has_join_table
        else "'[]'"
    )

    cursor = conn.execute(
        f"""
        INSERT INTO favorites (category_id, text, url, tags, created_at)
        SELECT {category_expr}, b.content, b.url, {tags_expr}, {created_expr}
        FROM bookmarks b
        ORDER BY b.id
        """,
        {"now": utc_now()},
    )
    logger.info(f"Moved {cursor.rowcount} legacy bookmark(s) into favorites")

    if has_join_table:
        conn.execute("DROP TABLE bookmark_tags")
    conn.execute("DROP TABLE bookmarks")


MIGRATIONS: List[Migration] = [
    Migration(1, "create categories, tags and favorites", _create_base_tables),
    Migration(2, "add favorites.created_at", _backfill_created_at),
    Migration(3, "consolidate bookmarks into favorites", _consolidate_bookmarks),
]

LATEST_VERSION = MIGRATIONS[-1].version


def _ensure_ledger(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
        """
    )


def applied_versions(conn: sqlite3.Connection) -> Set[int]:
    """Return the versions recorded in the ledger."""
    if not _table_exists(conn, "schema_migrations"):
        return set()
    return {row[0] for row in conn.execute("SELECT version FROM schema_migrations")}


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied schema version, 0 for a fresh store."""
    return max(applied_versions(conn), default=0)


def ensure_schema(conn: sqlite3.Connection, migrations: List[Migration] = MIGRATIONS) -> int:
    """Bring the store up to the latest schema version.

    Safe to call on every startup. ``conn`` must be in autocommit mode
    (``isolation_level=None``).

    Args:
        conn: Open connection to the store
        migrations: Ordered migration list

    Returns:
        Schema version after the run

    Raises:
        MigrationError: If any migration fails; that migration is rolled back
    """
    try:
        _ensure_ledger(conn)
        done = applied_versions(conn)
    except sqlite3.Error as e:
        raise MigrationError(f"Failed to read migration ledger: {e}") from e

    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version in done:
            continue

        logger.info(f"Applying migration {migration.version}: {migration.description}")
        try:
            with atomic(conn):
                migration.apply(conn)
                conn.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (migration.version, utc_now()),
                )
        except Exception as e:
            logger.error(f"Migration {migration.version} failed: {e}")
            raise MigrationError(
                f"Migration {migration.version} ({migration.description}) failed: {e}"
            ) from e
        done.add(migration.version)

    return max(done, default=0)
