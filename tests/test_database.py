"""Tests for store connections and transactions."""

import sqlite3

import pytest

from favstash.core.database import ConstraintError, StoreError, atomic


class TestAtomic:
    """Test the transaction helper."""

    def test_commits_on_success(self, database):
        with database.transaction() as conn:
            conn.execute("INSERT INTO tags (name) VALUES ('kept')")

        with database.connection() as conn:
            assert conn.execute("SELECT count(*) FROM tags").fetchone()[0] == 1

    def test_constraint_violation(self, database):
        with database.connection() as conn:
            conn.execute("INSERT INTO tags (name) VALUES ('dup')")

            with pytest.raises(ConstraintError):
                with atomic(conn):
                    conn.execute("INSERT INTO tags (name) VALUES ('dup')")

            assert not conn.in_transaction

    def test_error_after_sqlite_rolled_back(self, database):
        """Test the original error surfaces when no transaction is left to roll back."""
        with database.connection() as conn:
            with pytest.raises(StoreError, match="no such table"):
                with atomic(conn):
                    conn.execute("ROLLBACK")
                    conn.execute("SELECT * FROM missing_table")

            assert not conn.in_transaction


class TestSnapshot:
    """Test read transactions."""

    def test_reads_share_one_transaction(self, database):
        """Test writers cannot commit between reads of one snapshot."""
        with database.snapshot() as conn:
            assert conn.in_transaction
            conn.execute("SELECT count(*) FROM favorites").fetchone()

            writer = sqlite3.connect(str(database.path), timeout=0, isolation_level=None)
            try:
                with pytest.raises(sqlite3.OperationalError, match="locked"):
                    writer.execute(
                        "INSERT INTO favorites (text, url, tags, created_at) "
                        "VALUES ('t', 'u', '[]', '2024-01-01T00:00:00+00:00')"
                    )
            finally:
                writer.close()

        with database.connection() as conn:
            assert conn.execute("SELECT count(*) FROM favorites").fetchone()[0] == 0
