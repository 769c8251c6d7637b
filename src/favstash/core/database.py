"""SQLite store access."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The relational store reported a failure."""

    pass


class ConstraintError(StoreError):
    """A UNIQUE, NOT NULL or FOREIGN KEY constraint rejected a write."""

    pass


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Database:
    """Opens connections to a single SQLite store file."""

    def __init__(self, path: Union[str, Path]):
        """Initialize store access.

        Args:
            path: Path to the SQLite file. Parent directories are created.
        """
        self.path = Path(path)

    def connect(self) -> sqlite3.Connection:
        """Open a new connection with row access by column name.

        Raises:
            StoreError: If the file cannot be opened
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Transactions are issued explicitly by transaction().
            conn = sqlite3.connect(str(self.path), isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            return conn
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Failed to open database {self.path}: {e}") from e

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection and close it afterwards."""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside one atomic unit.

        Commits on success, rolls back on any exception. sqlite3 errors are
        re-raised as StoreError; other exceptions propagate unchanged.
        """
        with self.connection() as conn:
            with atomic(conn):
                yield conn

    @contextmanager
    def snapshot(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a read transaction.

        Every query in the block sees the same state of the store.
        """
        with self.connection() as conn:
            with atomic(conn, mode="DEFERRED"):
                yield conn


def _rollback(conn: sqlite3.Connection) -> None:
    # SQLite may already have rolled back on its own (disk full, I/O error).
    if conn.in_transaction:
        conn.execute("ROLLBACK")


@contextmanager
def atomic(conn: sqlite3.Connection, mode: str = "IMMEDIATE") -> Iterator[sqlite3.Connection]:
    """Run a block in BEGIN <mode> ... COMMIT on an autocommit connection."""
    try:
        conn.execute(f"BEGIN {mode}")
    except sqlite3.Error as e:
        raise StoreError(f"Failed to begin transaction: {e}") from e

    try:
        yield conn
    except sqlite3.IntegrityError as e:
        _rollback(conn)
        raise ConstraintError(str(e)) from e
    except sqlite3.Error as e:
        _rollback(conn)
        logger.error(f"Transaction rolled back: {e}")
        raise StoreError(str(e)) from e
    except BaseException:
        _rollback(conn)
        raise
    else:
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            _rollback(conn)
            raise StoreError(f"Failed to commit transaction: {e}") from e
