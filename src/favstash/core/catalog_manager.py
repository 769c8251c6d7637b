"""Category and tag catalog management."""

import asyncio
import logging
import sqlite3
from typing import Generic, List, Type, TypeVar

from ..models.catalog import CatalogEntry, Category, Tag
from .database import ConstraintError, Database, StoreError

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT", bound=CatalogEntry)


class CatalogEntryNotFoundError(Exception):
    """Category or tag not found error."""

    pass


class DuplicateNameError(Exception):
    """A category or tag with that name already exists."""

    pass


class CatalogManager(Generic[EntryT]):
    """CRUD over one name catalog table (categories or tags)."""

    table: str = ""
    label: str = ""
    model: Type[CatalogEntry] = CatalogEntry

    def __init__(self, database: Database):
        self.db = database

    def _on_delete(self, conn: sqlite3.Connection, entry_id: int) -> None:
        """Hook run in the delete transaction before the row is removed."""
        pass

    def _select_all(self) -> List[EntryT]:
        try:
            with self.db.connection() as conn:
                rows = conn.execute(
                    f"SELECT id, name FROM {self.table} ORDER BY id"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return [self.model(id=row["id"], name=row["name"]) for row in rows]

    async def list_entries(self) -> List[EntryT]:
        """List all entries ordered by id."""
        return await asyncio.to_thread(self._select_all)

    def _select(self, entry_id: int):
        try:
            with self.db.connection() as conn:
                return conn.execute(
                    f"SELECT id, name FROM {self.table} WHERE id = ?", (entry_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    async def get_entry(self, entry_id: int) -> EntryT:
        """Get entry by ID.

        Raises:
            CatalogEntryNotFoundError: If the entry doesn't exist
        """
        row = await asyncio.to_thread(self._select, entry_id)

        if row is None:
            raise CatalogEntryNotFoundError(f"{self.label} not found: {entry_id}")

        return self.model(id=row["id"], name=row["name"])

    def _insert(self, name: str) -> int:
        with self.db.transaction() as conn:
            cursor = conn.execute(f"INSERT INTO {self.table} (name) VALUES (?)", (name,))
            return cursor.lastrowid

    async def create_entry(self, name: str) -> EntryT:
        """Create an entry.

        Raises:
            DuplicateNameError: If the name is taken
        """
        try:
            entry_id = await asyncio.to_thread(self._insert, name)
        except ConstraintError as e:
            raise DuplicateNameError(f"{self.label} already exists: {name}") from e

        logger.info(f"Created {self.label.lower()} {entry_id}: {name}")

        return self.model(id=entry_id, name=name)

    def _rename(self, entry_id: int, name: str) -> None:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE {self.table} SET name = ? WHERE id = ?", (name, entry_id)
            )
            if cursor.rowcount == 0:
                raise CatalogEntryNotFoundError(f"{self.label} not found: {entry_id}")

    async def update_entry(self, entry_id: int, name: str) -> EntryT:
        """Rename an entry.

        Raises:
            CatalogEntryNotFoundError: If the entry doesn't exist
            DuplicateNameError: If the name is taken
        """
        try:
            await asyncio.to_thread(self._rename, entry_id, name)
        except ConstraintError as e:
            raise DuplicateNameError(f"{self.label} already exists: {name}") from e

        logger.info(f"Renamed {self.label.lower()} {entry_id} to {name}")

        return self.model(id=entry_id, name=name)

    def _remove(self, entry_id: int) -> None:
        with self.db.transaction() as conn:
            self._on_delete(conn, entry_id)
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (entry_id,))
            if cursor.rowcount == 0:
                raise CatalogEntryNotFoundError(f"{self.label} not found: {entry_id}")

    async def delete_entry(self, entry_id: int) -> None:
        """Delete an entry.

        Raises:
            CatalogEntryNotFoundError: If the entry doesn't exist
        """
        await asyncio.to_thread(self._remove, entry_id)

        logger.info(f"Deleted {self.label.lower()} {entry_id}")


class CategoryManager(CatalogManager[Category]):
    """Manages the category catalog."""

    table = "categories"
    label = "Category"
    model = Category

    def _on_delete(self, conn: sqlite3.Connection, entry_id: int) -> None:
        # Referencing favorites become uncategorized.
        conn.execute(
            "UPDATE favorites SET category_id = NULL WHERE category_id = ?", (entry_id,)
        )


class TagManager(CatalogManager[Tag]):
    """Manages the tag catalog.

    Favorites embed tag names directly, so deleting or renaming a catalog
    tag leaves existing favorites untouched.
    """

    table = "tags"
    label = "Tag"
    model = Tag
