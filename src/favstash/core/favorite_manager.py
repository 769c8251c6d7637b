"""Favorite manager for CRUD, filtering and pagination."""

import asyncio
import json
import logging
import sqlite3
from typing import List, Optional, Tuple

from ..models.favorite import UNCATEGORIZED, Favorite, FavoriteFilters, FavoritePage
from .database import ConstraintError, Database, StoreError, utc_now
from .pagination import DEFAULT_PER_PAGE, MAX_PER_PAGE, PageWindow, paginate
from .query_builder import build_predicate

logger = logging.getLogger(__name__)

SELECT_FAVORITE = """
    SELECT f.id, f.category_id, COALESCE(c.name, ?) AS category_name,
           f.text, f.url, f.tags, f.created_at
    FROM favorites f
    LEFT JOIN categories c ON f.category_id = c.id
"""


class FavoriteNotFoundError(Exception):
    """Favorite not found error."""

    pass


class InvalidFavoriteError(ValueError):
    """Favorite payload could not be stored."""

    pass


def encode_tags(tags: Optional[List[str]]) -> str:
    """Serialize a tag list to the JSON text stored in favorites.tags.

    Raises:
        InvalidFavoriteError: If the tags are not a list of strings
    """
    tags = tags or []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise InvalidFavoriteError("Tags must be a list of strings")
    try:
        return json.dumps(tags, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise InvalidFavoriteError(f"Failed to serialize tags: {e}") from e


def decode_tags(raw: Optional[str], favorite_id: Optional[int] = None) -> List[str]:
    """Parse stored tag JSON, tolerating legacy or damaged values."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning(f"Favorite {favorite_id} has malformed tags JSON; returning no tags")
        return []
    if not isinstance(value, list):
        logger.warning(f"Favorite {favorite_id} tags JSON is not a list; returning no tags")
        return []
    return [str(t) for t in value]


def _row_to_favorite(row: sqlite3.Row) -> Favorite:
    return Favorite(
        id=row["id"],
        category_id=row["category_id"],
        category_name=row["category_name"],
        text=row["text"],
        url=row["url"],
        tags=decode_tags(row["tags"], row["id"]),
        created_at=row["created_at"],
    )


class FavoriteManager:
    """Manages favorite CRUD operations against the store."""

    def __init__(
        self,
        database: Database,
        default_per_page: int = DEFAULT_PER_PAGE,
        max_per_page: int = MAX_PER_PAGE,
    ):
        """Initialize favorite manager.

        Args:
            database: Store access
            default_per_page: Page size when the caller gives none
            max_per_page: Upper bound for page size
        """
        self.db = database
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page

    def _fetch_one(self, conn: sqlite3.Connection, favorite_id: int) -> Optional[Favorite]:
        row = conn.execute(
            SELECT_FAVORITE + " WHERE f.id = ?", (UNCATEGORIZED, favorite_id)
        ).fetchone()
        return _row_to_favorite(row) if row else None

    def _query_page(
        self, count_sql: str, list_sql: str, params: list, window: PageWindow
    ) -> Tuple[int, List[Favorite]]:
        try:
            # One read transaction, so total and items agree.
            with self.db.snapshot() as conn:
                total = conn.execute(count_sql, params).fetchone()[0]
                rows = conn.execute(
                    list_sql, [UNCATEGORIZED, *params, window.limit, window.offset]
                ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to list favorites: {e}")
            raise StoreError(str(e)) from e
        return total, [_row_to_favorite(row) for row in rows]

    async def list_favorites(
        self,
        filters: Optional[FavoriteFilters] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> FavoritePage:
        """List favorites matching filters, newest first.

        Args:
            filters: Optional search/category/tag filters
            page: 1-indexed page number
            per_page: Page size (clamped to max_per_page)

        Returns:
            FavoritePage with the unpaginated total and the requested page

        Raises:
            InvalidPageError: If page or per_page is below 1
            StoreError: If the store fails
        """
        filters = filters or FavoriteFilters()
        window = paginate(page, per_page, self.default_per_page, self.max_per_page)
        where_sql, params = build_predicate(filters)

        count_sql = f"SELECT COUNT(*) FROM favorites f{where_sql}"
        list_sql = (
            f"{SELECT_FAVORITE}{where_sql} "
            "ORDER BY f.created_at DESC, f.id DESC LIMIT ? OFFSET ?"
        )

        logger.debug(f"Listing favorites: {list_sql.strip()} params={params}")

        total, items = await asyncio.to_thread(
            self._query_page, count_sql, list_sql, params, window
        )

        return FavoritePage(
            total=total,
            page=window.page,
            per_page=window.per_page,
            items=items,
        )

    def _insert(self, category_id: Optional[int], text: str, url: str, tags_json: str) -> Favorite:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO favorites (category_id, text, url, tags, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (category_id, text, url, tags_json, utc_now()),
            )
            return self._fetch_one(conn, cursor.lastrowid)

    async def create_favorite(
        self,
        text: str,
        url: str,
        category_id: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Favorite:
        """Create a new favorite.

        The insert and the read-back of the enriched record share one
        transaction.

        Returns:
            Created Favorite with resolved category name

        Raises:
            InvalidFavoriteError: If tags cannot be serialized or category_id
                does not exist
            StoreError: If the store fails
        """
        tags_json = encode_tags(tags)

        try:
            favorite = await asyncio.to_thread(self._insert, category_id, text, url, tags_json)
        except ConstraintError as e:
            raise InvalidFavoriteError(f"Unknown category: {category_id}") from e

        logger.info(f"Created favorite {favorite.id}: {favorite.url}")

        return favorite

    def _select(self, favorite_id: int) -> Optional[Favorite]:
        try:
            with self.db.connection() as conn:
                return self._fetch_one(conn, favorite_id)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    async def get_favorite(self, favorite_id: int) -> Favorite:
        """Get favorite by ID.

        Raises:
            FavoriteNotFoundError: If favorite doesn't exist
            StoreError: If the store fails
        """
        favorite = await asyncio.to_thread(self._select, favorite_id)

        if favorite is None:
            raise FavoriteNotFoundError(f"Favorite not found: {favorite_id}")

        return favorite

    def _replace(
        self, favorite_id: int, category_id: Optional[int], text: str, url: str, tags_json: str
    ) -> Favorite:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE favorites SET category_id = ?, text = ?, url = ?, tags = ? "
                "WHERE id = ?",
                (category_id, text, url, tags_json, favorite_id),
            )
            if cursor.rowcount == 0:
                raise FavoriteNotFoundError(f"Favorite not found: {favorite_id}")
            return self._fetch_one(conn, favorite_id)

    async def update_favorite(
        self,
        favorite_id: int,
        text: str,
        url: str,
        category_id: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Favorite:
        """Replace the mutable fields of a favorite.

        id and created_at never change. A missing row is detected from the
        affected-row count of the UPDATE itself.

        Raises:
            FavoriteNotFoundError: If favorite doesn't exist
            InvalidFavoriteError: If tags cannot be serialized or category_id
                does not exist
            StoreError: If the store fails
        """
        tags_json = encode_tags(tags)

        try:
            favorite = await asyncio.to_thread(
                self._replace, favorite_id, category_id, text, url, tags_json
            )
        except ConstraintError as e:
            raise InvalidFavoriteError(f"Unknown category: {category_id}") from e

        logger.info(f"Updated favorite {favorite_id}")

        return favorite

    def _remove(self, favorite_id: int) -> None:
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM favorites WHERE id = ?", (favorite_id,))
            if cursor.rowcount == 0:
                raise FavoriteNotFoundError(f"Favorite not found: {favorite_id}")

    async def delete_favorite(self, favorite_id: int) -> None:
        """Permanently delete a favorite.

        Raises:
            FavoriteNotFoundError: If favorite doesn't exist
            StoreError: If the store fails
        """
        await asyncio.to_thread(self._remove, favorite_id)

        logger.info(f"Deleted favorite {favorite_id}")

    def _select_by_tag(self, sql: str, params: list, tag_name: str) -> List[Favorite]:
        try:
            with self.db.connection() as conn:
                rows = conn.execute(sql, [UNCATEGORIZED, *params]).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to list favorites for tag {tag_name!r}: {e}")
            raise StoreError(str(e)) from e
        return [_row_to_favorite(row) for row in rows]

    async def list_by_tag_name(self, tag_name: str) -> List[Favorite]:
        """All favorites carrying a tag name, newest first."""
        where_sql, params = build_predicate(FavoriteFilters(tag=tag_name))
        sql = f"{SELECT_FAVORITE}{where_sql} ORDER BY f.created_at DESC, f.id DESC"

        return await asyncio.to_thread(self._select_by_tag, sql, params, tag_name)
