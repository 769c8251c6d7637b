"""Tests for FavoriteManager CRUD, filtering and pagination."""

import asyncio

import pytest

from favstash.core.favorite_manager import (
    FavoriteNotFoundError,
    InvalidFavoriteError,
    decode_tags,
    encode_tags,
)
from favstash.core.pagination import InvalidPageError
from favstash.models.favorite import UNCATEGORIZED, FavoriteFilters


async def _seed(favorites, count: int, **kwargs):
    created = []
    for i in range(count):
        created.append(
            await favorites.create_favorite(text=f"Item {i}", url=f"http://{i}.test", **kwargs)
        )
    return created


class TestCreateAndGet:
    """Test creating and reading favorites."""

    @pytest.mark.asyncio
    async def test_create_returns_enriched_record(self, favorites, categories):
        """Test create resolves category name and assigns id and timestamp."""
        category = await categories.create_entry("Articles")

        favorite = await favorites.create_favorite(
            text="Rust guide",
            url="http://x.test",
            category_id=category.id,
            tags=["rust", "guide"],
        )

        assert favorite.id > 0
        assert favorite.category_id == category.id
        assert favorite.category_name == "Articles"
        assert favorite.tags == ["rust", "guide"]
        assert favorite.created_at

    @pytest.mark.asyncio
    async def test_tags_round_trip_in_order(self, favorites):
        """Test tags read back in the order they were stored."""
        created = await favorites.create_favorite(text="t", url="u", tags=["b", "a"])

        fetched = await favorites.get_favorite(created.id)

        assert fetched.tags == ["b", "a"]

    @pytest.mark.asyncio
    async def test_uncategorized_sentinel(self, favorites):
        """Test favorites without category show the sentinel name."""
        favorite = await favorites.create_favorite(text="t", url="u")

        assert favorite.category_id is None
        assert favorite.category_name == UNCATEGORIZED

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(self, favorites):
        """Test a dangling category reference is refused."""
        with pytest.raises(InvalidFavoriteError, match="Unknown category"):
            await favorites.create_favorite(text="t", url="u", category_id=999)

        page = await favorites.list_favorites()
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, favorites):
        with pytest.raises(FavoriteNotFoundError, match="Favorite not found"):
            await favorites.get_favorite(12345)


class TestUpdate:
    """Test replacing favorites."""

    @pytest.mark.asyncio
    async def test_update_replaces_mutable_fields(self, favorites, categories):
        """Test update changes fields but keeps id and created_at."""
        category = await categories.create_entry("Docs")
        created = await favorites.create_favorite(text="old", url="http://old", tags=["a"])

        updated = await favorites.update_favorite(
            created.id, text="new", url="http://new", category_id=category.id, tags=["b"]
        )

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.text == "new"
        assert updated.url == "http://new"
        assert updated.category_name == "Docs"
        assert updated.tags == ["b"]

    @pytest.mark.asyncio
    async def test_update_nonexistent_leaves_store_unchanged(self, favorites):
        """Test update of unknown id raises and writes nothing."""
        with pytest.raises(FavoriteNotFoundError):
            await favorites.update_favorite(999999, text="t", url="u", tags=[])

        page = await favorites.list_favorites()
        assert page.total == 0
        assert page.items == []


class TestDelete:
    """Test hard deletes."""

    @pytest.mark.asyncio
    async def test_delete_then_get_and_delete_again(self, favorites):
        """Test delete succeeds once, then get and delete raise not found."""
        created = await favorites.create_favorite(text="t", url="u")

        await favorites.delete_favorite(created.id)

        with pytest.raises(FavoriteNotFoundError):
            await favorites.delete_favorite(created.id)
        with pytest.raises(FavoriteNotFoundError):
            await favorites.get_favorite(created.id)


class TestListing:
    """Test filtered, paginated listing."""

    @pytest.mark.asyncio
    async def test_search(self, favorites):
        """Test search matches description substrings."""
        created = await favorites.create_favorite(
            text="Rust guide", url="http://x.test", tags=["rust", "guide"]
        )
        await favorites.create_favorite(text="Python notes", url="http://y.test")

        page = await favorites.list_favorites(FavoriteFilters(search="Rust"))
        assert page.total == 1
        assert [f.id for f in page.items] == [created.id]

        empty = await favorites.list_favorites(FavoriteFilters(search="nomatch"))
        assert empty.total == 0
        assert empty.items == []

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, favorites):
        """Test % in the search term is not a wildcard."""
        await favorites.create_favorite(text="100% done", url="u")
        await favorites.create_favorite(text="100 done", url="u")

        page = await favorites.list_favorites(FavoriteFilters(search="100%"))

        assert [f.text for f in page.items] == ["100% done"]

    @pytest.mark.asyncio
    async def test_category_filter(self, favorites, categories):
        """Test category filter returns only that category's favorites."""
        first = await categories.create_entry("One")
        second = await categories.create_entry("Two")
        in_first = await favorites.create_favorite(text="a", url="u", category_id=first.id)
        await favorites.create_favorite(text="b", url="u", category_id=second.id)

        page = await favorites.list_favorites(FavoriteFilters(category_id=first.id))

        assert page.total == 1
        assert [f.id for f in page.items] == [in_first.id]

    @pytest.mark.asyncio
    async def test_tag_id_filter_matches_whole_tags(self, favorites, tags):
        """Test tag id filtering compares whole tag names, not substrings."""
        rust = await tags.create_entry("rust")
        await tags.create_entry("rustacean")
        tagged = await favorites.create_favorite(text="a", url="u", tags=["rust"])
        await favorites.create_favorite(text="b", url="u", tags=["rustacean"])
        await favorites.create_favorite(text="c", url="u", tags=[])

        page = await favorites.list_favorites(FavoriteFilters(tag_id=rust.id))

        assert page.total == 1
        assert [f.id for f in page.items] == [tagged.id]

    @pytest.mark.asyncio
    async def test_tag_id_of_one_does_not_match_twenty_one(self, favorites, database):
        """Test tag id 1 never matches a favorite tagged with a name containing it."""
        with database.connection() as conn:
            conn.execute("INSERT INTO tags (id, name) VALUES (1, '1'), (21, '21')")
        await favorites.create_favorite(text="a", url="u", tags=["21"])

        page = await favorites.list_favorites(FavoriteFilters(tag_id=1))

        assert page.total == 0

    @pytest.mark.asyncio
    async def test_unknown_tag_id_matches_nothing(self, favorites):
        await favorites.create_favorite(text="a", url="u", tags=["x"])

        page = await favorites.list_favorites(FavoriteFilters(tag_id=42))

        assert page.total == 0

    @pytest.mark.asyncio
    async def test_malformed_tags_do_not_break_listing(self, favorites, database):
        """Test a row with damaged tag JSON is listed with no tags."""
        await favorites.create_favorite(text="ok", url="u", tags=["x"])
        with database.connection() as conn:
            conn.execute(
                "INSERT INTO favorites (text, url, tags, created_at) "
                "VALUES ('broken', 'u', '{not json', '2020-01-01T00:00:00+00:00')"
            )

        page = await favorites.list_favorites(FavoriteFilters(tag="x"))
        assert page.total == 1

        everything = await favorites.list_favorites()
        broken = [f for f in everything.items if f.text == "broken"][0]
        assert broken.tags == []

    @pytest.mark.asyncio
    async def test_newest_first(self, favorites, database):
        """Test items are ordered by created_at descending."""
        with database.connection() as conn:
            conn.execute(
                "INSERT INTO favorites (text, url, tags, created_at) VALUES "
                "('old', 'u', '[]', '2020-01-01T00:00:00+00:00'),"
                "('new', 'u', '[]', '2024-01-01T00:00:00+00:00'),"
                "('mid', 'u', '[]', '2022-01-01T00:00:00+00:00')"
            )

        page = await favorites.list_favorites()

        assert [f.text for f in page.items] == ["new", "mid", "old"]

    @pytest.mark.asyncio
    async def test_pages_cover_total(self, favorites):
        """Test page sizes follow min(per_page, total - offset) and sum to total."""
        await _seed(favorites, 23)

        seen = []
        for page_number in range(1, 5):
            page = await favorites.list_favorites(page=page_number, per_page=10)
            offset = (page_number - 1) * 10
            assert page.total == 23
            assert len(page.items) == max(0, min(10, 23 - offset))
            seen.extend(f.id for f in page.items)

        assert len(seen) == 23
        assert len(set(seen)) == 23

    @pytest.mark.asyncio
    async def test_total_matches_filtered_count(self, favorites, categories):
        """Test total equals the unpaginated filtered row count."""
        category = await categories.create_entry("Mixed")
        await _seed(favorites, 7, category_id=category.id, tags=["keep"])
        await _seed(favorites, 5)

        filters = FavoriteFilters(category_id=category.id, tag="keep", search="Item")
        page = await favorites.list_favorites(filters, page=1, per_page=3)

        assert page.total == 7
        assert len(page.items) == 3

    @pytest.mark.asyncio
    async def test_per_page_clamped(self, database):
        """Test per_page above the configured maximum is clamped."""
        from favstash.core.favorite_manager import FavoriteManager

        manager = FavoriteManager(database, max_per_page=5)
        await _seed(manager, 8)

        page = await manager.list_favorites(per_page=50)

        assert page.per_page == 5
        assert len(page.items) == 5

    @pytest.mark.asyncio
    async def test_invalid_page(self, favorites):
        with pytest.raises(InvalidPageError):
            await favorites.list_favorites(page=0)

    @pytest.mark.asyncio
    async def test_list_by_tag_name(self, favorites):
        """Test listing all favorites carrying a tag name."""
        first = await favorites.create_favorite(text="a", url="u", tags=["web", "x"])
        await favorites.create_favorite(text="b", url="u", tags=["webdev"])

        result = await favorites.list_by_tag_name("web")

        assert [f.id for f in result] == [first.id]


class TestTagEncoding:
    """Test tag JSON helpers."""

    def test_encode_keeps_unicode(self):
        assert encode_tags(["日本", "a"]) == '["日本", "a"]'

    def test_encode_none_is_empty_list(self):
        assert encode_tags(None) == "[]"

    def test_encode_rejects_non_strings(self):
        with pytest.raises(InvalidFavoriteError):
            encode_tags(["ok", 3])

    def test_decode_tolerates_bad_values(self):
        assert decode_tags(None) == []
        assert decode_tags("{oops") == []
        assert decode_tags('{"a": 1}') == []
        assert decode_tags('["a", "b"]') == ["a", "b"]


class TestStoreAccess:
    """Test how the manager uses the store."""

    @pytest.mark.asyncio
    async def test_scalar_tags_json_never_matches(self, favorites, database):
        """Test a stored JSON string is neither displayed nor matched as a tag."""
        with database.connection() as conn:
            conn.execute(
                "INSERT INTO favorites (text, url, tags, created_at) "
                "VALUES ('scalar', 'u', '\"rust\"', '2020-01-01T00:00:00+00:00')"
            )

        page = await favorites.list_favorites(FavoriteFilters(tag="rust"))
        everything = await favorites.list_favorites()

        assert page.total == 0
        assert everything.items[0].tags == []

    @pytest.mark.asyncio
    async def test_count_and_page_share_a_snapshot(self, favorites, database, monkeypatch):
        """Test listing reads total and items in one read transaction."""
        opened = []
        snapshot = database.snapshot

        def recording_snapshot():
            opened.append(True)
            return snapshot()

        monkeypatch.setattr(database, "snapshot", recording_snapshot)
        await favorites.create_favorite(text="t", url="u")

        page = await favorites.list_favorites()

        assert opened == [True]
        assert page.total == len(page.items) == 1

    @pytest.mark.asyncio
    async def test_waiting_write_leaves_event_loop_free(self, favorites, database):
        """Test a write blocked on a lock lets other tasks run meanwhile."""
        holder = database.connect()
        holder.execute("BEGIN IMMEDIATE")

        async def release():
            await asyncio.sleep(0.2)
            holder.execute("COMMIT")

        try:
            releaser = asyncio.create_task(release())
            favorite = await favorites.create_favorite(text="t", url="u")
            await releaser
        finally:
            holder.close()

        assert favorite.id > 0
        assert (await favorites.get_favorite(favorite.id)).text == "t"
