"""Favorite data models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "Uncategorized"


class Favorite(BaseModel):
    """A saved link as returned by the repository."""

    id: int = Field(..., description="System-assigned identifier")
    category_id: Optional[int] = Field(None, description="Category reference")
    category_name: str = Field(
        default=UNCATEGORIZED, description="Resolved category name or sentinel"
    )
    text: str = Field(..., description="Free-text description")
    url: str = Field(..., description="Saved link (not validated as a URI)")
    tags: List[str] = Field(default_factory=list, description="Ordered tag list")
    created_at: str = Field(..., description="Creation timestamp (ISO-8601 UTC)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "category_id": 1,
                "category_name": "Articles",
                "text": "Rust guide",
                "url": "https://example.com/rust-guide",
                "tags": ["rust", "guide"],
                "created_at": "2026-03-14T12:00:00+00:00",
            }
        }
    )


class FavoriteFilters(BaseModel):
    """Optional filters for listing favorites."""

    search: Optional[str] = Field(None, description="Substring of the description")
    category_id: Optional[int] = Field(None, description="Exact category match")
    tag_id: Optional[int] = Field(None, description="Tag catalog id carried by the favorite")
    tag: Optional[str] = Field(None, description="Tag name carried by the favorite")

    @field_validator("search", "tag")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings as an absent filter."""
        if v is None or v == "":
            return None
        return v


class FavoritePage(BaseModel):
    """One page of a filtered favorites listing."""

    total: int = Field(..., description="Size of the unpaginated filtered set")
    page: int
    per_page: int
    items: List[Favorite] = Field(default_factory=list)
