"""Category and tag catalog models."""

from pydantic import BaseModel, Field, field_validator


class CatalogEntry(BaseModel):
    """A named catalog row (category or tag)."""

    id: int
    name: str


class Category(CatalogEntry):
    """A named grouping; a favorite has at most one."""

    pass


class Tag(CatalogEntry):
    """A named label in the tag catalog."""

    pass


class CatalogEntryRequest(BaseModel):
    """Request body for creating or renaming a catalog entry."""

    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is not empty or whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")

        return v.strip()
