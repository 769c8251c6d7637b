"""Favorite CRUD and listing endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.database import StoreError
from ..core.favorite_manager import FavoriteNotFoundError, InvalidFavoriteError
from ..core.pagination import InvalidPageError
from ..models.favorite import Favorite, FavoriteFilters, FavoritePage

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response Models
class FavoritePayload(BaseModel):
    """Request body for creating or replacing a favorite."""

    category_id: Optional[int] = Field(None, alias="categoryId")
    text: str = Field(..., min_length=1, max_length=5000)
    url: str = Field(..., min_length=1, max_length=2048)
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("text", "url")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate field is not empty or whitespace."""
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace")

        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        """Strip tags and drop empty ones, keeping order."""
        return [t.strip() for t in v if t.strip()]


# Endpoints
@router.get("/favorites", response_model=FavoritePage)
async def list_favorites(
    page: Optional[int] = Query(None, description="Page number, 1-indexed"),
    per_page: Optional[int] = Query(None, description="Items per page"),
    search: Optional[str] = Query(None, description="Substring of the description"),
    category_id: Optional[int] = Query(None, description="Category ID"),
    tag_id: Optional[int] = Query(None, description="Tag catalog ID"),
    tag: Optional[str] = Query(None, description="Tag name"),
):
    """List favorites, newest first, with optional filters."""
    try:
        from . import favorite_manager

        filters = FavoriteFilters(
            search=search, category_id=category_id, tag_id=tag_id, tag=tag
        )
        return await favorite_manager.list_favorites(filters, page=page, per_page=per_page)

    except InvalidPageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error(f"Failed to list favorites: {e}")
        raise HTTPException(status_code=500, detail="Database error")


@router.post("/favorites", response_model=Favorite, status_code=201)
async def create_favorite(request: FavoritePayload):
    """Create a new favorite."""
    try:
        from . import favorite_manager

        return await favorite_manager.create_favorite(
            text=request.text,
            url=request.url,
            category_id=request.category_id,
            tags=request.tags,
        )

    except InvalidFavoriteError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error(f"Failed to create favorite: {e}")
        raise HTTPException(status_code=500, detail="Database error")


@router.get("/favorites/{favorite_id}", response_model=Favorite)
async def get_favorite(favorite_id: int):
    """Get a specific favorite by ID."""
    try:
        from . import favorite_manager

        return await favorite_manager.get_favorite(favorite_id)

    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error(f"Failed to get favorite {favorite_id}: {e}")
        raise HTTPException(status_code=500, detail="Database error")


@router.put("/favorites/{favorite_id}", response_model=Favorite)
async def update_favorite(favorite_id: int, request: FavoritePayload):
    """Replace a favorite's category, text, url and tags."""
    try:
        from . import favorite_manager

        return await favorite_manager.update_favorite(
            favorite_id,
            text=request.text,
            url=request.url,
            category_id=request.category_id,
            tags=request.tags,
        )

    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidFavoriteError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error(f"Failed to update favorite {favorite_id}: {e}")
        raise HTTPException(status_code=500, detail="Database error")


@router.delete("/favorites/{favorite_id}")
async def delete_favorite(favorite_id: int):
    """Permanently delete a favorite."""
    try:
        from . import favorite_manager

        await favorite_manager.delete_favorite(favorite_id)
        return {"deleted": favorite_id}

    except FavoriteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error(f"Failed to delete favorite {favorite_id}: {e}")
        raise HTTPException(status_code=500, detail="Database error")
