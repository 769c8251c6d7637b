"""Tag catalog endpoints."""

import logging
from typing import List

from fastapi import HTTPException

from ..core.database import StoreError
from ..models.catalog import Tag
from ..models.favorite import Favorite
from .catalog import build_catalog_router

logger = logging.getLogger(__name__)

router = build_catalog_router("/tags", "tag_manager", Tag)


@router.get("/tags/{tag_name}/favorites", response_model=List[Favorite])
async def list_favorites_by_tag(tag_name: str):
    """List favorites whose tag list contains the given tag name."""
    try:
        from . import favorite_manager

        return await favorite_manager.list_by_tag_name(tag_name)

    except StoreError as e:
        logger.error(f"Failed to list favorites for tag {tag_name!r}: {e}")
        raise HTTPException(status_code=500, detail="Database error")
