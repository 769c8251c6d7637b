"""Shared CRUD routes for name catalogs (categories and tags)."""

import logging
from typing import List, Type

from fastapi import APIRouter, HTTPException

from ..core.catalog_manager import CatalogEntryNotFoundError, DuplicateNameError
from ..core.database import StoreError
from ..models.catalog import CatalogEntry, CatalogEntryRequest

logger = logging.getLogger(__name__)


def build_catalog_router(path: str, manager_attr: str, model: Type[CatalogEntry]) -> APIRouter:
    """Create list/create/get/update/delete routes for one catalog.

    Args:
        path: Collection path, e.g. "/categories"
        manager_attr: Name of the manager global in the api package
        model: Response model for a single entry
    """
    router = APIRouter()

    def manager():
        # Read live globals from api module at request time.
        from favstash import api

        return getattr(api, manager_attr)

    @router.get(path, response_model=List[model])
    async def list_entries():
        try:
            return await manager().list_entries()
        except StoreError as e:
            logger.error(f"Failed to list {path}: {e}")
            raise HTTPException(status_code=500, detail="Database error")

    @router.post(path, response_model=model, status_code=201)
    async def create_entry(request: CatalogEntryRequest):
        try:
            return await manager().create_entry(request.name)
        except DuplicateNameError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StoreError as e:
            logger.error(f"Failed to create entry in {path}: {e}")
            raise HTTPException(status_code=500, detail="Database error")

    @router.get(path + "/{entry_id}", response_model=model)
    async def get_entry(entry_id: int):
        try:
            return await manager().get_entry(entry_id)
        except CatalogEntryNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except StoreError as e:
            logger.error(f"Failed to get {path}/{entry_id}: {e}")
            raise HTTPException(status_code=500, detail="Database error")

    @router.put(path + "/{entry_id}", response_model=model)
    async def update_entry(entry_id: int, request: CatalogEntryRequest):
        try:
            return await manager().update_entry(entry_id, request.name)
        except CatalogEntryNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except DuplicateNameError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StoreError as e:
            logger.error(f"Failed to update {path}/{entry_id}: {e}")
            raise HTTPException(status_code=500, detail="Database error")

    @router.delete(path + "/{entry_id}")
    async def delete_entry(entry_id: int):
        try:
            await manager().delete_entry(entry_id)
            return {"deleted": entry_id}
        except CatalogEntryNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except StoreError as e:
            logger.error(f"Failed to delete {path}/{entry_id}: {e}")
            raise HTTPException(status_code=500, detail="Database error")

    return router
