"""Category endpoints."""

from ..models.catalog import Category
from .catalog import build_catalog_router

router = build_catalog_router("/categories", "category_manager", Category)
