"""Health check endpoint."""

from fastapi import APIRouter

from ..core.migrations import LATEST_VERSION, current_version

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    # Read live globals from api module at request time.
    from favstash import api

    try:
        with api.database.connection() as conn:
            schema_version = current_version(conn)
        store_accessible = True
    except Exception:
        store_accessible = False
        schema_version = None

    healthy = store_accessible and schema_version == LATEST_VERSION

    return {
        "status": "healthy" if healthy else "degraded",
        "version": "0.1.0",
        "store_accessible": store_accessible,
        "database_path": str(api.database.path) if api.database else None,
        "schema_version": schema_version,
        "latest_schema_version": LATEST_VERSION,
    }
