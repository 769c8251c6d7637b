"""FastAPI application and routes."""

import logging
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import ConfigManager, configure_logging
from ..core.catalog_manager import CategoryManager, TagManager
from ..core.database import Database
from ..core.favorite_manager import FavoriteManager
from ..core.migrations import ensure_schema
from ..models.config import AppConfig

logger = logging.getLogger(__name__)

# Global state (will be initialized in lifespan)
database: Database = None
favorite_manager: FavoriteManager = None
category_manager: CategoryManager = None
tag_manager: TagManager = None
runtime_config: AppConfig = None

ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "DATABASE_ERROR",
}


def init_services(app_config: AppConfig) -> None:
    """Open the store, migrate it and build the managers.

    Raises:
        MigrationError: If the schema cannot be brought up to date
    """
    global database, favorite_manager, category_manager, tag_manager, runtime_config

    runtime_config = app_config
    database = Database(app_config.database_path)

    with database.connection() as conn:
        version = ensure_schema(conn)
    logger.info(f"Store {database.path} at schema version {version}")

    favorite_manager = FavoriteManager(
        database,
        default_per_page=app_config.default_per_page,
        max_per_page=app_config.max_per_page,
    )
    category_manager = CategoryManager(database)
    tag_manager = TagManager(database)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    config_manager = ConfigManager()
    try:
        app_config = config_manager.load()
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

    configure_logging(app_config.log_level)
    logger.info("Starting FavStash API...")

    # A failed migration aborts startup.
    init_services(app_config)

    yield

    logger.info("Shutting down FavStash API...")


def _error_body(status_code: int, message: str) -> dict:
    code = ERROR_CODES.get(status_code) or HTTPStatus(status_code).name
    return {"error": code, "message": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Shape HTTPException responses as {error, message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Shape request validation failures as {error, message}."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=422, content=_error_body(422, problems))


def register_routes(app: FastAPI) -> None:
    """Attach routers and error handlers to an application."""
    from .categories import router as categories_router
    from .favorites import router as favorites_router
    from .health import router as health_router
    from .tags import router as tags_router

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(favorites_router, prefix="/api/v1", tags=["favorites"])
    app.include_router(categories_router, prefix="/api/v1", tags=["categories"])
    app.include_router(tags_router, prefix="/api/v1", tags=["tags"])
    app.include_router(health_router, prefix="/api/v1", tags=["health"])


# Create FastAPI app
app = FastAPI(
    title="FavStash API",
    description="Favorites and bookmark storage with search, categories and tags",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
cors_origins: list[str] = []
try:
    boot_cfg = ConfigManager().load_app_config()
    cors_origins.extend(boot_cfg.cors_allowed_origins)
except Exception:
    # Keep startup robust when config is not available in test/import contexts.
    pass

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=r"^(https?://(localhost|127\.0\.0\.1)(:\d+)?|(chrome|moz)-extension://.*)$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_routes(app)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "FavStash API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
