"""
# Folio Blog API

FastAPI application for a single-admin personal blog and portfolio: articles with
categories and reader annotations, a photo album, bookmarks, a timeline, a travel diary,
the home/profile page, media uploads and ZIP backups.

## Startup

The `lifespan()` context manager runs before requests are accepted:

1. Connects to MongoDB (with retries) and ensures indexes.
2. Creates the uploads root and its namespace directories.

On shutdown it closes the MongoDB client.

## Surface

- `/api/*`: one router per resource (see `routers_config`).
- `/uploads/*`: static media, served from the uploads root.
- `/health`: liveness check.
- `/health/ready`: readiness check (MongoDB ping).
- `/metrics`: Prometheus request and backup metrics.

## Running

```bash
uvicorn folio_blog.main:app --host 0.0.0.0 --port 3001
```
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from folio_blog import __version__
from folio_blog.config import settings
from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger, log_application_lifecycle
from folio_blog.managers.media_manager import URL_PREFIX, media_store
from folio_blog.routes.annotations import router as annotations_router
from folio_blog.routes.articles import router as articles_router
from folio_blog.routes.auth import router as auth_router
from folio_blog.routes.backup import router as backup_router
from folio_blog.routes.bookmarks import router as bookmarks_router
from folio_blog.routes.categories import router as categories_router
from folio_blog.routes.events import router as events_router
from folio_blog.routes.home import router as home_router
from folio_blog.routes.photos import router as photos_router
from folio_blog.routes.travels import router as travels_router
from folio_blog.routes.uploads import router as uploads_router
from folio_blog.utils.errors import format_validation_errors

logger = get_logger(prefix="[MAIN]")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB, ensure indexes and the uploads layout, then serve.

    Raises:
        ConnectionError: If MongoDB cannot be reached after all retries.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": "Folio Blog API",
            "version": __version__,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    db_connect_start = time.time()
    await db_manager.connect()
    log_application_lifecycle(
        "database_connected",
        {
            "connection_duration": f"{time.time() - db_connect_start:.3f}s",
            "database_name": settings.MONGODB_DATABASE,
            "connection_url": settings.MONGODB_URL.split("@")[-1],
        },
    )

    indexes_start = time.time()
    await db_manager.create_indexes()
    log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})

    media_store.ensure_layout()
    log_application_lifecycle(
        "startup_completed",
        {"uploads_root": str(media_store.root), "startup_duration": f"{time.time() - startup_start_time:.3f}s"},
    )

    try:
        yield
    finally:
        shutdown_start_time = time.time()
        log_application_lifecycle("shutdown_initiated")
        await db_manager.disconnect()
        log_application_lifecycle("shutdown_completed", {"shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"})


app = FastAPI(
    title="Folio Blog API",
    description="Content management backend for a personal blog and portfolio.",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400) naming the failing fields."""
    message = format_validation_errors(exc.errors())
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"detail": message})


logger.info("Configuring CORS with origins: %s", settings.cors_origins_list)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

routers_config = [
    ("auth", auth_router, "Admin login and password management"),
    ("categories", categories_router, "Article categories"),
    ("articles", articles_router, "Articles, bulk import and image upload"),
    ("annotations", annotations_router, "Reader annotations on articles"),
    ("photos", photos_router, "Photo album"),
    ("bookmarks", bookmarks_router, "Grouped navigation bookmarks"),
    ("events", events_router, "Timeline events"),
    ("travels", travels_router, "Travel diary"),
    ("home", home_router, "Home/profile singleton"),
    ("uploads", uploads_router, "Admin image browser"),
    ("backup", backup_router, "ZIP backup export and import"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append(router_name)
    logger.debug("Included %s router: %s", router_name, description)

log_application_lifecycle(
    "routers_configured", {"total_routers": len(routers_config), "routers": ",".join(included_routers)}
)

# The directory may not exist until lifespan startup creates it
app.mount(URL_PREFIX, StaticFiles(directory=str(media_store.root), check_dir=False), name="uploads")


@app.get("/health", tags=["system"])
async def health():
    return {"status": "ok"}


@app.get("/health/ready", tags=["system"])
async def readiness():
    """Readiness check: 503 until MongoDB answers a ping."""
    if await db_manager.health_check():
        return {"status": "ok", "database": "connected"}
    return JSONResponse(status_code=503, content={"status": "unavailable", "database": "disconnected"})


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_instrument_requests_inprogress=True,
).instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})


if __name__ == "__main__":
    uvicorn.run("folio_blog.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")
