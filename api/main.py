"""
FastAPI main application for the Library API.
"""

import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import require_admin
from api.config import config as api_config
from api.dependencies import ServiceContainer
from api.models import ErrorResponse, HealthResponse, StatsResponse
from api.routers import all_routers
from catalog.models import ErrorLog
from storage.database import LibraryDatabase
from utilities.config import config
from utilities.logger import RequestLogger

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Library API")

    database = None
    if getattr(app.state, "services", None) is None:
        try:
            database = await LibraryDatabase.connect(config.mongodb_url, config.mongodb_database)
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise
        app.state.services = ServiceContainer.build(database, config)

    yield

    # Shutdown
    logger.info("Shutting down Library API")
    if database is not None:
        await database.disconnect()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description="""
    REST API for a small library catalog.

    ## Features

    * **Authors**: Browse, filter and sort authors; upload author photos
    * **Books**: Books with an ordered list of authors
    * **Comments**: Users comment on books and manage their own comments
    * **Users**: Registration, login and bearer tokens
    * **Pagination**: `page` and `records_per_page` (max 50); the total is also sent in `X-Total-Records`

    ## Authentication

    Write endpoints require a bearer token obtained from `/api/v1/users/login`:

    ```
    Authorization: Bearer your_token_here
    ```

    Author, book and bulk-author writes need an administrator token.

    ## Rate Limiting

    20 requests per 10 seconds per client; login and admin grants allow 5 requests per 5 seconds.
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
    expose_headers=["X-Total-Records", "Location", "X-Request-ID"],
)

request_logger = RequestLogger()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag the request with an id and log its outcome."""
    request_id = request_logger.start(
        request.method,
        request.url.path,
        request.client.host if request.client else None,
    )
    started = time.perf_counter()
    try:
        response = await call_next(request)
        request_logger.log_response(response.status_code, (time.perf_counter() - started) * 1000)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        request_logger.finish()

for router in all_routers:
    app.include_router(router, prefix=api_config.api_prefix)

if api_config.serve_archive:
    app.mount("/static", StaticFiles(directory=config.archive_root, check_dir=False), name="static")


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail) if exc.detail is not None else "Error",
            status_code=exc.status_code
        ).model_dump(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log the failure, keep an audit record of it and answer with a generic 500."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)

    services = getattr(request.app.state, "services", None)
    if services is not None:
        try:
            await services.errors.insert(ErrorLog(
                message=str(exc),
                stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            ))
        except Exception as audit_error:
            logger.error("Failed to record error", error=str(audit_error))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    db_status = "unknown"
    services = getattr(request.app.state, "services", None)
    if services is not None:
        health_info = await services.database.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# Statistics endpoint
@app.get(f"{api_config.api_prefix}/stats", response_model=StatsResponse, tags=["Statistics"])
async def get_stats(request: Request, claims: dict = Depends(require_admin)):
    """Document counts of the library collections."""
    return StatsResponse(**await request.app.state.services.database.get_stats())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=True,
        log_level="info"
    )
