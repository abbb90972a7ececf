"""
HTTP entry point for the visibility tracker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geotracker.config import get_settings
from geotracker.exceptions import (
    CampaignCreationError,
    GeoTrackerError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# Domain error -> HTTP status
ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    CampaignCreationError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    from geotracker.utils import init_db, close_db, close_redis

    await init_db()
    try:
        yield
    finally:
        await close_db()
        await close_redis()


def _error_body(exc: GeoTrackerError) -> dict:
    body = {"detail": exc.message, "type": type(exc).__name__}
    if exc.details:
        body["context"] = exc.details
    return body


def create_app(lifespan_handler=lifespan) -> FastAPI:
    """
    Build the API application.

    Tests pass their own `lifespan_handler` so no database or Redis
    connection is opened on startup.
    """
    settings = get_settings()

    application = FastAPI(
        title="GEO Visibility Tracker API",
        description=(
            "Runs a brand's prompts against AI answer engines and reports "
            "share of voice, rank, citations, competitor gaps and cost."
        ),
        version=APP_VERSION,
        lifespan=lifespan_handler,
        redoc_url="/redoc" if settings.is_development else None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for error_type, status_code in ERROR_STATUS.items():

        async def handle_domain_error(request: Request, exc: GeoTrackerError, status_code=status_code):
            return JSONResponse(status_code=status_code, content=_error_body(exc))

        application.add_exception_handler(error_type, handle_domain_error)

    @application.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        content = {"detail": "Internal server error"}
        if get_settings().DEBUG:
            content = {"detail": str(exc), "type": type(exc).__name__}
        return JSONResponse(status_code=500, content=content)

    from geotracker.api.routes import api_router
    application.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    @application.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "environment": get_settings().APP_ENV,
        }

    @application.get("/")
    async def root():
        return {"name": application.title, "version": APP_VERSION, "docs": application.docs_url}

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "geotracker.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
