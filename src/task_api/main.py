from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import TaskApiError
from .logging_setup import setup_logging
from .repositories import Repository, get_repository
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "tasks", "description": "Create, read, update status and delete tasks."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Open the injected repository on startup and close it on shutdown.
    """
    settings: Settings = app.state.settings
    repository: Repository = app.state.repository
    logger.info(
        "Starting task API (env=%s, backend=%s, DATABASE_URL %s)",
        settings.app_env,
        settings.persistence_backend,
        "found" if settings.database_url_from_env else "not set, using default",
    )
    repository.open()
    try:
        yield
    finally:
        repository.close()
        logger.info("Task API stopped")


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted.
        repository: Persistence gateway to inject; built from settings when omitted.
            It is opened and closed by the application lifespan.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Task API",
        description="Backend API service for managing tasks (title, description, status, due date).",
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository if repository is not None else get_repository(settings)

    # Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers so every error body is {"error": "..."}
    @app.exception_handler(TaskApiError)
    async def task_api_error_handler(request: Request, exc: TaskApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error."})

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            {"status": "UP"}
        """
        return {"status": "UP"}

    app.include_router(tasks_router.router)
    return app


# PUBLIC_INTERFACE
def run() -> None:
    """Entry point for the `task-api` console script: configure logging and serve with uvicorn."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger.info("Listening on %s:%s", settings.host, settings.port)
    # log_config=None keeps uvicorn on the root handlers configured above
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
