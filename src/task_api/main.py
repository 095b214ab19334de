from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .errors import TaskApiError
from .logging_setup import setup_logging
from .repositories import Repository, get_repository
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Create, replace, delete and list Tasks with ordering and filtering.",
    },
]

health_router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@health_router.get("/", summary="Health Check")
def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": request.app.state.settings.persistence_backend}


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The repository is created here once (from settings unless one is passed
    in) and shared by every request through app.state.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Task API",
        description="Task CRUD service with validation, uniqueness rules, ordering and filtering.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.repository = repository or get_repository(settings)
    logger.info("Task API using '{}' backend", settings.persistence_backend)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TaskApiError)
    async def task_error_handler(request: Request, exc: TaskApiError) -> JSONResponse:
        """Validation, filter and duplicate errors are the client's to fix."""
        return JSONResponse(status_code=400, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed request shape: non-object body, non-integer id."""
        logger.debug("Request validation failed: {}", exc.errors())
        return JSONResponse(status_code=400, content={"message": "Request validation failed"})

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything else is ours; log it and keep the details out of the response."""
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    app.include_router(health_router)
    app.include_router(tasks_router.router)
    return app


app = create_app()
