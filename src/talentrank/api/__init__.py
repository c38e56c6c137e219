"""
TalentRank API Module
FastAPI application exposing ranking, embeddings and chat.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from talentrank._version import __version__
from talentrank.api.container import ServiceContainer
from talentrank.api import health, matching
from talentrank.core.exceptions import (
    ProviderUnavailableError,
    TalentRankError,
    ValidationError,
    from_exception,
    internal_error,
    validation_error,
)
from talentrank.core.logging import logger
from talentrank.core.secure_config import Settings


def _json(status_code: int, error) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json", exclude_none=True))


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI application around ``container``.

    Without a container one is wired from ``Settings()``.
    """
    if container is None:
        container = ServiceContainer.from_settings(Settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.close()

    app = FastAPI(
        title="TalentRank API",
        description="Job-to-candidate similarity ranking",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.get("api.cors_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or "body"
        error = validation_error(
            field=field,
            value=first.get("input"),
            reason=str(first.get("type", "invalid")),
            message=str(first.get("msg", "Invalid request")),
        )
        return _json(422, error)

    @app.exception_handler(TalentRankError)
    async def talentrank_error_handler(request: Request, exc: TalentRankError):
        if isinstance(exc, ValidationError):
            status_code = 422
        elif isinstance(exc, ProviderUnavailableError):
            status_code = 503
        else:
            status_code = 500
        if status_code == 500:
            logger.error("Request failed", path=request.url.path, error=str(exc), error_id=exc.id)
        return _json(status_code, from_exception(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        error = internal_error(context={"error_type": type(exc).__name__})
        logger.error(
            "Unhandled error", path=request.url.path, error=str(exc), error_id=error.error_id
        )
        return _json(500, error)

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(matching.router, prefix="/api", tags=["matching"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {"message": "TalentRank API is running", "version": __version__}

    logger.info("TalentRank API initialized")
    return app


__all__ = ["create_app", "ServiceContainer"]
