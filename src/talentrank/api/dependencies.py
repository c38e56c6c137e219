"""
FastAPI dependencies.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from typing import Optional

from talentrank.api.container import ServiceContainer
from talentrank.core.exceptions import rate_limit_error


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def admit(container: ServiceContainer, scope_key: str) -> Optional[JSONResponse]:
    """None if the scope may proceed, a 429 response otherwise."""
    limiter = container.api_rate_limiter
    if limiter.try_acquire(scope_key):
        return None
    error = rate_limit_error(scope_key, limiter.window_seconds)
    return JSONResponse(
        status_code=429,
        content=error.model_dump(mode="json", exclude_none=True),
        headers={"Retry-After": str(int(limiter.window_seconds))},
    )
