"""
Health check of the TalentRank service.
"""

import time
from typing import Any, Dict

import psutil
from fastapi import APIRouter, Depends

from talentrank._version import __version__
from talentrank.api.dependencies import get_container
from talentrank.api.container import ServiceContainer
from talentrank.core.logging import logger
from talentrank.core.utils.datetime_utils import utc_now_iso

router = APIRouter()


def _check_system() -> Dict[str, Any]:
    """Process and host resource usage."""
    process = psutil.Process()
    memory = psutil.virtual_memory()

    status = "healthy"
    warnings = []
    if memory.percent > 90:
        status = "degraded"
        warnings.append("High memory usage")

    return {
        "status": status,
        "process_memory_mb": round(process.memory_info().rss / (1024 * 1024), 2),
        "memory_percent": memory.percent,
        "cpu_count": psutil.cpu_count(),
        "warnings": warnings,
    }


@router.get("/health")
async def health_check(
    probe: bool = False, container: ServiceContainer = Depends(get_container)
) -> Dict[str, Any]:
    """
    Health of the service.

    Checks:
    - Embedding provider (last known state, or an active probe with ?probe=true)
    - Embedding cache
    - System (memory)

    A provider marked unhealthy degrades the service: ranking still
    answers in lexical mode.
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",  # healthy | degraded
        "timestamp": utc_now_iso(),
        "version": __version__,
        "uptime_seconds": int(time.time() - container.started_at),
        "services": {},
        "system": {},
    }

    if probe:
        provider = await container.embedder.check_health()
    else:
        provider = container.embedder.health.snapshot()
    health_status["services"]["provider"] = provider
    health_status["services"]["embedding_cache"] = container.embedder.cache.stats()
    health_status["services"]["ranking"] = container.engine.metrics.get_metrics()

    if provider["status"] == "unhealthy":
        health_status["status"] = "degraded"

    try:
        health_status["system"] = _check_system()
    except psutil.Error as e:
        logger.error("System check failed", error=str(e))
        health_status["system"] = {"error": str(e)}
        health_status["status"] = "degraded"
    else:
        if health_status["system"]["status"] == "degraded":
            health_status["status"] = "degraded"

    logger.info(
        "Health check",
        status=health_status["status"],
        provider=provider["status"],
    )
    return health_status
