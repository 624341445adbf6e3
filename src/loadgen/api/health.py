"""Health check endpoints."""
from fastapi import APIRouter, Request, Response, status
from prometheus_client import Gauge
from loguru import logger

from src.loadgen.core.config import settings
from src.loadgen.models.schemas import HealthResponse

router = APIRouter()

SERVICE_READY = Gauge("service_ready", "Service readiness: 1=ready, 0=not ready")


@router.get("/healthz", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def healthz():
    """Liveness probe: is the process alive?"""
    return HealthResponse(
        status="ok",
        version=settings.SERVICE_VERSION,
        service=settings.PROJECT_NAME,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def ready(request: Request, response: Response):
    """
    Readiness probe: is the service ready to receive traffic?

    Checks:
    - Corpus loaded
    - Not shutting down
    """
    corpus = getattr(request.app.state, "corpus", None)
    checks = {
        "corpus_loaded": corpus is not None and corpus.loaded,
        "accepting_requests": not getattr(request.app.state, "shutting_down", False),
    }

    is_ready = all(checks.values())
    SERVICE_READY.set(1 if is_ready else 0)

    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(f"Service NOT READY: {checks}")
        return {
            "status": "not_ready",
            "checks": checks,
        }

    return {
        "status": "ready",
        "checks": checks,
    }
