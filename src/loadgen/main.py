"""Target service ("shakesapp"): counts corpus lines matching ``?q=``."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.loadgen.api import api_router
from src.loadgen.core.config import settings
from src.loadgen.core.limiter import limiter
from src.loadgen.core.logging import setup_logging
from src.loadgen.core.middleware import RequestContextMiddleware
from src.loadgen.monitoring.metrics import PrometheusMiddleware, metrics_endpoint
from src.loadgen.monitoring.tracing import setup_tracing
from src.loadgen.services.base import CorpusService
from src.loadgen.services.corpus import TextCorpus


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle: load the corpus, then flag shutdown."""
    logger.info("🚀 Starting shakesapp v{}", settings.SERVICE_VERSION)

    if not app.state.corpus.loaded:
        app.state.corpus.load()

    logger.info("✅ Service is ready to accept requests")

    yield

    app.state.shutting_down = True
    logger.info("✅ Shutdown complete")


def create_app(corpus: Optional[CorpusService] = None) -> FastAPI:
    """Create the target service with all middleware and routes."""

    setup_logging()

    app = FastAPI(
        title="shakesapp",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.state.shutting_down = False
    app.state.corpus = corpus or TextCorpus(settings.CORPUS_PATH)

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(PrometheusMiddleware)

    setup_tracing(app, service_name="shakesapp")

    app.include_router(api_router)

    # Prometheus metrics endpoint
    app.add_route("/metrics", metrics_endpoint)

    logger.info("📦 Application configured successfully")

    return app


app = create_app()
