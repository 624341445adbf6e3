"""Request context middleware for correlation and logging."""
import time
import uuid
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger
from opentelemetry import trace

from src.loadgen.monitoring.tracing import set_span_attributes, record_exception


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID and request context."""

    async def dispatch(self, request: Request, call_next):
        if getattr(request.app.state, "shutting_down", False):
            logger.warning("⚠️  Rejecting request during shutdown")
            return JSONResponse(
                status_code=503,
                content={"detail": "Service is shutting down"},
            )

        start_time = time.time()

        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

        span = trace.get_current_span()
        set_span_attributes(
            span,
            correlation_id=correlation_id,
            http_method=request.method,
            http_url=str(request.url),
        )

        request.state.correlation_id = correlation_id

        with logger.contextualize(correlation_id=correlation_id):
            logger.debug(f"➡️  {request.method} {request.url.path}")

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
                record_exception(span, e)
                raise

            process_time = time.time() - start_time
            set_span_attributes(
                span,
                http_status_code=response.status_code,
                http_response_time_ms=round(process_time * 1000, 2),
            )

            logger.info(
                f"✅ {request.method} {request.url.path} → {response.status_code} "
                f"({process_time * 1000:.1f}ms)"
            )

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        return response
