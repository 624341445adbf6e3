import time
from prometheus_client import Counter, Gauge, Histogram, generate_latest, start_http_server, CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from fastapi import Request, Response
from loguru import logger

# Load generator metrics
LOADGEN_REQUESTS_TOTAL = Counter(
    "loadgen_requests_total",
    "Requests issued by virtual users",
    ["term", "outcome"]
)

LOADGEN_REQUEST_LATENCY = Histogram(
    "loadgen_request_duration_seconds",
    "Latency of requests issued by virtual users in seconds",
    ["outcome"]
)

LOADGEN_ACTIVE_USERS = Gauge(
    "loadgen_active_users",
    "Number of virtual users currently running"
)

# Target service metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

QUERY_MATCHES = Histogram(
    "shakesapp_query_matches",
    "Number of corpus lines matched per query",
    buckets=(0, 1, 5, 10, 50, 100, 500, 1000, float("inf"))
)


def record_request(term: str, success: bool, latency: float) -> None:
    """Record one virtual-user request."""
    outcome = "success" if success else "failure"
    LOADGEN_REQUESTS_TOTAL.labels(term=term, outcome=outcome).inc()
    LOADGEN_REQUEST_LATENCY.labels(outcome=outcome).observe(latency)


def start_metrics_server(port: int) -> None:
    """Expose the load generator metrics for scraping during a run."""
    start_http_server(port)
    logger.info(f"📈 Metrics available on :{port}/metrics")


class PrometheusMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            process_time = time.time() - start_time

            # Skip health checks and scrapes
            if "/health" not in request.url.path and "/metrics" not in request.url.path:
                REQUEST_COUNT.labels(
                    method=request.method,
                    endpoint=request.url.path,
                    status_code=status_code
                ).inc()

                REQUEST_LATENCY.labels(
                    method=request.method,
                    endpoint=request.url.path
                ).observe(process_time)

        return response

def metrics_endpoint(request: Request):
    """Endpoint for Prometheus scraping."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
