"""Structured JSON logging with trace and virtual-user correlation."""
import sys
import json
import logging
from typing import Optional
from contextvars import ContextVar
from loguru import logger as loguru_logger
from opentelemetry import trace

from src.loadgen.core.config import settings

# Context variable for the virtual user running in the current task
virtual_user_id: ContextVar[str] = ContextVar("virtual_user_id", default="")


def get_trace_id() -> str:
    """Get trace ID from the current OpenTelemetry span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span_context = span.get_span_context()
        if span_context.is_valid:
            return format(span_context.trace_id, "032x")

    return "no-trace"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""

    def emit(self, record):
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def json_formatter(record):
    """Format loguru record as JSON with trace and virtual-user context."""
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        "level": record["level"].name,
        "message": record["message"],
        "trace_id": get_trace_id(),
        "virtual_user": virtual_user_id.get() or None,
        "service": settings.PROJECT_NAME,
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if record["exception"]:
        exc = record["exception"]
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else "Unknown",
            "value": str(exc.value) if exc.value else "",
        }

    if record["extra"]:
        log_entry.update(record["extra"])

    # loguru treats the returned string as a template
    return json.dumps(log_entry, default=str).replace("{", "{{").replace("}", "}}") + "\n"


def setup_logging(debug: Optional[bool] = None):
    """Setup logging: JSON in production, colored text elsewhere."""
    debug = settings.DEBUG if debug is None else debug
    log_level = "DEBUG" if debug else "INFO"

    # Remove default handler
    loguru_logger.remove()

    if settings.ENV == "production":
        loguru_logger.add(
            sys.stderr,
            format=json_formatter,
            level=log_level,
            serialize=False,
            colorize=False,
        )
    else:
        loguru_logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=log_level,
            colorize=True,
        )

    # Intercept standard logging (httpx, uvicorn, fastapi)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ["httpx", "httpcore", "uvicorn", "uvicorn.access", "uvicorn.error", "fastapi"]:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
    # httpcore logs every connection event at DEBUG
    logging.getLogger("httpcore").setLevel(logging.INFO)


# Export logger
logger = loguru_logger
