"""Search endpoint counting corpus lines that match a query."""
import asyncio

from fastapi import APIRouter, HTTPException, Request
from loguru import logger

from src.loadgen.core.config import settings
from src.loadgen.core.limiter import limiter
from src.loadgen.models.schemas import SearchResponse
from src.loadgen.monitoring.metrics import QUERY_MATCHES
from src.loadgen.monitoring.tracing import tracer, set_span_attributes, record_exception

router = APIRouter()

DEFAULT_QUERY = "hello"


@router.get("/", response_model=SearchResponse)
@limiter.limit(settings.RATE_LIMIT)
async def search(request: Request, q: str = ""):
    """
    Count corpus lines matching ``q`` (a case-insensitive regex).

    An empty query searches for "hello".
    """
    query = q or DEFAULT_QUERY

    with tracer.start_as_current_span("search_corpus") as span:
        set_span_attributes(span, query=query)
        try:
            # Scanning the corpus is CPU-bound, keep it off the event loop
            count = await asyncio.to_thread(request.app.state.corpus.count_matches, query)
        except ValueError as e:
            record_exception(span, e)
            logger.warning(f"Rejected query: {e}")
            raise HTTPException(status_code=400, detail=str(e))

        set_span_attributes(span, match_count=count)

    QUERY_MATCHES.observe(count)
    logger.debug(f"Query {query!r} matched {count} lines")
    return SearchResponse(version=settings.SERVICE_VERSION, count=count)
