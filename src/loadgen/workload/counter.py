import asyncio
from collections import defaultdict
from typing import Dict, Iterable

from loguru import logger


class UsageCounter:
    """Per-term request tally shared by all virtual users of one run.

    Every ``record`` call is a single locked increment, so the sum of
    the counts always equals the number of recorded requests.
    """

    def __init__(self, vocabulary: Iterable[str] = ()):
        self._lock = asyncio.Lock()
        self._counts: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        for term in vocabulary:
            self._counts[term] = 0
            self._failures[term] = 0

    async def record(self, term: str, success: bool = True) -> None:
        """Count one request for ``term``.

        Args:
            term: The vocabulary term the request carried
            success: False when the request failed
        """
        async with self._lock:
            self._counts[term] += 1
            if not success:
                self._failures[term] += 1

        logger.trace(f"Recorded {term} ({'ok' if success else 'failed'})")

    async def snapshot(self) -> Dict[str, int]:
        """Copy of the per-term request counts."""
        async with self._lock:
            return dict(self._counts)

    async def failures(self) -> Dict[str, int]:
        """Copy of the per-term failure counts."""
        async with self._lock:
            return dict(self._failures)

    async def total(self) -> int:
        async with self._lock:
            return sum(self._counts.values())

    async def total_failures(self) -> int:
        async with self._lock:
            return sum(self._failures.values())
