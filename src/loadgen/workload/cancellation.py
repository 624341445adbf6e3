import asyncio
from typing import Awaitable, TypeVar

from src.loadgen.core.errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """Shared stop signal for the virtual users of one run.

    The driver cancels it at the deadline; tests can cancel it directly
    instead of waiting for real time to pass.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("Test deadline reached")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless cancelled first.

        Raises:
            CancellationError: If the token fires during the sleep
        """
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise CancellationError("Cancelled during iteration delay")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Run ``awaitable`` and abandon it if the token fires first.

        Raises:
            CancellationError: If the token fires before it completes
        """
        self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task.done() and not task.cancelled():
            return task.result()

        # Let the abandoned call unwind (closes its connection)
        await asyncio.wait({task})
        raise CancellationError("Cancelled while request in flight")
