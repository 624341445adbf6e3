import asyncio
import time

import pytest

from src.loadgen.core.errors import CancellationError
from src.loadgen.workload.cancellation import CancellationToken


class TestCancellationToken:

    @pytest.mark.asyncio
    async def test_initial_state(self):
        token = CancellationToken()

        assert not token.cancelled
        token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_cancel(self):
        token = CancellationToken()
        token.cancel()

        assert token.cancelled
        with pytest.raises(CancellationError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_sleep_completes(self):
        token = CancellationToken()
        start = time.monotonic()

        await token.sleep(0.05)

        assert time.monotonic() - start >= 0.04
        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_sleep_interrupted_promptly(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.05, token.cancel)
        start = time.monotonic()

        with pytest.raises(CancellationError):
            await token.sleep(60)

        assert time.monotonic() - start < 1.0

    @pytest.mark.asyncio
    async def test_sleep_after_cancel_raises_immediately(self):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(CancellationError):
            await token.sleep(60)

    @pytest.mark.asyncio
    async def test_zero_delay_does_not_suspend_forever(self):
        token = CancellationToken()

        await asyncio.wait_for(token.sleep(0), timeout=1)


class TestGuard:
    """In-flight work abandoned when the token fires."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        token = CancellationToken()

        async def work():
            await asyncio.sleep(0.01)
            return 200

        assert await token.guard(work()) == 200

    @pytest.mark.asyncio
    async def test_propagates_errors(self):
        token = CancellationToken()

        async def work():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await token.guard(work())

    @pytest.mark.asyncio
    async def test_abandons_in_flight_work(self):
        token = CancellationToken()
        unwound = asyncio.Event()

        async def hanging_request():
            try:
                await asyncio.sleep(3600)
            finally:
                unwound.set()

        asyncio.get_running_loop().call_later(0.05, token.cancel)
        start = time.monotonic()

        with pytest.raises(CancellationError):
            await token.guard(hanging_request())

        assert time.monotonic() - start < 1.0
        assert unwound.is_set()

    @pytest.mark.asyncio
    async def test_already_cancelled_does_not_start_work(self):
        token = CancellationToken()
        token.cancel()
        started = False

        async def work():
            nonlocal started
            started = True

        coro = work()
        with pytest.raises(CancellationError):
            await token.guard(coro)
        coro.close()

        assert not started
