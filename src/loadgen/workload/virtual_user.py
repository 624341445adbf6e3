"""Virtual user: one simulated client running the request loop."""
import time
from typing import Callable, Optional

import httpx
from loguru import logger

from src.loadgen.core.config import LoadTestConfig
from src.loadgen.core.errors import CancellationError, RequestFailure, VirtualUserStartupError
from src.loadgen.core.logging import virtual_user_id
from src.loadgen.monitoring.metrics import LOADGEN_ACTIVE_USERS, record_request
from src.loadgen.monitoring.tracing import tracer, set_span_attributes, record_exception
from src.loadgen.workload.cancellation import CancellationToken
from src.loadgen.workload.counter import UsageCounter
from src.loadgen.workload.generator import RequestDescriptor, RequestGenerator

ClientFactory = Callable[[LoadTestConfig], httpx.AsyncClient]


def default_client_factory(
    config: LoadTestConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the HTTP client a virtual user sends requests with.

    Keep-alive is disabled when connections must not be reused.
    """
    if config.reuse_connections:
        limits = httpx.Limits(max_connections=1, max_keepalive_connections=1)
        headers = {}
    else:
        limits = httpx.Limits(max_connections=1, max_keepalive_connections=0)
        headers = {"Connection": "close"}

    return httpx.AsyncClient(
        transport=transport,
        timeout=config.request_timeout,
        limits=limits,
        headers=headers,
        follow_redirects=True,
    )


class VirtualUser:
    """Runs generate -> GET -> record -> sleep until the token fires."""

    def __init__(
        self,
        user_id: int,
        generator: RequestGenerator,
        counter: UsageCounter,
        config: LoadTestConfig,
        token: CancellationToken,
        client_factory: ClientFactory = default_client_factory,
    ):
        self.user_id = user_id
        self.generator = generator
        self.counter = counter
        self.config = config
        self.token = token
        self.client_factory = client_factory

        self.iterations = 0
        self.failures = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return f"vu-{self.user_id}"

    async def setup(self) -> None:
        """Open the pooled client when connections are reused.

        Raises:
            VirtualUserStartupError: If the client cannot be created
        """
        if not self.config.reuse_connections:
            return
        try:
            self._client = self.client_factory(self.config)
        except Exception as e:
            raise VirtualUserStartupError(self.user_id, str(e)) from e

    async def teardown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def run(self) -> int:
        """Loop until cancelled.

        Returns:
            Number of completed iterations
        """
        virtual_user_id.set(self.name)
        await self.setup()
        LOADGEN_ACTIVE_USERS.inc()
        logger.debug(f"{self.name} started")

        try:
            while not self.token.cancelled:
                await self.iterate()
                await self.token.sleep(self.config.iteration_delay)
        except CancellationError:
            pass
        finally:
            LOADGEN_ACTIVE_USERS.dec()
            await self.teardown()

        logger.debug(f"{self.name} stopped after {self.iterations} iterations ({self.failures} failed)")
        return self.iterations

    async def iterate(self) -> RequestDescriptor:
        """Issue one request and record it.

        Raises:
            CancellationError: If the deadline fires while the request is in flight
        """
        descriptor = self.generator.generate()

        with tracer.start_as_current_span("virtual_user.request") as span:
            set_span_attributes(
                span,
                virtual_user=self.name,
                term=descriptor.term,
                url=descriptor.url,
            )
            start = time.perf_counter()
            success = True
            try:
                status_code = await self.token.guard(self._send(descriptor))
                set_span_attributes(span, http_status_code=status_code)
            except RequestFailure as e:
                success = False
                self.failures += 1
                record_exception(span, e)
                logger.warning(f"{self.name}: {e}")

            latency = time.perf_counter() - start

        await self._record(descriptor, success, latency)
        return descriptor

    async def _record(self, descriptor: RequestDescriptor, success: bool, latency: float) -> None:
        """Count one finished request in the run tally and the exported metrics."""
        await self.counter.record(descriptor.term, success=success)
        record_request(descriptor.term, success, latency)
        self.iterations += 1

    async def _send(self, descriptor: RequestDescriptor) -> int:
        """GET the descriptor's URL; any failure becomes ``RequestFailure``.

        Without connection reuse a fresh client is opened for the request
        and closed after it.
        """
        client = self._client
        if client is None:
            try:
                client = self.client_factory(self.config)
            except Exception as e:
                raise RequestFailure(
                    descriptor.term,
                    descriptor.url,
                    reason=f"cannot open client: {type(e).__name__}: {e}",
                ) from e

        try:
            response = await client.get(descriptor.url)
        except httpx.HTTPError as e:
            raise RequestFailure(
                descriptor.term,
                descriptor.url,
                reason=f"{type(e).__name__}: {e}",
            ) from e
        finally:
            if client is not self._client:
                await client.aclose()

        if not response.is_success:
            raise RequestFailure(descriptor.term, descriptor.url, status_code=response.status_code)
        return response.status_code
