"""Workload driver: runs a fixed pool of virtual users for a bounded duration.

Example:
    >>> from src.loadgen.core.config import LoadTestConfig
    >>> from src.loadgen.workload import WorkloadDriver
    >>>
    >>> config = LoadTestConfig(
    >>>     vocabulary=("hello", "love"),
    >>>     target_endpoint="http://localhost:8080/",
    >>>     concurrency=2,
    >>>     duration=3,
    >>>     iteration_delay=1,
    >>> )
    >>> report = await WorkloadDriver(seed=42).run(config)
    >>> print(report.format_summary())
"""
import asyncio
import functools
import random
import time
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

import httpx
from loguru import logger

from src.loadgen.core.config import LoadTestConfig
from src.loadgen.core.errors import VirtualUserStartupError
from src.loadgen.workload.cancellation import CancellationToken
from src.loadgen.workload.counter import UsageCounter
from src.loadgen.workload.generator import RequestGenerator
from src.loadgen.workload.report import AggregateReport
from src.loadgen.workload.virtual_user import ClientFactory, VirtualUser, default_client_factory


class WorkloadDriver:
    """Starts ``config.concurrency`` virtual users together and stops them
    all at the wall-clock deadline.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client_factory: Optional[ClientFactory] = None,
        seed: Optional[int] = None,
    ):
        """Initialize the driver.

        Args:
            transport: httpx transport for every client (mock or ASGI in tests)
            client_factory: Overrides how virtual users create HTTP clients
            seed: Makes the term sequence of every virtual user reproducible
        """
        self.client_factory = client_factory or functools.partial(
            default_client_factory, transport=transport
        )
        self.seed = seed

    def _rng(self, user_id: int) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{user_id}")

    def _build_users(
        self,
        config: LoadTestConfig,
        counter: UsageCounter,
        token: CancellationToken,
    ) -> List[VirtualUser]:
        return [
            VirtualUser(
                user_id=user_id,
                generator=RequestGenerator(config.vocabulary, config.target_endpoint, self._rng(user_id)),
                counter=counter,
                config=config,
                token=token,
                client_factory=self.client_factory,
            )
            for user_id in range(config.concurrency)
        ]

    async def run(self, config: LoadTestConfig, token: Optional[CancellationToken] = None) -> AggregateReport:
        """Run the load test and return the aggregate report.

        Args:
            config: Validated test configuration
            token: Cancelling it stops the run before the deadline

        Returns:
            AggregateReport with totals and per-term counts
        """
        token = token or CancellationToken()
        counter = UsageCounter(config.vocabulary)
        users = self._build_users(config, counter, token)

        logger.info(
            f"🚀 Starting {config.concurrency} virtual users against {config.target_endpoint} "
            f"for {config.duration:g}s (delay {config.iteration_delay:g}s, "
            f"reuse connections: {config.reuse_connections})"
        )

        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        tasks = [asyncio.create_task(user.run(), name=user.name) for user in users]

        progress = None
        if config.report_interval > 0:
            progress = asyncio.create_task(self._report_progress(counter, config.report_interval, start))

        try:
            await self._wait_for_deadline(tasks, token, config.duration)
        finally:
            token.cancel()
            await self._shutdown(tasks, config.shutdown_grace)
            if progress is not None:
                progress.cancel()
                await asyncio.wait({progress})

        elapsed = time.monotonic() - start
        failed_users, died_users = self._collect(users, tasks)

        report = AggregateReport(
            total_requests=await counter.total(),
            total_failures=await counter.total_failures(),
            counts=await counter.snapshot(),
            failures_by_term=await counter.failures(),
            duration_seconds=elapsed,
            concurrency=config.concurrency,
            active_users=config.concurrency - failed_users - died_users,
            failed_users=failed_users,
            died_users=died_users,
            started_at=started_at,
        )

        if report.degraded:
            logger.warning(
                f"⚠️  Ran with degraded concurrency: {report.active_users}/{report.concurrency} virtual users"
            )
        logger.info(
            f"🏁 Finished in {elapsed:.1f}s: {report.total_requests} requests, "
            f"{report.total_failures} failures"
        )
        return report

    async def _wait_for_deadline(
        self,
        tasks: List[asyncio.Task],
        token: CancellationToken,
        duration: float,
    ) -> None:
        """Return at the deadline, on external cancellation, or when every user has exited."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration
        pending: Set[asyncio.Task] = set(tasks)
        waiter = asyncio.ensure_future(token.wait())

        try:
            while pending and not token.cancelled:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.info("⏰ Test duration elapsed, stopping virtual users")
                    break
                done, _ = await asyncio.wait(
                    pending | {waiter},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                pending -= done
        finally:
            waiter.cancel()

    async def _shutdown(self, tasks: List[asyncio.Task], grace: float) -> None:
        """Give users ``grace`` seconds to finish, then cancel the rest."""
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=grace)
        if pending:
            logger.warning(f"{len(pending)} virtual users still running after {grace:g}s grace, cancelling")
            for task in pending:
                task.cancel()
            await asyncio.wait(pending)

    def _collect(self, users: List[VirtualUser], tasks: List[asyncio.Task]) -> Tuple[int, int]:
        """Log how each user ended.

        Returns:
            (users that failed to start, users that stopped on an unexpected error)
        """
        failed_users = 0
        died_users = 0
        for user, task in zip(users, tasks):
            if task.cancelled():
                continue
            exc = task.exception()
            if isinstance(exc, VirtualUserStartupError):
                failed_users += 1
                logger.error(f"❌ {exc}")
            elif exc is not None:
                died_users += 1
                logger.opt(exception=exc).error(f"❌ {user.name} stopped unexpectedly: {exc}")
        return failed_users, died_users

    async def _report_progress(self, counter: UsageCounter, interval: float, start: float) -> None:
        while True:
            await asyncio.sleep(interval)
            total = await counter.total()
            failures = await counter.total_failures()
            logger.info(f"⏱️  {time.monotonic() - start:.0f}s: {total} requests, {failures} failures")


def run_load_test(
    config: LoadTestConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    seed: Optional[int] = None,
) -> AggregateReport:
    """Run a load test to completion from synchronous code."""
    return asyncio.run(WorkloadDriver(transport=transport, seed=seed).run(config))
