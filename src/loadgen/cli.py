"""Command line entry point.

Example usage::

    loadgen run https://shakesapp-loiwv2t7ea-de.a.run.app \
        --users 10 --duration 10m --delay 5

    loadgen serve --port 8080
"""
import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from loguru import logger

from src.loadgen.core.config import LoadTestConfig, parse_duration, settings
from src.loadgen.core.errors import ConfigurationError
from src.loadgen.core.logging import setup_logging
from src.loadgen.monitoring.metrics import start_metrics_server
from src.loadgen.monitoring.tracing import setup_tracing
from src.loadgen.workload.cancellation import CancellationToken
from src.loadgen.workload.driver import WorkloadDriver
from src.loadgen.workload.report import AggregateReport

EXIT_CONFIG_ERROR = 2


def _vocabulary(value: str) -> List[str]:
    return [term.strip() for term in value.split(",") if term.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loadgen", description="Vocabulary-driven HTTP load generator")
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a load test")
    run.add_argument(
        "endpoint",
        nargs="?",
        default=None,
        metavar="URL",
        help=f"Target endpoint (default: {settings.TARGET_ENDPOINT})",
    )
    run.add_argument("-u", "--users", type=int, default=None, help=f"Concurrent virtual users (default: {settings.CONCURRENCY})")
    run.add_argument("-t", "--duration", default=None, help=f"Test duration, e.g. 600s, 10m (default: {settings.DURATION_SECONDS:g}s)")
    run.add_argument("-d", "--delay", default=None, help=f"Delay between iterations (default: {settings.ITERATION_DELAY_SECONDS:g}s)")
    run.add_argument("--vocabulary", type=_vocabulary, default=None, help="Comma separated query terms")
    run.add_argument("--no-reuse", dest="reuse_connections", action="store_false", default=None, help="Open a new connection per request")
    run.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    run.add_argument("--seed", type=int, default=settings.RANDOM_SEED, help="Seed for reproducible term selection")
    run.add_argument("--report-interval", default=None, help="Log progress every interval (0 disables)")
    run.add_argument("--metrics-port", type=int, default=settings.METRICS_PORT, help="Expose Prometheus metrics on this port")
    run.add_argument("-o", "--output", default=None, help="Write the report as JSON to this file")

    serve = subparsers.add_parser("serve", help="Run the target service")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)

    return parser


def config_from_args(args: argparse.Namespace) -> LoadTestConfig:
    """Merge command line flags over ``settings``.

    Raises:
        ConfigurationError: If the result is not a valid configuration
    """
    return LoadTestConfig.from_settings(
        settings,
        target_endpoint=args.endpoint,
        concurrency=args.users,
        duration=parse_duration(args.duration) if args.duration is not None else None,
        iteration_delay=parse_duration(args.delay) if args.delay is not None else None,
        vocabulary=tuple(args.vocabulary) if args.vocabulary is not None else None,
        reuse_connections=args.reuse_connections,
        request_timeout=args.timeout,
        report_interval=parse_duration(args.report_interval) if args.report_interval is not None else None,
    )


async def _run(config: LoadTestConfig, seed: Optional[int]) -> AggregateReport:
    token = CancellationToken()

    # Ctrl+C stops the test early but still reports
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, token.cancel)
        except NotImplementedError:  # Windows
            pass

    return await WorkloadDriver(seed=seed).run(config, token=token)


def run_command(args: argparse.Namespace) -> int:
    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        logger.error(f"❌ Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    setup_tracing()
    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    report = asyncio.run(_run(config, args.seed))

    print(report.format_summary())
    if args.output:
        path = report.write_json(args.output)
        logger.info(f"📝 Report written to {path}")
    return 0


def serve_command(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("src.loadgen.main:app", host=args.host, port=args.port, log_config=None)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    if args.command == "run":
        return run_command(args)
    return serve_command(args)


if __name__ == "__main__":
    sys.exit(main())
