import os
import pytest
from fastapi.testclient import TestClient

# Disable OTLP export during tests to prevent connection errors
os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"] = "none"

# Import app AFTER setting the environment variable
from src.loadgen.core.config import LoadTestConfig
from src.loadgen.main import create_app
from src.loadgen.services.corpus import TextCorpus

SAMPLE_LINES = [
    "Hello world",
    "hello again, HELLO",
    "Love is not love",
    "All you need is love",
    "sunshine and clouds",
]


@pytest.fixture
def corpus():
    return TextCorpus(lines=SAMPLE_LINES)


@pytest.fixture(scope="module")
def client():
    # Context manager triggers the lifespan events (startup/shutdown)
    with TestClient(create_app(TextCorpus(lines=SAMPLE_LINES))) as c:
        yield c


@pytest.fixture
def make_config():
    """Factory for fast load test configs aimed at a fake host."""
    def _make(**overrides) -> LoadTestConfig:
        params = dict(
            vocabulary=("hello", "love"),
            target_endpoint="http://shakesapp.test/",
            concurrency=1,
            duration=1.0,
            iteration_delay=0.0,
            request_timeout=1.0,
            shutdown_grace=0.5,
        )
        params.update(overrides)
        return LoadTestConfig(**params)
    return _make
