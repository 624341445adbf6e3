import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Optional, Tuple

import httpx
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.loadgen.core.errors import ConfigurationError

BUNDLED_CORPUS = Path(__file__).resolve().parent.parent / "data"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)?")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Any) -> float:
    """Parse a time span into seconds.

    Accepts numbers (seconds) and k6/locust style strings such as
    ``"600s"``, ``"5m"``, ``"1h30m"`` or ``"250ms"``.

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    text = str(value).strip().lower()
    if not text:
        raise ConfigurationError("Duration must not be empty")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigurationError(f"Invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return total


class Settings(BaseSettings):
    PROJECT_NAME: str = "shakesapp-loadgen"
    VERSION: str = "0.1.0"

    # Environment
    ENV: str = "dev"  # dev, staging, production
    DEBUG: bool = False

    # Load test
    TARGET_ENDPOINT: str = "https://shakesapp-loiwv2t7ea-de.a.run.app"
    VOCABULARY: List[str] = [
        "hello", "love", "life", "people", "cloud", "sun", "rainbow", "beauty",
    ]
    CONCURRENCY: int = 10
    DURATION_SECONDS: float = 600.0
    ITERATION_DELAY_SECONDS: float = 5.0
    REUSE_CONNECTIONS: bool = True
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    SHUTDOWN_GRACE_SECONDS: float = 2.0
    REPORT_INTERVAL_SECONDS: float = 0.0  # 0 disables progress logs
    RANDOM_SEED: Optional[int] = None
    METRICS_PORT: Optional[int] = None

    # Target service
    SERVICE_VERSION: str = "1.0.0"
    CORPUS_PATH: str = str(BUNDLED_CORPUS)
    RATE_LIMIT: str = "6000/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    @field_validator(
        "DURATION_SECONDS",
        "ITERATION_DELAY_SECONDS",
        "REQUEST_TIMEOUT_SECONDS",
        "SHUTDOWN_GRACE_SECONDS",
        "REPORT_INTERVAL_SECONDS",
        mode="before",
    )
    @classmethod
    def parse_durations(cls, value: Any) -> float:
        """Accept "600s" or "10m" as well as plain seconds."""
        try:
            return parse_duration(value)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

settings = Settings()



def validate_endpoint(url: Any) -> httpx.URL:
    """Return ``url`` as an ``httpx.URL`` if it is an absolute http(s) URL.

    Raises:
        ConfigurationError: If the endpoint is not a valid URL
    """
    try:
        parsed = httpx.URL(str(url))
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid target endpoint {url!r}: {e}") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(
            f"Invalid target endpoint {url!r}: expected an absolute http(s) URL"
        )
    return parsed


@dataclass(frozen=True)
class LoadTestConfig:
    """Immutable parameters of one load test run.

    Validated on construction; durations are in seconds.
    """
    vocabulary: Tuple[str, ...]
    target_endpoint: str
    concurrency: int = 10
    duration: float = 600.0
    iteration_delay: float = 5.0
    reuse_connections: bool = True
    request_timeout: float = 10.0
    shutdown_grace: float = 2.0
    report_interval: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "vocabulary", tuple(self.vocabulary))

        if not self.vocabulary:
            raise ConfigurationError("Vocabulary must contain at least one term")
        for term in self.vocabulary:
            if not isinstance(term, str):
                raise ConfigurationError(f"Vocabulary terms must be strings, got {term!r}")

        validate_endpoint(self.target_endpoint)

        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ConfigurationError(f"Concurrency must be an integer, got {self.concurrency!r}")
        if self.concurrency <= 0:
            raise ConfigurationError(f"Concurrency must be positive, got {self.concurrency}")
        if self.duration <= 0:
            raise ConfigurationError(f"Duration must be positive, got {self.duration}")
        if self.iteration_delay < 0:
            raise ConfigurationError(f"Iteration delay cannot be negative, got {self.iteration_delay}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.shutdown_grace < 0:
            raise ConfigurationError(f"Shutdown grace cannot be negative, got {self.shutdown_grace}")
        if self.report_interval < 0:
            raise ConfigurationError(f"Report interval cannot be negative, got {self.report_interval}")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None, **overrides) -> "LoadTestConfig":
        """Build a config from ``Settings``; keyword overrides win when not None."""
        source = source or settings
        config = dict(
            vocabulary=tuple(source.VOCABULARY),
            target_endpoint=source.TARGET_ENDPOINT,
            concurrency=source.CONCURRENCY,
            duration=source.DURATION_SECONDS,
            iteration_delay=source.ITERATION_DELAY_SECONDS,
            reuse_connections=source.REUSE_CONNECTIONS,
            request_timeout=source.REQUEST_TIMEOUT_SECONDS,
            shutdown_grace=source.SHUTDOWN_GRACE_SECONDS,
            report_interval=source.REPORT_INTERVAL_SECONDS,
        )
        config.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config)

    def with_overrides(self, **changes) -> "LoadTestConfig":
        """Return a validated copy with ``changes`` applied."""
        return replace(self, **changes)
