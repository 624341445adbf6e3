import pytest
from pydantic import ValidationError

from src.loadgen.core.config import LoadTestConfig, Settings, parse_duration, validate_endpoint
from src.loadgen.core.errors import ConfigurationError

ENDPOINT = "https://shakesapp.example.com"


def test_default_workload():
    settings = Settings()
    assert settings.CONCURRENCY == 10
    assert settings.DURATION_SECONDS == 600
    assert settings.ITERATION_DELAY_SECONDS == 5
    assert settings.VOCABULARY == ["hello", "love", "life", "people", "cloud", "sun", "rainbow", "beauty"]


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CONCURRENCY", "3")
    monkeypatch.setenv("VOCABULARY", '["a", "b"]')
    monkeypatch.setenv("REUSE_CONNECTIONS", "false")

    settings = Settings()

    assert settings.CONCURRENCY == 3
    assert settings.VOCABULARY == ["a", "b"]
    assert settings.REUSE_CONNECTIONS is False


@pytest.mark.parametrize("name, value, seconds", [
    ("DURATION_SECONDS", "10m", 600.0),
    ("DURATION_SECONDS", "600s", 600.0),
    ("ITERATION_DELAY_SECONDS", "500ms", 0.5),
    ("REQUEST_TIMEOUT_SECONDS", "30", 30.0),
])
def test_settings_accept_duration_strings(monkeypatch, name, value, seconds):
    monkeypatch.setenv(name, value)

    assert getattr(Settings(), name) == pytest.approx(seconds)


def test_settings_reject_bad_duration(monkeypatch):
    monkeypatch.setenv("DURATION_SECONDS", "ten minutes")

    with pytest.raises(ValidationError, match="Invalid duration"):
        Settings()


def test_from_settings_with_overrides():
    config = LoadTestConfig.from_settings(Settings(), concurrency=2, duration=3.0, iteration_delay=None)

    assert config.concurrency == 2
    assert config.duration == 3.0
    assert config.iteration_delay == 5.0
    assert config.vocabulary[0] == "hello"


def test_config_is_immutable():
    config = LoadTestConfig(vocabulary=["hello"], target_endpoint=ENDPOINT)

    assert config.vocabulary == ("hello",)
    with pytest.raises(AttributeError):
        config.concurrency = 5


def test_with_overrides_revalidates():
    config = LoadTestConfig(vocabulary=("hello",), target_endpoint=ENDPOINT)

    assert config.with_overrides(concurrency=4).concurrency == 4
    with pytest.raises(ConfigurationError):
        config.with_overrides(concurrency=0)


@pytest.mark.parametrize("changes, message", [
    ({"vocabulary": ()}, "at least one term"),
    ({"vocabulary": ("ok", 3)}, "must be strings"),
    ({"target_endpoint": "not a url"}, "Invalid target endpoint"),
    ({"concurrency": 0}, "must be positive"),
    ({"concurrency": -1}, "must be positive"),
    ({"concurrency": 2.5}, "must be an integer"),
    ({"duration": 0}, "must be positive"),
    ({"iteration_delay": -1}, "cannot be negative"),
    ({"request_timeout": 0}, "must be positive"),
    ({"shutdown_grace": -1}, "cannot be negative"),
])
def test_invalid_config_rejected(changes, message):
    params = dict(vocabulary=("hello",), target_endpoint=ENDPOINT)
    params.update(changes)

    with pytest.raises(ConfigurationError, match=message):
        LoadTestConfig(**params)


@pytest.mark.parametrize("value, seconds", [
    ("600s", 600.0),
    ("5m", 300.0),
    ("1h30m", 5400.0),
    ("250ms", 0.25),
    ("2.5", 2.5),
    (" 10S ", 10.0),
    (3, 3.0),
    (1.5, 1.5),
])
def test_parse_duration(value, seconds):
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "ten seconds", "5x", "m5"])
def test_parse_duration_invalid(value):
    with pytest.raises(ConfigurationError):
        parse_duration(value)


def test_validate_endpoint():
    url = validate_endpoint("http://localhost:8080/search")

    assert url.host == "localhost"
    assert url.port == 8080
