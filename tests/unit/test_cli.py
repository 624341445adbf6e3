import json
from unittest.mock import AsyncMock, patch

import pytest

from src.loadgen.cli import EXIT_CONFIG_ERROR, build_parser, config_from_args, main
from src.loadgen.core.errors import ConfigurationError
from src.loadgen.workload.report import AggregateReport


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_flags_override_settings():
    args = parse(
        "run", "http://localhost:8080/",
        "--users", "2",
        "--duration", "3s",
        "--delay", "1",
        "--vocabulary", "hello, love",
        "--no-reuse",
    )

    config = config_from_args(args)

    assert config.target_endpoint == "http://localhost:8080/"
    assert config.concurrency == 2
    assert config.duration == 3.0
    assert config.iteration_delay == 1.0
    assert config.vocabulary == ("hello", "love")
    assert config.reuse_connections is False


def test_defaults_come_from_settings():
    config = config_from_args(parse("run"))

    assert config.concurrency == 10
    assert config.duration == 600.0
    assert config.reuse_connections is True


def test_invalid_duration():
    with pytest.raises(ConfigurationError):
        config_from_args(parse("run", "--duration", "soon"))


@pytest.mark.parametrize("argv", [
    ["run", "not a url"],
    ["run", "--users", "0"],
    ["run", "--vocabulary", " , "],
])
def test_configuration_error_exit_code(argv):
    with patch("src.loadgen.cli.WorkloadDriver") as driver:
        assert main(argv) == EXIT_CONFIG_ERROR
        driver.assert_not_called()


def test_run_prints_summary_and_writes_report(tmp_path, capsys):
    report = AggregateReport(
        total_requests=6,
        counts={"hello": 4, "love": 2},
        duration_seconds=3.0,
        concurrency=2,
        active_users=2,
    )
    output = tmp_path / "report.json"

    with patch("src.loadgen.cli.WorkloadDriver") as driver:
        driver.return_value.run = AsyncMock(return_value=report)
        code = main(["run", "http://localhost:8080/", "--users", "2", "--seed", "7", "-o", str(output)])

    assert code == 0
    driver.assert_called_once_with(seed=7)
    config = driver.return_value.run.call_args.args[0]
    assert config.concurrency == 2
    assert "Requests:        6" in capsys.readouterr().out
    assert json.loads(output.read_text())["counts"] == {"hello": 4, "love": 2}
