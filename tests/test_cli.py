"""Tests for the root entityctl CLI."""

import json
from collections.abc import Generator

import pytest
from click.testing import CliRunner

from entityctl import __version__
from entityctl.cli import cli
from entityctl.config.logging import configure_logging
from entityctl.services.telemetry import disable_telemetry


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "entityctl" in result.output
    assert "entity" in result.output
    assert "record" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.usefixtures("_isolated_project")
def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


@pytest.mark.parametrize("flag", ["--json", "-q", "-v", "--log-json"])
def test_global_flags_accepted(cli_runner: CliRunner, flag: str) -> None:
    result = cli_runner.invoke(cli, [flag, "--version"])
    assert result.exit_code == 0


def test_config_option_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-c", "/nonexistent/entityctl.toml", "--version"])
    assert result.exit_code == 0


@pytest.mark.usefixtures("_isolated_project")
class TestScopes:
    def test_scope_flag_isolates_tenants(self, cli_runner: CliRunner) -> None:
        define = ["entity", "define", "Product", "--field", "title:string!"]
        assert cli_runner.invoke(cli, ["--scope", "acme", *define]).exit_code == 0

        acme = cli_runner.invoke(cli, ["--json", "--scope", "acme", "entity", "list"])
        globex = cli_runner.invoke(cli, ["--json", "--scope", "globex", "entity", "list"])
        assert json.loads(acme.stdout)["data"]["count"] == 1
        assert json.loads(globex.stdout)["data"]["count"] == 0

    def test_scope_from_config(self, cli_runner: CliRunner) -> None:
        with open("entityctl.toml", "w", encoding="utf-8") as fh:
            fh.write('default_scope = "initech"\n')
        result = cli_runner.invoke(
            cli, ["--json", "entity", "define", "Product", "--field", "title:string"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["scope_id"] == "initech"


@pytest.mark.usefixtures("_isolated_project")
class TestVerboseTelemetry:
    @pytest.fixture(autouse=True)
    def _quiet_afterwards(self) -> Generator[None]:
        yield
        disable_telemetry()
        configure_logging()

    def test_verbose_json_includes_spans(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["entity", "define", "Product", "--field", "title:string"])
        result = cli_runner.invoke(cli, ["--json", "-v", "record", "list", "Product"])
        assert result.exit_code == 0
        meta = json.loads(result.stdout)["meta"]
        assert meta["telemetry"]["name"] == "RecordService.list"
