"""Tests for the entity command group."""

from __future__ import annotations

import json
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from entityctl.cli import cli
from entityctl.commands.entity import parse_field_option

FIELDS_JSON = [
    {"name": "title", "type": "string", "required": True, "maxLength": 80},
    {"name": "price", "type": "number", "min": 0},
]


def _define(cli_runner: CliRunner, name: str = "Product", *fields: str) -> None:
    args = ["entity", "define", name]
    for field in fields or ("title:string!", "price:number"):
        args.extend(["--field", field])
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output


class TestParseFieldOption:
    def test_shorthand(self) -> None:
        assert parse_field_option("price:number") == {
            "name": "price",
            "type": "number",
            "required": False,
        }

    def test_shorthand_required(self) -> None:
        assert parse_field_option("title:string!")["required"] is True

    def test_json(self) -> None:
        raw = '{"name": "sku", "type": "string", "pattern": "^[A-Z]+$"}'
        assert parse_field_option(raw)["pattern"] == "^[A-Z]+$"

    @pytest.mark.parametrize("raw", ["title", ":string", "title:", "{not json"])
    def test_rejected(self, raw: str) -> None:
        with pytest.raises(click.BadParameter):
            parse_field_option(raw)


@pytest.mark.usefixtures("_isolated_project")
class TestDefineCommand:
    def test_define(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["entity", "define", "Product", "--field", "title:string!"]
        )
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "define_entity" in result.output

    def test_define_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "entity", "define", "Blog Post", "--field", "title:string!"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["data"]["table_name"] == "blog_post"
        assert data["data"]["scope_id"] == "default"

    def test_define_from_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        fields_file = tmp_path / "product.json"
        fields_file.write_text(json.dumps(FIELDS_JSON), encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["--json", "entity", "define", "Product", "--fields-file", str(fields_file)]
        )
        assert result.exit_code == 0
        fields = json.loads(result.stdout)["data"]["fields"]
        assert [f["name"] for f in fields] == ["title", "price"]

    def test_fields_file_must_be_array(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        fields_file = tmp_path / "bad.json"
        fields_file.write_text('{"name": "x"}', encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["entity", "define", "Product", "--fields-file", str(fields_file)]
        )
        assert result.exit_code == 2

    def test_duplicate_fails(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["entity", "define", "Product", "--field", "x:string"])
        assert result.exit_code == 1
        assert "already exists" in result.stderr

    def test_invalid_type_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["entity", "define", "Product", "--field", "x:geo"])
        assert result.exit_code == 1
        assert "ERROR" in result.stderr

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["entity", "define", "--examples"])
        assert result.exit_code == 0
        assert "entityctl entity define" in result.output


@pytest.mark.usefixtures("_isolated_project")
class TestListAndShowCommands:
    def test_list(self, cli_runner: CliRunner) -> None:
        _define(cli_runner, "Product")
        _define(cli_runner, "Author", "name:string!")
        result = cli_runner.invoke(cli, ["-q", "entity", "list"])
        assert result.exit_code == 0
        assert result.stdout.split() == ["Author", "Product"]

    def test_show(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["entity", "show", "Product"])
        assert result.exit_code == 0
        assert "price" in result.output

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["entity", "show", "Nope"])
        assert result.exit_code == 1
        assert "not found" in result.stderr


@pytest.mark.usefixtures("_isolated_project")
class TestUpdateCommand:
    def test_update(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(
            cli, ["--json", "entity", "update", "Product", "--field", "sku:string!"]
        )
        assert result.exit_code == 0
        assert [f["name"] for f in json.loads(result.stdout)["data"]["fields"]] == ["sku"]

    def test_update_requires_fields(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["entity", "update", "Product"])
        assert result.exit_code == 2

    def test_update_warns_on_stderr(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        cli_runner.invoke(
            cli, ["record", "create", "Product", "--data", '{"title": "Desk", "price": 1}']
        )
        result = cli_runner.invoke(cli, ["entity", "update", "Product", "--field", "sku:string"])
        assert result.exit_code == 0
        assert "WARNING" in result.stderr
        assert "WARNING" not in result.stdout


@pytest.mark.usefixtures("_isolated_project")
class TestDeleteCommand:
    def test_delete_with_yes(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["--json", "entity", "delete", "Product", "--yes"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["records_deleted"] == 0

    def test_delete_confirm_declined(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["entity", "delete", "Product"], input="n\n")
        assert result.exit_code == 1
        assert cli_runner.invoke(cli, ["entity", "show", "Product"]).exit_code == 0

    def test_delete_confirm_accepted(self, cli_runner: CliRunner) -> None:
        _define(cli_runner)
        result = cli_runner.invoke(cli, ["entity", "delete", "Product"], input="y\n")
        assert result.exit_code == 0
        assert cli_runner.invoke(cli, ["entity", "show", "Product"]).exit_code == 1
