"""Command group: define and manage entity schemas."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from entityctl.commands._base import EntityGroup, load_json, load_json_file
from entityctl.domain.types import FieldType
from entityctl.services.definitions import DefinitionService

if TYPE_CHECKING:
    from entityctl.commands._context import AppContext

_ENTITY_EXAMPLES = """\
  entityctl entity define Product --field title:string! --field price:number
  entityctl entity define Product --field '{"name": "sku", "type": "string", "pattern": "^[A-Z]{3}-\\\\d+$"}'
  entityctl entity define Product --fields-file product.json
  entityctl entity list
  entityctl entity show Product
  entityctl entity update Product --fields-file product-v2.json
  entityctl entity delete Product --yes"""


def parse_field_option(raw: str) -> dict[str, Any]:
    """Parse one ``--field`` value.

    Accepts a JSON object, or the shorthand ``name:type`` with an optional
    trailing ``!`` marking the field required.

    Examples:
        >>> parse_field_option("title:string!")
        {'name': 'title', 'type': 'string', 'required': True}
    """
    text = raw.strip()
    if text.startswith("{"):
        value = load_json(text, param_hint="--field")
        if not isinstance(value, dict):
            raise click.BadParameter("Expected a JSON object", param_hint="--field")
        return value

    required = text.endswith("!")
    name, sep, type_name = text.rstrip("!").partition(":")
    if not sep or not name.strip() or not type_name.strip():
        raise click.BadParameter(
            f"Expected name:type or a JSON object, got {raw!r}", param_hint="--field"
        )
    return {"name": name.strip(), "type": type_name.strip(), "required": required}


def _collect_fields(fields: tuple[str, ...], fields_file: Path | None) -> list[dict[str, Any]]:
    collected: list[dict[str, Any]] = []
    if fields_file is not None:
        loaded = load_json_file(fields_file, param_hint="--fields-file")
        if not isinstance(loaded, list):
            raise click.BadParameter("Expected a JSON array of fields", param_hint="--fields-file")
        collected.extend(loaded)
    collected.extend(parse_field_option(raw) for raw in fields)
    return collected


_field_option = click.option(
    "--field",
    "fields",
    multiple=True,
    help=f"Field as name:type[!] or JSON. Types: {', '.join(t.value for t in FieldType)}.",
)
_fields_file_option = click.option(
    "--fields-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file holding an array of field definitions.",
)


@click.group(cls=EntityGroup, examples=_ENTITY_EXAMPLES)
@click.pass_obj
def entity(app: AppContext) -> None:
    """Define, inspect, update, and delete entity schemas."""


@entity.command(
    examples="""\
  entityctl entity define Product --field title:string! --field price:number
  entityctl --scope acme entity define "Blog Post" --fields-file post.json"""
)
@click.argument("name")
@_field_option
@_fields_file_option
@click.pass_obj
def define(app: AppContext, name: str, fields: tuple[str, ...], fields_file: Path | None) -> None:
    """Define a new entity NAME in the current scope."""
    field_list = _collect_fields(fields, fields_file)
    app.emit(DefinitionService(app.store).define(app.scope, name, field_list))


@entity.command(
    name="list",
    examples="""\
  entityctl entity list
  entityctl --json --scope acme entity list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List entity definitions in the current scope."""
    app.emit(DefinitionService(app.store).list(app.scope))


@entity.command(examples="  entityctl entity show Product")
@click.argument("name")
@click.pass_obj
def show(app: AppContext, name: str) -> None:
    """Show one entity definition and its fields."""
    app.emit(DefinitionService(app.store).get(app.scope, name))


@entity.command(
    examples="""\
  entityctl entity update Product --fields-file product-v2.json
  entityctl entity update Product --field title:string! --field stock:number"""
)
@click.argument("name")
@_field_option
@_fields_file_option
@click.pass_obj
def update(app: AppContext, name: str, fields: tuple[str, ...], fields_file: Path | None) -> None:
    """Replace the field list of entity NAME.

    Existing records are kept as stored and are not re-validated.
    """
    field_list = _collect_fields(fields, fields_file)
    if not field_list:
        raise click.UsageError("Provide at least one --field or a --fields-file.")
    app.emit(DefinitionService(app.store).update(app.scope, name, field_list))


@entity.command(examples="  entityctl entity delete Product --yes")
@click.argument("name")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(app: AppContext, name: str, yes: bool) -> None:
    """Delete entity NAME and every one of its records."""
    if not yes:
        click.confirm(f"Delete entity '{name}' and all of its records?", abort=True)
    app.emit(DefinitionService(app.store).delete(app.scope, name))
