"""Command group: create, query, update, and delete entity records."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from entityctl.commands._base import EntityGroup, load_json, load_json_file
from entityctl.services.records import RecordService

if TYPE_CHECKING:
    from entityctl.commands._context import AppContext

_RECORD_EXAMPLES = """\
  entityctl record create Product --data '{"title": "Desk", "price": 120}'
  entityctl record get Product rec_0123456789abcdef
  entityctl record list Product --search "price:gte100;title:lkdesk" --sort price:desc
  entityctl record list Product --search "status:in[active,pending]" --page 2 --limit 20
  entityctl record list Product --select title,price
  entityctl record update Product rec_0123456789abcdef --data '{"price": 99}'
  entityctl record delete Product rec_0123456789abcdef"""


def _payload(data: str | None, data_file: Path | None) -> Any:
    if data is not None and data_file is not None:
        raise click.UsageError("Use either --data or --data-file, not both.")
    if data_file is not None:
        return load_json_file(data_file, param_hint="--data-file")
    if data is not None:
        return load_json(data, param_hint="--data")
    raise click.UsageError("Provide the record payload with --data or --data-file.")


_data_option = click.option("--data", default=None, help="Record payload as a JSON object.")
_data_file_option = click.option(
    "--data-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file holding the record payload.",
)


@click.group(cls=EntityGroup, examples=_RECORD_EXAMPLES)
@click.pass_obj
def record(app: AppContext) -> None:
    """Create, query, update, and delete records of a defined entity."""


@record.command(
    examples="""\
  entityctl record create Product --data '{"title": "Desk", "price": 120}'
  entityctl --json record create Product --data-file desk.json"""
)
@click.argument("entity")
@_data_option
@_data_file_option
@click.pass_obj
def create(app: AppContext, entity: str, data: str | None, data_file: Path | None) -> None:
    """Create a record of ENTITY (every required field must be present)."""
    app.emit(RecordService(app.store).create(app.scope, entity, _payload(data, data_file)))


@record.command(examples="  entityctl record get Product rec_0123456789abcdef")
@click.argument("entity")
@click.argument("record_id")
@click.pass_obj
def get(app: AppContext, entity: str, record_id: str) -> None:
    """Retrieve a single record by ID."""
    app.emit(RecordService(app.store).get(app.scope, entity, record_id))


@record.command(
    name="list",
    examples="""\
  entityctl record list Product
  entityctl record list Product --search "price:gte100;price:lt500"
  entityctl record list Product --search "title:swdesk;active:true"
  entityctl record list Product --search "status:nin[archived,draft]"
  entityctl record list Product --search "discount:null"
  entityctl record list Product --sort price:asc --page 1 --limit 10
  entityctl record list Product --select title,price""",
)
@click.argument("entity")
@click.option(
    "--search",
    default=None,
    help="Filter as field:operatorValue, ';'-separated (all must match).",
)
@click.option("--sort", default=None, help="Sort as field:asc or field:desc.")
@click.option("--page", type=int, default=None, help="Page number (starts at 1).")
@click.option("--limit", type=int, default=None, help="Page size (capped by [query] max_limit).")
@click.option("--select", default=None, help="Comma-separated data fields to return.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    entity: str,
    search: str | None,
    sort: str | None,
    page: int | None,
    limit: int | None,
    select: str | None,
) -> None:
    """Query records of ENTITY.

    \b
    Operators: eq ne lk sw ew lt lte gt gte in[..] nin[..]
    Literals:  true false null notnull
    """
    result = RecordService(app.store).list(
        app.scope,
        entity,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        select=select,
    )
    app.emit(result)


@record.command(
    examples="""\
  entityctl record update Product rec_0123456789abcdef --data '{"price": 99}'"""
)
@click.argument("entity")
@click.argument("record_id")
@_data_option
@_data_file_option
@click.pass_obj
def update(
    app: AppContext,
    entity: str,
    record_id: str,
    data: str | None,
    data_file: Path | None,
) -> None:
    """Merge the given fields into an existing record."""
    payload = _payload(data, data_file)
    app.emit(RecordService(app.store).update(app.scope, entity, record_id, payload))


@record.command(examples="  entityctl record delete Product rec_0123456789abcdef")
@click.argument("entity")
@click.argument("record_id")
@click.pass_obj
def delete(app: AppContext, entity: str, record_id: str) -> None:
    """Delete a single record."""
    app.emit(RecordService(app.store).delete(app.scope, entity, record_id))
