"""Custom Click base classes with --examples support.

Provides EntityCommand and EntityGroup that accept an ``examples``
parameter. When ``--examples`` is passed, the command prints usage
examples and exits, keeping ``--help`` concise.

Also hosts the JSON option parsers shared by the entity and record
command groups.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class EntityCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class EntityGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = EntityCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = EntityCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


# ---------------------------------------------------------------------------
# JSON option parsing
# ---------------------------------------------------------------------------


def load_json(raw: str, *, param_hint: str) -> Any:
    """Parse a JSON option value, reporting errors against *param_hint*."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}", param_hint=param_hint) from exc


def load_json_file(path: Path, *, param_hint: str) -> Any:
    return load_json(path.read_text(encoding="utf-8"), param_hint=param_hint)
