"""Subcommand modules for entityctl.

Provides register_commands() which uses deferred imports to keep
``entityctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``entity`` and ``record`` groups on the root CLI group."""
    from entityctl.commands.entity import entity
    from entityctl.commands.record import record

    cli.add_command(entity)
    cli.add_command(record)
