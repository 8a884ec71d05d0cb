"""ibmi-actions CLI -- terminal tools for Actions and compiler diagnostics.

This module is NEVER imported from ibmi_actions/__init__.py.
It is only loaded via the ``ibmi-actions`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ibmi_actions.cli.formatting import format_error, get_console
from ibmi_actions.models.config import ConnectionSettings


@click.group()
@click.option(
    "--settings",
    "settings_path",
    default=None,
    envvar="IBMI_ACTIONS_SETTINGS",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to a connection settings JSON file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    envvar="IBMI_ACTIONS_VERBOSE",
    help="Enable debug logging.",
)
@click.pass_context
def cli(ctx: click.Context, settings_path: Path | None, verbose: bool) -> None:
    """ibmi-actions: run IBM i Actions and inspect compiler diagnostics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings_path"] = settings_path


def _get_settings(ctx: click.Context) -> ConnectionSettings:
    """Load ConnectionSettings from ``--settings``, or the defaults."""
    settings_path = ctx.obj.get("settings_path") if ctx.obj else None
    if settings_path is None:
        return ConnectionSettings()
    if not settings_path.exists():
        format_error(f"Settings file not found: {settings_path}", get_console())
        raise SystemExit(1)
    return ConnectionSettings.from_file(settings_path)


# Register subcommands after cli group is defined
from ibmi_actions.cli.commands.actions import actions  # noqa: E402
from ibmi_actions.cli.commands.evfevent import evfevent  # noqa: E402
from ibmi_actions.cli.commands.expand import expand  # noqa: E402

cli.add_command(actions)
cli.add_command(evfevent)
cli.add_command(expand)
