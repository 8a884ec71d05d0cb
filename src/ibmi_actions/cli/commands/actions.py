"""ibmi-actions actions -- list the Actions available in a workspace."""

from __future__ import annotations

from pathlib import Path

import click

from ibmi_actions.cli.formatting import format_actions, format_error, get_console


@click.command()
@click.argument("workspace", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--path",
    "file_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Only list Actions that apply to this file.",
)
@click.pass_context
def actions(ctx: click.Context, workspace: Path, file_path: Path | None) -> None:
    """List global and workspace-local Actions for WORKSPACE."""
    from ibmi_actions.cli import _get_settings
    from ibmi_actions.local import get_local_actions
    from ibmi_actions.models import ResourceUri, StaticConfigStore, Target, Workspace
    from ibmi_actions.resolver import ActionResolver
    from ibmi_actions.storage import InMemoryUsageRanking
    from ibmi_actions.ui import ConsoleUI

    console = get_console()
    try:
        folder = Workspace(workspace.name, workspace.resolve())
        store = StaticConfigStore(_get_settings(ctx), workspace_actions=get_local_actions)

        if file_path is None:
            listed = store.get_actions() + store.get_actions(folder)
        else:
            target = Target.from_uri(ResourceUri.for_file(file_path.resolve()), workspace=folder)
            resolver = ActionResolver(store, InMemoryUsageRanking(), ConsoleUI(console, assume_defaults=True))
            listed = resolver.available([target])

        format_actions(listed, console)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
