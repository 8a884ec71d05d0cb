"""ibmi-actions evfevent -- show diagnostics from local event files."""

from __future__ import annotations

from pathlib import Path

import click

from ibmi_actions.cli.formatting import format_diagnostics, format_error, get_console


@click.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--hide", "hidden", multiple=True, help="Message ID to hide (repeatable).")
@click.pass_context
def evfevent(ctx: click.Context, files: tuple[Path, ...], hidden: tuple[str, ...]) -> None:
    """Parse EVFEVENT FILES and print the normalized diagnostics."""
    from ibmi_actions.cli import _get_settings
    from ibmi_actions.diagnostics import parse_evfevent, to_diagnostics

    console = get_console()
    try:
        settings = _get_settings(ctx)
        hide = [*settings.hide_compile_errors, *hidden]
        for path in files:
            lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
            errors_by_file = parse_evfevent(lines)
            if not errors_by_file:
                console.print(f"[dim]{path}: no diagnostics.[/dim]", highlight=False)
                continue
            for file, errors in errors_by_file.items():
                format_diagnostics(file, to_diagnostics(errors, hide), console)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
