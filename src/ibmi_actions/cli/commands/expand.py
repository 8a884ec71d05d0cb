"""ibmi-actions expand -- expand a command template."""

from __future__ import annotations

import click

from ibmi_actions.cli.formatting import format_error, get_console


@click.command()
@click.argument("template")
@click.option("--var", "assignments", multiple=True, metavar="NAME=VALUE", help="Variable to set (repeatable).")
@click.option("--user", default="", envvar="IBMI_ACTIONS_USER", help="Value for &USERNAME.")
@click.option("--host", default="", envvar="IBMI_ACTIONS_HOST", help="Value for &HOST.")
@click.pass_context
def expand(ctx: click.Context, template: str, assignments: tuple[str, ...], user: str, host: str) -> None:
    """Expand TEMPLATE with the generic variables plus --var assignments.

    Names given without a leading ``&`` get one, so ``--var OPENLIB=LIB1``
    sets ``&OPENLIB``.
    """
    from ibmi_actions.cli import _get_settings
    from ibmi_actions.engine import generic_variables

    console = get_console()
    try:
        settings = _get_settings(ctx)
        variables = generic_variables(
            current_library=settings.current_library,
            library_list=settings.library_list,
            current_user=user,
            current_host=host,
            home_directory=settings.home_directory,
            custom_variables=[(v.name, v.value) for v in settings.custom_variables],
        )
        for assignment in assignments:
            name, sep, value = assignment.partition("=")
            if not sep or not name:
                raise click.BadParameter(f"expected NAME=VALUE, got {assignment!r}", param_hint="--var")
            if name[0] not in "&*{":
                name = f"&{name}"
            variables.set(name, value)

        click.echo(variables.expand(template))
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
