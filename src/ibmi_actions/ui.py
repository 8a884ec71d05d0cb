"""Terminal implementation of the UserInterface protocol.

ConsoleUI drives prompts, choices and messages through a Rich Console so
the pipeline can be run from a shell. Progress is reported as plain lines;
the returned CancellationToken is cancelled on Ctrl-C by the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ibmi_actions.models.action import ResourceUri
from ibmi_actions.protocols import CancellationToken

logger = logging.getLogger(__name__)

_LEVEL_STYLES = {
    "info": "green",
    "warning": "yellow",
    "error": "red",
}


class ConsoleUI:
    """Interactive console UI.

    Args:
        console: Console to print to and read from.
        assume_defaults: Answer every prompt and choice with its default
            instead of reading input (for non-interactive runs).
        documents: Locators reported as open documents.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        assume_defaults: bool = False,
        documents: list[ResourceUri] | None = None,
    ) -> None:
        self.console = console or Console()
        self.assume_defaults = assume_defaults
        self.documents = list(documents or [])
        self.invalidated: list[str] = []
        self.token: CancellationToken | None = None

    async def _input(self, text: str) -> str | None:
        read: Callable[[str], str] = self.console.input
        try:
            return await asyncio.to_thread(read, text)
        except (EOFError, KeyboardInterrupt):
            return None

    async def choose(self, title: str, options: list[str], *, default: str | None = None) -> str | None:
        if not options:
            return None
        if self.assume_defaults:
            return default if default is not None else options[0]

        self.console.print(f"[bold]{escape(title)}[/bold]")
        for i, option in enumerate(options, 1):
            marker = "*" if option == default else " "
            self.console.print(f" {marker}{i}. {escape(option)}", highlight=False)
        while True:
            answer = await self._input("Choice (empty for default, q to cancel): ")
            if answer is None or answer.strip().lower() == "q":
                return None
            answer = answer.strip()
            if not answer:
                return default if default is not None else options[0]
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            self.console.print("[red]Invalid choice.[/red]")

    async def prompt(self, title: str, *, default: str = "", label: str | None = None) -> str | None:
        if self.assume_defaults:
            return default
        self.console.print(f"[bold]{escape(title)}[/bold]")
        question = f"{label or 'Value'} [{default}]: " if default else f"{label or 'Value'}: "
        answer = await self._input(escape(question))
        if answer is None:
            return None
        return answer or default

    def show_progress(self, title: str, total: int, *, cancellable: bool = True) -> CancellationToken:
        self.console.print(f"[dim]{escape(title)} ({total} target(s))[/dim]")
        self.token = CancellationToken()
        return self.token

    def invalidate(self, scope: str) -> None:
        logger.debug("Invalidated %s", scope)
        self.invalidated.append(scope)

    async def show_message(self, level: str, text: str, *choices: str) -> str | None:
        style = _LEVEL_STYLES.get(level, "white")
        self.console.print(f"[{style}]{escape(text)}[/{style}]", highlight=False)
        if choices and not self.assume_defaults:
            return await self.choose("Options", list(choices))
        return None

    def show_output(self, text: str) -> None:
        self.console.print(Panel(escape(text), title="Output"))

    def open_documents(self) -> list[ResourceUri]:
        return list(self.documents)
