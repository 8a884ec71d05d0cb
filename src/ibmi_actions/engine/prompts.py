"""Prompted input for Action commands.

Commands may contain ``${name|label|default}`` tokens that are resolved
interactively before execution, and lines starting with ``?`` that are
offered for editing in full.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ibmi_actions.exceptions import PromptCancelledError
from ibmi_actions.protocols import UserInterface

logger = logging.getLogger(__name__)

_INPUT_TOKEN = re.compile(r"\$\{([^}]*)\}")


@dataclass(frozen=True)
class PromptToken:
    """One ``${name|label|default}`` token and its span in the command."""

    name: str
    label: str
    default: str
    start: int
    end: int
    raw: str = ""

    @property
    def choices(self) -> list[str] | None:
        """Comma-separated defaults become a single-select list."""
        if "," in self.default:
            return self.default.split(",")
        return None


def find_tokens(command: str) -> list[PromptToken]:
    """Scan *command* left to right for prompt tokens."""
    tokens = []
    for match in _INPUT_TOKEN.finditer(command):
        # fields past the third are ignored
        name, label, default = (match.group(1).split("|") + ["", ""])[:3]
        tokens.append(
            PromptToken(
                name=name,
                label=label or name,
                default=default or "",
                start=match.start(),
                end=match.end(),
                raw=match.group(0),
            )
        )
    return tokens


def substitute(command: str, tokens: list[PromptToken], values: list[str]) -> str:
    """Replace *tokens* with *values*, highest offset first.

    Earlier offsets stay valid while later tokens are rewritten, whatever
    the length of each value.
    """
    for token, value in sorted(zip(tokens, values), key=lambda pair: pair[0].start, reverse=True):
        command = command[: token.start] + value + command[token.end :]
    return command


class PromptExpander:
    """Resolves prompt tokens through a UserInterface.

    Answers are remembered by token text, so a run with several targets
    prompts once and reuses the answers. Call :meth:`reset` between targets
    to prompt for each one.
    """

    def __init__(self, ui: UserInterface, title: str = "Run Command") -> None:
        self._ui = ui
        self._title = title
        self._answers: dict[str, str] = {}
        self._edited_lines: dict[str, str] = {}

    def reset(self) -> None:
        self._answers.clear()
        self._edited_lines.clear()

    async def expand(self, command: str) -> str:
        """Resolve every prompt in *command*, line by line.

        Blank lines are dropped. Raises PromptCancelledError when the user
        dismisses any prompt; nothing should be dispatched in that case.
        """
        lines = []
        for line in command.splitlines():
            if not line.strip():
                continue
            if line.startswith("?"):
                lines.append(await self._edit_line(line))
            else:
                lines.append(await self.expand_inputs(line))
        return "\n".join(lines)

    async def expand_inputs(self, command: str) -> str:
        tokens = find_tokens(command)
        if not tokens:
            return command
        values = []
        for token in tokens:
            values.append(await self._answer(token))
        return substitute(command, tokens, values)

    async def _answer(self, token: PromptToken) -> str:
        cached = self._answers.get(token.raw)
        if cached is not None:
            return cached

        choices = token.choices
        if choices:
            value = await self._ui.choose(token.label, choices, default=choices[0])
        else:
            value = await self._ui.prompt(self._title, default=token.default, label=token.label)
        if value is None:
            logger.debug("Prompt %s cancelled", token.name)
            raise PromptCancelledError(token.name)

        self._answers[token.raw] = value
        return value

    async def _edit_line(self, line: str) -> str:
        cached = self._edited_lines.get(line)
        if cached is not None:
            return cached
        value = await self._ui.prompt(self._title, default=line[1:])
        if not value:
            raise PromptCancelledError(line[1:].split(" ", 1)[0] or "command")
        self._edited_lines[line] = value
        return value
