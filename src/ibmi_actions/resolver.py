"""Action resolution.

Filters the configured Actions down to the ones that apply to a set of
targets, ranks them by last use and picks one, asking the user when more
than one candidate remains.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ibmi_actions.exceptions import NoSuitableActionError, TargetTypeError
from ibmi_actions.models.action import Action, ActionType, Target
from ibmi_actions.protocols import ConfigStore, UsageRanking, UserInterface

logger = logging.getLogger(__name__)


class ActionResolver:
    """Selects exactly one Action for a run.

    Args:
        config: Source of global and workspace-local Actions.
        ranking: Last-used timestamps; most recent sorts first.
        ui: Used to choose between several candidates.
    """

    def __init__(self, config: ConfigStore, ranking: UsageRanking, ui: UserInterface) -> None:
        self._config = config
        self._ranking = ranking
        self._ui = ui

    def available(self, targets: Sequence[Target]) -> list[Action]:
        """Actions that apply to every target, most recently used first.

        Raises:
            TargetTypeError: If the targets are not all of one type.
        """
        if not targets:
            return []
        first = targets[0]
        action_type = target_type(targets)

        actions = list(self._config.get_actions())
        if first.workspace is not None and action_type is ActionType.FILE:
            actions.extend(self._config.get_actions(first.workspace))

        fragment = first.uri.fragment.upper()
        extensions = {t.extension.upper() for t in targets}
        any_protected = any(t.is_protected for t in targets)

        candidates = []
        for action in actions:
            if action.type is not action_type:
                continue
            if any_protected and not action.run_on_protected:
                continue
            if not _matches(action, extensions, fragment):
                continue
            candidates.append(action)

        # sorted() is stable, so equal timestamps keep configuration order
        return sorted(candidates, key=lambda a: self._ranking.last_used(a.name), reverse=True)

    async def resolve(self, targets: Sequence[Target]) -> Action | None:
        """Pick the Action to run.

        Returns None when the user dismisses the choice.

        Raises:
            NoSuitableActionError: If no Action applies.
            TargetTypeError: If the targets are not all of one type.
        """
        candidates = self.available(targets)
        if not candidates:
            first = targets[0] if targets else None
            raise NoSuitableActionError(
                first.type.value if first else "resource",
                first.extension if first else None,
                read_only=any(t.is_protected for t in targets),
            )

        if len(candidates) == 1:
            chosen: Action | None = candidates[0]
        else:
            labels = [_label(a) for a in candidates]
            answer = await self._ui.choose("Select an action", labels, default=labels[0])
            chosen = next((a for a, label in zip(candidates, labels) if label == answer), None)

        if chosen is not None:
            self._ranking.mark_used(chosen.name)
            logger.debug("Selected action %s", chosen.name)
        return chosen


def _matches(action: Action, extensions: set[str], fragment: str) -> bool:
    if not action.extensions:
        return True
    wanted = {ext.upper() for ext in action.extensions}
    if "GLOBAL" in wanted:
        return True
    if fragment and fragment in wanted:
        return True
    return bool(extensions) and extensions <= wanted


def _label(action: Action) -> str:
    return f"{action.name} ({action.command.splitlines()[0] if action.command else ''})"


def target_type(targets: Sequence[Target]) -> ActionType:
    """The single Action type shared by *targets*."""
    types = sorted({t.type.value for t in targets})
    if len(types) != 1:
        raise TargetTypeError(types)
    return ActionType(types[0])
