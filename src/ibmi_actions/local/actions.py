"""Workspace-local Action files and downloaded event files.

A workspace may define its own Actions in ``.vscode/actions.json``. These
always apply to local files, so their type is forced to ``file``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ibmi_actions.exceptions import ActionDefinitionError
from ibmi_actions.models.action import Action, ActionType, Workspace

logger = logging.getLogger(__name__)

ACTIONS_FILE_PATTERN = "**/.vscode/actions.json"
EVFEVENT_FILE_PATTERN = "**/.evfevent/*"


def get_local_actions_files(workspace: Workspace) -> list[Path]:
    return sorted(Path(workspace.path).glob(ACTIONS_FILE_PATTERN))


def load_actions_file(path: Path) -> list[Action]:
    """Load and validate one ``actions.json`` file.

    Raises:
        ActionDefinitionError: If the file is not valid JSON or any entry
            is not a valid Action with an ``extensions`` list.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ActionDefinitionError(f"Error parsing {path}: {e}") from e

    if not isinstance(data, list):
        return []

    actions = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or not isinstance(entry.get("extensions"), list):
            raise ActionDefinitionError(f"Error parsing {path}: invalid Action defined at index {index}.")
        try:
            action = Action.model_validate({**entry, "type": ActionType.FILE.value})
        except ValidationError as e:
            raise ActionDefinitionError(
                f"Error parsing {path}: invalid Action defined at index {index}."
            ) from e
        actions.append(action)
    return actions


def get_local_actions(workspace: Workspace) -> list[Action]:
    """All valid Actions defined in *workspace*.

    Files that fail to load are logged and skipped.
    """
    actions: list[Action] = []
    for path in get_local_actions_files(workspace):
        try:
            actions.extend(load_actions_file(path))
        except ActionDefinitionError as e:
            logger.warning("%s", e)
    return actions


def get_evfevent_files(workspace: Workspace) -> list[Path]:
    """Event files downloaded into ``.evfevent`` folders of *workspace*."""
    return sorted(p for p in Path(workspace.path).glob(EVFEVENT_FILE_PATTERN) if p.is_file())
