"""Workspace ``.env`` overrides and branch library names."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from dotenv import dotenv_values

from ibmi_actions.models.action import Workspace

logger = logging.getLogger(__name__)

_BRANCH_SEPARATORS = re.compile(r"[/\- ]")


def get_env_config(workspace: Workspace) -> dict[str, str]:
    """Read ``<workspace>/.env`` into a dict.

    Keys without a value are ignored. Returns an empty dict when the
    workspace has no ``.env`` file.
    """
    env_path = Path(workspace.path) / ".env"
    if not env_path.is_file():
        return {}
    values = dotenv_values(env_path)
    env = {key.strip(): value.strip() for key, value in values.items() if key.strip() and value}
    logger.debug("Loaded %d .env values from %s", len(env), env_path)
    return env


def env_overrides(workspace: Workspace | None) -> dict[str, str]:
    """``.env`` values keyed as variables (``CURLIB`` becomes ``&CURLIB``)."""
    if workspace is None:
        return {}
    return {f"&{key}": value for key, value in get_env_config(workspace).items()}


def get_branch_library_name(branch: str) -> str:
    """Derive a 10-character library name from a git branch name.

    ``feature/123-cool-thing`` gives ``FEA123``; branches without
    separators are truncated to 10 characters.
    """
    parts = _BRANCH_SEPARATORS.split(branch)
    if len(parts) > 1:
        branch_type = parts[0][:3]
        possible_id = next((p for p in parts if len(p) <= 7 and p[:1].isdigit()), None)
        backup_id = parts[1][:7]
        return (branch_type + (possible_id or backup_id)).strip().upper()
    return branch[:10].upper()
