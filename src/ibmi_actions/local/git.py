"""Git branch lookup for workspace folders."""

from __future__ import annotations

import logging
import subprocess

from ibmi_actions.models.action import Workspace

logger = logging.getLogger(__name__)


def get_git_branch(workspace: Workspace) -> str | None:
    """Return the checked-out branch of *workspace*, or None.

    None is returned outside a repository, on a detached HEAD, or when git
    is not installed.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=workspace.path,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug("git unavailable for %s: %s", workspace.path, e)
        return None
    branch = result.stdout.strip()
    if result.returncode != 0 or not branch or branch == "HEAD":
        return None
    return branch
