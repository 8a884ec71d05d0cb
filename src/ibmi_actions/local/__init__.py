"""Local workspace helpers: ``.env`` files, git branches, Action files."""

from ibmi_actions.local.actions import get_evfevent_files, get_local_actions, load_actions_file
from ibmi_actions.local.env import env_overrides, get_branch_library_name, get_env_config
from ibmi_actions.local.git import get_git_branch

__all__ = [
    "env_overrides",
    "get_branch_library_name",
    "get_env_config",
    "get_evfevent_files",
    "get_git_branch",
    "get_local_actions",
    "load_actions_file",
]
