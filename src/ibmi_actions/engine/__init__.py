"""Command building blocks: variables, context, prompts and dispatch."""

from ibmi_actions.engine.context import (
    DerivedContext,
    MemberPath,
    build_library_list,
    derive_context,
    generic_variables,
    object_name_from_file,
    parse_member_path,
)
from ibmi_actions.engine.dispatch import (
    Dispatcher,
    escape_for_shell,
    get_object_from_command,
    library_list_commands,
    wrap_ile_command,
)
from ibmi_actions.engine.prompts import PromptExpander, find_tokens, substitute
from ibmi_actions.engine.variables import Variables

__all__ = [
    "DerivedContext",
    "Dispatcher",
    "MemberPath",
    "PromptExpander",
    "Variables",
    "build_library_list",
    "derive_context",
    "escape_for_shell",
    "find_tokens",
    "generic_variables",
    "get_object_from_command",
    "library_list_commands",
    "object_name_from_file",
    "parse_member_path",
    "substitute",
    "wrap_ile_command",
]
