"""Action runner configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ibmi_actions.models.results import TargetRunState


@dataclass
class RunnerConfig:
    """Configuration for the multi-target Action runner.

    Mutable dataclass -- callers may adjust settings between runs.

    Attributes:
        prompt_per_target: Ask ``${name|label|default}`` prompts again for
            every target instead of reusing the first answers.
        show_output_action: Offer an "Open output" choice with the final
            message.
        on_target_done: Callback invoked after each target is processed.
    """

    prompt_per_target: bool = False
    show_output_action: bool = True
    on_target_done: Callable[[TargetRunState], None] | None = None
