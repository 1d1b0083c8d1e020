"""Shared agent primitives.

AgentCore bundles the collaborators every agent needs (executor, LLM client,
display, prompts, user input) and exposes the plain operations both the chat
and commit flows use: asking for confirmation, running one git command and
reporting results. Specialized agents hold an AgentCore rather than
inheriting from one.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List

from agent.errors import GitChatError
from agent.prompt_builder import PromptSet
from agent.types import CommandResult

logger = logging.getLogger(__name__)

YES_ANSWERS = ("y", "yes")


@dataclass
class AgentCore:
    executor: Any
    llm: Any
    display: Any
    prompts: PromptSet = field(default_factory=PromptSet)
    input_fn: Callable[[str], str] = input

    def __post_init__(self):
        missing = [name for name in ("executor", "llm", "display") if getattr(self, name) is None]
        if missing:
            raise ValueError(f"AgentCore requires: {', '.join(missing)}")

    def ask(self, prompt: str) -> str:
        """Read one line from the user. EOF reads as an empty answer."""
        try:
            return self.input_fn(prompt).strip()
        except EOFError:
            return ""

    def confirm(self, prompt: str) -> bool:
        """Ask a y/n question; anything but an explicit yes declines."""
        return self.ask(prompt).lower() in YES_ANSWERS

    def run_git(self, args: List[str]) -> str:
        return self.executor.execute(list(args))

    def report_results(self, results: List[CommandResult]) -> None:
        """Show each executed command's outcome; stops at the first failure."""
        for result in results:
            if result.error is not None:
                self.display.show_error(f"Command failed: {result.error}")
                if isinstance(result.error, GitChatError):
                    raise result.error
                raise GitChatError(str(result.error)) from result.error
            self.display.show_success(f"Executed: {result.command.display()}")
            if result.output:
                self.display.show_output(result.output)
