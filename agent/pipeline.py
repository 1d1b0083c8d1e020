"""Validation, substitution and execution of model-generated command batches.

Commands always run in the order the model gave them, one at a time, since
later commands may rely on earlier side effects. Any failure stops the batch.
Nothing is rolled back: git operations are not generally reversible.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from agent import substitution
from agent.core import AgentCore
from agent.errors import CommandInterrupted, CommandValidationError, GitChatError, TagLookupError
from agent.types import CommandResult, CommandSpec

logger = logging.getLogger(__name__)

ALLOWED_PROGRAM = "git"
CONFIRM_PROMPT = "\nDo you want to execute these commands? (y/n): "


def validate_commands(commands: List[CommandSpec]) -> None:
    """Reject the whole batch before anything runs if any command is malformed."""
    if not commands:
        raise CommandValidationError("no commands to execute")
    for command in commands:
        if command.program != ALLOWED_PROGRAM:
            raise CommandValidationError(f"invalid command type: {command.program}")
        if not command.args:
            raise CommandValidationError("empty git command arguments")


def build_transcript(results: List[CommandResult]) -> str:
    """Render results in submission order for the summarization prompt."""
    parts = []
    for result in results:
        parts.append(f"Command: {result.command.display()}\n")
        parts.append(f"Output:\n{result.output}\n\n")
    return "".join(parts)


class CommandPipeline:
    """Runs query and modify batches through an AgentCore."""

    def __init__(self, core: AgentCore):
        self.core = core

    def resolve(self, command: CommandSpec, read_only: bool = False) -> CommandSpec:
        """Return ``command`` with ``$(...)`` substitutions expanded."""
        try:
            resolved_args = substitution.resolve(command.args, self.core.run_git, read_only=read_only)
        except TagLookupError:
            self.core.display.show_warning("No tags found or error accessing tags")
            raise
        if resolved_args != command.args:
            logger.debug("Original command: %s", command.args)
            logger.debug("Resolved command: %s", resolved_args)
        return replace(command, args=resolved_args)

    def execute(self, command: CommandSpec, read_only: bool = True) -> CommandResult:
        """Resolve and run one command. Raises on failure."""
        resolved = self.resolve(command, read_only=read_only)
        output = self.core.run_git(resolved.args)
        return CommandResult(command=resolved, output=output)

    def run_query_batch(self, commands: List[CommandSpec]) -> List[CommandResult]:
        """
        Execute read-only commands without confirmation.

        Returns all results when every command succeeded. The first failure
        propagates and the partial results are discarded.
        """
        validate_commands(commands)
        results = []
        for command in commands:
            self.core.display.show_command(command.display())
            results.append(self.execute(command))
        return results

    def preview(self, command: CommandSpec) -> Optional[CommandSpec]:
        """
        Substitution-expanded form of ``command`` for display.

        Returns None when a substitution cannot be resolved yet. A failed tag
        lookup aborts the whole batch instead.
        """
        try:
            return self.resolve(command, read_only=True)
        except (CommandValidationError, CommandInterrupted):
            raise
        except GitChatError as e:
            logger.debug("Preview resolution failed for %s: %s", command.args, e)
            return None

    def run_modify_batch(self, commands: List[CommandSpec]) -> Optional[List[CommandResult]]:
        """
        Show every command, ask once, then execute in order.

        Returns:
            None when the user declined (nothing was executed), otherwise the
            results of all commands, each reported as it completed.

        Raises:
            CommandValidationError: malformed batch, before any prompt.
            GitChatError: the first failing command; later ones do not run.
        """
        validate_commands(commands)
        display = self.core.display

        display.show_warning("The following commands will modify the repository:")
        for i, command in enumerate(commands, 1):
            resolved = self.preview(command)
            display.show_command(f"{i}. {(resolved or command).display()}")
            if command.purpose:
                display.show_info(f"   Purpose: {command.purpose}")
            if command.impact:
                display.show_info(f"   Impact: {command.impact}")
            if resolved is None:
                display.show_warning("   Substitutions will be resolved when this command runs")

        if not self.core.confirm(CONFIRM_PROMPT):
            display.show_info("Operation cancelled")
            return None

        results = []
        for command in commands:
            try:
                # Resolved again: earlier commands in the batch may change what a substitution yields.
                ready = self.resolve(command)
                result = CommandResult(command=ready, output=self.core.run_git(ready.args))
            except GitChatError as e:
                result = CommandResult(command=command, error=e)
            self.core.report_results([result])
            results.append(result)
        return results
