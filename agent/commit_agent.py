"""
Commit agent: suggest commit messages for staged changes and commit one.

The model only proposes messages. Staging and committing are separate steps,
each behind an explicit user answer.
"""

import logging
from typing import List, Optional, Tuple

from agent.core import AgentCore
from agent.errors import InvalidSelection
from agent.response_parser import parse_commit_response
from agent.types import CommitResponse, CommitSuggestion, FileChange, Message, Role

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_TEMPERATURE = 0.5

STAGE_PROMPT = "\nWould you like to stage all changes? (y/n): "
MANUAL_PROMPT = "Enter your commit message: "

STATUS_SYMBOLS = {
    "modified": "📝",
    "added": "➕",
    "deleted": "➖",
    "renamed": "📋",
    "copied": "📑",
    "untracked": "❓",
}


def status_symbol(status: str) -> str:
    return STATUS_SYMBOLS.get(status, "•")


def categorize_changes(changes: List[FileChange]) -> Tuple[List[str], List[str]]:
    """Split unstaged changes into (modified, untracked) paths."""
    modified, untracked = [], []
    for change in changes:
        (untracked if change.status == "untracked" else modified).append(change.path)
    return modified, untracked


def selection_prompt(count: int) -> str:
    choices = "1" if count == 1 else f"1-{count}"
    return f"\nSelect a message ({choices}), 'r' to regenerate, 'c' to cancel, or 'm' for manual input: "


class CommitAgent:
    def __init__(self, core: AgentCore, temperature: float = DEFAULT_COMMIT_TEMPERATURE):
        self.core = core
        self.temperature = temperature

    def handle_commit(self) -> Optional[str]:
        """
        Run the interactive commit flow.

        Returns:
            The committed message, or None if nothing was committed.

        Raises:
            InvalidSelection: the answer to the selection prompt was not understood.
            GitChatError: git or model failures.
        """
        executor = self.core.executor
        display = self.core.display
        while True:
            staged, unstaged = executor.get_status()

            if not staged and not unstaged:
                display.show_info("No changes to commit")
                return None

            if not staged:
                if not self._stage_unstaged(unstaged):
                    display.show_info("No changes committed")
                    return None
                continue

            suggestions = self.generate_suggestions(staged)
            if not suggestions.suggestions:
                display.show_info("No commit suggestions found")
                return None

            self._show_staged(staged)
            self._show_suggestions(suggestions)

            regenerate, message = self._choose_message(suggestions.suggestions)
            if regenerate:
                continue
            if not message:
                display.show_info("Commit cancelled")
                return None

            executor.commit(message)
            display.show_success(f"Changes committed successfully with message: {message}")
            return message

    def generate_suggestions(self, staged: List[FileChange]) -> CommitResponse:
        diff = self.core.executor.get_diff(staged=True)
        prompt = self.core.prompts.render_commit(staged, diff)
        messages = [
            Message(Role.SYSTEM, self.core.prompts.render_system()),
            Message(Role.USER, prompt),
        ]

        display = self.core.display
        display.start_spinner("Analyzing changes and generating suggestions...")
        try:
            raw = self.core.llm.complete(messages, temperature=self.temperature)
        finally:
            display.stop_spinner()

        logger.debug("Commit suggestions response: %s", raw)
        return parse_commit_response(raw)

    def _stage_unstaged(self, unstaged: List[FileChange]) -> bool:
        modified, untracked = categorize_changes(unstaged)
        display = self.core.display
        if modified:
            display.show_section("Modified files", "\n".join(f"  {p}" for p in modified))
        if untracked:
            display.show_section("Untracked files", "\n".join(f"  {p}" for p in untracked))

        if not self.core.confirm(STAGE_PROMPT):
            return False

        self.core.executor.stage_all()
        display.show_success("All changes staged successfully")
        return True

    def _show_staged(self, staged: List[FileChange]) -> None:
        lines = [
            f"{status_symbol(c.status)} {c.path} ({c.additions}+/{c.deletions}-)"
            for c in staged
        ]
        self.core.display.show_section("Staged Files", "\n".join(lines), {"icon": "📄"})

    def _show_suggestions(self, response: CommitResponse) -> None:
        display = self.core.display
        display.show_section("Change Summary", response.summary, {"icon": "📝"})
        display.show_section("Suggested Commit Messages", "", {"icon": "💡"})
        display.show_numbered_list([(s.message, s.description) for s in response.suggestions])

    def _choose_message(self, suggestions: List[CommitSuggestion]) -> Tuple[bool, str]:
        """Returns (regenerate, message). An empty message cancels."""
        answer = self.core.ask(selection_prompt(len(suggestions)))
        choice = answer.lower()
        if choice in ("", "c"):
            return False, ""
        if choice == "r":
            return True, ""
        if choice == "m":
            return False, self.core.ask(MANUAL_PROMPT)
        try:
            index = int(answer)
        except ValueError:
            raise InvalidSelection(answer) from None
        if not 1 <= index <= len(suggestions):
            raise InvalidSelection(answer)
        return False, suggestions[index - 1].message
