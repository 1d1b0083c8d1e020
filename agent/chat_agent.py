"""
Chat agent: one natural-language turn at a time.

A turn goes prompt -> model -> classify -> dispatch. Query batches run
straight away and their output is summarized by a second model call; modify
batches are previewed and only run after the user confirms. The conversation
is recorded only once the model's reply has been classified, so a malformed
reply leaves the next turn's window exactly as it was.
"""

import logging
from typing import List, Optional

from agent.context_manager import ConversationContextManager
from agent.core import AgentCore
from agent.errors import NotARepository
from agent.pipeline import CommandPipeline, build_transcript
from agent.response_parser import classify_response
from agent.types import (
    CommandKind,
    CommandResult,
    Message,
    ResponseType,
    Role,
    StructuredResponse,
    TurnState,
)

logger = logging.getLogger(__name__)

DEFAULT_CHAT_TEMPERATURE = 0.2


class ChatAgent:
    """Orchestrates a REPL session's conversation with the model."""

    def __init__(
        self,
        core: AgentCore,
        context: ConversationContextManager,
        pipeline: Optional[CommandPipeline] = None,
        temperature: float = DEFAULT_CHAT_TEMPERATURE,
    ):
        self.core = core
        self.context = context
        self.pipeline = pipeline or CommandPipeline(core)
        self.temperature = temperature
        self.state = TurnState.IDLE

    def reset_chat(self) -> None:
        """Start a fresh conversation with a newly rendered system prompt."""
        self.context.reset(self.core.prompts.render_system())
        self.state = TurnState.IDLE

    def _complete(self, window: List[Message], spinner: str) -> str:
        display = self.core.display
        display.start_spinner(spinner)
        try:
            return self.core.llm.complete(window, temperature=self.temperature)
        finally:
            display.stop_spinner()

    def chat(self, query: str) -> Optional[str]:
        """
        Handle one user query.

        Returns:
            The text shown to the user as the turn's answer, or None when a
            modify batch was cancelled or executed.

        Raises:
            GitChatError: any per-turn failure; the session stays usable.
        """
        if not self.core.executor.is_repository():
            raise NotARepository()

        turn = Message(
            Role.USER,
            self.core.prompts.render_generate_commands(query),
            original_content=query,
        )
        window = self.context.prepare(turn)
        try:
            raw = self._complete(window, "Thinking...")
            logger.debug("Response: %s", raw)
            response = classify_response(raw)
            self.context.record(turn, Message(Role.ASSISTANT, raw))
            self.state = TurnState.CLASSIFIED
            return self._dispatch(query, response)
        finally:
            self.state = TurnState.IDLE

    def _dispatch(self, query: str, response: StructuredResponse) -> Optional[str]:
        display = self.core.display
        if response.type is ResponseType.ANSWER:
            self.state = TurnState.REPORTING
            display.show_success(response.content)
            return response.content

        if response.reason:
            logger.debug("Commands requested: %s", response.reason)

        if response.command_kind is CommandKind.QUERY:
            self.state = TurnState.QUERY_EXECUTING
            results = self.pipeline.run_query_batch(response.commands)
            return self._summarize(query, results)

        self.state = TurnState.MODIFY_PREVIEW
        results = self.pipeline.run_modify_batch(response.commands)
        if results is not None:
            self.state = TurnState.REPORTING
        return None

    def _summarize(self, query: str, results: List[CommandResult]) -> str:
        self.state = TurnState.SUMMARIZING
        prompts = self.core.prompts
        transcript = build_transcript(results)

        budget = self.context.remaining_for(Message(Role.USER, prompts.render_summarize_results(query, "")))
        fitted = self.context.fit(transcript, budget)
        if fitted != transcript:
            logger.info("Command output truncated to fit the context budget")

        turn = Message(
            Role.USER,
            prompts.render_summarize_results(query, fitted),
            original_content=fitted,
        )
        window = self.context.prepare(turn)
        answer = self._complete(window, "Analyzing results...")
        self.context.record(turn, Message(Role.ASSISTANT, answer))

        self.state = TurnState.REPORTING
        self.core.display.show_success(answer)
        return answer
