"""Token-bounded conversation window.

The manager keeps the whole session history (append-only) and derives the
window sent to the model from it on every call. Recency wins: the newest
turns are kept and the oldest fall off once the budget is spent. The system
message is always first and the in-flight user turn is never truncated or
dropped; if it cannot fit on its own, TokenLimitExceeded is raised instead of
sending an oversized request.
"""

import logging
from typing import List, Optional

from agent.errors import TokenLimitExceeded
from agent.model_metadata import TokenCounter
from agent.types import Message, Role

logger = logging.getLogger(__name__)

RESPONSE_TOKEN_RESERVE = 300


class ConversationContextManager:
    """Builds the per-turn ConversationWindow for one REPL session."""

    def __init__(
        self,
        system_prompt: str,
        counter: TokenCounter,
        max_tokens: int,
        reserved: int = RESPONSE_TOKEN_RESERVE,
    ):
        self.system_message = Message(Role.SYSTEM, system_prompt)
        self.counter = counter
        self.max_tokens = max_tokens
        self.reserved = reserved
        self._history: List[Message] = []

    @property
    def available(self) -> int:
        return self.max_tokens - self.reserved

    @property
    def history(self) -> List[Message]:
        return list(self._history)

    @property
    def window(self) -> List[Message]:
        """The window as it would be sent right now, without a new turn."""
        return self.prepare()

    def reset(self, system_prompt: Optional[str] = None) -> None:
        """Forget the session history, optionally with a fresh system prompt."""
        if system_prompt is not None:
            self.system_message = Message(Role.SYSTEM, system_prompt)
        self._history = []

    def record(self, *messages: Message) -> None:
        """Append completed turns to the history."""
        for message in messages:
            if message.role is Role.SYSTEM:
                raise ValueError("system message is owned by the context manager")
            self._history.append(message)

    def prepare(self, new_turn: Optional[Message] = None) -> List[Message]:
        """
        Assemble the window for the next model call.

        Args:
            new_turn: The message about to be sent. It is not recorded here;
                call record() once the turn has completed.

        Returns:
            [system, <as many recent prior turns as fit>, new_turn]

        Raises:
            TokenLimitExceeded: ``new_turn`` plus the system message alone
                exceed the budget. ``err.window`` holds the single-message
                fallback window.
        """
        available = self.available
        prior = self._normalize(self._history)

        base = [self.system_message] + ([new_turn] if new_turn is not None else [])
        used = self.counter.count_messages(base)
        if new_turn is not None and used > available:
            logger.warning("User turn alone needs %s tokens, budget is %s", used, available)
            raise TokenLimitExceeded(used, self.max_tokens, window=[new_turn])

        kept: List[Message] = []
        for message in reversed(prior):
            cost = self.counter.count_message(message)
            if used + cost > available:
                break
            kept.append(message)
            used += cost
        kept.reverse()

        dropped = len(prior) - len(kept)
        if dropped:
            logger.debug("Context window dropped %s oldest message(s), %s/%s tokens", dropped, used, available)

        window = [self.system_message] + kept
        if new_turn is not None:
            window.append(new_turn)
        return window

    def fit(self, text: str, budget: int) -> str:
        """Truncate content that on its own exceeds ``budget`` tokens."""
        if budget <= 0:
            return ""
        return self.counter.truncate(text, budget)

    def remaining_for(self, *messages: Message) -> int:
        """Tokens left in the budget after the system message and ``messages``."""
        return self.available - self.counter.count_messages([self.system_message, *messages])

    @staticmethod
    def _normalize(history: List[Message]) -> List[Message]:
        # The most recent prior user turn stays rendered since it is still the
        # active task frame; older ones go back to the bare query text.
        last_user = -1
        for i, message in enumerate(history):
            if message.role is Role.USER:
                last_user = i
        return [m if i == last_user else m.normalized() for i, m in enumerate(history)]
