"""Model metadata, context lengths, and token counting.

TokenCounter is the only thing the context manager needs from here: it turns
a list of messages into an encoded-token cost using the model's tiktoken
encoding, with cl100k_base as the fallback encoding.
"""

import logging
from typing import Iterable, List

import tiktoken

from agent.types import Message

logger = logging.getLogger(__name__)

FALLBACK_ENCODING = "cl100k_base"

# Per-message framing overhead (role markers, separators) and the priming
# tokens every reply starts with.
TOKENS_PER_MESSAGE = 3
TOKENS_PER_REPLY = 3

TRUNCATION_SUFFIX = "..."

DEFAULT_CONTEXT_LENGTHS = {
    "gpt-4o": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4-turbo": 128000,
    "gpt-4.1": 1047576,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 16385,
    "o1": 200000,
    "o3-mini": 200000,
    "deepseek-chat": 65536,
}


def get_model_context_length(model: str) -> int:
    """Best-known context window for a model name, 128k when unknown."""
    if model in DEFAULT_CONTEXT_LENGTHS:
        return DEFAULT_CONTEXT_LENGTHS[model]
    for known in sorted(DEFAULT_CONTEXT_LENGTHS, key=len, reverse=True):
        if model.startswith(known):
            return DEFAULT_CONTEXT_LENGTHS[known]
    return 128000


def estimate_tokens_rough(text: str) -> int:
    """Rough token estimate (~4 chars/token) used when no encoding is available."""
    if not text:
        return 0
    return len(text) // 4


def _load_encoding(model: str):
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.debug("No tiktoken encoding registered for %s, using %s", model, FALLBACK_ENCODING)
    except Exception as e:
        # Known models may need a BPE download, which fails offline.
        logger.warning("Could not load tiktoken encoding for %s (%s), trying %s", model, e, FALLBACK_ENCODING)
    try:
        return tiktoken.get_encoding(FALLBACK_ENCODING)
    except Exception as e:
        logger.warning("Could not load tiktoken encoding %s (%s); falling back to rough estimates",
                       FALLBACK_ENCODING, e)
        return None


class TokenCounter:
    """Approximate token cost of chat messages for a given model."""

    def __init__(self, model: str, encoding=None):
        self.model = model
        self._encoding = encoding if encoding is not None else _load_encoding(model)

    def encode(self, text: str) -> List[int]:
        if self._encoding is None:
            raise RuntimeError("no tokenizer encoding loaded")
        return self._encoding.encode(text or "", disallowed_special=())

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        if self._encoding is None:
            return estimate_tokens_rough(text)
        return len(self.encode(text))

    def count_message(self, message: Message) -> int:
        return TOKENS_PER_MESSAGE + self.count_text(message.role.value) + self.count_text(message.content)

    def count_messages(self, messages: Iterable[Message]) -> int:
        return TOKENS_PER_REPLY + sum(self.count_message(m) for m in messages)

    def truncate(self, text: str, max_tokens: int) -> str:
        """
        Cut ``text`` down to at most ``max_tokens`` tokens.

        Prefers to break at a sentence, line or word boundary in the second
        half of the kept text, and marks the cut with an ellipsis.
        """
        if self.count_text(text) <= max_tokens:
            return text
        keep = max(max_tokens - self.count_text(TRUNCATION_SUFFIX), 0)
        if self._encoding is None:
            truncated = text[:keep * 4]
        else:
            truncated = self._encoding.decode(self.encode(text)[:keep])

        for sep, tail in ((". ", ". ..."), ("\n", "\n..."), (" ", "...")):
            idx = truncated.rfind(sep)
            if idx > len(truncated) // 2:
                return truncated[:idx] + tail
        return truncated + TRUNCATION_SUFFIX
