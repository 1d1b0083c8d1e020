"""OpenAI-compatible chat-completion client.

A thin wrapper over the openai SDK: it converts Messages to API dicts, runs the
request on a worker thread so Ctrl+C can cancel it, and turns SDK failures
into LLMError. No retries: a failed request is surfaced once.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from agent.errors import ConfigurationError, LLMError
from agent.types import Message
from tools.interrupt import is_interrupted, set_interrupt

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.1


class LLMClient:
    """Language-model collaborator used by the chat and commit agents."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = 120.0,
    ):
        if not api_key:
            raise ConfigurationError("API key is required")
        self.model = model
        self.temperature = temperature
        self._client_kwargs: Dict[str, Any] = {"api_key": api_key, "timeout": timeout}
        if base_url:
            self._client_kwargs["base_url"] = base_url
        self.client = OpenAI(**self._client_kwargs)

    def complete(self, messages: List[Message], temperature: Optional[float] = None) -> str:
        """Send the window and return the stripped reply text."""
        if is_interrupted():
            raise LLMError("LLM request interrupted")
        api_kwargs = {
            "model": self.model,
            "messages": [m.to_api() for m in messages],
            "temperature": self.temperature if temperature is None else temperature,
        }
        logger.debug("LLM request: model=%s messages=%s", self.model, len(messages))
        try:
            response = self._interruptible_api_call(api_kwargs)
        except openai.OpenAIError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise LLMError("no response from LLM")
        content = (response.choices[0].message.content or "").strip()
        logger.debug("LLM response: %s", content)
        return content

    def _interruptible_api_call(self, api_kwargs: dict):
        # The request runs on a worker thread so Ctrl+C reaches the main thread;
        # the HTTP client is then closed to stop generation and rebuilt.
        result = {"response": None, "error": None}

        def _call():
            try:
                result["response"] = self.client.chat.completions.create(**api_kwargs)
            except Exception as e:
                result["error"] = e

        t = threading.Thread(target=_call, daemon=True)
        t.start()
        try:
            while t.is_alive():
                t.join(timeout=0.3)
        except KeyboardInterrupt:
            set_interrupt()
            self._reset_client()
            raise LLMError("LLM request interrupted") from None
        if result["error"] is not None:
            raise result["error"]
        return result["response"]

    def _reset_client(self):
        try:
            self.client.close()
        except Exception as e:
            logger.debug("Error closing interrupted client: %s", e)
        self.client = OpenAI(**self._client_kwargs)


def validate_credentials(api_key: str, model: str, base_url: Optional[str] = None) -> None:
    """
    Check that the key and base URL work and that ``model`` is served.

    Raises:
        ConfigurationError: bad key/URL or unknown model.
    """
    kwargs: Dict[str, Any] = {"api_key": api_key, "timeout": 5.0}
    if base_url:
        kwargs["base_url"] = base_url
    try:
        available = [m.id for m in OpenAI(**kwargs).models.list()]
    except openai.OpenAIError as e:
        raise ConfigurationError(f"invalid API key or base URL: {e}") from e

    if model not in available:
        raise ConfigurationError(f"Model is invalid: {model}")
