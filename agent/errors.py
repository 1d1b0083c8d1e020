"""
Error taxonomy for gitchat.

Every error a user can see derives from GitChatError, which carries a short
machine-readable ``error_type`` and optional metadata. Per-turn errors are
caught by the REPL and rendered; only ConfigurationError is fatal at startup.
"""

from typing import Any, Dict, List, Optional


class GitChatError(Exception):
    """Base class for user-facing gitchat errors."""

    error_type = "gitchat_error"

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return self.message


class NotARepository(GitChatError):
    error_type = "git_not_initialized"

    def __init__(self, message: str = ""):
        super().__init__(
            message or "Current directory is not a git repository, "
                       "please run cd <path> to change to a git repository"
        )


class TokenLimitExceeded(GitChatError):
    """The active user turn does not fit the context budget even on its own."""

    error_type = "token_limit_exceeded"

    def __init__(self, current: int, maximum: int, window: Optional[List[Any]] = None):
        super().__init__(
            f"token limit exceeded: current {current}, max {maximum}",
            {"current_tokens": current, "max_tokens": maximum},
        )
        self.current = current
        self.max = maximum
        self.window = window or []


class InvalidResponseFormat(GitChatError):
    error_type = "invalid_response_format"

    def __init__(self, message: str, raw: str = ""):
        super().__init__(f"invalid response format: {message}", {"raw": raw})
        self.raw = raw


class CommandValidationError(GitChatError):
    error_type = "invalid_command"


class TagLookupError(CommandValidationError):
    """``describe --tags`` substitution failed, usually because no tags exist."""

    error_type = "tag_lookup_failed"

    def __init__(self, message: str = "no tags found or error accessing tags"):
        super().__init__(message)


class SubstitutionError(GitChatError):
    error_type = "substitution_failed"

    def __init__(self, substitution: str, cause: Exception):
        super().__init__(
            f"failed to execute substitution '{substitution}': {cause}",
            {"substitution": substitution},
        )
        self.substitution = substitution
        self.cause = cause


class ExecutionError(GitChatError):
    error_type = "execution_failed"

    def __init__(self, message: str, args: Optional[List[str]] = None, output: str = ""):
        super().__init__(message, {"args": list(args or []), "output": output})
        self.command_args = list(args or [])
        self.output = output


class CommandInterrupted(ExecutionError):
    error_type = "interrupted"

    def __init__(self, args: Optional[List[str]] = None, output: str = ""):
        super().__init__("command interrupted", args=args, output=output)


class InvalidSelection(GitChatError):
    error_type = "invalid_selection"

    def __init__(self, selection: str):
        super().__init__(f"invalid selection: {selection!r}")
        self.selection = selection


class LLMError(GitChatError):
    error_type = "llm_request_failed"


class ConfigurationError(GitChatError):
    """Missing or rejected credentials, base URL or model. Fatal at startup."""

    error_type = "configuration_error"
