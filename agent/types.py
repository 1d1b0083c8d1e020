"""
Shared data model for the gitchat agent core.

Messages, command specs, parsed model responses and command results all live
here so the context manager, classifier, pipeline and agents agree on one
vocabulary.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(Enum):
    """Conversation roles understood by chat-completion APIs."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ResponseType(Enum):
    ANSWER = "answer"
    EXECUTE = "execute"


class CommandKind(Enum):
    """Read-only commands run immediately; modifying ones need confirmation."""
    QUERY = "query"
    MODIFY = "modify"


class TurnState(Enum):
    """Where the chat agent is within a single user turn."""
    IDLE = "idle"
    CLASSIFIED = "classified"
    QUERY_EXECUTING = "query_executing"
    MODIFY_PREVIEW = "modify_preview"
    SUMMARIZING = "summarizing"
    REPORTING = "reporting"


@dataclass(frozen=True)
class Message:
    """
    One conversation entry.

    When ``content`` is a rendered prompt template, ``original_content`` keeps
    the bare user text so older turns can be re-sent without the wrapper.
    """
    role: Role
    content: str
    original_content: str = ""

    def normalized(self) -> "Message":
        """Return this message with its rendered template swapped for the original text."""
        if self.role is Role.USER and self.original_content:
            return replace(self, content=self.original_content)
        return self

    def to_api(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class CommandSpec:
    kind: CommandKind
    args: List[str]
    purpose: str = ""
    impact: str = ""
    program: str = "git"

    def display(self) -> str:
        return f"{self.program} {' '.join(self.args)}".rstrip()


@dataclass
class StructuredResponse:
    """Parsed model reply: either a direct answer or a batch of commands."""
    type: ResponseType
    command_kind: Optional[CommandKind] = None
    content: str = ""
    commands: List[CommandSpec] = field(default_factory=list)
    reason: str = ""


@dataclass
class CommandResult:
    command: CommandSpec
    output: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CommitSuggestion:
    message: str
    description: str = ""


@dataclass
class CommitResponse:
    summary: str = ""
    suggestions: List[CommitSuggestion] = field(default_factory=list)


@dataclass
class FileChange:
    """A single path reported by ``git status`` with optional diff stats."""
    path: str
    status: str
    additions: int = 0
    deletions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
        }
