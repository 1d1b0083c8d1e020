"""Parsing of the model's structured JSON replies.

classify_response() routes a command-generation reply to an answer, a query
batch or a modify batch. parse_commit_response() handles the commit-message
suggestion shape. Both tolerate replies wrapped in ```json fences.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from agent.errors import InvalidResponseFormat
from agent.types import (
    CommandKind,
    CommandSpec,
    CommitResponse,
    CommitSuggestion,
    ResponseType,
    StructuredResponse,
)

logger = logging.getLogger(__name__)


def clean_json_response(response: str) -> str:
    """Strip surrounding whitespace and a Markdown code fence, if any."""
    response = response.strip()
    if response.startswith("```json"):
        response = response[len("```json"):]
    elif response.startswith("```"):
        response = response[len("```"):]
    if response.endswith("```"):
        response = response[:-len("```")]
    return response.strip()


def _load_object(raw: str) -> Dict[str, Any]:
    cleaned = clean_json_response(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InvalidResponseFormat(str(e), raw=raw) from e
    if not isinstance(data, dict):
        raise InvalidResponseFormat(f"expected a JSON object, got {type(data).__name__}", raw=raw)
    return data


def _parse_kind(value: Any) -> Optional[CommandKind]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return CommandKind(value.strip().lower())
    except ValueError:
        return None


def _parse_command(item: Any, batch_kind: CommandKind, raw: str) -> CommandSpec:
    if not isinstance(item, dict):
        raise InvalidResponseFormat("each command must be a JSON object", raw=raw)
    args = item.get("args")
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise InvalidResponseFormat("command args must be a list of strings", raw=raw)
    return CommandSpec(
        kind=_parse_kind(item.get("type")) or batch_kind,
        args=list(args),
        purpose=str(item.get("purpose") or ""),
        impact=str(item.get("impact") or ""),
        program=str(item.get("command") or "git"),
    )


def classify_response(raw: str) -> StructuredResponse:
    """
    Parse a command-generation reply.

    Raises:
        InvalidResponseFormat: not JSON, unknown ``type``, or an ``execute``
            reply without a recognised ``commandType`` or without commands.
    """
    data = _load_object(raw)

    type_value = str(data.get("type") or "").strip().lower()
    try:
        response_type = ResponseType(type_value)
    except ValueError:
        raise InvalidResponseFormat(f"unknown response type: {data.get('type')!r}", raw=raw) from None

    content = str(data.get("content") or "")
    reason = str(data.get("reason") or "")

    if response_type is ResponseType.ANSWER:
        if data.get("commands"):
            logger.debug("Dropping commands attached to an answer response")
        return StructuredResponse(type=response_type, content=content, reason=reason)

    command_kind = _parse_kind(data.get("commandType"))
    if command_kind is None:
        raise InvalidResponseFormat(
            f"execute response has unrecognised commandType: {data.get('commandType')!r}", raw=raw
        )

    items = data.get("commands")
    if not isinstance(items, list) or not items:
        raise InvalidResponseFormat("execute response contains no commands", raw=raw)

    commands: List[CommandSpec] = [_parse_command(item, command_kind, raw) for item in items]
    return StructuredResponse(
        type=response_type,
        command_kind=command_kind,
        content=content,
        commands=commands,
        reason=reason,
    )


def parse_commit_response(raw: str) -> CommitResponse:
    """Parse commit suggestions. Any number of suggestions is accepted."""
    data = _load_object(raw)

    suggestions = []
    items = data.get("suggestions")
    if isinstance(items, list):
        for item in items:
            if not isinstance(item, dict):
                continue
            message = str(item.get("message") or "").strip()
            if not message:
                continue
            suggestions.append(CommitSuggestion(
                message=message,
                description=str(item.get("description") or "").strip(),
            ))

    return CommitResponse(summary=str(data.get("summary") or ""), suggestions=suggestions)
