"""Shared fixtures and in-repo fakes for the gitchat test suite."""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from unittest.mock import patch

import pytest

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from agent.core import AgentCore
from agent.model_metadata import TokenCounter
from agent.types import FileChange
from tools.interrupt import clear_interrupt


class WordEncoding:
    """Tokenizer stand-in: one token per whitespace-separated word."""

    def encode(self, text, disallowed_special=()):
        return text.split()

    def decode(self, tokens):
        return " ".join(tokens)


class FakeExecutor:
    """
    Executor collaborator double.

    ``outputs`` maps an args tuple to the output string, or to an exception
    to raise. ``statuses`` is consumed one entry per get_status() call; the
    last entry repeats.
    """

    def __init__(self, outputs: Optional[Dict[Tuple[str, ...], object]] = None, repository: bool = True):
        self.outputs = dict(outputs or {})
        self.repository = repository
        self.calls: List[List[str]] = []
        self.statuses: List[Tuple[List[FileChange], List[FileChange]]] = [([], [])]
        self.diff = ""
        self.stage_all_calls = 0
        self.commits: List[str] = []

    def execute(self, args):
        self.calls.append(list(args))
        result = self.outputs.get(tuple(args), "")
        if isinstance(result, Exception):
            raise result
        return result

    def is_repository(self):
        return self.repository

    def current_branch(self):
        return "main"

    def get_status(self):
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def stage_all(self):
        self.stage_all_calls += 1

    def commit(self, message):
        self.commits.append(message)

    def get_diff(self, staged=False):
        return self.diff


class FakeLLM:
    """Returns scripted replies in order and records every request."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.requests = []

    def complete(self, messages, temperature=None):
        self.requests.append({"messages": list(messages), "temperature": temperature})
        if not self.replies:
            raise AssertionError("FakeLLM has no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingDisplay:
    """Display collaborator double that records every call as (kind, text)."""

    def __init__(self):
        self.events: List[Tuple[str, object]] = []
        self.spinner_active = False

    def _record(self, kind, text):
        self.events.append((kind, text))

    def texts(self, kind: str) -> List[object]:
        return [text for k, text in self.events if k == kind]

    def show_info(self, message):
        self._record("info", message)

    def show_success(self, message):
        self._record("success", message)

    def show_warning(self, message):
        self._record("warning", message)

    def show_error(self, message):
        self._record("error", message)

    def show_command(self, command):
        self._record("command", command)

    def show_output(self, output):
        self._record("output", output)

    def start_spinner(self, message):
        self.spinner_active = True
        self._record("spinner", message)

    def stop_spinner(self):
        self.spinner_active = False

    def show_section(self, title, content="", opts=None):
        self._record("section", (title, content))

    def show_numbered_list(self, items):
        self._record("list", list(items))

    def show_prompt(self, pwd, branch):
        self._record("prompt", (pwd, branch))
        return "> "

    def show_welcome(self):
        self._record("welcome", "")


class ScriptedInput:
    """input() replacement that answers from a list, then raises EOFError."""

    def __init__(self, answers=None):
        self.answers = list(answers or [])
        self.prompts: List[str] = []

    def __call__(self, prompt=""):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def _isolate_gitchat_home(tmp_path, monkeypatch):
    """Keep config, .env and logs out of the real home directory."""
    with patch.dict(os.environ):
        monkeypatch.setenv("GITCHAT_HOME", str(tmp_path / ".gitchat"))
        monkeypatch.delenv("GITCHAT_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        clear_interrupt()
        yield
        clear_interrupt()


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def user_input():
    return ScriptedInput()


@pytest.fixture
def counter():
    return TokenCounter("test-model", encoding=WordEncoding())


@pytest.fixture
def core(executor, llm, display, user_input):
    return AgentCore(executor=executor, llm=llm, display=display, input_fn=user_input)
