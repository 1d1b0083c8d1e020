"""Tests for agent/context_manager.py -- the token-bounded conversation window."""

import pytest

from agent.context_manager import RESPONSE_TOKEN_RESERVE, ConversationContextManager
from agent.errors import TokenLimitExceeded
from agent.types import Message, Role


def _manager(counter, max_tokens=40, reserved=0):
    return ConversationContextManager("sys", counter, max_tokens, reserved=reserved)


def _record_pairs(manager, count, words=4):
    for i in range(count):
        manager.record(
            Message(Role.USER, " ".join([f"q{i}"] * words)),
            Message(Role.ASSISTANT, " ".join([f"a{i}"] * words)),
        )


class TestBudget:
    def test_default_reserve(self, counter):
        manager = ConversationContextManager("sys", counter, 4000)
        assert manager.available == 4000 - RESPONSE_TOKEN_RESERVE

    def test_window_never_exceeds_available(self, counter):
        manager = _manager(counter)
        _record_pairs(manager, 10)
        for words in (1, 3, 6, 12):
            window = manager.prepare(Message(Role.USER, " ".join(["w"] * words)))
            assert counter.count_messages(window) <= manager.available

    def test_keeps_most_recent_turns(self, counter):
        """sys (5) + new turn (7) + priming (3) leave 25 tokens: three 8-token messages."""
        manager = _manager(counter)
        _record_pairs(manager, 10)
        new_turn = Message(Role.USER, "new question here")

        window = manager.prepare(new_turn)

        assert window[0].role is Role.SYSTEM
        assert window[-1] is new_turn
        assert window[1:-1] == manager.history[-3:]

    def test_system_message_always_first_and_unique(self, counter):
        manager = _manager(counter)
        _record_pairs(manager, 3)
        window = manager.prepare(Message(Role.USER, "hi"))
        assert [m.role for m in window].count(Role.SYSTEM) == 1
        assert window[0].content == "sys"


class TestTokenLimit:
    def test_oversized_turn_raises_with_single_message_window(self, counter):
        manager = _manager(counter)
        _record_pairs(manager, 2)
        huge = Message(Role.USER, " ".join(["w"] * 50))

        with pytest.raises(TokenLimitExceeded) as exc_info:
            manager.prepare(huge)

        err = exc_info.value
        assert err.window == [huge]
        assert err.max == 40
        assert err.current > manager.available
        assert len(manager.history) == 4

    def test_message_mentions_counts(self, counter):
        manager = _manager(counter)
        with pytest.raises(TokenLimitExceeded, match="max 40"):
            manager.prepare(Message(Role.USER, " ".join(["w"] * 50)))


class TestNormalization:
    def _history(self, manager):
        manager.record(
            Message(Role.USER, "RENDERED first", original_content="first"),
            Message(Role.ASSISTANT, "a1"),
            Message(Role.USER, "RENDERED second", original_content="second"),
            Message(Role.ASSISTANT, "a2"),
        )

    def test_older_user_turns_use_original_text(self, counter):
        manager = _manager(counter, max_tokens=200)
        self._history(manager)

        window = manager.prepare(Message(Role.USER, "next"))

        assert [m.content for m in window] == ["sys", "first", "a1", "RENDERED second", "a2", "next"]

    def test_history_itself_is_not_rewritten(self, counter):
        manager = _manager(counter, max_tokens=200)
        self._history(manager)
        manager.prepare(Message(Role.USER, "next"))
        assert manager.history[0].content == "RENDERED first"


class TestIdempotence:
    def test_prepare_without_new_turn_is_repeatable(self, counter):
        manager = _manager(counter)
        _record_pairs(manager, 6)
        assert manager.prepare() == manager.prepare()
        assert manager.window == manager.prepare()

    def test_prepare_does_not_record(self, counter):
        manager = _manager(counter)
        manager.prepare(Message(Role.USER, "hello"))
        assert manager.history == []


class TestLifecycle:
    def test_record_rejects_system_messages(self, counter):
        manager = _manager(counter)
        with pytest.raises(ValueError):
            manager.record(Message(Role.SYSTEM, "other"))

    def test_reset_clears_history_and_replaces_prompt(self, counter):
        manager = _manager(counter)
        _record_pairs(manager, 2)
        manager.reset("fresh")
        assert manager.history == []
        assert manager.prepare() == [Message(Role.SYSTEM, "fresh")]


class TestFit:
    def test_truncates_oversized_text(self, counter):
        text = "one two three four five six seven eight nine ten"
        assert manager_fit(counter, text, 5) == "one two three..."

    def test_non_positive_budget_gives_empty(self, counter):
        assert manager_fit(counter, "anything", 0) == ""

    def test_remaining_for(self, counter):
        manager = _manager(counter)
        message = Message(Role.USER, "a b c")
        assert manager.remaining_for(message) == 40 - counter.count_messages([manager.system_message, message])


def manager_fit(counter, text, budget):
    return _manager(counter).fit(text, budget)
