"""Tests for agent/commit_agent.py -- the commit-suggestion flow."""

import json

import pytest

from agent.commit_agent import CommitAgent, categorize_changes, selection_prompt, status_symbol
from agent.errors import InvalidSelection
from agent.types import FileChange, Role


SUGGESTIONS = json.dumps({
    "summary": "Adds a README section",
    "suggestions": [
        {"message": "docs(readme): add usage section", "description": "documents the CLI"},
        {"message": "docs: describe installation"},
        {"message": "chore: update docs"},
    ],
})

STAGED = [FileChange(path="README.md", status="modified", additions=10, deletions=2)]
UNSTAGED = [FileChange(path="a.txt", status="modified"), FileChange(path="new.py", status="untracked")]


@pytest.fixture
def agent(core):
    return CommitAgent(core)


class TestHelpers:
    def test_status_symbols(self):
        assert status_symbol("added") == "➕"
        assert status_symbol("untracked") == "❓"
        assert status_symbol("unmerged") == "•"

    def test_categorize(self):
        assert categorize_changes(UNSTAGED) == (["a.txt"], ["new.py"])

    def test_selection_prompt_range(self):
        assert "(1-3)" in selection_prompt(3)
        assert "(1)" in selection_prompt(1)


class TestNothingToCommit:
    def test_clean_tree(self, agent, display, llm):
        assert agent.handle_commit() is None
        assert display.texts("info") == ["No changes to commit"]
        assert llm.requests == []


class TestStaging:
    def test_declining_stage_commits_nothing(self, agent, executor, display, user_input):
        executor.statuses = [([], [FileChange(path="a.txt", status="modified")])]
        user_input.answers = ["n"]

        assert agent.handle_commit() is None

        assert executor.stage_all_calls == 0
        assert executor.commits == []
        assert display.texts("info") == ["No changes committed"]

    def test_lists_modified_and_untracked(self, agent, executor, display, user_input):
        executor.statuses = [([], UNSTAGED)]
        user_input.answers = ["n"]
        agent.handle_commit()
        assert display.texts("section") == [("Modified files", "  a.txt"), ("Untracked files", "  new.py")]

    def test_accepting_stage_loops_into_suggestions(self, agent, executor, llm, display, user_input):
        executor.statuses = [([], UNSTAGED), (STAGED, [])]
        llm.replies = [SUGGESTIONS]
        user_input.answers = ["y", "1"]

        assert agent.handle_commit() == "docs(readme): add usage section"

        assert executor.stage_all_calls == 1
        assert "All changes staged successfully" in display.texts("success")


class TestSuggestions:
    def test_select_numbered_suggestion(self, agent, executor, llm, display, user_input):
        executor.statuses = [(STAGED, [])]
        executor.diff = "diff --git a/README.md b/README.md"
        llm.replies = [SUGGESTIONS]
        user_input.answers = ["2"]

        assert agent.handle_commit() == "docs: describe installation"

        assert executor.commits == ["docs: describe installation"]
        assert display.texts("success") == [
            "Changes committed successfully with message: docs: describe installation"
        ]

    def test_request_uses_commit_temperature_and_diff(self, agent, executor, llm, user_input):
        executor.statuses = [(STAGED, [])]
        executor.diff = "diff --git a/README.md b/README.md"
        llm.replies = [SUGGESTIONS]
        user_input.answers = ["c"]
        agent.handle_commit()

        request = llm.requests[0]
        assert request["temperature"] == 0.5
        assert [m.role for m in request["messages"]] == [Role.SYSTEM, Role.USER]
        prompt = request["messages"][1].content
        assert "- modified: README.md (10+/2-)" in prompt
        assert "diff --git a/README.md b/README.md" in prompt

    def test_shows_staged_files_summary_and_list(self, agent, executor, llm, display, user_input):
        executor.statuses = [(STAGED, [])]
        llm.replies = [SUGGESTIONS]
        user_input.answers = [""]
        agent.handle_commit()

        sections = display.texts("section")
        assert ("Staged Files", "📝 README.md (10+/2-)") in sections
        assert ("Change Summary", "Adds a README section") in sections
        assert display.texts("list")[0][0] == ("docs(readme): add usage section", "documents the CLI")

    @pytest.mark.parametrize("answer", ["c", ""])
    def test_cancel(self, agent, executor, llm, display, user_input, answer):
        executor.statuses = [(STAGED, [])]
        llm.replies = [SUGGESTIONS]
        user_input.answers = [answer]

        assert agent.handle_commit() is None
        assert executor.commits == []
        assert "Commit cancelled" in display.texts("info")

    def test_regenerate_asks_model_again(self, agent, executor, llm, user_input):
        executor.statuses = [(STAGED, [])]
        llm.replies = [SUGGESTIONS, SUGGESTIONS]
        user_input.answers = ["r", "3"]

        assert agent.handle_commit() == "chore: update docs"
        assert len(llm.requests) == 2

    def test_manual_message(self, agent, executor, llm, user_input):
        executor.statuses = [(STAGED, [])]
        llm.replies = [SUGGESTIONS]
        user_input.answers = ["m", "fix: hand written"]

        assert agent.handle_commit() == "fix: hand written"
        assert executor.commits == ["fix: hand written"]

    @pytest.mark.parametrize("answer", ["0", "4", "first"])
    def test_invalid_selection(self, agent, executor, llm, user_input, answer):
        executor.statuses = [(STAGED, [])]
        llm.replies = [SUGGESTIONS]
        user_input.answers = [answer]

        with pytest.raises(InvalidSelection):
            agent.handle_commit()
        assert executor.commits == []

    def test_no_suggestions(self, agent, executor, llm, display):
        executor.statuses = [(STAGED, [])]
        llm.replies = ['{"summary": "x", "suggestions": []}']

        assert agent.handle_commit() is None
        assert display.texts("info") == ["No commit suggestions found"]
        assert executor.commits == []
