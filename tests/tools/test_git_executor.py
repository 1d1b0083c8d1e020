"""Tests for tools/git_executor.py -- output parsing and the git subprocess backend."""

import shutil
from unittest.mock import patch

import pytest

from agent.errors import CommandInterrupted, ExecutionError
from tools.git_executor import GIT_ENV, GitExecutor, clean_output, parse_numstat, parse_porcelain
from tools.interrupt import clear_interrupt, is_interrupted, set_interrupt

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
requires_sleep = pytest.mark.skipif(shutil.which("sleep") is None, reason="sleep not available")


class TestCleanOutput:
    def test_strips_pager_marker_and_trailing_space(self):
        assert clean_output("line one  \r\nline two\n(END)") == "line one\nline two"

    def test_keeps_leading_whitespace(self):
        assert clean_output(" M a.txt\n") == " M a.txt"

    def test_empty(self):
        assert clean_output("") == ""


class TestParsePorcelain:
    def test_splits_index_and_worktree(self):
        output = "\n".join([
            "M  staged.py",
            " M changed.py",
            "MM both.py",
            "?? new.txt",
            "R  old.py -> renamed.py",
            "D  gone.py",
        ])
        staged, unstaged = parse_porcelain(output)

        assert [(c.path, c.status) for c in staged] == [
            ("staged.py", "modified"),
            ("both.py", "modified"),
            ("renamed.py", "renamed"),
            ("gone.py", "deleted"),
        ]
        assert [(c.path, c.status) for c in unstaged] == [
            ("changed.py", "modified"),
            ("both.py", "modified"),
            ("new.txt", "untracked"),
        ]

    def test_ignores_blank_and_garbage_lines(self):
        assert parse_porcelain("\n\nxx\n") == ([], [])


class TestParseNumstat:
    def test_counts_and_binary_files(self):
        stats = parse_numstat("10\t2\tREADME.md\n-\t-\timage.png\n")
        assert stats == {"README.md": (10, 2), "image.png": (0, 0)}


class TestProcessControl:
    def test_pager_disabled(self):
        assert GIT_ENV["GIT_PAGER"] == "cat"
        assert GIT_ENV["GIT_TERMINAL_PROMPT"] == "0"

    def test_missing_binary(self):
        with pytest.raises(ExecutionError, match="failed to start"):
            GitExecutor(git_binary="/nonexistent/git").execute(["status"])

    @pytest.mark.skipif(shutil.which("false") is None, reason="false not available")
    def test_non_zero_exit(self):
        with pytest.raises(ExecutionError, match="exit 1"):
            GitExecutor(git_binary="false").execute([])

    def test_pending_interrupt_refuses_to_start(self):
        set_interrupt()
        try:
            with pytest.raises(CommandInterrupted), \
                 patch("tools.git_executor.subprocess.Popen") as popen:
                GitExecutor().execute(["status"])
            popen.assert_not_called()
        finally:
            clear_interrupt()

    @requires_sleep
    def test_ctrl_c_kills_process_and_sets_flag(self):
        with patch.object(GitExecutor, "_kill", wraps=GitExecutor._kill) as kill, \
             patch("tools.git_executor.time.sleep", side_effect=KeyboardInterrupt):
            with pytest.raises(CommandInterrupted):
                GitExecutor(git_binary="sleep").execute(["5"])
        kill.assert_called_once()
        assert is_interrupted()

    @requires_sleep
    def test_timeout(self):
        with pytest.raises(ExecutionError, match="timed out"):
            GitExecutor(git_binary="sleep", timeout=0.2).execute(["5"])


@requires_git
class TestRealRepository:
    @pytest.fixture
    def repo(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
            monkeypatch.setenv(var, "Test User")
        for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
            monkeypatch.setenv(var, "test@example.com")
        path = tmp_path / "repo"
        path.mkdir()
        executor = GitExecutor(cwd=str(path))
        executor.execute(["init", "-q"])
        return path, executor

    def test_not_a_repository(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        plain = tmp_path / "plain"
        plain.mkdir()
        assert GitExecutor(cwd=str(plain)).is_repository() is False

    def test_status_stage_and_commit(self, repo):
        path, executor = repo
        assert executor.is_repository() is True

        (path / "notes.txt").write_text("one\ntwo\n")
        (path / "scratch.txt").write_text("x\n")
        executor.stage_files(["notes.txt"])

        staged, unstaged = executor.get_status()
        assert [(c.path, c.status, c.additions) for c in staged] == [("notes.txt", "added", 2)]
        assert [(c.path, c.status) for c in unstaged] == [("scratch.txt", "untracked")]
        assert "+one" in executor.get_diff(staged=True)

        executor.stage_all()
        executor.commit("docs: add notes")
        assert executor.get_status() == ([], [])
        assert executor.execute(["log", "--format=%s"]) == "docs: add notes"
