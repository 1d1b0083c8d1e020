"""Tests for gitchat_cli/main.py -- argument parsing and logging setup."""

import logging
from unittest.mock import patch

import pytest

from gitchat_cli import __version__
from gitchat_cli.config import get_config_path, get_log_dir
from gitchat_cli.main import build_parser, main, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestParser:
    def test_chat_options(self):
        args = build_parser().parse_args(["chat", "-q", "what changed?", "-m", "gpt-4o-mini"])
        assert args.query == "what changed?"
        assert args.model == "gpt-4o-mini"

    def test_config_set(self):
        args = build_parser().parse_args(["config", "set", "git.timeout", "30"])
        assert (args.config_command, args.key, args.value) == ("set", "git.timeout", "30")


class TestCommands:
    def test_version(self, capsys):
        main(["version"])
        assert f"GitChat v{__version__}" in capsys.readouterr().out

    def test_config_path(self, capsys):
        main(["config", "path"])
        assert capsys.readouterr().out.strip() == str(get_config_path())

    def test_default_command_is_chat(self):
        with patch("gitchat_cli.main.cmd_chat") as cmd_chat:
            main([])
        args = cmd_chat.call_args[0][0]
        assert args.query is None and args.model is None

    def test_chat_without_key_and_failed_wizard_exits(self):
        from agent.errors import ConfigurationError

        with patch("gitchat_cli.setup.run_setup_wizard", side_effect=ConfigurationError("API key is required")):
            with pytest.raises(SystemExit) as exc_info:
                main(["chat"])
        assert exc_info.value.code == 1


class TestLogging:
    def test_log_file_handler(self):
        setup_logging(verbose=False)
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert (get_log_dir() / "gitchat.log").exists()

    def test_verbose_enables_debug_and_quiets_http(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING
