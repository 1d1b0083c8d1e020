"""
Interactive REPL for gitchat.

Application wires the collaborators (git executor, LLM client, display) into
the chat and commit agents; REPL reads lines and routes them. Errors raised
by a turn are rendered and the loop keeps going.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

from agent.chat_agent import ChatAgent
from agent.commit_agent import CommitAgent
from agent.context_manager import ConversationContextManager
from agent.core import AgentCore
from agent.errors import ConfigurationError, GitChatError
from agent.llm_client import LLMClient
from agent.model_metadata import TokenCounter
from agent.prompt_builder import PromptSet
from gitchat_cli import __version__
from gitchat_cli.config import get_api_key, load_config, validate_config
from gitchat_cli.display import Display
from gitchat_cli.setup import run_setup_wizard
from tools.git_executor import GitExecutor
from tools.interrupt import clear_interrupt

logger = logging.getLogger(__name__)

NO_BRANCH = "no git"


class Application:
    """Holds the agents for one session and rebuilds them on reconfiguration."""

    def __init__(
        self,
        config: Dict[str, Any],
        api_key: Optional[str] = None,
        display: Optional[Display] = None,
        executor: Optional[GitExecutor] = None,
        input_fn: Callable[[str], str] = input,
    ):
        self.config = config
        self.display = display or Display(__version__)
        self.executor = executor or GitExecutor(timeout=config.get("git", {}).get("timeout", 60))
        self.input_fn = input_fn
        self.prompts = PromptSet()
        self.chat_agent: Optional[ChatAgent] = None
        self.commit_agent: Optional[CommitAgent] = None
        self.load_agents(api_key or get_api_key())

    def load_agents(self, api_key: Optional[str]):
        """
        Build the LLM client and both agents from ``self.config``.

        Raises:
            ConfigurationError: invalid configuration or missing API key.
        """
        validate_config(self.config)
        if not api_key:
            raise ConfigurationError("API key is not set, run the 'config' command or set GITCHAT_API_KEY")

        llm = LLMClient(
            api_key=api_key,
            model=self.config["model"],
            base_url=self.config.get("base_url"),
        )
        core = AgentCore(
            executor=self.executor,
            llm=llm,
            display=self.display,
            prompts=self.prompts,
            input_fn=self.input_fn,
        )
        context = ConversationContextManager(
            self.prompts.render_system(),
            TokenCounter(self.config["model"]),
            self.config["max_tokens"],
        )
        self.chat_agent = ChatAgent(core, context, temperature=self.config["chat_temperature"])
        self.commit_agent = CommitAgent(core, temperature=self.config["commit_temperature"])

    def reload(self):
        self.config = load_config()
        self.load_agents(get_api_key())


class REPL:
    def __init__(self, app, input_fn: Callable[[str], str] = input, wizard=run_setup_wizard):
        self.app = app
        self.input_fn = input_fn
        self.wizard = wizard

    @property
    def display(self):
        return self.app.display

    def prompt(self) -> str:
        branch = NO_BRANCH
        if self.app.executor.is_repository():
            try:
                branch = self.app.executor.current_branch()
            except GitChatError as e:
                logger.debug("Could not read current branch: %s", e)
        return self.display.show_prompt(os.getcwd(), branch)

    def run(self):
        """Read and handle lines until ``exit`` or end of input."""
        self.display.show_welcome()
        while True:
            try:
                line = self.input_fn(self.prompt())
            except EOFError:
                print()
                return
            except KeyboardInterrupt:
                print()
                continue

            if not self.handle_line(line):
                return

    def handle_line(self, line: str) -> bool:
        """Handle one input line, rendering any error. Returns False on ``exit``."""
        line = line.strip()
        if line == "exit":
            return False
        try:
            self.dispatch(line)
        except GitChatError as e:
            logger.warning("%s: %s", e.error_type, e)
            self.display.show_error(str(e))
        except KeyboardInterrupt:
            self.display.show_warning("Interrupted")
        except Exception as e:
            logger.exception("Unexpected error handling %r", line)
            self.display.show_error(f"Unexpected error: {e}")
        finally:
            clear_interrupt()
        return True

    def dispatch(self, line: str):
        if not line:
            return
        if line == "version":
            self.display.show_info(f"GitChat v{__version__}")
        elif line == "config":
            self.configure()
        elif line == "commit":
            self.app.commit_agent.handle_commit()
        elif line == "cd" or line.startswith("cd "):
            self.change_directory(line[2:].strip())
        else:
            self.app.chat_agent.chat(line)

    def configure(self):
        self.wizard(self.app.config)
        self.app.reload()
        self.display.show_success("Configuration updated and reloaded successfully")

    def change_directory(self, path: str):
        target = os.path.expanduser(path or "~")
        try:
            os.chdir(target)
        except OSError as e:
            raise GitChatError(f"failed to change directory: {e}") from e
        self.display.show_info(f"Changed to: {os.getcwd()}")
        self.app.chat_agent.reset_chat()
