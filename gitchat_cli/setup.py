"""
Interactive setup wizard for GitChat.

Guides users through:
1. API key
2. Model
3. API base URL
4. Token budget

Values are validated against the provider's model list before anything is
written to ~/.gitchat/.
"""

import getpass
import logging
import os
from typing import Any, Callable, Dict, Optional

from agent.errors import ConfigurationError
from agent.llm_client import validate_credentials
from gitchat_cli.config import (
    API_KEY_ENV,
    get_api_key,
    get_config_path,
    load_config,
    redact_key,
    save_config,
    save_env_value,
)
from gitchat_cli.display import Colors, color

logger = logging.getLogger(__name__)


def print_header(title: str):
    """Print a section header."""
    print()
    print(color(title, Colors.CYAN, Colors.BOLD))
    print("------------------------")

def print_success(text: str):
    print(color(f"✓ {text}", Colors.GREEN))


def prompt(label: str, current: str = "", password: bool = False) -> str:
    """Ask for a value; an empty answer keeps ``current``."""
    if current:
        question = f"Enter {label} (current: {current}, press Enter to keep current): "
    else:
        question = f"Enter {label}: "

    if password:
        value = getpass.getpass(color(question, Colors.YELLOW))
    else:
        value = input(color(question, Colors.YELLOW))
    return value.strip()


def run_setup_wizard(
    config: Optional[Dict[str, Any]] = None,
    validate: Callable[[str, str, Optional[str]], None] = validate_credentials,
) -> Dict[str, Any]:
    """
    Prompt for API key, model, base URL and max tokens, validate, then save.

    Nothing is saved when validation fails.

    Returns:
        The saved configuration.

    Raises:
        ConfigurationError: missing key, non-numeric max tokens, or rejected
            credentials/model.
    """
    config = dict(config or load_config())
    current_key = get_api_key() or ""

    print_header("🔧 LLM Configuration")

    api_key = prompt("LLM API Key", redact_key(current_key) if current_key else "", password=True) or current_key
    if not api_key:
        raise ConfigurationError("LLM API Key: API key is required")

    config["model"] = prompt("LLM Model", config.get("model", "")) or config.get("model")
    config["base_url"] = prompt("LLM API Base URL", config.get("base_url", "")) or config.get("base_url")

    max_tokens = prompt("Max Tokens", str(config.get("max_tokens", "")))
    if max_tokens:
        try:
            config["max_tokens"] = int(max_tokens)
        except ValueError:
            raise ConfigurationError("Max Tokens: invalid number format") from None
        if config["max_tokens"] <= 0:
            raise ConfigurationError("Max Tokens: must be positive")

    validate(api_key, config["model"], config.get("base_url"))

    save_config(config)
    if api_key != current_key:
        save_env_value(API_KEY_ENV, api_key)
        os.environ[API_KEY_ENV] = api_key
    logger.info("Configuration saved to %s", get_config_path())

    print()
    print(color("📝 Configuration Summary:", Colors.CYAN, Colors.BOLD))
    print(f"API Key: {redact_key(api_key)}")
    print(f"Model: {config['model']}")
    print(f"API Base URL: {config.get('base_url')}")
    print(f"Max Tokens: {config['max_tokens']}")
    print()
    print_success(f"Configuration saved to: {get_config_path()}")
    return config
