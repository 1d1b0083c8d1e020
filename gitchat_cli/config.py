"""
Configuration management for GitChat.

Config files are stored in ~/.gitchat/ for easy access:
- ~/.gitchat/config.yaml  - Model, token budget, temperatures, git timeout
- ~/.gitchat/.env         - API key

This module provides:
- gitchat config          - Show current configuration
- gitchat config set      - Set a specific value
- gitchat config path     - Print the config file path
"""

import copy
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import dotenv_values, set_key

from agent.errors import ConfigurationError
from gitchat_cli.display import Colors, color

logger = logging.getLogger(__name__)

API_KEY_ENV = "GITCHAT_API_KEY"
FALLBACK_API_KEY_ENV = "OPENAI_API_KEY"


# =============================================================================
# Config paths
# =============================================================================

def get_gitchat_home() -> Path:
    """Get the GitChat home directory (~/.gitchat)."""
    return Path(os.getenv("GITCHAT_HOME", Path.home() / ".gitchat"))

def get_config_path() -> Path:
    """Get the main config file path."""
    return get_gitchat_home() / "config.yaml"

def get_env_path() -> Path:
    """Get the .env file path (for the API key)."""
    return get_gitchat_home() / ".env"

def get_log_dir() -> Path:
    return get_gitchat_home() / "logs"

def ensure_gitchat_home():
    """Ensure ~/.gitchat directory structure exists."""
    get_log_dir().mkdir(parents=True, exist_ok=True)


# =============================================================================
# Config loading/saving
# =============================================================================

DEFAULT_CONFIG = {
    "model": "gpt-4o",
    "base_url": "https://api.openai.com/v1",
    "max_tokens": 4000,
    "chat_temperature": 0.2,
    "commit_temperature": 0.5,

    "git": {
        "timeout": 60,
    },
}


def load_config() -> Dict[str, Any]:
    """Load configuration from ~/.gitchat/config.yaml over the defaults."""
    config_path = get_config_path()

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path) as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to load config %s: %s", config_path, e)
            print(color(f"Warning: Failed to load config: {e}", Colors.YELLOW))
            return config

        # Deep merge
        for key, value in user_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key].update(value)
            else:
                config[key] = value

    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to ~/.gitchat/config.yaml."""
    ensure_gitchat_home()
    config_path = get_config_path()

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def load_env() -> Dict[str, str]:
    """Load variables from ~/.gitchat/.env without touching os.environ."""
    env_path = get_env_path()
    if not env_path.exists():
        return {}
    return {k: v for k, v in dotenv_values(env_path).items() if v is not None}


def save_env_value(key: str, value: str):
    """Save or update a value in ~/.gitchat/.env."""
    ensure_gitchat_home()
    env_path = get_env_path()
    env_path.touch(exist_ok=True)
    set_key(str(env_path), key, value, quote_mode="never")


def get_env_value(key: str) -> Optional[str]:
    """Get a value from the environment or ~/.gitchat/.env."""
    # Check environment first
    if key in os.environ:
        return os.environ[key]

    return load_env().get(key)


def get_api_key() -> Optional[str]:
    return get_env_value(API_KEY_ENV) or get_env_value(FALLBACK_API_KEY_ENV)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Reject settings the agents cannot work with.

    Raises:
        ConfigurationError: non-positive token budget, empty model or
            temperatures outside 0..2.
    """
    if not config.get("model"):
        raise ConfigurationError("model is not set")
    max_tokens = config.get("max_tokens")
    if not isinstance(max_tokens, int) or max_tokens <= 0:
        raise ConfigurationError(f"max_tokens must be a positive integer, got {max_tokens!r}")
    for key in ("chat_temperature", "commit_temperature"):
        value = config.get(key)
        if not isinstance(value, (int, float)) or not 0 <= value <= 2:
            raise ConfigurationError(f"{key} must be between 0 and 2, got {value!r}")


# =============================================================================
# Config display
# =============================================================================

def redact_key(key: Optional[str]) -> str:
    """Redact an API key for display."""
    if not key:
        return color("(not set)", Colors.DIM)
    if len(key) < 12:
        return "***"
    return key[:4] + "..." + key[-4:]


def show_config():
    """Display current configuration."""
    config = load_config()

    print()
    print(color("◆ Paths", Colors.CYAN, Colors.BOLD))
    print(f"  Config:       {get_config_path()}")
    print(f"  Secrets:      {get_env_path()}")
    print(f"  Logs:         {get_log_dir()}")

    print()
    print(color("◆ API", Colors.CYAN, Colors.BOLD))
    print(f"  API key:      {redact_key(get_api_key())}")
    print(f"  Base URL:     {config.get('base_url')}")

    print()
    print(color("◆ Model", Colors.CYAN, Colors.BOLD))
    print(f"  Model:        {config.get('model', 'not set')}")
    print(f"  Max tokens:   {config.get('max_tokens')}")
    print(f"  Chat temp:    {config.get('chat_temperature')}")
    print(f"  Commit temp:  {config.get('commit_temperature')}")

    print()
    print(color("◆ Git", Colors.CYAN, Colors.BOLD))
    print(f"  Timeout:      {config.get('git', {}).get('timeout', 60)}s")

    print()
    print(color("─" * 60, Colors.DIM))
    print(color("  gitchat config set KEY VALUE", Colors.DIM))
    print(color("  gitchat chat, then 'config'   # Run setup wizard", Colors.DIM))
    print()


def _coerce(value: str) -> Any:
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    if value.replace('.', '', 1).isdigit():
        return float(value)
    return value


def set_config_value(key: str, value: str):
    """Set a configuration value."""
    if key.upper() in (API_KEY_ENV, FALLBACK_API_KEY_ENV):
        save_env_value(key.upper(), value)
        print(f"✓ Set {key.upper()} in {get_env_path()}")
        return

    config = load_config()

    # Handle nested keys (e.g., "git.timeout")
    parts = key.split('.')
    current = config
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    coerced = _coerce(value)
    current[parts[-1]] = coerced
    save_config(config)
    print(f"✓ Set {key} = {coerced} in {get_config_path()}")


# =============================================================================
# Command handler
# =============================================================================

def config_command(args):
    """Handle config subcommands."""
    subcmd = getattr(args, 'config_command', None)

    if subcmd is None or subcmd == "show":
        show_config()

    elif subcmd == "set":
        key = getattr(args, 'key', None)
        value = getattr(args, 'value', None)
        if not key or not value:
            print("Usage: gitchat config set KEY VALUE")
            print()
            print("Examples:")
            print("  gitchat config set model gpt-4o-mini")
            print("  gitchat config set git.timeout 120")
            print("  gitchat config set GITCHAT_API_KEY sk-...")
            sys.exit(1)
        set_config_value(key, value)

    elif subcmd == "path":
        print(get_config_path())

    elif subcmd == "env-path":
        print(get_env_path())

    else:
        print(f"Unknown config command: {subcmd}")
        sys.exit(1)
