"""
Doctor command for gitchat CLI.

Diagnoses issues with the GitChat setup: git binary, configuration files,
API credentials and the token budget.
"""

import shutil
import subprocess
import sys

from agent.errors import ConfigurationError
from agent.llm_client import validate_credentials
from agent.model_metadata import get_model_context_length
from gitchat_cli.config import (
    get_api_key,
    get_config_path,
    get_env_path,
    load_config,
    validate_config,
)
from gitchat_cli.display import Colors, color


def check_ok(text: str, detail: str = ""):
    print(f"  {color('✓', Colors.GREEN)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))

def check_warn(text: str, detail: str = ""):
    print(f"  {color('⚠', Colors.YELLOW)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))

def check_fail(text: str, detail: str = ""):
    print(f"  {color('✗', Colors.RED)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))

def check_info(text: str):
    print(f"    {color('→', Colors.CYAN)} {text}")


def run_doctor(args):
    """Run diagnostic checks. Exits with status 1 when any check failed."""
    skip_network = getattr(args, 'offline', False)
    issues = []

    print()
    print(color("🩺 GitChat Doctor", Colors.CYAN, Colors.BOLD))

    # =========================================================================
    # Check: git
    # =========================================================================
    print()
    print(color("◆ Git", Colors.CYAN, Colors.BOLD))

    git_path = shutil.which("git")
    if git_path:
        try:
            version = subprocess.run(
                ["git", "--version"], capture_output=True, text=True, timeout=10
            ).stdout.strip()
        except (OSError, subprocess.SubprocessError):
            version = ""
        check_ok(version or "git", f"({git_path})")
    else:
        check_fail("git not found on PATH")
        issues.append("Install git")

    # =========================================================================
    # Check: configuration
    # =========================================================================
    print()
    print(color("◆ Configuration Files", Colors.CYAN, Colors.BOLD))

    config_path = get_config_path()
    if config_path.exists():
        check_ok(f"{config_path} exists")
    else:
        check_warn(f"{config_path} not found", "(using defaults)")

    config = load_config()
    try:
        validate_config(config)
        check_ok("Configuration values valid")
    except ConfigurationError as e:
        check_fail("Invalid configuration", f"({e})")
        issues.append(f"Fix {config_path}: {e}")

    context_length = get_model_context_length(config.get("model", ""))
    max_tokens = config.get("max_tokens")
    if isinstance(max_tokens, int) and max_tokens > context_length:
        check_warn(
            f"max_tokens {max_tokens} exceeds the {context_length} token context of {config.get('model')}"
        )

    # =========================================================================
    # Check: API key
    # =========================================================================
    print()
    print(color("◆ API Connectivity", Colors.CYAN, Colors.BOLD))

    api_key = get_api_key()
    if not api_key:
        check_fail("API key not set")
        check_info(f"Run 'gitchat config set GITCHAT_API_KEY <key>' or add it to {get_env_path()}")
        issues.append("Set GITCHAT_API_KEY")
    elif skip_network:
        check_ok("API key configured", "(not validated, --offline)")
    else:
        try:
            validate_credentials(api_key, config.get("model", ""), config.get("base_url"))
            check_ok("API key and model accepted", f"({config.get('model')})")
        except ConfigurationError as e:
            check_fail("Credential check failed", f"({e})")
            issues.append(str(e))

    # =========================================================================
    # Summary
    # =========================================================================
    print()
    if issues:
        print(color(f"Found {len(issues)} issue(s):", Colors.YELLOW, Colors.BOLD))
        for issue in issues:
            check_info(issue)
        print()
        sys.exit(1)

    print(color("All checks passed!", Colors.GREEN, Colors.BOLD))
    print()
