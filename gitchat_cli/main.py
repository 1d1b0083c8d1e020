#!/usr/bin/env python3
"""
GitChat CLI - Main entry point.

Usage:
    gitchat                     # Interactive chat (default)
    gitchat chat                # Interactive chat
    gitchat chat -q "..."       # Single query, then exit
    gitchat config              # Show configuration
    gitchat config set KEY VAL  # Set a config value
    gitchat config path         # Print config file path
    gitchat doctor              # Check git, configuration and credentials
    gitchat version             # Show version
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

from gitchat_cli import __version__
from gitchat_cli.config import ensure_gitchat_home, get_env_path, get_log_dir

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False):
    """Send logs to ~/.gitchat/logs/gitchat.log; the terminal belongs to the REPL."""
    ensure_gitchat_home()
    handler = RotatingFileHandler(
        get_log_dir() / "gitchat.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.addHandler(handler)

    # Keep third-party libraries at WARNING level to reduce noise
    for name in ("openai", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    if verbose:
        logger.info("Verbose logging enabled")


def load_environment():
    """Load ~/.gitchat/.env without overriding variables already set."""
    env_path = get_env_path()
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def cmd_chat(args):
    """Run the interactive REPL, or answer a single query with -q."""
    from agent.errors import ConfigurationError, GitChatError
    from gitchat_cli.config import get_api_key, load_config
    from gitchat_cli.repl import REPL, Application
    from gitchat_cli.setup import run_setup_wizard

    config = load_config()
    if getattr(args, "model", None):
        config["model"] = args.model

    try:
        if not get_api_key():
            print("No API key configured, starting the configuration wizard.")
            config = run_setup_wizard(config)
        app = Application(config)
    except ConfigurationError as e:
        logger.error("Startup failed: %s", e)
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        print()
        sys.exit(1)

    if getattr(args, "query", None):
        try:
            app.chat_agent.chat(args.query)
        except GitChatError as e:
            app.display.show_error(str(e))
            sys.exit(1)
        return
    REPL(app).run()


def cmd_doctor(args):
    """Check configuration and dependencies."""
    from gitchat_cli.doctor import run_doctor
    run_doctor(args)


def cmd_config(args):
    """Configuration management."""
    from gitchat_cli.config import config_command
    config_command(args)


def cmd_version(args):
    """Show version."""
    print(f"GitChat v{__version__}")
    print(f"Python: {sys.version.split()[0]}")

    try:
        import openai
        print(f"OpenAI SDK: {openai.__version__}")
    except ImportError:
        print("OpenAI SDK: Not installed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitchat",
        description="GitChat - talk to your git repository in natural language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    gitchat                            Start interactive chat
    gitchat chat -q "who changed README last?"
    gitchat config                     View configuration
    gitchat config set model gpt-4o    Set a config value
    gitchat doctor                     Diagnose setup problems

For more help on a command:
    gitchat <command> --help
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="store_true",
        help="Show version and exit"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging to ~/.gitchat/logs/gitchat.log"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # =========================================================================
    # chat command
    # =========================================================================
    chat_parser = subparsers.add_parser(
        "chat",
        help="Interactive chat with your repository",
        description="Start an interactive GitChat session"
    )
    chat_parser.add_argument(
        "-q", "--query",
        help="Single query (non-interactive mode)"
    )
    chat_parser.add_argument(
        "-m", "--model",
        help="Model to use for this session (e.g., gpt-4o-mini)"
    )
    chat_parser.set_defaults(func=cmd_chat)

    # =========================================================================
    # doctor command
    # =========================================================================
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Check configuration and dependencies",
        description="Diagnose issues with the GitChat setup"
    )
    doctor_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the API credential check"
    )
    doctor_parser.set_defaults(func=cmd_doctor)

    # =========================================================================
    # config command
    # =========================================================================
    config_parser = subparsers.add_parser(
        "config",
        help="View and edit configuration",
        description="Manage GitChat configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser("show", help="Show current configuration")
    config_set = config_subparsers.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", nargs="?", help="Configuration key (e.g., model, git.timeout)")
    config_set.add_argument("value", nargs="?", help="Value to set")
    config_subparsers.add_parser("path", help="Print config file path")
    config_subparsers.add_parser("env-path", help="Print .env file path")
    config_parser.set_defaults(func=cmd_config)

    # =========================================================================
    # version command
    # =========================================================================
    version_parser = subparsers.add_parser(
        "version",
        help="Show version information"
    )
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    """Main entry point for gitchat CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle --version flag
    if args.version:
        cmd_version(args)
        return

    load_environment()
    setup_logging(args.verbose)

    # Default to chat if no command specified
    if args.command is None:
        args.query = None
        args.model = None
        cmd_chat(args)
        return

    args.func(args)


if __name__ == "__main__":
    main()
