"""
GitChat CLI - chat with your git repository in natural language.

Provides subcommands for:
- gitchat chat          - Interactive REPL (default)
- gitchat config        - Show or change configuration
- gitchat doctor        - Check git, configuration and credentials
- gitchat version       - Print the version
"""

__version__ = "0.1.0"
