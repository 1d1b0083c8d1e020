"""Expansion of ``$(...)`` command substitutions in generated git arguments.

The model sometimes writes arguments such as ``$(git describe --tags --abbrev=0)..HEAD``.
No shell is involved when gitchat runs git, so each substitution is executed
through the executor callback and its trimmed output is spliced back into the
argument.
"""

import logging
from typing import Callable, List, Sequence, Tuple

from agent.errors import (
    CommandInterrupted,
    CommandValidationError,
    GitChatError,
    SubstitutionError,
    TagLookupError,
)

logger = logging.getLogger(__name__)

Execute = Callable[[List[str]], str]

_QUOTES = ("'", '"')

# Subcommands safe to run before the user has confirmed a modify batch.
READ_ONLY_SUBCOMMANDS = frozenset({
    "describe", "rev-parse", "rev-list", "log", "show", "merge-base",
    "symbolic-ref", "ls-files", "status", "diff", "blame", "shortlog", "cat-file",
})


def extract_substitutions(text: str) -> List[Tuple[str, str]]:
    """
    Find top-level ``$(...)`` expressions in ``text``.

    Quotes suppress boundary matching and parentheses nested inside a
    substitution do not close it early.

    Returns:
        (literal, inner) pairs, e.g. ``("$(git rev-parse HEAD)", "git rev-parse HEAD")``.
    """
    found = []
    depth = 0
    start = 0
    quote = ""
    for i, ch in enumerate(text):
        if ch in _QUOTES:
            if not quote:
                quote = ch
            elif ch == quote:
                quote = ""
        elif quote:
            continue
        elif ch == "$" and text[i + 1:i + 2] == "(":
            if depth == 0:
                start = i
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
            if depth == 0:
                literal = text[start:i + 1]
                inner = literal[2:-1].strip()
                if inner:
                    found.append((literal, inner))
    return found


def tokenize_command(command: str) -> List[str]:
    """Split on spaces outside quotes; a quoted run becomes one token without its quotes."""
    parts = []
    current = []
    quote = ""
    for ch in command:
        if ch in _QUOTES and (not quote or ch == quote):
            quote = "" if quote else ch
        elif ch == " " and not quote:
            if current:
                parts.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def _sanitize_describe(tokens: List[str]) -> List[str]:
    # Only the tag lookup flags survive; anything else the model appended is dropped.
    args = ["describe", "--tags"]
    if "--abbrev=0" in tokens:
        args.append("--abbrev=0")
    return args


def is_read_only(tokens: List[str]) -> bool:
    return bool(tokens) and tokens[0] in READ_ONLY_SUBCOMMANDS


def _run_substitution(inner: str, execute: Execute, read_only: bool) -> str:
    # Resolve deeper substitutions first so the inner command sees plain text.
    inner = resolve_argument(inner, execute, read_only)
    tokens = tokenize_command(inner)
    if tokens and tokens[0] == "git":
        tokens = tokens[1:]
    if not tokens:
        return ""
    if read_only and not is_read_only(tokens):
        raise SubstitutionError(inner, CommandValidationError("not a read-only command"))

    if tokens[0] == "describe" and "--tags" in tokens:
        describe_args = _sanitize_describe(tokens)
        try:
            return execute(describe_args).strip()
        except CommandInterrupted:
            raise
        except GitChatError as e:
            logger.debug("Tag lookup %s failed: %s", describe_args, e)
            raise TagLookupError() from e

    logger.debug("Processing substitution: %s", tokens)
    try:
        return execute(tokens).strip()
    except CommandInterrupted:
        raise
    except GitChatError as e:
        raise SubstitutionError(inner, e) from e


def resolve_argument(arg: str, execute: Execute, read_only: bool = False) -> str:
    """Resolve every substitution in a single argument."""
    if "$(" not in arg or ")" not in arg:
        return arg
    result = arg
    for literal, inner in extract_substitutions(arg):
        output = _run_substitution(inner, execute, read_only)
        result = result.replace(literal, output)
    return result


def resolve(args: Sequence[str], execute: Execute, read_only: bool = False) -> List[str]:
    """
    Return ``args`` with all command substitutions expanded.

    With ``read_only`` set, substitutions that are not read-only git commands
    are refused instead of executed.

    Raises:
        TagLookupError: a ``describe --tags`` lookup failed.
        SubstitutionError: any other substitution could not be executed.
    """
    return [resolve_argument(arg, execute, read_only) for arg in args]
