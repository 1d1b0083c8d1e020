#!/usr/bin/env python3
"""
Tools Package

Process-level collaborators for the gitchat agents:

- git_executor: runs git subprocesses and parses status/diff output
- interrupt: process-wide cancellation flag checked by long-running calls
"""

from .git_executor import GitExecutor, clean_output, parse_numstat, parse_porcelain
from .interrupt import clear_interrupt, is_interrupted, set_interrupt

__all__ = [
    'GitExecutor',
    'clean_output',
    'parse_numstat',
    'parse_porcelain',
    'clear_interrupt',
    'is_interrupted',
    'set_interrupt',
]
