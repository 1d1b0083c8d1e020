"""Process-wide interrupt signal.

Set when Ctrl+C lands while git or the model is running. From then on the
git executor and the LLM client refuse to start new work, so the rest of the
turn unwinds instead of carrying on. The REPL clears it once the turn ends.
"""

import threading

_interrupt_event = threading.Event()


def set_interrupt() -> None:
    _interrupt_event.set()


def clear_interrupt() -> None:
    _interrupt_event.clear()


def is_interrupted() -> bool:
    return _interrupt_event.is_set()
