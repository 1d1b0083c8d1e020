"""
Terminal rendering for gitchat.

Display is the agents' only output channel: status lines, command echoes,
titled sections, numbered lists and a spinner shown while waiting on the
model. Spinner start/stop calls are serialized by a lock, so stopping an
already stopped spinner (or starting a running one) is a no-op.
"""

import itertools
import sys
import threading
from typing import Iterable, Optional, Tuple


# ANSI colors
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"


def color(text: str, *codes) -> str:
    if not sys.stdout.isatty():
        return text
    return "".join(codes) + text + Colors.RESET


DEFAULT_DIVIDER = "------------------------"

WELCOME_COMMANDS = [
    ("Natural Language", "Use natural language to interact with Git"),
    ("commit", "Generate commit message and commit changes"),
    ("config", "Run configuration wizard"),
    ("cd <path>", "Change to another repository"),
    ("version", "Show version information"),
    ("exit", "Exit the program"),
]


class Spinner:
    """Single-line spinner drawn by a daemon thread."""

    FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

    def __init__(self, stream=None, interval: float = 0.1):
        self.stream = stream or sys.stdout
        self.interval = interval
        self.message = ""
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _animate(self):
        for frame in itertools.cycle(self.FRAMES):
            if self._stop.is_set():
                break
            self.stream.write(f"\r{color(frame, Colors.CYAN)} {self.message}")
            self.stream.flush()
            self._stop.wait(self.interval)
        self.stream.write("\r" + " " * (len(self.message) + 4) + "\r")
        self.stream.flush()

    def start(self, message: str):
        self.message = message
        self._stop.clear()
        self._thread = threading.Thread(target=self._animate, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        self._thread = None


class Display:
    def __init__(self, version: str = "", stream=None, spinner: Optional[Spinner] = None):
        self.version = version
        self.stream = stream or sys.stdout
        self.spinner = spinner or Spinner(self.stream)
        self._lock = threading.Lock()

    def _print(self, text: str = ""):
        print(text, file=self.stream)

    # =========================================================================
    # Spinner
    # =========================================================================

    def start_spinner(self, message: str):
        with self._lock:
            self.spinner.message = message
            if not self.spinner.active:
                self.spinner.start(message)

    def stop_spinner(self):
        with self._lock:
            if self.spinner.active:
                self.spinner.stop()

    # =========================================================================
    # Status lines
    # =========================================================================

    def show_success(self, message: str):
        self.stop_spinner()
        self._print(color(f"✅ {message}", Colors.GREEN, Colors.BOLD))

    def show_error(self, message: str):
        self.stop_spinner()
        self._print(color(f"❌ {message}", Colors.RED, Colors.BOLD))

    def show_info(self, message: str):
        self.stop_spinner()
        self._print(color(f"ℹ️  {message}", Colors.CYAN))

    def show_warning(self, message: str):
        self.stop_spinner()
        self._print(color(f"⚠️  {message}", Colors.YELLOW, Colors.BOLD))

    def show_command(self, command: str):
        self.stop_spinner()
        self._print(color(f"🔄 Executing: {command}", Colors.BLUE))

    def show_output(self, output: str):
        self._print(output)

    # =========================================================================
    # Blocks
    # =========================================================================

    def show_section(self, title: str, content: str = "", opts: Optional[dict] = None):
        opts = opts or {}
        divider = opts.get("divider") or DEFAULT_DIVIDER
        if opts.get("icon"):
            title = f"{opts['icon']} {title}"
        self._print()
        self._print(color(title, Colors.MAGENTA, Colors.BOLD))
        self._print(divider)
        if content:
            self._print(content)

    def show_numbered_list(self, items: Iterable[Tuple[str, str]]):
        for i, (item, description) in enumerate(items, 1):
            self._print(color(f"{i}. ", Colors.BOLD) + item)
            if description:
                self._print(color(f"   {description}", Colors.DIM))

    def show_prompt(self, pwd: str, branch: str) -> str:
        """Return the REPL prompt string for ``input()``."""
        location = f"📂 {pwd}"
        if branch:
            location += f" [{branch}]"
        return f"\n{color(location, Colors.YELLOW, Colors.BOLD)}\n> "

    def show_welcome(self):
        self._print()
        self._print(color(f"🤖 Welcome to GitChat v{self.version}", Colors.MAGENTA, Colors.BOLD))
        self._print(color(DEFAULT_DIVIDER, Colors.MAGENTA))
        self._print()
        for cmd, description in WELCOME_COMMANDS:
            self._print(f"  {color(f'{cmd:<18}', Colors.CYAN)} {description}")
        self._print()
