"""Git execution backend.

Runs the git binary directly (no shell) in the current working directory with
pagers and credential prompts disabled, so commands never block on a
terminal. Popen plus polling keeps the process interruptible: Ctrl+C kills
the whole process group and sets the interrupt flag, after which no further
git command starts until the flag is cleared.
"""

import logging
import os
import re
import signal
import subprocess
import threading
import time
from typing import Dict, List, Optional, Tuple

from agent.errors import CommandInterrupted, ExecutionError
from agent.types import FileChange
from tools.interrupt import is_interrupted, set_interrupt

logger = logging.getLogger(__name__)

GIT_ENV = {
    "GIT_PAGER": "cat",
    "PAGER": "cat",
    "GIT_TERMINAL_PROMPT": "0",
}

_STATUS_LINE = re.compile(r"^(?P<status>[ MADRCU?!]{2})\s+(?P<path>.+)$")

_STATUS_NAMES = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "?": "untracked",
    "!": "ignored",
    "U": "unmerged",
}


def clean_output(output: str) -> str:
    """Normalize git output: no CRs, no pager (END) marker, no trailing whitespace."""
    output = output.replace("\r\n", "\n").replace("\r", "")
    for marker in ("(END)\n", "(END)"):
        if output.endswith(marker):
            output = output[:-len(marker)]
    output = "\n".join(line.rstrip(" \t") for line in output.split("\n"))
    return output.rstrip("\n")


def readable_status(code: str) -> str:
    return _STATUS_NAMES.get(code, "unknown")


def parse_porcelain(status_output: str) -> Tuple[List[FileChange], List[FileChange]]:
    """Split ``git status --porcelain`` output into (staged, unstaged) changes."""
    staged: List[FileChange] = []
    unstaged: List[FileChange] = []
    for raw_line in status_output.splitlines():
        if len(raw_line) < 3:
            continue
        match = _STATUS_LINE.match(raw_line)
        if not match:
            continue
        code = match.group("status")
        path = match.group("path")
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        index_status, work_status = code[0], code[1]

        if index_status == "?" and work_status == "?":
            unstaged.append(FileChange(path=path, status="untracked"))
            continue
        if index_status not in (" ", "?"):
            staged.append(FileChange(path=path, status=readable_status(index_status)))
        if work_status not in (" ", "?"):
            unstaged.append(FileChange(path=path, status=readable_status(work_status)))
    return staged, unstaged


def parse_numstat(numstat_output: str) -> Dict[str, Tuple[int, int]]:
    """Map path -> (additions, deletions) from ``git diff --numstat``. Binary files count as 0."""
    stats = {}
    for line in numstat_output.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        additions = int(parts[0]) if parts[0].isdigit() else 0
        deletions = int(parts[1]) if parts[1].isdigit() else 0
        stats[" ".join(parts[2:])] = (additions, deletions)
    return stats


class GitExecutor:
    """Executor collaborator backed by the local git binary."""

    def __init__(self, timeout: int = 60, git_binary: str = "git", cwd: Optional[str] = None):
        self.timeout = timeout
        self.git_binary = git_binary
        self.cwd = cwd

    def execute(self, args: List[str], timeout: Optional[int] = None) -> str:
        """
        Run ``git <args>`` and return its cleaned combined output.

        Raises:
            ExecutionError: git exited non-zero, timed out or could not start.
            CommandInterrupted: Ctrl+C while it ran, or the interrupt flag
                was already set.
        """
        args = list(args)
        if is_interrupted():
            raise CommandInterrupted(args=args)
        effective_timeout = timeout or self.timeout
        logger.debug("Executing: git %s", " ".join(args))

        try:
            proc = subprocess.Popen(
                [self.git_binary, *args],
                cwd=self.cwd or os.getcwd(),
                env=os.environ | GIT_ENV,
                text=True,
                encoding="utf-8",
                errors="replace",
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ExecutionError(f"git command failed to start: {e}", args=args) from e

        chunks: List[str] = []

        def _drain_stdout():
            try:
                for line in proc.stdout:
                    chunks.append(line)
            except ValueError:
                pass
            finally:
                proc.stdout.close()

        reader = threading.Thread(target=_drain_stdout, daemon=True)
        reader.start()
        deadline = time.monotonic() + effective_timeout

        try:
            while proc.poll() is None:
                if time.monotonic() > deadline:
                    self._kill(proc)
                    reader.join(timeout=2)
                    raise ExecutionError(
                        f"git command timed out after {effective_timeout}s", args=args, output="".join(chunks)
                    )
                time.sleep(0.05)
        except KeyboardInterrupt:
            # The child runs in its own session and never sees the SIGINT.
            set_interrupt()
            self._kill(proc)
            reader.join(timeout=2)
            raise CommandInterrupted(args=args, output="".join(chunks)) from None

        reader.join(timeout=5)
        output = "".join(chunks)
        if proc.returncode != 0:
            raise ExecutionError(
                f"git command failed (exit {proc.returncode}): {output.strip()}",
                args=args,
                output=output,
            )
        return clean_output(output)

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        try:
            os.killpg(os.getpgid(proc.pid), signal.SIGTERM)
        except (ProcessLookupError, PermissionError, AttributeError):
            proc.kill()

    def is_repository(self) -> bool:
        try:
            self.execute(["rev-parse", "--git-dir"])
        except CommandInterrupted:
            raise
        except ExecutionError:
            return False
        return True

    def current_branch(self) -> str:
        return self.execute(["branch", "--show-current"])

    def get_status(self) -> Tuple[List[FileChange], List[FileChange]]:
        staged, unstaged = parse_porcelain(self.execute(["status", "--porcelain"]))

        if staged:
            try:
                stats = parse_numstat(self.execute(["diff", "--cached", "--numstat"]))
            except CommandInterrupted:
                raise
            except ExecutionError as e:
                logger.debug("Could not read staged diff stats: %s", e)
                stats = {}
            for change in staged:
                if change.path in stats:
                    change.additions, change.deletions = stats[change.path]

        return staged, unstaged

    def stage_all(self) -> None:
        self.execute(["add", "-A"])

    def stage_files(self, files: List[str]) -> None:
        self.execute(["add", *files])

    def commit(self, message: str) -> None:
        self.execute(["commit", "-m", message])

    def get_diff(self, staged: bool = False) -> str:
        args = ["diff"]
        if staged:
            args.append("--cached")
        return self.execute(args)
