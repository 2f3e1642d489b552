"""Read-only git invocation for review inputs."""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

# The pipeline only ever inspects a repository
READ_ONLY_COMMANDS = frozenset({"diff", "log", "rev-parse", "show", "status"})


@dataclass
class GitResult:
    """Outcome of one git invocation."""
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    args: tuple[str, ...] = field(default=())

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def lines(self) -> list[str]:
        """Non-blank stdout lines, stripped."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    env["GIT_PAGER"] = "cat"
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git(
    args: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
) -> GitResult:
    """
    Run an inspection-only git command in cwd.

    A timeout or a missing git binary is reported through the result
    rather than raised.

    Args:
        args: Git arguments, first one the subcommand (e.g. ["diff", "--staged"])
        cwd: Repository or worktree to inspect
        timeout: Seconds before the command is abandoned

    Raises:
        ValueError: args start with a command that could modify the repository
    """
    if not args or args[0] not in READ_ONLY_COMMANDS:
        raise ValueError(f"Refusing to run git {' '.join(args) or '(no command)'}: not a read-only command")

    cmd = ["git", "-C", str(cwd)] + args
    logger.debug(f"[GIT] {' '.join(cmd)} (timeout {timeout}s)")
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=_git_env(),
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"[GIT] {args[0]} timed out after {timeout}s in {cwd}")
        return GitResult(-1, "", f"git {args[0]} timed out after {timeout}s", timed_out=True, args=tuple(args))
    except FileNotFoundError:
        return GitResult(127, "", "git executable not found on PATH", args=tuple(args))

    return GitResult(proc.returncode, proc.stdout, proc.stderr, args=tuple(args))
