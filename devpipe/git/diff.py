"""Git diff inputs for the code-review stage.

The review stage reads one of three diffs, chosen by scope:
- working: unstaged changes (git diff)
- staged:  staged changes (git diff --staged)
- branch:  everything on the branch since it left the base (git diff <base>...HEAD)
"""

from pathlib import Path

from devpipe.git.runner import DEFAULT_TIMEOUT, GitResult, run_git

DIFF_SCOPES = ("working", "staged", "branch")


class GitDiffError(Exception):
    """git diff failed or timed out."""

    def __init__(self, scope: str, result: GitResult):
        self.scope = scope
        self.result = result
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        super().__init__(f"git diff ({scope}) failed: {detail}")


def diff_args(scope: str, base_branch: str = "main") -> list[str]:
    """Build git arguments for a review diff scope."""
    if scope == "working":
        return ["diff"]
    if scope == "staged":
        return ["diff", "--staged"]
    if scope == "branch":
        return ["diff", f"{base_branch}...HEAD"]
    raise ValueError(f"Unknown diff scope '{scope}'. Valid scopes: {', '.join(DIFF_SCOPES)}")


def get_review_diff(
    worktree: Path,
    scope: str = "working",
    base_branch: str = "main",
    timeout: int = DEFAULT_TIMEOUT,
) -> str:
    """Return diff text for the review stage. Empty string means no changes.

    Raises:
        ValueError: unknown scope
        GitDiffError: git failed or timed out
    """
    result = run_git(diff_args(scope, base_branch), worktree, timeout=timeout)
    if not result.success:
        raise GitDiffError(scope, result)
    return result.stdout


def get_diff_names(
    worktree: Path,
    scope: str = "working",
    base_branch: str = "main",
    timeout: int = DEFAULT_TIMEOUT,
) -> list[str]:
    """Changed file paths for a review scope.

    Raises:
        GitDiffError: git failed or timed out
    """
    args = diff_args(scope, base_branch)
    result = run_git(args[:1] + ["--name-only"] + args[1:], worktree, timeout=timeout)
    if not result.success:
        raise GitDiffError(scope, result)
    return result.lines()
