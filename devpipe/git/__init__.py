"""Read-only git operations used as review inputs.

Return type conventions:
- run_git returns GitResult: caller must check .success before using output.
- get_review_diff returns the diff text and raises GitDiffError on failure.
- get_diff_names returns changed paths and also raises GitDiffError.
"""

from devpipe.git.runner import (
    GitResult,
    run_git,
)
from devpipe.git.diff import (
    DIFF_SCOPES,
    GitDiffError,
    diff_args,
    get_review_diff,
    get_diff_names,
)

__all__ = [
    # runner
    "GitResult",
    "run_git",
    # diff
    "DIFF_SCOPES",
    "GitDiffError",
    "diff_args",
    "get_review_diff",
    "get_diff_names",
]
