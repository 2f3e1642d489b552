"""
dp diff - Print the code diff the code-review stage works from.
"""

from devpipe.git.diff import GitDiffError, get_diff_names, get_review_diff
from devpipe.lib.config import PipelineConfig


def _empty_message(scope: str, base_branch: str) -> str:
    if scope == "branch":
        return f"No changes on branch (identical to {base_branch})"
    if scope == "staged":
        return "No staged changes"
    return "No unstaged changes"


def cmd_diff(args, config: PipelineConfig) -> int:
    """Show working, staged, or branch diff (or only the changed paths)."""
    if args.staged:
        scope = "staged"
    elif args.branch:
        scope = "branch"
    else:
        scope = "working"

    try:
        if getattr(args, "name_only", False):
            names = get_diff_names(
                config.root,
                scope,
                base_branch=config.base_branch,
                timeout=config.git_timeout,
            )
            diff = "".join(f"{name}\n" for name in names)
        else:
            diff = get_review_diff(
                config.root,
                scope,
                base_branch=config.base_branch,
                timeout=config.git_timeout,
            )
    except GitDiffError as e:
        print(f"ERROR: {e}")
        return 1

    if diff.strip():
        print(diff, end="" if diff.endswith("\n") else "\n")
    else:
        print(_empty_message(scope, config.base_branch))
    return 0
