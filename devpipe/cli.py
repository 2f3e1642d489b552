#!/usr/bin/env python3
"""devpipe CLI entrypoint."""

import argparse
import logging
import sys
from pathlib import Path

from devpipe.lib.config import load_config
from devpipe.lib.validate import ValidationError
from devpipe.pipeline.registry import STAGE_ORDER
from devpipe.commands import diff as cmd_diff_module
from devpipe.commands import new as cmd_new_module
from devpipe.commands import run as cmd_run_module
from devpipe.commands import show as cmd_show_module
from devpipe.commands import stages as cmd_stages_module
from devpipe.commands import status as cmd_status_module

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging once for the CLI process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='dp', description='Development pipeline document orchestrator')
    parser.add_argument('--root', '-r', default='.', help='Project root (default: current directory)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # dp stages
    p_stages = subparsers.add_parser('stages', help='List pipeline stages')
    p_stages.set_defaults(func=cmd_stages_module.cmd_stages)

    # dp new
    p_new = subparsers.add_parser('new', help='Propose the id for a new feature')
    p_new.add_argument('title', help='Feature title, e.g. "User auth"')
    p_new.add_argument('--number', '-n', type=int, help='Use this sequence number instead of the next free one')
    p_new.set_defaults(func=cmd_new_module.cmd_new)

    # dp run
    p_run = subparsers.add_parser('run', help='Run one stage for a feature')
    p_run.add_argument('stage', help=f"Stage name ({', '.join(STAGE_ORDER)})")
    p_run.add_argument('feature', help='Feature id, e.g. 1-user-auth')
    p_run.add_argument('--content-file', '-c', help="Document body file ('-' or omitted: stdin)")
    p_run.add_argument('--questions', '-q', help='Interview questions JSON file')
    p_run.add_argument('--answers', '-a', help='Scripted interview answers JSON file')
    p_run.set_defaults(func=cmd_run_module.cmd_run)

    # dp status
    p_status = subparsers.add_parser('status', help='Show stage artifacts for a feature (or all)')
    p_status.add_argument('feature', nargs='?', help='Feature id (omit for all features)')
    p_status.set_defaults(func=cmd_status_module.cmd_status)

    # dp show
    p_show = subparsers.add_parser('show', help='Print a stage artifact')
    p_show.add_argument('feature', help='Feature id')
    p_show.add_argument('stage', help='Stage name')
    p_show.add_argument('--path', action='store_true', help='Print the artifact path instead of its content')
    p_show.set_defaults(func=cmd_show_module.cmd_show)

    # dp diff
    p_diff = subparsers.add_parser('diff', help='Print the diff code-review works from')
    scope = p_diff.add_mutually_exclusive_group()
    scope.add_argument('--staged', action='store_true', help='Staged changes')
    scope.add_argument('--branch', action='store_true', help='Changes since the base branch')
    p_diff.add_argument('--name-only', action='store_true', help='Only list changed file paths')
    p_diff.set_defaults(func=cmd_diff_module.cmd_diff)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    root = Path(args.root).resolve()
    try:
        config = load_config(root)
    except ValidationError as e:
        print(f"ERROR: Invalid configuration in {root}: {e}")
        if len(e.problems) > 1:
            for line in e.details():
                print(f"  {line}")
        return 2
    except ValueError as e:
        print(f"ERROR: Invalid configuration in {root}: {e}")
        return 2

    configure_logging("DEBUG" if args.verbose else config.log_level)
    logger.debug(f"Using docs dir {config.docs_dir}")

    return args.func(args, config)


if __name__ == '__main__':
    sys.exit(main())
