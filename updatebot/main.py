#!/usr/bin/env python3
"""
updatebot - Main Entry Point

Creates a Pull Request on each downstream repository configured in
.jx/updatebot.yaml, applying the configured changes for a new version.

Usage:
    updatebot pr --version 1.2.3
    updatebot init [path]
"""

import argparse
import logging
import sys
from typing import Optional

from .config import PullRequestOptions
from .engine import PullRequestReconciler, RuleEngine, URLResolver
from .errors import UpdatebotError
from .models import RunState
from .tools import GitHubTool, GitTool
from .utils import setup_logging, get_logger


def run_pull_requests(options: PullRequestOptions, git: Optional[GitTool] = None) -> RunState:
    """
    Validate options and create a Pull Request on each downstream repository.

    Args:
        options: Options from the command line
        git: GitTool to use (defaults to the git binary)

    Returns:
        RunState with the created Pull Requests
    """
    git = git or GitTool()
    options.validate(git)

    github = GitHubTool(token=options.git_token, server_url=options.git_server)
    reconciler = PullRequestReconciler(
        github,
        git,
        username=options.git_username,
        token=options.git_token,
        merge_method=options.merge_method,
    )
    engine = RuleEngine(
        options,
        resolver=URLResolver(github),
        reconciler=reconciler,
        git=git,
    )
    return engine.run()


def cmd_init(args):
    """Handle 'init' subcommand."""
    from pathlib import Path
    from .cli import init_repository

    target = Path(args.path) if args.path else Path.cwd()
    success = init_repository(target, workflow=args.workflow)
    sys.exit(0 if success else 1)


def cmd_pr(args):
    """Handle 'pr' subcommand."""
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)
    logger = get_logger()

    options = PullRequestOptions.from_args(args)

    try:
        state = run_pull_requests(options)
    except UpdatebotError as e:
        logger.error(f"updatebot failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"updatebot failed: {e}")
        sys.exit(1)

    for pr in state.pull_requests:
        print(f"{pr.git_url}: {pr.url}")
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Promote a new version to downstream repositories via Pull Requests"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Create an updatebot config in a repository")
    init_parser.add_argument(
        "path",
        nargs="?",
        help="Target repository path (default: current directory)"
    )
    init_parser.add_argument(
        "--workflow",
        action="store_true",
        help="Also create a GitHub Actions workflow running updatebot on release"
    )

    # pr command
    pr_parser = subparsers.add_parser("pr", help="Create a Pull Request on each downstream repository")
    pr_parser.add_argument(
        "-d", "--dir",
        type=str,
        default=".",
        help="The directory to look for the VERSION file (default: current directory)"
    )
    pr_parser.add_argument(
        "-c", "--config-file",
        type=str,
        help="The updatebot config file. If none specified defaults to .jx/updatebot.yaml"
    )
    pr_parser.add_argument(
        "--version",
        type=str,
        help="The version number to promote. If not specified uses $VERSION or the version file"
    )
    pr_parser.add_argument(
        "--version-file",
        type=str,
        help="The file to load the version from if not specified directly or via $VERSION. "
             "Defaults to VERSION in --dir"
    )
    pr_parser.add_argument("--pull-request-title", type=str, help="The PR title")
    pr_parser.add_argument("--pull-request-body", type=str, help="The PR body")
    pr_parser.add_argument("--commit-title", type=str, help="The commit title")
    pr_parser.add_argument("--commit-message", type=str, help="The commit message")
    pr_parser.add_argument("--git-user-name", type=str, help="The user name to git commit")
    pr_parser.add_argument("--git-user-email", type=str, help="The user email to git commit")
    pr_parser.add_argument(
        "--labels",
        type=str,
        action="append",
        help="Comma separated labels to apply to the PR (can be repeated)"
    )
    pr_parser.add_argument(
        "--base-branch",
        type=str,
        help="Branch to target (default: the repository default branch)"
    )
    pr_parser.add_argument(
        "--auto-merge",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Automatically merge if the PR pipeline is green (default: enabled)"
    )
    pr_parser.add_argument(
        "--merge-method",
        type=str,
        default="squash",
        choices=["squash", "merge", "rebase"],
        help="Merge method to use for auto-merge (default: squash)"
    )
    pr_parser.add_argument(
        "--no-version",
        action="store_true",
        help="Disables requiring a --version option or $VERSION environment variable"
    )
    pr_parser.add_argument(
        "--git-credentials",
        action="store_true",
        help="Ensures the git credentials are setup so we can push to git"
    )
    pr_parser.add_argument("--git-server", type=str, help="The git server URL (default: from the git remote)")
    pr_parser.add_argument("--git-token", type=str, help="The git token (default: $GIT_TOKEN or $GITHUB_TOKEN)")
    pr_parser.add_argument("--git-username", type=str, help="The git provider user name")
    pr_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def main():
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Route to subcommand
    if args.command == "init":
        cmd_init(args)
    elif args.command == "pr":
        cmd_pr(args)
    else:
        # No subcommand - show help
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
