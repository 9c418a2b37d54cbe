"""Tools for talking to git, GitHub and the shell."""

from .command_runner import CommandRunner
from .git_tool import (
    GitTool,
    authenticated_url,
    git_server_url,
    repository_full_name,
)
from .github_tool import GitHubTool

__all__ = [
    "CommandRunner",
    "GitTool",
    "GitHubTool",
    "authenticated_url",
    "git_server_url",
    "repository_full_name",
]
