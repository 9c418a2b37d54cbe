"""GitHub API wrapper for pull request operations."""

import os
from typing import List, Optional

from github import Auth, Github, GithubException, UnknownObjectException
from github.PullRequest import PullRequest as GHPullRequest
from github.Repository import Repository as GHRepository

from ..models import PullRequest, PullRequestDetails
from ..utils import get_logger
from .git_tool import repository_full_name

GITHUB_URL = "https://github.com"


def _api_url(server_url: Optional[str]) -> Optional[str]:
    """Get the API base URL for a GitHub server URL (None for github.com)."""
    if not server_url:
        return None
    server_url = server_url.rstrip("/")
    if server_url in (GITHUB_URL, "https://api.github.com"):
        return None
    return f"{server_url}/api/v3"


class GitHubTool:
    """
    GitHub API wrapper for updatebot.

    Handles:
    - Looking up repositories and forks
    - Finding, creating and updating pull requests
    - Labels and auto-merge
    - Listing owner repositories and reading files for discovery
    """

    def __init__(self, token: Optional[str] = None, server_url: Optional[str] = None):
        """
        Initialize GitHub tool.

        Args:
            token: GitHub token (defaults to GITHUB_TOKEN env var)
            server_url: Git server URL, for GitHub Enterprise
        """
        self.token = token or os.environ.get("GITHUB_TOKEN")
        if not self.token:
            raise ValueError("GitHub token required. Set GITHUB_TOKEN env var or pass token parameter.")

        api_url = _api_url(server_url)
        if api_url:
            self.gh = Github(base_url=api_url, auth=Auth.Token(self.token))
        else:
            self.gh = Github(auth=Auth.Token(self.token))
        self.logger = get_logger(__name__)

    def get_repository(self, git_url: str) -> GHRepository:
        """Get the repository a git URL points at."""
        return self.gh.get_repo(repository_full_name(git_url))

    def get_fork(self, repo: GHRepository) -> GHRepository:
        """Get (creating if needed) the authenticated user's fork of a repository."""
        fork = repo.create_fork()
        self.logger.info(f"using fork {fork.full_name} of {repo.full_name}")
        return fork

    def find_open_pull_request(
        self,
        repo: GHRepository,
        labels: List[str],
        git_url: str = ""
    ) -> Optional[PullRequest]:
        """
        Find an open pull request carrying all the given labels.

        Returns:
            The most recently created match, or None
        """
        wanted = set(labels)
        for gh_pr in repo.get_pulls(state="open", sort="created", direction="desc"):
            names = {label.name for label in gh_pr.labels}
            if wanted.issubset(names):
                return self._to_pull_request(gh_pr, git_url, reused=True)
        return None

    def create_pull_request(
        self,
        repo: GHRepository,
        head: str,
        base: str,
        details: PullRequestDetails,
        git_url: str = ""
    ) -> PullRequest:
        """Open a new pull request."""
        gh_pr = repo.create_pull(
            base=base,
            head=head,
            title=details.title,
            body=details.body,
            draft=details.draft,
        )
        self.logger.info(f"created Pull Request {gh_pr.html_url}")
        return self._to_pull_request(gh_pr, git_url)

    def update_pull_request(
        self,
        repo: GHRepository,
        number: int,
        details: PullRequestDetails,
        git_url: str = ""
    ) -> PullRequest:
        """Update the title and body of an existing pull request."""
        gh_pr = repo.get_pull(number)
        gh_pr.edit(title=details.title, body=details.body)
        self.logger.info(f"updated Pull Request {gh_pr.html_url}")
        return self._to_pull_request(gh_pr, git_url, reused=True)

    def add_labels(self, repo: GHRepository, number: int, labels: List[str]) -> None:
        """Add labels to a pull request, creating any that do not exist."""
        if not labels:
            return
        repo.get_pull(number).add_to_labels(*labels)

    def enable_auto_merge(self, repo: GHRepository, number: int, merge_method: str = "squash") -> bool:
        """
        Ask GitHub to merge the pull request once its checks pass.

        Returns:
            True if auto-merge was enabled
        """
        try:
            repo.get_pull(number).enable_automerge(merge_method=merge_method.upper())
            return True
        except GithubException as e:
            self.logger.warning(f"Failed to enable auto-merge on PR #{number}: {e}")
            return False

    def list_owner_repositories(self, owner: str) -> List[GHRepository]:
        """List the repositories of an organisation or user."""
        try:
            return list(self.gh.get_organization(owner).get_repos())
        except UnknownObjectException:
            return list(self.gh.get_user(owner).get_repos())

    def read_file(self, repo: GHRepository, path: str) -> Optional[str]:
        """Read a file from the default branch, or None if it does not exist."""
        try:
            content = repo.get_contents(path)
        except UnknownObjectException:
            return None
        if isinstance(content, list):
            return None
        return content.decoded_content.decode("utf-8")

    def _to_pull_request(self, gh_pr: GHPullRequest, git_url: str, reused: bool = False) -> PullRequest:
        return PullRequest(
            number=gh_pr.number,
            url=gh_pr.html_url,
            git_url=git_url,
            source_branch=gh_pr.head.ref,
            title=gh_pr.title,
            sha=gh_pr.head.sha,
            labels=[label.name for label in gh_pr.labels],
            reused=reused,
        )
