"""Creates or reuses the pull request for one repository."""

import shutil
import tempfile
import uuid
from typing import Optional

from github import GithubException

from ..changes import ChangeSet
from ..errors import CommandError, PullRequestError
from ..models import (
    LABEL_UPDATEBOT,
    PullRequest,
    PullRequestDetails,
    PullRequestFilter,
)
from ..tools import authenticated_url
from ..utils import get_logger


def new_branch_name() -> str:
    return f"updatebot-{uuid.uuid4().hex[:12]}"


class PullRequestReconciler:
    """
    Decides between creating a new pull request, reusing an open one, or
    doing nothing for a repository.

    Handles:
    - Finding an open pull request to reuse by label
    - Checking out a fresh branch and applying the change set
    - Committing and pushing (to a fork if asked)
    - Opening or updating the pull request, labels and auto-merge
    """

    def __init__(
        self,
        github,
        git,
        username: str = "",
        token: str = "",
        merge_method: str = "squash"
    ):
        """
        Args:
            github: GitHubTool for the git provider
            git: GitTool for local git operations
            username: User name used to push over https
            token: Token used to push over https
            merge_method: Merge method requested for auto-merge (squash, merge, rebase)
        """
        self.github = github
        self.git = git
        self.username = username
        self.token = token
        self.merge_method = merge_method
        # Cleared by the caller before each repository so every repository gets its own branch
        self.branch_name = ""
        self.logger = get_logger(__name__)

    def create(
        self,
        git_url: str,
        base_branch: str,
        details: PullRequestDetails,
        auto_merge: bool,
        change_set: ChangeSet,
        fork: bool = False,
        pull_request_filter: Optional[PullRequestFilter] = None
    ) -> Optional[PullRequest]:
        """
        Reconcile the pull request for a repository.

        Args:
            git_url: Repository to change
            base_branch: Branch to target (defaults to the repository default branch)
            details: Title, body and labels of the pull request
            auto_merge: Label the pull request for reuse and ask for auto-merge
            change_set: Changes to apply to the checkout
            fork: Push to a fork instead of the repository itself
            pull_request_filter: Labels identifying an open pull request to reuse

        Returns:
            The created or updated pull request, or None if nothing changed

        Raises:
            PullRequestError: On any git or git provider failure
        """
        try:
            repo = self.github.get_repository(git_url)
            base = base_branch or repo.default_branch

            existing = None
            if pull_request_filter and pull_request_filter.labels:
                existing = self.github.find_open_pull_request(repo, pull_request_filter.labels, git_url)

            push_repo = self.github.get_fork(repo) if fork else repo
        except GithubException as e:
            raise PullRequestError(f"failed to query repository: {e}") from e

        if existing:
            self.logger.info(f"reusing Pull Request {existing.url}")
            self.branch_name = existing.source_branch
        elif not self.branch_name:
            self.branch_name = new_branch_name()
        details.source_branch = self.branch_name

        work_dir = tempfile.mkdtemp(prefix="updatebot-")
        try:
            sha = self._commit_changes(git_url, base, push_repo if fork else None,
                                       change_set, work_dir, force=existing is not None)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        if sha is None:
            return None

        try:
            if existing:
                pr = self.github.update_pull_request(repo, existing.number, details, git_url)
            else:
                head = self.branch_name
                if fork:
                    head = f"{push_repo.owner.login}:{self.branch_name}"
                pr = self.github.create_pull_request(repo, head, base, details, git_url)

            labels = list(details.label_names)
            if auto_merge and LABEL_UPDATEBOT not in labels:
                labels.append(LABEL_UPDATEBOT)
            self.github.add_labels(repo, pr.number, labels)

            if auto_merge:
                self.github.enable_auto_merge(repo, pr.number, self.merge_method)
        except GithubException as e:
            raise PullRequestError(f"failed to open Pull Request: {e}") from e

        pr.sha = sha
        pr.reused = existing is not None
        for label in labels:
            if label not in pr.labels:
                pr.labels.append(label)
        return pr

    def _commit_changes(
        self,
        git_url: str,
        base: str,
        fork_repo,
        change_set: ChangeSet,
        work_dir: str,
        force: bool
    ) -> Optional[str]:
        """
        Clone, apply the change set, commit and push.

        Returns:
            The pushed commit SHA, or None if the change set changed nothing
        """
        try:
            self.git.clone(authenticated_url(git_url, self.username, self.token), work_dir)
            self.git.checkout_branch(work_dir, self.branch_name, base)
        except CommandError as e:
            raise PullRequestError(f"failed to check out repository: {e}") from e

        change_set.apply(work_dir)

        try:
            if not self.git.has_changes(work_dir):
                self.logger.info(f"no changes to {git_url}")
                return None

            self.git.commit_all(work_dir, change_set.commit_title, change_set.commit_message)

            remote = "origin"
            if fork_repo is not None:
                remote = "fork"
                self.git.add_remote(work_dir, remote,
                                    authenticated_url(fork_repo.clone_url, self.username, self.token))
            self.git.push(work_dir, remote, self.branch_name, force=force)
            return self.git.head_sha(work_dir)
        except CommandError as e:
            raise PullRequestError(f"failed to push changes: {e}") from e
