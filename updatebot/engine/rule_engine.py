"""Applies the configured rules to every target repository."""

from typing import Optional

from ..changes import ChangeApplier, ChangeSet
from ..config import PullRequestOptions
from ..errors import ChangeError, DiscoveryError, PullRequestError, UpdatebotError
from ..models import (
    LABEL_UPDATEBOT,
    Label,
    PullRequestDetails,
    PullRequestFilter,
    Rule,
    RunState,
)
from ..utils import get_logger


class RuleEngine:
    """
    Walks the rules in order and reconciles a pull request per repository.

    Processing is sequential and fail-fast: the first error stops the run.
    """

    def __init__(
        self,
        options: PullRequestOptions,
        resolver,
        reconciler,
        applier: Optional[ChangeApplier] = None,
        git=None,
        state: Optional[RunState] = None
    ):
        """
        Args:
            options: Validated options holding the loaded rules
            resolver: URLResolver expanding each rule's repositories
            reconciler: PullRequestReconciler creating or reusing pull requests
            applier: ChangeApplier (defaults to one for options.version)
            git: GitTool used to discover the source repository URL
            state: RunState to accumulate into
        """
        self.options = options
        self.resolver = resolver
        self.reconciler = reconciler
        self.git = git
        self.state = state or RunState(version=options.version)
        self.applier = applier or ChangeApplier(options.version, self.state.template_data)
        self.pull_request_filter: Optional[PullRequestFilter] = None
        self.logger = get_logger(__name__)

    def run(self) -> RunState:
        """
        Process every rule.

        Returns:
            The run state with all recorded pull requests
        """
        self._default_messages()

        for i, rule in enumerate(self.options.update_config.rules):
            try:
                self.resolver.resolve(rule)
            except DiscoveryError as e:
                raise DiscoveryError(f"failed to find URLs for rule {i}: {e}") from e

            if not rule.urls:
                self.logger.warning(f"no URLs to process for rule {i}")
                continue

            for git_url in rule.urls:
                if not git_url:
                    self.logger.warning(f"skipping empty git URL in rule {i}")
                    continue
                self.process_repository(rule, git_url, fork=rule.fork)

        self.logger.info(f"created {len(self.state.pull_requests)} Pull Requests")
        return self.state

    def process_repository(self, rule: Rule, git_url: str, fork: bool = False) -> None:
        """Apply a rule's changes to one repository and reconcile its pull request."""
        # Each repository gets a new branch
        self.reconciler.branch_name = ""

        details = PullRequestDetails(
            title=self.options.pull_request_title,
            body=self.options.pull_request_body,
            draft=False,
            labels=[Label(name=name, description=name) for name in self.options.labels],
        )

        change_set = ChangeSet(
            git_url=git_url,
            changes=rule.changes,
            details=details,
            applier=self.applier,
            commit_title=self.options.commit_title,
            commit_message=self.options.commit_message,
        )

        # Reuse an existing labeled Pull Request rather than open another
        if self.options.auto_merge:
            if self.pull_request_filter is None:
                self.pull_request_filter = PullRequestFilter()
            self.pull_request_filter.ensure_label(LABEL_UPDATEBOT)

        try:
            pr = self.reconciler.create(
                git_url,
                self.options.base_branch,
                details,
                self.options.auto_merge,
                change_set=change_set,
                fork=fork,
                pull_request_filter=self.pull_request_filter,
            )
        except ChangeError as e:
            raise ChangeError(f"failed to update repository {git_url}: {e}") from e
        except UpdatebotError as e:
            raise PullRequestError(f"failed to create Pull Request on repository {git_url}: {e}") from e

        if pr is None:
            self.logger.info("no Pull Request created")
            return

        self.logger.info(f"Pull Request {pr.url} for {git_url}")
        self.state.add_pull_request(pr)

    def _default_messages(self) -> None:
        """Default the body and commit message to the repository we were run from."""
        if self.git is None:
            return
        if self.options.pull_request_body and self.options.commit_message:
            return

        git_url = self.git.find_git_url_from_dir(self.options.dir)
        if not git_url:
            self.logger.warning(f"failed to find git URL in {self.options.dir}")
            return

        message = f"from: {git_url}\n"
        if not self.options.pull_request_body:
            self.options.pull_request_body = message
        if not self.options.commit_message:
            self.options.commit_message = message
