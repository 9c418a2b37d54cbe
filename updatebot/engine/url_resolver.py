"""Discovery of the repositories a rule applies to."""

from fnmatch import fnmatch
from typing import List, Optional

from github import GithubException

from ..changes import module_path, parse_requirements
from ..errors import DiscoveryError
from ..models import GoChange, Rule
from ..utils import get_logger


class URLResolver:
    """
    Expands a rule's target repositories.

    Go changes discover the repositories of their owners whose go.mod
    requires the changed package. Discovered URLs are appended to the rule
    as they are found, without removing duplicates.
    """

    def __init__(self, github=None):
        """
        Args:
            github: GitHubTool used for discovery; only needed for go changes
        """
        self.github = github
        self.logger = get_logger(__name__)

    def resolve(self, rule: Rule) -> None:
        """
        Append discovered repository URLs to rule.urls.

        Raises:
            DiscoveryError: If repositories cannot be listed or read
        """
        for change in rule.changes:
            if isinstance(change, GoChange):
                urls = self.find_go_repositories(change)
                rule.urls.extend(urls)

    def find_go_repositories(self, change: GoChange) -> List[str]:
        """Find the clone URLs of owner repositories that require change.package."""
        if not change.owners:
            return []
        if self.github is None:
            raise DiscoveryError(f"cannot discover repositories using {change.package} without a git provider")

        found = []
        for owner in change.owners:
            try:
                repos = self.github.list_owner_repositories(owner)
            except GithubException as e:
                raise DiscoveryError(f"failed to list repositories of {owner}: {e}") from e

            for repo in repos:
                url = self._check_repository(repo, change)
                if url:
                    found.append(url)

        self.logger.info(f"found {len(found)} repositories using {change.package}")
        return found

    def _check_repository(self, repo, change: GoChange) -> Optional[str]:
        if getattr(repo, "archived", False):
            return None
        if not _matches_filter(repo.name, change.repositories.include, change.repositories.exclude):
            return None

        try:
            go_mod = self.github.read_file(repo, "go.mod")
        except GithubException as e:
            raise DiscoveryError(f"failed to read go.mod of {repo.full_name}: {e}") from e
        if go_mod is None:
            return None

        if module_path(go_mod) == change.package:
            return None
        if change.package not in parse_requirements(go_mod):
            return None

        self.logger.debug(f"{repo.full_name} requires {change.package}")
        return repo.clone_url


def _matches_filter(name: str, include: List[str], exclude: List[str]) -> bool:
    if any(fnmatch(name, pattern) for pattern in exclude):
        return False
    if not include:
        return True
    return any(fnmatch(name, pattern) for pattern in include)
