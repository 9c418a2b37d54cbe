"""Data models for pull requests and run state."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Marks pull requests opened by updatebot so they can be found and reused
LABEL_UPDATEBOT = "updatebot"


@dataclass
class Label:
    """A pull request label."""
    name: str
    description: str = ""


@dataclass
class PullRequestDetails:
    """What to put on the pull request for one repository."""
    title: str = ""
    body: str = ""
    source_branch: str = ""
    draft: bool = False
    labels: List[Label] = field(default_factory=list)

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]


@dataclass
class PullRequestFilter:
    """Selects an existing open pull request to reuse."""
    labels: List[str] = field(default_factory=list)

    def ensure_label(self, name: str) -> None:
        if name not in self.labels:
            self.labels.append(name)


@dataclass
class PullRequest:
    """A pull request created or updated by updatebot."""
    number: int
    url: str
    git_url: str = ""
    source_branch: str = ""
    title: str = ""
    sha: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    reused: bool = False


@dataclass
class RunState:
    """State accumulated over one run."""
    version: str = ""
    template_data: Dict[str, Any] = field(default_factory=dict)
    pull_request_shas: Dict[str, str] = field(default_factory=dict)
    pull_requests: List[PullRequest] = field(default_factory=list)

    def add_pull_request(self, pr: PullRequest) -> None:
        """Record a pull request and the commit it points at."""
        self.pull_requests.append(pr)
        if pr.sha:
            self.pull_request_shas[pr.git_url] = pr.sha
