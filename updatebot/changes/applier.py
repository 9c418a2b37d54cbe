"""Dispatch of changes to their appliers, and the per-repository change set."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import UpdatebotError, ChangeError
from ..models import (
    Change,
    CommandChange,
    GoChange,
    PullRequestDetails,
    RegexChange,
    UnknownChange,
    VersionStreamChange,
)
from ..tools import CommandRunner, repository_full_name
from ..utils import get_logger
from .command import apply_command
from .context import ChangeContext
from .go_module import apply_go
from .regex import apply_regex
from .version_stream import apply_version_stream

ApplyFunc = Callable[[ChangeContext, str, str, Any], None]

APPLIERS: Dict[type, ApplyFunc] = {
    CommandChange: apply_command,
    GoChange: apply_go,
    RegexChange: apply_regex,
    VersionStreamChange: apply_version_stream,
}


def default_title(git_url: str, version: str) -> str:
    """Pull request title used when none is configured."""
    return f"chore(deps): upgrade {repository_full_name(git_url)} to version {version}"


class ChangeApplier:
    """Applies one change to a checked out repository."""

    def __init__(
        self,
        version: str,
        template_data: Optional[Dict[str, Any]] = None,
        runner: Optional[CommandRunner] = None
    ):
        self.ctx = ChangeContext(
            version=version,
            template_data=template_data if template_data is not None else {},
            runner=runner or CommandRunner(),
        )
        self.logger = get_logger(__name__)

    @property
    def version(self) -> str:
        return self.ctx.version

    def apply(self, work_dir: str, git_url: str, change: Change) -> None:
        """
        Apply a change to work_dir.

        Files are modified in place; nothing is staged or committed.
        Unknown changes are logged and ignored.
        """
        if isinstance(change, UnknownChange):
            self.logger.info(f"ignoring unknown change {change.raw!r}")
            return

        func = APPLIERS.get(type(change))
        if func is None:
            self.logger.info(f"ignoring unknown change {change!r}")
            return
        func(self.ctx, work_dir, git_url, change)


@dataclass
class ChangeSet:
    """The ordered changes for one repository, applied once it is checked out."""
    git_url: str
    changes: List[Change]
    details: PullRequestDetails
    applier: ChangeApplier
    commit_title: str = ""
    commit_message: str = ""
    applied: List[Change] = field(default_factory=list)

    @property
    def version(self) -> str:
        return self.applier.version

    def apply(self, work_dir: str) -> None:
        """
        Apply every change in order, stopping at the first failure.

        Changes already applied are left in place. Afterwards the pull request
        title and commit title are defaulted if not configured.
        """
        self.applied.clear()
        for i, change in enumerate(self.changes):
            try:
                self.applier.apply(work_dir, self.git_url, change)
            except (UpdatebotError, OSError) as e:
                raise ChangeError(f"failed to apply change {i} ({type(change).__name__}): {e}") from e
            self.applied.append(change)

        if not self.details.title:
            self.details.title = default_title(self.git_url, self.version)
        if not self.commit_title:
            self.commit_title = self.details.title
