"""Data models for updatebot."""

from .update_config import (
    Filter,
    EnvVar,
    CommandChange,
    GoChange,
    RegexChange,
    VersionStreamChange,
    UnknownChange,
    Change,
    Rule,
    UpdateConfig,
    parse_change,
    parse_update_config,
    load_update_config,
)
from .pull_request import (
    LABEL_UPDATEBOT,
    Label,
    PullRequestDetails,
    PullRequestFilter,
    PullRequest,
    RunState,
)

__all__ = [
    "Filter",
    "EnvVar",
    "CommandChange",
    "GoChange",
    "RegexChange",
    "VersionStreamChange",
    "UnknownChange",
    "Change",
    "Rule",
    "UpdateConfig",
    "parse_change",
    "parse_update_config",
    "load_update_config",
    "LABEL_UPDATEBOT",
    "Label",
    "PullRequestDetails",
    "PullRequestFilter",
    "PullRequest",
    "RunState",
]
