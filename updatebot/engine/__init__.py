"""Rule processing and pull request reconciliation.

This module provides:
- RuleEngine: Applies every rule to its repositories
- URLResolver: Discovers the repositories of a rule
- PullRequestReconciler: Creates, reuses or skips the pull request of a repository
"""

from .url_resolver import URLResolver
from .reconciler import PullRequestReconciler, new_branch_name
from .rule_engine import RuleEngine

__all__ = [
    "RuleEngine",
    "URLResolver",
    "PullRequestReconciler",
    "new_branch_name",
]
