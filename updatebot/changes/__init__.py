"""Changes applied to downstream repositories.

This module provides:
- ChangeApplier: Dispatches a change to the applier for its type
- ChangeSet: The ordered changes for one repository
- apply_command / apply_go / apply_regex / apply_version_stream: One applier per change type
"""

from .context import ChangeContext
from .command import apply_command
from .go_module import apply_go, parse_requirements, module_path
from .regex import apply_regex
from .version_stream import apply_version_stream
from .applier import ChangeApplier, ChangeSet, default_title

__all__ = [
    "ChangeContext",
    "ChangeApplier",
    "ChangeSet",
    "default_title",
    "apply_command",
    "apply_go",
    "apply_regex",
    "apply_version_stream",
    "parse_requirements",
    "module_path",
]
