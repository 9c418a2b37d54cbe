"""Shared inputs for applying changes."""

from dataclasses import dataclass, field
from typing import Any, Dict

from ..tools import CommandRunner


@dataclass
class ChangeContext:
    """What every change needs besides the checkout and the change itself."""
    version: str
    template_data: Dict[str, Any] = field(default_factory=dict)
    runner: CommandRunner = field(default_factory=CommandRunner)
