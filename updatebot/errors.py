"""Error types raised by updatebot."""

from typing import List, Optional


class UpdatebotError(Exception):
    """Base class for all updatebot errors."""


class ConfigError(UpdatebotError):
    """Raised when options or the config file are invalid."""


class MissingOptionError(ConfigError):
    """Raised when a required option has no value."""

    def __init__(self, option: str):
        self.option = option
        super().__init__(f"missing option: --{option}")


class DiscoveryError(UpdatebotError):
    """Raised when repository URLs cannot be discovered."""


class ChangeError(UpdatebotError):
    """Raised when a change cannot be applied to a checkout."""


class CommandError(UpdatebotError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, args: List[str], returncode: int, output: Optional[str] = None):
        self.args_list = list(args)
        self.returncode = returncode
        self.output = output or ""
        message = f"command '{' '.join(self.args_list)}' failed with exit code {returncode}"
        if self.output.strip():
            message += f": {self.output.strip()}"
        super().__init__(message)


class PullRequestError(UpdatebotError):
    """Raised when a pull request cannot be created or updated."""
