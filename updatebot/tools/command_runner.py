"""Runs external commands."""

import os
import subprocess
from typing import Dict, List, Optional

from ..errors import CommandError
from ..utils import get_logger


class CommandRunner:
    """Runs a command and returns its output, raising CommandError on failure."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Run a command.

        Args:
            args: Command and arguments
            cwd: Working directory
            env: Extra environment variables added to the current environment

        Returns:
            Combined stdout of the command, stripped
        """
        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)

        self.logger.debug(f"running: {' '.join(args)} in {cwd or os.getcwd()}")
        try:
            result = subprocess.run(
                args,
                cwd=cwd,
                env=full_env,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise CommandError(args, 127, str(e)) from e

        if result.returncode != 0:
            raise CommandError(args, result.returncode, result.stderr or result.stdout)
        return result.stdout.strip()
