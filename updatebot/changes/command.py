"""Command change: run a command inside the checkout."""

from string import Template
from typing import Dict

from ..errors import ChangeError, CommandError
from ..models import CommandChange
from ..utils import get_logger
from .context import ChangeContext


def template_values(ctx: ChangeContext, git_url: str) -> Dict[str, str]:
    """Values available to $NAME placeholders in args and env."""
    values = {str(k): str(v) for k, v in ctx.template_data.items()}
    values["VERSION"] = ctx.version
    values["GIT_URL"] = git_url
    return values


def apply_command(ctx: ChangeContext, work_dir: str, git_url: str, change: CommandChange) -> None:
    """
    Run the command of a CommandChange in work_dir.

    Raises:
        ChangeError: If the command exits with a non-zero status
    """
    logger = get_logger(__name__)
    values = template_values(ctx, git_url)

    args = [change.name] + [Template(arg).safe_substitute(values) for arg in change.args]
    env = {"VERSION": ctx.version}
    for var in change.env:
        env[var.name] = Template(var.value).safe_substitute(values)

    logger.info(f"running command: {' '.join(args)} for {git_url}")
    try:
        output = ctx.runner.run(args, cwd=work_dir, env=env)
    except CommandError as e:
        raise ChangeError(f"failed to run command for {git_url}: {e}") from e
    if output:
        logger.debug(output)
