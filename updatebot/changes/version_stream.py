"""Version stream change: update pinned versions in a version stream checkout."""

from fnmatch import fnmatch
from pathlib import Path
from typing import List

import yaml

from ..errors import ChangeError
from ..models import VersionStreamChange
from ..utils import get_logger
from .context import ChangeContext

YAML_SUFFIXES = (".yml", ".yaml")


def entry_name(kind_dir: Path, path: Path) -> str:
    """Name of a version stream entry: its path under the kind dir, without extension."""
    return path.relative_to(kind_dir).with_suffix("").as_posix()


def matches_entry(name: str, include: List[str], exclude: List[str]) -> bool:
    if any(fnmatch(name, pattern) for pattern in exclude):
        return False
    if not include:
        return True
    return any(fnmatch(name, pattern) for pattern in include)


def apply_version_stream(
    ctx: ChangeContext,
    work_dir: str,
    git_url: str,
    change: VersionStreamChange
) -> None:
    """Set the version of every selected entry of a VersionStreamChange."""
    logger = get_logger(__name__)
    kind_dir = Path(work_dir) / change.kind
    if not kind_dir.is_dir():
        logger.warning(f"no {change.kind} directory in version stream {git_url}")
        return

    for path in sorted(kind_dir.rglob("*")):
        if path.suffix not in YAML_SUFFIXES or not path.is_file():
            continue
        name = entry_name(kind_dir, path)
        if not matches_entry(name, change.include, change.exclude):
            continue

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ChangeError(f"failed to parse {path} in {git_url}: {e}") from e

        if not isinstance(data, dict) or "version" not in data:
            continue
        if str(data["version"]) == ctx.version:
            continue

        data["version"] = ctx.version
        path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        logger.info(f"updated {change.kind}/{name} to version {ctx.version}")
