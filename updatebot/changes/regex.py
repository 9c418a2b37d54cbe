"""Regex change: replace the 'version' group of a pattern in matching files."""

import re
from pathlib import Path
from typing import List

from ..errors import ChangeError
from ..models import RegexChange
from ..utils import get_logger
from .context import ChangeContext

VERSION_GROUP = "version"
GIT_DIR = ".git"


def compile_pattern(pattern: str) -> "re.Pattern":
    try:
        compiled = re.compile(pattern, re.MULTILINE)
    except re.error as e:
        raise ChangeError(f"invalid regex '{pattern}': {e}") from e
    if VERSION_GROUP not in compiled.groupindex:
        raise ChangeError(f"regex '{pattern}' has no named group '{VERSION_GROUP}'")
    return compiled


def replace_versions(compiled: "re.Pattern", text: str, version: str) -> str:
    """Replace the version group of every match with version."""

    def replace(match: "re.Match") -> str:
        start, end = match.span(VERSION_GROUP)
        if start < 0:
            return match.group(0)
        offset = match.start()
        whole = match.group(0)
        return whole[:start - offset] + version + whole[end - offset:]

    return compiled.sub(replace, text)


def matching_files(work_dir: str, globs: List[str]) -> List[Path]:
    """Files under work_dir matching any glob, never inside the .git dir."""
    root = Path(work_dir)
    found = []
    for pattern in globs:
        for path in sorted(root.glob(pattern)):
            if GIT_DIR in path.relative_to(root).parts:
                continue
            if path.is_file() and path not in found:
                found.append(path)
    return found


def apply_regex(ctx: ChangeContext, work_dir: str, git_url: str, change: RegexChange) -> None:
    """Apply a RegexChange to the files it selects under work_dir."""
    logger = get_logger(__name__)
    compiled = compile_pattern(change.pattern)

    files = matching_files(work_dir, change.files)
    if not files:
        logger.warning(f"no files match {change.files} in {git_url}")
        return

    for path in files:
        try:
            text = path.read_text()
        except UnicodeDecodeError:
            logger.debug(f"skipping non-text file {path.relative_to(work_dir)} in {git_url}")
            continue
        new_text = replace_versions(compiled, text, ctx.version)
        if new_text != text:
            path.write_text(new_text)
            logger.info(f"modified {path.relative_to(work_dir)} in {git_url}")
