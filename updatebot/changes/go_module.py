"""Go change: bump required module versions in go.mod files."""

import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ..errors import ChangeError, CommandError
from ..models import GoChange
from ..utils import get_logger
from .context import ChangeContext

MODULE_LINE = re.compile(r"^\s*module\s+(?P<module>\S+)")
BLOCK_START = re.compile(r"^\s*require\s*\(\s*(//.*)?$")
SINGLE_REQUIRE = re.compile(
    r"^(?P<prefix>\s*require\s+)(?P<module>[^\s()]+)(?P<sep>\s+)(?P<version>v\S+)(?P<rest>.*)$"
)
BLOCK_REQUIRE = re.compile(
    r"^(?P<prefix>\s*)(?P<module>[^\s()/][^\s()]*)(?P<sep>\s+)(?P<version>v\S+)(?P<rest>.*)$"
)

SKIP_DIRS = {"vendor", ".git", "node_modules"}


def go_version(version: str) -> str:
    """Go module versions always carry a 'v' prefix."""
    return version if version.startswith("v") else f"v{version}"


def module_path(text: str) -> Optional[str]:
    """Get the module path declared in a go.mod file."""
    for line in text.splitlines():
        match = MODULE_LINE.match(line)
        if match:
            return match.group("module")
    return None


def _iter_requires(lines: List[str]) -> Iterator[Tuple[int, "re.Match"]]:
    in_block = False
    for i, line in enumerate(lines):
        stripped = line.strip()
        if in_block:
            if stripped.startswith(")"):
                in_block = False
                continue
            match = BLOCK_REQUIRE.match(line)
            if match:
                yield i, match
        elif BLOCK_START.match(line):
            in_block = True
        else:
            match = SINGLE_REQUIRE.match(line)
            if match:
                yield i, match


def parse_requirements(text: str) -> Dict[str, str]:
    """Map each required module of a go.mod file to its version."""
    lines = text.splitlines()
    return {match.group("module"): match.group("version") for _, match in _iter_requires(lines)}


def update_requirements(
    text: str,
    should_upgrade: Callable[[str], bool],
    version: str
) -> Tuple[str, List[str]]:
    """
    Rewrite the version of matching requirements.

    Returns:
        Tuple of (new text, modules whose version changed)
    """
    lines = text.splitlines(keepends=True)
    changed = []
    for i, match in _iter_requires([line.rstrip("\r\n") for line in lines]):
        module = match.group("module")
        if not should_upgrade(module) or match.group("version") == version:
            continue
        ending = lines[i][len(lines[i].rstrip("\r\n")):]
        lines[i] = (
            f"{match.group('prefix')}{module}{match.group('sep')}{version}{match.group('rest')}{ending}"
        )
        changed.append(module)
    return "".join(lines), changed


def module_matcher(change: GoChange) -> Callable[[str], bool]:
    """Build the predicate selecting which modules to upgrade."""
    include = change.upgrade_packages.include
    exclude = change.upgrade_packages.exclude

    def matches(module: str) -> bool:
        if any(fnmatch(module, pattern) for pattern in exclude):
            return False
        if module == change.package:
            return True
        return any(fnmatch(module, pattern) for pattern in include)

    return matches


def find_go_mod_files(work_dir: str) -> List[Path]:
    root = Path(work_dir)
    return sorted(
        path for path in root.rglob("go.mod")
        if not SKIP_DIRS.intersection(path.relative_to(root).parts[:-1])
    )


def apply_go(ctx: ChangeContext, work_dir: str, git_url: str, change: GoChange) -> None:
    """Upgrade the module dependencies of a GoChange in every go.mod under work_dir."""
    logger = get_logger(__name__)
    version = go_version(ctx.version)
    matches = module_matcher(change)

    for go_mod in find_go_mod_files(work_dir):
        text = go_mod.read_text()
        if module_path(text) == change.package:
            continue

        new_text, changed = update_requirements(text, matches, version)
        if not changed:
            continue

        go_mod.write_text(new_text)
        logger.info(f"upgraded {', '.join(changed)} to {version} in {go_mod.relative_to(work_dir)}")

        if change.tidy:
            try:
                ctx.runner.run(["go", "mod", "tidy"], cwd=str(go_mod.parent))
            except CommandError as e:
                raise ChangeError(f"failed to tidy {go_mod} for {git_url}: {e}") from e
