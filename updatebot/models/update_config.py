"""Data models for the updatebot rules file."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..errors import ConfigError
from ..utils import get_logger


@dataclass
class Filter:
    """Include/exclude glob patterns."""
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)


@dataclass
class EnvVar:
    """An environment variable passed to a command."""
    name: str
    value: str = ""


@dataclass
class CommandChange:
    """Run a command inside the checkout."""
    name: str
    args: List[str] = field(default_factory=list)
    env: List[EnvVar] = field(default_factory=list)


@dataclass
class GoChange:
    """Upgrade a go module dependency in go.mod files."""
    package: str
    owners: List[str] = field(default_factory=list)
    repositories: Filter = field(default_factory=Filter)     # Which owner repos to scan
    upgrade_packages: Filter = field(default_factory=Filter)  # Extra modules to bump
    tidy: bool = False                                       # Run 'go mod tidy' afterwards


@dataclass
class RegexChange:
    """Replace the 'version' named group of a pattern in matching files."""
    pattern: str
    files: List[str] = field(default_factory=list)


@dataclass
class VersionStreamChange:
    """Update version entries in a version stream directory."""
    kind: str = "charts"
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)


@dataclass
class UnknownChange:
    """A change with no recognised variant; applying it does nothing."""
    raw: Dict[str, Any] = field(default_factory=dict)


Change = Union[CommandChange, GoChange, RegexChange, VersionStreamChange, UnknownChange]


@dataclass
class Rule:
    """A set of repositories and the changes to apply to each of them."""
    urls: List[str] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)
    fork: bool = False


@dataclass
class UpdateConfig:
    """The parsed updatebot configuration."""
    rules: List[Rule] = field(default_factory=list)


# Dispatch precedence when a change mapping carries more than one key
CHANGE_KEYS = ("command", "go", "regex", "versionStream")


def _string_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{where} must be a list of strings")
    return [str(v) for v in value]


def _parse_filter(data: Any, where: str) -> Filter:
    if not data:
        return Filter()
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a mapping with include/exclude")
    return Filter(
        include=_string_list(data.get("include"), f"{where}.include"),
        exclude=_string_list(data.get("exclude"), f"{where}.exclude"),
    )


def parse_change(data: Dict[str, Any], where: str = "change") -> Change:
    """Build a typed change from its YAML mapping."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a mapping")

    present = [key for key in CHANGE_KEYS if data.get(key) is not None]
    if not present:
        return UnknownChange(raw=dict(data))
    if len(present) > 1:
        get_logger(__name__).warning(
            f"{where} has more than one change type {present}, using '{present[0]}'"
        )

    key = present[0]
    body = data[key]
    if not isinstance(body, dict):
        raise ConfigError(f"{where}.{key} must be a mapping")

    if key == "command":
        if not body.get("name"):
            raise ConfigError(f"{where}.command is missing 'name'")
        env = []
        for item in body.get("env") or []:
            if not isinstance(item, dict) or not item.get("name"):
                raise ConfigError(f"{where}.command.env entries need a 'name'")
            env.append(EnvVar(name=str(item["name"]), value=str(item.get("value", ""))))
        return CommandChange(
            name=str(body["name"]),
            args=_string_list(body.get("args"), f"{where}.command.args"),
            env=env,
        )

    if key == "go":
        if not body.get("package"):
            raise ConfigError(f"{where}.go is missing 'package'")
        return GoChange(
            package=str(body["package"]),
            owners=_string_list(body.get("owners"), f"{where}.go.owners"),
            repositories=_parse_filter(body.get("repositories"), f"{where}.go.repositories"),
            upgrade_packages=_parse_filter(body.get("upgradePackages"), f"{where}.go.upgradePackages"),
            tidy=bool(body.get("tidy", False)),
        )

    if key == "regex":
        if not body.get("pattern"):
            raise ConfigError(f"{where}.regex is missing 'pattern'")
        return RegexChange(
            pattern=str(body["pattern"]),
            files=_string_list(body.get("files"), f"{where}.regex.files"),
        )

    return VersionStreamChange(
        kind=str(body.get("kind") or "charts"),
        include=_string_list(body.get("include"), f"{where}.versionStream.include"),
        exclude=_string_list(body.get("exclude"), f"{where}.versionStream.exclude"),
    )


def parse_update_config(data: Any) -> UpdateConfig:
    """Build an UpdateConfig from the loaded YAML document."""
    if data is None:
        return UpdateConfig()
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping")

    spec = data.get("spec") or {}
    if not isinstance(spec, dict):
        raise ConfigError("spec must be a mapping")

    rules = []
    for i, rule_data in enumerate(spec.get("rules") or []):
        if not isinstance(rule_data, dict):
            raise ConfigError(f"rule {i} must be a mapping")
        changes = [
            parse_change(change, where=f"rule {i} change {j}")
            for j, change in enumerate(rule_data.get("changes") or [])
        ]
        rules.append(
            Rule(
                urls=_string_list(rule_data.get("urls"), f"rule {i} urls"),
                changes=changes,
                fork=bool(rule_data.get("fork", False)),
            )
        )
    return UpdateConfig(rules=rules)


def load_update_config(path: Union[str, Path]) -> UpdateConfig:
    """Load an UpdateConfig from a YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    return parse_update_config(data)
