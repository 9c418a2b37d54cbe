"""Tests for applying changes to a checkout."""

import sys
from pathlib import Path

import pytest
import yaml

from updatebot.changes import ChangeApplier, ChangeSet, default_title, parse_requirements
from updatebot.changes.go_module import go_version, update_requirements
from updatebot.errors import ChangeError
from updatebot.models import (
    CommandChange,
    EnvVar,
    Filter,
    GoChange,
    PullRequestDetails,
    RegexChange,
    UnknownChange,
    VersionStreamChange,
)

GIT_URL = "https://github.com/acme/widgets.git"

GO_MOD = """module github.com/acme/widgets

go 1.21

require github.com/acme/lib v1.0.0

require (
\tgithub.com/acme/client v0.3.0
\tgithub.com/other/thing v2.1.0+incompatible // indirect
\t// github.com/acme/lib v0.0.1
)
"""


def snapshot(root: Path) -> dict:
    return {p.relative_to(root).as_posix(): p.read_text() for p in root.rglob("*") if p.is_file()}


class TestUnknownChange:
    """Tests for changes with no known type."""

    def test_unknown_change_is_ignored(self, tmp_path):
        """Given an unknown change, should not fail and not touch any file."""
        # Given
        (tmp_path / "values.yaml").write_text("version: 1.0.0\n")
        before = snapshot(tmp_path)
        applier = ChangeApplier("1.2.3")

        # When
        applier.apply(str(tmp_path), GIT_URL, UnknownChange(raw={"helm": {"chart": "x"}}))

        # Then
        assert snapshot(tmp_path) == before


class TestCommandChange:
    """Tests for running commands."""

    def test_command_gets_version_env(self, tmp_path):
        """Given a command, should run it in the checkout with $VERSION set."""
        # Given
        change = CommandChange(
            name=sys.executable,
            args=["-c", "import os; open('out.txt', 'w').write(os.environ['VERSION'] + os.environ['EXTRA'])"],
            env=[EnvVar(name="EXTRA", value="-$GIT_URL")],
        )

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

        # Then
        assert (tmp_path / "out.txt").read_text() == f"1.2.3-{GIT_URL}"

    def test_command_args_are_templated(self, tmp_path):
        """Given $VERSION and template data in args, should expand them."""
        # Given
        change = CommandChange(
            name=sys.executable,
            args=["-c", "import sys; open('arg.txt', 'w').write(' '.join(sys.argv[1:]))", "$VERSION", "$chart"],
        )

        # When
        ChangeApplier("1.2.3", template_data={"chart": "widgets"}).apply(str(tmp_path), GIT_URL, change)

        # Then
        assert (tmp_path / "arg.txt").read_text() == "1.2.3 widgets"

    def test_command_failure_raises(self, tmp_path):
        """Given a command exiting non-zero, should raise ChangeError with the exit code."""
        # Given
        change = CommandChange(name=sys.executable, args=["-c", "import sys; sys.exit(3)"])

        # When/Then
        with pytest.raises(ChangeError, match="exit code 3"):
            ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

    def test_missing_command_raises(self, tmp_path):
        """Given a command that does not exist, should raise ChangeError."""
        # Given
        change = CommandChange(name="updatebot-no-such-command")

        # When/Then
        with pytest.raises(ChangeError):
            ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)


class TestRegexChange:
    """Tests for regex replacement."""

    def test_replaces_version_group(self, tmp_path):
        """Given a pattern with a version group, should replace only that group."""
        # Given
        chart = tmp_path / "charts" / "widgets"
        chart.mkdir(parents=True)
        (chart / "values.yaml").write_text("image:\n  tag: 1.0.0\n  pullPolicy: Always\n")
        change = RegexChange(pattern=r"^\s+tag: (?P<version>\S+)$", files=["charts/*/values.yaml"])

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

        # Then
        assert (chart / "values.yaml").read_text() == "image:\n  tag: 1.2.3\n  pullPolicy: Always\n"

    def test_non_matching_files_untouched(self, tmp_path):
        """Given files outside the globs, should leave them alone."""
        # Given
        (tmp_path / "a.txt").write_text("version=1.0.0\n")
        (tmp_path / "b.md").write_text("version=1.0.0\n")
        change = RegexChange(pattern=r"version=(?P<version>.+)", files=["*.txt"])

        # When
        ChangeApplier("2.0.0").apply(str(tmp_path), GIT_URL, change)

        # Then
        assert (tmp_path / "a.txt").read_text() == "version=2.0.0\n"
        assert (tmp_path / "b.md").read_text() == "version=1.0.0\n"

    def test_binary_files_are_skipped(self, tmp_path):
        """Given a broad glob over a binary file, should skip it and still update text files."""
        # Given
        (tmp_path / "logo.png").write_bytes(b"\x89PNG\xff\xfe\x00")
        (tmp_path / "Chart.yaml").write_text("version: 1.0.0\n")
        change_set = ChangeSet(
            git_url=GIT_URL,
            changes=[RegexChange(pattern="version: (?P<version>.*)", files=["**/*"])],
            details=PullRequestDetails(),
            applier=ChangeApplier("1.2.3"),
        )

        # When
        change_set.apply(str(tmp_path))

        # Then
        assert (tmp_path / "logo.png").read_bytes() == b"\x89PNG\xff\xfe\x00"
        assert (tmp_path / "Chart.yaml").read_text() == "version: 1.2.3\n"

    def test_git_dir_is_never_modified(self, tmp_path):
        """Given a broad glob, should leave files inside .git alone."""
        # Given
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "config").write_text("version: 0.0.1\n")
        (tmp_path / "values.yaml").write_text("version: 0.0.1\n")
        change = RegexChange(pattern="version: (?P<version>.*)", files=["**/*"])

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

        # Then
        assert (tmp_path / ".git" / "config").read_text() == "version: 0.0.1\n"
        assert (tmp_path / "values.yaml").read_text() == "version: 1.2.3\n"

    def test_invalid_pattern_raises(self, tmp_path):
        """Given an invalid regex, should raise ChangeError."""
        # Given
        change = RegexChange(pattern=r"(?P<version>[", files=["*"])

        # When/Then
        with pytest.raises(ChangeError, match="invalid regex"):
            ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)


class TestGoChange:
    """Tests for go.mod upgrades."""

    def test_parse_requirements(self):
        """Given a go.mod, should list single and block requirements but not comments."""
        # When
        requirements = parse_requirements(GO_MOD)

        # Then
        assert requirements == {
            "github.com/acme/lib": "v1.0.0",
            "github.com/acme/client": "v0.3.0",
            "github.com/other/thing": "v2.1.0+incompatible",
        }

    def test_upgrades_package_in_go_mod(self, tmp_path):
        """Given a go.mod requiring the package, should bump it to the version with a v prefix."""
        # Given
        (tmp_path / "go.mod").write_text(GO_MOD)
        change = GoChange(package="github.com/acme/lib")

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

        # Then
        requirements = parse_requirements((tmp_path / "go.mod").read_text())
        assert requirements["github.com/acme/lib"] == "v1.2.3"
        assert requirements["github.com/acme/client"] == "v0.3.0"

    def test_upgrade_packages_patterns(self, tmp_path):
        """Given upgrade package patterns, should bump matching modules except excluded ones."""
        # Given
        (tmp_path / "go.mod").write_text(GO_MOD)
        change = GoChange(
            package="github.com/acme/lib",
            upgrade_packages=Filter(include=["github.com/acme/*", "github.com/other/*"],
                                    exclude=["github.com/other/*"]),
        )

        # When
        ChangeApplier("v1.5.0").apply(str(tmp_path), GIT_URL, change)

        # Then
        requirements = parse_requirements((tmp_path / "go.mod").read_text())
        assert requirements["github.com/acme/lib"] == "v1.5.0"
        assert requirements["github.com/acme/client"] == "v1.5.0"
        assert requirements["github.com/other/thing"] == "v2.1.0+incompatible"

    def test_skips_vendor_and_own_module(self, tmp_path):
        """Given go.mod files in vendor and in the package itself, should leave them alone."""
        # Given
        vendored = tmp_path / "vendor" / "x"
        vendored.mkdir(parents=True)
        (vendored / "go.mod").write_text(GO_MOD)
        lib = tmp_path / "lib"
        lib.mkdir()
        own = "module github.com/acme/lib\n\nrequire github.com/acme/lib v1.0.0\n"
        (lib / "go.mod").write_text(own)

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, GoChange(package="github.com/acme/lib"))

        # Then
        assert (vendored / "go.mod").read_text() == GO_MOD
        assert (lib / "go.mod").read_text() == own

    def test_update_requirements_keeps_comments(self):
        """Given an indirect comment, should keep it after the new version."""
        # When
        text, changed = update_requirements(GO_MOD, lambda m: m == "github.com/other/thing", "v3.0.0")

        # Then
        assert changed == ["github.com/other/thing"]
        assert "\tgithub.com/other/thing v3.0.0 // indirect\n" in text

    def test_go_version_prefix(self):
        assert go_version("1.2.3") == "v1.2.3"
        assert go_version("v1.2.3") == "v1.2.3"


class TestVersionStreamChange:
    """Tests for version stream updates."""

    def test_updates_matching_entries(self, tmp_path):
        """Given include/exclude patterns, should only update matching entries."""
        # Given
        charts = tmp_path / "charts" / "acme"
        charts.mkdir(parents=True)
        (charts / "widgets.yml").write_text("version: 1.0.0\ngitUrl: https://github.com/acme/widgets\n")
        (charts / "legacy.yml").write_text("version: 0.1.0\n")
        (tmp_path / "charts" / "other.yml").write_text("version: 1.0.0\n")
        change = VersionStreamChange(kind="charts", include=["acme/*"], exclude=["acme/legacy"])

        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, change)

        # Then
        widgets = yaml.safe_load((charts / "widgets.yml").read_text())
        assert widgets == {"version": "1.2.3", "gitUrl": "https://github.com/acme/widgets"}
        assert list(widgets) == ["version", "gitUrl"]
        assert yaml.safe_load((charts / "legacy.yml").read_text()) == {"version": "0.1.0"}
        assert (tmp_path / "charts" / "other.yml").read_text() == "version: 1.0.0\n"

    def test_missing_kind_dir_is_not_an_error(self, tmp_path):
        """Given no directory for the kind, should do nothing."""
        # When
        ChangeApplier("1.2.3").apply(str(tmp_path), GIT_URL, VersionStreamChange(kind="git"))

        # Then
        assert snapshot(tmp_path) == {}


class TestChangeSet:
    """Tests for applying a repository's changes in order."""

    def test_stops_at_first_failure_without_rollback(self, tmp_path):
        """Given a failing change in the middle, should keep earlier edits and skip later ones."""
        # Given
        (tmp_path / "a.txt").write_text("version=1.0.0\n")
        (tmp_path / "b.txt").write_text("version=1.0.0\n")
        change_set = ChangeSet(
            git_url=GIT_URL,
            changes=[
                RegexChange(pattern=r"version=(?P<version>.+)", files=["a.txt"]),
                CommandChange(name=sys.executable, args=["-c", "import sys; sys.exit(1)"]),
                RegexChange(pattern=r"version=(?P<version>.+)", files=["b.txt"]),
            ],
            details=PullRequestDetails(),
            applier=ChangeApplier("1.2.3"),
        )

        # When/Then
        with pytest.raises(ChangeError, match="change 1"):
            change_set.apply(str(tmp_path))

        assert (tmp_path / "a.txt").read_text() == "version=1.2.3\n"
        assert (tmp_path / "b.txt").read_text() == "version=1.0.0\n"
        assert len(change_set.applied) == 1
        assert change_set.details.title == ""

    def test_defaults_titles_after_success(self, tmp_path):
        """Given no titles, should synthesize the title and use it for the commit."""
        # Given
        change_set = ChangeSet(
            git_url=GIT_URL,
            changes=[],
            details=PullRequestDetails(),
            applier=ChangeApplier("1.2.3"),
        )

        # When
        change_set.apply(str(tmp_path))

        # Then
        assert change_set.details.title == "chore(deps): upgrade acme/widgets to version 1.2.3"
        assert change_set.commit_title == change_set.details.title

    def test_default_title_for_ssh_url(self):
        assert default_title("git@github.com:acme/widgets.git", "1.0.0") == \
            "chore(deps): upgrade acme/widgets to version 1.0.0"
