"""Configuration for the updatebot pr command."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .errors import ConfigError, MissingOptionError
from .models import UpdateConfig, load_update_config
from .tools import GitTool, git_server_url
from .utils import get_logger

DEFAULT_CONFIG_FILE = os.path.join(".jx", "updatebot.yaml")
DEFAULT_GIT_USERNAME = "updatebot"


@dataclass
class PullRequestOptions:
    """Options for creating pull requests on downstream repositories."""

    dir: str = "."
    config_file: str = ""
    version: str = ""
    version_file: str = ""

    # Pull request and commit text
    pull_request_title: str = ""
    pull_request_body: str = ""
    commit_title: str = ""
    commit_message: str = ""
    labels: List[str] = field(default_factory=list)
    base_branch: str = ""

    # Behavior
    auto_merge: bool = True
    merge_method: str = "squash"   # squash, merge, rebase
    no_version: bool = False       # Don't require a version
    git_credentials: bool = False  # Write a git credentials file

    # Git identity
    git_user_name: str = ""
    git_user_email: str = ""

    # Git provider
    git_server: str = ""
    git_token: str = ""
    git_username: str = ""

    update_config: UpdateConfig = field(default_factory=UpdateConfig)

    @classmethod
    def from_args(cls, args) -> "PullRequestOptions":
        """Create options from parsed command line arguments."""
        labels = []
        for value in args.labels or []:
            labels.extend(label.strip() for label in value.split(",") if label.strip())

        return cls(
            dir=args.dir,
            config_file=args.config_file or "",
            version=args.version or "",
            version_file=args.version_file or "",
            pull_request_title=args.pull_request_title or "",
            pull_request_body=args.pull_request_body or "",
            commit_title=args.commit_title or "",
            commit_message=args.commit_message or "",
            labels=labels,
            base_branch=args.base_branch or "",
            auto_merge=args.auto_merge,
            merge_method=args.merge_method,
            no_version=args.no_version,
            git_credentials=args.git_credentials,
            git_user_name=args.git_user_name or "",
            git_user_email=args.git_user_email or "",
            git_server=args.git_server or "",
            git_token=args.git_token or "",
            git_username=args.git_username or "",
        )

    def validate(self, git: Optional[GitTool] = None) -> None:
        """
        Resolve the version, load the config file and set up git.

        Raises:
            ConfigError: If a required option is missing or invalid
        """
        git = git or GitTool()
        self.resolve_version()
        self.load_config()
        self.setup_git(git)

    def resolve_version(self) -> str:
        """
        Resolve the version to promote.

        Precedence: --version, then the version file, then $VERSION.

        Raises:
            MissingOptionError: If no version is found and one is required
        """
        logger = get_logger(__name__)
        if not self.version:
            if not self.version_file:
                self.version_file = os.path.join(self.dir, "VERSION")
            path = Path(self.version_file)
            if path.is_file():
                try:
                    self.version = path.read_text().strip()
                except OSError as e:
                    raise ConfigError(f"failed to read version file {path}: {e}") from e
            else:
                logger.info(f"version file {path} does not exist")

        if not self.version:
            self.version = os.environ.get("VERSION", "")
            if not self.version and not self.no_version:
                raise MissingOptionError("version")
        return self.version

    def load_config(self) -> UpdateConfig:
        """Load the rules file, tolerating its absence."""
        logger = get_logger(__name__)
        if not self.config_file:
            self.config_file = os.path.join(self.dir, DEFAULT_CONFIG_FILE)

        if os.path.isfile(self.config_file):
            self.update_config = load_update_config(self.config_file)
        else:
            logger.warning(
                f"file {self.config_file} does not exist so cannot create any updatebot Pull Requests"
            )
        return self.update_config

    def setup_git(self, git: GitTool) -> None:
        """Set up the commit identity, the git provider token and credentials."""
        logger = get_logger(__name__)

        self.git_user_name, self.git_user_email = git.ensure_user_and_email_setup(
            self.dir, self.git_user_name, self.git_user_email
        )

        if not self.git_token:
            if not self.git_server:
                remote = git.remote_url(self.dir, "origin")
                if remote:
                    self.git_server = git_server_url(remote) or ""
            if not self.git_server:
                raise ConfigError("no git-server could be found")
            self.git_token = os.environ.get("GIT_TOKEN") or os.environ.get("GITHUB_TOKEN") or ""
            if not self.git_token:
                raise ConfigError(f"failed to find git token for {self.git_server}. Try setting GIT_TOKEN or GITHUB_TOKEN")

        if not self.git_username:
            self.git_username = os.environ.get("GIT_USERNAME", "") or DEFAULT_GIT_USERNAME

        if self.git_credentials:
            if not self.git_token:
                raise ConfigError("missing git token environment variable. Try setting GIT_TOKEN or GITHUB_TOKEN")
            git.setup_credentials(self.git_username, self.git_token, self.git_server or "https://github.com")
            logger.info(
                f"setup git credentials file for user {self.git_username} and email {self.git_user_email}"
            )
