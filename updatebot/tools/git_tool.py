"""Git command wrapper for checkout, commit and push operations."""

import os
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote, urlparse, urlunparse

from ..errors import CommandError, ConfigError
from ..utils import get_logger
from .command_runner import CommandRunner

DEFAULT_USER_NAME = "updatebot"
DEFAULT_USER_EMAIL = "updatebot@users.noreply.github.com"


def repository_full_name(git_url: str) -> str:
    """
    Get "owner/repo" from a git URL.

    Uses the last two path segments, so it works for https and ssh URLs.

    Raises:
        ConfigError: If the URL has no owner and repository
    """
    url = git_url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]
    parts = url.replace(":", "/").split("/")
    if len(parts) < 2 or not parts[-1] or not parts[-2]:
        raise ConfigError(f"cannot find owner and repository in git URL {git_url}")
    return f"{parts[-2]}/{parts[-1]}"


def git_server_url(remote_url: str) -> Optional[str]:
    """Get the server URL (scheme and host) of a git remote URL."""
    remote_url = remote_url.strip()
    if not remote_url:
        return None

    # scp-like ssh syntax: git@github.com:owner/repo.git
    if "://" not in remote_url and ":" in remote_url:
        host = remote_url.split(":", 1)[0].split("@")[-1]
        return f"https://{host}" if host else None

    parsed = urlparse(remote_url)
    if not parsed.hostname:
        return None
    scheme = parsed.scheme if parsed.scheme in ("http", "https") else "https"
    host = parsed.hostname
    if parsed.port and scheme == parsed.scheme:
        host = f"{host}:{parsed.port}"
    return f"{scheme}://{host}"


def authenticated_url(git_url: str, username: str, token: Optional[str]) -> str:
    """Embed credentials into an https git URL so it can be pushed to."""
    if not token:
        return git_url
    parsed = urlparse(git_url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return git_url
    netloc = f"{quote(username or 'git', safe='')}:{quote(token, safe='')}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


class GitTool:
    """
    Wrapper around the git binary.

    Handles:
    - Cloning and branching
    - Detecting, committing and pushing changes
    - Commit identity and credentials setup
    """

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()
        self.logger = get_logger(__name__)

    def _git(self, dir: Optional[str], *args: str) -> str:
        return self.runner.run(["git", *args], cwd=dir)

    def clone(self, git_url: str, dir: str) -> None:
        """Clone a repository into dir."""
        self._git(None, "clone", git_url, dir)

    def checkout_branch(self, dir: str, branch: str, base: str) -> None:
        """Create (or reset) a branch starting at the remote base branch."""
        self._git(dir, "checkout", "-B", branch, f"origin/{base}")

    def has_changes(self, dir: str) -> bool:
        """Check if the working tree has uncommitted changes."""
        return bool(self._git(dir, "status", "--porcelain"))

    def commit_all(self, dir: str, title: str, message: str = "") -> None:
        """Stage everything and commit it."""
        self._git(dir, "add", "--all")
        text = title if not message else f"{title}\n\n{message}"
        self._git(dir, "commit", "-m", text)

    def add_remote(self, dir: str, name: str, git_url: str) -> None:
        self._git(dir, "remote", "add", name, git_url)

    def push(self, dir: str, remote: str, branch: str, force: bool = False) -> None:
        """Push a branch to a remote."""
        args = ["push", remote, f"HEAD:refs/heads/{branch}"]
        if force:
            args.append("--force")
        self._git(dir, *args)

    def head_sha(self, dir: str) -> str:
        return self._git(dir, "rev-parse", "HEAD")

    def remote_url(self, dir: str, remote: str = "origin") -> Optional[str]:
        """Get the URL of a remote, or None if dir is not a git checkout."""
        try:
            url = self._git(dir, "remote", "get-url", remote)
        except CommandError:
            return None
        return url or None

    def get_config(self, dir: str, key: str) -> str:
        """Get a git config value, or "" if unset."""
        try:
            return self._git(dir, "config", "--get", key)
        except CommandError:
            return ""

    def set_config(self, dir: str, key: str, value: str, global_config: bool = False) -> None:
        if global_config:
            self._git(dir, "config", "--global", key, value)
        else:
            self._git(dir, "config", key, value)

    def ensure_user_and_email_setup(
        self,
        dir: str,
        username: str = "",
        email: str = ""
    ) -> Tuple[str, str]:
        """
        Make sure git has a commit identity.

        Args:
            dir: Directory to read git config from
            username: Preferred user name
            email: Preferred user email

        Returns:
            Tuple of (username, email) in use
        """
        current_name = self.get_config(dir, "user.name")
        current_email = self.get_config(dir, "user.email")

        username = username or current_name or DEFAULT_USER_NAME
        email = email or current_email or DEFAULT_USER_EMAIL

        if username != current_name:
            self.set_config(dir, "user.name", username, global_config=True)
        if email != current_email:
            self.set_config(dir, "user.email", email, global_config=True)
        return username, email

    def setup_credentials(
        self,
        username: str,
        token: str,
        server_url: str = "https://github.com",
        home: Optional[str] = None
    ) -> Path:
        """
        Write a git credentials file and enable the store helper.

        Returns:
            Path of the credentials file
        """
        if not token:
            raise ConfigError("missing git token environment variable. Try setting GIT_TOKEN or GITHUB_TOKEN")

        parsed = urlparse(server_url)
        host = parsed.netloc or parsed.path
        scheme = parsed.scheme or "https"
        line = f"{scheme}://{quote(username, safe='')}:{quote(token, safe='')}@{host}\n"

        path = Path(home or os.path.expanduser("~")) / ".git-credentials"
        existing = path.read_text().splitlines(keepends=True) if path.exists() else []
        # Replace any earlier entry for the same host
        kept = [entry for entry in existing if not entry.rstrip().endswith(f"@{host}")]
        path.write_text("".join(kept) + line)
        os.chmod(path, 0o600)

        self.set_config(None, "credential.helper", "store", global_config=True)
        return path

    def find_git_url_from_dir(self, dir: str) -> Optional[str]:
        """Discover the origin URL of the checkout in dir."""
        return self.remote_url(dir, "origin")
