"""Shared fakes for git and the git provider.

Only the external services are faked; changes, rules and reconciliation
logic run for real.
"""

import dataclasses
import os
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from github import GithubException

from updatebot.models import LABEL_UPDATEBOT, PullRequest, PullRequestDetails, PullRequestFilter
from updatebot.tools import repository_full_name


def make_repo(full_name: str, archived: bool = False) -> SimpleNamespace:
    owner, name = full_name.split("/")
    return SimpleNamespace(
        name=name,
        full_name=full_name,
        clone_url=f"https://github.com/{full_name}.git",
        default_branch="main",
        archived=archived,
        owner=SimpleNamespace(login=owner),
    )


def read_tree(root: str) -> Dict[str, str]:
    tree = {}
    for path in Path(root).rglob("*"):
        if path.is_file():
            tree[path.relative_to(root).as_posix()] = path.read_text()
    return tree


class FakeGit:
    """Stands in for GitTool; 'cloning' writes a fixed file tree."""

    def __init__(self, files: Optional[Dict[str, str]] = None, remote: Optional[str] = None):
        self.files = files or {}
        self.remote = remote
        self.calls: List[tuple] = []
        self.pushes: List[dict] = []
        self.commits: List[dict] = []
        self.credentials: List[tuple] = []
        self._committed: Dict[str, Dict[str, str]] = {}

    def clone(self, git_url: str, dir: str) -> None:
        self.calls.append(("clone", git_url, dir))
        for name, content in self.files.items():
            path = Path(dir) / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        self._committed[dir] = read_tree(dir)

    def checkout_branch(self, dir: str, branch: str, base: str) -> None:
        self.calls.append(("checkout", branch, base))

    def has_changes(self, dir: str) -> bool:
        return read_tree(dir) != self._committed[dir]

    def commit_all(self, dir: str, title: str, message: str = "") -> None:
        self.commits.append({"title": title, "message": message, "tree": read_tree(dir)})
        self._committed[dir] = read_tree(dir)

    def add_remote(self, dir: str, name: str, git_url: str) -> None:
        self.calls.append(("remote", name, git_url))

    def push(self, dir: str, remote: str, branch: str, force: bool = False) -> None:
        self.pushes.append({"remote": remote, "branch": branch, "force": force})

    def head_sha(self, dir: str) -> str:
        return f"sha-{len(self.commits)}"

    def remote_url(self, dir: str, remote: str = "origin") -> Optional[str]:
        return self.remote

    def find_git_url_from_dir(self, dir: str) -> Optional[str]:
        return self.remote

    def ensure_user_and_email_setup(self, dir: str, username: str = "", email: str = ""):
        return username or "updatebot", email or "updatebot@users.noreply.github.com"

    def setup_credentials(self, username: str, token: str, server_url: str = "https://github.com", home=None):
        self.credentials.append((username, token, server_url))
        return Path(home or ".") / ".git-credentials"


class FakeGitHub:
    """Stands in for GitHubTool with in-memory repositories and pull requests."""

    def __init__(self):
        self.repos: Dict[str, SimpleNamespace] = {}
        self.open_prs: Dict[str, List[PullRequest]] = {}
        self.owner_repos: Dict[str, List[SimpleNamespace]] = {}
        self.files: Dict[tuple, str] = {}
        self.created: List[dict] = []
        self.updated: List[int] = []
        self.auto_merged: List[tuple] = []
        self.forked: List[str] = []
        self.failing_owners: List[str] = []
        self._next_number = 1

    def get_repository(self, git_url: str) -> SimpleNamespace:
        full_name = repository_full_name(git_url)
        if full_name not in self.repos:
            self.repos[full_name] = make_repo(full_name)
        return self.repos[full_name]

    def get_fork(self, repo) -> SimpleNamespace:
        self.forked.append(repo.full_name)
        return make_repo(f"updatebot/{repo.name}")

    def find_open_pull_request(self, repo, labels: List[str], git_url: str = "") -> Optional[PullRequest]:
        for pr in self.open_prs.get(repo.full_name, []):
            if set(labels).issubset(pr.labels):
                return dataclasses.replace(pr, labels=list(pr.labels), reused=True)
        return None

    def create_pull_request(self, repo, head: str, base: str, details: PullRequestDetails, git_url: str = ""):
        number = self._next_number
        self._next_number += 1
        pr = PullRequest(
            number=number,
            url=f"https://github.com/{repo.full_name}/pull/{number}",
            git_url=git_url,
            source_branch=head.split(":")[-1],
            title=details.title,
        )
        self.open_prs.setdefault(repo.full_name, []).append(pr)
        self.created.append({"repo": repo.full_name, "head": head, "base": base, "title": details.title})
        return dataclasses.replace(pr, labels=[])

    def update_pull_request(self, repo, number: int, details: PullRequestDetails, git_url: str = ""):
        self.updated.append(number)
        pr = self._find(repo, number)
        pr.title = details.title
        return dataclasses.replace(pr, labels=list(pr.labels), reused=True)

    def add_labels(self, repo, number: int, labels: List[str]) -> None:
        pr = self._find(repo, number)
        for label in labels:
            if label not in pr.labels:
                pr.labels.append(label)

    def enable_auto_merge(self, repo, number: int, merge_method: str = "squash") -> bool:
        self.auto_merged.append((number, merge_method))
        return True

    def list_owner_repositories(self, owner: str):
        if owner in self.failing_owners:
            raise GithubException(500, {"message": "server error"}, None)
        return self.owner_repos.get(owner, [])

    def read_file(self, repo, path: str) -> Optional[str]:
        return self.files.get((repo.full_name, path))

    def _find(self, repo, number: int) -> PullRequest:
        for pr in self.open_prs.get(repo.full_name, []):
            if pr.number == number:
                return pr
        raise GithubException(404, {"message": "Not Found"}, None)


class FakeReconciler:
    """Records every create() call; applies the change set to a scratch dir."""

    def __init__(self, work_dir: str):
        self.work_dir = work_dir
        self.branch_name = ""
        self.calls: List[dict] = []
        self.no_changes_for: List[str] = []
        self.open_prs: Dict[str, PullRequest] = {}

    def create(self, git_url, base_branch, details, auto_merge, change_set,
               fork=False, pull_request_filter: Optional[PullRequestFilter] = None):
        self.calls.append({
            "git_url": git_url,
            "branch_name": self.branch_name,
            "details": details,
            "auto_merge": auto_merge,
            "fork": fork,
            "filter_labels": list(pull_request_filter.labels) if pull_request_filter else [],
            "change_set": change_set,
        })

        repo_dir = os.path.join(self.work_dir, str(len(self.calls)))
        os.makedirs(repo_dir, exist_ok=True)
        change_set.apply(repo_dir)

        if git_url in self.no_changes_for:
            return None

        existing = self.open_prs.get(git_url)
        if existing and pull_request_filter and set(pull_request_filter.labels).issubset(existing.labels):
            self.branch_name = existing.source_branch
            return dataclasses.replace(existing, title=details.title, reused=True)

        self.branch_name = f"updatebot-{len(self.calls)}"
        labels = details.label_names + ([LABEL_UPDATEBOT] if auto_merge else [])
        pr = PullRequest(
            number=len(self.calls),
            url=f"{git_url}/pull/{len(self.calls)}",
            git_url=git_url,
            source_branch=self.branch_name,
            title=details.title,
            sha=f"sha-{len(self.calls)}",
            labels=labels,
        )
        self.open_prs[git_url] = pr
        return pr


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def fake_reconciler(tmp_path):
    return FakeReconciler(str(tmp_path / "checkouts"))
