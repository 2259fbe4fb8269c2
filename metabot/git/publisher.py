"""Pushes a metadata branch and opens the pull/merge request."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..logging import get_logger
from .forge import ForgeClient, ForgeError, PullRequestOptions, forge_for, parse_github_repo
from .repository import GitError, RepositoryManager


@dataclass
class PublishResult:
    """What happened to a branch after publishing."""

    pushed: bool
    pr_url: Optional[str] = None
    head: Optional[str] = None
    base_branch: Optional[str] = None


class Publisher:
    """Handles push-or-fork and PR creation for metadata branches."""

    def __init__(
        self,
        repository: RepositoryManager,
        forge: ForgeClient,
        *,
        push_attempts: int = 5,
        fork_wait_attempts: int = 10,
        fork_wait_interval: float = 2.0,
        backoff_step: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.repository = repository
        self.forge = forge
        self.push_attempts = max(1, push_attempts)
        self.fork_wait_attempts = fork_wait_attempts
        self.fork_wait_interval = fork_wait_interval
        self.backoff_step = backoff_step
        self._sleep = sleep
        self.logger = get_logger("git.publisher")

    def publish(
        self,
        repo_path: Path | str,
        repo_url: str,
        branch_name: str,
        *,
        title: str,
        body: str,
        base_branch: str | None = None,
    ) -> PublishResult:
        """Push ``branch_name`` and open a PR; a missing token leaves the branch local."""
        if not self.forge.has_token_for(repo_url):
            self.logger.warning("No forge token configured for %s; pull request creation skipped", repo_url)
            return PublishResult(pushed=False)

        forge = forge_for(repo_url)
        base = base_branch or self._default_branch(repo_url, forge) or "main"
        head_override: Optional[str] = None
        if forge == "github":
            head_override = self._push_github(repo_path, repo_url, branch_name)
        else:
            self._push_with_retries(repo_path, "origin", branch_name)

        pr_url = self.forge.create_pull_request(
            repo_url,
            PullRequestOptions(
                title=title,
                description=body,
                branch_name=branch_name,
                base_branch=base,
                head_override=head_override,
            ),
        )
        self.logger.info("Pull request created: %s", pr_url)
        return PublishResult(
            pushed=True,
            pr_url=pr_url,
            head=head_override or branch_name,
            base_branch=base,
        )

    # ------------------------------------------------------------------
    # Helpers

    def _default_branch(self, repo_url: str, forge: str | None) -> Optional[str]:
        if forge != "github":
            return None
        try:
            return self.forge.get_github_default_branch(repo_url)
        except ForgeError as exc:
            self.logger.warning("Could not fetch default branch, falling back to 'main': %s", exc)
            return None

    def _push_github(self, repo_path: Path | str, repo_url: str, branch_name: str) -> Optional[str]:
        owner, _ = parse_github_repo(repo_url)
        try:
            user = self.forge.get_github_user()
        except ForgeError as exc:
            self.logger.warning("Could not determine GitHub user: %s", exc)
            user = ""

        if user and user != owner:
            self.logger.info("Forking %s (no direct push rights)", repo_url)
            return self._push_to_fork(repo_path, repo_url, branch_name, user)

        try:
            self._push_with_retries(repo_path, "origin", branch_name)
        except GitError as exc:
            self.logger.warning("Direct push failed (%s); attempting fork", exc)
            return self._push_to_fork(repo_path, repo_url, branch_name, user or owner)
        return None

    def _push_to_fork(
        self, repo_path: Path | str, repo_url: str, branch_name: str, fallback_owner: str
    ) -> str:
        _, repo = parse_github_repo(repo_url)
        fork_owner = self.forge.fork_github_repo(repo_url) or fallback_owner
        if not self._wait_for_fork(fork_owner, repo):
            self.logger.warning("Fork readiness timeout, attempting push anyway")
        self.repository.add_remote(repo_path, "fork", f"https://github.com/{fork_owner}/{repo}.git")
        self._push_with_retries(repo_path, "fork", branch_name)
        return f"{fork_owner}:{branch_name}"

    def _wait_for_fork(self, owner: str, repo: str) -> bool:
        fork_url = f"https://github.com/{owner}/{repo}"
        for _ in range(self.fork_wait_attempts):
            try:
                if self.forge.get_github_default_branch(fork_url):
                    return True
            except ForgeError:
                pass
            self._sleep(self.fork_wait_interval)
        return False

    def _push_with_retries(self, repo_path: Path | str, remote: str, branch_name: str) -> None:
        for attempt in range(1, self.push_attempts + 1):
            try:
                self.repository.push_branch(repo_path, remote, branch_name)
                return
            except GitError as exc:
                if attempt == self.push_attempts:
                    raise GitError(f"Failed to push after {self.push_attempts} attempts: {exc}") from exc
                backoff = attempt * self.backoff_step
                self.logger.warning("Push attempt %d failed (%s). Retrying in %.0fs", attempt, exc, backoff)
                self._sleep(backoff)
