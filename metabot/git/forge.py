"""Pull/merge request API clients for GitHub, GitLab and Codeberg."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

GITHUB_API = "https://api.github.com"
GITLAB_API = "https://gitlab.com/api/v4"
CODEBERG_API = "https://codeberg.org/api/v1"

_GITHUB_REPO = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")
_GITLAB_PROJECT = re.compile(r"gitlab\.com[/:](.+?)(?:\.git)?/?$")
_CODEBERG_REPO = re.compile(r"codeberg\.org[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")


class ForgeError(RuntimeError):
    """Raised when a forge API call fails or a URL cannot be understood."""


@dataclass
class PullRequestOptions:
    """Fields for a new pull/merge request."""

    title: str
    description: str
    branch_name: str
    base_branch: str = "main"
    head_override: Optional[str] = None


def forge_for(repo_url: str) -> Optional[str]:
    """``github``, ``gitlab``, ``codeberg`` or None for other hosts."""
    lowered = repo_url.lower()
    for host, name in (("github.com", "github"), ("gitlab.com", "gitlab"), ("codeberg.org", "codeberg")):
        if host in lowered:
            return name
    return None


def parse_github_repo(repo_url: str) -> tuple[str, str]:
    match = _GITHUB_REPO.search(repo_url.strip())
    if not match:
        raise ForgeError(f"Invalid GitHub repository URL: {repo_url}")
    return match.group(1), match.group(2)


def parse_gitlab_project(repo_url: str) -> str:
    match = _GITLAB_PROJECT.search(repo_url.strip())
    if not match:
        raise ForgeError(f"Invalid GitLab repository URL: {repo_url}")
    return match.group(1)


def parse_codeberg_repo(repo_url: str) -> tuple[str, str]:
    match = _CODEBERG_REPO.search(repo_url.strip())
    if not match:
        raise ForgeError(f"Invalid Codeberg repository URL: {repo_url}")
    return match.group(1), match.group(2)


class ForgeClient:
    """Creates pull requests and answers the questions the push flow needs."""

    def __init__(
        self,
        *,
        github_token: str | None = None,
        gitlab_token: str | None = None,
        codeberg_token: str | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self.github_token = github_token
        self.gitlab_token = gitlab_token
        self.codeberg_token = codeberg_token
        self.request_timeout = request_timeout

    def has_token_for(self, repo_url: str) -> bool:
        forge = forge_for(repo_url)
        return bool(
            (forge == "github" and self.github_token)
            or (forge == "gitlab" and self.gitlab_token)
            or (forge == "codeberg" and self.codeberg_token)
        )

    def create_pull_request(self, repo_url: str, options: PullRequestOptions) -> str:
        """Open a PR/MR on whichever forge hosts ``repo_url`` and return its web URL."""
        forge = forge_for(repo_url)
        if forge == "github":
            return self.create_github_pr(repo_url, options)
        if forge == "gitlab":
            return self.create_gitlab_mr(repo_url, options)
        if forge == "codeberg":
            return self.create_codeberg_pr(repo_url, options)
        raise ForgeError(f"Unsupported repository hosting platform: {repo_url}")

    # GitHub -----------------------------------------------------------

    def create_github_pr(self, repo_url: str, options: PullRequestOptions) -> str:
        owner, repo = parse_github_repo(repo_url)
        payload = self._github("POST", f"/repos/{owner}/{repo}/pulls", {
            "title": options.title,
            "body": options.description,
            "head": options.head_override or options.branch_name,
            "base": options.base_branch,
        })
        return str(payload.get("html_url", ""))

    def get_github_user(self) -> str:
        return str(self._github("GET", "/user").get("login", ""))

    def get_github_default_branch(self, repo_url: str) -> Optional[str]:
        owner, repo = parse_github_repo(repo_url)
        branch = self._github("GET", f"/repos/{owner}/{repo}").get("default_branch")
        return str(branch) if branch else None

    def fork_github_repo(self, repo_url: str) -> str:
        """Request a fork and return the owner it will live under."""
        owner, repo = parse_github_repo(repo_url)
        payload = self._github("POST", f"/repos/{owner}/{repo}/forks", {})
        fork_owner = payload.get("owner")
        if isinstance(fork_owner, dict) and fork_owner.get("login"):
            return str(fork_owner["login"])
        return ""

    def _github(self, method: str, path: str, body: Dict[str, Any] | None = None) -> Dict[str, Any]:
        if not self.github_token:
            raise ForgeError("GitHub token not configured")
        headers = {
            "Authorization": f"token {self.github_token}",
            "Accept": "application/vnd.github.v3+json",
        }
        return self._request(method, f"{GITHUB_API}{path}", headers, body, label="GitHub")

    # GitLab -----------------------------------------------------------

    def create_gitlab_mr(self, repo_url: str, options: PullRequestOptions) -> str:
        if not self.gitlab_token:
            raise ForgeError("GitLab token not configured")
        project = quote(parse_gitlab_project(repo_url), safe="")
        payload = self._request(
            "POST",
            f"{GITLAB_API}/projects/{project}/merge_requests",
            {"Authorization": f"Bearer {self.gitlab_token}"},
            {
                "source_branch": options.branch_name,
                "target_branch": options.base_branch,
                "title": options.title,
                "description": options.description,
            },
            label="GitLab",
        )
        return str(payload.get("web_url", ""))

    # Codeberg ---------------------------------------------------------

    def create_codeberg_pr(self, repo_url: str, options: PullRequestOptions) -> str:
        if not self.codeberg_token:
            raise ForgeError("Codeberg token not configured")
        owner, repo = parse_codeberg_repo(repo_url)
        payload = self._request(
            "POST",
            f"{CODEBERG_API}/repos/{owner}/{repo}/pulls",
            {"Authorization": f"token {self.codeberg_token}"},
            {
                "title": options.title,
                "body": options.description,
                "head": options.head_override or options.branch_name,
                "base": options.base_branch,
            },
            label="Codeberg",
        )
        return str(payload.get("html_url", ""))

    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Dict[str, Any] | None,
        *,
        label: str,
    ) -> Dict[str, Any]:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        all_headers = dict(headers)
        if data is not None:
            all_headers["Content-Type"] = "application/json"
        request = Request(url, data=data, headers=all_headers, method=method)
        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            raise ForgeError(f"{label} request failed: {exc.code} {detail.strip()}") from exc
        except URLError as exc:
            raise ForgeError(f"{label} request failed: {exc.reason}") from exc
        if not raw:
            return {}
        try:
            payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise ForgeError(f"{label} returned invalid JSON") from exc
        return payload if isinstance(payload, dict) else {}


__all__ = [
    "ForgeClient",
    "ForgeError",
    "PullRequestOptions",
    "forge_for",
    "parse_codeberg_repo",
    "parse_github_repo",
    "parse_gitlab_project",
]
