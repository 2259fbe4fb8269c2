"""Local git operations on cloned repositories."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from ..logging import get_logger

logger = get_logger("git.repository")


class GitError(RuntimeError):
    """Raised when a git command fails."""


class RepositoryManager:
    """Clones repositories and records metadata changes on a branch."""

    def __init__(
        self,
        work_dir: Path | str = "cloned_repos",
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.work_dir = Path(work_dir)
        self._runner = runner or self._default_runner

    def clone(self, repo_url: str, name: str) -> Path:
        """Shallow-clone ``repo_url`` into the work directory, replacing any old checkout."""
        self.work_dir.mkdir(parents=True, exist_ok=True)
        target = self.work_dir / name.replace(".", "_")
        if target.exists():
            shutil.rmtree(target)
        self._run(["git", "clone", "--depth", "1", repo_url, str(target)], cwd=self.work_dir)
        logger.info("Cloned %s to %s", repo_url, target)
        return target

    def create_branch(self, repo_path: Path | str, branch_name: str) -> None:
        self._run(["git", "checkout", "-b", branch_name], cwd=Path(repo_path))

    def commit_all(self, repo_path: Path | str, message: str) -> bool:
        """Stage every change and commit; returns False when nothing changed."""
        repo = Path(repo_path)
        self._run(["git", "add", "-A"], cwd=repo)
        status = self._run(["git", "status", "--porcelain"], cwd=repo, capture_output=True)
        if not status.strip():
            return False

        env = os.environ.copy()
        env.setdefault("GIT_AUTHOR_NAME", "metabot")
        env.setdefault("GIT_AUTHOR_EMAIL", "metabot@example.com")
        env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
        env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])
        self._run(["git", "commit", "-m", message], cwd=repo, env=env)
        return True

    def add_remote(self, repo_path: Path | str, name: str, url: str) -> None:
        repo = Path(repo_path)
        remotes = self._run(["git", "remote"], cwd=repo, capture_output=True).split()
        if name in remotes:
            self._run(["git", "remote", "set-url", name, url], cwd=repo)
        else:
            self._run(["git", "remote", "add", name, url], cwd=repo)

    def push_branch(self, repo_path: Path | str, remote: str, branch_name: str) -> None:
        self._run(["git", "push", "-u", remote, branch_name], cwd=Path(repo_path))

    # ------------------------------------------------------------------
    # Helpers

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, env=env, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        command = list(args)
        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd),
                env=env,
                check=True,
                text=True,
                capture_output=True,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise GitError("git executable not found") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip()
            raise GitError(f"`{' '.join(command[:3])}` failed: {detail}") from exc
        if capture_output:
            return completed.stdout
        return ""
