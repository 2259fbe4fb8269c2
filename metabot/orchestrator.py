"""End-to-end pipeline: catalog entry to pull request."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .catalog.flathub import AppInfo, CatalogError, FlathubClient, flathub_repo_url, repository_url
from .config import MetabotConfig, load_config
from .discovery import MetadataDiscovery
from .generation.cleanup import GenerationError
from .generation.generator import MetadataGenerator
from .git.forge import ForgeClient
from .git.publisher import PublishResult, Publisher
from .git.repository import GitError, RepositoryManager
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import Document, DocumentReport, FieldName, FieldStatus, FieldValues
from .patching.orchestrator import PatchOrchestrator
from .patching.patcher import FieldPatcher

MODES: Dict[str, tuple[FieldName, ...]] = {
    "all": (FieldName.KEYWORDS, FieldName.SUMMARY, FieldName.DESCRIPTION),
    "keywords": (FieldName.KEYWORDS,),
    "summary": (FieldName.SUMMARY,),
    "description": (FieldName.DESCRIPTION,),
}

DECISIONS = ("accept", "regenerate", "skip", "quit")

Approver = Callable[[FieldName, object], str]


class RunCancelled(RuntimeError):
    """Raised when the user quits during approval."""


def accept_all(field: FieldName, value: object) -> str:
    return "accept"


@dataclass
class RunOutcome:
    """Summary of one ``metabot run``."""

    app_id: str
    values: FieldValues
    repo_path: Optional[Path] = None
    repo_url: Optional[str] = None
    branch_name: Optional[str] = None
    reports: List[DocumentReport] = field(default_factory=list)
    publish: Optional[PublishResult] = None
    dry_run: bool = False


def build_commit_message(app_id: str, values: FieldValues) -> str:
    items: List[str] = []
    if values.keywords is not None:
        items.append(f"Keywords: {', '.join(values.keywords)}")
    if values.summary is not None:
        items.append(f"Summary: {values.summary}")
    if values.description is not None:
        items.append("Description: Updated")
    listing = "\n".join(f"- {item}" for item in items)
    return f"Update metadata for {app_id}\n\nAutomatically generated:\n{listing}"


def describe_reports(reports: Sequence[DocumentReport], root: Path | None = None) -> List[str]:
    """One line per document listing each field's status."""
    lines: List[str] = []
    for report in reports:
        path = Path(report.document.path)
        if root is not None:
            try:
                path = path.resolve().relative_to(Path(root).resolve())
            except ValueError:
                pass
        statuses = ", ".join(f"{o.field.value} {o.status.value}" for o in report.outcomes)
        lines.append(f"- `{path.as_posix()}`: {statuses or 'no changes'}")
    return lines


def build_pr_body(
    app: AppInfo,
    values: FieldValues,
    reports: Sequence[DocumentReport],
    root: Path | None = None,
) -> str:
    changes: List[str] = []
    if values.keywords is not None:
        listing = "\n".join(f"- {k}" for k in values.keywords)
        changes.append(f"**Generated keywords:**\n{listing}")
    if values.summary is not None:
        changes.append(f"**Generated summary:**\n> {values.summary}")
    if values.description is not None:
        changes.append(f"**Generated description:**\n\n{values.description}")
    files = "\n".join(describe_reports(reports, root))
    return (
        f"This PR updates the metadata to improve discoverability and user experience for {app.name}.\n\n"
        + "\n\n".join(changes)
        + f"\n\n**Files:**\n{files}\n\nGenerated by metabot"
    )


class Orchestrator:
    """Coordinates generation, patching and publishing for one application."""

    def __init__(
        self,
        config: MetabotConfig | None = None,
        *,
        catalog: FlathubClient | None = None,
        generator: MetadataGenerator | None = None,
        repository: RepositoryManager | None = None,
        discovery: MetadataDiscovery | None = None,
        patch_orchestrator: PatchOrchestrator | None = None,
        publisher: Publisher | None = None,
        approve: Approver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or load_config(Path.cwd())
        self.catalog = catalog or FlathubClient(
            self.config.catalog.base_url, request_timeout=self.config.catalog.request_timeout
        )
        self._generator = generator
        self.repository = repository or RepositoryManager(self.config.work_dir)
        self.discovery = discovery or MetadataDiscovery(self.config.discovery.exclude_paths)
        self.patch_orchestrator = patch_orchestrator or PatchOrchestrator(
            FieldPatcher(self.config.patch), self.config.patch
        )
        self._publisher = publisher
        self.approve = approve or accept_all
        self._clock = clock
        self.logger = get_logger("orchestrator")

    @property
    def generator(self) -> MetadataGenerator:
        if self._generator is None:
            llm = self.config.llm
            runner = LLMRunner(
                llm.provider,
                llm.model,
                base_url=llm.base_url,
                api_key=llm.api_key,
                temperature=llm.temperature,
                request_timeout=llm.request_timeout,
            )
            self._generator = MetadataGenerator(runner, catalog=self.catalog, config=self.config.patch)
        return self._generator

    @property
    def publisher(self) -> Publisher:
        if self._publisher is None:
            publish = self.config.publish
            forge = ForgeClient(
                github_token=publish.github_token,
                gitlab_token=publish.gitlab_token,
                codeberg_token=publish.codeberg_token,
            )
            self._publisher = Publisher(
                self.repository,
                forge,
                push_attempts=publish.push_attempts,
                fork_wait_attempts=publish.fork_wait_attempts,
            )
        return self._publisher

    def run(self, app_id: str, mode: str = "all", *, dry_run: bool = False) -> RunOutcome | None:
        """Generate, approve, patch and publish; None when nothing was accepted."""
        if mode not in MODES:
            raise ValueError(f"Invalid mode: {mode}. Valid modes are: {', '.join(MODES)}")

        self.logger.info("Processing app %s (mode: %s)", app_id, mode)
        app = self.catalog.get_appstream(app_id)
        self.logger.info("Found %s: %s", app.name, app.summary or "")

        values = self.generate(app, MODES[mode])
        if not values.requested():
            self.logger.warning("No metadata changes were accepted")
            return None
        values = self.patch_orchestrator.prepare(values)

        repo_path, repo_url, documents = self.locate(app)
        reports = self.patch_orchestrator.run(documents, values, dry_run=dry_run)
        outcome = RunOutcome(
            app_id=app_id,
            values=values,
            repo_path=repo_path,
            repo_url=repo_url,
            reports=reports,
            dry_run=dry_run,
        )
        failed = [o for r in reports for o in r.outcomes if o.status is FieldStatus.FAILED]
        if failed:
            self.logger.warning("%d field patch(es) failed; continuing with the rest", len(failed))
        if dry_run:
            return outcome

        branch_name = f"{self.config.publish.branch_prefix}{mode}-{int(self._clock() * 1000)}"
        self.repository.create_branch(repo_path, branch_name)
        outcome.branch_name = branch_name
        if not self.repository.commit_all(repo_path, build_commit_message(app_id, values)):
            self.logger.warning("Metadata already up to date; nothing to commit")
            return outcome
        self.logger.info("Created branch %s", branch_name)

        outcome.publish = self.publisher.publish(
            repo_path,
            repo_url,
            branch_name,
            title=f"Update metadata for {app_id}",
            body=build_pr_body(app, values, reports, repo_path),
            base_branch=self.config.publish.base_branch,
        )
        if not outcome.publish.pushed:
            self.logger.info("Changes are ready in branch '%s' at %s", branch_name, repo_path)
        return outcome

    def generate(self, app: AppInfo, fields: Sequence[FieldName]) -> FieldValues:
        """Generate each field until it is accepted or skipped."""
        generators: Dict[FieldName, Callable[[AppInfo], object]] = {
            FieldName.KEYWORDS: self.generator.generate_keywords,
            FieldName.SUMMARY: self.generator.generate_summary,
            FieldName.DESCRIPTION: self.generator.generate_description,
        }
        values = FieldValues()
        for name in fields:
            while True:
                self.logger.info("Generating %s...", name.value)
                value = generators[name](app)
                if name is FieldName.KEYWORDS and not value:
                    raise GenerationError("No keywords were generated; check the LLM configuration")
                decision = self.approve(name, value)
                if decision == "accept":
                    setattr(values, name.value, value)
                    break
                if decision == "skip":
                    self.logger.info("Skipping %s", name.value)
                    break
                if decision == "quit":
                    raise RunCancelled("Cancelled by user")
                self.logger.info("Regenerating %s...", name.value)
        return values

    def locate(self, app: AppInfo) -> tuple[Path, str, List[Document]]:
        """Clone the Flathub packaging repo, falling back to upstream, and find metadata."""
        flathub_url = flathub_repo_url(app.id)
        try:
            path = self.repository.clone(flathub_url, f"{app.id}_flathub")
        except GitError as exc:
            self.logger.warning("Could not access Flathub repo: %s", exc)
        else:
            documents = self.discovery.find(path, app.id)
            if documents:
                self.logger.info("Using Flathub repository (%d file(s))", len(documents))
                return path, flathub_url, documents
            self.logger.warning("No metadata files found in Flathub repo")

        upstream_url = repository_url(app)
        if not upstream_url:
            raise CatalogError("No upstream repository URL found in appstream data")
        path = self.repository.clone(upstream_url, f"{app.id}_upstream")
        documents = self.discovery.find(path, app.id)
        if not documents:
            raise FileNotFoundError("No metadata files found in either repository")
        self.logger.info("Using upstream repository (%d file(s))", len(documents))
        return path, upstream_url, documents


__all__ = [
    "DECISIONS",
    "MODES",
    "Orchestrator",
    "RunCancelled",
    "RunOutcome",
    "accept_all",
    "build_commit_message",
    "build_pr_body",
    "describe_reports",
]
