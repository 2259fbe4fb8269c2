"""Configuration loading for metabot (.metabot.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".metabot.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class PatchConfig:
    """Formatting and limits applied by the field patcher."""

    indent_width: int = 4
    max_keywords: int = 8
    summary_max_length: int = 35
    skip_templates: bool = False
    prefer_component_keywords: bool = True

    @property
    def indent(self) -> str:
        return " " * self.indent_width


@dataclass
class LLMConfig:
    """Language model settings."""

    provider: str = "ollama"
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = 0.7
    request_timeout: Optional[float] = 120.0


@dataclass
class PublishConfig:
    """Branch naming and forge credentials for pull requests."""

    branch_prefix: str = ""
    base_branch: Optional[str] = None
    github_token: Optional[str] = None
    gitlab_token: Optional[str] = None
    codeberg_token: Optional[str] = None
    push_attempts: int = 5
    fork_wait_attempts: int = 10


@dataclass
class CatalogConfig:
    """Remote catalog API settings."""

    base_url: str = "https://flathub.org/api/v2"
    request_timeout: float = 30.0


@dataclass
class DiscoveryConfig:
    """Metadata file discovery exclusions."""

    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class MetabotConfig:
    """Represents the high-level settings defined in .metabot.yml."""

    root: Path
    work_dir: Path = Path("cloned_repos")
    patch: PatchConfig = field(default_factory=PatchConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)


def load_config(
    config_path: Path, *, environ: Mapping[str, str] | None = None
) -> MetabotConfig:
    """Load configuration from disk and apply environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = MetabotConfig(root=root)

    work_dir = _as_str(data.get("work_dir"))
    if work_dir:
        config.work_dir = root / work_dir
    else:
        config.work_dir = root / config.work_dir

    patch_data = _as_dict(data.get("patch"))
    if patch_data:
        patch = config.patch
        patch.indent_width = _as_int(patch_data.get("indent_width")) or patch.indent_width
        patch.max_keywords = _as_int(patch_data.get("max_keywords")) or patch.max_keywords
        patch.summary_max_length = (
            _as_int(patch_data.get("summary_max_length")) or patch.summary_max_length
        )
        skip_templates = _as_bool(patch_data.get("skip_templates"))
        if skip_templates is not None:
            patch.skip_templates = skip_templates
        prefer = _as_bool(patch_data.get("prefer_component_keywords"))
        if prefer is not None:
            patch.prefer_component_keywords = prefer

    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        llm = config.llm
        llm.provider = (_as_str(llm_data.get("provider")) or llm.provider).lower()
        llm.model = _as_str(llm_data.get("model"))
        llm.base_url = _as_str(llm_data.get("base_url"))
        llm.api_key = _as_str(llm_data.get("api_key"))
        temperature = _as_float(llm_data.get("temperature"))
        if temperature is not None:
            llm.temperature = temperature
        timeout = _as_float(llm_data.get("request_timeout"))
        if timeout is not None:
            llm.request_timeout = timeout

    publish_data = _as_dict(data.get("publish"))
    if publish_data:
        publish = config.publish
        publish.branch_prefix = _as_str(publish_data.get("branch_prefix")) or ""
        publish.base_branch = _as_str(publish_data.get("base_branch"))
        publish.push_attempts = _as_int(publish_data.get("push_attempts")) or publish.push_attempts
        publish.fork_wait_attempts = (
            _as_int(publish_data.get("fork_wait_attempts")) or publish.fork_wait_attempts
        )

    catalog_data = _as_dict(data.get("catalog"))
    if catalog_data:
        config.catalog.base_url = (
            _as_str(catalog_data.get("base_url")) or config.catalog.base_url
        ).rstrip("/")
        timeout = _as_float(catalog_data.get("request_timeout"))
        if timeout is not None:
            config.catalog.request_timeout = timeout

    discovery_data = _as_dict(data.get("discovery"))
    if discovery_data:
        config.discovery.exclude_paths = _as_str_list(discovery_data.get("exclude_paths"))

    _apply_env_overrides(config, env)
    return config


def _apply_env_overrides(config: MetabotConfig, env: Mapping[str, str]) -> None:
    llm = config.llm
    if env.get("LLM_PROVIDER"):
        llm.provider = env["LLM_PROVIDER"].strip().lower()
    if env.get("LLM_MODEL"):
        llm.model = env["LLM_MODEL"]
    if env.get("OLLAMA_BASE_URL") and llm.provider == "ollama":
        llm.base_url = env["OLLAMA_BASE_URL"]
    if env.get("OPENAI_API_KEY") and llm.provider == "openai":
        llm.api_key = env["OPENAI_API_KEY"]

    publish = config.publish
    publish.github_token = env.get("GITHUB_TOKEN") or publish.github_token
    publish.gitlab_token = env.get("GITLAB_TOKEN") or publish.gitlab_token
    publish.codeberg_token = env.get("CODEBERG_TOKEN") or publish.codeberg_token


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
