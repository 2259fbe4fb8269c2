"""Adapters around chat-completion model runtimes (Ollama / OpenAI)."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger

PROVIDERS = ("ollama", "openai")

logger = get_logger("llm.runner")


@dataclass
class LLMRequest:
    """Represents an inference request for the configured runner."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    executable: Optional[str]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]


class LLMRunner:
    """Executes prompts against an OpenAI-compatible chat endpoint or the Ollama CLI."""

    DEFAULT_MODELS = {"ollama": "llama3.2:latest", "openai": "gpt-4o-mini"}
    DEFAULT_OLLAMA_URL = "http://localhost:11435"
    DEFAULT_OPENAI_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        provider: str = "ollama",
        model: str | None = None,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        executable: str = "ollama",
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = None,
        request_timeout: Optional[float] = 120.0,
        use_cli: bool = False,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        provider = (provider or "ollama").lower()
        if provider not in PROVIDERS:
            raise ValueError(f"Unsupported LLM provider '{provider}'. Choose one of: {', '.join(PROVIDERS)}")
        if provider == "openai" and not api_key and runner is None:
            raise RuntimeError("OpenAI API key is required when using the openai provider")
        self.provider = provider
        self.model = model or self.DEFAULT_MODELS[provider]
        self.server_url = self._normalize_base_url(
            base_url or (self.DEFAULT_OLLAMA_URL if provider == "ollama" else self.DEFAULT_OPENAI_URL)
        )
        self.base_url: str | None = None if use_cli else self._chat_base_url()
        self.api_key = api_key
        self.executable = executable
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        if runner is not None:
            self._runner = runner
        else:
            self._runner = self._http_runner if self.base_url else self._cli_runner

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt to the configured model and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            executable=self.executable,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        logger.debug("Sending prompt to %s model %s", self.provider, self.model)
        try:
            return self._runner(request)
        except RuntimeError as exc:
            if self.provider == "ollama" and "not found" in str(exc).lower():
                raise RuntimeError(self._missing_model_message()) from exc
            raise

    def available_models(self) -> List[str]:
        """Models installed on the Ollama server; empty when unknown."""
        if self.provider != "ollama":
            return []
        try:
            with urlopen(f"{self.server_url}/api/tags", timeout=10) as response:  # type: ignore[arg-type]
                payload = json.loads(response.read().decode("utf-8"))
        except (URLError, OSError, ValueError):
            return []
        models = payload.get("models") if isinstance(payload, dict) else None
        if not isinstance(models, list):
            return []
        return [str(m["name"]) for m in models if isinstance(m, dict) and m.get("name")]

    def _chat_base_url(self) -> str:
        if self.provider == "ollama" and not self.server_url.endswith("/v1"):
            return f"{self.server_url}/v1"
        return self.server_url

    def _missing_model_message(self) -> str:
        models = self.available_models()
        if models:
            listing = "\n".join(f"  - {name}" for name in models)
            return (
                f"Model '{self.model}' not found.\n\nAvailable models on your system:\n{listing}\n\n"
                "Set LLM_MODEL to one of these, or install a new model with: ollama pull llama3.2:1b"
            )
        return f"Model '{self.model}' not found.\n\nInstall it with: ollama pull {self.model}"

    @staticmethod
    def _normalize_base_url(url: str) -> str:
        return url.rstrip("/")

    @staticmethod
    def _cli_runner(request: LLMRequest) -> str:
        prompt = f"{request.system}\n\n{request.prompt}" if request.system else request.prompt
        args = [request.executable or "ollama", "run", request.model, prompt]
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(
                f"Unable to locate '{request.executable}'. Install Ollama or configure an HTTP endpoint."
            ) from exc
        except subprocess.CalledProcessError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(
                f"LLM runner failed with exit code {exc.returncode}: {exc.stderr.strip()}"
            ) from exc
        return completed.stdout.strip()

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise RuntimeError("HTTP runner requires a base_url to be configured.")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 120.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise RuntimeError(
                f"LLM HTTP runner failed with status {exc.code}: {message}"
            ) from exc
        except URLError as exc:  # pragma: no cover - depends on runtime
            raise RuntimeError(
                f"Cannot connect to model server at {request.base_url}: {exc.reason}"
            ) from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("LLM HTTP runner returned invalid JSON") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise RuntimeError("LLM HTTP runner returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""
