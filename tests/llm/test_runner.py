"""Tests for the chat-completion LLM runner."""

from __future__ import annotations

import json

import pytest

from metabot.llm.runner import LLMRunner


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_llm_runner_constructs_request() -> None:
    captured = {}

    def fake_runner(request):
        captured["prompt"] = request.prompt
        captured["system"] = request.system
        captured["model"] = request.model
        captured["temperature"] = request.temperature
        captured["max_tokens"] = request.max_tokens
        captured["base_url"] = request.base_url
        captured["api_key"] = request.api_key
        captured["request_timeout"] = request.request_timeout
        return "response"

    runner = LLMRunner(
        model="custom-model",
        temperature=0.15,
        max_tokens=256,
        request_timeout=42.0,
        runner=fake_runner,
    )
    result = runner.run("Hello world", system="system message")

    assert result == "response"
    assert captured == {
        "prompt": "Hello world",
        "system": "system message",
        "model": "custom-model",
        "temperature": 0.15,
        "max_tokens": 256,
        "base_url": "http://localhost:11435/v1",
        "api_key": None,
        "request_timeout": 42.0,
    }


def test_llm_runner_defaults_per_provider() -> None:
    ollama = LLMRunner()
    openai = LLMRunner("openai", api_key="sk-test")

    assert ollama.model == "llama3.2:latest"
    assert ollama.base_url == "http://localhost:11435/v1"
    assert openai.model == "gpt-4o-mini"
    assert openai.base_url == "https://api.openai.com/v1"


def test_llm_runner_rejects_bad_configuration() -> None:
    with pytest.raises(ValueError):
        LLMRunner("mystery")
    with pytest.raises(RuntimeError):
        LLMRunner("openai")


def test_llm_runner_http_posts_payload(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["headers"] = {k.lower(): v for k, v in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse({"choices": [{"message": {"content": " photo, editor \n"}}]})

    monkeypatch.setattr("metabot.llm.runner.urlopen", fake_urlopen)

    runner = LLMRunner(
        "openai",
        "gpt-4o",
        base_url="https://llm.example.com/v1/",
        api_key="sk-test",
        temperature=0.05,
        max_tokens=128,
        request_timeout=25.0,
    )
    result = runner.run("Keywords please", system="Be terse.")

    assert result == "photo, editor"
    assert captured["url"] == "https://llm.example.com/v1/chat/completions"
    headers = captured["headers"]
    assert headers["content-type"] == "application/json"
    assert headers["authorization"] == "Bearer sk-test"
    payload = captured["payload"]
    assert payload["model"] == "gpt-4o"
    assert payload["messages"] == [
        {"role": "system", "content": "Be terse."},
        {"role": "user", "content": "Keywords please"},
    ]
    assert payload["temperature"] == 0.05
    assert payload["max_tokens"] == 128
    assert captured["timeout"] == 25.0


def test_missing_ollama_model_lists_installed_models(monkeypatch) -> None:
    def fake_runner(request):
        raise RuntimeError("LLM HTTP runner failed with status 404: model 'huge' not found")

    def fake_urlopen(url, timeout=None):
        assert url == "http://localhost:11435/api/tags"
        return FakeResponse({"models": [{"name": "llama3.2:1b"}, {"name": "qwen2.5:3b"}]})

    monkeypatch.setattr("metabot.llm.runner.urlopen", fake_urlopen)
    runner = LLMRunner(model="huge", runner=fake_runner)

    with pytest.raises(RuntimeError) as excinfo:
        runner.run("hi")

    message = str(excinfo.value)
    assert "Model 'huge' not found" in message
    assert "  - llama3.2:1b" in message
    assert "  - qwen2.5:3b" in message
