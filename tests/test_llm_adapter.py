import os

import pytest
import requests

from teachgen.services.errors import GenerationFailed, RateLimited
from teachgen.services.llm_adapter import MockLLMAdapter, OpenAICompatibleAdapter, get_llm_adapter
from teachgen.utils.env import StudioConfig


class _FakeResp:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _adapter():
    return OpenAICompatibleAdapter(endpoint="https://example.com/v1/", key="k", model="m", embedding_model="e")


def test_chat_returns_message_content(monkeypatch):
    seen = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        seen["url"] = url
        seen["payload"] = json
        return _FakeResp({"choices": [{"message": {"content": "  We will... I will...  "}}]})

    monkeypatch.setattr("teachgen.services.llm_adapter.requests.post", fake_post)

    out = _adapter().chat([{"role": "user", "content": "hi"}], temperature=0.8, max_tokens=300)
    assert out == "We will... I will..."
    assert seen["url"] == "https://example.com/v1/chat/completions"
    assert seen["payload"]["temperature"] == 0.8
    assert seen["payload"]["max_tokens"] == 300


def test_chat_joins_content_parts(monkeypatch):
    payload = {"choices": [{"message": {"content": [{"type": "text", "text": "alpha"}, {"type": "text", "text": "beta"}]}}]}
    monkeypatch.setattr(
        "teachgen.services.llm_adapter.requests.post",
        lambda *args, **kwargs: _FakeResp(payload),
    )
    assert _adapter().chat([{"role": "user", "content": "hi"}]) == "alpha beta"


def test_rate_limit_response_is_not_retried(monkeypatch):
    calls = []
    message = "Rate limit reached for gpt-4o on tokens per min (TPM): Limit 30000, Used 29500."

    def fake_post(*args, **kwargs):
        calls.append(1)
        return _FakeResp({"error": {"message": message}}, status=429)

    monkeypatch.setattr("teachgen.services.llm_adapter.requests.post", fake_post)
    with pytest.raises(RateLimited) as info:
        _adapter().chat([{"role": "user", "content": "hi"}])
    assert str(info.value) == message
    assert len(calls) == 1


def test_client_error_becomes_generation_failed(monkeypatch):
    monkeypatch.setattr(
        "teachgen.services.llm_adapter.requests.post",
        lambda *args, **kwargs: _FakeResp({"error": {"message": "model not found"}}, status=404),
    )
    with pytest.raises(GenerationFailed) as info:
        _adapter().chat([{"role": "user", "content": "hi"}])
    assert not isinstance(info.value, RateLimited)
    assert str(info.value) == "model not found"


def test_server_errors_are_retried(monkeypatch):
    responses = [_FakeResp(None, status=503), _FakeResp({"choices": [{"message": {"content": "ok"}}]})]
    monkeypatch.setattr("teachgen.services.llm_adapter.time.sleep", lambda s: None)
    monkeypatch.setattr("teachgen.services.llm_adapter.requests.post", lambda *args, **kwargs: responses.pop(0))
    assert _adapter().chat([{"role": "user", "content": "hi"}]) == "ok"


def test_connection_errors_become_generation_failed(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr("teachgen.services.llm_adapter.time.sleep", lambda s: None)
    monkeypatch.setattr("teachgen.services.llm_adapter.requests.post", fake_post)
    with pytest.raises(GenerationFailed):
        _adapter().chat([{"role": "user", "content": "hi"}])


def test_embed_returns_vector(monkeypatch):
    monkeypatch.setattr(
        "teachgen.services.llm_adapter.requests.post",
        lambda *args, **kwargs: _FakeResp({"data": [{"embedding": [0.1, 0.2, 0.3]}]}),
    )
    assert _adapter().embed("photosynthesis") == [0.1, 0.2, 0.3]


def test_embed_without_vector_fails(monkeypatch):
    monkeypatch.setattr(
        "teachgen.services.llm_adapter.requests.post",
        lambda *args, **kwargs: _FakeResp({"data": []}),
    )
    with pytest.raises(GenerationFailed):
        _adapter().embed("photosynthesis")


def test_mock_adapter_is_deterministic():
    llm = MockLLMAdapter(responses=["one", "two"], dim=8)
    assert [llm.chat([]), llm.chat([]), llm.chat([])] == ["one", "two", "one"]
    assert llm.embed("cells") == llm.embed("cells")
    assert len(llm.embed("cells")) == 8


def test_provider_selection(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    assert isinstance(get_llm_adapter(), MockLLMAdapter)

    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        get_llm_adapter()

    os.environ["OPENAI_API_KEY"] = "sk-test"
    try:
        adapter = get_llm_adapter()
        assert isinstance(adapter, OpenAICompatibleAdapter)
        assert adapter.embedding_model
    finally:
        os.environ.pop("OPENAI_API_KEY", None)


def test_provider_uses_configured_model_names(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config = StudioConfig(generation_model="gpt-4o-mini", embedding_model="text-embedding-3-large")
    adapter = get_llm_adapter(config)
    assert adapter.model == "gpt-4o-mini"
    assert adapter.embedding_model == "text-embedding-3-large"

    monkeypatch.setenv("GENERATION_MODEL", "gpt-4.1")
    assert get_llm_adapter().model == "gpt-4.1"
