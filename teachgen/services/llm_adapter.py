"""Text-generation and embedding collaborators."""

from typing import List, Dict, Any, Optional, Sequence
import hashlib
import logging
import os
import time

import numpy as np
import requests

from teachgen.services.errors import GenerationFailed, classify_failure
from teachgen.utils.env import StudioConfig

logger = logging.getLogger("llm_adapter")

Message = Dict[str, str]

_RETRYABLE_STATUS = {500, 502, 503, 504}
_MAX_RETRIES = 3
_BACKOFF_BASE = 0.5

MOCK_ASSESSMENT = """Title: Mock Science Review

---

Type: Multiple Choice

Question: Which part of a plant makes food through photosynthesis?
A) Leaf
B) Root
C) Stem
D) Flower
Correct Answer: A

---

Type: True/False

Question: Water boils at 100 degrees Celsius at sea level.
A) True
B) False
Correct Answer: A

---

Type: Short Answer

Question: Explain why the Moon appears to change shape during a month.
Expected Response: The lit portion visible from Earth changes as the Moon orbits."""


def _retry_request(method, *args, **kwargs) -> requests.Response:
    """Execute an HTTP request with exponential backoff on 5xx responses and connection errors."""
    for attempt in range(_MAX_RETRIES):
        last_attempt = attempt == _MAX_RETRIES - 1
        try:
            resp = method(*args, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if last_attempt:
                raise
            logger.warning("Request error on attempt %d: %s", attempt + 1, e)
        else:
            if resp.status_code not in _RETRYABLE_STATUS or last_attempt:
                return resp
            logger.warning("Retryable HTTP %d on attempt %d", resp.status_code, attempt + 1)
        time.sleep(_BACKOFF_BASE * (2 ** attempt))
    raise RuntimeError("Retry exhausted")


def _error_message(resp: requests.Response) -> str:
    """Pull the provider's own error message out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return f"HTTP {resp.status_code}: {(resp.text or '').strip()[:300]}"


class LLMAdapter:
    """Interface for text-generation providers."""

    def chat(self, messages: Sequence[Message], temperature: float = 0.85, max_tokens: int = 1000) -> str:
        raise NotImplementedError()

    def embed(self, text: str) -> List[float]:
        raise NotImplementedError()


class MockLLMAdapter(LLMAdapter):
    """Offline adapter. Replays `responses` in order (cycling), else returns a canned assessment."""

    def __init__(self, responses: Optional[Sequence[str]] = None, dim: int = 1536):
        self.responses = list(responses or [])
        self.dim = dim
        self.calls: List[List[Message]] = []

    def chat(self, messages: Sequence[Message], temperature: float = 0.85, max_tokens: int = 1000) -> str:
        self.calls.append([dict(m) for m in messages])
        if not self.responses:
            return MOCK_ASSESSMENT
        return self.responses[(len(self.calls) - 1) % len(self.responses)]

    def embed(self, text: str) -> List[float]:
        seed = int(hashlib.md5((text or "").encode("utf-8")).hexdigest()[:8], 16)
        return np.random.default_rng(seed).standard_normal(self.dim).astype(np.float32).tolist()


class OpenAICompatibleAdapter(LLMAdapter):
    """Adapter for OpenAI-compatible chat and embedding APIs."""

    def __init__(self, endpoint: str, key: str, model: str, embedding_model: Optional[str] = None, timeout: float = 120.0):
        self.endpoint = endpoint.rstrip("/")
        self.key = key
        self.model = model
        self.embedding_model = embedding_model
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            resp = _retry_request(requests.post, url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise GenerationFailed(f"Provider request failed: {exc}") from exc
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.error("Provider error on %s: %s", path, message)
            raise classify_failure(message)
        try:
            return resp.json()
        except ValueError as exc:
            raise GenerationFailed("Provider returned a non-JSON response") from exc

    def _extract_text(self, data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices:
            return ""
        message = (choices[0] or {}).get("message") or {}
        content = message.get("content")
        if isinstance(content, str):
            return content.strip()
        if isinstance(content, list):
            parts = [item.get("text", "") for item in content if isinstance(item, dict)]
            return " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
        return ""

    def chat(self, messages: Sequence[Message], temperature: float = 0.85, max_tokens: int = 1000) -> str:
        payload = {
            "model": self.model,
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        return self._extract_text(self._post("/chat/completions", payload))

    def embed(self, text: str) -> List[float]:
        if not self.embedding_model:
            raise GenerationFailed("Embedding model not configured")
        data = self._post("/embeddings", {"model": self.embedding_model, "input": text})
        rows = data.get("data") or [{}]
        embedding = rows[0].get("embedding") if isinstance(rows[0], dict) else None
        if not isinstance(embedding, list):
            raise GenerationFailed("Embedding response did not contain a valid embedding vector")
        return embedding


def get_llm_adapter(config: Optional[StudioConfig] = None) -> LLMAdapter:
    """Adapter for LLM_PROVIDER; model names come from `config` (read from the environment when omitted)."""
    config = config or StudioConfig.from_env()
    provider = os.getenv("LLM_PROVIDER", "mock").strip().lower()

    if provider == "mock":
        return MockLLMAdapter()

    if provider in ("openai", "openai-compatible"):
        key = os.getenv("OPENAI_API_KEY")
        if not key:
            raise RuntimeError("OPENAI_API_KEY is not set")
        return OpenAICompatibleAdapter(
            endpoint=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            key=key,
            model=config.generation_model,
            embedding_model=config.embedding_model,
        )

    raise RuntimeError(f"LLM provider '{provider}' not implemented")
