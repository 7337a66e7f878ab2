import os
import re
from dataclasses import dataclass
from typing import Any
from dotenv import load_dotenv


def ensure_env_loaded(env_path: str = None):
    path = env_path or os.path.join(os.getcwd(), ".env")
    try:
        load_dotenv(path)
    except Exception:
        pass

    # .env files written by hand sometimes use 'KEY: "value"' instead of KEY=value
    def set_from_file(p: str):
        if not os.path.exists(p):
            return
        with open(p, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                m = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*[:=]\s*(?:\"([^\"]*)\"|'([^']*)'|([^#]*))", line)
                if not m:
                    continue
                key = m.group(1)
                val = (m.group(2) or m.group(3) or m.group(4) or "").strip()
                if key not in os.environ:
                    os.environ[key] = val

    try:
        set_from_file(path)
    except OSError:
        pass


def _safe_int(value: Any, default: int, low: int, high: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(low, min(high, parsed))


def _safe_float(value: Any, default: float, low: float, high: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        parsed = default
    return max(low, min(high, parsed))


@dataclass
class StudioConfig:
    max_attempts: int = 3
    duplicate_threshold: float = 0.9
    history_reset_target: str = "previous"
    max_source_tokens: int = 20000
    max_prompt_tokens: int = 28000
    search_threshold: float = 0.25
    search_limit: int = 10
    embeddings_path: str = "teks_embeddings.json"
    generation_model: str = "gpt-4o"
    embedding_model: str = "text-embedding-3-small"

    @classmethod
    def from_env(cls) -> "StudioConfig":
        reset_target = (os.getenv("HISTORY_RESET_TARGET", "previous").strip().lower() or "previous")
        if reset_target not in ("previous", "current"):
            reset_target = "previous"
        return cls(
            max_attempts=_safe_int(os.getenv("SAMPLER_MAX_ATTEMPTS", 3), 3, 1, 10),
            duplicate_threshold=_safe_float(os.getenv("DUPLICATE_THRESHOLD", 0.9), 0.9, 0.0, 1.0),
            history_reset_target=reset_target,
            max_source_tokens=_safe_int(os.getenv("MAX_SOURCE_TOKENS", 20000), 20000, 100, 1_000_000),
            max_prompt_tokens=_safe_int(os.getenv("MAX_PROMPT_TOKENS", 28000), 28000, 100, 1_000_000),
            search_threshold=_safe_float(os.getenv("SEARCH_THRESHOLD", 0.25), 0.25, -1.0, 1.0),
            search_limit=_safe_int(os.getenv("SEARCH_LIMIT", 10), 10, 1, 100),
            embeddings_path=(os.getenv("EMBEDDINGS_PATH", "teks_embeddings.json").strip() or "teks_embeddings.json"),
            generation_model=(os.getenv("GENERATION_MODEL", "gpt-4o").strip() or "gpt-4o"),
            embedding_model=(os.getenv("EMBEDDING_MODEL", "text-embedding-3-small").strip() or "text-embedding-3-small"),
        )
