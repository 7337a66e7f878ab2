"""Bounded-retry sampling loop that refuses near-duplicates of earlier outputs.

States: IDLE -> ATTEMPTING(k) -> ACCEPTED | ATTEMPTING(k+1) | EXHAUSTED.
Attempts are issued one after another, never concurrently.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence
import logging

from teachgen.services.errors import GenerationFailed, RepeatedOutput, classify_failure
from teachgen.services.history_store import HistoryStore
from teachgen.services.llm_adapter import LLMAdapter, Message
from teachgen.services.observability import observability

logger = logging.getLogger("sampler")

DEFAULT_PREAMBLE = "You have already generated the following. Do not repeat ideas:"


class SamplerState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


@dataclass
class SampleTrace:
    fingerprint: str
    state: SamplerState = SamplerState.IDLE
    attempt: int = 0
    outcomes: List[str] = field(default_factory=list)

    def as_event(self) -> dict:
        return {
            "event": "sample",
            "fingerprint": self.fingerprint,
            "state": self.state.value,
            "attempts": self.attempt,
            "outcomes": list(self.outcomes),
        }


def anti_repetition_block(history: Sequence[str], preamble: str = DEFAULT_PREAMBLE) -> str:
    """Instruction enumerating every prior accepted output; empty when there is no history."""
    if not history:
        return ""
    listed = "\n".join(f"#{i + 1}:\n{text.strip()}\n" for i, text in enumerate(history))
    return f"{preamble}\n\n{listed}"


def with_history(messages: Sequence[Message], block: str) -> List[Message]:
    """Insert the anti-repetition block as a user turn right after the system message(s)."""
    out = [dict(m) for m in messages]
    if not block:
        return out
    idx = 0
    while idx < len(out) and out[idx].get("role") == "system":
        idx += 1
    out.insert(idx, {"role": "user", "content": block})
    return out


class GenerationSampler:
    def __init__(self, llm: LLMAdapter, history: HistoryStore, max_attempts: int = 3):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.llm = llm
        self.history = history
        self.max_attempts = max_attempts
        self.last_trace: Optional[SampleTrace] = None

    def sample(
        self,
        fingerprint: str,
        messages: Sequence[Message],
        temperature: float = 0.85,
        max_tokens: int = 1000,
        history_preamble: str = DEFAULT_PREAMBLE,
    ) -> str:
        trace = SampleTrace(fingerprint=fingerprint)
        self.last_trace = trace
        block = anti_repetition_block(self.history.get(fingerprint), history_preamble)
        prompt = with_history(messages, block)
        if block:
            logger.debug("Anti-repeat block for %s:\n%s", fingerprint, block)

        try:
            while trace.attempt < self.max_attempts:
                trace.state = SamplerState.ATTEMPTING
                trace.attempt += 1
                observability.incr("sampler_attempt_total")
                try:
                    with observability.timed("sampler_call_latency_ms"):
                        candidate = (self.llm.chat(prompt, temperature=temperature, max_tokens=max_tokens) or "").strip()
                except GenerationFailed:
                    trace.outcomes.append("error")
                    observability.incr("sampler_error_total")
                    raise
                except Exception as exc:
                    trace.outcomes.append("error")
                    observability.incr("sampler_error_total")
                    raise classify_failure(str(exc)) from exc

                if not candidate:
                    trace.outcomes.append("empty")
                    observability.incr("sampler_empty_total")
                    logger.warning("Empty candidate on attempt %d for %s", trace.attempt, fingerprint)
                    continue
                if self.history.is_duplicate(fingerprint, candidate):
                    trace.outcomes.append("duplicate")
                    observability.incr("sampler_duplicate_total")
                    logger.info("Duplicate candidate on attempt %d for %s", trace.attempt, fingerprint)
                    continue

                self.history.append(fingerprint, candidate)
                trace.outcomes.append("accepted")
                trace.state = SamplerState.ACCEPTED
                observability.incr("sampler_accepted_total")
                return candidate

            trace.state = SamplerState.EXHAUSTED
            observability.incr("sampler_exhausted_total")
            logger.warning("No distinct candidate for %s after %d attempts", fingerprint, trace.attempt)
            raise RepeatedOutput(trace.attempt)
        finally:
            observability.add_trace(trace.as_event())
