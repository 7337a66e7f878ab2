"""Error taxonomy shared by the generation pipeline and the HTTP layer."""

from typing import Optional

_RATE_LIMIT_MARKERS = ("tokens per min", "TPM", "requests per min", "RPM")


class TeachgenError(Exception):
    pass


class InvalidInput(TeachgenError):
    """A required field is missing or malformed."""


class SourceTooLong(TeachgenError):
    def __init__(self, estimate: int, ceiling: int, message: Optional[str] = None):
        self.estimate = estimate
        self.ceiling = ceiling
        super().__init__(message or (
            f"This content is too long ({estimate} estimated tokens, limit {ceiling}). "
            "Please shorten the content before generating."
        ))


class RepeatedOutput(TeachgenError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Repeated duplicate outputs after {attempts} attempts")


class GenerationFailed(TeachgenError):
    pass


class RateLimited(GenerationFailed):
    pass


class BalancingVoid(TeachgenError):
    """Rebalanced segment count does not match the input; callers keep the original text."""


def is_rate_limit_message(message: str) -> bool:
    if not message:
        return False
    if any(marker in message for marker in _RATE_LIMIT_MARKERS):
        return True
    return "rate limit" in message.lower()


def classify_failure(message: str) -> GenerationFailed:
    """Map a provider error message onto the generation failure type the caller should see."""
    text = (message or "").strip() or "Text generation failed"
    if is_rate_limit_message(text):
        return RateLimited(text)
    return GenerationFailed(text)
