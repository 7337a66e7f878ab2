from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging
import random

from teachgen.services.answer_balancer import balance_text
from teachgen.services.assessment_parser import ParsedQuestion, extract_title, extract_writing_prompt, parse_assessment
from teachgen.services.errors import InvalidInput, SourceTooLong
from teachgen.services.history_store import HistoryStore
from teachgen.services.llm_adapter import LLMAdapter, Message, get_llm_adapter
from teachgen.services.observability import observability
from teachgen.services.sampler import DEFAULT_PREAMBLE, GenerationSampler, anti_repetition_block
from teachgen.services.semantic_ranker import EmbeddingCorpus, RankedStandard, rank_similar
from teachgen.services import prompts
from teachgen.utils.env import StudioConfig
from teachgen.utils.fingerprint import fingerprint

logger = logging.getLogger("generation_service")

ROUTE_OBJECTIVES = "/api/generate"
ROUTE_LESSON = "/api/generate-lesson"
ROUTE_ASSESSMENT = "/api/generate-assessment-preview"
ROUTE_ELA = "/api/generate-ela-assessment"

ASSESSMENT_KINDS = ("multiple", "mixed", "essay", "quickwrite")
WRITING_KINDS = ("essay", "quickwrite")
MAX_QUESTION_COUNT = 50
PROMPT_RESERVE_TOKENS = 1000


@dataclass
class AssessmentResult:
    text: str
    title: str
    questions: List[ParsedQuestion] = field(default_factory=list)
    writing_prompt: Optional[str] = None


def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"Missing or invalid '{name}'")
    return value.strip()


def _require_count(value: Any) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise InvalidInput("questionCount must be an integer")
    if not 1 <= count <= MAX_QUESTION_COUNT:
        raise InvalidInput(f"questionCount must be between 1 and {MAX_QUESTION_COUNT}")
    return count


class GenerationService:
    """Request-level operations: fingerprint, route bookkeeping, sampling, and post-processing."""

    def __init__(
        self,
        llm: Optional[LLMAdapter] = None,
        history: Optional[HistoryStore] = None,
        config: Optional[StudioConfig] = None,
        rng: Optional[random.Random] = None,
        corpus: Optional[EmbeddingCorpus] = None,
    ):
        self.config = config or StudioConfig.from_env()
        self.history = history or HistoryStore(self.config.duplicate_threshold, self.config.history_reset_target)
        self.rng = rng or random.Random()
        self.corpus = corpus or EmbeddingCorpus()
        self._llm = llm

    def configure(self, config: StudioConfig, corpus: Optional[EmbeddingCorpus] = None) -> None:
        """Apply settings loaded after import (the app lifespan reads .env first)."""
        self.config = config
        self.history.threshold = config.duplicate_threshold
        self.history.reset_target = config.history_reset_target
        if corpus is not None:
            self.corpus = corpus

    def _get_llm(self) -> LLMAdapter:
        if self._llm is None:
            self._llm = get_llm_adapter(self.config)
        return self._llm

    def generate(
        self,
        route_key: str,
        request: Dict[str, Any],
        messages: List[Message],
        temperature: float = 0.85,
        max_tokens: int = 1000,
        history_preamble: str = DEFAULT_PREAMBLE,
    ) -> str:
        fp = fingerprint(request)
        self.history.observe_route(route_key, fp)
        sampler = GenerationSampler(self._get_llm(), self.history, self.config.max_attempts)
        return sampler.sample(fp, messages, temperature=temperature, max_tokens=max_tokens, history_preamble=history_preamble)

    def objectives(self, prompt: Any, grade: Any, subject: Any) -> str:
        safe_prompt = _require_text(prompt, "prompt")
        request = {"prompt": safe_prompt, "grade": grade, "subject": subject}
        messages = prompts.objectives_messages(safe_prompt, grade, subject)
        return self.generate(ROUTE_OBJECTIVES, request, messages, max_tokens=300,
                             history_preamble=prompts.OBJECTIVES_PREAMBLE)

    def lesson_plans(self, prompt: Any, grade: Any, subject: Any, duration: Any) -> str:
        safe_prompt = _require_text(prompt, "prompt")
        grade = _require_text(grade, "grade")
        subject = _require_text(subject, "subject")
        if duration in (None, "", 0):
            raise InvalidInput("Missing or invalid 'duration'")
        request = {"prompt": safe_prompt, "grade": grade, "subject": subject, "duration": duration}
        messages = prompts.lesson_messages(safe_prompt, grade, subject, duration)
        return self.generate(ROUTE_LESSON, request, messages, max_tokens=1000,
                             history_preamble=prompts.LESSON_PREAMBLE)

    def assessment_preview(
        self,
        kind: str,
        question_count: Any = 5,
        formats: Optional[List[str]] = None,
        content: Optional[str] = None,
        grade: Any = None,
        subject: Any = None,
        essay_style: Optional[str] = None,
        ela_mode: bool = False,
        source_type: Optional[str] = None,
        selected_standards: Optional[Iterable[Any]] = None,
    ) -> AssessmentResult:
        formats = list(formats or [])
        selected = prompts.normalize_selected_standards(selected_standards)

        if ela_mode and kind == "mixed":
            logger.info("ELA mode requested for mixed assessment, using the ELA generator")
            listed = "\n".join(f"- {s.get('standard') or ''}" for s in selected)
            standards = (
                "\n\nThese are the standards to practice with this assignment. They should be the foundation "
                f"for the questions generated on the assessment:\n{listed}"
            ) if selected else ""
            return self.ela_assessment(f"{(content or '').strip()}{standards}", grade, subject, question_count, formats)

        if kind not in ASSESSMENT_KINDS:
            raise InvalidInput(f"Unknown assessment type '{kind}'")
        source = _require_text(content, "content")
        grade = _require_text(grade, "grade")
        subject = _require_text(subject, "subject")
        count = _require_count(question_count)

        body = source
        if source_type != "teks" and selected:
            body = f"{prompts.standards_block(selected)}{source}"

        content_tokens = prompts.estimate_tokens(body)
        if content_tokens > self.config.max_source_tokens:
            raise SourceTooLong(content_tokens, self.config.max_source_tokens)

        request = {
            "type": kind, "questionCount": count, "formats": formats, "content": source,
            "grade": grade, "subject": subject, "essayStyle": essay_style,
        }
        prompt = prompts.assessment_prompt(kind, count, formats, body, grade, subject, essay_style)
        nudge = self.rng.choice(prompts.NUDGES)

        fp = fingerprint(request)
        # a rejected request must leave route history alone
        block = anti_repetition_block(self.history.history_after_observe(ROUTE_ASSESSMENT, fp),
                                      prompts.ASSESSMENT_PREAMBLE)
        total_tokens = prompts.estimate_tokens(" ".join([nudge, prompt, block, source])) + PROMPT_RESERVE_TOKENS
        if total_tokens > self.config.max_prompt_tokens:
            raise SourceTooLong(total_tokens, self.config.max_prompt_tokens)
        self.history.observe_route(ROUTE_ASSESSMENT, fp)

        sampler = GenerationSampler(self._get_llm(), self.history, self.config.max_attempts)
        text = sampler.sample(fp, prompts.assessment_messages(prompt, nudge), temperature=0.85, max_tokens=9000,
                              history_preamble=prompts.ASSESSMENT_PREAMBLE)

        if kind in ("mixed", "multiple"):
            text = balance_text(text, count, self.rng)
        title, remainder = extract_title(text)
        if kind in WRITING_KINDS:
            return AssessmentResult(text=text, title=title, writing_prompt=extract_writing_prompt(remainder))
        return AssessmentResult(text=text, title=title, questions=parse_assessment(remainder))

    def ela_assessment(self, prompt: Any, grade: Any, subject: Any, question_count: Any = 5,
                       formats: Optional[List[str]] = None) -> AssessmentResult:
        safe_prompt = _require_text(prompt, "prompt")
        grade = _require_text(grade, "grade")
        subject = _require_text(subject, "subject")
        count = _require_count(question_count)
        formats = list(formats or [])

        request = {"prompt": safe_prompt, "grade": grade, "subject": subject, "questionCount": count, "formats": formats}
        messages = prompts.ela_messages(safe_prompt, grade, subject, count, formats)
        text = self.generate(ROUTE_ELA, request, messages, temperature=0.8, max_tokens=3000,
                             history_preamble=prompts.ELA_PREAMBLE)
        text = balance_text(text, count, self.rng)
        title, remainder = extract_title(text)
        return AssessmentResult(text=text, title=title, questions=parse_assessment(remainder))

    def search(self, query: Any, grade: Any, subject: Any) -> List[RankedStandard]:
        query = _require_text(query, "query")
        grade = _require_text(grade, "grade")
        subject = _require_text(subject, "subject")
        observability.incr("semantic_search_total")
        with observability.timed("semantic_search_latency_ms"):
            vector = self._get_llm().embed(query)
            return rank_similar(vector, self.corpus, grade, subject,
                                threshold=self.config.search_threshold, limit=self.config.search_limit)


service = GenerationService()
