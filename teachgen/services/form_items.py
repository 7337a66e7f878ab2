"""Google Forms ``batchUpdate`` requests for a parsed assessment.

Only the request bodies are built here; sending them (and creating the form
or moving it in Drive) belongs to the Forms client.
"""

from typing import Any, Dict, List, Sequence
import re

from teachgen.services.assessment_parser import ParsedQuestion, QuestionKind

TOTAL_POINTS = 100

_WS = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


def point_values(n: int, total: int = TOTAL_POINTS) -> List[int]:
    """Split `total` points over `n` items; the first `total % n` items get one extra point."""
    if n <= 0:
        return []
    base, remainder = divmod(total, n)
    return [base + 1 if i < remainder else base for i in range(n)]


def quiz_settings_request() -> Dict[str, Any]:
    return {
        "updateSettings": {
            "settings": {"quizSettings": {"isQuiz": True}},
            "updateMask": "quizSettings.isQuiz",
        }
    }


def _unique_options(options: Sequence[str]) -> List[Dict[str, str]]:
    seen: List[str] = []
    for opt in options:
        value = _collapse(opt)
        if value and value not in seen:
            seen.append(value)
    return [{"value": v} for v in seen]


def create_item_request(q: ParsedQuestion, index: int, points: int) -> Dict[str, Any]:
    grading: Dict[str, Any] = {"pointValue": points}
    if q.options and q.correct_index is not None and 0 <= q.correct_index < len(q.options):
        grading["correctAnswers"] = {"answers": [{"value": _collapse(q.options[q.correct_index])}]}

    question: Dict[str, Any] = {"required": True, "grading": grading}
    if q.options:
        question["choiceQuestion"] = {"type": "RADIO", "options": _unique_options(q.options), "shuffle": False}
    else:
        question["textQuestion"] = {"paragraph": q.kind != QuestionKind.SHORT_ANSWER}

    return {
        "createItem": {
            "item": {"title": q.prompt, "questionItem": {"question": question}},
            "location": {"index": index},
        }
    }


def build_form_requests(questions: Sequence[ParsedQuestion]) -> List[Dict[str, Any]]:
    points = point_values(len(questions))
    return [create_item_request(q, i, points[i]) for i, q in enumerate(questions)]
