from fastapi import APIRouter
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from teachgen.services.assessment_parser import ParsedQuestion, QuestionKind
from teachgen.services.form_items import build_form_requests, quiz_settings_request

router = APIRouter(prefix="/api", tags=["forms"])


class QuestionIn(BaseModel):
    kind: QuestionKind = QuestionKind.UNKNOWN
    prompt: str
    options: List[str] = []
    correct_index: Optional[int] = None
    expected_answer: Optional[str] = None


class FormItemsIn(BaseModel):
    title: Optional[str] = None
    questions: List[QuestionIn] = []


class FormItemsOut(BaseModel):
    title: str
    settings: Dict[str, Any]
    requests: List[Dict[str, Any]]


@router.post("/form-items", response_model=FormItemsOut, summary="Build Google Forms quiz items",
             description="Returns the batchUpdate requests (quiz settings and one createItem per question, "
                         "100 points in total) for a Forms client to send.")
def form_items(data: FormItemsIn):
    questions = [
        ParsedQuestion(q.kind, q.prompt, list(q.options), q.correct_index, q.expected_answer)
        for q in data.questions
    ]
    return {
        "title": (data.title or "").strip() or "Untitled Assessment",
        "settings": quiz_settings_request(),
        "requests": build_form_requests(questions),
    }
