from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

from teachgen.services.generation_service import AssessmentResult, service
from teachgen.services.observability import observability

router = APIRouter(prefix="/api", tags=["generation"])


# ── Request models ──────────────────────────────────────────────

class ObjectivesIn(BaseModel):
    prompt: Optional[str] = None
    grade: Optional[str] = None
    subject: Optional[str] = None


class LessonIn(BaseModel):
    prompt: Optional[str] = None
    grade: Optional[str] = None
    subject: Optional[str] = None
    duration: Optional[int] = None


class SourceIn(BaseModel):
    type: Optional[str] = None
    content: Optional[str] = None


class AssessmentPreviewIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "multiple"
    question_count: int = Field(5, alias="questionCount")
    formats: List[str] = []
    source: Optional[SourceIn] = None
    grade: Optional[str] = None
    subject: Optional[str] = None
    essay_style: Optional[str] = Field(None, alias="essayStyle")
    ela_mode: bool = Field(False, alias="elaMode")
    selected_standards: List[Any] = Field(default_factory=list, alias="selectedTEKS")


class ElaAssessmentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    grade: Optional[str] = None
    subject: Optional[str] = None
    question_count: int = Field(5, alias="questionCount")
    formats: List[str] = []


# ── Response models ─────────────────────────────────────────────

class ObjectivesOut(BaseModel):
    objectives: str


class LessonOut(BaseModel):
    lessonPlans: str


class QuestionOut(BaseModel):
    kind: str
    prompt: str
    options: List[str] = []
    correct_index: Optional[int] = None
    expected_answer: Optional[str] = None


class AssessmentOut(BaseModel):
    preview: str
    title: str
    questions: List[QuestionOut] = []
    writingPrompt: Optional[str] = None


class ElaAssessmentOut(BaseModel):
    assessment: str
    title: str
    questions: List[QuestionOut] = []


def _questions(result: AssessmentResult) -> List[dict]:
    return [q.to_dict() for q in result.questions]


@router.post("/generate", response_model=ObjectivesOut, summary="Generate learning objectives",
             description="Three 'We will / I will' objective pairs; repeated requests avoid earlier outputs.")
def generate_objectives(data: ObjectivesIn):
    observability.incr("objectives_request_total")
    return {"objectives": service.objectives(data.prompt, data.grade, data.subject)}


@router.post("/generate-lesson", response_model=LessonOut, summary="Generate lesson plans",
             description="Two distinct lesson plans for the given duration in minutes.")
def generate_lesson(data: LessonIn):
    observability.incr("lesson_request_total")
    return {"lessonPlans": service.lesson_plans(data.prompt, data.grade, data.subject, data.duration)}


@router.post("/generate-assessment-preview", response_model=AssessmentOut, summary="Generate an assessment preview",
             description="Multiple-choice, mixed, essay, or quick-write assessment. Multiple-choice answers are "
                         "redistributed evenly over A-D before the text is parsed into questions.")
def generate_assessment_preview(data: AssessmentPreviewIn):
    observability.incr("assessment_request_total")
    source = data.source or SourceIn()
    result = service.assessment_preview(
        kind=data.type,
        question_count=data.question_count,
        formats=data.formats,
        content=source.content,
        grade=data.grade,
        subject=data.subject,
        essay_style=data.essay_style,
        ela_mode=data.ela_mode,
        source_type=source.type,
        selected_standards=data.selected_standards,
    )
    return {"preview": result.text, "title": result.title, "questions": _questions(result),
            "writingPrompt": result.writing_prompt}


@router.post("/generate-ela-assessment", response_model=ElaAssessmentOut, summary="Generate an ELA assessment")
def generate_ela_assessment(data: ElaAssessmentIn):
    observability.incr("ela_request_total")
    result = service.ela_assessment(data.prompt, data.grade, data.subject, data.question_count, data.formats)
    return {"assessment": result.text, "title": result.title, "questions": _questions(result)}
