"""Message builders for the generation endpoints.

The assessment builders spell out the segment format read by
``assessment_parser``; the parser tests pin that format, not this wording.
"""

from typing import Any, Dict, Iterable, List, Optional
import json
import math

from teachgen.services.llm_adapter import Message

OBJECTIVES_PREAMBLE = "You have already generated the following objectives. Do not repeat ideas:"
LESSON_PREAMBLE = (
    "You have already generated the following lesson plans. "
    "Do NOT repeat the same activities or learning objectives:"
)
ASSESSMENT_PREAMBLE = (
    "You have already generated the following assessments. DO NOT reuse the same roles, formats, tones, "
    "or narrative structures. Be original, varied, and creative in your next attempt:"
)
ELA_PREAMBLE = "You already created the following questions. DO NOT repeat tone, structure, or ideas:"

NUDGES = [
    "Take a fresh angle.",
    "Frame the topic from a new perspective.",
    "Vary the tone or style from previous attempts.",
    "Avoid repeating prior phrasing or structure.",
    "Introduce a surprising viewpoint.",
    "Make this prompt feel distinct from others.",
    "Emphasize a different conceptual lens.",
    "Approach from a lesser-considered angle.",
    "Highlight an unconventional implication.",
    "Prompt a different kind of student thinking.",
]

ESSAY_STYLES = {
    "argumentative": "state a clear position on an issue and defend it using evidence, logic, and acknowledgment of opposing views",
    "compare-contrast": "examine both similarities and differences between two subjects, concepts, or events in a balanced manner",
    "DBQ": "evaluate evidence, synthesize historical documents, and form a supported argument (Document-Based Question)",
    "descriptive": "use rich sensory language to vividly describe a person, place, object, or event",
    "expository": "explain a process, idea, or how-to in a clear, logical, and informative way",
    "informative": "explain a factual topic in a structured and neutral tone",
    "literary": "analyze theme, character, or language in a literary work using textual evidence",
    "narrative": "craft a creative story with characters, plot, and setting that involves reflection or conflict",
    "persuasive": "convince the reader of an opinion or solution using emotional appeal, facts, and logic",
    "RAFT": "write from a stated Role, to an Audience, in a Format, about a Topic; state each RAFT component explicitly",
}

SEGMENT_FORMAT = """Return the assessment in the following strict format for each question:

---

Type: [Multiple Choice | True/False | Short Answer]

Question: [The full question prompt]

A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]
Correct Answer: [Letter]   <- for Multiple Choice & True/False only

Expected Response: [Answer] <- for Short Answer only

---

RULES:
- Do NOT include question numbers or headings
- For Multiple Choice use exactly 4 options A-D; for True/False use A) True and B) False
- Always include "Correct Answer" for Multiple Choice and True/False, naming exactly one letter
- For Short Answer omit choices and include only "Expected Response"
- Separate all questions using exactly three dashes --- on their own line
- Avoid markdown (no bold, italics, or bullets)"""

TITLE_RULES = """Each assessment begins with a title line formatted like this:

Title: [A short, grade- and subject-relevant title, under 12 words]"""


def estimate_tokens(text: str) -> int:
    return math.ceil(len((text or "").split()) * 1.3)


def normalize_selected_standards(selected: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
    """Selected standards arrive as dicts or as JSON-encoded strings; unparseable ones are skipped."""
    out: List[Dict[str, Any]] = []
    for item in selected or []:
        if isinstance(item, str):
            try:
                item = json.loads(item)
            except ValueError:
                continue
        if isinstance(item, dict):
            out.append(item)
    return out


def standards_block(selected: List[Dict[str, Any]]) -> str:
    standards = [str(s.get("standard")).strip() for s in selected if s.get("standard")]
    if not standards:
        return ""
    listed = "\n- ".join(standards)
    return (
        "The following standards are to be addressed in this assessment. Use them as the instructional "
        "foundation for analyzing the provided source material and only generate items aligned with them:\n\n"
        f"- {listed}\n\n"
    )


def objectives_messages(prompt: str, grade: str, subject: str) -> List[Message]:
    user = f"""You are designing classroom-ready learning objectives for Grade {grade} {subject} based on the standards below.
If the input is short or incomplete, use your best judgment and generate objectives anyway.

Synthesize the standards into exactly 3 student-friendly learning objective pairs in the "We will / I will" format.
Use measurable verbs from Bloom's levels 3-6 and avoid vague terms like "understand" or "learn".

Format:
1) We will...
   I will...

Only return the 3 objective pairs.

Standards:

{prompt}
"""
    return [
        {"role": "system", "content": "You are a curriculum expert creating concise, student-friendly learning objectives."},
        {"role": "user", "content": user},
    ]


def lesson_messages(prompt: str, grade: str, subject: str, duration: Any) -> List[Message]:
    user = f"""Generate TWO distinct {duration}-minute lesson plans for Grade {grade} {subject}.

Standards and Objectives:
{prompt}

If the input already contains "We will..." and "I will..." objectives, copy them exactly; otherwise write them.

Repeat this template for Option 1 and Option 2:

**Lesson Plan Option X:**

**Lesson Title:** [Title]

**Learning Objective:**

**We will** ...

**I will** ...

**Materials:**

- Item

**ACTIVITIES (Total: {duration} minutes)**

**Activity Title** (X minutes)
Description...

**Assessment:**

**Formative:** ...

**Summative:** ...

Activity times must add up to {duration} minutes. Return only the two lesson plans.
"""
    return [
        {"role": "system", "content": "You are an expert curriculum designer."},
        {"role": "user", "content": user},
    ]


def assessment_prompt(
    kind: str,
    question_count: int,
    formats: List[str],
    content: str,
    grade: str,
    subject: str,
    essay_style: Optional[str] = None,
) -> str:
    styled = f" in the style of a {essay_style} prompt" if kind == "essay" and essay_style else ""
    parts = [
        f"You are an expert teacher creating a {kind} assessment{styled} for Grade {grade} {subject}.",
        TITLE_RULES,
    ]
    if kind == "mixed" and formats:
        allowed = ", ".join(f.lower() for f in formats)
        parts.append(f"Only include the following formats in your questions: {allowed}. Do NOT include any other format.")
    if kind in ("mixed", "multiple"):
        parts.append(SEGMENT_FORMAT)
    parts.append(f"Content:\n{content}")

    if kind == "essay":
        focus = ESSAY_STYLES.get(essay_style or "", "clearly assess student understanding of the core instructional material")
        task = (
            f"Write a single {essay_style or ''} essay prompt of 30-50 words that asks students to {focus}.\n\n"
            "FORMAT EXAMPLE:\nPrompt: 30-50 words of copy here."
        )
    elif kind == "quickwrite":
        task = (
            "Write a single quick write prompt of 15-30 words, answerable in 3-5 minutes, that reveals "
            "student understanding of the core material.\n\nFORMAT EXAMPLE:\nPrompt: 15-30 words of copy here."
        )
    elif kind == "mixed":
        task = (
            f"Create a mixed-format assessment with EXACTLY {question_count} total questions using these formats: "
            f"{', '.join(formats)}. Mix the formats evenly across the assessment. If multiple choice is included it "
            "should make up at least 60% of the questions."
        )
    else:
        task = (
            f"Write {question_count} multiple-choice questions with 4 answer choices each and indicate the correct one."
        )
    parts.append(f"Task:\n{task}")
    return "\n\n".join(parts)


def assessment_messages(prompt: str, nudge: str) -> List[Message]:
    return [
        {
            "role": "system",
            "content": "You are a curriculum specialist who creates standards-aligned, classroom-ready assessments, "
                       "essay prompts, and quick-write prompts.",
        },
        {"role": "user", "content": f"{nudge}\n// version: retry\n\n{prompt}"},
    ]


def ela_allowed_formats(formats: Optional[Iterable[str]]) -> List[str]:
    normalized = [str(f).lower() for f in formats or []]
    allowed = []
    if "multiple" in normalized:
        allowed.append("Multiple Choice")
    if "truefalse" in normalized:
        allowed.append("True/False")
    if "short" in normalized:
        allowed.append("Short Answer")
    return allowed or ["Multiple Choice"]


def ela_messages(prompt: str, grade: str, subject: str, question_count: int, formats: Optional[Iterable[str]]) -> List[Message]:
    allowed = ", ".join(ela_allowed_formats(formats))
    user = f"""You are an English Language Arts assessment creator.
Create EXACTLY {question_count} assessment questions for Grade {grade} {subject}.
Use only the instructional content provided below.

Focus on theme, tone, author's purpose, figurative language, inference, vocabulary in context, and literary structure.
Avoid factual recall.

ALLOWED FORMATS (strict): {allowed}. Every selected format appears at least once.

{SEGMENT_FORMAT}

Source Content:
{prompt}
"""
    return [
        {"role": "system", "content": "You are a rigorous ELA assessment builder."},
        {"role": "user", "content": user},
    ]
