"""Tolerant line-scanner for generated assessment text.

Generated assessments are segments separated by a line of three or more
dashes. Each segment is scanned line by line into tokens:

    TYPE      "Type: Multiple Choice"
    QUESTION  "Question: ..."            (continues over following TEXT lines)
    OPTION    "A) ..." through "D) ..."
    CORRECT   "Correct Answer: B"
    EXPECTED  "Expected Response: ..."
    TEXT      anything else

Labels are matched case-insensitively. They may be wrapped in markdown
emphasis or numbered ("1. Question:"), and the type label may carry a
qualifier ("Question Type:"). Free text between the type label and the
question (a reading passage) is kept apart from the prompt, and so are notes
after the question. A segment that does not describe a recognisable question
is never dropped; it becomes an ``unknown`` record with whatever prompt text
was found.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Optional, Tuple
import re

PLACEHOLDER_PROMPT = "Untitled Question"
PLACEHOLDER_TITLE = "Untitled Assessment"
PLACEHOLDER_WRITING_PROMPT = "Write a response."
LETTERS = "ABCD"

DELIMITER = re.compile(r"^[ \t]*-{3,}[ \t]*$", re.MULTILINE)

_LABEL_PREFIX = r"^[\s*_#>]*(?:\d+[.)]\s*)?[\s*_]*"
_TYPE = re.compile(_LABEL_PREFIX + r"(?:[a-z]+\s+){0,2}type\s*:[\s*_]*(.*)$", re.IGNORECASE)
_QUESTION = re.compile(_LABEL_PREFIX + r"question\s*:[\s*_]*(.*)$", re.IGNORECASE)
_OPTION = re.compile(r"^\s*([A-D])\)\s*(.+)$")
_CORRECT = re.compile(_LABEL_PREFIX + r"correct answer\s*:[\s*_]*(.*)$", re.IGNORECASE)
_EXPECTED = re.compile(_LABEL_PREFIX + r"expected response\s*:[\s*_]*(.*)$", re.IGNORECASE)
_TITLE = re.compile(r"^\s*(?:Title|Assessment Title)\s*[:\-–—]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_WRITING_PROMPT = re.compile(r"Prompt:\s*([\s\S]*)", re.IGNORECASE)
_ANSWER_LETTER = re.compile(r"^[(\[]?([A-D])\b", re.IGNORECASE)


class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    UNKNOWN = "unknown"


@dataclass
class ParsedQuestion:
    kind: QuestionKind
    prompt: str
    options: List[str] = field(default_factory=list)
    correct_index: Optional[int] = None
    expected_answer: Optional[str] = None

    def to_dict(self) -> dict:
        out = asdict(self)
        out["kind"] = self.kind.value
        return out


@dataclass
class Token:
    kind: str
    value: str = ""
    letter: Optional[str] = None


@dataclass
class SegmentScan:
    """Everything the grammar recognised in one segment."""

    type_label: Optional[str] = None
    prompt: Optional[str] = None
    options: List[Tuple[str, str]] = field(default_factory=list)
    correct_raw: Optional[str] = None
    expected: Optional[str] = None
    preamble: List[str] = field(default_factory=list)
    passage: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def correct_letter(self) -> Optional[str]:
        if not self.correct_raw:
            return None
        m = _ANSWER_LETTER.match(self.correct_raw.strip())
        return m.group(1).upper() if m else None


def tokenize_line(line: str) -> Token:
    m = _OPTION.match(line)
    if m:
        return Token("OPTION", m.group(2).strip(), m.group(1))
    for kind, pattern in (("TYPE", _TYPE), ("QUESTION", _QUESTION), ("CORRECT", _CORRECT), ("EXPECTED", _EXPECTED)):
        m = pattern.match(line)
        if m:
            return Token(kind, m.group(1).strip().strip("*_").strip())
    return Token("TEXT", line)


def split_segments(raw: str) -> List[str]:
    return [s.strip() for s in DELIMITER.split(raw or "") if s.strip()]


def _trim_blank(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def scan_segment(segment: str) -> SegmentScan:
    scan = SegmentScan()
    prompt_lines: Optional[List[str]] = None
    expected_lines: Optional[List[str]] = None
    seen_label = False

    for line in segment.splitlines():
        tok = tokenize_line(line)
        if tok.kind == "TEXT":
            if prompt_lines is not None:
                prompt_lines.append(tok.value)
            elif expected_lines is not None:
                expected_lines.append(tok.value)
            elif not seen_label:
                scan.preamble.append(tok.value)
            elif scan.prompt is None:
                scan.passage.append(tok.value)
            else:
                scan.notes.append(tok.value)
            continue

        seen_label = True
        # any label closes an open multi-line prompt or expected response
        if prompt_lines is not None:
            scan.prompt = "\n".join(prompt_lines).strip()
            prompt_lines = None
        if expected_lines is not None:
            scan.expected = "\n".join(expected_lines).strip()
            expected_lines = None

        if tok.kind == "TYPE" and scan.type_label is None:
            scan.type_label = tok.value
        elif tok.kind == "QUESTION" and scan.prompt is None:
            prompt_lines = [tok.value]
        elif tok.kind == "OPTION":
            scan.options.append((tok.letter, tok.value))
        elif tok.kind == "CORRECT" and scan.correct_raw is None:
            scan.correct_raw = tok.value
        elif tok.kind == "EXPECTED" and scan.expected is None:
            expected_lines = [tok.value]

    if prompt_lines is not None:
        scan.prompt = "\n".join(prompt_lines).strip()
    if expected_lines is not None:
        scan.expected = "\n".join(expected_lines).strip()
    scan.preamble = _trim_blank(scan.preamble)
    scan.passage = _trim_blank(scan.passage)
    scan.notes = _trim_blank(scan.notes)
    return scan


def classify(type_label: Optional[str]) -> QuestionKind:
    label = (type_label or "").lower()
    if "multiple" in label:
        return QuestionKind.MULTIPLE_CHOICE
    if "true" in label:
        return QuestionKind.TRUE_FALSE
    if "short" in label:
        return QuestionKind.SHORT_ANSWER
    return QuestionKind.UNKNOWN


def _correct_index(scan: SegmentScan, kind: QuestionKind, options: List[str]) -> Optional[int]:
    letter = scan.correct_letter
    if letter is None and kind == QuestionKind.TRUE_FALSE and scan.correct_raw:
        word = scan.correct_raw.strip().lower()
        if word.startswith("true"):
            letter = "A"
        elif word.startswith("false"):
            letter = "B"
    if letter is None:
        return None
    allowed = LETTERS if kind == QuestionKind.MULTIPLE_CHOICE else LETTERS[:2]
    idx = allowed.find(letter)
    if idx < 0 or idx >= len(options):
        return None
    return idx


def parse_segment(segment: str) -> ParsedQuestion:
    scan = scan_segment(segment)
    kind = classify(scan.type_label)
    prompt = scan.prompt or PLACEHOLDER_PROMPT

    if kind == QuestionKind.MULTIPLE_CHOICE:
        options = [text for _, text in scan.options]
        return ParsedQuestion(kind, prompt, options, _correct_index(scan, kind, options))
    if kind == QuestionKind.TRUE_FALSE:
        options = [text for _, text in scan.options] or ["True", "False"]
        return ParsedQuestion(kind, prompt, options, _correct_index(scan, kind, options))
    if kind == QuestionKind.SHORT_ANSWER:
        return ParsedQuestion(kind, prompt, expected_answer=scan.expected or "")
    return ParsedQuestion(kind, prompt)


def parse_assessment(raw: str) -> List[ParsedQuestion]:
    return [parse_segment(s) for s in split_segments(raw)]


def extract_title(raw: str) -> Tuple[str, str]:
    """Split a leading 'Title: ...' line off generated text. Returns (title, remaining text)."""
    m = _TITLE.search(raw or "")
    if not m:
        return PLACEHOLDER_TITLE, (raw or "").lstrip()
    body = (raw[:m.start()] + raw[m.end():]).lstrip()
    return m.group(1).strip(), body


def extract_writing_prompt(raw: str) -> str:
    m = _WRITING_PROMPT.search(raw or "")
    text = m.group(1).strip() if m else ""
    return text or PLACEHOLDER_WRITING_PROMPT


_TYPE_LABELS = {
    QuestionKind.MULTIPLE_CHOICE: "Multiple Choice",
    QuestionKind.TRUE_FALSE: "True/False",
    QuestionKind.SHORT_ANSWER: "Short Answer",
}


def render_question(q: ParsedQuestion) -> str:
    lines = []
    if q.kind in _TYPE_LABELS:
        lines += [f"Type: {_TYPE_LABELS[q.kind]}", ""]
    lines.append(f"Question: {q.prompt}")
    if q.kind in (QuestionKind.MULTIPLE_CHOICE, QuestionKind.TRUE_FALSE):
        lines += [f"{LETTERS[i]}) {text}" for i, text in enumerate(q.options[:4])]
        if q.correct_index is not None:
            lines.append(f"Correct Answer: {LETTERS[q.correct_index]}")
    elif q.kind == QuestionKind.SHORT_ANSWER:
        lines.append(f"Expected Response: {q.expected_answer or ''}")
    return "\n".join(lines)


def render_assessment(questions: List[ParsedQuestion]) -> str:
    return "\n\n---\n\n".join(render_question(q) for q in questions)
