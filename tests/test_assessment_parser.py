from teachgen.services.assessment_parser import (
    PLACEHOLDER_PROMPT,
    PLACEHOLDER_TITLE,
    PLACEHOLDER_WRITING_PROMPT,
    ParsedQuestion,
    QuestionKind,
    extract_title,
    extract_writing_prompt,
    parse_assessment,
    parse_segment,
    render_question,
    scan_segment,
    split_segments,
    tokenize_line,
)

ASSESSMENT = """Type: Multiple Choice

Question: Which organelle releases energy from food?
A) Nucleus
B) Mitochondria
C) Cell wall
D) Vacuole
Correct Answer: B

---

Type: True/False

Question: Plant cells have a cell wall.
A) True
B) False
Correct Answer: A

---

Here are some extra notes from the model.

---

Type: Short Answer

Question: Explain what the cell membrane does.
Expected Response: It controls what enters
and leaves the cell."""


def test_every_segment_yields_a_record():
    questions = parse_assessment(ASSESSMENT)
    assert [q.kind for q in questions] == [
        QuestionKind.MULTIPLE_CHOICE,
        QuestionKind.TRUE_FALSE,
        QuestionKind.UNKNOWN,
        QuestionKind.SHORT_ANSWER,
    ]


def test_multiple_choice_fields():
    q = parse_assessment(ASSESSMENT)[0]
    assert q.prompt == "Which organelle releases energy from food?"
    assert q.options == ["Nucleus", "Mitochondria", "Cell wall", "Vacuole"]
    assert q.correct_index == 1
    assert q.to_dict()["kind"] == "multiple-choice"


def test_short_answer_keeps_multiline_expected_response():
    q = parse_assessment(ASSESSMENT)[3]
    assert q.expected_answer == "It controls what enters\nand leaves the cell."
    assert q.options == []
    assert q.correct_index is None


def test_unrecognised_segment_gets_placeholder_prompt():
    q = parse_assessment(ASSESSMENT)[2]
    assert q.prompt == PLACEHOLDER_PROMPT
    assert parse_segment("Type: Matching\nQuestion: Match each term.").prompt == "Match each term."


def test_labels_tolerate_case_and_markdown():
    segment = "**Type:** multiple choice\n**Question:** Pick the mammal.\nA) Shark\nB) Whale\nC) Trout\nD) Eel\n**CORRECT ANSWER:** b"
    q = parse_segment(segment)
    assert q.kind == QuestionKind.MULTIPLE_CHOICE
    assert q.prompt == "Pick the mammal."
    assert q.correct_index == 1


def test_qualified_type_label():
    segment = "Question Type: Multiple Choice\nQuestion: Q?\nA) a\nB) b\nC) c\nD) d\nCorrect Answer: B"
    q = parse_segment(segment)
    assert q.kind == QuestionKind.MULTIPLE_CHOICE
    assert q.prompt == "Q?"
    assert q.correct_index == 1


def test_numbered_question_label():
    segment = "Type: Multiple Choice\n1. Question: What is 2+2?\nA) 3\nB) 4\nC) 5\nD) 22\nCorrect Answer: B"
    q = parse_segment(segment)
    assert q.prompt == "What is 2+2?"
    assert q.correct_index == 1
    assert parse_segment("Type: Short Answer\n**2) Question:** Why?").prompt == "Why?"


def test_passage_and_notes_are_kept_out_of_the_prompt():
    segment = (
        "Type: Multiple Choice\n\nRead the passage:\nThe fox ran away.\n\n"
        "Question: Why did the fox run?\nA) a\nB) b\nC) c\nD) d\nCorrect Answer: A\n\nHint: reread line one."
    )
    scan = scan_segment(segment)
    assert scan.passage == ["Read the passage:", "The fox ran away."]
    assert scan.notes == ["Hint: reread line one."]
    assert parse_segment(segment).prompt == "Why did the fox run?"


def test_answer_letter_variants():
    base = "Type: Multiple Choice\nQuestion: Q?\nA) one\nB) two\nC) three\nD) four\n"
    assert parse_segment(base + "Correct Answer: C) three").correct_index == 2
    assert parse_segment(base + "Correct Answer: (D)").correct_index == 3
    assert parse_segment(base + "Correct Answer: none of these").correct_index is None
    assert parse_segment(base).correct_index is None


def test_answer_outside_options_is_unset():
    segment = "Type: Multiple Choice\nQuestion: Q?\nA) one\nB) two\nC) three\nCorrect Answer: D"
    q = parse_segment(segment)
    assert q.options == ["one", "two", "three"]
    assert q.correct_index is None


def test_true_false_without_options():
    q = parse_segment("Type: True/False\nQuestion: The sun is a star.\nCorrect Answer: False")
    assert q.options == ["True", "False"]
    assert q.correct_index == 1
    assert parse_segment("Type: True/False\nQuestion: X\nCorrect Answer: C").correct_index is None


def test_multiline_question_text():
    segment = "Type: Multiple Choice\nQuestion: Read the sentence.\n\"The fox ran.\"\nWhat did the fox do?\nA) ran\nB) sat\nC) slept\nD) ate\nCorrect Answer: A"
    q = parse_segment(segment)
    assert q.prompt == "Read the sentence.\n\"The fox ran.\"\nWhat did the fox do?"


def test_inline_dashes_do_not_split_segments():
    raw = "Question: Pick one --- carefully\n\n----\n\nQuestion: Second"
    assert split_segments(raw) == ["Question: Pick one --- carefully", "Question: Second"]
    assert split_segments("") == []


def test_tokenize_line_kinds():
    assert tokenize_line("A) Nucleus").kind == "OPTION"
    assert tokenize_line("A) Nucleus").letter == "A"
    assert tokenize_line("E) Not an option").kind == "TEXT"
    assert tokenize_line("## Question: Why?").value == "Why?"


def test_extract_title():
    title, body = extract_title("Title: Cells and Their Parts\n\n---\n\nType: Short Answer\nQuestion: Q")
    assert title == "Cells and Their Parts"
    assert body.startswith("---")
    assert extract_title("Type: Short Answer\nQuestion: Q") == (PLACEHOLDER_TITLE, "Type: Short Answer\nQuestion: Q")


def test_extract_writing_prompt():
    assert extract_writing_prompt("Prompt: Should recess be longer? Explain.") == "Should recess be longer? Explain."
    assert extract_writing_prompt("No prompt label here") == PLACEHOLDER_WRITING_PROMPT


def test_rendered_questions_parse_back_unchanged():
    questions = [
        ParsedQuestion(QuestionKind.MULTIPLE_CHOICE, "Which is a gas?", ["Ice", "Steam", "Wood", "Iron"], 1),
        ParsedQuestion(QuestionKind.TRUE_FALSE, "Ice floats on water.", ["True", "False"], 0),
        ParsedQuestion(QuestionKind.SHORT_ANSWER, "Name a state of matter.", expected_answer="Liquid"),
    ]
    for q in questions:
        assert parse_segment(render_question(q)) == q
