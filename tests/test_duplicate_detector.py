import pytest

from teachgen.services.duplicate_detector import bigram_similarity, is_duplicate_of_any, normalize_for_comparison


OBJECTIVE = "We will compare the properties of solids, liquids, and gases using observations."


def test_known_dice_values():
    assert bigram_similarity("night", "nacht") == pytest.approx(0.25)
    assert bigram_similarity("aa", "aaa") == pytest.approx(2 / 3)
    assert bigram_similarity("a", "b") == 0.0
    assert bigram_similarity("", "") == 1.0


def test_case_and_whitespace_are_ignored():
    assert normalize_for_comparison("  Hello \n World\t") == "helloworld"
    assert bigram_similarity("Hello World", "hello   world") == 1.0


def test_exact_copy_is_duplicate():
    assert is_duplicate_of_any(OBJECTIVE, ["something else entirely", OBJECTIVE])


def test_close_paraphrase_is_duplicate():
    paraphrase = "We will compare the properties of solids, liquids and gases using observations!"
    assert bigram_similarity(OBJECTIVE, paraphrase) > 0.9
    assert is_duplicate_of_any(paraphrase, [OBJECTIVE])


def test_distinct_text_is_not_duplicate():
    other = "I will write a persuasive letter to the mayor about recycling in our town."
    assert bigram_similarity(OBJECTIVE, other) < 0.9
    assert not is_duplicate_of_any(other, [OBJECTIVE])
    assert not is_duplicate_of_any(OBJECTIVE, [])


def test_threshold_is_strict():
    # identical text scores exactly 1.0, which is not greater than 1.0
    assert not is_duplicate_of_any(OBJECTIVE, [OBJECTIVE], threshold=1.0)
    assert is_duplicate_of_any(OBJECTIVE, [OBJECTIVE], threshold=0.99)
