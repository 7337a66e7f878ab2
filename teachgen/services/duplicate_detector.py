"""Fuzzy duplicate detection for generated text.

Similarity is the Sørensen-Dice coefficient over character bigrams, computed
on lower-cased text with all whitespace removed. Identical normalized strings
score 1.0; a candidate is a duplicate when its score against any prior output
is strictly greater than the threshold.
"""

from collections import Counter
import re
from typing import Iterable

DEFAULT_THRESHOLD = 0.9

_WS = re.compile(r"\s+")


def normalize_for_comparison(text: str) -> str:
    return _WS.sub("", (text or "").lower())


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def bigram_similarity(a: str, b: str) -> float:
    first = normalize_for_comparison(a)
    second = normalize_for_comparison(b)
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0
    first_grams = _bigrams(first)
    second_grams = _bigrams(second)
    overlap = sum((first_grams & second_grams).values())
    return (2.0 * overlap) / (len(first) - 1 + len(second) - 1)


def is_duplicate_of_any(candidate: str, history: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> bool:
    return any(bigram_similarity(prev, candidate) > threshold for prev in history)
