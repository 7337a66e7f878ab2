from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import random

from teachgen.services.assessment_parser import (
    LETTERS,
    PLACEHOLDER_PROMPT,
    ParsedQuestion,
    parse_assessment,
    scan_segment,
    split_segments,
)
from teachgen.services.errors import BalancingVoid
from teachgen.services.observability import observability

logger = logging.getLogger("answer_balancer")

SEGMENT_JOIN = "\n\n---\n\n"


@dataclass
class EligibleSegment:
    index: int
    preamble: List[str]
    passage: List[str]
    prompt: str
    options: List[str]
    correct_position: int
    notes: List[str] = field(default_factory=list)

    @property
    def correct_text(self) -> str:
        return self.options[self.correct_position]


def eligible_segment(index: int, segment: str) -> Optional[EligibleSegment]:
    """Return balancing data when the segment has exactly four options A-D and a usable answer letter."""
    scan = scan_segment(segment)
    if len(scan.options) != 4:
        return None
    letters = [letter for letter, _ in scan.options]
    if sorted(letters) != list(LETTERS):
        return None
    letter = scan.correct_letter
    if letter is None:
        return None
    return EligibleSegment(
        index=index,
        preamble=scan.preamble,
        passage=scan.passage,
        prompt=scan.prompt or PLACEHOLDER_PROMPT,
        options=[text for _, text in scan.options],
        correct_position=letters.index(letter),
        notes=scan.notes,
    )


def target_letters(n: int, rng: random.Random) -> List[str]:
    """Shuffled multiset with floor(n/4) of each letter plus one extra for the first n % 4 letters."""
    base, remainder = divmod(n, 4)
    pool = [letter for letter in LETTERS for _ in range(base)]
    pool.extend(LETTERS[:remainder])
    rng.shuffle(pool)
    return pool


def rebuild_segment(seg: EligibleSegment, letter: str, rng: random.Random) -> str:
    wrong = [text for i, text in enumerate(seg.options) if i != seg.correct_position]
    rng.shuffle(wrong)
    wrong.insert(LETTERS.index(letter), seg.correct_text)
    lines = list(seg.preamble)
    if lines:
        lines.append("")
    lines += ["Type: Multiple Choice", ""]
    if seg.passage:
        lines += seg.passage + [""]
    lines.append(f"Question: {seg.prompt}")
    lines += [f"{LETTERS[i]}) {text}" for i, text in enumerate(wrong)]
    lines.append(f"Correct Answer: {letter}")
    if seg.notes:
        lines += [""] + seg.notes
    return "\n".join(lines)


def _distribution(letters: List[str]) -> Dict[str, int]:
    counts = Counter(letters)
    return {letter: counts.get(letter, 0) for letter in LETTERS}


def rebalance(raw: str, requested_count: int, rng: Optional[random.Random] = None) -> str:
    """Spread correct-answer letters of four-option questions evenly over A-D.

    Only letter positions move; every question keeps its correct answer text.
    Raises BalancingVoid when the rebuilt text no longer has the same number
    of segments as the input.
    """
    rng = rng or random.Random()
    blocks = split_segments(raw)
    eligible = [seg for seg in (eligible_segment(i, b) for i, b in enumerate(blocks)) if seg is not None]
    logger.info("Balancing %d multiple-choice of %d segments (requested %s)", len(eligible), len(blocks), requested_count)
    if not eligible:
        return raw

    logger.debug("Original answer distribution: %s",
                 _distribution([LETTERS[s.correct_position] for s in eligible]))
    pool = target_letters(len(eligible), rng)
    updated = list(blocks)
    for seg, letter in zip(eligible, pool):
        updated[seg.index] = rebuild_segment(seg, letter, rng)
    logger.debug("Rebalanced answer distribution: %s", _distribution(pool))

    output = SEGMENT_JOIN.join(updated)
    rebuilt_count = len(split_segments(output))
    if rebuilt_count != len(blocks):
        raise BalancingVoid(f"expected {len(blocks)} segments after balancing, got {rebuilt_count}")
    return output


def balance_text(raw: str, requested_count: int, rng: Optional[random.Random] = None) -> str:
    """Rebalance, or hand back the untouched text when balancing is void."""
    try:
        balanced = rebalance(raw, requested_count, rng)
    except BalancingVoid as exc:
        observability.incr("balancer_void_total")
        logger.warning("Rebalancing skipped, using original text: %s", exc)
        return raw
    observability.incr("balancer_applied_total")
    return balanced


def parse_and_balance(raw: str, requested_count: int, rng: Optional[random.Random] = None) -> List[ParsedQuestion]:
    return parse_assessment(balance_text(raw, requested_count, rng))
