"""
Scoring Rules
scat_engine/scoring/rules.py

Pure, total scoring functions, one per module kind. Every function accepts
empty or degenerate input and returns 0 rather than failing.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

MONTHS_REVERSE_POINTS = 1
BALANCE_ERROR_CAP = 10
DIGIT_SPAN_MAX_CONSECUTIVE_FAILS = 2
SYMPTOM_RATING_MAX = 6

_WORD_STRIP_RE = re.compile(r"[^\w]+", re.UNICODE)


@dataclass(frozen=True)
class DigitSpanOutcome:
    """Result of scoring an ordered run of digit-span responses."""
    score: int                 # Exact matches
    attempted: int             # Responses counted (stops at early-stop point)
    consecutive_fails: int     # Trailing run of misses
    stopped: bool              # Early stop reached


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------

def score_orientation(answers: Iterable[Optional[bool]]) -> int:
    """1 point per question answered correctly. Unanswered (None) scores 0."""
    return sum(1 for a in answers if a is True)


# ---------------------------------------------------------------------------
# Concentration
# ---------------------------------------------------------------------------

def normalize_digits(response: Optional[str]) -> str:
    """Strip every non-digit character. "4-2 7" -> "427"."""
    if not response:
        return ""
    return "".join(ch for ch in str(response) if ch in "0123456789")


def reverse_digit_sequence(sequence: Sequence[int]) -> str:
    """Expected answer for a presented sequence, as a digit string."""
    return "".join(str(d) for d in reversed(sequence))


def score_digit_response(sequence: Sequence[int], response: Optional[str]) -> int:
    """
    1 if the normalized response is the exact character-reverse of the
    presented sequence, else 0. An empty sequence never matches.
    """
    if not sequence:
        return 0
    return 1 if normalize_digits(response) == reverse_digit_sequence(sequence) else 0


def score_digit_span(
    sequences: Sequence[Sequence[int]],
    responses: Sequence[Optional[str]],
    max_consecutive_fails: int = DIGIT_SPAN_MAX_CONSECUTIVE_FAILS,
) -> DigitSpanOutcome:
    """
    Score responses in presentation order.

    A correct answer resets the miss run. After ``max_consecutive_fails``
    misses in a row presentation stops; later responses are ignored.
    Responses beyond the presented sequences are ignored too.
    """
    score = 0
    fails = 0
    attempted = 0
    for sequence, response in zip(sequences, responses):
        if fails >= max_consecutive_fails:
            break
        attempted += 1
        if score_digit_response(sequence, response):
            score += 1
            fails = 0
        else:
            fails += 1
    return DigitSpanOutcome(
        score=score,
        attempted=attempted,
        consecutive_fails=fails,
        stopped=fails >= max_consecutive_fails,
    )


def score_months_reverse(correct: bool) -> int:
    return MONTHS_REVERSE_POINTS if correct else 0


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

def normalize_word(word: Optional[str]) -> str:
    """Case-fold and drop punctuation/whitespace: " Apple! " -> "apple"."""
    if not word:
        return ""
    return _WORD_STRIP_RE.sub("", str(word)).replace("_", "").casefold()


def normalized_word_set(words: Iterable[Optional[str]]) -> Set[str]:
    return {w for w in (normalize_word(word) for word in words) if w}


def score_word_recall(presented: Sequence[str], recalled: Iterable[Optional[str]]) -> int:
    """|presented ∩ recalled| under normalization, capped at the list length."""
    presented_set = normalized_word_set(presented)
    hits = len(presented_set & normalized_word_set(recalled))
    return min(hits, len(presented))


def score_memory_trial(words: Sequence[str], recalled: Iterable[Optional[str]]) -> int:
    return score_word_recall(words, recalled)


def score_delayed_recall(canonical_words: Sequence[str], recalled: Iterable[Optional[str]]) -> int:
    """Same rule as a memory trial, against the list captured from trial 1."""
    return score_word_recall(canonical_words, recalled)


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------

def score_balance_trial(error_count: int, cap: int = BALANCE_ERROR_CAP) -> int:
    """Counted errors in one stance trial, floored at 0 and capped."""
    return max(0, min(cap, int(error_count or 0)))


def score_balance(error_counts: Iterable[int], cap: int = BALANCE_ERROR_CAP) -> int:
    return sum(score_balance_trial(e, cap) for e in error_counts)


# ---------------------------------------------------------------------------
# Symptoms / coordination
# ---------------------------------------------------------------------------

def score_symptoms(ratings: Iterable[int]) -> Tuple[int, int]:
    """
    (total severity, number of symptoms) from 0-6 ratings.
    Out-of-range ratings are clamped.
    """
    clamped: List[int] = [max(0, min(SYMPTOM_RATING_MAX, int(r or 0))) for r in ratings]
    return sum(clamped), sum(1 for r in clamped if r > 0)


def score_coordination(findings_normal: Iterable[bool]) -> int:
    """Number of abnormal findings."""
    return sum(1 for normal in findings_normal if not normal)
