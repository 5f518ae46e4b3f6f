# Scoring
"""
Deterministic answer scoring and per-session score aggregation.

The heuristics here are placeholders for a real grading engine. The exact
arithmetic is what callers depend on, so keep it stable.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_CEILING, ROUND_HALF_UP
from fractions import Fraction
from typing import Iterable, Optional, Set

from practice_coach.config import SCORING_CONFIG


@dataclass(frozen=True)
class AnswerScore:
    """Score of a single answer."""
    score: float
    is_correct: bool


@dataclass(frozen=True)
class SessionScores:
    """The four aggregate score axes of a session."""
    overall: float
    technical: float
    confidence: float
    communication: float


def _quantize(value: float, places: int, rounding: str) -> float:
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=rounding))


def round_half_up(value: float, places: int = 0) -> float:
    """
    Round halves away from zero (2.5 -> 3, 1.005 -> 1.01 at two places).

    Python's round() rounds half to even, which would report 0.5 minutes
    as 0 and 2.5% as 2%.
    """
    return _quantize(value, places, ROUND_HALF_UP)


def round_half_ceiling(value: float, places: int = 0) -> float:
    """Round halves toward positive infinity (-2.5 -> -2, 2.5 -> 3)."""
    return _quantize(value, places, ROUND_HALF_CEILING)


def _tokens(text: str) -> Set[str]:
    min_length = SCORING_CONFIG["min_token_length"]
    return {token for token in text.lower().split() if len(token) >= min_length}


def answer_similarity(user_answer: Optional[str], expected_answer: Optional[str]) -> Fraction:
    """Jaccard similarity of the two answers' token sets."""
    if user_answer is None or expected_answer is None:
        return Fraction(0)

    given = _tokens(user_answer)
    expected = _tokens(expected_answer)
    union = given | expected
    if not union:
        return Fraction(0)
    return Fraction(len(given & expected), len(union))


def score_answer(user_answer: Optional[str], expected_answer: Optional[str]) -> AnswerScore:
    """
    Score one answer against the question's reference answer.

    Both strings are lower-cased and split on whitespace, tokens shorter than
    three characters are dropped, and the answers are compared as token sets,
    so word order and repetition do not matter. A missing answer or a missing
    reference scores 0.

    Args:
        user_answer: The candidate's free-text answer
        expected_answer: The question's canonical answer

    Returns:
        AnswerScore with score in [0, 100] and is_correct when the
        similarity is strictly above 0.6
    """
    similarity = answer_similarity(user_answer, expected_answer)
    return AnswerScore(
        score=float(similarity * SCORING_CONFIG["max_score"]),
        is_correct=similarity > SCORING_CONFIG["correct_threshold"],
    )


def aggregate_scores(scores: Iterable[float]) -> SessionScores:
    """
    Derive the session score axes from its per-answer scores.

    The technical axis mirrors the overall score and the confidence and
    communication axes are fixed offsets capped at 100. An empty session
    scores 0 on every axis.
    """
    values = [float(score) for score in scores]
    if not values:
        return SessionScores(overall=0.0, technical=0.0, confidence=0.0, communication=0.0)

    overall = sum(values) / len(values)
    ceiling = float(SCORING_CONFIG["max_score"])
    return SessionScores(
        overall=overall,
        technical=overall,
        confidence=min(ceiling, overall + SCORING_CONFIG["confidence_bonus"]),
        communication=min(ceiling, overall + SCORING_CONFIG["communication_bonus"]),
    )
