# Feedback Service
"""
Synthesizes the qualitative "overall" feedback written when a session completes.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from practice_coach.config import FEEDBACK_CONFIG

from .records import FeedbackType, InterviewResponse

logger = logging.getLogger(__name__)


@dataclass
class FeedbackDraft:
    """Feedback content ready to be stored against a session."""
    type: FeedbackType
    feedback: str
    score: float
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    improvement_tips: List[str] = field(default_factory=list)


class FeedbackService:
    """
    Bucket-based feedback generator.

    Scores of 80 and above get the strong narrative, [60, 80) the
    encouraging one, and anything lower the improvement-focused one.
    Both passing tiers share the same strengths and weaknesses.
    """

    def tier_for(self, overall_score: float) -> str:
        if overall_score >= FEEDBACK_CONFIG["strong_threshold"]:
            return "strong"
        if overall_score >= FEEDBACK_CONFIG["encouraging_threshold"]:
            return "encouraging"
        return "improvement"

    def synthesize(
        self,
        overall_score: float,
        responses: Sequence[InterviewResponse] = (),
    ) -> FeedbackDraft:
        """
        Build the overall feedback for a session.

        Args:
            overall_score: Aggregated overall score of the session
            responses: The session's responses (not used by the current tiers)

        Returns:
            FeedbackDraft of type "overall"
        """
        tier = self.tier_for(overall_score)
        passing = tier != "improvement"

        draft = FeedbackDraft(
            type=FeedbackType.OVERALL,
            feedback=FEEDBACK_CONFIG["narratives"][tier],
            score=overall_score,
            strengths=list(
                FEEDBACK_CONFIG["passing_strengths"] if passing
                else FEEDBACK_CONFIG["failing_strengths"]
            ),
            weaknesses=list(
                FEEDBACK_CONFIG["passing_weaknesses"] if passing
                else FEEDBACK_CONFIG["failing_weaknesses"]
            ),
            improvement_tips=list(FEEDBACK_CONFIG["improvement_tips"]),
        )
        logger.debug(f"Feedback tier '{tier}' for score {overall_score} ({len(responses)} responses)")
        return draft


# Global service instance (singleton)
feedback_service = FeedbackService()
