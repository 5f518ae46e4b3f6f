# Analytics Service
"""
Read-side projections over a user's completed interview sessions:
goal tracking, score trends and per-skill breakdowns.

Nothing here takes a session lock. Reads may observe a completion that is
still in flight on another thread and simply reflect it on the next call.
"""

import dataclasses
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from practice_coach.config import ANALYTICS_CONFIG, PROGRESS_CONFIG

from .records import (
    Feedback,
    FeedbackType,
    InterviewSession,
    SessionStatus,
    UserProgress,
    utcnow,
)
from .scoring import round_half_ceiling, round_half_up
from .store import InterviewStore

logger = logging.getLogger(__name__)


# ============================================================================
# Result Models
# ============================================================================

@dataclass
class GoalWindow:
    """Completed sessions against a goal over a rolling window."""
    completed: int
    goal: int
    percentage: int


@dataclass
class ProgressOverview:
    progress: UserProgress
    recent_sessions: List[InterviewSession]
    weekly: GoalWindow
    monthly: GoalWindow


@dataclass
class TrendPoint:
    """Mean scores of the sessions completed on one UTC calendar date."""
    date: date
    overall_score: float
    technical_score: float
    confidence_score: float
    communication_score: float
    session_count: int


@dataclass
class TypePerformance:
    type: str
    average_score: float
    session_count: int


@dataclass
class PerformanceAnalytics:
    performance_data: List[TrendPoint]
    improvement_rate: float
    performance_by_type: List[TypePerformance]
    total_sessions: int
    average_score: float


@dataclass
class SkillMetrics:
    skill: str
    accuracy: int
    average_score: int
    average_time: int
    total_questions: int
    correct_answers: int
    strength_level: str


@dataclass
class SkillAnalysis:
    skill_analysis: List[SkillMetrics]
    recent_feedback: List[Feedback]
    overall_strengths: List[str] = field(default_factory=list)
    overall_weaknesses: List[str] = field(default_factory=list)
    recommended_actions: List[str] = field(default_factory=list)


# ============================================================================
# Helpers
# ============================================================================

def goal_percentage(completed: int, goal: int) -> int:
    """Share of a goal reached, in whole percent. A zero goal reports 0."""
    if goal <= 0:
        return 0
    return int(round_half_up(completed / goal * 100))


def strength_level(accuracy: float) -> str:
    """Label an accuracy ratio in [0, 1]; lower bounds are inclusive."""
    for threshold, label in ANALYTICS_CONFIG["strength_levels"]:
        if accuracy >= threshold:
            return label
    return ANALYTICS_CONFIG["fallback_strength_level"]


def extract_common_items(lists: Iterable[Optional[Sequence[str]]], limit: Optional[int] = None) -> List[str]:
    """
    Most frequent distinct strings across several lists.

    Ties keep the order in which the strings were first seen.
    """
    if limit is None:
        limit = ANALYTICS_CONFIG["common_items_limit"]

    counts: Dict[str, int] = {}
    for items in lists:
        if not items:
            continue
        for item in items:
            if isinstance(item, str):
                counts[item] = counts.get(item, 0) + 1

    ranked = sorted(counts.items(), key=lambda pair: pair[1], reverse=True)
    return [item for item, _ in ranked[:limit]]


def completion_date(session: InterviewSession) -> date:
    """UTC calendar date on which a session was completed."""
    return session.completed_at.astimezone(timezone.utc).date()


def build_trend(sessions: Iterable[InterviewSession]) -> List[TrendPoint]:
    """Group completed sessions by completion date, oldest date first."""
    by_date: Dict[date, List[InterviewSession]] = {}
    for session in sessions:
        by_date.setdefault(completion_date(session), []).append(session)

    def mean(group: List[InterviewSession], attribute: str) -> float:
        return sum(getattr(s, attribute) or 0.0 for s in group) / len(group)

    return [
        TrendPoint(
            date=day,
            overall_score=mean(group, "overall_score"),
            technical_score=mean(group, "technical_score"),
            confidence_score=mean(group, "confidence_score"),
            communication_score=mean(group, "communication_score"),
            session_count=len(group),
        )
        for day, group in sorted(by_date.items())
    ]


def improvement_rate(points: Sequence[TrendPoint]) -> float:
    """
    Percent change of the overall score from the first to the last trend point.

    Rounded to two places with halves toward positive infinity. Fewer than
    two points, or a first point scoring 0, report 0.
    """
    if len(points) < 2:
        return 0.0
    first = points[0].overall_score
    if first == 0:
        return 0.0
    return round_half_ceiling((points[-1].overall_score - first) / first * 100, 2)


def practice_streak(days: Iterable[date], today: date) -> int:
    """Consecutive practice days ending today, or yesterday if today is still open."""
    practiced = set(days)
    cursor = today if today in practiced else today - timedelta(days=1)
    streak = 0
    while cursor in practiced:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


# ============================================================================
# Analytics Service
# ============================================================================

class AnalyticsService:
    """
    Progress, goal, trend and skill queries for one user at a time.

    Only ``get_progress`` (lazy row creation) and ``update_goals`` write to
    the store.
    """

    def __init__(self, store: InterviewStore, clock: Callable[[], datetime] = utcnow):
        self._store = store
        self._clock = clock

    def _completed_sessions(self, user_id: int) -> List[InterviewSession]:
        sessions = self._store.list_sessions(user_id, status=SessionStatus.COMPLETED)
        return [s for s in sessions if s.completed_at is not None]

    def _get_or_create_progress(self, user_id: int) -> UserProgress:
        progress = self._store.get_progress(user_id)
        if progress is not None:
            return progress

        with self._store.atomic():
            # Another request may have created the row since the first read
            progress = self._store.get_progress(user_id)
            if progress is None:
                progress = self._store.create_progress(
                    user_id=user_id,
                    weekly_goal=PROGRESS_CONFIG["default_weekly_goal"],
                    monthly_goal=PROGRESS_CONFIG["default_monthly_goal"],
                    updated_at=self._clock(),
                )
                logger.info(f"Created progress record for user {user_id}")
            return progress

    # ------------------------------------------------------------------------
    # Progress and goals
    # ------------------------------------------------------------------------

    def get_progress(self, user_id: int) -> ProgressOverview:
        """
        Progress overview with weekly and monthly goal tracking.

        Interview totals, scores, streak and last practice date are derived
        from the completed sessions on every call rather than stored.
        """
        progress = self._get_or_create_progress(user_id)
        now = self._clock()
        completed = self._completed_sessions(user_id)

        weekly_since = now - timedelta(days=PROGRESS_CONFIG["weekly_window_days"])
        monthly_since = now - timedelta(days=PROGRESS_CONFIG["monthly_window_days"])
        weekly_count = sum(1 for s in completed if s.completed_at >= weekly_since)
        monthly_count = sum(1 for s in completed if s.completed_at >= monthly_since)

        overall_scores = [s.overall_score or 0.0 for s in completed]
        practice_days = [completion_date(s) for s in completed]
        progress = dataclasses.replace(
            progress,
            total_interviews=len(completed),
            average_score=sum(overall_scores) / len(overall_scores) if overall_scores else 0.0,
            best_score=max(overall_scores, default=0.0),
            improvement_rate=improvement_rate(build_trend(completed)),
            streak=practice_streak(practice_days, now.astimezone(timezone.utc).date()),
            last_practice_date=max(practice_days, default=None),
        )

        recent = sorted(completed, key=lambda s: (s.completed_at, s.id), reverse=True)
        return ProgressOverview(
            progress=progress,
            recent_sessions=recent[:PROGRESS_CONFIG["recent_sessions_limit"]],
            weekly=GoalWindow(
                completed=weekly_count,
                goal=progress.weekly_goal,
                percentage=goal_percentage(weekly_count, progress.weekly_goal),
            ),
            monthly=GoalWindow(
                completed=monthly_count,
                goal=progress.monthly_goal,
                percentage=goal_percentage(monthly_count, progress.monthly_goal),
            ),
        )

    def update_goals(
        self,
        user_id: int,
        weekly_goal: Optional[int] = None,
        monthly_goal: Optional[int] = None,
    ) -> UserProgress:
        """Set the provided goals, creating the progress record if needed."""
        with self._store.atomic():
            progress = self._store.get_progress(user_id)
            now = self._clock()

            if progress is None:
                progress = self._store.create_progress(
                    user_id=user_id,
                    weekly_goal=(
                        weekly_goal if weekly_goal is not None
                        else PROGRESS_CONFIG["default_weekly_goal"]
                    ),
                    monthly_goal=(
                        monthly_goal if monthly_goal is not None
                        else PROGRESS_CONFIG["default_monthly_goal"]
                    ),
                    updated_at=now,
                )
            else:
                if weekly_goal is not None:
                    progress.weekly_goal = weekly_goal
                if monthly_goal is not None:
                    progress.monthly_goal = monthly_goal
                progress.updated_at = now
                progress = self._store.update_progress(progress)

        logger.info(
            f"User {user_id}: goals set to {progress.weekly_goal}/week, "
            f"{progress.monthly_goal}/month"
        )
        return progress

    # ------------------------------------------------------------------------
    # Performance trend
    # ------------------------------------------------------------------------

    def get_performance_analytics(
        self,
        user_id: int,
        period_days: Optional[int] = None,
    ) -> PerformanceAnalytics:
        """Daily score trend and per-type averages over the last ``period_days``."""
        if period_days is None:
            period_days = ANALYTICS_CONFIG["default_period_days"]

        since = self._clock() - timedelta(days=period_days)
        sessions = [s for s in self._completed_sessions(user_id) if s.completed_at >= since]
        sessions.sort(key=lambda s: (s.completed_at, s.id), reverse=True)

        points = build_trend(sessions)

        by_type: "OrderedDict[str, List[float]]" = OrderedDict()
        for session in sessions:
            by_type.setdefault(session.type.value, []).append(session.overall_score or 0.0)

        overall_scores = [s.overall_score or 0.0 for s in sessions]
        return PerformanceAnalytics(
            performance_data=points,
            improvement_rate=improvement_rate(points),
            performance_by_type=[
                TypePerformance(
                    type=session_type,
                    average_score=sum(scores) / len(scores),
                    session_count=len(scores),
                )
                for session_type, scores in by_type.items()
            ],
            total_sessions=len(sessions),
            average_score=sum(overall_scores) / len(overall_scores) if overall_scores else 0.0,
        )

    # ------------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------------

    def get_skill_analysis(self, user_id: int) -> SkillAnalysis:
        """
        Accuracy, score and speed per skill plus recurring feedback items.

        The skill of a response is the type of the session it was given in.
        """
        totals: "OrderedDict[str, Dict[str, float]]" = OrderedDict()
        for session in sorted(self._completed_sessions(user_id), key=lambda s: s.id):
            for response in sorted(self._store.list_responses(session.id), key=lambda r: r.id):
                bucket = totals.setdefault(session.type.value, {
                    "total_questions": 0,
                    "correct_answers": 0,
                    "total_score": 0.0,
                    "total_time": 0,
                })
                bucket["total_questions"] += 1
                if response.is_correct:
                    bucket["correct_answers"] += 1
                bucket["total_score"] += response.score
                bucket["total_time"] += response.time_spent or 0

        skills = []
        for skill, bucket in totals.items():
            count = bucket["total_questions"]
            accuracy = bucket["correct_answers"] / count
            skills.append(SkillMetrics(
                skill=skill,
                accuracy=int(round_half_up(accuracy * 100)),
                average_score=int(round_half_up(bucket["total_score"] / count)),
                average_time=int(round_half_up(bucket["total_time"] / count)),
                total_questions=int(count),
                correct_answers=int(bucket["correct_answers"]),
                strength_level=strength_level(accuracy),
            ))

        recent_feedback = self._recent_overall_feedback(user_id)
        return SkillAnalysis(
            skill_analysis=skills,
            recent_feedback=recent_feedback,
            overall_strengths=extract_common_items(f.strengths for f in recent_feedback),
            overall_weaknesses=extract_common_items(f.weaknesses for f in recent_feedback),
            recommended_actions=extract_common_items(f.improvement_tips for f in recent_feedback),
        )

    def _recent_overall_feedback(self, user_id: int) -> List[Feedback]:
        records = [
            record
            for session in self._store.list_sessions(user_id)
            for record in self._store.list_feedback(session.id)
            if record.type == FeedbackType.OVERALL
        ]
        records.sort(key=lambda f: (f.created_at, f.id), reverse=True)
        return records[:ANALYTICS_CONFIG["recent_feedback_limit"]]
