# Store Records
"""
Dataclass records held by the store.

All timestamps are timezone-aware UTC datetimes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================

class SessionStatus(str, Enum):
    """Lifecycle status of an interview session."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    # Named for compatibility, never assigned by the state machine
    ABANDONED = "abandoned"


class SessionType(str, Enum):
    """Kind of interview practised in a session."""
    TECHNICAL = "technical"
    HR = "hr"
    BEHAVIORAL = "behavioral"
    MIXED = "mixed"


class QuestionType(str, Enum):
    """Kind of question in the catalog."""
    TECHNICAL = "technical"
    HR = "hr"
    BEHAVIORAL = "behavioral"


class FeedbackType(str, Enum):
    OVERALL = "overall"


class QuestionSortField(str, Enum):
    """Question fields the catalog can be sorted by."""
    ID = "id"
    CREATED_AT = "created_at"
    TYPE = "type"
    CATEGORY = "category"
    DIFFICULTY = "difficulty"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ============================================================================
# Records
# ============================================================================

@dataclass
class User:
    """A registered user as seen by the authentication boundary."""
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    role: str = "user"
    is_active: bool = True


@dataclass
class Question:
    """A catalog question. Read-only to the session lifecycle."""
    id: int
    question: str
    type: QuestionType
    category: str
    difficulty: str
    created_at: datetime
    company_id: Optional[int] = None
    expected_answer: Optional[str] = None
    hints: List[str] = field(default_factory=list)
    code_template: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_active: bool = True


@dataclass
class InterviewSession:
    """One timed attempt at a set of questions by one user."""
    id: int
    user_id: int
    type: SessionType
    status: SessionStatus
    total_questions: int
    answered_questions: int
    started_at: datetime
    company_id: Optional[int] = None
    overall_score: Optional[float] = None
    technical_score: Optional[float] = None
    confidence_score: Optional[float] = None
    communication_score: Optional[float] = None
    duration: Optional[int] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class InterviewResponse:
    """One submitted answer to one question within one session."""
    id: int
    session_id: int
    question_id: int
    time_spent: int
    score: float
    is_correct: bool
    created_at: datetime
    user_answer: Optional[str] = None
    code_submission: Optional[str] = None


@dataclass
class Feedback:
    """Synthesized narrative and structured lists tied to a session."""
    id: int
    session_id: int
    type: FeedbackType
    feedback: str
    strengths: List[str]
    weaknesses: List[str]
    improvement_tips: List[str]
    score: float
    created_at: datetime


@dataclass
class UserProgress:
    """Per-user practice statistics and goals."""
    id: int
    user_id: int
    weekly_goal: int
    monthly_goal: int
    total_interviews: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    improvement_rate: float = 0.0
    skills_improved: List[str] = field(default_factory=list)
    streak: int = 0
    last_practice_date: Optional[date] = None
    updated_at: Optional[datetime] = None
