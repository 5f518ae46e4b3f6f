# API Request/Response Models
"""
Pydantic models for API request and response schemas.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date as CalendarDate, datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from practice_coach.config import PROGRESS_CONFIG

from .records import (
    FeedbackType,
    QuestionType,
    SessionStatus,
    SessionType,
)
from .session_manager import ResponseDetail

T = TypeVar("T")

_WEEKLY_MIN, _WEEKLY_MAX = PROGRESS_CONFIG["weekly_goal_range"]
_MONTHLY_MIN, _MONTHLY_MAX = PROGRESS_CONFIG["monthly_goal_range"]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON and reading dataclass records."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Request Models
# ============================================================================

class StartSessionRequest(CamelModel):
    """Request to start a new interview session."""
    type: SessionType = Field(..., description="Kind of interview to practise")
    company_id: Optional[int] = Field(None, description="Company the session targets")
    question_ids: Optional[List[int]] = Field(
        None, description="Questions planned for the session"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"type": "technical", "companyId": 1, "questionIds": [1, 2, 3]}
        }
    )


class SubmitAnswerRequest(CamelModel):
    """Request to submit one answer within a session."""
    session_id: int
    question_id: int
    user_answer: Optional[str] = None
    code_submission: Optional[str] = None
    time_spent: int = Field(..., ge=0, description="Seconds spent on the question")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionId": 1,
                "questionId": 2,
                "userAnswer": "A binary search tree keeps keys ordered...",
                "timeSpent": 95,
            }
        }
    )


class CompleteSessionRequest(CamelModel):
    """Request to complete a session."""
    session_id: int


class UpdateGoalsRequest(CamelModel):
    """Request to change practice goals. Omitted goals are left unchanged."""
    weekly_goal: Optional[int] = Field(None, ge=_WEEKLY_MIN, le=_WEEKLY_MAX)
    monthly_goal: Optional[int] = Field(None, ge=_MONTHLY_MIN, le=_MONTHLY_MAX)


# ============================================================================
# Record Models
# ============================================================================

class QuestionModel(CamelModel):
    """Catalog question as listed to clients."""
    id: int
    question: str
    type: QuestionType
    category: str
    difficulty: str
    company_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime


class InterviewQuestionModel(CamelModel):
    """Question handed out for an interview, without answers or hints."""
    id: int
    question: str
    type: QuestionType
    category: str
    difficulty: str
    code_template: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class SessionModel(CamelModel):
    id: int
    user_id: int
    type: SessionType
    status: SessionStatus
    company_id: Optional[int] = None
    total_questions: int
    answered_questions: int
    overall_score: Optional[float] = None
    technical_score: Optional[float] = None
    confidence_score: Optional[float] = None
    communication_score: Optional[float] = None
    duration: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None


class ResponseModel(CamelModel):
    id: int
    session_id: int
    question_id: int
    user_answer: Optional[str] = None
    code_submission: Optional[str] = None
    time_spent: int
    score: float
    is_correct: bool
    created_at: datetime


class ResponseDetailModel(ResponseModel):
    """Response joined with the question it answers."""
    question: Optional[str] = None
    question_type: Optional[QuestionType] = None
    question_category: Optional[str] = None
    question_difficulty: Optional[str] = None
    expected_answer: Optional[str] = None

    @classmethod
    def from_detail(cls, detail: ResponseDetail) -> "ResponseDetailModel":
        base = ResponseModel.model_validate(detail.response).model_dump()
        question = detail.question
        if question is not None:
            base.update(
                question=question.question,
                question_type=question.type,
                question_category=question.category,
                question_difficulty=question.difficulty,
                expected_answer=question.expected_answer,
            )
        return cls(**base)


class FeedbackModel(CamelModel):
    id: int
    session_id: int
    type: FeedbackType
    feedback: str
    strengths: List[str]
    weaknesses: List[str]
    improvement_tips: List[str]
    score: float
    created_at: datetime


class ProgressModel(CamelModel):
    id: int
    user_id: int
    total_interviews: int
    average_score: float
    best_score: float
    improvement_rate: float
    skills_improved: List[str]
    weekly_goal: int
    monthly_goal: int
    streak: int
    last_practice_date: Optional[CalendarDate] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Response Payloads
# ============================================================================

class SubmitAnswerData(CamelModel):
    response: ResponseModel
    score: float
    is_correct: bool


class SessionDetailsData(CamelModel):
    session: SessionModel
    responses: List[ResponseDetailModel]
    feedback: List[FeedbackModel]


class GoalWindowModel(CamelModel):
    completed: int
    goal: int
    percentage: int


class ProgressData(CamelModel):
    progress: ProgressModel
    recent_sessions: List[SessionModel]
    weekly_progress: GoalWindowModel
    monthly_progress: GoalWindowModel


class TrendPointModel(CamelModel):
    date: CalendarDate
    overall_score: float
    technical_score: float
    confidence_score: float
    communication_score: float
    session_count: int


class TypePerformanceModel(CamelModel):
    type: str
    average_score: float
    session_count: int


class PerformanceData(CamelModel):
    performance_data: List[TrendPointModel]
    improvement_rate: float
    performance_by_type: List[TypePerformanceModel]
    total_sessions: int
    average_score: float


class SkillMetricsModel(CamelModel):
    skill: str
    accuracy: int
    average_score: int
    average_time: int
    total_questions: int
    correct_answers: int
    strength_level: str


class SkillAnalysisData(CamelModel):
    skill_analysis: List[SkillMetricsModel]
    recent_feedback: List[FeedbackModel]
    overall_strengths: List[str]
    overall_weaknesses: List[str]
    recommended_actions: List[str]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


# ============================================================================
# Envelopes
# ============================================================================

class ApiResponse(CamelModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: T


class QuestionListResponse(CamelModel):
    success: bool = True
    data: List[QuestionModel]
    pagination: Pagination


class ErrorResponse(CamelModel):
    """Standard error response."""
    error: str
    detail: str
    session_id: Optional[int] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "NotFound",
                "detail": "Interview session not found",
                "sessionId": 42
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: datetime
    store_backend: str
