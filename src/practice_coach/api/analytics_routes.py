# Analytics Routes
"""
FastAPI route handlers for progress, goals, performance trends and skills.
"""

from fastapi import APIRouter, Depends, Query

from practice_coach.config import ANALYTICS_CONFIG

from .analytics_service import AnalyticsService
from .auth import UserContext, get_current_user
from .dependencies import get_analytics_service
from .models import (
    ApiResponse,
    ErrorResponse,
    FeedbackModel,
    GoalWindowModel,
    PerformanceData,
    ProgressData,
    ProgressModel,
    SessionModel,
    SkillAnalysisData,
    SkillMetricsModel,
    TrendPointModel,
    TypePerformanceModel,
    UpdateGoalsRequest,
)

router = APIRouter(
    prefix="/api/v1/analytics",
    tags=["analytics"],
    responses={401: {"model": ErrorResponse}},
)


@router.get(
    "/progress",
    response_model=ApiResponse[ProgressData],
    summary="Get progress overview",
    description="Practice totals, recent sessions and weekly/monthly goal tracking."
)
def get_progress(
    user: UserContext = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> ApiResponse[ProgressData]:
    overview = analytics.get_progress(user.user_id)
    return ApiResponse[ProgressData](
        data=ProgressData(
            progress=ProgressModel.model_validate(overview.progress),
            recent_sessions=[SessionModel.model_validate(s) for s in overview.recent_sessions],
            weekly_progress=GoalWindowModel.model_validate(overview.weekly),
            monthly_progress=GoalWindowModel.model_validate(overview.monthly),
        )
    )


@router.put(
    "/goals",
    response_model=ApiResponse[ProgressModel],
    summary="Update practice goals",
)
def update_goals(
    request: UpdateGoalsRequest,
    user: UserContext = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> ApiResponse[ProgressModel]:
    progress = analytics.update_goals(
        user.user_id,
        weekly_goal=request.weekly_goal,
        monthly_goal=request.monthly_goal,
    )
    return ApiResponse[ProgressModel](
        message="Goals updated successfully",
        data=ProgressModel.model_validate(progress),
    )


@router.get(
    "/performance",
    response_model=ApiResponse[PerformanceData],
    summary="Get performance trend",
    description="Daily score averages, improvement rate and per-type averages over a period."
)
def get_performance(
    period: int = Query(ANALYTICS_CONFIG["default_period_days"], ge=1, le=3650, description="Days"),
    user: UserContext = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> ApiResponse[PerformanceData]:
    result = analytics.get_performance_analytics(user.user_id, period_days=period)
    return ApiResponse[PerformanceData](
        data=PerformanceData(
            performance_data=[TrendPointModel.model_validate(p) for p in result.performance_data],
            improvement_rate=result.improvement_rate,
            performance_by_type=[
                TypePerformanceModel.model_validate(t) for t in result.performance_by_type
            ],
            total_sessions=result.total_sessions,
            average_score=result.average_score,
        )
    )


@router.get(
    "/skills",
    response_model=ApiResponse[SkillAnalysisData],
    summary="Get skill analysis",
    description="Accuracy, score and speed per skill plus recurring feedback themes."
)
def get_skills(
    user: UserContext = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> ApiResponse[SkillAnalysisData]:
    result = analytics.get_skill_analysis(user.user_id)
    return ApiResponse[SkillAnalysisData](
        data=SkillAnalysisData(
            skill_analysis=[SkillMetricsModel.model_validate(s) for s in result.skill_analysis],
            recent_feedback=[FeedbackModel.model_validate(f) for f in result.recent_feedback],
            overall_strengths=result.overall_strengths,
            overall_weaknesses=result.overall_weaknesses,
            recommended_actions=result.recommended_actions,
        )
    )
