# API Routes
"""
FastAPI route handlers for interview sessions and the question catalog.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .auth import UserContext, get_current_user
from .dependencies import get_question_catalog, get_session_manager
from .models import (
    ApiResponse,
    CompleteSessionRequest,
    ErrorResponse,
    FeedbackModel,
    InterviewQuestionModel,
    Pagination,
    QuestionListResponse,
    QuestionModel,
    ResponseDetailModel,
    ResponseModel,
    SessionDetailsData,
    SessionModel,
    StartSessionRequest,
    SubmitAnswerData,
    SubmitAnswerRequest,
)
from .question_catalog import QuestionCatalog, QuestionFilters
from .records import QuestionSortField, QuestionType, SessionStatus, SortOrder
from .session_manager import SessionManager

router = APIRouter(prefix="/api/v1/interviews", tags=["interview"])

_AUTH_ERRORS = {401: {"model": ErrorResponse}}


# ============================================================================
# Question Catalog Endpoints
# ============================================================================

@router.get(
    "/questions",
    response_model=QuestionListResponse,
    summary="List interview questions",
    description="Browse active catalog questions with filtering, sorting and pagination."
)
def list_questions(
    type: Optional[QuestionType] = None,
    difficulty: Optional[str] = None,
    company_id: Optional[int] = Query(None, alias="companyId"),
    category: Optional[str] = None,
    sort_by: QuestionSortField = Query(QuestionSortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    catalog: QuestionCatalog = Depends(get_question_catalog),
) -> QuestionListResponse:
    result = catalog.list_questions(
        filters=QuestionFilters(
            type=type, difficulty=difficulty, company_id=company_id, category=category
        ),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return QuestionListResponse(
        data=[QuestionModel.model_validate(q) for q in result.questions],
        pagination=Pagination(
            page=result.page, limit=result.limit, total=result.total, pages=result.pages
        ),
    )


@router.get(
    "/questions/random",
    response_model=ApiResponse[List[InterviewQuestionModel]],
    summary="Draw random questions",
    description="Draw random active questions for an interview. Expected answers are never included."
)
def random_questions(
    type: Optional[QuestionType] = None,
    difficulty: Optional[str] = None,
    company_id: Optional[int] = Query(None, alias="companyId"),
    count: int = Query(5, ge=1, le=50),
    catalog: QuestionCatalog = Depends(get_question_catalog),
) -> ApiResponse[List[InterviewQuestionModel]]:
    questions = catalog.random_questions(
        filters=QuestionFilters(type=type, difficulty=difficulty, company_id=company_id),
        count=count,
    )
    return ApiResponse[List[InterviewQuestionModel]](
        data=[InterviewQuestionModel.model_validate(q) for q in questions]
    )


# ============================================================================
# Session Lifecycle Endpoints
# ============================================================================

@router.post(
    "/sessions/start",
    status_code=201,
    response_model=ApiResponse[SessionModel],
    responses=_AUTH_ERRORS,
    summary="Start a new interview session",
)
def start_session(
    request: StartSessionRequest,
    user: UserContext = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> ApiResponse[SessionModel]:
    session = manager.start(
        user_id=user.user_id,
        session_type=request.type,
        company_id=request.company_id,
        question_ids=request.question_ids,
    )
    return ApiResponse[SessionModel](
        message="Interview session started successfully",
        data=SessionModel.model_validate(session),
    )


@router.post(
    "/sessions/submit-answer",
    response_model=ApiResponse[SubmitAnswerData],
    responses={**_AUTH_ERRORS, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Submit an answer",
    description="Score and record an answer for a session that is still in progress."
)
def submit_answer(
    request: SubmitAnswerRequest,
    user: UserContext = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> ApiResponse[SubmitAnswerData]:
    result = manager.submit_answer(
        user_id=user.user_id,
        session_id=request.session_id,
        question_id=request.question_id,
        time_spent=request.time_spent,
        user_answer=request.user_answer,
        code_submission=request.code_submission,
    )
    return ApiResponse[SubmitAnswerData](
        message="Answer submitted successfully",
        data=SubmitAnswerData(
            response=ResponseModel.model_validate(result.response),
            score=result.score,
            is_correct=result.is_correct,
        ),
    )


@router.post(
    "/sessions/complete",
    response_model=ApiResponse[SessionModel],
    responses={**_AUTH_ERRORS, 404: {"model": ErrorResponse}},
    summary="Complete an interview session",
    description="Aggregate the session's scores and generate overall feedback."
)
def complete_session(
    request: CompleteSessionRequest,
    user: UserContext = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> ApiResponse[SessionModel]:
    session = manager.complete(user_id=user.user_id, session_id=request.session_id)
    return ApiResponse[SessionModel](
        message="Interview session completed successfully",
        data=SessionModel.model_validate(session),
    )


# ============================================================================
# Session History Endpoints
# ============================================================================

@router.get(
    "/sessions",
    response_model=ApiResponse[List[SessionModel]],
    responses=_AUTH_ERRORS,
    summary="List your interview sessions",
)
def list_sessions(
    status: Optional[SessionStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserContext = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> ApiResponse[List[SessionModel]]:
    sessions = manager.list_sessions(user.user_id, status=status, page=page, limit=limit)
    return ApiResponse[List[SessionModel]](
        data=[SessionModel.model_validate(s) for s in sessions]
    )


@router.get(
    "/sessions/{session_id}",
    response_model=ApiResponse[SessionDetailsData],
    responses={**_AUTH_ERRORS, 404: {"model": ErrorResponse}},
    summary="Get session details",
    description="Retrieve a session with its answers and generated feedback."
)
def get_session_details(
    session_id: int,
    user: UserContext = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> ApiResponse[SessionDetailsData]:
    details = manager.get_session_details(user.user_id, session_id)
    return ApiResponse[SessionDetailsData](
        data=SessionDetailsData(
            session=SessionModel.model_validate(details.session),
            responses=[ResponseDetailModel.from_detail(d) for d in details.responses],
            feedback=[FeedbackModel.model_validate(f) for f in details.feedback],
        )
    )
