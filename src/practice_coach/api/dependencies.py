# Route Dependencies
"""
FastAPI dependencies exposing the services built at startup.
"""

from fastapi import Request

from .analytics_service import AnalyticsService
from .question_catalog import QuestionCatalog
from .session_manager import SessionManager
from .store import InterviewStore


def get_store(request: Request) -> InterviewStore:
    return request.app.state.store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


def get_question_catalog(request: Request) -> QuestionCatalog:
    return request.app.state.question_catalog
