# Practice Coach API Package
"""
FastAPI backend for the Practice Coach system.

Provides REST API endpoints for:
- Browsing and drawing interview questions
- Starting interview sessions
- Submitting and scoring answers
- Completing sessions with aggregated scores and feedback
- Progress, goal, trend and skill analytics
"""

from .main import app, create_app
from .session_manager import SessionManager
from .analytics_service import AnalyticsService
from .feedback_service import FeedbackService, feedback_service

__all__ = [
    "app",
    "create_app",
    "SessionManager",
    "AnalyticsService",
    "FeedbackService",
    "feedback_service",
]
