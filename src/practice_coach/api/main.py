# FastAPI Application
"""
Main FastAPI application for the Practice Coach API.
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from practice_coach.config import APP_CONFIG, LOGGING_CONFIG, STORE_CONFIG

from .analytics_routes import router as analytics_router
from .analytics_service import AnalyticsService
from .errors import (
    InvalidStateError,
    NotFoundError,
    PracticeCoachError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from .models import ErrorResponse, HealthResponse
from .question_catalog import QuestionCatalog
from .records import utcnow
from .routes import router as interview_router
from .session_manager import SessionManager
from .store import InterviewStore, create_store, load_seed

# Configure logging
logging.basicConfig(
    level=LOGGING_CONFIG["log_level"],
    format=LOGGING_CONFIG["format"],
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    NotFoundError: 404,
    InvalidStateError: 400,
    UnauthenticatedError: 401,
    StoreUnavailableError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("🚀 Practice Coach API starting up...")
    app.state.store.check_connection()
    yield
    logger.info("👋 Practice Coach API shutting down...")


def create_app(
    store: Optional[InterviewStore] = None,
    clock: Callable[[], datetime] = utcnow,
    seed_path: Optional[str] = None,
) -> FastAPI:
    """
    Build the API with its store and services.

    Args:
        store: Store to serve from (defaults to the configured backend)
        clock: Source of the current UTC time
        seed_path: JSON seed file to load (defaults to the configured one
                   when the store is created here; "" disables seeding)

    Raises:
        StoreUnavailableError: the configured store cannot be created
    """
    if store is None:
        store = create_store(STORE_CONFIG["backend"])
        if seed_path is None:
            seed_path = STORE_CONFIG["seed_path"]
    if seed_path:
        load_seed(store, seed_path)

    app = FastAPI(
        title=APP_CONFIG["title"],
        description="""
    Practice interview backend: timed question/answer sessions, answer
    scoring and progress analytics.

    ## Workflow

    1. **GET /api/v1/interviews/questions/random** - Draw questions
    2. **POST /api/v1/interviews/sessions/start** - Start a session
    3. **POST /api/v1/interviews/sessions/submit-answer** - Submit each answer
    4. **POST /api/v1/interviews/sessions/complete** - Complete and get scored
    5. **GET /api/v1/analytics/...** - Track progress, trends and skills

    Authenticated endpoints expect the verified user id in `X-User-Id`.
    """,
        version=APP_CONFIG["version"],
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.state.store = store
    app.state.session_manager = SessionManager(store, clock=clock)
    app.state.analytics_service = AnalyticsService(store, clock=clock)
    app.state.question_catalog = QuestionCatalog(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=APP_CONFIG["cors_origins"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(interview_router)
    app.include_router(analytics_router)
    _register_system_routes(app)
    _register_exception_handlers(app)

    return app


# ============================================================================
# Root Endpoints
# ============================================================================

def _register_system_routes(app: FastAPI) -> None:

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": APP_CONFIG["title"],
            "version": APP_CONFIG["version"],
            "docs": "/docs",
            "health": "/health"
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["system"],
        summary="Health check",
        description="Check if the API is running and its store is reachable."
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        store: InterviewStore = app.state.store
        try:
            store.check_connection()
            status = "healthy"
        except StoreUnavailableError as exc:
            logger.error(f"Store check failed: {exc}")
            status = "degraded"

        return HealthResponse(
            status=status,
            version=APP_CONFIG["version"],
            timestamp=utcnow(),
            store_backend=store.backend_name,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(PracticeCoachError)
    async def practice_coach_error_handler(request: Request, exc: PracticeCoachError):
        """Map core errors onto their HTTP status."""
        status_code = next(
            (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
            400,
        )
        body = ErrorResponse(error=exc.error_name, detail=exc.detail, session_id=exc.session_id)
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "detail": "An unexpected error occurred. Please try again later."
            }
        )


app = create_app()


# ============================================================================
# Entry point for running directly
# ============================================================================

def run_server(
    host: str = APP_CONFIG["host"],
    port: int = APP_CONFIG["port"],
    reload: bool = False,
):
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(
        "practice_coach.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=LOGGING_CONFIG["log_level"].lower()
    )


if __name__ == "__main__":
    run_server(reload=True)
