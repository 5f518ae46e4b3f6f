# Session Manager
"""
Interview session lifecycle: start, submit answers, complete.

Sessions move from ``in_progress`` to ``completed`` and never back.
State-changing operations on one session are serialized with a per-session
lock, and their store writes run inside one store transaction, so a failed
operation leaves nothing behind.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .errors import InvalidStateError, NotFoundError
from .feedback_service import FeedbackService, feedback_service
from .records import (
    Feedback,
    InterviewResponse,
    InterviewSession,
    Question,
    SessionStatus,
    SessionType,
    utcnow,
)
from .scoring import aggregate_scores, round_half_up, score_answer
from .store import InterviewStore

logger = logging.getLogger(__name__)


@dataclass
class _SessionLock:
    """A session lock and the number of callers holding or waiting on it."""
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


@dataclass
class SubmittedAnswer:
    """Outcome of a submitted answer."""
    response: InterviewResponse
    score: float
    is_correct: bool


@dataclass
class ResponseDetail:
    """A stored response joined with its catalog question."""
    response: InterviewResponse
    question: Optional[Question]


@dataclass
class SessionDetails:
    """A session with everything recorded against it."""
    session: InterviewSession
    responses: List[ResponseDetail] = field(default_factory=list)
    feedback: List[Feedback] = field(default_factory=list)


class SessionManager:
    """
    Owns the interview session state machine.

    Provides:
    - Session start
    - Answer submission and scoring
    - Completion with score aggregation and feedback
    - Owner-scoped session listing and details
    """

    def __init__(
        self,
        store: InterviewStore,
        clock: Callable[[], datetime] = utcnow,
        feedback: FeedbackService = feedback_service,
    ):
        self._store = store
        self._clock = clock
        self._feedback = feedback
        self._session_locks: Dict[int, _SessionLock] = {}
        self._locks_guard = Lock()
        logger.info("SessionManager initialized")

    @contextmanager
    def _locked(self, session_id: int) -> Iterator[None]:
        """Hold the lock of one session for the duration of the block."""
        with self._locks_guard:
            entry = self._session_locks.get(session_id)
            if entry is None:
                entry = self._session_locks[session_id] = _SessionLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._session_locks[session_id]

    def _get_owned_session(self, user_id: int, session_id: int) -> InterviewSession:
        session = self._store.get_session(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError("Interview session not found", session_id=session_id)
        return session

    # ========================================================================
    # State transitions
    # ========================================================================

    def start(
        self,
        user_id: int,
        session_type: SessionType,
        company_id: Optional[int] = None,
        question_ids: Optional[Sequence[int]] = None,
    ) -> InterviewSession:
        """
        Create a new in-progress session.

        The question ids only fix ``total_questions``; they are not checked
        against the catalog.
        """
        session = self._store.create_session(
            user_id=user_id,
            session_type=SessionType(session_type),
            total_questions=len(question_ids) if question_ids else 0,
            started_at=self._clock(),
            company_id=company_id,
        )
        logger.info(
            f"Session {session.id}: started by user {user_id} "
            f"({session.type.value}, {session.total_questions} questions)"
        )
        return session

    def submit_answer(
        self,
        user_id: int,
        session_id: int,
        question_id: int,
        time_spent: int,
        user_answer: Optional[str] = None,
        code_submission: Optional[str] = None,
    ) -> SubmittedAnswer:
        """
        Score and record an answer for an in-progress session.

        Re-answering a question and answering past ``total_questions`` are
        both accepted.

        Raises:
            NotFoundError: unknown session, session of another user, or unknown question
            InvalidStateError: session is no longer in progress
        """
        with self._locked(session_id), self._store.atomic():
            session = self._get_owned_session(user_id, session_id)

            if session.status != SessionStatus.IN_PROGRESS:
                raise InvalidStateError("Interview session is not active", session_id=session_id)

            question = self._store.get_question(question_id)
            if question is None:
                raise NotFoundError(f"Question not found: {question_id}", session_id=session_id)

            result = score_answer(user_answer, question.expected_answer)
            now = self._clock()

            response = self._store.create_response(
                session_id=session_id,
                question_id=question_id,
                time_spent=time_spent,
                score=result.score,
                is_correct=result.is_correct,
                created_at=now,
                user_answer=user_answer,
                code_submission=code_submission,
            )

            session.answered_questions += 1
            session.updated_at = now
            self._store.update_session(session)

        logger.info(
            f"Session {session_id}: answer to question {question_id} scored "
            f"{result.score:.2f} (correct={result.is_correct})"
        )
        return SubmittedAnswer(response=response, score=result.score, is_correct=result.is_correct)

    def complete(self, user_id: int, session_id: int) -> InterviewSession:
        """
        Complete a session, aggregating its scores and writing overall feedback.

        Any status is accepted. Completing again recomputes scores and
        duration from the current responses and appends another feedback
        record.

        Raises:
            NotFoundError: unknown session or session of another user
        """
        with self._locked(session_id), self._store.atomic():
            session = self._get_owned_session(user_id, session_id)
            responses = self._store.list_responses(session_id)

            scores = aggregate_scores(r.score for r in responses)
            now = self._clock()
            elapsed_minutes = (now - session.started_at).total_seconds() / 60

            session.overall_score = scores.overall
            session.technical_score = scores.technical
            session.confidence_score = scores.confidence
            session.communication_score = scores.communication
            session.duration = int(round_half_up(elapsed_minutes))
            session.status = SessionStatus.COMPLETED
            session.completed_at = now
            session.updated_at = now
            session = self._store.update_session(session)

            draft = self._feedback.synthesize(scores.overall, responses)
            self._store.create_feedback(
                session_id=session_id,
                feedback_type=draft.type,
                feedback=draft.feedback,
                strengths=draft.strengths,
                weaknesses=draft.weaknesses,
                improvement_tips=draft.improvement_tips,
                score=draft.score,
                created_at=now,
            )

        logger.info(
            f"Session {session_id}: completed with overall score {scores.overall:.2f} "
            f"after {session.duration} min ({len(responses)} responses)"
        )
        return session

    # ========================================================================
    # Reads
    # ========================================================================

    def get_session(self, user_id: int, session_id: int) -> InterviewSession:
        """Retrieve a session owned by the user or raise NotFoundError."""
        return self._get_owned_session(user_id, session_id)

    def list_sessions(
        self,
        user_id: int,
        status: Optional[SessionStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> List[InterviewSession]:
        """List the user's sessions, most recently started first."""
        sessions = self._store.list_sessions(user_id, status=status)
        sessions.sort(key=lambda s: (s.started_at, s.id), reverse=True)
        offset = (page - 1) * limit
        return sessions[offset:offset + limit]

    def get_session_details(self, user_id: int, session_id: int) -> SessionDetails:
        """Retrieve a session with its responses and feedback."""
        session = self._get_owned_session(user_id, session_id)
        responses = sorted(self._store.list_responses(session_id), key=lambda r: r.id)
        feedback = sorted(self._store.list_feedback(session_id), key=lambda f: f.id)

        return SessionDetails(
            session=session,
            responses=[
                ResponseDetail(response=r, question=self._store.get_question(r.question_id))
                for r in responses
            ],
            feedback=feedback,
        )
