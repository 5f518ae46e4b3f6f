# Interview Store
"""
Persistence interface for the practice coach core and its in-memory backend.

The store is the only shared mutable resource. Every record handed out is a
copy, so a caller only changes stored state through an explicit update call.
State-changing operations group their writes inside ``atomic()``: either all
of them are applied or, when an exception escapes the block, none are.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import StoreUnavailableError
from .records import (
    Feedback,
    FeedbackType,
    InterviewResponse,
    InterviewSession,
    Question,
    QuestionType,
    SessionStatus,
    SessionType,
    User,
    UserProgress,
    utcnow,
)

logger = logging.getLogger(__name__)


class InterviewStore(ABC):
    """Transactional create/read/update access to the core's records."""

    backend_name = "abstract"

    @abstractmethod
    def check_connection(self) -> None:
        """Raise StoreUnavailableError when the store cannot serve requests."""

    @abstractmethod
    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Group writes so they are applied all together or not at all."""

    # Users -----------------------------------------------------------------

    @abstractmethod
    def add_user(self, user: User) -> User: ...

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    # Questions -------------------------------------------------------------

    @abstractmethod
    def add_question(self, question: Question) -> Question: ...

    @abstractmethod
    def get_question(self, question_id: int) -> Optional[Question]: ...

    @abstractmethod
    def list_questions(self) -> List[Question]: ...

    # Sessions --------------------------------------------------------------

    @abstractmethod
    def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        total_questions: int,
        started_at: datetime,
        company_id: Optional[int] = None,
    ) -> InterviewSession: ...

    @abstractmethod
    def get_session(self, session_id: int) -> Optional[InterviewSession]: ...

    @abstractmethod
    def update_session(self, session: InterviewSession) -> InterviewSession: ...

    @abstractmethod
    def list_sessions(
        self,
        user_id: int,
        status: Optional[SessionStatus] = None,
    ) -> List[InterviewSession]: ...

    # Responses -------------------------------------------------------------

    @abstractmethod
    def create_response(
        self,
        session_id: int,
        question_id: int,
        time_spent: int,
        score: float,
        is_correct: bool,
        created_at: datetime,
        user_answer: Optional[str] = None,
        code_submission: Optional[str] = None,
    ) -> InterviewResponse: ...

    @abstractmethod
    def list_responses(self, session_id: int) -> List[InterviewResponse]: ...

    # Feedback --------------------------------------------------------------

    @abstractmethod
    def create_feedback(
        self,
        session_id: int,
        feedback_type: FeedbackType,
        feedback: str,
        strengths: List[str],
        weaknesses: List[str],
        improvement_tips: List[str],
        score: float,
        created_at: datetime,
    ) -> Feedback: ...

    @abstractmethod
    def list_feedback(self, session_id: int) -> List[Feedback]: ...

    # Progress --------------------------------------------------------------

    @abstractmethod
    def get_progress(self, user_id: int) -> Optional[UserProgress]: ...

    @abstractmethod
    def create_progress(
        self,
        user_id: int,
        weekly_goal: int,
        monthly_goal: int,
        updated_at: datetime,
    ) -> UserProgress: ...

    @abstractmethod
    def update_progress(self, progress: UserProgress) -> UserProgress: ...


_MISSING = object()


class InMemoryStore(InterviewStore):
    """
    Thread-safe in-process store.

    A single re-entrant lock guards every table. ``atomic()`` holds it for
    the whole block and journals each row it overwrites, so a failed block
    is undone row by row. Stored rows are never mutated in place; every
    write replaces the row object.
    """

    backend_name = "memory"

    _TABLES = ("users", "questions", "sessions", "responses", "feedback", "progress")

    def __init__(self):
        self._lock = RLock()
        self._users: Dict[int, User] = {}
        self._questions: Dict[int, Question] = {}
        self._sessions: Dict[int, InterviewSession] = {}
        self._responses: Dict[int, InterviewResponse] = {}
        self._feedback: Dict[int, Feedback] = {}
        self._progress: Dict[int, UserProgress] = {}
        self._next_ids = {name: 1 for name in self._TABLES}
        # (table, key, previous row or _MISSING) for the open transaction
        self._journal: Optional[List[Tuple[dict, int, object]]] = None
        logger.info("InMemoryStore initialized")

    def check_connection(self) -> None:
        # Nothing to reach for an in-process store
        return None

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            if self._journal is not None:
                # Nested block joins the enclosing transaction
                yield
                return

            self._journal = []
            saved_ids = dict(self._next_ids)
            try:
                yield
            except BaseException:
                self._rollback(saved_ids)
                raise
            finally:
                self._journal = None

    def _rollback(self, saved_ids: Dict[str, int]) -> None:
        for table, key, previous in reversed(self._journal):
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        self._next_ids = saved_ids
        logger.warning(f"Store transaction rolled back ({len(self._journal)} writes undone)")

    def _put(self, table: dict, key: int, row) -> None:
        if self._journal is not None:
            self._journal.append((table, key, table.get(key, _MISSING)))
        table[key] = row

    def _next_id(self, table: str) -> int:
        value = self._next_ids[table]
        self._next_ids[table] = value + 1
        return value

    # Users -----------------------------------------------------------------

    def add_user(self, user: User) -> User:
        with self._lock:
            self._put(self._users, user.id, copy.deepcopy(user))
            return copy.deepcopy(user)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return copy.deepcopy(self._users.get(user_id))

    # Questions -------------------------------------------------------------

    def add_question(self, question: Question) -> Question:
        with self._lock:
            self._put(self._questions, question.id, copy.deepcopy(question))
            return copy.deepcopy(question)

    def get_question(self, question_id: int) -> Optional[Question]:
        with self._lock:
            return copy.deepcopy(self._questions.get(question_id))

    def list_questions(self) -> List[Question]:
        with self._lock:
            return [copy.deepcopy(q) for q in self._questions.values()]

    # Sessions --------------------------------------------------------------

    def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        total_questions: int,
        started_at: datetime,
        company_id: Optional[int] = None,
    ) -> InterviewSession:
        with self._lock:
            session = InterviewSession(
                id=self._next_id("sessions"),
                user_id=user_id,
                type=session_type,
                status=SessionStatus.IN_PROGRESS,
                total_questions=total_questions,
                answered_questions=0,
                started_at=started_at,
                company_id=company_id,
                updated_at=started_at,
            )
            self._put(self._sessions, session.id, session)
            return copy.deepcopy(session)

    def get_session(self, session_id: int) -> Optional[InterviewSession]:
        with self._lock:
            return copy.deepcopy(self._sessions.get(session_id))

    def update_session(self, session: InterviewSession) -> InterviewSession:
        with self._lock:
            if session.id not in self._sessions:
                raise KeyError(f"Session not found: {session.id}")
            self._put(self._sessions, session.id, copy.deepcopy(session))
            return copy.deepcopy(session)

    def list_sessions(
        self,
        user_id: int,
        status: Optional[SessionStatus] = None,
    ) -> List[InterviewSession]:
        with self._lock:
            return [
                copy.deepcopy(s)
                for s in self._sessions.values()
                if s.user_id == user_id and (status is None or s.status == status)
            ]

    # Responses -------------------------------------------------------------

    def create_response(
        self,
        session_id: int,
        question_id: int,
        time_spent: int,
        score: float,
        is_correct: bool,
        created_at: datetime,
        user_answer: Optional[str] = None,
        code_submission: Optional[str] = None,
    ) -> InterviewResponse:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Session not found: {session_id}")
            if question_id not in self._questions:
                raise KeyError(f"Question not found: {question_id}")
            response = InterviewResponse(
                id=self._next_id("responses"),
                session_id=session_id,
                question_id=question_id,
                time_spent=time_spent,
                score=score,
                is_correct=is_correct,
                created_at=created_at,
                user_answer=user_answer,
                code_submission=code_submission,
            )
            self._put(self._responses, response.id, response)
            return copy.deepcopy(response)

    def list_responses(self, session_id: int) -> List[InterviewResponse]:
        with self._lock:
            return [
                copy.deepcopy(r)
                for r in self._responses.values()
                if r.session_id == session_id
            ]

    # Feedback --------------------------------------------------------------

    def create_feedback(
        self,
        session_id: int,
        feedback_type: FeedbackType,
        feedback: str,
        strengths: List[str],
        weaknesses: List[str],
        improvement_tips: List[str],
        score: float,
        created_at: datetime,
    ) -> Feedback:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Session not found: {session_id}")
            record = Feedback(
                id=self._next_id("feedback"),
                session_id=session_id,
                type=feedback_type,
                feedback=feedback,
                strengths=list(strengths),
                weaknesses=list(weaknesses),
                improvement_tips=list(improvement_tips),
                score=score,
                created_at=created_at,
            )
            self._put(self._feedback, record.id, record)
            return copy.deepcopy(record)

    def list_feedback(self, session_id: int) -> List[Feedback]:
        with self._lock:
            return [
                copy.deepcopy(f)
                for f in self._feedback.values()
                if f.session_id == session_id
            ]

    # Progress --------------------------------------------------------------

    def get_progress(self, user_id: int) -> Optional[UserProgress]:
        with self._lock:
            return copy.deepcopy(self._progress.get(user_id))

    def create_progress(
        self,
        user_id: int,
        weekly_goal: int,
        monthly_goal: int,
        updated_at: datetime,
    ) -> UserProgress:
        with self._lock:
            if user_id in self._progress:
                raise ValueError(f"Progress already exists for user {user_id}")
            progress = UserProgress(
                id=self._next_id("progress"),
                user_id=user_id,
                weekly_goal=weekly_goal,
                monthly_goal=monthly_goal,
                updated_at=updated_at,
            )
            self._put(self._progress, user_id, progress)
            return copy.deepcopy(progress)

    def update_progress(self, progress: UserProgress) -> UserProgress:
        with self._lock:
            if progress.user_id not in self._progress:
                raise KeyError(f"Progress not found for user {progress.user_id}")
            self._put(self._progress, progress.user_id, copy.deepcopy(progress))
            return copy.deepcopy(progress)


# ============================================================================
# Factory and seeding
# ============================================================================

_BACKENDS = {
    InMemoryStore.backend_name: InMemoryStore,
}


def create_store(backend: str) -> InterviewStore:
    """
    Create the configured store and verify it can serve requests.

    Raises:
        StoreUnavailableError: unknown backend or failed connection check
    """
    store_class = _BACKENDS.get(backend)
    if store_class is None:
        raise StoreUnavailableError(
            f"Unknown store backend '{backend}'. Available: {', '.join(sorted(_BACKENDS))}"
        )

    store = store_class()
    store.check_connection()
    logger.info(f"Store ready: {backend}")
    return store


def _parse_datetime(value: Optional[str]) -> datetime:
    if not value:
        return utcnow()
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def load_seed(store: InterviewStore, seed_path: str) -> Dict[str, int]:
    """
    Load demo users and catalog questions from a JSON file.

    Args:
        store: Store to populate
        seed_path: Path to a JSON document with "users" and "questions" lists

    Returns:
        Number of users and questions loaded
    """
    path = Path(seed_path)
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)

    users = payload.get("users", [])
    questions = payload.get("questions", [])

    for item in users:
        store.add_user(User(
            id=item["id"],
            email=item["email"],
            first_name=item.get("first_name", ""),
            last_name=item.get("last_name", ""),
            role=item.get("role", "user"),
            is_active=item.get("is_active", True),
        ))

    for item in questions:
        store.add_question(Question(
            id=item["id"],
            question=item["question"],
            type=QuestionType(item["type"]),
            category=item["category"],
            difficulty=item["difficulty"],
            created_at=_parse_datetime(item.get("created_at")),
            company_id=item.get("company_id"),
            expected_answer=item.get("expected_answer"),
            hints=item.get("hints", []),
            code_template=item.get("code_template"),
            tags=item.get("tags", []),
            is_active=item.get("is_active", True),
        ))

    logger.info(f"Seeded {len(users)} users and {len(questions)} questions from {path}")
    return {"users": len(users), "questions": len(questions)}
