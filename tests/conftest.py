from datetime import datetime, timedelta, timezone
from typing import Iterable, Tuple

import pytest

from practice_coach.api.analytics_service import AnalyticsService
from practice_coach.api.records import Question, QuestionType, SessionType, User
from practice_coach.api.session_manager import SessionManager
from practice_coach.api.store import InMemoryStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

USER_ID = 1
OTHER_USER_ID = 2
INACTIVE_USER_ID = 3

# Ten tokens; ANSWER_90 shares nine of them
LONG_EXPECTED = "alpha bravo charlie delta echo foxtrot golf hotel india juliet"
ANSWER_90 = "alpha bravo charlie delta echo foxtrot golf hotel india"

# Four tokens; ANSWER_50 covers them plus four extra
SHORT_EXPECTED = "alpha bravo charlie delta"
ANSWER_50 = "alpha bravo charlie delta echo foxtrot golf hotel"

HR_EXPECTED = "clear motivated answer about team growth"


class FakeClock:
    """Controllable replacement for utcnow()."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def build_store(store_class=InMemoryStore) -> InMemoryStore:
    store = store_class()
    store.add_user(User(id=USER_ID, email="candidate@example.com"))
    store.add_user(User(id=OTHER_USER_ID, email="other@example.com"))
    store.add_user(User(id=INACTIVE_USER_ID, email="gone@example.com", is_active=False))

    created = NOW - timedelta(days=60)
    store.add_question(Question(
        id=101, question="Long technical question", type=QuestionType.TECHNICAL,
        category="algorithms", difficulty="hard", created_at=created,
        expected_answer=LONG_EXPECTED, hints=["think"], tags=["trees"],
    ))
    store.add_question(Question(
        id=102, question="Short technical question", type=QuestionType.TECHNICAL,
        category="data-structures", difficulty="easy", created_at=created + timedelta(days=1),
        expected_answer=SHORT_EXPECTED,
    ))
    store.add_question(Question(
        id=103, question="Why this company?", type=QuestionType.HR,
        category="motivation", difficulty="easy", created_at=created + timedelta(days=2),
        expected_answer=HR_EXPECTED, company_id=7,
    ))
    store.add_question(Question(
        id=104, question="Tell me about a conflict", type=QuestionType.BEHAVIORAL,
        category="teamwork", difficulty="medium", created_at=created + timedelta(days=3),
    ))
    store.add_question(Question(
        id=105, question="Retired question", type=QuestionType.TECHNICAL,
        category="algorithms", difficulty="hard", created_at=created + timedelta(days=4),
        is_active=False,
    ))
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return build_store()


@pytest.fixture
def manager(store, clock) -> SessionManager:
    return SessionManager(store, clock=clock)


@pytest.fixture
def analytics(store, clock) -> AnalyticsService:
    return AnalyticsService(store, clock=clock)


def run_session(
    manager: SessionManager,
    clock: FakeClock,
    answers: Iterable[Tuple[int, str, int]],
    session_type: SessionType = SessionType.TECHNICAL,
    user_id: int = USER_ID,
    completed_at: datetime = None,
):
    """Start, answer and complete a session, completing at ``completed_at``."""
    answers = list(answers)
    if completed_at is not None:
        clock.now = completed_at - timedelta(minutes=10)
    session = manager.start(user_id, session_type, question_ids=[a[0] for a in answers])
    for question_id, answer, time_spent in answers:
        manager.submit_answer(user_id, session.id, question_id, time_spent, user_answer=answer)
    if completed_at is not None:
        clock.now = completed_at
    return manager.complete(user_id, session.id)
