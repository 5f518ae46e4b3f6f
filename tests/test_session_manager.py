import threading
import time
from contextlib import contextmanager
from datetime import timedelta

import pytest

from practice_coach.api.errors import InvalidStateError, NotFoundError
from practice_coach.api.feedback_service import FeedbackService
from practice_coach.api.records import FeedbackType, SessionStatus, SessionType
from practice_coach.api.session_manager import SessionManager
from practice_coach.api.store import InMemoryStore
from practice_coach.config import FEEDBACK_CONFIG

from conftest import (
    ANSWER_50,
    ANSWER_90,
    LONG_EXPECTED,
    NOW,
    OTHER_USER_ID,
    USER_ID,
    build_store,
    run_session,
)


class ExplodingFeedback(FeedbackService):
    def synthesize(self, overall_score, responses=()):
        raise RuntimeError("feedback backend down")


class UnguardedStore(InMemoryStore):
    """Store whose transactions neither serialize callers nor roll back."""

    @contextmanager
    def atomic(self):
        yield


class TickingClock:
    """Thread-safe clock advancing one millisecond per reading."""

    def __init__(self, start=NOW):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self._now += timedelta(milliseconds=1)
            return self._now


class TestStart:

    def test_start_creates_in_progress_session(self, manager):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[1, 2])
        assert session.total_questions == 2
        assert session.answered_questions == 0
        assert session.status == SessionStatus.IN_PROGRESS
        assert session.started_at == NOW
        assert session.completed_at is None
        assert session.overall_score is None

    def test_start_without_questions(self, manager):
        session = manager.start(USER_ID, SessionType.HR, company_id=3)
        assert session.total_questions == 0
        assert session.company_id == 3

    def test_question_ids_are_not_checked(self, manager):
        session = manager.start(USER_ID, SessionType.MIXED, question_ids=[999, 1000, 1001])
        assert session.total_questions == 3


class TestSubmitAnswer:

    def test_submit_scores_and_counts(self, manager, store):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101, 102])
        result = manager.submit_answer(USER_ID, session.id, 101, 40, user_answer=ANSWER_90)

        assert result.score == 90.0
        assert result.is_correct is True
        assert result.response.session_id == session.id
        assert result.response.time_spent == 40
        assert store.get_session(session.id).answered_questions == 1
        assert len(store.list_responses(session.id)) == 1

    def test_code_only_submission_scores_zero(self, manager):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
        result = manager.submit_answer(USER_ID, session.id, 101, 10, code_submission="def f(): pass")
        assert result.score == 0
        assert result.is_correct is False
        assert result.response.code_submission == "def f(): pass"

    def test_question_without_reference_scores_zero(self, manager):
        session = manager.start(USER_ID, SessionType.BEHAVIORAL, question_ids=[104])
        result = manager.submit_answer(USER_ID, session.id, 104, 10, user_answer="I listened first")
        assert result.score == 0

    def test_resubmission_and_overflow_are_accepted(self, manager, store):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
        for _ in range(3):
            manager.submit_answer(USER_ID, session.id, 101, 5, user_answer=LONG_EXPECTED)
        stored = store.get_session(session.id)
        assert stored.answered_questions == 3
        assert stored.total_questions == 1

    def test_unknown_session(self, manager):
        with pytest.raises(NotFoundError):
            manager.submit_answer(USER_ID, 404, 101, 5, user_answer="x")

    def test_session_of_another_user(self, manager, store):
        session = manager.start(OTHER_USER_ID, SessionType.TECHNICAL, question_ids=[101])
        with pytest.raises(NotFoundError):
            manager.submit_answer(USER_ID, session.id, 101, 5, user_answer=ANSWER_90)
        assert store.list_responses(session.id) == []

    def test_unknown_question_leaves_session_unchanged(self, manager, store):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
        with pytest.raises(NotFoundError):
            manager.submit_answer(USER_ID, session.id, 999, 5, user_answer=ANSWER_90)
        assert store.get_session(session.id).answered_questions == 0
        assert store.list_responses(session.id) == []

    def test_completed_session_rejects_answers(self, manager, store):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
        manager.complete(USER_ID, session.id)
        with pytest.raises(InvalidStateError):
            manager.submit_answer(USER_ID, session.id, 101, 5, user_answer=ANSWER_90)
        assert store.list_responses(session.id) == []


class TestConcurrency:

    @pytest.mark.parametrize("store_class", [InMemoryStore, UnguardedStore])
    def test_concurrent_submissions_keep_count_consistent(self, store_class, clock):
        store = build_store(store_class)
        manager = SessionManager(store, clock=clock)
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101, 102])

        def submit():
            for _ in range(10):
                manager.submit_answer(USER_ID, session.id, 102, 1, user_answer=ANSWER_50)

        threads = [threading.Thread(target=submit) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get_session(session.id).answered_questions == 80
        assert len(store.list_responses(session.id)) == 80

    @pytest.mark.parametrize("store_class", [InMemoryStore, UnguardedStore])
    def test_submissions_racing_completion(self, store_class):
        store = build_store(store_class)
        manager = SessionManager(store, clock=TickingClock())
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101, 102])

        submitters = 4
        start = threading.Barrier(submitters + 1)
        rejected = []
        unexpected = []

        def submit():
            start.wait()
            while True:
                try:
                    manager.submit_answer(USER_ID, session.id, 101, 1, user_answer=ANSWER_90)
                except InvalidStateError as exc:
                    rejected.append(exc)
                    return
                except Exception as exc:
                    unexpected.append(exc)
                    return

        def finish():
            start.wait()
            time.sleep(0.01)
            manager.complete(USER_ID, session.id)

        threads = [threading.Thread(target=submit) for _ in range(submitters)]
        threads.append(threading.Thread(target=finish))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        completed = store.get_session(session.id)
        responses = store.list_responses(session.id)

        assert unexpected == []
        assert len(rejected) == submitters
        assert completed.status == SessionStatus.COMPLETED
        assert completed.answered_questions == len(responses)
        assert all(r.created_at < completed.completed_at for r in responses)

    def test_session_locks_are_released(self, manager):
        for _ in range(5):
            session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
            manager.submit_answer(USER_ID, session.id, 101, 5, user_answer=ANSWER_90)
            manager.complete(USER_ID, session.id)
        with pytest.raises(NotFoundError):
            manager.complete(USER_ID, 404)

        assert manager._session_locks == {}


class TestComplete:

    def test_end_to_end(self, manager, store, clock):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[1, 2])
        assert (session.total_questions, session.answered_questions) == (2, 0)
        assert session.status == SessionStatus.IN_PROGRESS

        assert manager.submit_answer(USER_ID, session.id, 101, 60, user_answer=ANSWER_90).score == 90
        assert manager.submit_answer(USER_ID, session.id, 102, 60, user_answer=ANSWER_50).score == 50
        assert store.get_session(session.id).answered_questions == 2

        clock.advance(minutes=12)
        completed = manager.complete(USER_ID, session.id)

        assert completed.overall_score == 70
        assert completed.technical_score == 70
        assert completed.confidence_score == 80
        assert completed.communication_score == 75
        assert completed.status == SessionStatus.COMPLETED
        assert completed.completed_at == NOW + timedelta(minutes=12)
        assert completed.duration == 12

        feedback = store.list_feedback(session.id)
        assert len(feedback) == 1
        assert feedback[0].type == FeedbackType.OVERALL
        assert feedback[0].feedback == FEEDBACK_CONFIG["narratives"]["encouraging"]
        assert feedback[0].score == 70

    @pytest.mark.parametrize("elapsed, minutes", [
        (timedelta(seconds=29), 0),
        (timedelta(seconds=30), 1),
        (timedelta(seconds=90), 2),
        (timedelta(minutes=45, seconds=10), 45),
    ])
    def test_duration_rounds_half_up(self, manager, clock, elapsed, minutes):
        session = manager.start(USER_ID, SessionType.HR)
        clock.now = NOW + elapsed
        assert manager.complete(USER_ID, session.id).duration == minutes

    def test_early_completion_of_empty_session(self, manager, store):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101, 102, 103])
        completed = manager.complete(USER_ID, session.id)
        assert completed.status == SessionStatus.COMPLETED
        assert completed.answered_questions == 0
        assert completed.overall_score == 0
        assert completed.confidence_score == 0
        assert store.list_feedback(session.id)[0].feedback == FEEDBACK_CONFIG["narratives"]["improvement"]

    def test_recompletion_recomputes_and_appends_feedback(self, manager, store, clock):
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101, 102])
        manager.submit_answer(USER_ID, session.id, 101, 60, user_answer=ANSWER_90)
        manager.submit_answer(USER_ID, session.id, 102, 60, user_answer=ANSWER_50)

        first = manager.complete(USER_ID, session.id)
        clock.advance(minutes=5)
        second = manager.complete(USER_ID, session.id)

        assert (first.overall_score, first.technical_score, first.confidence_score,
                first.communication_score) == (second.overall_score, second.technical_score,
                                               second.confidence_score, second.communication_score)
        assert second.duration == 5
        assert second.completed_at == NOW + timedelta(minutes=5)
        assert len(store.list_feedback(session.id)) == 2

    def test_complete_session_of_another_user(self, manager, store):
        session = manager.start(OTHER_USER_ID, SessionType.TECHNICAL)
        with pytest.raises(NotFoundError):
            manager.complete(USER_ID, session.id)
        assert store.get_session(session.id).status == SessionStatus.IN_PROGRESS

    def test_failed_completion_is_rolled_back(self, store, clock):
        manager = SessionManager(store, clock=clock, feedback=ExplodingFeedback())
        session = manager.start(USER_ID, SessionType.TECHNICAL, question_ids=[101])
        manager.submit_answer(USER_ID, session.id, 101, 60, user_answer=ANSWER_90)

        with pytest.raises(RuntimeError):
            manager.complete(USER_ID, session.id)

        stored = store.get_session(session.id)
        assert stored.status == SessionStatus.IN_PROGRESS
        assert stored.overall_score is None
        assert stored.completed_at is None
        assert store.list_feedback(session.id) == []
        # Still answerable after the failed completion
        manager.submit_answer(USER_ID, session.id, 101, 60, user_answer=ANSWER_90)
        assert store.get_session(session.id).answered_questions == 2


class TestReads:

    def test_list_sessions_newest_first_with_filter(self, manager, clock):
        first = manager.start(USER_ID, SessionType.TECHNICAL)
        clock.advance(hours=1)
        second = manager.start(USER_ID, SessionType.HR)
        clock.advance(hours=1)
        manager.start(OTHER_USER_ID, SessionType.HR)
        manager.complete(USER_ID, first.id)

        assert [s.id for s in manager.list_sessions(USER_ID)] == [second.id, first.id]
        assert [s.id for s in manager.list_sessions(USER_ID, status=SessionStatus.COMPLETED)] == [first.id]
        assert [s.id for s in manager.list_sessions(USER_ID, page=2, limit=1)] == [first.id]

    def test_session_details(self, manager, clock):
        completed = run_session(manager, clock, [(101, ANSWER_90, 30), (102, ANSWER_50, 20)])
        details = manager.get_session_details(USER_ID, completed.id)

        assert details.session.id == completed.id
        assert [d.response.question_id for d in details.responses] == [101, 102]
        assert details.responses[0].question.expected_answer == LONG_EXPECTED
        assert len(details.feedback) == 1

    def test_session_details_of_another_user(self, manager):
        session = manager.start(OTHER_USER_ID, SessionType.TECHNICAL)
        with pytest.raises(NotFoundError):
            manager.get_session_details(USER_ID, session.id)
