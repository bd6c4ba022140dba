"""Session lifecycle: creation with resumption, sequencing, completion."""
from __future__ import annotations

import logging
import threading
import weakref
from typing import List, Optional, Protocol
from uuid import uuid4

from config.settings import settings
from observability import log_event, span
from services.collaborators import generate_questions
from storage.sessions import ActiveSessionConflict, SessionStore

from .errors import (
    GenerationFailed,
    InvalidArgument,
    ReportNotReady,
    SessionNotFound,
    StaleSubmission,
)
from .models import (
    AnswerOutcome,
    InterviewQuestion,
    InterviewReport,
    InterviewSession,
    SessionCreation,
    TranscriptEntry,
    utc_now,
)
from .resolver import ResumptionResolver
from .sequencer import QuestionSequencer

logger = logging.getLogger(__name__)


class EvaluationDispatcher(Protocol):  # Anything that can take a completed session off our hands
    def schedule(self, session_id: str) -> bool: ...


class SessionOrchestrator:
    """Creates, fetches, advances and terminates interview sessions.

    Generation happens synchronously inside ``create_session``; evaluation is
    handed to ``dispatcher`` and never awaited.
    """

    def __init__(self, store: SessionStore, dispatcher: EvaluationDispatcher) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._resolver = ResumptionResolver(store)
        # Entries vanish once no caller holds the lock.
        self._resume_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
        self._resume_locks_guard = threading.Lock()

    @property
    def resolver(self) -> ResumptionResolver:
        return self._resolver

    def create_session(
        self,
        resume_text: str,
        question_count: int,
        *,
        resume_id: Optional[int] = None,
        force_create: bool = False,
    ) -> SessionCreation:
        text = (resume_text or "").strip()
        if not text:
            raise InvalidArgument("Resume text is required")
        if question_count not in settings.SUPPORTED_QUESTION_COUNTS:
            raise InvalidArgument(
                f"Unsupported question count {question_count}; choose one of {settings.SUPPORTED_QUESTION_COUNTS}"
            )
        if resume_id is None:
            return SessionCreation(kind="created", session=self._create_new(text, question_count, None, claims_slot=False))
        if force_create:
            session = self._create_new(text, question_count, resume_id, claims_slot=False)
            return SessionCreation(kind="created", session=session)

        with self._lock_for(resume_id):
            existing = self._resolver.find_unfinished_session(resume_id)
            if existing is not None:
                log_event("session_resumed", existing.session_id, resume_id=resume_id, question_index=existing.current_question_index)
                return SessionCreation(kind="resumed", session=existing)
            try:
                session = self._create_new(text, question_count, resume_id, claims_slot=True)
            except ActiveSessionConflict:
                # Another process won the race between our lookup and insert.
                winner = self._resolver.find_unfinished_session(resume_id)
                if winner is None:
                    raise
                logger.info("Lost creation race for resume %s; resuming %s", resume_id, winner.session_id)
                log_event("session_resumed", winner.session_id, resume_id=resume_id, outcome="race_lost")
                return SessionCreation(kind="resumed", session=winner)
        return SessionCreation(kind="created", session=session)

    def get_session(self, session_id: str) -> InterviewSession:
        session = self._store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def get_current_question(self, session_id: str) -> Optional[InterviewQuestion]:
        """Question at the cursor, or ``None`` once no more answers are accepted."""

        session = self.get_session(session_id)
        if not session.is_active:
            return None
        return QuestionSequencer.for_session(session).current()

    def submit_answer(self, session_id: str, question_index: int, answer_text: str) -> AnswerOutcome:
        session = self.get_session(session_id)
        answer = (answer_text or "").strip()
        if not session.is_active:
            log_event("stale_submission", session_id, question_index=question_index, status=session.status)
            raise StaleSubmission(session_id, expected=session.current_question_index, received=question_index)
        sequencer = QuestionSequencer.for_session(session)
        if question_index != sequencer.cursor:
            log_event("stale_submission", session_id, question_index=question_index, status=session.status)
            raise StaleSubmission(session_id, expected=sequencer.cursor, received=question_index)
        if not answer:
            raise InvalidArgument("Answer text is required", session_id=session_id)

        answered_at = utc_now()
        sequencer.accept(question_index, answer, answered_at=answered_at)
        completed_at = utc_now() if sequencer.exhausted else None
        stored = self._store.record_answer(
            session.id,
            question_index,
            answer,
            answered_at=answered_at,
            completed_at=completed_at,
        )
        if not stored:
            current = self.get_session(session_id)
            log_event("stale_submission", session_id, question_index=question_index, outcome="race_lost")
            raise StaleSubmission(session_id, expected=current.current_question_index, received=question_index)
        log_event("answer_submitted", session_id, question_index=question_index)

        if completed_at is None:
            return AnswerOutcome(has_next_question=True, next_question=sequencer.current())
        log_event("session_completed", session_id, status="COMPLETED", outcome="all_answered")
        self._dispatch(session_id)
        return AnswerOutcome(has_next_question=False)

    def complete_interview(self, session_id: str) -> InterviewSession:
        """End the session early; repeat calls on a finished session are no-ops."""

        session = self.get_session(session_id)
        if session.is_finished:
            if session.status == "COMPLETED" and session.evaluate_status is None:
                self._dispatch(session_id)
                return self.get_session(session_id)
            return session
        if self._store.mark_completed(session.id, completed_at=utc_now()):
            log_event(
                "session_completed",
                session_id,
                status="COMPLETED",
                question_index=session.current_question_index,
                outcome="early",
            )
            self._dispatch(session_id)
        return self.get_session(session_id)

    def find_unfinished_session(self, resume_id: int) -> Optional[InterviewSession]:
        return self._resolver.find_unfinished_session(resume_id)

    def get_transcript(self, session_id: str) -> List[TranscriptEntry]:
        return QuestionSequencer.for_session(self.get_session(session_id)).replay()

    def list_sessions(self, resume_id: Optional[int] = None) -> List[InterviewSession]:
        return self._store.list_sessions(resume_id)

    def get_report(self, session_id: str) -> InterviewReport:
        session = self.get_session(session_id)
        if not session.is_finished or session.evaluate_status != "COMPLETED":
            raise ReportNotReady(
                session_id,
                status=session.status,
                evaluate_status=session.evaluate_status,
                error=session.evaluate_error,
            )
        return InterviewReport(
            session_id=session.session_id,
            total_questions=session.total_questions,
            answered_count=session.answered_count,
            overall_score=session.overall_score or 0,
            overall_feedback=session.overall_feedback or "",
            strengths=session.strengths,
            improvements=session.improvements,
            questions=session.questions,
            completed_at=session.completed_at,
        )

    def _create_new(
        self,
        resume_text: str,
        question_count: int,
        resume_id: Optional[int],
        *,
        claims_slot: bool,
    ) -> InterviewSession:
        session_id = uuid4().hex
        try:
            with span(session_id, "generate_questions", resume_id=resume_id):
                generated = generate_questions(
                    resume_text,
                    question_count,
                    settings.CATEGORY_PROPORTIONS,
                    timeout_s=settings.GENERATION_TIMEOUT_S,
                )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Question generation failed for resume %s", resume_id)
            raise GenerationFailed(f"Question generation failed: {exc}", session_id=session_id) from exc
        if len(generated) != question_count:
            raise GenerationFailed(
                f"Generator returned {len(generated)} questions, expected {question_count}",
                session_id=session_id,
            )

        session = InterviewSession(
            session_id=session_id,
            resume_id=resume_id,
            resume_text=resume_text,
            total_questions=question_count,
            claims_resume_slot=claims_slot,
            questions=[
                InterviewQuestion(question_index=index, category=item.category, question=item.question)
                for index, item in enumerate(generated)
            ],
        )
        log_event("session_created", session_id, resume_id=resume_id, status=session.status)
        session.status = "IN_PROGRESS"
        stored = self._store.insert_session(session)
        log_event("session_started", session_id, resume_id=resume_id, status=stored.status)
        return stored

    def _dispatch(self, session_id: str) -> None:
        try:
            self._dispatcher.schedule(session_id)
        except Exception:  # noqa: BLE001
            logger.exception("Unable to schedule evaluation for %s", session_id)

    def _lock_for(self, resume_id: int) -> threading.Lock:
        with self._resume_locks_guard:
            lock = self._resume_locks.get(resume_id)
            if lock is None:
                lock = threading.Lock()
                self._resume_locks[resume_id] = lock
        return lock


__all__ = ["EvaluationDispatcher", "SessionOrchestrator"]
