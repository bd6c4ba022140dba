"""Tests for unfinished-session lookup."""
from __future__ import annotations

import logging

from interview_session.models import InterviewQuestion, InterviewSession
from interview_session.resolver import ResumptionResolver
from storage.sessions import SessionStore


def _session(session_id: str, *, resume_id: int, status: str = "IN_PROGRESS", claims: bool = True, created_at: str) -> InterviewSession:
    return InterviewSession(
        session_id=session_id,
        resume_id=resume_id,
        resume_text="resume",
        total_questions=1,
        status=status,
        claims_resume_slot=claims,
        created_at=created_at,
        questions=[InterviewQuestion(question_index=0, category="REDIS", question="Why Redis?")],
    )


def test_returns_none_without_candidates() -> None:
    assert ResumptionResolver(SessionStore()).find_unfinished_session(1) is None


def test_ignores_finished_sessions_and_other_resumes() -> None:
    store = SessionStore()
    store.insert_session(_session("done", resume_id=1, status="COMPLETED", created_at="2026-01-01T00:00:00+00:00"))
    store.insert_session(_session("other", resume_id=2, created_at="2026-01-02T00:00:00+00:00"))
    assert ResumptionResolver(store).find_unfinished_session(1) is None


def test_newest_unfinished_session_wins_after_forced_restart(caplog) -> None:
    store = SessionStore()
    store.insert_session(_session("old", resume_id=5, created_at="2026-01-01T00:00:00+00:00"))
    store.insert_session(_session("forced", resume_id=5, claims=False, created_at="2026-01-02T00:00:00+00:00"))

    with caplog.at_level(logging.INFO, logger="interview_session.resolver"):
        chosen = ResumptionResolver(store).find_unfinished_session(5)

    assert chosen.session_id == "forced"
    assert "forced restart" in caplog.text


def test_created_status_counts_as_unfinished() -> None:
    store = SessionStore()
    store.insert_session(_session("fresh", resume_id=8, status="CREATED", created_at="2026-01-01T00:00:00+00:00"))
    assert ResumptionResolver(store).find_unfinished_session(8).session_id == "fresh"


def test_two_slot_claimants_are_logged_as_anomaly(caplog) -> None:
    class StubStore:
        def list_unfinished(self, resume_id):
            return [
                _session("newer", resume_id=resume_id, created_at="2026-01-02T00:00:00+00:00"),
                _session("older", resume_id=resume_id, created_at="2026-01-01T00:00:00+00:00"),
            ]

    with caplog.at_level(logging.WARNING, logger="interview_session.resolver"):
        chosen = ResumptionResolver(StubStore()).find_unfinished_session(3)

    assert chosen.session_id == "newer"
    assert "older" in caplog.text
