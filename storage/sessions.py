"""Persistence for interview sessions and their questions."""
from __future__ import annotations

import json
import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence

from interview_session.models import (
    ACTIVE_STATUSES,
    EvaluationReport,
    InterviewQuestion,
    InterviewSession,
)

from .sqlite import get_conn

_SESSION_COLUMNS = """
    id, session_id, resume_id, resume_text, total_questions, current_question_index,
    status, claims_resume_slot, evaluate_status, evaluate_error, overall_score,
    overall_feedback, strengths_json, improvements_json, created_at, completed_at
"""


class ActiveSessionConflict(RuntimeError):  # Another non-terminal session already claims the resume
    def __init__(self, resume_id: int) -> None:
        super().__init__(f"Resume {resume_id} already has an unfinished session")
        self.resume_id = resume_id


def _placeholders(values: Sequence[object]) -> str:
    return ", ".join("?" for _ in values)


class SessionStore:  # SQLite-backed session storage
    def __init__(self, path: Optional[str] = None) -> None:  # ``None`` follows settings.DB_PATH
        self._path = path

    def insert_session(self, session: InterviewSession) -> InterviewSession:
        """Persist a new session with its questions and return it with ``id`` set."""

        try:
            with get_conn(self._path) as conn:
                cur = conn.execute(
                    """
                    INSERT INTO interview_sessions (
                        session_id, resume_id, resume_text, total_questions, current_question_index,
                        status, claims_resume_slot, evaluate_status, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.session_id,
                        session.resume_id,
                        session.resume_text,
                        session.total_questions,
                        session.current_question_index,
                        session.status,
                        1 if session.claims_resume_slot else 0,
                        session.evaluate_status,
                        session.created_at,
                    ),
                )
                session_pk = int(cur.lastrowid)
                conn.executemany(
                    """
                    INSERT INTO interview_questions (session_pk, question_index, category, question)
                    VALUES (?, ?, ?, ?)
                    """,
                    [
                        (session_pk, item.question_index, item.category, item.question)
                        for item in session.questions
                    ],
                )
        except sqlite3.IntegrityError as exc:
            if session.resume_id is not None and "resume_id" in str(exc):
                raise ActiveSessionConflict(session.resume_id) from exc
            raise
        return session.model_copy(update={"id": session_pk})

    def get(self, session_id: str) -> Optional[InterviewSession]:
        with get_conn(self._path) as conn:
            row = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
            if row is None:
                return None
            return self._hydrate(conn, [row])[0]

    def list_unfinished(self, resume_id: int) -> List[InterviewSession]:
        """Non-terminal sessions for ``resume_id``, most recently created first."""

        with get_conn(self._path) as conn:
            rows = conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM interview_sessions
                WHERE resume_id = ? AND status IN ({_placeholders(ACTIVE_STATUSES)})
                ORDER BY created_at DESC, id DESC
                """,
                (resume_id, *ACTIVE_STATUSES),
            ).fetchall()
            return self._hydrate(conn, rows)

    def list_sessions(self, resume_id: Optional[int] = None, *, limit: int = 100) -> List[InterviewSession]:
        with get_conn(self._path) as conn:
            if resume_id is None:
                rows = conn.execute(
                    f"""
                    SELECT {_SESSION_COLUMNS} FROM interview_sessions
                    ORDER BY created_at DESC, id DESC LIMIT ?
                    """,
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"""
                    SELECT {_SESSION_COLUMNS} FROM interview_sessions
                    WHERE resume_id = ?
                    ORDER BY created_at DESC, id DESC LIMIT ?
                    """,
                    (resume_id, limit),
                ).fetchall()
            return self._hydrate(conn, rows)

    def record_answer(
        self,
        session_pk: int,
        question_index: int,
        answer: str,
        *,
        answered_at: str,
        completed_at: Optional[str] = None,
    ) -> bool:
        """Store an answer and advance the cursor if it still sits at ``question_index``.

        Passing ``completed_at`` also moves the session to ``COMPLETED``.
        Returns ``False`` without writing when another writer got there first.
        """

        status = "COMPLETED" if completed_at else "IN_PROGRESS"
        with get_conn(self._path) as conn:
            cur = conn.execute(
                f"""
                UPDATE interview_sessions
                SET current_question_index = current_question_index + 1,
                    status = ?,
                    completed_at = COALESCE(?, completed_at)
                WHERE id = ?
                  AND current_question_index = ?
                  AND current_question_index < total_questions
                  AND status IN ({_placeholders(ACTIVE_STATUSES)})
                """,
                (status, completed_at, session_pk, question_index, *ACTIVE_STATUSES),
            )
            if cur.rowcount != 1:
                return False
            conn.execute(
                """
                UPDATE interview_questions
                SET user_answer = ?, answered_at = ?
                WHERE session_pk = ? AND question_index = ?
                """,
                (answer, answered_at, session_pk, question_index),
            )
            return True

    def mark_completed(self, session_pk: int, *, completed_at: str) -> bool:
        """Move a non-terminal session to ``COMPLETED``; ``False`` if it already left that state."""

        with get_conn(self._path) as conn:
            cur = conn.execute(
                f"""
                UPDATE interview_sessions
                SET status = 'COMPLETED', completed_at = ?
                WHERE id = ? AND status IN ({_placeholders(ACTIVE_STATUSES)})
                """,
                (completed_at, session_pk, *ACTIVE_STATUSES),
            )
            return cur.rowcount == 1

    def begin_evaluation(self, session_id: str) -> bool:
        """Claim a freshly completed session for evaluation (no status yet → ``PENDING``)."""

        with get_conn(self._path) as conn:
            cur = conn.execute(
                """
                UPDATE interview_sessions
                SET evaluate_status = 'PENDING', evaluate_error = NULL
                WHERE session_id = ? AND status = 'COMPLETED' AND evaluate_status IS NULL
                """,
                (session_id,),
            )
            return cur.rowcount == 1

    def transition_evaluation(
        self,
        session_id: str,
        from_statuses: Iterable[str],
        to_status: str,
        *,
        error: Optional[str] = None,
    ) -> bool:
        """Compare-and-set ``evaluate_status``; returns whether the row moved."""

        sources = list(from_statuses)
        with get_conn(self._path) as conn:
            cur = conn.execute(
                f"""
                UPDATE interview_sessions
                SET evaluate_status = ?, evaluate_error = ?
                WHERE session_id = ? AND evaluate_status IN ({_placeholders(sources)})
                """,
                (to_status, error, session_id, *sources),
            )
            return cur.rowcount == 1

    def save_evaluation(self, session_id: str, report: EvaluationReport, *, overall_score: int) -> bool:
        """Write grader results and finish the evaluation of a ``PROCESSING`` session."""

        with get_conn(self._path) as conn:
            row = conn.execute(
                "SELECT id FROM interview_sessions WHERE session_id = ? AND evaluate_status = 'PROCESSING'",
                (session_id,),
            ).fetchone()
            if row is None:
                return False
            session_pk = int(row["id"])
            conn.executemany(
                """
                UPDATE interview_questions
                SET score = ?, feedback = ?, reference_answer = ?, key_points_json = ?
                WHERE session_pk = ? AND question_index = ?
                """,
                [
                    (
                        item.score,
                        item.feedback,
                        item.reference_answer,
                        json.dumps(item.key_points, ensure_ascii=False),
                        session_pk,
                        item.question_index,
                    )
                    for item in report.question_evaluations
                ],
            )
            conn.execute(
                """
                UPDATE interview_sessions
                SET overall_score = ?,
                    overall_feedback = ?,
                    strengths_json = ?,
                    improvements_json = ?,
                    evaluate_status = 'COMPLETED',
                    evaluate_error = NULL,
                    status = 'EVALUATED'
                WHERE id = ?
                """,
                (
                    overall_score,
                    report.overall_feedback,
                    json.dumps(report.strengths, ensure_ascii=False),
                    json.dumps(report.improvements, ensure_ascii=False),
                    session_pk,
                ),
            )
            return True

    def session_ids_with_evaluate_status(self, statuses: Sequence[str]) -> List[str]:
        with get_conn(self._path) as conn:
            rows = conn.execute(
                f"""
                SELECT session_id FROM interview_sessions
                WHERE evaluate_status IN ({_placeholders(statuses)})
                ORDER BY completed_at ASC, id ASC
                """,
                tuple(statuses),
            ).fetchall()
            return [row["session_id"] for row in rows]

    def _hydrate(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[InterviewSession]:
        if not rows:
            return []
        pks = [row["id"] for row in rows]
        question_rows = conn.execute(
            f"""
            SELECT session_pk, question_index, category, question, user_answer, answered_at,
                   score, feedback, reference_answer, key_points_json
            FROM interview_questions
            WHERE session_pk IN ({_placeholders(pks)})
            ORDER BY session_pk ASC, question_index ASC
            """,
            tuple(pks),
        ).fetchall()
        grouped: Dict[int, List[InterviewQuestion]] = {pk: [] for pk in pks}
        for item in question_rows:
            grouped[item["session_pk"]].append(
                InterviewQuestion(
                    question_index=item["question_index"],
                    category=item["category"],
                    question=item["question"],
                    user_answer=item["user_answer"],
                    answered_at=item["answered_at"],
                    score=item["score"],
                    feedback=item["feedback"],
                    reference_answer=item["reference_answer"],
                    key_points=json.loads(item["key_points_json"]) if item["key_points_json"] else [],
                )
            )
        return [
            InterviewSession(
                id=row["id"],
                session_id=row["session_id"],
                resume_id=row["resume_id"],
                resume_text=row["resume_text"],
                total_questions=row["total_questions"],
                current_question_index=row["current_question_index"],
                status=row["status"],
                claims_resume_slot=bool(row["claims_resume_slot"]),
                evaluate_status=row["evaluate_status"],
                evaluate_error=row["evaluate_error"],
                overall_score=row["overall_score"],
                overall_feedback=row["overall_feedback"],
                strengths=json.loads(row["strengths_json"]) if row["strengths_json"] else [],
                improvements=json.loads(row["improvements_json"]) if row["improvements_json"] else [],
                created_at=row["created_at"],
                completed_at=row["completed_at"],
                questions=grouped[row["id"]],
            )
            for row in rows
        ]


__all__ = ["ActiveSessionConflict", "SessionStore"]
