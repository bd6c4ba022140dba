"""Lightweight CLI helpers for inspecting sessions and re-running evaluations."""
from __future__ import annotations

import argparse
import sqlite3
from typing import List, Optional

from config.settings import llm_config_path, settings


def tail_sessions(limit: int = 20) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT created_at, session_id, resume_id, status, current_question_index, total_questions,
                   evaluate_status, overall_score, evaluate_error
            FROM interview_sessions
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, resume_id, status, cursor_at, total, evaluate_status, score, error = row
            line = (
                f"[{ts}] {session_id} resume={resume_id} {status} {cursor_at}/{total}"
                f" eval={evaluate_status or '-'} score={score if score is not None else '-'}"
            )
            if error:
                line += f" error={error}"
            print(line)
    finally:
        conn.close()


def retry_evaluation(session_id: str, *, timeout: Optional[float] = None) -> bool:
    """Move a ``FAILED`` evaluation back to ``PENDING`` and run it in-process."""

    from config.registry import GRADER_KEY, is_bound
    from interview_evaluation.scheduler import EvaluationScheduler
    from services.sessions import bind_default_models
    from storage.sessions import SessionStore

    config_path = llm_config_path()
    bind_default_models(config_path)
    if not is_bound(GRADER_KEY):
        print(f"{session_id}: not retried (no grader bound; check LLM config {config_path})")
        return False
    store = SessionStore()
    scheduler = EvaluationScheduler(store)
    try:
        if not scheduler.retry(session_id):
            session = store.get(session_id)
            state = session.evaluate_status if session else "missing"
            print(f"{session_id}: not retried (evaluate_status={state})")
            return False
        scheduler.drain(timeout)
    finally:
        scheduler.shutdown(wait=True)
    session = store.get(session_id)
    if session is None:
        return False
    print(f"{session_id}: evaluate_status={session.evaluate_status} score={session.overall_score}")
    if session.evaluate_error:
        print(f"  error: {session.evaluate_error}")
    return session.evaluate_status == "COMPLETED"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--migrate", action="store_true", help="Create or update the database schema")
    parser.add_argument("--tail-sessions", type=int, help="Show the latest interview sessions")
    parser.add_argument("--retry-evaluation", metavar="SESSION_ID", help="Re-run a failed evaluation")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for a retried evaluation")
    args = parser.parse_args(argv)

    if args.migrate:
        from storage.migrate import migrate

        migrate()
    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.retry_evaluation:
        return 0 if retry_evaluation(args.retry_evaluation, timeout=args.timeout) else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
