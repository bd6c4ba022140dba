"""Background grading of completed interview sessions."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Dict, Optional

from config.settings import settings
from interview_session.errors import EvaluationFailed
from interview_session.models import EVALUATING_STATUSES, EvaluationReport, InterviewSession
from observability import log_event, span
from services.collaborators import grade_answers
from storage.sessions import SessionStore

from .evaluation import mean_score

logger = logging.getLogger(__name__)


class EvaluationScheduler:
    """Runs the ``PENDING → PROCESSING → COMPLETED | FAILED`` machine off the request thread.

    Every transition is a compare-and-set in storage, so a second trigger for
    the same session, or a worker that finds its session already claimed,
    does nothing. ``FAILED`` is terminal until :meth:`retry` is called.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        executor: Optional[Executor] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._store = store
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.EVALUATION_WORKERS,
            thread_name_prefix="evaluation",
        )
        self._timeout_s = timeout_s
        self._inflight: Dict[str, Future] = {}
        self._guard = threading.Lock()

    def schedule(self, session_id: str) -> bool:
        """Queue evaluation of a freshly completed session; ``False`` if already claimed."""

        if not self._store.begin_evaluation(session_id):
            logger.info("Evaluation for %s already scheduled or finished; ignoring trigger", session_id)
            return False
        log_event("evaluation_scheduled", session_id, evaluate_status="PENDING")
        self._submit(session_id)
        return True

    def retry(self, session_id: str) -> bool:
        """Manually re-run a ``FAILED`` evaluation."""

        if not self._store.transition_evaluation(session_id, ("FAILED",), "PENDING"):
            return False
        log_event("evaluation_scheduled", session_id, evaluate_status="PENDING", outcome="manual_retry")
        self._submit(session_id)
        return True

    def recover(self) -> int:
        """Resubmit sessions a previous process left ``PENDING`` or ``PROCESSING``.

        Only one process may run evaluations against a database. A
        ``PROCESSING`` row is reclaimed even if another process is still
        grading it.
        """

        session_ids = self._store.session_ids_with_evaluate_status(EVALUATING_STATUSES)
        for session_id in session_ids:
            self._store.transition_evaluation(session_id, ("PROCESSING",), "PENDING")
            log_event("evaluation_scheduled", session_id, evaluate_status="PENDING", outcome="recovered")
            self._submit(session_id)
        if session_ids:
            logger.info("Recovered %d interrupted evaluations", len(session_ids))
        return len(session_ids)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued evaluations; returns ``True`` when none are left running."""

        with self._guard:
            pending = list(self._inflight.values())
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def run_evaluation(self, session_id: str) -> None:
        """Worker body: grade one ``PENDING`` session and persist the outcome."""

        if not self._store.transition_evaluation(session_id, ("PENDING",), "PROCESSING"):
            logger.info("Session %s no longer pending evaluation; skipping", session_id)
            return
        log_event("evaluation_processing", session_id, evaluate_status="PROCESSING")
        session = self._store.get(session_id)
        if session is None:
            return
        try:
            report = self._grade(session)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or exc.__class__.__name__
            self._store.transition_evaluation(session_id, ("PROCESSING",), "FAILED", error=message)
            logger.warning("Evaluation failed for %s: %s", session_id, message)
            log_event("evaluation_failed", session_id, level=logging.WARNING, evaluate_status="FAILED", error=message)
            return
        overall = report.overall_score if report.overall_score is not None else mean_score(report, session.total_questions)
        if not self._store.save_evaluation(session_id, report, overall_score=overall):
            logger.info("Session %s left PROCESSING while grading; discarding result", session_id)
            return
        log_event("evaluation_completed", session_id, evaluate_status="COMPLETED", status="EVALUATED")

    def _grade(self, session: InterviewSession) -> EvaluationReport:
        timeout_s = self._timeout_s or settings.EVALUATION_TIMEOUT_S
        with span(session.session_id, "grade_answers"):
            report = grade_answers(session.questions, timeout_s=timeout_s)
        known = {item.question_index for item in session.questions}
        unknown = sorted(item.question_index for item in report.question_evaluations if item.question_index not in known)
        if unknown:
            raise EvaluationFailed(
                f"Grader returned evaluations for unknown questions {unknown}",
                session_id=session.session_id,
            )
        return report

    def _submit(self, session_id: str) -> None:
        future = self._executor.submit(self._run_guarded, session_id)
        with self._guard:
            self._inflight[session_id] = future
        future.add_done_callback(lambda done, key=session_id: self._forget(key, done))

    def _run_guarded(self, session_id: str) -> None:
        try:
            self.run_evaluation(session_id)
        except Exception:  # noqa: BLE001
            logger.exception("Evaluation worker crashed for %s", session_id)
            self._store.transition_evaluation(
                session_id,
                EVALUATING_STATUSES,
                "FAILED",
                error="evaluation worker crashed",
            )

    def _forget(self, session_id: str, future: Future) -> None:
        with self._guard:
            if self._inflight.get(session_id) is future:
                del self._inflight[session_id]


__all__ = ["EvaluationScheduler"]
