import os
import sys
import tempfile
from concurrent.futures import Executor, Future
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import GENERATOR_KEY, GRADER_KEY, bind_model


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        from services.sessions import shutdown

        shutdown(wait=True)
        td.cleanup()


class FakeCollaborators:
    """Deterministic stand-ins for the question generator and the grader."""

    def __init__(self):
        self.generator_calls = []
        self.grader_calls = []
        self.generator_error = None
        self.grader_error = None
        self.short_by = 0
        self.overall_score = None

    def generate(self, *, resume_text, count, contract):
        self.generator_calls.append({"resume_text": resume_text, "count": count, "contract": contract})
        if self.generator_error is not None:
            raise self.generator_error
        categories = list(contract)
        return [
            {"category": categories[index % len(categories)], "question": f"Question {index}?"}
            for index in range(count - self.short_by)
        ]

    def grade(self, *, questions):
        self.grader_calls.append([item.question_index for item in questions])
        if self.grader_error is not None:
            raise self.grader_error
        return {
            "overall_score": self.overall_score,
            "overall_feedback": "Solid fundamentals.",
            "strengths": ["clear structure"],
            "improvements": ["more Redis depth"],
            "question_evaluations": [
                {
                    "question_index": item.question_index,
                    "score": 80 if item.user_answer else 0,
                    "feedback": "ok" if item.user_answer else "not answered",
                    "reference_answer": f"Reference {item.question_index}",
                    "key_points": [f"point {item.question_index}"],
                }
                for item in questions
            ],
        }


@pytest.fixture(autouse=True)
def fake_models():
    fakes = FakeCollaborators()
    bind_model(GENERATOR_KEY, fakes.generate)
    bind_model(GRADER_KEY, fakes.grade)
    return fakes


class ManualExecutor(Executor):
    """Queues submitted work until ``run_all`` is called."""

    def __init__(self):
        self.queue = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        while self.queue:
            future, fn, args, kwargs = self.queue.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as exc:  # noqa: BLE001
                future.set_exception(exc)

    def shutdown(self, wait=True, **_):
        self.queue.clear()


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def engine(manual_executor):
    from interview_evaluation.scheduler import EvaluationScheduler
    from interview_session.orchestrator import SessionOrchestrator
    from storage.sessions import SessionStore

    store = SessionStore()
    scheduler = EvaluationScheduler(store, executor=manual_executor)
    orchestrator = SessionOrchestrator(store, scheduler)
    return orchestrator, scheduler, store
