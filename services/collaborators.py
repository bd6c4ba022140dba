"""Timeout-bounded calls into the external question generator and grader."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Callable, List, Mapping, Sequence

from pydantic import TypeAdapter

from config.registry import GENERATOR_KEY, GRADER_KEY, bind_model, get_model
from interview_session.models import EvaluationReport, GeneratedQuestion, InterviewQuestion

logger = logging.getLogger(__name__)

# Calls run here so a hung collaborator cannot hold the caller past its deadline.
_CALL_POOL = ThreadPoolExecutor(max_workers=8, thread_name_prefix="collaborator")

_QUESTION_LIST = TypeAdapter(List[GeneratedQuestion])


class CollaboratorTimeout(TimeoutError):
    def __init__(self, key: str, timeout_s: float) -> None:
        super().__init__(f"{key} did not respond within {timeout_s:.0f}s")
        self.key = key
        self.timeout_s = timeout_s


def bounded_call(key: str, timeout_s: float, **kwargs: Any) -> Any:
    """Invoke the callable bound to ``key`` and wait at most ``timeout_s`` seconds."""

    fn: Callable[..., Any] = get_model(key)
    future = _CALL_POOL.submit(fn, **kwargs)
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeout as exc:
        future.cancel()
        logger.warning("Collaborator %s timed out after %.1fs", key, timeout_s)
        raise CollaboratorTimeout(key, timeout_s) from exc


def generate_questions(
    resume_text: str,
    count: int,
    contract: Mapping[str, int],
    *,
    timeout_s: float,
) -> List[GeneratedQuestion]:
    raw = bounded_call(
        GENERATOR_KEY,
        timeout_s,
        resume_text=resume_text,
        count=count,
        contract=dict(contract),
    )
    return _QUESTION_LIST.validate_python(
        [item.model_dump() if isinstance(item, GeneratedQuestion) else item for item in raw]
    )


def grade_answers(questions: Sequence[InterviewQuestion], *, timeout_s: float) -> EvaluationReport:
    raw = bounded_call(GRADER_KEY, timeout_s, questions=list(questions))
    if isinstance(raw, EvaluationReport):
        return raw
    return EvaluationReport.model_validate(raw)


def bind_llm_collaborators(config_path: Path) -> None:
    """Bind the LLM-backed generator and grader configured in ``config_path``."""

    from interview_evaluation.evaluation import grade_with_config
    from question_generation import generate_with_config

    bind_model(
        GENERATOR_KEY,
        lambda *, resume_text, count, contract: generate_with_config(
            resume_text, count, contract, config_path=config_path
        ),
    )
    bind_model(
        GRADER_KEY,
        lambda *, questions: grade_with_config(questions, config_path=config_path),
    )


__all__ = [
    "CollaboratorTimeout",
    "bind_llm_collaborators",
    "bounded_call",
    "generate_questions",
    "grade_answers",
]
