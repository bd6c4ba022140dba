"""Process-wide wiring of the session store, evaluation scheduler and orchestrator."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from config.registry import GENERATOR_KEY, GRADER_KEY, is_bound
from interview_evaluation.scheduler import EvaluationScheduler
from interview_session.orchestrator import SessionOrchestrator
from services.collaborators import bind_llm_collaborators
from storage.sessions import SessionStore

logger = logging.getLogger(__name__)

_LOCK = threading.Lock()
_STORE: Optional[SessionStore] = None
_SCHEDULER: Optional[EvaluationScheduler] = None
_ORCHESTRATOR: Optional[SessionOrchestrator] = None


def get_store() -> SessionStore:
    global _STORE
    with _LOCK:
        if _STORE is None:
            _STORE = SessionStore()
        return _STORE


def get_scheduler() -> EvaluationScheduler:
    global _SCHEDULER
    store = get_store()
    with _LOCK:
        if _SCHEDULER is None:
            _SCHEDULER = EvaluationScheduler(store)
        return _SCHEDULER


def get_orchestrator() -> SessionOrchestrator:
    global _ORCHESTRATOR
    store = get_store()
    scheduler = get_scheduler()
    with _LOCK:
        if _ORCHESTRATOR is None:
            _ORCHESTRATOR = SessionOrchestrator(store, scheduler)
        return _ORCHESTRATOR


def bind_default_models(config_path: Path) -> None:
    """Bind LLM-backed collaborators unless something else was bound first."""

    if is_bound(GENERATOR_KEY) and is_bound(GRADER_KEY):
        return
    if not config_path.exists():
        logger.warning("LLM config %s not found; collaborators stay unbound", config_path)
        return
    bind_llm_collaborators(config_path)
    logger.info("Bound LLM collaborators from %s", config_path)


def shutdown(wait: bool = True) -> None:
    """Stop the worker pool and forget the wired singletons."""

    global _STORE, _SCHEDULER, _ORCHESTRATOR
    with _LOCK:
        scheduler = _SCHEDULER
        _STORE = _SCHEDULER = _ORCHESTRATOR = None
    if scheduler is not None:
        scheduler.shutdown(wait=wait)


__all__ = [
    "bind_default_models",
    "get_orchestrator",
    "get_scheduler",
    "get_store",
    "shutdown",
]
