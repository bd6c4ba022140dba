"""Lookup of an unfinished session to resume for a resume identity."""
from __future__ import annotations

import logging
from typing import Optional

from observability import log_event
from storage.sessions import SessionStore

from .models import InterviewSession

logger = logging.getLogger(__name__)


class ResumptionResolver:
    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def find_unfinished_session(self, resume_id: int) -> Optional[InterviewSession]:
        """Return the most recent ``CREATED``/``IN_PROGRESS`` session for ``resume_id``.

        Several unfinished sessions only appear legitimately after a forced
        creation; two of them both claiming the resume slot is a data-integrity
        anomaly. Either way the newest wins and nothing is merged.
        """

        candidates = self._store.list_unfinished(resume_id)
        if not candidates:
            return None
        chosen, others = candidates[0], candidates[1:]
        if others:
            claimants = [item.session_id for item in candidates if item.claims_resume_slot]
            if len(claimants) > 1:
                logger.warning(
                    "Resume %s has %d unfinished sessions claiming it; using %s, ignoring %s",
                    resume_id,
                    len(claimants),
                    chosen.session_id,
                    [item.session_id for item in others],
                )
                log_event(
                    "resume_anomaly",
                    chosen.session_id,
                    level=logging.WARNING,
                    resume_id=resume_id,
                    ignored=[item.session_id for item in others],
                )
            else:
                logger.info(
                    "Resume %s has %d unfinished sessions after a forced restart; using %s",
                    resume_id,
                    len(candidates),
                    chosen.session_id,
                )
        return chosen


__all__ = ["ResumptionResolver"]
