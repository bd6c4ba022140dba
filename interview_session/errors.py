"""Error taxonomy for interview session operations."""
from __future__ import annotations

from typing import Optional


class InterviewError(RuntimeError):  # Base error carrying a stable code
    code = "INTERVIEW_ERROR"

    def __init__(self, message: str, *, session_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id


class SessionNotFound(InterviewError):
    code = "NOT_FOUND"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' not found", session_id=session_id)


class InvalidArgument(InterviewError):
    code = "INVALID_ARGUMENT"


class StaleSubmission(InterviewError):
    """Raised when an answer targets anything but the question at the cursor."""

    code = "STALE_SUBMISSION"

    def __init__(self, session_id: str, *, expected: int, received: int) -> None:
        super().__init__(
            f"Answer for question {received} rejected; session is at question {expected}",
            session_id=session_id,
        )
        self.expected = expected
        self.received = received


class GenerationFailed(InterviewError):
    code = "GENERATION_FAILED"


class EvaluationFailed(InterviewError):
    code = "EVALUATION_FAILED"


class ReportNotReady(InterviewError):
    code = "REPORT_NOT_READY"

    def __init__(self, session_id: str, *, status: str, evaluate_status: Optional[str], error: Optional[str] = None) -> None:
        detail = f"Report for session '{session_id}' is not ready (status={status}, evaluate_status={evaluate_status})"
        if error:
            detail += f": {error}"
        super().__init__(detail, session_id=session_id)
        self.status = status
        self.evaluate_status = evaluate_status
        self.error = error


__all__ = [
    "EvaluationFailed",
    "GenerationFailed",
    "InterviewError",
    "InvalidArgument",
    "ReportNotReady",
    "SessionNotFound",
    "StaleSubmission",
]
