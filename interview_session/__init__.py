"""Interview session domain: models, errors and question sequencing.

The orchestrator and resolver live in ``interview_session.orchestrator`` and
``interview_session.resolver``; they depend on storage, which in turn depends
on the models exported here.
"""
from .errors import (
    EvaluationFailed,
    GenerationFailed,
    InterviewError,
    InvalidArgument,
    ReportNotReady,
    SessionNotFound,
    StaleSubmission,
)
from .models import (
    AnswerOutcome,
    EvaluationReport,
    GeneratedQuestion,
    InterviewQuestion,
    InterviewReport,
    InterviewSession,
    QuestionEvaluation,
    SessionCreation,
    TranscriptEntry,
)
from .sequencer import QuestionSequencer

__all__ = [
    "AnswerOutcome",
    "EvaluationFailed",
    "EvaluationReport",
    "GeneratedQuestion",
    "GenerationFailed",
    "InterviewError",
    "InterviewQuestion",
    "InterviewReport",
    "InterviewSession",
    "InvalidArgument",
    "QuestionEvaluation",
    "QuestionSequencer",
    "ReportNotReady",
    "SessionCreation",
    "SessionNotFound",
    "StaleSubmission",
    "TranscriptEntry",
]
