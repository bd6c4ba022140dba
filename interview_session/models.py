from __future__ import annotations  # Interview session domain models

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

QuestionCategory = Literal[
    "PROJECT_EXPERIENCE",
    "MYSQL",
    "REDIS",
    "JAVA_FUNDAMENTALS",
    "FRAMEWORK",
]
SessionStatus = Literal["CREATED", "IN_PROGRESS", "COMPLETED", "EVALUATED"]
EvaluateStatus = Literal["PENDING", "PROCESSING", "COMPLETED", "FAILED"]
CreationKind = Literal["created", "resumed"]
Speaker = Literal["interviewer", "candidate"]

ACTIVE_STATUSES: tuple[str, ...] = ("CREATED", "IN_PROGRESS")
FINISHED_STATUSES: tuple[str, ...] = ("COMPLETED", "EVALUATED")
EVALUATING_STATUSES: tuple[str, ...] = ("PENDING", "PROCESSING")


def utc_now() -> str:  # ISO timestamp with microseconds so ordering by text is stable
    return datetime.now(timezone.utc).isoformat()


class InterviewQuestion(BaseModel):  # One generated question and its answer
    question_index: int = Field(ge=0)
    category: QuestionCategory
    question: str
    user_answer: Optional[str] = None
    answered_at: Optional[str] = None
    score: Optional[int] = Field(default=None, ge=0, le=100)
    feedback: Optional[str] = None
    reference_answer: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)

    @property
    def answered(self) -> bool:
        return bool(self.user_answer)


class InterviewSession(BaseModel):  # Persisted interview attempt
    id: Optional[int] = None
    session_id: str
    resume_id: Optional[int] = None
    resume_text: str
    total_questions: int = Field(ge=1)
    current_question_index: int = Field(default=0, ge=0)
    status: SessionStatus = "CREATED"
    evaluate_status: Optional[EvaluateStatus] = None
    evaluate_error: Optional[str] = None
    questions: List[InterviewQuestion] = Field(default_factory=list)
    overall_score: Optional[int] = Field(default=None, ge=0, le=100)
    overall_feedback: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)
    completed_at: Optional[str] = None
    claims_resume_slot: bool = True

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def is_evaluating(self) -> bool:
        return self.evaluate_status in EVALUATING_STATUSES

    @property
    def answered_count(self) -> int:
        return sum(1 for item in self.questions if item.answered)


class SessionCreation(BaseModel):  # Tagged result of create_session
    kind: CreationKind
    session: InterviewSession

    @property
    def resumed(self) -> bool:
        return self.kind == "resumed"


class AnswerOutcome(BaseModel):  # Result of a successful answer submission
    has_next_question: bool
    next_question: Optional[InterviewQuestion] = None


class TranscriptEntry(BaseModel):  # One line of a replayed conversation
    speaker: Speaker
    content: str
    question_index: int
    category: Optional[QuestionCategory] = None


class GeneratedQuestion(BaseModel):  # Question as returned by the generator
    category: QuestionCategory
    question: str = Field(min_length=1)


class QuestionEvaluation(BaseModel):  # Grader verdict for one question
    question_index: int = Field(ge=0)
    score: int = Field(ge=0, le=100)
    feedback: str = ""
    reference_answer: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):  # Grader output for a whole session
    overall_score: Optional[int] = Field(default=None, ge=0, le=100)
    overall_feedback: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    question_evaluations: List[QuestionEvaluation] = Field(default_factory=list)


class InterviewReport(BaseModel):  # Aggregate evaluation returned to clients
    session_id: str
    total_questions: int
    answered_count: int
    overall_score: int
    overall_feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    questions: List[InterviewQuestion] = Field(default_factory=list)
    completed_at: Optional[str] = None


__all__ = [
    "ACTIVE_STATUSES",
    "EVALUATING_STATUSES",
    "FINISHED_STATUSES",
    "AnswerOutcome",
    "CreationKind",
    "EvaluateStatus",
    "EvaluationReport",
    "GeneratedQuestion",
    "InterviewQuestion",
    "InterviewReport",
    "InterviewSession",
    "QuestionCategory",
    "QuestionEvaluation",
    "SessionCreation",
    "SessionStatus",
    "TranscriptEntry",
    "utc_now",
]
