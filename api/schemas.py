"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from interview_session.models import (
    AnswerOutcome,
    EvaluateStatus,
    InterviewQuestion,
    InterviewReport,
    InterviewSession,
    QuestionCategory,
    SessionStatus,
    TranscriptEntry,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateSessionReq(CamelModel):
    resume_text: str
    question_count: int
    resume_id: Optional[int] = None
    force_create: bool = False


class SubmitAnswerReq(CamelModel):
    session_id: str
    question_index: int = Field(ge=0)
    answer: str


class QuestionView(CamelModel):
    question_index: int
    category: QuestionCategory
    question: str
    user_answer: Optional[str] = None
    answered_at: Optional[str] = None
    score: Optional[int] = None
    feedback: Optional[str] = None
    reference_answer: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)

    @classmethod
    def from_question(cls, question: InterviewQuestion) -> "QuestionView":
        return cls.model_validate(question.model_dump())


class SessionSummary(CamelModel):
    session_id: str
    resume_id: Optional[int] = None
    total_questions: int
    current_question_index: int
    status: SessionStatus
    evaluate_status: Optional[EvaluateStatus] = None
    overall_score: Optional[int] = None
    created_at: str
    completed_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: InterviewSession):
        return cls.model_validate(session.model_dump(include=set(cls.model_fields)))


class SessionView(SessionSummary):
    evaluate_error: Optional[str] = None
    questions: List[QuestionView] = Field(default_factory=list)
    overall_feedback: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class CreateSessionResp(SessionView):
    resumed: bool = False


class CurrentQuestionResp(CamelModel):
    completed: bool
    question: Optional[QuestionView] = None


class AnswerResp(CamelModel):
    has_next_question: bool
    next_question: Optional[QuestionView] = None

    @classmethod
    def from_outcome(cls, outcome: AnswerOutcome) -> "AnswerResp":
        return cls(
            has_next_question=outcome.has_next_question,
            next_question=QuestionView.from_question(outcome.next_question) if outcome.next_question else None,
        )


class CompleteResp(CamelModel):
    session_id: str
    status: SessionStatus
    evaluate_status: Optional[EvaluateStatus] = None


class ReportResp(CamelModel):
    session_id: str
    total_questions: int
    answered_count: int
    overall_score: int
    overall_feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    questions: List[QuestionView] = Field(default_factory=list)
    completed_at: Optional[str] = None

    @classmethod
    def from_report(cls, report: InterviewReport) -> "ReportResp":
        return cls.model_validate(report.model_dump())


class TranscriptEntryView(CamelModel):
    speaker: Literal["interviewer", "candidate"]
    content: str
    question_index: int
    category: Optional[QuestionCategory] = None

    @classmethod
    def from_entry(cls, entry: TranscriptEntry) -> "TranscriptEntryView":
        return cls.model_validate(entry.model_dump())


class ErrorDetail(CamelModel):
    code: str
    message: str
