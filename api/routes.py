"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from typing import Dict, List, NoReturn, Optional

from fastapi import APIRouter, HTTPException, Query

from api.schemas import (
    AnswerResp,
    CompleteResp,
    CreateSessionReq,
    CreateSessionResp,
    CurrentQuestionResp,
    ErrorDetail,
    QuestionView,
    ReportResp,
    SessionSummary,
    SessionView,
    SubmitAnswerReq,
    TranscriptEntryView,
)
from interview_session.errors import InterviewError
from services.sessions import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")

_STATUS_BY_CODE: Dict[str, int] = {
    "NOT_FOUND": 404,
    "INVALID_ARGUMENT": 400,
    "STALE_SUBMISSION": 409,
    "REPORT_NOT_READY": 409,
    "GENERATION_FAILED": 502,
}


def _raise_http(exc: InterviewError) -> NoReturn:
    status_code = _STATUS_BY_CODE.get(exc.code, 500)
    if status_code >= 500:
        logger.warning("Interview operation failed: %s", exc.message)
    detail = ErrorDetail(code=exc.code, message=exc.message)
    raise HTTPException(status_code=status_code, detail=detail.model_dump()) from exc


@router.post("/session", response_model=CreateSessionResp)
def create_session(req: CreateSessionReq) -> CreateSessionResp:
    try:
        creation = get_orchestrator().create_session(
            req.resume_text,
            req.question_count,
            resume_id=req.resume_id,
            force_create=req.force_create,
        )
    except InterviewError as exc:
        _raise_http(exc)
    response = CreateSessionResp.from_session(creation.session)
    response.resumed = creation.resumed
    return response


@router.get("/session/unfinished/{resume_id}", response_model=SessionView)
def find_unfinished_session(resume_id: int) -> SessionView:
    session = get_orchestrator().find_unfinished_session(resume_id)
    if session is None:
        detail = ErrorDetail(code="NOT_FOUND", message=f"No unfinished session for resume {resume_id}")
        raise HTTPException(status_code=404, detail=detail.model_dump())
    return SessionView.from_session(session)


@router.get("/session/{session_id}", response_model=SessionView)
def get_session(session_id: str) -> SessionView:
    try:
        session = get_orchestrator().get_session(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return SessionView.from_session(session)


@router.get("/session/{session_id}/question", response_model=CurrentQuestionResp)
def get_current_question(session_id: str) -> CurrentQuestionResp:
    try:
        question = get_orchestrator().get_current_question(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    if question is None:
        return CurrentQuestionResp(completed=True)
    return CurrentQuestionResp(completed=False, question=QuestionView.from_question(question))


@router.post("/answer", response_model=AnswerResp)
def submit_answer(req: SubmitAnswerReq) -> AnswerResp:
    try:
        outcome = get_orchestrator().submit_answer(req.session_id, req.question_index, req.answer)
    except InterviewError as exc:
        _raise_http(exc)
    return AnswerResp.from_outcome(outcome)


@router.post("/session/{session_id}/complete", response_model=CompleteResp)
def complete_interview(session_id: str) -> CompleteResp:
    try:
        session = get_orchestrator().complete_interview(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return CompleteResp(
        session_id=session.session_id,
        status=session.status,
        evaluate_status=session.evaluate_status,
    )


@router.get("/session/{session_id}/report", response_model=ReportResp)
def get_report(session_id: str) -> ReportResp:
    try:
        report = get_orchestrator().get_report(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return ReportResp.from_report(report)


@router.get("/session/{session_id}/transcript", response_model=List[TranscriptEntryView])
def get_transcript(session_id: str) -> List[TranscriptEntryView]:
    try:
        entries = get_orchestrator().get_transcript(session_id)
    except InterviewError as exc:
        _raise_http(exc)
    return [TranscriptEntryView.from_entry(entry) for entry in entries]


@router.get("/sessions", response_model=List[SessionSummary])
def list_sessions(resume_id: Optional[int] = Query(default=None, alias="resumeId")) -> List[SessionSummary]:
    return [SessionSummary.from_session(item) for item in get_orchestrator().list_sessions(resume_id)]
