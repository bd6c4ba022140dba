"""Cursor discipline over one session's ordered question list."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .errors import InvalidArgument, StaleSubmission
from .models import InterviewQuestion, InterviewSession, TranscriptEntry, utc_now


class QuestionSequencer:
    """Owns the question list and the single advancing cursor of a session.

    Question indices must be exactly ``0..total-1`` in order. The cursor only
    moves forward, one step per accepted answer, and stops at ``total``.
    """

    def __init__(
        self,
        questions: Sequence[InterviewQuestion],
        *,
        cursor: int = 0,
        session_id: str = "",
    ) -> None:
        for position, item in enumerate(questions):
            if item.question_index != position:
                raise InvalidArgument(
                    f"Question indices must be contiguous from 0; found {item.question_index} at position {position}",
                    session_id=session_id or None,
                )
        if cursor < 0 or cursor > len(questions):
            raise InvalidArgument(
                f"Cursor {cursor} outside [0, {len(questions)}]",
                session_id=session_id or None,
            )
        self._questions: List[InterviewQuestion] = list(questions)
        self._cursor = cursor
        self._session_id = session_id

    @classmethod
    def for_session(cls, session: InterviewSession) -> "QuestionSequencer":
        return cls(session.questions, cursor=session.current_question_index, session_id=session.session_id)

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= self.total

    def current(self) -> Optional[InterviewQuestion]:
        if self.exhausted:
            return None
        return self._questions[self._cursor]

    def question_at(self, index: int) -> InterviewQuestion:
        if index < 0 or index >= self.total:
            raise InvalidArgument(f"No question at index {index}", session_id=self._session_id or None)
        return self._questions[index]

    def accept(self, question_index: int, answer: str, *, answered_at: Optional[str] = None) -> InterviewQuestion:
        """Attach ``answer`` to the question at the cursor and advance by one."""

        if self.exhausted or question_index != self._cursor:
            raise StaleSubmission(self._session_id, expected=self._cursor, received=question_index)
        question = self._questions[question_index]
        question.user_answer = answer
        question.answered_at = answered_at or utc_now()
        self._cursor += 1
        return question

    def replay(self) -> List[TranscriptEntry]:
        """Rebuild the interviewer/candidate transcript up to the cursor.

        Questions ``0..cursor`` are emitted in order, each followed by its
        answer when one is stored. The trailing unanswered question, if any,
        is the active prompt.
        """

        entries: List[TranscriptEntry] = []
        last = min(self._cursor, self.total - 1)
        for index in range(last + 1):
            item = self._questions[index]
            entries.append(
                TranscriptEntry(
                    speaker="interviewer",
                    content=item.question,
                    question_index=index,
                    category=item.category,
                )
            )
            if item.user_answer:
                entries.append(
                    TranscriptEntry(
                        speaker="candidate",
                        content=item.user_answer,
                        question_index=index,
                    )
                )
        return entries


__all__ = ["QuestionSequencer"]
