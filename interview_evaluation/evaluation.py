from __future__ import annotations  # Whole-session answer grading via LLM

from pathlib import Path
from textwrap import dedent
from typing import List, Sequence

from config import LlmRoute, load_route
from interview_session.models import EvaluationReport, InterviewQuestion
from llm_gateway import call

REGISTRY_KEY = "interview_evaluation.grade_answers"
UNANSWERED = "(no answer given)"


def grade_answers(questions: Sequence[InterviewQuestion], *, route: LlmRoute) -> EvaluationReport:  # Call LLM grader
    task = _build_task(questions)
    return call(task, EvaluationReport, cfg=route)


def grade_with_config(questions: Sequence[InterviewQuestion], *, config_path: Path) -> EvaluationReport:  # Convenience helper
    route = load_route(config_path, REGISTRY_KEY, EvaluationReport)
    return grade_answers(questions, route=route)


def mean_score(report: EvaluationReport, total_questions: int) -> int:  # Average per-question scores, missing ones count as 0
    if total_questions <= 0:
        return 0
    scores = {item.question_index: item.score for item in report.question_evaluations}
    total = sum(scores.get(index, 0) for index in range(total_questions))
    return int(round(total / total_questions))


def _format_questions(questions: Sequence[InterviewQuestion]) -> str:
    blocks: List[str] = []
    for item in questions:
        answer = (item.user_answer or "").strip() or UNANSWERED
        blocks.append(
            f"[{item.question_index}] ({item.category}) {item.question}\n"
            f"Answer: {answer}"
        )
    return "\n\n".join(blocks)


def _build_task(questions: Sequence[InterviewQuestion]) -> str:  # Compose grading prompt
    template = dedent(
        f"""
        You are grading a completed mock technical interview with {len(questions)} questions.

        Questions and candidate answers:
        __TRANSCRIPT__

        Grade every question. Return a JSON object that matches this contract:
        - overall_score: integer 0-100 for the whole interview.
        - overall_feedback: two or three sentences summarising performance.
        - strengths: short phrases naming what the candidate did well.
        - improvements: short phrases naming what to study next.
        - question_evaluations: one entry per question with fields
          question_index, score (0-100), feedback, reference_answer, key_points (list of strings).
        Scoring guidance:
        - A question marked "{UNANSWERED}" scores 0; still provide a reference answer for it.
        - Reward concrete detail, correct trade-offs and accurate terminology.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()
    return template.replace("__TRANSCRIPT__", _format_questions(questions))
