from __future__ import annotations  # Resume-driven interview question generation

from pathlib import Path
from textwrap import dedent
from typing import Dict, List, Mapping

from pydantic import BaseModel, Field

from config import LlmRoute, load_route
from interview_session.models import GeneratedQuestion
from llm_gateway import call

REGISTRY_KEY = "question_generation.generate_questions"

CATEGORY_LABELS: Dict[str, str] = {
    "PROJECT_EXPERIENCE": "project experience from the resume",
    "MYSQL": "MySQL and relational storage",
    "REDIS": "Redis and caching infrastructure",
    "JAVA_FUNDAMENTALS": "Java fundamentals, collections and concurrency",
    "FRAMEWORK": "application frameworks such as Spring",
}


class QuestionSet(BaseModel):  # Generator output contract
    questions: List[GeneratedQuestion] = Field(min_length=1)


def category_quota(count: int, proportions: Mapping[str, int]) -> Dict[str, int]:  # Split count by percent, largest remainder
    total = sum(proportions.values())
    if count <= 0 or total <= 0:
        return {name: 0 for name in proportions}
    exact = {name: count * share / total for name, share in proportions.items()}
    quota = {name: int(value) for name, value in exact.items()}
    leftover = count - sum(quota.values())
    by_remainder = sorted(exact, key=lambda name: (exact[name] - quota[name], proportions[name]), reverse=True)
    for name in by_remainder[:leftover]:
        quota[name] += 1
    return quota


def generate_questions(
    resume_text: str,
    count: int,
    contract: Mapping[str, int],
    *,
    route: LlmRoute,
) -> List[GeneratedQuestion]:  # Ask the LLM for an ordered question list
    task = _build_task(resume_text, count, contract)
    result = call(task, QuestionSet, cfg=route)
    return list(result.questions)


def generate_with_config(
    resume_text: str,
    count: int,
    contract: Mapping[str, int],
    *,
    config_path: Path,
) -> List[GeneratedQuestion]:  # Convenience helper using app config
    route = load_route(config_path, REGISTRY_KEY, QuestionSet)
    return generate_questions(resume_text, count, contract, route=route)


def _build_task(resume_text: str, count: int, contract: Mapping[str, int]) -> str:  # Build task prompt for LLM
    quota = category_quota(count, contract)
    lines = "\n".join(
        f"- {name} ({CATEGORY_LABELS.get(name, name)}): {quota[name]} question(s), about {share}%"
        for name, share in contract.items()
    )
    template = dedent(
        f"""
        You are a senior backend interviewer preparing a mock technical interview.
        Write exactly {count} interview questions tailored to the resume below.

        Category mix:
        __CATEGORIES__

        Resume:
        __RESUME__

        Respond with a JSON object following this contract:
        - questions: array of exactly {count} items in the order they should be asked.
            Each item must contain:
              - category: one of {", ".join(contract.keys())}.
              - question: the question text, one or two sentences.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()
    return template.replace("__CATEGORIES__", lines).replace("__RESUME__", resume_text.strip())
