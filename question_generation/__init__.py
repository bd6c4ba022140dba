from __future__ import annotations  # Re-export question_generation public API

from .generation import (  # noqa: F401
    CATEGORY_LABELS,
    QuestionSet,
    category_quota,
    generate_questions,
    generate_with_config,
)

__all__ = [
    "CATEGORY_LABELS",
    "QuestionSet",
    "category_quota",
    "generate_questions",
    "generate_with_config",
]
