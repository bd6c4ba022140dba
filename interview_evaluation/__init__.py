from .evaluation import (
    REGISTRY_KEY,
    UNANSWERED,
    grade_answers,
    grade_with_config,
    mean_score,
)
from .scheduler import EvaluationScheduler

__all__ = [
    "EvaluationScheduler",
    "REGISTRY_KEY",
    "UNANSWERED",
    "grade_answers",
    "grade_with_config",
    "mean_score",
]
