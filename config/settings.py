"""Application settings and configuration management."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    SUPPORTED_QUESTION_COUNTS: List[int] = Field(default_factory=lambda: [5, 8, 10, 12, 15])
    # Percent of the question set per category, handed to the generator as-is.
    CATEGORY_PROPORTIONS: Dict[str, int] = Field(
        default_factory=lambda: {
            "PROJECT_EXPERIENCE": 20,
            "MYSQL": 20,
            "REDIS": 20,
            "JAVA_FUNDAMENTALS": 30,
            "FRAMEWORK": 10,
        }
    )

    GENERATION_TIMEOUT_S: float = Field(default=180.0, gt=0)
    EVALUATION_TIMEOUT_S: float = Field(default=180.0, gt=0)
    EVALUATION_WORKERS: int = Field(default=2, ge=1)
    POLL_INTERVAL_S: float = Field(default=3.0, gt=0)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def llm_config_path() -> Path:
    """``LLM_CONFIG_PATH`` with relative values resolved against the project root."""
    path = Path(settings.LLM_CONFIG_PATH)
    return path if path.is_absolute() else PROJECT_ROOT / path
