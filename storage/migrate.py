"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable, Optional

from config.settings import settings

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL UNIQUE,
  resume_id INTEGER,
  resume_text TEXT NOT NULL,
  total_questions INTEGER NOT NULL,
  current_question_index INTEGER NOT NULL DEFAULT 0,
  status TEXT NOT NULL,
  claims_resume_slot INTEGER NOT NULL DEFAULT 1,
  evaluate_status TEXT,
  evaluate_error TEXT,
  overall_score INTEGER,
  overall_feedback TEXT,
  strengths_json TEXT,
  improvements_json TEXT,
  created_at TEXT NOT NULL,
  completed_at TEXT,
  CHECK (current_question_index >= 0 AND current_question_index <= total_questions)
);
""",
    # One non-terminal, slot-claiming session per resume.
    """
CREATE UNIQUE INDEX IF NOT EXISTS ux_interview_sessions_active_resume
  ON interview_sessions (resume_id)
  WHERE resume_id IS NOT NULL
    AND claims_resume_slot = 1
    AND status IN ('CREATED', 'IN_PROGRESS');
""",
    """
CREATE INDEX IF NOT EXISTS ix_interview_sessions_resume
  ON interview_sessions (resume_id, created_at);
""",
    """
CREATE INDEX IF NOT EXISTS ix_interview_sessions_evaluate_status
  ON interview_sessions (evaluate_status);
""",
    """
CREATE TABLE IF NOT EXISTS interview_questions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_pk INTEGER NOT NULL,
  question_index INTEGER NOT NULL,
  category TEXT NOT NULL,
  question TEXT NOT NULL,
  user_answer TEXT,
  answered_at TEXT,
  score INTEGER,
  feedback TEXT,
  reference_answer TEXT,
  key_points_json TEXT,
  UNIQUE (session_pk, question_index),
  FOREIGN KEY (session_pk) REFERENCES interview_sessions(id) ON DELETE CASCADE
);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    path = db_path or settings.DB_PATH
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
