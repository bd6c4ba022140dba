import json

import pytest

from config import load_app_registry
from config.registry import GENERATOR_KEY, GRADER_KEY, bind_model, get_model, is_bound
from config.settings import Settings
from services import collaborators
from services.sessions import bind_default_models


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.SUPPORTED_QUESTION_COUNTS == [5, 8, 10, 12, 15]
    assert sum(settings.CATEGORY_PROPORTIONS.values()) == 100
    assert settings.GENERATION_TIMEOUT_S == 180
    assert settings.POLL_INTERVAL_S == 3.0


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SUPPORTED_QUESTION_COUNTS", "[3, 6]")
    monkeypatch.setenv("EVALUATION_WORKERS", "4")
    settings = Settings(_env_file=None)
    assert settings.SUPPORTED_QUESTION_COUNTS == [3, 6]
    assert settings.EVALUATION_WORKERS == 4


def test_registry_bind_and_retrieve():
    marker = object()
    bind_model(GENERATOR_KEY, lambda **_: marker)
    model = get_model(GENERATOR_KEY)
    assert model() is marker
    assert is_bound(GENERATOR_KEY)


def test_registry_missing_key():
    with pytest.raises(KeyError):
        get_model("models.unknown")


def test_bounded_call_times_out():
    import threading

    release = threading.Event()
    bind_model(GRADER_KEY, lambda **_: release.wait(5))
    try:
        with pytest.raises(collaborators.CollaboratorTimeout):
            collaborators.bounded_call(GRADER_KEY, 0.05)
    finally:
        release.set()


def test_bind_default_models_keeps_existing_bindings(tmp_path, fake_models):
    bind_default_models(tmp_path / "missing.json")
    assert get_model(GENERATOR_KEY) == fake_models.generate


def test_app_config_resolves_both_collaborators():
    from pathlib import Path

    from interview_evaluation.evaluation import REGISTRY_KEY as GRADE_KEY
    from interview_session.models import EvaluationReport
    from question_generation.generation import REGISTRY_KEY as GENERATE_KEY, QuestionSet

    path = Path(__file__).resolve().parents[2] / "app_config.json"
    registry = load_app_registry(path, {GENERATE_KEY: QuestionSet, GRADE_KEY: EvaluationReport})
    assert registry[GENERATE_KEY][0].model
    assert json.loads(path.read_text(encoding="utf-8"))["registry"][GRADE_KEY] == registry[GRADE_KEY][0].name


def test_app_config_rejects_dangling_registry_entry(tmp_path):
    from pydantic import ValidationError

    from config import load_config

    path = tmp_path / "config.json"
    path.write_text(json.dumps({"llm_routes": {}, "registry": {"models.x": "missing"}}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(path)
