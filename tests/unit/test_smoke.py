"""Basic smoke tests for the application wiring."""
from fastapi.testclient import TestClient


def test_imports():
    import interview_client  # noqa: F401
    import interview_evaluation  # noqa: F401
    import interview_session  # noqa: F401
    from config.settings import settings

    assert settings.DB_PATH.endswith(".db")


def test_server_lifespan_recovers_and_serves():
    from api_server import app

    with TestClient(app) as client:
        resp = client.get("/api/interview/sessions")
        assert resp.status_code == 200
        assert resp.json() == []
