from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import router
from services.sessions import get_scheduler


app = FastAPI()
app.include_router(router)
client = TestClient(app)

RESUME = "Senior Java engineer; built order service on MySQL and Redis."


def _create(**overrides):
    payload = {"resumeText": RESUME, "questionCount": 8, "resumeId": 42}
    payload.update(overrides)
    return client.post("/api/interview/session", json=payload)


def test_full_flow_through_report():
    created = _create()
    assert created.status_code == 200
    body = created.json()
    assert body["resumed"] is False
    assert body["status"] == "IN_PROGRESS"
    assert body["currentQuestionIndex"] == 0
    assert body["totalQuestions"] == 8
    assert len(body["questions"]) == 8
    session_id = body["sessionId"]

    current = client.get(f"/api/interview/session/{session_id}/question").json()
    assert current["completed"] is False
    assert current["question"]["questionIndex"] == 0

    for index in range(8):
        resp = client.post(
            "/api/interview/answer",
            json={"sessionId": session_id, "questionIndex": index, "answer": f"answer {index}"},
        )
        assert resp.status_code == 200
        assert resp.json()["hasNextQuestion"] is (index < 7)

    assert client.get(f"/api/interview/session/{session_id}/question").json() == {"completed": True, "question": None}

    assert get_scheduler().drain(timeout=5)
    session = client.get(f"/api/interview/session/{session_id}").json()
    assert session["status"] == "EVALUATED"
    assert session["evaluateStatus"] == "COMPLETED"

    report = client.get(f"/api/interview/session/{session_id}/report")
    assert report.status_code == 200
    assert report.json()["overallScore"] == 80
    assert report.json()["questions"][0]["referenceAnswer"] == "Reference 0"


def test_resume_and_force_create():
    first = _create().json()
    client.post(
        "/api/interview/answer",
        json={"sessionId": first["sessionId"], "questionIndex": 0, "answer": "hello"},
    )

    resumed = _create(questionCount=5).json()
    assert resumed["resumed"] is True
    assert resumed["sessionId"] == first["sessionId"]
    assert resumed["currentQuestionIndex"] == 1

    unfinished = client.get("/api/interview/session/unfinished/42")
    assert unfinished.json()["sessionId"] == first["sessionId"]

    forced = _create(forceCreate=True).json()
    assert forced["resumed"] is False
    assert forced["sessionId"] != first["sessionId"]
    original = client.get(f"/api/interview/session/{first['sessionId']}").json()
    assert original["status"] == "IN_PROGRESS"

    listed = client.get("/api/interview/sessions", params={"resumeId": 42}).json()
    assert {item["sessionId"] for item in listed} == {first["sessionId"], forced["sessionId"]}


def test_error_mapping():
    assert client.get("/api/interview/session/nope").status_code == 404
    assert client.get("/api/interview/session/unfinished/999").status_code == 404

    bad_count = _create(questionCount=7)
    assert bad_count.status_code == 400
    assert bad_count.json()["detail"]["code"] == "INVALID_ARGUMENT"

    session_id = _create(resumeId=None).json()["sessionId"]
    stale = client.post(
        "/api/interview/answer",
        json={"sessionId": session_id, "questionIndex": 3, "answer": "skip"},
    )
    assert stale.status_code == 409
    assert stale.json()["detail"]["code"] == "STALE_SUBMISSION"

    not_ready = client.get(f"/api/interview/session/{session_id}/report")
    assert not_ready.status_code == 409
    assert not_ready.json()["detail"]["code"] == "REPORT_NOT_READY"


def test_generation_failure_is_bad_gateway(fake_models):
    fake_models.generator_error = RuntimeError("llm down")
    resp = _create(resumeId=77)
    assert resp.status_code == 502
    assert resp.json()["detail"]["code"] == "GENERATION_FAILED"
    assert client.get("/api/interview/sessions", params={"resumeId": 77}).json() == []


def test_complete_early_and_transcript():
    session_id = _create(resumeId=5).json()["sessionId"]
    for index in range(2):
        client.post(
            "/api/interview/answer",
            json={"sessionId": session_id, "questionIndex": index, "answer": f"A{index}"},
        )

    transcript = client.get(f"/api/interview/session/{session_id}/transcript").json()
    assert [entry["speaker"] for entry in transcript] == ["interviewer", "candidate", "interviewer", "candidate", "interviewer"]

    done = client.post(f"/api/interview/session/{session_id}/complete")
    assert done.status_code == 200
    assert done.json()["status"] in ("COMPLETED", "EVALUATED")
    again = client.post(f"/api/interview/session/{session_id}/complete")
    assert again.status_code == 200

    assert get_scheduler().drain(timeout=5)
    assert client.get("/api/interview/session/unfinished/5").status_code == 404
    report = client.get(f"/api/interview/session/{session_id}/report").json()
    assert report["answeredCount"] == 2
    assert report["overallScore"] == 20
