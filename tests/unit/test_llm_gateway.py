"""Tests for the LLM gateway with an in-memory HTTP client."""
from __future__ import annotations

import json

import httpx
import pytest
from pydantic import BaseModel

from config import LlmRoute
from llm_gateway import LlmGatewayError, LlmTimeoutError, call


class Verdict(BaseModel):
    score: int
    note: str


class FakeResponse:
    def __init__(self, status_code: int, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body


class FakeClient:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _route(**overrides) -> LlmRoute:
    data = dict(
        name="test",
        base_url="http://example.com",
        endpoint="/v1/chat/completions",
        model="test-model",
        timeout_s=2.0,
        max_retries=1,
    )
    data.update(overrides)
    return LlmRoute(**data)


def _chat(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


def test_call_parses_fenced_json() -> None:
    client = FakeClient([_chat("```json\n" + json.dumps({"score": 4, "note": "good"}) + "\n```")])
    result = call("grade this", Verdict, cfg=_route(), client=client)
    assert result == Verdict(score=4, note="good")
    request = client.requests[0]
    assert request["url"] == "http://example.com/v1/chat/completions"
    assert request["json"]["model"] == "test-model"
    assert request["json"]["messages"][0]["role"] == "system"
    assert request["json"]["messages"][-1] == {"role": "user", "content": "grade this"}


def test_validation_failure_retries_with_hint() -> None:
    client = FakeClient([_chat('{"score": "high"}'), _chat('{"score": 3, "note": "ok"}')])
    result = call("grade", Verdict, cfg=_route(), client=client)
    assert result.score == 3
    retry_messages = client.requests[1]["json"]["messages"]
    assert "failed validation" in retry_messages[-1]["content"]


def test_validation_exhaustion_raises() -> None:
    client = FakeClient([_chat("not json"), _chat("still not json")])
    with pytest.raises(LlmGatewayError):
        call("grade", Verdict, cfg=_route(), client=client)


def test_http_error_status_raises() -> None:
    client = FakeClient([FakeResponse(503, {})])
    with pytest.raises(LlmGatewayError):
        call("grade", Verdict, cfg=_route(), client=client)
    assert len(client.requests) == 1


def test_timeout_maps_to_timeout_error() -> None:
    client = FakeClient([httpx.ReadTimeout("slow")])
    with pytest.raises(LlmTimeoutError):
        call("grade", Verdict, cfg=_route(), client=client)


def test_api_key_and_response_format(monkeypatch) -> None:
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient([_chat('{"score": 1, "note": "n"}')])
    call(
        "grade",
        Verdict,
        cfg=_route(api_key_env="TEST_LLM_KEY", response_format="json_object", sequential=True),
        client=client,
    )
    request = client.requests[0]
    assert request["headers"]["Authorization"] == "Bearer secret"
    assert request["json"]["response_format"] == {"type": "json_object"}
