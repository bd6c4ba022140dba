from __future__ import annotations  # LLM request gateway module

import json
import logging
import os
import threading
from typing import Any, Dict, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()


class HttpClient(Protocol):  # Minimal HTTP client protocol (httpx.Client compatible)
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> Any: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class LlmTimeoutError(LlmGatewayError):  # Route did not answer within its timeout
    pass


T = TypeVar("T", bound=BaseModel)


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _ROUTE_LOCKS_GUARD:
        lock = _ROUTE_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _ROUTE_LOCKS[key] = lock
    return lock


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> T:  # Invoke configured LLM route with a single user task
    return chat([{"role": "user", "content": task}], schema, cfg=cfg, client=client)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> T:
    """Send ``messages`` to the route and validate the reply against ``schema``.

    Validation failures are retried up to ``cfg.max_retries`` times with a
    corrective system hint; transport errors and HTTP errors are not.
    """

    if cfg.sequential:
        with _lock_for(cfg):
            return _execute(messages, schema, cfg, client)
    return _execute(messages, schema, cfg, client)


def _execute(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    cfg: LlmRoute,
    client: Optional[HttpClient],
) -> T:
    base_messages: list[Dict[str, str]] = []
    if cfg.enforce_json:
        schema_json = json.dumps(schema.model_json_schema(), indent=2)
        base_messages.append(
            {"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json}
        )
    base_messages.extend(_normalize_messages(messages))
    headers = _headers(cfg)
    attempts = cfg.max_retries + 1
    last_error: Optional[Exception] = None
    for attempt in range(attempts):
        attempt_messages = list(base_messages)
        if last_error is not None:
            attempt_messages.append({"role": "system", "content": _retry_hint(str(last_error))})
        payload: Dict[str, Any] = {"model": cfg.model, "messages": attempt_messages}
        if cfg.response_format:
            payload["response_format"] = {"type": cfg.response_format}
        logger.info("LLM request route=%s model=%s attempt=%d/%d", cfg.name, cfg.model, attempt + 1, attempts)
        data = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
        content = _extract_content(data)
        try:
            return schema.model_validate_json(_strip_code_fences(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("LLM output validation failed route=%s: %s", cfg.name, exc)
            last_error = exc
    raise LlmGatewayError("LLM output validation failed") from last_error


def _headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    return headers


def _post(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> Any:  # Dispatch HTTP request and decode JSON body
    try:
        if client is not None:
            response = client.post(url, json=payload, headers=headers, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as http_client:
                response = http_client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as exc:
        logger.error("LLM request timed out after %.1fs: %s", timeout, url)
        raise LlmTimeoutError(f"LLM request timed out after {timeout:.0f}s") from exc
    except httpx.HTTPError as exc:
        logger.error("LLM transport failure: %s", exc)
        raise LlmGatewayError("LLM transport failed") from exc
    if response.status_code >= 400:
        logger.error("LLM error status: %s", response.status_code)
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": str(item.get("content", ""))})
    return normalized


def _extract_content(data: Any) -> str:  # Pull message content out of an OpenAI-style response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _strip_code_fences(content: str) -> str:  # Remove markdown fences around JSON
    text = content.strip()
    if not text.startswith("```"):
        return text
    lines = text.splitlines()[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _retry_hint(error_text: str) -> str:  # Compose retry instructions including last error
    reason = error_text.splitlines()[0].strip() if error_text else ""
    if len(reason) > 200:
        reason = reason[:197] + "..."
    hint = "The previous reply failed validation."
    if reason:
        hint += f" Reason: {reason}."
    return hint + " Return a single JSON object that matches the schema."
