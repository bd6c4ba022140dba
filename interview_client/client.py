"""HTTP client for the interview session API."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from .poller import StatusPoller

logger = logging.getLogger(__name__)

API_PREFIX = "/api/interview"


class InterviewApiError(RuntimeError):  # Non-2xx response from the API
    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class InterviewClient:
    """Thin wrapper over the ``/api/interview`` routes returning decoded JSON.

    Pass ``client`` to reuse an existing ``httpx.Client`` (or a FastAPI
    ``TestClient``); otherwise one is created for ``base_url`` and closed by
    :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "InterviewClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def create_session(
        self,
        resume_text: str,
        question_count: int,
        *,
        resume_id: Optional[int] = None,
        force_create: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "resumeText": resume_text,
            "questionCount": question_count,
            "forceCreate": force_create,
        }
        if resume_id is not None:
            payload["resumeId"] = resume_id
        return self._request("POST", "/session", json=payload)

    def get_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/session/{session_id}")

    def get_current_question(self, session_id: str) -> Optional[Dict[str, Any]]:
        body = self._request("GET", f"/session/{session_id}/question")
        return None if body.get("completed") else body.get("question")

    def submit_answer(self, session_id: str, question_index: int, answer: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/answer",
            json={"sessionId": session_id, "questionIndex": question_index, "answer": answer},
        )

    def complete_interview(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/session/{session_id}/complete")

    def find_unfinished_session(self, resume_id: int) -> Optional[Dict[str, Any]]:
        try:
            return self._request("GET", f"/session/unfinished/{resume_id}")
        except InterviewApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    def get_report(self, session_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/session/{session_id}/report")

    def get_transcript(self, session_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/session/{session_id}/transcript")

    def list_sessions(self, resume_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"resumeId": resume_id} if resume_id is not None else None
        return self._request("GET", "/sessions", params=params)

    def watch_evaluations(
        self,
        resume_id: Optional[int] = None,
        *,
        on_update: Optional[Callable[[Sequence[Dict[str, Any]]], None]] = None,
        interval_s: Optional[float] = None,
        **poller_kwargs: Any,
    ) -> StatusPoller:
        """Poll the session list while any listed session is being evaluated.

        The returned poller is already synced with the current list; close it
        (or use it as a context manager) when the view goes away.
        """

        poller = StatusPoller(
            lambda: self.list_sessions(resume_id),
            on_update=on_update,
            interval_s=interval_s,
            **poller_kwargs,
        )
        initial = self.list_sessions(resume_id)
        if on_update is not None:
            on_update(initial)
        poller.sync(initial)
        return poller

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._client.request(method, f"{API_PREFIX}{path}", **kwargs)
        if response.status_code >= 400:
            code, message = _error_fields(response)
            logger.warning("Interview API %s %s failed: %s %s", method, path, response.status_code, code)
            raise InterviewApiError(response.status_code, code, message)
        return response.json()


def _error_fields(response: httpx.Response) -> tuple[str, str]:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return "HTTP_ERROR", response.text
    if isinstance(detail, dict):
        return str(detail.get("code", "HTTP_ERROR")), str(detail.get("message", ""))
    return "HTTP_ERROR", str(detail)


__all__ = ["API_PREFIX", "InterviewApiError", "InterviewClient"]
