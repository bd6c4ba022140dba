"""Python client for the interview session API."""
from .client import API_PREFIX, InterviewApiError, InterviewClient
from .poller import EVALUATING, StatusPoller, is_evaluating

__all__ = [
    "API_PREFIX",
    "EVALUATING",
    "InterviewApiError",
    "InterviewClient",
    "StatusPoller",
    "is_evaluating",
]
