"""Tests for the client-side evaluation status poller."""
from __future__ import annotations

import threading

from interview_client.poller import StatusPoller, is_evaluating


class FakeTimer:
    created: list["FakeTimer"] = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


def _live():
    return [t for t in FakeTimer.created if t.started and not t.cancelled]


def _poller(fetch, **kwargs) -> StatusPoller:
    FakeTimer.created = []
    return StatusPoller(fetch, interval_s=3.0, timer_factory=FakeTimer, **kwargs)


def test_is_evaluating_accepts_dicts_and_objects() -> None:
    class Row:
        evaluate_status = "PROCESSING"

    assert is_evaluating({"evaluateStatus": "PENDING"})
    assert is_evaluating({"evaluate_status": "PROCESSING"})
    assert is_evaluating(Row())
    assert not is_evaluating({"evaluateStatus": "COMPLETED"})
    assert not is_evaluating({"evaluateStatus": None})


def test_sync_without_evaluating_items_does_not_start() -> None:
    poller = _poller(lambda: [])
    assert poller.sync([{"evaluateStatus": "COMPLETED"}, {"evaluateStatus": "FAILED"}]) is False
    assert FakeTimer.created == []


def test_sync_starts_single_timer() -> None:
    poller = _poller(lambda: [])
    items = [{"evaluateStatus": "PENDING"}]
    assert poller.sync(items) is True
    assert poller.sync(items) is True
    assert len(FakeTimer.created) == 1
    timer = FakeTimer.created[0]
    assert timer.interval == 3.0
    assert timer.daemon is True


def test_tick_refetches_and_stops_when_done() -> None:
    responses = [
        [{"evaluateStatus": "PROCESSING"}],
        [{"evaluateStatus": "COMPLETED"}],
    ]
    updates = []
    poller = _poller(lambda: responses.pop(0), on_update=updates.append)
    poller.sync([{"evaluateStatus": "PENDING"}])

    FakeTimer.created[-1].fire()
    assert poller.running
    assert len(_live()) == 2  # fired timer plus its successor

    FakeTimer.created[-1].fire()
    assert not poller.running
    assert len(FakeTimer.created) == 2
    assert updates == [[{"evaluateStatus": "PROCESSING"}], [{"evaluateStatus": "COMPLETED"}]]


def test_fetch_error_keeps_polling() -> None:
    calls = {"n": 0}

    def flaky():
        calls["n"] += 1
        if calls["n"] == 1:
            raise ConnectionError("offline")
        return []

    poller = _poller(flaky)
    poller.sync([{"evaluateStatus": "PENDING"}])
    FakeTimer.created[-1].fire()
    assert poller.running
    FakeTimer.created[-1].fire()
    assert not poller.running
    assert calls["n"] == 2


def test_sync_to_idle_stops_and_invalidates_pending_tick() -> None:
    fetched = []
    poller = _poller(lambda: fetched.append(1) or [{"evaluateStatus": "PENDING"}])
    poller.sync([{"evaluateStatus": "PENDING"}])
    first = FakeTimer.created[-1]

    poller.sync([{"evaluateStatus": "COMPLETED"}])
    assert first.cancelled
    assert not poller.running

    first.fire()
    assert fetched == []
    assert not poller.running


def test_close_releases_timer_and_blocks_restart() -> None:
    with _poller(lambda: []) as poller:
        poller.sync([{"evaluateStatus": "PENDING"}])
        timer = FakeTimer.created[-1]
    assert timer.cancelled
    assert poller.sync([{"evaluateStatus": "PENDING"}]) is False
    assert len(FakeTimer.created) == 1


def test_real_timer_polls_until_settled() -> None:
    done = threading.Event()
    responses = [[{"evaluateStatus": "PROCESSING"}], [{"evaluateStatus": "COMPLETED"}]]

    def on_update(items):
        if not any(is_evaluating(item) for item in items):
            done.set()

    poller = StatusPoller(lambda: responses.pop(0), interval_s=0.01, on_update=on_update)
    try:
        poller.sync([{"evaluateStatus": "PENDING"}])
        assert done.wait(2)
    finally:
        poller.close()
    assert responses == []
