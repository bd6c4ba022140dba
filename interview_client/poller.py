"""Client-side polling of sessions whose evaluation is still running."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

from config.settings import settings

logger = logging.getLogger(__name__)

EVALUATING = ("PENDING", "PROCESSING")


class TimerLike(Protocol):  # threading.Timer compatible
    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[..., TimerLike]


def is_evaluating(item: Any) -> bool:
    """True when ``item`` (API dict or model) is ``PENDING`` or ``PROCESSING``."""

    if isinstance(item, Mapping):
        status = item.get("evaluateStatus", item.get("evaluate_status"))
    else:
        status = getattr(item, "evaluate_status", None)
    return status in EVALUATING


class StatusPoller:
    """Re-fetches tracked items on a timer while any of them is mid-evaluation.

    At most one timer is alive at a time. Every tick calls ``fetch``, hands the
    result to ``on_update`` and schedules the next tick only if something is
    still evaluating. ``stop``/``close`` invalidate any tick already in flight.
    """

    def __init__(
        self,
        fetch: Callable[[], Sequence[Any]],
        *,
        is_evaluating: Callable[[Any], bool] = is_evaluating,
        interval_s: Optional[float] = None,
        on_update: Optional[Callable[[Sequence[Any]], None]] = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._fetch = fetch
        self._is_evaluating = is_evaluating
        self._interval_s = interval_s if interval_s is not None else settings.POLL_INTERVAL_S
        self._on_update = on_update
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[TimerLike] = None
        self._generation = 0
        self._closed = False

    @property
    def running(self) -> bool:
        with self._lock:
            return self._timer is not None

    def sync(self, items: Iterable[Any]) -> bool:
        """Start polling if any item is evaluating, stop otherwise; returns ``running``."""

        needed = any(self._is_evaluating(item) for item in items)
        with self._lock:
            if needed and not self._closed:
                if self._timer is None:
                    self._schedule_locked()
            else:
                self._stop_locked()
            return self._timer is not None

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._stop_locked()

    def __enter__(self) -> "StatusPoller":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
        try:
            items = list(self._fetch())
        except Exception:  # noqa: BLE001
            logger.exception("Status poll failed; retrying in %.1fs", self._interval_s)
            with self._lock:
                if generation == self._generation and not self._closed:
                    self._schedule_locked()
            return

        if self._on_update is not None:
            try:
                self._on_update(items)
            except Exception:  # noqa: BLE001
                logger.exception("Status poll listener raised")

        needed = any(self._is_evaluating(item) for item in items)
        with self._lock:
            if generation != self._generation or self._closed:
                return
            if needed:
                self._schedule_locked()
            else:
                logger.info("No evaluations in flight; polling stopped")
                self._stop_locked()

    def _schedule_locked(self) -> None:
        self._generation += 1
        timer = self._timer_factory(self._interval_s, self._tick, args=(self._generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _stop_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


__all__ = ["EVALUATING", "StatusPoller", "TimerFactory", "is_evaluating"]
