"""Timer scheduling for the minigame engine.

Everything the engine does after construction happens inside a timer
callback: frame ticks, the one-second countdown, the feedback delay and
the skip delay. Each timer is a ``TimerHandle`` the owner keeps in a field
and cancels on teardown.

Two schedulers are provided:

- ``ThreadScheduler`` runs on the wall clock with ``threading.Timer``
  daemon threads, re-arming repeating timers after every tick.
- ``ManualScheduler`` runs on a virtual clock that only moves when
  ``advance()`` is called; hosts without a real clock and the tests use it.
"""

from __future__ import annotations

import abc
import heapq
import itertools
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable token returned by ``every()`` / ``after()``."""

    def __init__(self, interval_ms: float, callback: Callable[[], None], repeat: bool):
        self.interval_ms = interval_ms
        self.callback = callback
        self.repeat = repeat
        self.cancelled = False
        self.done = False
        self.deadline: float = 0.0
        self._timer: threading.Timer | None = None

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.done

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __repr__(self) -> str:
        kind = "every" if self.repeat else "after"
        return f"<TimerHandle {kind} {self.interval_ms}ms active={self.active}>"


class Scheduler(abc.ABC):
    """Repeating and one-shot timers with explicit cancellation."""

    @abc.abstractmethod
    def every(self, ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Call ``callback`` every ``ms`` milliseconds until cancelled."""

    @abc.abstractmethod
    def after(self, ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Call ``callback`` once, ``ms`` milliseconds from now."""

    def cancel(self, handle: TimerHandle | None) -> None:
        """Cancel a timer. ``None`` and already finished handles are ignored."""
        if handle is not None:
            handle.cancel()


def _run(handle: TimerHandle) -> None:
    try:
        handle.callback()
    except Exception:
        logger.exception("Timer callback %r failed", handle.callback)


class ThreadScheduler(Scheduler):
    """Wall-clock scheduler built on ``threading.Timer``."""

    def __init__(self):
        self.lock = threading.Lock()
        self.handles: set[TimerHandle] = set()

    def every(self, ms, callback):
        if ms <= 0:
            raise ValueError("repeating interval must be positive")
        handle = TimerHandle(ms, callback, repeat=True)
        self._arm(handle)
        return handle

    def after(self, ms, callback):
        handle = TimerHandle(max(ms, 0), callback, repeat=False)
        self._arm(handle)
        return handle

    def _arm(self, handle: TimerHandle) -> None:
        with self.lock:
            if handle.cancelled:
                self.handles.discard(handle)
                return
            t = threading.Timer(handle.interval_ms / 1000, self._fire, args=(handle,))
            t.daemon = True
            handle._timer = t
            self.handles.add(handle)
        t.start()

    def _fire(self, handle: TimerHandle) -> None:
        if handle.cancelled:
            with self.lock:
                self.handles.discard(handle)
            return
        if not handle.repeat:
            handle.done = True
            with self.lock:
                self.handles.discard(handle)
        _run(handle)
        if handle.repeat:
            self._arm(handle)

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        with self.lock:
            self.handles.discard(handle)

    def cancel_all(self) -> None:
        """Cancel every timer this scheduler still tracks."""
        with self.lock:
            handles = list(self.handles)
            self.handles.clear()
        for handle in handles:
            handle.cancel()

    def shutdown(self) -> None:
        self.cancel_all()


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler. Time only passes in ``advance()``."""

    def __init__(self):
        self.now: float = 0.0
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def every(self, ms, callback):
        if ms <= 0:
            raise ValueError("repeating interval must be positive")
        handle = TimerHandle(ms, callback, repeat=True)
        self._push(handle, self.now + ms)
        return handle

    def after(self, ms, callback):
        handle = TimerHandle(max(ms, 0), callback, repeat=False)
        self._push(handle, self.now + handle.interval_ms)
        return handle

    def _push(self, handle: TimerHandle, deadline: float) -> None:
        handle.deadline = deadline
        heapq.heappush(self._queue, (deadline, next(self._seq), handle))

    @property
    def pending(self) -> int:
        """Number of timers that are still due to fire."""
        return sum(1 for _, _, h in self._queue if h.active)

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing due callbacks in deadline order.

        Callbacks scheduled while advancing fire in the same call when
        their deadline falls inside the window.
        """
        target = self.now + ms
        while self._queue:
            deadline, _, handle = self._queue[0]
            if deadline > target:
                break
            heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = deadline
            if handle.repeat:
                self._push(handle, deadline + handle.interval_ms)
            else:
                handle.done = True
            _run(handle)
        self.now = target
