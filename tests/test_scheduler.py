"""Tests for the virtual-clock and thread-backed schedulers."""

import threading

import pytest

from minigame.scheduler import ManualScheduler, ThreadScheduler


def test_after_fires_once_at_deadline():
    s = ManualScheduler()
    calls = []
    handle = s.after(800, lambda: calls.append(s.now))
    s.advance(799)
    assert calls == []
    assert handle.active
    s.advance(1)
    assert calls == [800]
    assert not handle.active
    s.advance(5000)
    assert calls == [800]


def test_every_repeats_until_cancelled():
    s = ManualScheduler()
    calls = []
    handle = s.every(1000, lambda: calls.append(s.now))
    s.advance(3500)
    assert calls == [1000, 2000, 3000]
    s.cancel(handle)
    s.advance(3000)
    assert calls == [1000, 2000, 3000]
    assert s.pending == 0


def test_callback_can_cancel_itself():
    s = ManualScheduler()
    calls = []

    def tick():
        calls.append(1)
        if len(calls) == 2:
            handle.cancel()

    handle = s.every(100, tick)
    s.advance(1000)
    assert calls == [1, 1]


def test_same_deadline_fires_in_scheduling_order():
    s = ManualScheduler()
    order = []
    s.after(1000, lambda: order.append("feedback"))
    s.every(1000, lambda: order.append("countdown"))
    s.advance(1000)
    assert order == ["feedback", "countdown"]


def test_timer_scheduled_inside_window_fires():
    s = ManualScheduler()
    calls = []
    s.after(100, lambda: s.after(100, lambda: calls.append(s.now)))
    s.advance(250)
    assert calls == [200]


def test_cancel_none_is_ignored():
    ManualScheduler().cancel(None)


def test_every_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        ManualScheduler().every(0, lambda: None)
    with pytest.raises(ValueError):
        ThreadScheduler().every(-1, lambda: None)


def test_failing_callback_does_not_stop_clock(caplog):
    s = ManualScheduler()
    calls = []

    def boom():
        raise RuntimeError("boom")

    s.after(10, boom)
    s.after(20, lambda: calls.append(1))
    s.advance(30)
    assert calls == [1]
    assert "boom" in caplog.text


def test_thread_scheduler_after():
    s = ThreadScheduler()
    fired = threading.Event()
    s.after(10, fired.set)
    assert fired.wait(2.0)


def test_thread_scheduler_every_and_cancel_all():
    s = ThreadScheduler()
    count = 0
    hit = threading.Event()

    def tick():
        nonlocal count
        count += 1
        if count >= 2:
            hit.set()

    handle = s.every(10, tick)
    assert hit.wait(2.0)
    s.cancel_all()
    assert handle.cancelled
    assert s.handles == set()


def test_thread_scheduler_cancel_before_fire():
    s = ThreadScheduler()
    fired = threading.Event()
    handle = s.after(200, fired.set)
    s.cancel(handle)
    assert not fired.wait(0.4)


def test_thread_scheduler_cancel_stops_tracking():
    s = ThreadScheduler()
    once = s.after(10_000, lambda: None)
    repeating = s.every(10_000, lambda: None)
    assert s.handles == {once, repeating}

    s.cancel(once)
    s.cancel(repeating)
    s.cancel(None)
    assert s.handles == set()
    assert once.cancelled and repeating.cancelled
