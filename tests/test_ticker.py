import threading
import time

import pytest

from recipegraph.session.cooking import CookingSession
from recipegraph.session.ticker import Ticker


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_ticker_calls_back_until_stopped():
    calls = []
    owned = []
    ticker = None

    def callback():
        calls.append(time.monotonic())
        owned.append(ticker.owns_current_thread())

    ticker = Ticker(0.01, callback)
    ticker.start()
    assert ticker.running
    assert _wait_for(lambda: len(calls) >= 3)
    thread = ticker.stop()
    thread.join(1.0)
    assert not thread.is_alive()
    assert not ticker.running
    assert all(owned[:3])
    settled = len(calls)
    time.sleep(0.05)
    assert len(calls) == settled


def test_start_is_idempotent_and_restartable():
    ticker = Ticker(0.01, lambda: None)
    ticker.start()
    first = ticker.stop()
    ticker.start()
    ticker.start()
    second = ticker.stop()
    assert first is not second
    first.join(1.0)
    second.join(1.0)
    assert ticker.stop() is None


def test_callback_errors_do_not_stop_the_ticker():
    calls = []

    def callback():
        calls.append(1)
        raise RuntimeError("boom")

    ticker = Ticker(0.01, callback)
    ticker.start()
    try:
        assert _wait_for(lambda: len(calls) >= 2)
    finally:
        ticker.stop().join(1.0)


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        Ticker(0, lambda: None)


def test_session_timer_expires_in_the_background(scenario_recipe):
    expired = threading.Event()
    fired = []

    def notifier(step_id):
        fired.append(step_id)
        expired.set()

    with CookingSession(scenario_recipe, notifier, tick_interval=0.005) as session:
        # 3 seconds of timer time
        session.start_timer("s1", 0.05)
        assert session.ticking
        assert expired.wait(2.0)
        assert _wait_for(lambda: not session.ticking)
        assert session.timer_for("s1").remaining_seconds == 0
    assert fired == ["s1"]
    assert session.closed


def test_closing_mid_countdown_stops_the_thread(scenario_recipe):
    session = CookingSession(scenario_recipe, tick_interval=0.005)
    session.start_timer("s1", 10)
    assert _wait_for(lambda: session.timer_for("s1").remaining_seconds < 600)
    session.close()
    remaining = session.timer_for("s1").remaining_seconds
    time.sleep(0.05)
    assert session.timer_for("s1").remaining_seconds == remaining
    assert not session.ticking
    assert _wait_for(lambda: not any(t.name == "recipegraph-ticker" and t.is_alive() for t in threading.enumerate()))
