"""Pure transitions for a single step timer.

Running -> Paused -> Running ... -> Expired (remaining hits zero). An expired
timer stays expired until it is reset; resetting leaves it stopped at full
time.
"""

from __future__ import annotations

import dataclasses
import math
from typing import Tuple

from recipegraph.errors import InvalidTimerDurationError
from recipegraph.models.dto import Timer


def new_timer(step_id: str, minutes) -> Timer:
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise InvalidTimerDurationError(step_id, minutes)
    if not math.isfinite(minutes) or minutes <= 0:
        raise InvalidTimerDurationError(step_id, minutes)
    total = max(1, round(minutes * 60))
    return Timer(step_id=step_id, total_seconds=total, remaining_seconds=total, is_running=True)


def tick(timer: Timer, seconds: int = 1) -> Tuple[Timer, bool]:
    """Advance a running timer. Returns (timer, expired_now).

    expired_now is true only on the tick that takes the timer to zero.
    """
    if not timer.is_running or timer.remaining_seconds == 0:
        return timer, False
    remaining = max(0, timer.remaining_seconds - seconds)
    if remaining == 0:
        return dataclasses.replace(timer, remaining_seconds=0, is_running=False), True
    return dataclasses.replace(timer, remaining_seconds=remaining), False


def pause(timer: Timer) -> Timer:
    if not timer.is_running:
        return timer
    return dataclasses.replace(timer, is_running=False)


def resume(timer: Timer) -> Timer:
    if timer.is_running or timer.is_expired:
        return timer
    return dataclasses.replace(timer, is_running=True)


def reset(timer: Timer) -> Timer:
    return dataclasses.replace(timer, remaining_seconds=timer.total_seconds, is_running=False)
