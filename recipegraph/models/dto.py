"""Values handed from the scheduling core to renderers.

Everything here is immutable; a session replaces values rather than editing
them, so a snapshot taken by a renderer never changes underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from recipegraph.models.recipe_schema import Step


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class TimerState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


class SessionState(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Timer:
    step_id: str
    total_seconds: int
    remaining_seconds: int
    is_running: bool = True

    def __post_init__(self):
        if not 0 <= self.remaining_seconds <= self.total_seconds:
            raise ValueError(
                f"remaining_seconds must be within [0, {self.total_seconds}], got {self.remaining_seconds}"
            )

    @property
    def is_expired(self) -> bool:
        return self.remaining_seconds == 0

    @property
    def state(self) -> TimerState:
        if self.is_expired:
            return TimerState.EXPIRED
        return TimerState.RUNNING if self.is_running else TimerState.PAUSED

    @property
    def is_active(self) -> bool:
        """Running, or stopped part way through (shown in the active timers bar)."""
        return self.is_running or self.remaining_seconds < self.total_seconds

    @property
    def elapsed_fraction(self) -> float:
        if self.total_seconds <= 0:
            return 0.0
        return (self.total_seconds - self.remaining_seconds) / self.total_seconds

    def format_remaining(self) -> str:
        mins, secs = divmod(self.remaining_seconds, 60)
        return f"{mins:02d}:{secs:02d}"


@dataclass(frozen=True)
class StepPlacement:
    rank: int
    track_index: int


@dataclass(frozen=True)
class BlockedStep:
    step: Step
    # incomplete dependencies, in the step's dependsOn order
    waiting_for: Tuple[str, ...]

    @property
    def step_id(self) -> str:
        return self.step.id


@dataclass(frozen=True)
class SessionSnapshot:
    recipe_id: str
    statuses: Dict[str, StepStatus]
    timers: Dict[str, Timer]
    available: Tuple[str, ...]
    blocked: Tuple[BlockedStep, ...]
    completed_count: int
    total_steps: int
    state: SessionState
    selected_step_id: Optional[str] = None
    expired: Tuple[str, ...] = field(default=())

    @property
    def progress(self) -> float:
        if not self.total_steps:
            return 1.0
        return self.completed_count / self.total_steps
