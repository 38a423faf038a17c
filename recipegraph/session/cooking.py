"""Interactive cooking session: step completion plus concurrent step timers.

A session owns two maps, step id -> StepStatus and step id -> Timer. Every
public mutation is all-or-nothing under one lock; the background ticker
takes the same lock for its pass over the timers, so a tick never
interleaves with a mutation. Expiry notifications and change listeners are
called after the lock is released; snapshots reach listeners in the order the
changes were made and a stale one is dropped.

Unknown step ids raise UnknownStepError and leave the session unchanged.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Tuple

from recipegraph.errors import InvalidTimerDurationError, SessionClosedError
from recipegraph.graph import availability
from recipegraph.graph.model import StepGraph
from recipegraph.models.dto import BlockedStep, SessionSnapshot, SessionState, StepStatus, Timer
from recipegraph.models.recipe_schema import Recipe, Step
from recipegraph.session import timers as timer_ops
from recipegraph.session.notify import Notifier
from recipegraph.session.ticker import Ticker
from recipegraph.settings import settings

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]


class CookingSession:
    def __init__(
        self,
        recipe: Recipe,
        on_timer_expired: Optional[Notifier] = None,
        *,
        tick_interval: Optional[float] = None,
        ticker_factory: Callable[[float, Callable[[], None]], Ticker] = Ticker,
    ):
        graph = StepGraph(recipe)
        # CycleError / DanglingReferenceError / DuplicateStepError abort the session here
        graph.validate()

        self.recipe = recipe
        self.graph = graph
        self._on_timer_expired = on_timer_expired
        self._lock = threading.RLock()
        self._statuses: Dict[str, StepStatus] = {sid: StepStatus.PENDING for sid in graph.all_step_ids()}
        self._timers: Dict[str, Timer] = {}
        self._selected: Optional[str] = None
        self._listeners: List[Listener] = []
        # snapshots are numbered under _lock and delivered in that order
        self._publish_lock = threading.RLock()
        self._seq = 0
        self._published_seq = 0
        self._closed = False
        interval = tick_interval if tick_interval is not None else settings.tick_interval()
        self._ticker = ticker_factory(interval, self._on_tick)
        logger.info("Cooking session started | recipe=%s steps=%d", recipe.id, len(graph))

    def __enter__(self) -> "CookingSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # lifecycle

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ticking(self) -> bool:
        """Whether the background tick is currently scheduled."""
        return self._ticker.running

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the ticker and wait for its thread. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._ticker.stop()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout if timeout is not None else self._ticker.interval + 1.0)
            if thread.is_alive():
                logger.warning("Ticker thread for recipe %s did not stop in time", self.recipe.id)
        logger.info("Cooking session closed | recipe=%s", self.recipe.id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every change. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # step status

    def mark_step(self, step_id: str, status) -> None:
        status = StepStatus(status)
        with self._mutating():
            self.graph.step(step_id)
            self._set_status(step_id, status)

    def cycle_status(self, step_id: str) -> StepStatus:
        with self._mutating():
            self.graph.step(step_id)
            current = self._statuses[step_id]
            new = StepStatus.COMPLETED if current == StepStatus.PENDING else StepStatus.PENDING
            self._set_status(step_id, new)
        return new

    def select_step(self, step_id: Optional[str]) -> None:
        with self._mutating():
            if step_id is not None:
                self.graph.step(step_id)
            self._selected = step_id

    def reset_all(self) -> None:
        with self._mutating():
            for sid in self._statuses:
                self._statuses[sid] = StepStatus.PENDING
            self._timers.clear()
            self._selected = None
        logger.info("Cooking session reset | recipe=%s", self.recipe.id)

    def _set_status(self, step_id: str, status: StepStatus) -> None:
        self._statuses[step_id] = status
        if status == StepStatus.COMPLETED:
            # completing a step always cancels its timer; undo does not bring it back
            if self._timers.pop(step_id, None) is not None:
                logger.debug("Discarded timer for completed step %s", step_id)
        logger.info("Step %s -> %s | recipe=%s", step_id, status.value, self.recipe.id)

    # ------------------------------------------------------------------
    # timers

    def start_timer(self, step_id: str, minutes: Optional[float] = None) -> Timer:
        """Start (or restart) a countdown. `minutes` defaults to the step's duration."""
        with self._mutating():
            step = self.graph.step(step_id)
            if minutes is None:
                minutes = step.duration_minutes
                if minutes is None:
                    raise InvalidTimerDurationError(step_id, minutes)
            timer = timer_ops.new_timer(step_id, minutes)
            self._timers[step_id] = timer
        logger.debug("Timer started | step=%s seconds=%d", step_id, timer.total_seconds)
        return timer

    def pause_timer(self, step_id: str) -> None:
        self._update_timer(step_id, timer_ops.pause)

    def resume_timer(self, step_id: str) -> None:
        self._update_timer(step_id, timer_ops.resume)

    def reset_timer(self, step_id: str) -> None:
        self._update_timer(step_id, timer_ops.reset)

    def _update_timer(self, step_id: str, transition: Callable[[Timer], Timer]) -> None:
        with self._mutating():
            self.graph.step(step_id)
            timer = self._timers.get(step_id)
            if timer is not None:
                self._timers[step_id] = transition(timer)

    def tick(self) -> List[str]:
        """Advance every running timer by one second. Returns the step ids that just expired."""
        return self._advance(from_ticker=False)

    def _on_tick(self) -> None:
        self._advance(from_ticker=True)

    def _advance(self, from_ticker: bool) -> List[str]:
        expired: List[str] = []
        with self._lock:
            if from_ticker and (self._closed or not self._ticker.owns_current_thread()):
                return expired
            if self._closed:
                raise SessionClosedError(self.recipe.id)
            for sid in self.graph.all_step_ids():
                timer = self._timers.get(sid)
                if timer is None:
                    continue
                updated, expired_now = timer_ops.tick(timer)
                self._timers[sid] = updated
                if expired_now:
                    expired.append(sid)
            self._sync_ticker()
            pending = self._stamp(self._snapshot_locked(expired)) if self._listeners else None

        for sid in expired:
            logger.info("Timer expired | step=%s recipe=%s", sid, self.recipe.id)
            if self._on_timer_expired is None:
                continue
            try:
                self._on_timer_expired(sid)
            except Exception:
                logger.exception("Timer expiry notifier failed for step %s", sid)
        if pending is not None:
            self._publish(*pending)
        return expired

    def _sync_ticker(self) -> None:
        if any(t.is_running for t in self._timers.values()):
            self._ticker.start()
        else:
            self._ticker.stop()

    # ------------------------------------------------------------------
    # queries

    @property
    def selected_step_id(self) -> Optional[str]:
        return self._selected

    @property
    def state(self) -> SessionState:
        return SessionState.COMPLETE if self.is_session_complete() else SessionState.ACTIVE

    def status_of(self, step_id: str) -> StepStatus:
        self.graph.step(step_id)
        with self._lock:
            return self._statuses[step_id]

    def statuses(self) -> Dict[str, StepStatus]:
        with self._lock:
            return dict(self._statuses)

    def timer_for(self, step_id: str) -> Optional[Timer]:
        self.graph.step(step_id)
        with self._lock:
            return self._timers.get(step_id)

    def timers(self) -> Dict[str, Timer]:
        with self._lock:
            return dict(self._timers)

    def active_timers(self) -> List[Timer]:
        """Timers that are running or part-way through, in recipe order."""
        with self._lock:
            return [
                self._timers[sid] for sid in self.graph.all_step_ids()
                if sid in self._timers and self._timers[sid].is_active
            ]

    def available_steps(self) -> List[Step]:
        with self._lock:
            return availability.available_steps(self.graph.steps, self._statuses)

    def blocked_steps(self) -> List[BlockedStep]:
        with self._lock:
            return availability.blocked_steps(self.graph.steps, self._statuses)

    def is_step_available(self, step_id: str) -> bool:
        step = self.graph.step(step_id)
        with self._lock:
            return availability.is_step_available(step, self._statuses)

    def completed_count(self) -> int:
        with self._lock:
            return sum(1 for s in self._statuses.values() if s == StepStatus.COMPLETED)

    def progress(self) -> float:
        total = len(self._statuses)
        return self.completed_count() / total if total else 1.0

    def is_session_complete(self) -> bool:
        with self._lock:
            return all(s == StepStatus.COMPLETED for s in self._statuses.values())

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self, expired=()) -> SessionSnapshot:
        statuses = dict(self._statuses)
        completed = sum(1 for s in statuses.values() if s == StepStatus.COMPLETED)
        return SessionSnapshot(
            recipe_id=self.recipe.id,
            statuses=statuses,
            timers=dict(self._timers),
            available=tuple(s.id for s in availability.available_steps(self.graph.steps, statuses)),
            blocked=tuple(availability.blocked_steps(self.graph.steps, statuses)),
            completed_count=completed,
            total_steps=len(statuses),
            state=SessionState.COMPLETE if completed == len(statuses) else SessionState.ACTIVE,
            selected_step_id=self._selected,
            expired=tuple(expired),
        )

    # ------------------------------------------------------------------

    @contextmanager
    def _mutating(self):
        with self._lock:
            if self._closed:
                raise SessionClosedError(self.recipe.id)
            yield
            self._sync_ticker()
            pending = self._stamp(self._snapshot_locked()) if self._listeners else None
        if pending is not None:
            self._publish(*pending)

    def _stamp(self, snapshot: SessionSnapshot) -> Tuple[int, SessionSnapshot]:
        # called under self._lock, so sequence order is state order
        self._seq += 1
        return self._seq, snapshot

    def _publish(self, seq: int, snapshot: SessionSnapshot) -> None:
        with self._publish_lock:
            if seq <= self._published_seq:
                logger.debug("Dropped stale snapshot %d | recipe=%s", seq, self.recipe.id)
                return
            self._published_seq = seq
            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(snapshot)
                except Exception:
                    logger.exception("Session listener failed | recipe=%s", self.recipe.id)
