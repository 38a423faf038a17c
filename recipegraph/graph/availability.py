"""Which steps can start now, and what the rest are waiting for.

Pure functions over a step sequence and a status map. Results keep the
recipe's step order. Steps missing from the status map count as pending.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from recipegraph.models.dto import BlockedStep, StepStatus
from recipegraph.models.recipe_schema import Step


def _status(status_map: Mapping[str, StepStatus], step_id: str) -> StepStatus:
    return status_map.get(step_id, StepStatus.PENDING)


def is_step_available(step: Step, status_map: Mapping[str, StepStatus]) -> bool:
    if _status(status_map, step.id) != StepStatus.PENDING:
        return False
    return all(_status(status_map, dep) == StepStatus.COMPLETED for dep in step.depends_on)


def waiting_for(step: Step, status_map: Mapping[str, StepStatus]) -> tuple:
    return tuple(dep for dep in step.depends_on if _status(status_map, dep) != StepStatus.COMPLETED)


def available_steps(steps: Iterable[Step], status_map: Mapping[str, StepStatus]) -> List[Step]:
    return [step for step in steps if is_step_available(step, status_map)]


def blocked_steps(steps: Iterable[Step], status_map: Mapping[str, StepStatus]) -> List[BlockedStep]:
    blocked = []
    for step in steps:
        if _status(status_map, step.id) != StepStatus.PENDING:
            continue
        missing = waiting_for(step, status_map)
        if missing:
            blocked.append(BlockedStep(step=step, waiting_for=missing))
    return blocked


def status_map_for(steps: Iterable[Step], done: Optional[Iterable[str]]) -> dict:
    """Build a status map marking `done` ids completed and every other step pending."""
    done = set(done or ())
    return {
        step.id: StepStatus.COMPLETED if step.id in done else StepStatus.PENDING
        for step in steps
    }
