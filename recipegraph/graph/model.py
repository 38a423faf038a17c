"""Dependency graph over a recipe's steps.

Edges point from a step to the steps listed in its `dependsOn`. The graph is
read-only and safe to share between sessions and threads.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from recipegraph.errors import CycleError, DanglingReferenceError, DuplicateStepError, UnknownStepError
from recipegraph.models.recipe_schema import Recipe, Step

logger = logging.getLogger(__name__)


class StepGraph:
    def __init__(self, steps: Union[Recipe, Iterable[Step]]):
        if isinstance(steps, Recipe):
            steps = steps.steps
        self._steps: Tuple[Step, ...] = tuple(steps)
        self._by_id: Dict[str, Step] = {}
        self._index: Dict[str, int] = {}
        for i, step in enumerate(self._steps):
            # first occurrence wins; validate() reports the duplicate
            self._by_id.setdefault(step.id, step)
            self._index.setdefault(step.id, i)
        self._successors: Dict[str, List[str]] = {sid: [] for sid in self._by_id}
        for step in self._steps:
            if self._by_id[step.id] is not step:
                continue
            for dep in step.depends_on:
                if dep in self._successors and step.id not in self._successors[dep]:
                    self._successors[dep].append(step.id)

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._by_id

    def step(self, step_id: str) -> Step:
        try:
            return self._by_id[step_id]
        except KeyError:
            raise UnknownStepError(step_id) from None

    def all_step_ids(self) -> List[str]:
        return list(self._by_id)

    def predecessors_of(self, step_id: str) -> List[str]:
        return list(self.step(step_id).depends_on)

    def successors_of(self, step_id: str) -> List[str]:
        self.step(step_id)
        return list(self._successors[step_id])

    def in_degree(self, step_id: str) -> int:
        return len(self.step(step_id).depends_on)

    def roots(self) -> List[str]:
        """Steps with no dependencies, i.e. the ones that can all start in parallel."""
        return [sid for sid, step in self._by_id.items() if not step.depends_on]

    def edges(self) -> List[Tuple[str, str]]:
        """(dependency, dependent) pairs in recipe order, for drawing arrows."""
        return [(dep, sid) for sid, step in self._by_id.items() for dep in step.depends_on]

    def index_of(self, step_id: str) -> int:
        self.step(step_id)
        return self._index[step_id]

    def label(self, step_id: str) -> str:
        return f"Step {self.index_of(step_id) + 1}"

    def resolve(self, ref: str) -> str:
        """Map a step id or a 1-based step number to a step id."""
        ref = ref.strip()
        if ref in self._by_id:
            return ref
        if ref.isdigit():
            n = int(ref)
            if 1 <= n <= len(self._steps):
                return self._steps[n - 1].id
        raise UnknownStepError(ref)

    def validate(self) -> None:
        """Raise a StructuralError if these steps cannot be scheduled."""
        seen = set()
        for step in self._steps:
            if step.id in seen:
                raise DuplicateStepError(step.id)
            seen.add(step.id)

        for step in self._steps:
            for dep in step.depends_on:
                if dep not in self._by_id:
                    raise DanglingReferenceError(step.id, dep)

        cycle = _find_cycle(self._steps, self._by_id)
        if cycle:
            raise CycleError(cycle)
        logger.debug("Validated step graph with %d steps and %d edges", len(self), len(self.edges()))


def _find_cycle(steps: Sequence[Step], by_id: Dict[str, Step]) -> List[str]:
    """Depth-first search along dependsOn edges; returns the first cycle found or []."""
    visited = set()
    rec_stack = set()
    path: List[str] = []

    for step in steps:
        if step.id in visited:
            continue
        visited.add(step.id)
        rec_stack.add(step.id)
        path.append(step.id)
        stack = [(step.id, iter(step.depends_on))]
        while stack:
            node, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                path.pop()
                rec_stack.discard(node)
                continue
            if dep in rec_stack:
                return path[path.index(dep):] + [dep]
            if dep in visited:
                continue
            visited.add(dep)
            rec_stack.add(dep)
            path.append(dep)
            stack.append((dep, iter(by_id[dep].depends_on)))
    return []
