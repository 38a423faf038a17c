"""Error types raised by the scheduling core.

Structural errors (cycles, dangling or duplicate step ids) make a recipe
unschedulable and are raised before any layout or session is built.
Per-operation errors reject a single session call and leave state unchanged.
"""

from __future__ import annotations

from typing import Sequence


class RecipeGraphError(Exception):
    """Base class for all recipegraph errors. `code` is stable for callers."""

    code = "RECIPE_GRAPH_ERROR"

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code}


class StructuralError(RecipeGraphError, ValueError):
    """The step dependency relation cannot be scheduled."""

    code = "STRUCTURAL_ERROR"


class CycleError(StructuralError):
    code = "CYCLE"

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__("Step dependencies form a cycle: " + " -> ".join(self.cycle))


class DanglingReferenceError(StructuralError):
    code = "DANGLING_REFERENCE"

    def __init__(self, step_id: str, missing: str):
        self.step_id = step_id
        self.missing = missing
        super().__init__(f"Step {step_id!r} depends on unknown step {missing!r}")


class DuplicateStepError(StructuralError):
    code = "DUPLICATE_STEP"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Step id {step_id!r} is used more than once")


class UnknownStepError(RecipeGraphError, KeyError):
    code = "UNKNOWN_STEP"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(step_id)

    def __str__(self) -> str:
        # KeyError would repr() the argument
        return f"Unknown step {self.step_id!r}"


class InvalidTimerDurationError(RecipeGraphError, ValueError):
    code = "INVALID_TIMER_DURATION"

    def __init__(self, step_id: str, minutes):
        self.step_id = step_id
        self.minutes = minutes
        super().__init__(f"Timer for step {step_id!r} needs a positive number of minutes, got {minutes!r}")


class SessionClosedError(RecipeGraphError, RuntimeError):
    code = "SESSION_CLOSED"

    def __init__(self, recipe_id: str):
        self.recipe_id = recipe_id
        super().__init__(f"Cooking session for recipe {recipe_id!r} is closed")


class RecipeLoadError(RecipeGraphError, ValueError):
    code = "RECIPE_LOAD"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load recipe from {path}: {reason}")
