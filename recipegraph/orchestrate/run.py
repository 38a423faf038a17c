"""Orchestrator helpers: load recipe files, summarise their step graphs and
open cooking sessions. Used by the CLI and tests.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Iterable, Optional

from pydantic import ValidationError

from recipegraph.errors import RecipeLoadError, StructuralError
from recipegraph.graph.availability import available_steps, blocked_steps, status_map_for
from recipegraph.graph.layout import compute_layout, max_parallelism, tracks
from recipegraph.graph.model import StepGraph
from recipegraph.models.recipe_schema import Recipe
from recipegraph.session.cooking import CookingSession
from recipegraph.session.notify import LogNotifier, Notifier

logger = logging.getLogger(__name__)


def load_recipe(path: str) -> Recipe:
    """Read a recipe JSON file in the stored Recipe shape.

    Raises RecipeLoadError for unreadable files, bad JSON or schema mismatches.
    """
    stage = "read"
    logger.debug("Loading recipe | path=%s", path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = fh.read()
        stage = "parse"
        data = json.loads(raw)
        stage = "validate"
        recipe = Recipe.model_validate(data)
    except OSError as e:
        raise RecipeLoadError(path, e.strerror or str(e)) from e
    except json.JSONDecodeError as e:
        raise RecipeLoadError(path, f"invalid JSON ({e.msg} at line {e.lineno})") from e
    except ValidationError as e:
        logger.warning("Recipe failed schema validation | path=%s stage=%s", path, stage)
        raise RecipeLoadError(path, f"{e.error_count()} schema error(s): {e.errors()[0]['msg']}") from e
    logger.info("Loaded recipe | path=%s id=%s steps=%d", os.path.basename(path), recipe.id, len(recipe.steps))
    return recipe


def plan_recipe(recipe: Recipe) -> dict:
    """Validate the step graph and return a JSON-serializable summary of it."""
    graph = StepGraph(recipe)
    graph.validate()
    layout = compute_layout(graph)
    rows = tracks(layout)
    return {
        "id": recipe.id,
        "title": recipe.title,
        "step_count": len(graph),
        "parallel_starts": len(graph.roots()),
        "depth": len(rows),
        "max_parallelism": max_parallelism(layout),
        "tracks": rows,
        "layout": {sid: {"rank": p.rank, "track_index": p.track_index} for sid, p in layout.items()},
    }


def next_steps(recipe: Recipe, done: Optional[Iterable[str]] = None) -> dict:
    """Available and blocked steps for a given set of completed step ids."""
    graph = StepGraph(recipe)
    graph.validate()
    done = list(done or ())
    for sid in done:
        graph.step(sid)
    statuses = status_map_for(graph.steps, done)
    return {
        "available": [s.id for s in available_steps(graph.steps, statuses)],
        "blocked": {b.step_id: list(b.waiting_for) for b in blocked_steps(graph.steps, statuses)},
    }


def open_session(
    recipe: Recipe,
    notifier: Optional[Notifier] = None,
    tick_interval: Optional[float] = None,
) -> CookingSession:
    """Start a cooking session, refusing recipes whose steps cannot be scheduled."""
    try:
        session = CookingSession(
            recipe,
            notifier if notifier is not None else LogNotifier(StepGraph(recipe)),
            tick_interval=tick_interval,
        )
    except StructuralError as e:
        logger.error("Refusing to start cooking session | recipe=%s code=%s error=%s", recipe.id, e.code, e)
        raise
    return session
