import random

from recipegraph.graph.availability import (
    available_steps,
    blocked_steps,
    is_step_available,
    status_map_for,
)
from recipegraph.models.dto import StepStatus


def _ids(steps):
    return [s.id for s in steps]


def test_availability_follows_completions(scenario_recipe):
    steps = scenario_recipe.steps
    statuses = status_map_for(steps, [])
    assert _ids(available_steps(steps, statuses)) == ["s1", "s2"]

    statuses = status_map_for(steps, ["s1"])
    assert _ids(available_steps(steps, statuses)) == ["s2", "s3"]

    statuses = status_map_for(steps, ["s1", "s2", "s3"])
    assert _ids(available_steps(steps, statuses)) == ["s4"]

    statuses = status_map_for(steps, ["s1", "s2", "s3", "s4"])
    assert available_steps(steps, statuses) == []
    assert blocked_steps(steps, statuses) == []


def test_blocked_steps_name_what_they_wait_for(scenario_recipe):
    steps = scenario_recipe.steps
    blocked = blocked_steps(steps, status_map_for(steps, ["s2"]))
    assert [(b.step_id, b.waiting_for) for b in blocked] == [("s3", ("s1",)), ("s4", ("s3",))]


def test_results_keep_recipe_order_not_id_order(make_recipe):
    recipe = make_recipe([{"id": "zest"}, {"id": "boil", "duration": 20}, {"id": "after", "dependsOn": ["zest"]}])
    statuses = status_map_for(recipe.steps, [])
    assert _ids(available_steps(recipe.steps, statuses)) == ["zest", "boil"]


def test_dependencies_completed_up_front_make_step_available(scenario_recipe):
    steps = scenario_recipe.steps
    s3 = steps[2]
    assert is_step_available(s3, {"s1": StepStatus.COMPLETED, "s3": StepStatus.PENDING})


def test_missing_statuses_count_as_pending(scenario_recipe):
    steps = scenario_recipe.steps
    assert _ids(available_steps(steps, {})) == ["s1", "s2"]
    assert _ids(available_steps(steps, {"s1": "completed"})) == ["s2", "s3"]


def test_completed_steps_are_neither_available_nor_blocked(scenario_recipe):
    steps = scenario_recipe.steps
    statuses = status_map_for(steps, ["s1"])
    assert "s1" not in _ids(available_steps(steps, statuses))
    assert "s1" not in [b.step_id for b in blocked_steps(steps, statuses)]


def _random_dag(rng, make_recipe, size):
    steps = []
    for i in range(size):
        earlier = [f"n{j}" for j in range(i)]
        deps = rng.sample(earlier, k=rng.randint(0, min(3, len(earlier))))
        steps.append({"id": f"n{i}", "dependsOn": deps})
    rng.shuffle(steps)
    return make_recipe(steps)


def test_available_iff_pending_with_completed_dependencies(make_recipe):
    rng = random.Random(1234)
    for _ in range(200):
        recipe = _random_dag(rng, make_recipe, rng.randint(1, 12))
        done = {s.id for s in recipe.steps if rng.random() < 0.4}
        statuses = status_map_for(recipe.steps, done)

        available = set(_ids(available_steps(recipe.steps, statuses)))
        blocked = {b.step_id: set(b.waiting_for) for b in blocked_steps(recipe.steps, statuses)}
        for step in recipe.steps:
            deps_done = all(d in done for d in step.depends_on)
            assert (step.id in available) == (step.id not in done and deps_done)
            if step.id not in done and not deps_done:
                assert blocked[step.id] == {d for d in step.depends_on if d not in done}
            else:
                assert step.id not in blocked
