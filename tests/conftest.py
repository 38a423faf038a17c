import pytest

from recipegraph.models.recipe_schema import Recipe
from recipegraph.session.cooking import CookingSession


def build_recipe(steps, recipe_id="test-recipe", title="Test recipe"):
    """steps: list of dicts in the stored JSON shape; `text` defaults to 'Do <id>'."""
    return Recipe.model_validate(
        {
            "id": recipe_id,
            "title": title,
            "steps": [{"text": f"Do {s['id']}", **s} for s in steps],
        }
    )


class DummyTicker:
    """Stands in for the background ticker; tests drive ticks by hand."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.running = False
        self.starts = 0
        self.stops = 0

    def start(self):
        if not self.running:
            self.running = True
            self.starts += 1

    def stop(self):
        if self.running:
            self.running = False
            self.stops += 1
        return None

    def owns_current_thread(self):
        return self.running


@pytest.fixture
def make_recipe():
    return build_recipe


@pytest.fixture
def scenario_recipe():
    return build_recipe(
        [
            {"id": "s1", "dependsOn": [], "duration": 10, "needsTimer": True},
            {"id": "s2", "dependsOn": []},
            {"id": "s3", "dependsOn": ["s1"]},
            {"id": "s4", "dependsOn": ["s2", "s3"]},
        ]
    )


@pytest.fixture
def make_session():
    def _make(recipe, on_timer_expired=None):
        return CookingSession(recipe, on_timer_expired, tick_interval=1.0, ticker_factory=DummyTicker)

    return _make
