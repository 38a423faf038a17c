import logging

from rich.console import Console

from recipegraph.errors import CycleError, UnknownStepError
from recipegraph.graph.model import StepGraph
from recipegraph.session.notify import ConsoleNotifier, LogNotifier


def test_console_notifier_prints_label_and_text(scenario_recipe):
    console = Console(record=True, width=120)
    notify = ConsoleNotifier(StepGraph(scenario_recipe), console=console, bell=False)
    notify("s3")
    assert "Timer done: Step 3 - Do s3" in console.export_text()


def test_log_notifier_falls_back_to_the_id(caplog):
    with caplog.at_level(logging.INFO, logger="recipegraph"):
        LogNotifier()("anything")
    assert "Timer finished | step=anything (anything)" in caplog.text


def test_errors_carry_codes():
    assert CycleError(["a", "b", "a"]).to_dict() == {
        "error": "Step dependencies form a cycle: a -> b -> a",
        "code": "CYCLE",
    }
    err = UnknownStepError("ghost")
    assert isinstance(err, KeyError)
    assert str(err) == "Unknown step 'ghost'"
