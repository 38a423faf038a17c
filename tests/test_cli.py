from pathlib import Path

from typer.testing import CliRunner

from recipegraph.cli import app

RECIPES = Path(__file__).resolve().parents[1] / "data" / "recipes"
CARBONARA = str(RECIPES / "carbonara.json")
BROKEN = str(RECIPES / "broken_cycle.json")

runner = CliRunner()


def test_validate_ok():
    result = runner.invoke(app, ["validate", CARBONARA])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output
    assert "3 steps can start in parallel" in result.output


def test_validate_refuses_cycles():
    result = runner.invoke(app, ["validate", BROKEN])
    assert result.exit_code == 1
    assert "cannot be scheduled" in result.output


def test_validate_missing_file(tmp_path):
    result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_layout_table_and_json():
    result = runner.invoke(app, ["layout", CARBONARA])
    assert result.exit_code == 0, result.output
    assert "Step 6" in result.output

    result = runner.invoke(app, ["layout", CARBONARA, "--json"])
    assert result.exit_code == 0, result.output
    assert '"parallel_starts": 3' in result.output


def test_next_accepts_ids_and_numbers():
    result = runner.invoke(app, ["next", CARBONARA, "--done", "step1", "-d", "2"])
    assert result.exit_code == 0, result.output
    assert "Available now (3)" in result.output
    assert "Up next (1)" in result.output
    assert "waiting for: Step 3, Step 4, Step 5" in result.output


def test_next_rejects_unknown_step():
    result = runner.invoke(app, ["next", CARBONARA, "--done", "step99"])
    assert result.exit_code == 1


def test_cook_runs_to_completion():
    commands = "\n".join(f"done {n}" for n in range(1, 7)) + "\n"
    result = runner.invoke(app, ["cook", CARBONARA], input=commands)
    assert result.exit_code == 0, result.output
    assert "All 6 steps finished" in result.output


def test_cook_reports_bad_commands_inline():
    commands = "done 99\nbogus\ntimer 5 0\ntimer 5\npause 5\nquit\n"
    result = runner.invoke(app, ["cook", CARBONARA, "--tick-seconds", "30"], input=commands)
    assert result.exit_code == 0, result.output
    assert "Unknown step '99'" in result.output
    assert "Commands" in result.output
    assert "positive number of minutes" in result.output
    assert "Timer started for Step 5: 09:00" in result.output


def test_cook_refuses_cycles():
    result = runner.invoke(app, ["cook", BROKEN], input="quit\n")
    assert result.exit_code == 1
    assert "cannot be scheduled" in result.output


def test_cook_rejects_non_positive_tick_seconds():
    for value in ("0", "-2"):
        result = runner.invoke(app, ["cook", CARBONARA, f"--tick-seconds={value}"], input="quit\n")
        assert result.exit_code == 1
        assert "must be positive" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
