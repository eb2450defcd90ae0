"""
Minimal smoke tests for the fitplan CLI.

Tests basic functionality:
- App runs and shows help
- Profile is created and updated
- Plan is generated
- Workouts can be logged until the week is complete
- Plan can be edited
- Reset starts a new week
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fitplan.cli.main import app


runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Isolated storage root for each test."""
    return tmp_path / "fitplan"


def _invoke(data_dir: Path, *args: str, input: str | None = None):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)], input=input)


def _stored(data_dir: Path, user: str = "default") -> dict:
    path = data_dir / "users" / user / "profile.json"
    return json.loads(path.read_text(encoding="utf-8"))


def _generate(data_dir: Path, days: str = "Mon,Wed,Fri"):
    return _invoke(
        data_dir,
        "generate",
        "--name", "Jordan",
        "--weight", "72",
        "--height", "176",
        "--free-days", days,
        "--goal", "build muscle",
        "--fitness-level", "beginner",
    )


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "workout" in result.output.lower()

    def test_profile_update_creates_profile(self, data_dir):
        result = _invoke(data_dir, "profile", "--name", "Jordan", "--free-days", "mon,thursday")

        assert result.exit_code == 0
        assert "Profile updated." in result.output
        stored = _stored(data_dir)
        assert stored["user_data"]["name"] == "Jordan"
        assert stored["user_data"]["free_days"] == ["Monday", "Thursday"]
        assert stored["workout_plan"] is None

    def test_profile_show_writes_nothing(self, data_dir):
        result = _invoke(data_dir, "profile")

        assert result.exit_code == 0
        assert not (data_dir / "users" / "default" / "profile.json").exists()

    def test_bad_free_day(self, data_dir):
        result = _invoke(data_dir, "profile", "--free-days", "Mon,Funday")
        assert result.exit_code == 1
        assert "Unknown day" in result.output

    def test_generate_creates_plan(self, data_dir):
        result = _generate(data_dir)

        assert result.exit_code == 0
        assert "Generated a 3-day plan." in result.output
        plan = _stored(data_dir)["workout_plan"]
        assert [d["day"] for d in plan["plan"]] == ["Monday", "Wednesday", "Friday"]
        assert plan["completed_days"] == []

    def test_generate_without_free_days(self, data_dir):
        result = _invoke(data_dir, "generate", "--name", "Jordan")

        assert result.exit_code == 1
        assert "Please select at least one free day" in result.output

    def test_show_and_status(self, data_dir):
        _generate(data_dir)

        result = _invoke(data_dir, "show", "--day", "2")
        assert result.exit_code == 0
        assert "Wednesday" in result.output

        result = _invoke(data_dir, "status")
        assert result.exit_code == 0
        assert "0/3" in result.output

    def test_log_until_week_complete(self, data_dir):
        _generate(data_dir)

        result = _invoke(data_dir, "log", "1")
        assert result.exit_code == 0
        assert "Logged Monday." in result.output

        _invoke(data_dir, "log", "wed")
        result = _invoke(data_dir, "log", "Friday")
        assert result.exit_code == 0
        assert "Week complete!" in result.output

        assert sorted(_stored(data_dir)["workout_plan"]["completed_days"]) == [
            "Friday", "Monday", "Wednesday",
        ]
        lines = (data_dir / "users" / "default" / "workout_log.jsonl").read_text().splitlines()
        assert len(lines) == 3

        result = _invoke(data_dir, "history", "-n", "2")
        assert result.exit_code == 0
        assert "Friday" in result.output

    def test_log_unknown_day(self, data_dir):
        _generate(data_dir)
        result = _invoke(data_dir, "log", "Sunday")

        assert result.exit_code == 1
        assert "No plan day matches" in result.output

    def test_log_without_plan(self, data_dir):
        result = _invoke(data_dir, "log", "1")
        assert result.exit_code == 1

    def test_edit_and_save(self, data_dir):
        _generate(data_dir)

        result = _invoke(
            data_dir,
            "edit",
            input='set 1 focus "Chest Day"\nadd 1 1\nbogus\nsave\n',
        )

        assert result.exit_code == 0
        assert "Unknown command" in result.output
        assert "Plan saved." in result.output
        monday = _stored(data_dir)["workout_plan"]["plan"][0]
        assert monday["focus"] == "Chest Day"
        assert monday["muscle_groups"][0]["exercises"][-1]["name"] == "New Exercise"

    def test_edit_end_of_input_discards(self, data_dir):
        _generate(data_dir)
        before = _stored(data_dir)

        result = _invoke(data_dir, "edit", input="set plan summary Scratch\n")

        assert result.exit_code == 0
        assert "Changes discarded." in result.output
        assert _stored(data_dir) == before

    def test_reset_starts_new_week(self, data_dir):
        _generate(data_dir)
        _invoke(data_dir, "log", "1")

        result = _invoke(data_dir, "reset", "--yes")

        assert result.exit_code == 0
        assert "new week" in result.output.lower()
        stored = _stored(data_dir)
        assert stored["workout_plan"] is None
        assert stored["user_data"]["name"] == "Jordan"
        assert stored["user_data"]["free_days"] == []
        assert (data_dir / "users" / "default" / "workout_log.jsonl").exists()

    def test_users_are_separate(self, data_dir):
        _invoke(data_dir, "profile", "--name", "Ana", "--user", "ana")
        _invoke(data_dir, "profile", "--name", "Ben", "--user", "ben")

        assert _stored(data_dir, "ana")["user_data"]["name"] == "Ana"
        assert _stored(data_dir, "ben")["user_data"]["name"] == "Ben"

    def test_invalid_username(self, data_dir):
        result = _invoke(data_dir, "status", "--user", "../etc")
        assert result.exit_code == 1
        assert "Invalid username" in result.output
