"""Edit command: interactive editing of the plan on a draft copy."""

import shlex
from typing import Any

from ...core.errors import ValidationError
from ...session import PlanSession
from .. import views
from ..app import DataDirOption, UserOption, app, run_session

EDIT_HELP = """\
[bold]Editing a draft of your plan.[/bold] Nothing changes until you [cyan]save[/cyan].
Numbers are 1-based, as shown in the tables.

  [cyan]show[/cyan] [DAY]                       show the draft (optionally one day)
  [cyan]set plan[/cyan] FIELD VALUE             summary | total_weekly_time | total_weekly_calories_burned
  [cyan]set[/cyan] DAY FIELD VALUE              focus | approximate_time | calories_burned
  [cyan]set[/cyan] DAY.GROUP name VALUE         rename a muscle group
  [cyan]set[/cyan] DAY.GROUP.EX FIELD VALUE     name | sets | reps | description | target_muscles
  [cyan]add[/cyan] DAY GROUP                    add a new exercise to a group
  [cyan]del[/cyan] DAY GROUP EX                 delete an exercise
  [cyan]save[/cyan]                             commit the draft
  [cyan]discard[/cyan]                          drop the draft and leave
  [cyan]help[/cyan]                             show this help
"""


def _one_based(text: str) -> int:
    if not text.isdigit() or int(text) < 1:
        raise ValidationError(f"Expected a number from 1, got {text!r}")
    return int(text) - 1


def build_edit_path(target: str, field: str) -> tuple[Any, ...]:
    """
    Translate a 1-based CLI target into an edit path.

    Examples:
        ("plan", "summary")   -> ("summary",)
        ("2", "focus")        -> ("plan", 1, "focus")
        ("2.1", "name")       -> ("plan", 1, "muscle_groups", 0, "name")
        ("2.1.3", "reps")     -> ("plan", 1, "muscle_groups", 0, "exercises", 2, "reps")
    """
    if target == "plan":
        return (field,)
    parts = [_one_based(p) for p in target.split(".")]
    if len(parts) == 1:
        return ("plan", parts[0], field)
    if len(parts) == 2:
        return ("plan", parts[0], "muscle_groups", parts[1], field)
    if len(parts) == 3:
        return ("plan", parts[0], "muscle_groups", parts[1], "exercises", parts[2], field)
    raise ValidationError(f"Bad edit target {target!r}")


def handle_edit_line(session: PlanSession, line: str) -> str | None:
    """
    Run one editor command against the session's draft.

    Returns:
        "save" or "discard" when the editor should finish, else None
    """
    try:
        words = shlex.split(line)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if not words:
        return None

    cmd, args = words[0].lower(), words[1:]

    if cmd == "help":
        views.console.print(EDIT_HELP)
    elif cmd == "show":
        index = _one_based(args[0]) if args else 0
        views.print_plan(session.draft, index)
    elif cmd == "set":
        if len(args) < 3:
            raise ValidationError("Usage: set TARGET FIELD VALUE")
        path = build_edit_path(args[0], args[1])
        if session.set_field(path, " ".join(args[2:])):
            views.print_success("Updated.")
        else:
            views.print_warning("Nothing at that position; draft unchanged.")
    elif cmd == "add":
        if len(args) != 2:
            raise ValidationError("Usage: add DAY GROUP")
        if session.add_exercise(_one_based(args[0]), _one_based(args[1])):
            views.print_success("Added a new exercise.")
        else:
            views.print_warning("No such muscle group; draft unchanged.")
    elif cmd in ("del", "delete"):
        if len(args) != 3:
            raise ValidationError("Usage: del DAY GROUP EX")
        if session.delete_exercise(*(_one_based(a) for a in args)):
            views.print_success("Deleted.")
        else:
            views.print_warning("No such exercise; draft unchanged.")
    elif cmd == "save":
        return "save"
    elif cmd in ("discard", "quit", "exit"):
        return "discard"
    else:
        raise ValidationError(f"Unknown command {cmd!r}; type 'help'")
    return None


@app.command()
def edit(
    user: UserOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """Edit the current plan interactively."""

    async def action(session: PlanSession) -> int:
        if session.start_edit() is None:
            views.print_error("No plan to edit. Run 'fitplan generate' first.")
            return 1

        views.console.print(EDIT_HELP)
        while True:
            try:
                line = views.console.input("[bold]edit>[/bold] ")
            except EOFError:
                line = "discard"
            try:
                outcome = handle_edit_line(session, line)
            except ValidationError as e:
                views.print_error(str(e))
                continue

            if outcome == "save":
                session.commit_edit()
                views.print_success("Plan saved.")
                return 0
            if outcome == "discard":
                session.discard_edit()
                views.print_info("Changes discarded.")
                return 0

    run_session(user, data_dir, action)
