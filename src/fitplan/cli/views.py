"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of profiles, plans and the workout log.
"""

from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.completion import is_week_complete
from ..core.config import NEW_WEEK_MESSAGE
from ..core.metrics import calculate_bmi, completion_ratio, format_minutes, plan_totals
from ..core.models import PlanDay, Profile, WorkoutLogEntry, WorkoutPlan

console = Console()


def _or_not_set(value: str) -> str:
    return value if value else "[dim]Not set[/dim]"


def print_profile(profile: Profile) -> None:
    """Print the profile as a two-column table."""
    table = Table(title="Profile", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Name", _or_not_set(profile.name))
    table.add_row("Weight", _or_not_set(f"{profile.weight} kg" if profile.weight else ""))
    table.add_row("Height", _or_not_set(f"{profile.height} cm" if profile.height else ""))
    bmi = calculate_bmi(profile.weight, profile.height)
    table.add_row("BMI", f"{bmi:.1f}" if bmi > 0 else "[dim]-[/dim]")
    table.add_row("Free days", _or_not_set(", ".join(profile.free_days)))
    table.add_row("Gender", _or_not_set(profile.gender))
    table.add_row("Experience level", _or_not_set(profile.fitness_level))
    table.add_row("Primary goal", _or_not_set(profile.goal))
    table.add_row("Available equipment", _or_not_set(profile.equipment))
    table.add_row("Max session time", _or_not_set(
        f"{profile.max_session_time} min" if profile.max_session_time else ""
    ))
    console.print(table)


def format_plan_overview(plan: WorkoutPlan, active_day: int | None = None) -> Table:
    """
    Build the weekly overview table.

    Args:
        plan: Plan to show
        active_day: Index of the selected day (highlighted), or None

    Returns:
        Rich Table
    """
    done = set(plan.completed_days)
    table = Table(title="Your Week")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Day", style="bold")
    table.add_column("Focus")
    table.add_column("Time")
    table.add_column("kcal", justify="right")
    table.add_column("Done", justify="center")

    for i, day in enumerate(plan.plan):
        marker = "[green]✓[/green]" if day.day in done else ""
        style = "reverse" if i == active_day else None
        table.add_row(
            str(i + 1),
            day.day,
            day.focus,
            day.approximate_time,
            f"{day.calories_burned:.0f}",
            marker,
            style=style,
        )
    return table


def print_day(day: PlanDay, index: int, completed: bool = False) -> None:
    """Print one plan day with its muscle groups and exercises."""
    status = " [green](done)[/green]" if completed else ""
    console.print()
    console.print(
        f"[bold cyan]Day {index + 1}: {day.day}[/bold cyan]: {day.focus}"
        f"  [dim]{day.approximate_time}, ~{day.calories_burned:.0f} kcal[/dim]{status}"
    )
    for g, group in enumerate(day.muscle_groups):
        table = Table(title=f"{group.name} [dim](group {g + 1})[/dim]", title_justify="left")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Exercise", style="bold")
        table.add_column("Sets", justify="right")
        table.add_column("Reps")
        table.add_column("Targets")
        table.add_column("How to")
        for e, exercise in enumerate(group.exercises):
            table.add_row(
                str(e + 1),
                exercise.name,
                exercise.sets,
                exercise.reps,
                ", ".join(exercise.target_muscles),
                exercise.description,
            )
        console.print(table)


def print_plan(plan: WorkoutPlan, active_day: int = 0) -> None:
    """Print summary, weekly overview and the selected day."""
    if is_week_complete(plan):
        print_week_complete()
    console.print(Panel(plan.summary or "No summary.", title="Plan summary"))
    console.print(format_plan_overview(plan, active_day))
    console.print(
        f"Weekly total: {plan.total_weekly_time or '-'}, "
        f"~{plan.total_weekly_calories_burned:.0f} kcal"
    )
    if plan.plan:
        index = min(max(active_day, 0), len(plan.plan) - 1)
        day = plan.plan[index]
        print_day(day, index, day.day in plan.completed_days)


def print_week_complete() -> None:
    console.print(Panel(
        "[bold green]Week complete![/bold green] Every planned workout is logged.\n"
        "Run [cyan]fitplan reset[/cyan] to start a new week.",
        border_style="green",
    ))


def print_new_week_message() -> None:
    console.print(Panel(NEW_WEEK_MESSAGE, border_style="cyan"))


def _fmt_date(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


def format_history_table(entries: list[WorkoutLogEntry]) -> Table:
    """Format the workout log (most recent first) as a table."""
    table = Table(title="Workout History")
    table.add_column("Date", style="cyan")
    table.add_column("Day", style="bold")
    table.add_column("Focus")
    table.add_column("kcal", justify="right")
    for entry in entries:
        table.add_row(
            _fmt_date(entry.date),
            entry.day_name,
            entry.focus,
            f"{entry.calories_burned:.0f}",
        )
    return table


def print_history(entries: list[WorkoutLogEntry]) -> None:
    if not entries:
        print_info("No workouts logged yet.")
        return
    console.print(format_history_table(entries))
    total = sum(e.calories_burned for e in entries)
    console.print(f"{len(entries)} workouts, ~{total:.0f} kcal burned")


def print_status(
    username: str,
    mode: str,
    plan: WorkoutPlan | None,
    history_count: int,
) -> None:
    """Print a compact status block."""
    console.print(f"[bold]User:[/bold] {username}")
    console.print(f"[bold]Mode:[/bold] {mode}")
    if plan is None:
        console.print("[bold]Plan:[/bold] none, run [cyan]fitplan generate[/cyan]")
    else:
        minutes, calories = plan_totals(plan)
        done = len(set(plan.completed_days))
        console.print(
            f"[bold]Plan:[/bold] {len(plan.plan)} days, "
            f"{format_minutes(minutes)}, ~{calories:.0f} kcal"
        )
        console.print(
            f"[bold]Completed:[/bold] {done}/{len(plan.plan)} "
            f"({completion_ratio(plan):.0%})"
            + (f": {', '.join(plan.completed_days)}" if plan.completed_days else "")
        )
        if is_week_complete(plan):
            console.print("[bold green]Week complete![/bold green]")
    console.print(f"[bold]Logged workouts:[/bold] {history_count}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
