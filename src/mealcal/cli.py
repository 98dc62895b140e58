"""Command-line interface for Mealcal."""

from __future__ import annotations

import json
from typing import Optional

import typer

from mealcal.config import get_settings
from mealcal.dates import server_today
from mealcal.db.calendar import initialise_weeks
from mealcal.db.dishes import get_dish
from mealcal.planner.consistency import ConsistencyEngine

app = typer.Typer(help="Mealcal household meal calendar commands.")


@app.command("init-weeks")
def init_weeks(
    count: Optional[int] = typer.Option(
        None,
        "--count",
        min=1,
        help="Number of weeks to create, starting with the current one.",
    ),
) -> None:
    """Create empty calendar entries for the current and upcoming weeks."""

    settings = get_settings()
    created = initialise_weeks(server_today(), count=count or settings.weeks_to_initialise)
    if not created:
        typer.echo("All weeks already initialised.")
        return
    for week_start in created:
        typer.echo(f"Initialised week {week_start.isoformat()}")


@app.command()
def recompute(
    dish_id: int = typer.Argument(..., help="Dish ID whose last-eaten date should be re-derived."),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty-print result JSON."),
) -> None:
    """
    Re-derive one dish's last-eaten date from the stored calendar.
    """

    if get_dish(dish_id) is None:
        typer.secho(f"Dish {dish_id} not found", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    result = ConsistencyEngine().recompute_last_eaten(dish_id)
    payload = result.model_dump(mode="json")
    typer.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=pretty))
    if result.warning:
        typer.secho(f"Warning: {result.warning}", fg=typer.colors.YELLOW, err=True)


@app.command()
def resync() -> None:
    """Repair every dish's last-eaten date after an interrupted edit."""

    results = ConsistencyEngine().resync_all()
    for result in results:
        value = result.last_eaten.isoformat() if result.last_eaten else "never"
        typer.echo(f"dish {result.dish_id}: {result.outcome} ({value})")
    typer.echo(f"Updated {len(results)} dish(es).")


@app.command()
def serve() -> None:
    """Run the HTTP API with uvicorn."""

    from mealcal.server.run import main as run_server

    run_server()


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m mealcal`."""
    app(prog_name="mealcal", args=argv)


if __name__ == "__main__":
    main()
