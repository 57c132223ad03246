"""
Planning CLI Commands
=====================

CLI commands that run the planner: discover-and-plan, local file
planning, and refinement of a saved plan.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from dataset_planner.core.enums import ActivityStatus
from dataset_planner.core.errors import PlannerError
from dataset_planner.core.schema import AgentActivity, DiscoveredLink
from dataset_planner.planning.activity import ActivityObserver
from dataset_planner.planning.planner import Planner, PlannerContext

console = Console()
activity_console = Console(stderr=True)

_STATUS_COLORS = {
    ActivityStatus.WORKING: "blue",
    ActivityStatus.SUCCESS: "green",
    ActivityStatus.ERROR: "red",
}


def print_activity(activity: AgentActivity) -> None:
    """Observer that prints each activity event as one line."""
    color = _STATUS_COLORS.get(activity.status, "white")
    line = f"[{color}]{activity.agent.value:>10}[/{color}] {activity.message}"
    details = activity.details
    if details is not None and details.duration is not None:
        line += f" [dim]({details.duration}ms)[/dim]"
    activity_console.print(line)


def build_planner(
    provider: str | None = None,
    validate: bool = True,
    observer: ActivityObserver | None = None,
) -> Planner:
    """Create a Planner from the default configuration and environment."""
    context = PlannerContext.from_config(provider=provider, observer=observer, validate=validate)
    return Planner(context)


def _dump_links(links: list[DiscoveredLink]) -> str:
    return json.dumps(
        [link.model_dump(mode="json", by_alias=True, exclude_none=True) for link in links],
        indent=2,
    )


def _display_plan(links: list[DiscoveredLink]) -> None:
    """Display plan entries in a formatted table."""
    table = Table(title="Ingestion Plan")
    table.add_column("#", justify="right")
    table.add_column("URL", style="bold", overflow="fold")
    table.add_column("Method")
    table.add_column("Validation")
    table.add_column("Justification", overflow="fold")

    for index, link in enumerate(links, start=1):
        validation = link.validation_status.value
        color = {"valid": "green", "failed": "red"}.get(validation, "yellow")
        table.add_row(
            str(index),
            link.url,
            link.access_method.value,
            f"[{color}]{validation}[/{color}]",
            link.justification,
        )

    console.print(table)


def _display_strategy(link: DiscoveredLink) -> None:
    rprint(f"\n[bold]{link.url}[/bold] ({link.access_method.value})")
    if link.justification:
        rprint(f"  {link.justification}")
    strategy = link.strategy
    if strategy.snippet:
        console.print(Markdown(strategy.snippet))
    if strategy.config:
        rprint("\n[bold]Config:[/bold]")
        console.print(strategy.config, markup=False)
    if strategy.data_schema:
        rprint("\n[bold]Schema:[/bold]")
        console.print(strategy.data_schema, markup=False)


def plan_command(
    description: str = typer.Argument(..., help="Description of the dataset you need"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="LLM provider to use"),
    max_urls: Optional[int] = typer.Option(None, "--max", "-m", min=1, help="Maximum URLs to process"),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip crawl validation"),
) -> None:
    """
    Discover data sources for a description and plan their ingestion.

    Examples:
        dataset-planner plan "daily temperature readings for Berlin"
        dataset-planner plan "EU electricity prices" --max 3 --json > plan.json
    """
    try:
        planner = build_planner(provider, validate=not no_validate, observer=print_activity)
        links = asyncio.run(planner.create_full_ingestion_plan(description, max_urls))
    except (PlannerError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(_dump_links(links))
        return

    if not links:
        rprint("[yellow]No ingestion plan could be created[/yellow]")
        return

    _display_plan(links)
    for link in links:
        _display_strategy(link)


def file_command(
    path: Path = typer.Argument(..., help="Local data file to plan for"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="LLM provider to use"),
    as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
) -> None:
    """
    Generate an ingestion plan for a local file.

    Examples:
        dataset-planner file ./measurements.csv
    """
    try:
        planner = build_planner(provider, validate=False, observer=print_activity)
        link = asyncio.run(planner.create_plan_for_local_file(path))
    except FileNotFoundError:
        rprint(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    except (PlannerError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(_dump_links([link]))
        return

    _display_strategy(link)


def _load_plan(plan_path: Path) -> list[DiscoveredLink]:
    with open(plan_path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return [DiscoveredLink.model_validate(item) for item in data]


def refine_command(
    plan_path: Path = typer.Argument(..., help="Plan JSON file written by --json"),
    index: int = typer.Argument(..., help="1-based entry number in the plan"),
    instructions: str = typer.Argument(..., help="Cleaning instructions"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="LLM provider to use"),
    save: bool = typer.Option(False, "--save", "-s", help="Write the refined entry back to the plan file"),
) -> None:
    """
    Generate cleaning steps for one entry of a saved plan.

    Examples:
        dataset-planner refine plan.json 1 "drop rows with missing dates"
    """
    try:
        links = _load_plan(plan_path)
    except FileNotFoundError:
        rprint(f"[red]Error:[/red] Plan file not found: {plan_path}")
        raise typer.Exit(1)
    except (json.JSONDecodeError, ValidationError) as e:
        rprint(f"[red]Error:[/red] Invalid plan file: {e}")
        raise typer.Exit(1)

    if not 1 <= index <= len(links):
        rprint(f"[red]Error:[/red] Entry {index} out of range (plan has {len(links)} entries)")
        raise typer.Exit(1)

    try:
        planner = build_planner(provider, validate=False, observer=print_activity)
        refined = asyncio.run(planner.refine(links[index - 1], instructions))
    except (PlannerError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if refined.cleaning_strategy:
        rprint(f"\n[bold]Cleaning steps for {refined.url}:[/bold]")
        console.print(Markdown(refined.cleaning_strategy))
    else:
        rprint("[yellow]No instructions given; entry unchanged[/yellow]")

    if save:
        links[index - 1] = refined
        plan_path.write_text(_dump_links(links))
        rprint(f"[green]Plan updated:[/green] {plan_path}")
