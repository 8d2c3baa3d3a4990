"""Single-unit compose commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from homestack.audit import audit
from homestack.config import get_config
from homestack.services import docker
from homestack.services.registry import StackRegistry

app = typer.Typer(no_args_is_help=True)
console = Console()


def _resolve_compose(name: str) -> Path:
    """Resolve a unit name to its compose file."""
    cfg = get_config()
    unit = StackRegistry().get(name)
    compose = cfg.compose_file(unit.definition)
    if not compose.exists():
        console.print(f"[red]{unit.definition} not found at {compose}[/red]")
        raise typer.Exit(1)
    return compose


@app.command(name="list")
def list_units() -> None:
    """List units in start order."""
    table = Table(title="Units (start order)")
    table.add_column("#", justify="right")
    table.add_column("Unit", style="cyan")
    table.add_column("Kind")
    table.add_column("Category")
    table.add_column("Depends on", style="yellow")
    for i, unit in enumerate(StackRegistry(), start=1):
        table.add_row(str(i), unit.name, unit.kind.value, unit.category.value, ", ".join(unit.depends_on))
    console.print(table)


@app.command()
def up(
    name: str = typer.Argument(help="Unit name (e.g. bitcoin, jellyfin)"),
) -> None:
    """Start one unit (docker compose up -d)."""
    cfg = get_config()
    compose = _resolve_compose(name)
    with audit("stack.up", target=name):
        docker.compose_up(compose, cfg.env_file)
        console.print(f"[green]Unit started: {name}[/green]")


@app.command()
def down(
    name: str = typer.Argument(help="Unit name"),
) -> None:
    """Stop one unit (docker compose down)."""
    cfg = get_config()
    compose = _resolve_compose(name)
    with audit("stack.down", target=name):
        docker.compose_down(compose, cfg.env_file)
        console.print(f"[yellow]Unit stopped: {name}[/yellow]")


@app.command()
def logs(
    name: str = typer.Argument(help="Unit name"),
    tail: int = typer.Option(200, help="Number of lines to show"),
) -> None:
    """Show unit logs."""
    compose = _resolve_compose(name)
    docker.compose_logs(compose, tail=tail)


@app.command()
def ps(
    name: str = typer.Argument(help="Unit name"),
) -> None:
    """Show unit container status."""
    cfg = get_config()
    compose = _resolve_compose(name)
    table = Table(title=name)
    table.add_column("Container", style="cyan")
    table.add_column("State")
    table.add_column("Status")
    for container in docker.compose_ps(compose, cfg.env_file):
        table.add_row(container.name, container.state, container.status)
    console.print(table)
