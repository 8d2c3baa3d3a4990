"""Read-only status summary of the managed containers."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from homestack_common import Category, ContainerRow, ContainerStatus, StatusReport, SystemCounts

from homestack.errors import DockerError
from homestack.services.registry import StackRegistry

_TITLES = {
    Category.CRYPTO: "Crypto Services",
    Category.MEDIA: "Media Services",
    Category.PROXY: "Proxy Services",
}

UNKNOWN_STATUS = "Unknown"


def _find(containers: list[ContainerStatus], name: str) -> ContainerStatus | None:
    for container in containers:
        if name in container.name:
            return container
    return None


class StatusReporter:
    """Never mutates anything: every value comes from a fresh runtime query.

    A failed query is recorded on the report as ``runtime_error`` instead of
    being read as "nothing is running".
    """

    def __init__(self, registry: StackRegistry, runtime, networks: list[str]) -> None:
        self.registry = registry
        self.runtime = runtime
        self.networks = networks

    def summarize(self) -> StatusReport:
        runtime_error = None
        try:
            running = self.runtime.containers()
        except DockerError as exc:
            runtime_error = str(exc)
            running = []

        rows = []
        for unit in self.registry:
            for name in unit.containers:
                found = _find(running, name)
                if found is not None:
                    status = found.status
                else:
                    status = UNKNOWN_STATUS if runtime_error else "Not running"
                rows.append(
                    ContainerRow(
                        category=unit.category,
                        unit=unit.name,
                        container=name,
                        running=found is not None,
                        status=status,
                    )
                )

        try:
            counts = self.runtime.counts()
        except DockerError as exc:
            runtime_error = runtime_error or str(exc)
            counts = SystemCounts()

        return StatusReport(
            rows=rows,
            networks={name: self._network_exists(name) for name in self.networks},
            counts=counts,
            runtime_error=runtime_error,
        )

    def _network_exists(self, name: str) -> bool | None:
        try:
            return self.runtime.network_exists(name)
        except DockerError:
            return None


def _network_label(exists: bool | None) -> str:
    if exists is None:
        return "[yellow]unknown[/yellow]"
    return "exists" if exists else "removed"


def render(report: StatusReport, console: Console) -> None:
    if not report.runtime_available:
        console.print(f"[yellow]\\[WARNING][/yellow] Could not query Docker: {escape(report.runtime_error)}")

    for category, title in _TITLES.items():
        rows = report.by_category(category)
        if not rows:
            continue
        table = Table(title=title, title_justify="left")
        table.add_column("", width=1)
        table.add_column("Container", style="cyan")
        table.add_column("Status")
        for row in rows:
            if row.running:
                mark, style = "[green]✓[/green]", "green"
            elif row.status == UNKNOWN_STATUS:
                mark, style = "[yellow]?[/yellow]", "yellow"
            else:
                mark, style = "[red]✗[/red]", "red"
            table.add_row(mark, row.container, f"[{style}]{escape(row.status)}[/{style}]")
        console.print(table)

    if report.networks:
        console.print("\n[bold]Networks:[/bold]")
        for name, exists in report.networks.items():
            console.print(f"  • {name}: {_network_label(exists)}")

    console.print("\n[bold]Docker system status:[/bold]")
    if not report.runtime_available:
        console.print("  • Counts unavailable")
        return
    counts = report.counts
    console.print(f"  • Containers: {counts.containers} running")
    console.print(f"  • Images: {counts.images} total")
    console.print(f"  • Volumes: {counts.volumes} total")
    console.print(f"  • Networks: {counts.networks} total")
