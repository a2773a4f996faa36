"""Rich terminal status view of published ticks."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from wanderer.simulation.events import TickRecord


class StatusRenderer:
    """Tick listener that prints a table of agent positions every N ticks.

    Works from the published TickRecord only, never from the live registry.
    """

    def __init__(self, every: int = 10, max_rows: int = 20, console: Console | None = None):
        self.every = max(1, every)
        self.max_rows = max_rows
        self.console = console or Console()

    def __call__(self, record: TickRecord) -> None:
        if record.tick % self.every != 0:
            return
        self.console.print(self.render(record))

    def render(self, record: TickRecord) -> Table:
        """Build the status table for one tick."""
        table = Table(
            title=f"Tick {record.tick}",
            caption=(
                f"{len(record.positions)} agents | {len(record.moved)} moved | "
                f"{len(record.arrived)} arrived | {len(record.stranded)} stranded"
            ),
        )
        table.add_column("Agent", style="bold cyan")
        table.add_column("Lat", justify="right")
        table.add_column("Lon", justify="right")
        table.add_column("Status")

        moved = set(record.moved)
        arrived = set(record.arrived)
        stranded = set(record.stranded)
        for position in record.positions[: self.max_rows]:
            if position.agent_id in stranded:
                status = "[red]stranded[/red]"
            elif position.agent_id in arrived:
                status = "[yellow]arrived[/yellow]"
            elif position.agent_id in moved:
                status = "[green]walking[/green]"
            else:
                status = "[grey50]paused[/grey50]"
            table.add_row(position.agent_id, f"{position.lat:.6f}", f"{position.lon:.6f}", status)

        hidden = len(record.positions) - self.max_rows
        if hidden > 0:
            table.add_row(f"... {hidden} more", "", "", "")
        return table
