"""Registration and ride request CLI commands."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from carquery.database import get_session_context
from carquery.schemas import CngFilter, ListingParams
from carquery.services.csv_export import ExportType, export_csv
from carquery.services.registrations import list_registrations
from carquery.services.ride_requests import list_ride_requests

console = Console()
app = typer.Typer(help="Stored record commands")


@app.command("list")
def list_records(
    kind: ExportType = typer.Argument(ExportType.REGISTRATIONS, help="Record type"),
    search: str = typer.Option("", "--search", "-s", help="Substring to match"),
    cng_filter: CngFilter = typer.Option(CngFilter.ALL, "--filter", "-f", help="CNG filter"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, max=100, help="Rows to show"),
):
    """Show the newest records."""
    params = ListingParams(page=1, limit=limit, search=search, filter=cng_filter)

    async def _list():
        async with get_session_context() as session:
            if kind is ExportType.RIDE_REQUESTS:
                rides, total = await list_ride_requests(session, params)
                table = Table(title=f"Ride requests ({len(rides)} of {total})")
                table.add_column("ID", style="cyan")
                table.add_column("Passenger", style="green")
                table.add_column("Route")
                table.add_column("When")
                table.add_column("CNG", style="magenta")
                for r in rides:
                    table.add_row(
                        r.id,
                        r.passenger_name,
                        f"{r.pickup_location} -> {r.dropoff_location}",
                        f"{r.ride_date} {r.ride_time}",
                        "Yes" if r.prefers_cng else "No",
                    )
            else:
                registrations, total = await list_registrations(session, params)
                table = Table(title=f"Registrations ({len(registrations)} of {total})")
                table.add_column("ID", style="cyan")
                table.add_column("Owner", style="green")
                table.add_column("Car")
                table.add_column("Reg. number")
                table.add_column("CNG", style="magenta")
                table.add_column("Created", style="dim")
                for r in registrations:
                    table.add_row(
                        r.id,
                        r.owner_name,
                        r.car_model,
                        r.reg_number,
                        "Yes" if r.cng_powered else "No",
                        r.created_at.strftime("%Y-%m-%d"),
                    )

            console.print(table)

    asyncio.run(_list())


@app.command("export")
def export(
    kind: ExportType = typer.Argument(ExportType.REGISTRATIONS, help="Record type"),
    output: Path | None = typer.Option(None, "--output", "-o", help="File to write"),
):
    """Export records as CSV."""

    async def _export() -> str:
        async with get_session_context() as session:
            return await export_csv(session, kind)

    content = asyncio.run(_export())
    path = output or Path(kind.filename)
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {path}")
