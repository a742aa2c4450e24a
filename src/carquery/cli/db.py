"""Database management CLI commands."""

import asyncio

import typer
from rich.console import Console

from carquery.config import settings
from carquery.database import close_db, drop_db, init_db

console = Console()
app = typer.Typer(help="Database management commands")


@app.command("init")
def init():
    """Create any missing tables."""

    async def _init():
        try:
            await init_db()
        finally:
            await close_db()

    console.print(f"[dim]Initializing {settings.database_url}...[/dim]")
    asyncio.run(_init())
    console.print("[green]Database ready![/green]")


@app.command("reset")
def reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Drop all tables and recreate them.

    WARNING: This will delete all registrations and ride requests!
    """
    if not force:
        console.print("[bold red]WARNING:[/bold red] This will delete ALL data in the database!")
        if not typer.confirm("Are you sure you want to continue?"):
            console.print("[dim]Cancelled[/dim]")
            raise typer.Exit(0)

    async def _reset():
        try:
            await drop_db()
            await init_db()
        finally:
            await close_db()

    console.print("[dim]Dropping and recreating tables...[/dim]")
    asyncio.run(_reset())
    console.print("[green]Database reset complete![/green]")
