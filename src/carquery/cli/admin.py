"""Admin credential CLI commands."""

import typer
from rich.console import Console

from carquery.services.admin_auth import admin_token_lifetime, create_admin_token, hash_password

console = Console()
app = typer.Typer(help="Admin credential commands")


@app.command("hash-password")
def hash_password_command(
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Admin passphrase"
    ),
):
    """Generate an ADMIN_PASSWORD_HASH value for the environment."""
    console.print("[green]Add this to your .env file:[/green]")
    typer.echo(f"ADMIN_PASSWORD_HASH={hash_password(password)}")
    console.print("[dim]Keep this hash out of version control.[/dim]")


@app.command("token")
def token():
    """Issue an admin bearer token without logging in (for scripts)."""
    lifetime = admin_token_lifetime()
    typer.echo(create_admin_token())
    console.print(f"[dim]Expires in {int(lifetime.total_seconds())} seconds[/dim]")
