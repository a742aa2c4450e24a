"""CLI commands using Typer."""

import typer

from carquery.cli.admin import app as admin_app
from carquery.cli.db import app as db_app
from carquery.cli.records import app as records_app

app = typer.Typer(name="carquery", help="CarQuery CLI")

# Register sub-apps
app.add_typer(db_app, name="db")
app.add_typer(admin_app, name="admin")
app.add_typer(records_app, name="records")


@app.command()
def version():
    """Show version information."""
    from carquery import __version__

    typer.echo(f"CarQuery v{__version__}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
):
    """Run the API server."""
    import uvicorn

    from carquery.logging import get_uvicorn_log_config, setup_logging

    setup_logging()
    uvicorn.run(
        "carquery.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=get_uvicorn_log_config(),
    )


if __name__ == "__main__":
    app()
