"""
Main CLI application using Typer.

Entry point: python -m healthsync.cli
CLI Name: healthsync-admin
"""
import typer

from healthsync import __version__ as app_version

app = typer.Typer(
    name="healthsync-admin",
    help="Health Sync Admin CLI - operational tools for the integration backend",
)


@app.command()
def version():
    """Show CLI version information."""
    typer.echo(f"Health Sync CLI version {app_version}")


# Register command groups
from healthsync.cli.commands import credentials, db, state  # noqa: E402
app.add_typer(db.app, name="db")
app.add_typer(credentials.app, name="credentials")
app.add_typer(state.app, name="state")
