"""
Database commands.
"""
import typer
from rich.console import Console

from healthsync.core.config import settings
from healthsync.core.database import create_db_and_tables
from healthsync.core.logging_config import _sanitize_data

app = typer.Typer(help="Database commands")
console = Console()


@app.command("init")
def init_database():
    """Run migrations (or create tables) for the configured database."""
    console.print(f"Database: [cyan]{_sanitize_data(settings.effective_database_url)}[/cyan]")
    try:
        create_db_and_tables(force=True)
    except Exception as exc:
        console.print(f"[red]Database initialization failed: {exc}[/red]")
        raise typer.Exit(code=1)
    console.print("[green]✓ Database is up to date[/green]")
