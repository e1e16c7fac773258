"""
OAuth state token inspection, for debugging failed callbacks.
"""
from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from healthsync.core.exceptions import InvalidStateError
from healthsync.core.signing import decode_state, verify_state

app = typer.Typer(help="OAuth state commands")
console = Console()


@app.command("inspect")
def inspect_state(
    token: str = typer.Argument(..., help="State value from a provider callback URL"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Also verify signature and age for this provider"
    ),
):
    """Decode a state token and optionally verify it."""
    try:
        payload = decode_state(token)
    except InvalidStateError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="OAuth State")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key in ("user_id", "provider", "nonce", "timestamp"):
        table.add_row(key, str(payload.get(key, "-")))
    timestamp = payload.get("timestamp")
    if isinstance(timestamp, int) and not isinstance(timestamp, bool):
        issued = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        table.add_row("issued_at", issued.isoformat())
    table.add_row("signed", "yes" if payload.get("signature") else "no")
    console.print(table)

    if provider is None:
        return

    try:
        verify_state(token, provider)
    except InvalidStateError as exc:
        console.print(f"[red]✗ Invalid: {exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Valid state for {provider}[/green]")
