"""
Credential record inspection.

Lists which integrations each user has configured. Secret values are never
decrypted or printed; only the names of the secret fields that are set.
"""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import Session

from healthsync.core.database import engine
from healthsync.models.credential import ApiConfiguration
from healthsync.services.credential_store import ENCRYPTED_FIELDS, CredentialStore

app = typer.Typer(help="Credential record commands")
console = Console()


def _stored_secrets(record: ApiConfiguration) -> str:
    present = [name for name in ENCRYPTED_FIELDS if getattr(record, name)]
    return ", ".join(present) or "-"


@app.command("list")
def list_credentials(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only show records for this user id"),
):
    """List stored credential records without their secrets."""
    with Session(engine) as session:
        records = CredentialStore(session).list(user_id=user)

    if not records:
        console.print("[yellow]No credential records found.[/yellow]")
        raise typer.Exit(code=0)

    table = Table(title="Credential Records")
    table.add_column("User", style="cyan", no_wrap=True)
    table.add_column("Service", style="white", no_wrap=True)
    table.add_column("Client ID")
    table.add_column("Stored secrets")
    table.add_column("Expires at")
    table.add_column("Active")

    for record in records:
        table.add_row(
            record.user_id,
            record.service_name,
            record.client_id or "-",
            _stored_secrets(record),
            record.expires_at.isoformat() if record.expires_at else "-",
            "yes" if record.is_active else "no",
        )

    console.print(table)
    console.print(f"{len(records)} record(s)")
