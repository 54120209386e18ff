"""CLI commands for EduNotes operators.

Commands:
- init-db: Create the database schema
- seed: Insert sample subjects, notes and videos
- create-admin: Provision an account with access and admin rights
- users: List accounts
- grant / revoke: Change an account's access (and optionally admin) flag
- serve: Run the Web API with uvicorn
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from edunotes.config.app_config import load_app_config, require_secret_key
from edunotes.core.accounts import bootstrap_admin, operator_set_flags
from edunotes.core.content import seed_sample_content
from edunotes.core.errors import EduNotesError
from edunotes.db.accounts_repository import get_all_accounts
from edunotes.db.database import init_db

app = typer.Typer(
    name="edunotes",
    help="Operator commands for the EduNotes content service.",
    no_args_is_help=True,
)

console = Console()


def _init_db_from_config(db_path: Path | None = None) -> Path:
    """Initialize the database at db_path or the configured path."""
    path = db_path or Path(load_app_config().database.path)
    init_db(path)
    return path


@app.command(name="init-db")
def init_db_command(
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """Create the database schema (idempotent)."""
    path = _init_db_from_config(db_path)
    console.print(f"[green]✓ Database ready:[/green] {path}")


@app.command()
def seed(
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """Insert sample subjects with their notes and videos."""
    _init_db_from_config(db_path)
    counts = seed_sample_content()

    if counts["subjects"] == 0:
        console.print("[yellow]Sample content already present, nothing added[/yellow]")
        return

    console.print(
        f"[green]✓ Added {counts['subjects']} subjects, "
        f"{counts['notes']} notes, {counts['videos']} videos[/green]"
    )


@app.command(name="create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Email of the administrator"),
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """Provision an account and give it access and admin rights."""
    _init_db_from_config(db_path)
    try:
        account = bootstrap_admin(email)
    except EduNotesError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Administrator ready:[/green] {account.email} ({account.id})")


@app.command(name="users")
def list_users(
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """List all accounts, newest first."""
    _init_db_from_config(db_path)
    accounts = get_all_accounts()

    if not accounts:
        console.print("[yellow]No accounts yet[/yellow]")
        console.print("  Accounts are created on first sign-in, or with: edunotes create-admin <email>")
        return

    table = Table(title=f"Accounts ({len(accounts)})")
    table.add_column("Email", style="bold")
    table.add_column("Status")
    table.add_column("Role")
    table.add_column("Joined", style="dim")

    for account in accounts:
        status = "[green]Active[/green]" if account.has_access else "[yellow]Pending[/yellow]"
        role = "[blue]Admin[/blue]" if account.is_admin else "User"
        table.add_row(account.email, status, role, account.created_at[:10])

    console.print(table)


def _set_flags_or_exit(email: str, **flags: bool) -> None:
    try:
        account = operator_set_flags(email, **flags)
    except EduNotesError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    role = "admin" if account.is_admin else "user"
    access = "active" if account.has_access else "pending"
    console.print(f"[green]✓ {account.email}:[/green] {access}, {role}")


@app.command()
def grant(
    email: str = typer.Argument(..., help="Email of an existing account"),
    admin: bool = typer.Option(False, "--admin", help="Also grant admin rights"),
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """Approve an account (has_access=true)."""
    _init_db_from_config(db_path)
    if admin:
        _set_flags_or_exit(email, has_access=True, is_admin=True)
    else:
        _set_flags_or_exit(email, has_access=True)


@app.command()
def revoke(
    email: str = typer.Argument(..., help="Email of an existing account"),
    admin_only: bool = typer.Option(
        False, "--admin-only", help="Remove admin rights but keep access"
    ),
    db_path: Path = typer.Option(None, "--db", help="Database file (default: from config)"),
) -> None:
    """Revoke access (or only admin rights). Existing sessions are invalidated."""
    _init_db_from_config(db_path)
    if admin_only:
        _set_flags_or_exit(email, is_admin=False)
    else:
        _set_flags_or_exit(email, has_access=False, is_admin=False)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    try:
        require_secret_key(load_app_config().auth)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]EduNotes API[/bold] on http://{host}:{port}")
    uvicorn.run(
        "edunotes.web.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
