"""Database management commands."""

import typer
from rich.console import Console

from financeapp.storage.database.base import init_db
from financeapp.utils.config import get_settings

app = typer.Typer()
console = Console()


@app.command("init")
def init_database() -> None:
    """Create the database schema if it does not exist yet."""
    settings = get_settings()
    if settings.database_url is None:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.resolved_database_url)
    console.print(f"[green]Database ready:[/green] {settings.resolved_database_url}")
