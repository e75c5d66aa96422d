"""Reminder run commands."""

import json

import typer
from rich.console import Console
from rich.table import Table

from financeapp.core.reminders.service import ReminderDispatcher, ReminderPolicy
from financeapp.notifications import build_notifier
from financeapp.storage.database.base import init_db
from financeapp.storage.repositories import (
    DatabaseObligationSource,
    ReminderLogRepository,
    UserDirectory,
)
from financeapp.utils.config import get_settings
from financeapp.utils.datetime import parse_iso_date
from financeapp.utils.logging import get_logger

app = typer.Typer()
console = Console()
logger = get_logger(__name__)


def ensure_db() -> None:
    """Ensure database is initialized."""
    settings = get_settings()
    if settings.database_url is None:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.resolved_database_url)


def build_dispatcher() -> ReminderDispatcher:
    """Wire the dispatcher to the database and the configured notifier."""
    settings = get_settings()
    return ReminderDispatcher(
        source=DatabaseObligationSource(),
        directory=UserDirectory(),
        audit_log=ReminderLogRepository(),
        notifier=build_notifier(settings),
        policy=ReminderPolicy.from_settings(settings),
        max_workers=settings.reminder_max_workers,
    )


@app.command("run")
def run_reminders(
    today: str | None = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD, UTC)"),
    as_json: bool = typer.Option(False, "--json", help="Print the run result as JSON"),
) -> None:
    """
    Run the daily reminder check once.

    Intended to be triggered by an external scheduler (cron, CI schedule).
    Running it twice on the same day sends the same reminders twice.
    """
    reference = None
    if today is not None:
        try:
            reference = parse_iso_date(today)
        except ValueError:
            console.print(f"[red]Invalid date: {today} (expected YYYY-MM-DD)[/red]")
            raise typer.Exit(1)

    ensure_db()

    try:
        result = build_dispatcher().run(today=reference)
    except Exception as e:
        logger.exception("reminder_run_aborted", error=str(e))
        if as_json:
            typer.echo(json.dumps({"success": False, "error": str(e)}, indent=2))
        else:
            console.print(f"[red]Reminder run failed: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    table = Table(title="Reminder run", show_lines=True)
    table.add_column("Metric", style="cyan", width=26)
    table.add_column("Value", justify="right", width=28)
    table.add_row("Reminders sent", str(result.reminders_sent))
    table.add_row("Organizations processed", str(result.organizations_processed))
    table.add_row("Invoices checked", str(result.invoices_checked))
    table.add_row("Bindings checked", str(result.bindings_checked))
    table.add_row("Timestamp", result.timestamp.isoformat(timespec="seconds"))
    console.print(table)

    if result.organizations_failed:
        console.print(
            f"[yellow]{len(result.organizations_failed)} organization(s) failed; see logs[/yellow]"
        )
