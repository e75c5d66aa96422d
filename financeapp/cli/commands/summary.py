"""Month summary commands."""

import json
from datetime import date
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from financeapp.core.summary.service import SummaryService
from financeapp.exceptions import DataSourceError, RecordNotFoundError
from financeapp.storage.database.base import init_db
from financeapp.storage.repositories import DatabaseObligationSource, OrganizationRepository
from financeapp.utils.config import get_settings
from financeapp.utils.datetime import parse_iso_date

app = typer.Typer()
console = Console()


def ensure_db() -> None:
    """Ensure database is initialized."""
    settings = get_settings()
    if settings.database_url is None:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.resolved_database_url)


def _parse_today(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        console.print(f"[red]Invalid date: {value} (expected YYYY-MM-DD)[/red]")
        raise typer.Exit(1)


@app.command("show")
def show_summary(
    organization_id: UUID = typer.Argument(..., help="Organization ID"),
    today: str | None = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD, UTC)"),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
) -> None:
    """
    Show the month summary of an organization.

    Example:
        financeapp summary show 3f2b...-... --today 2024-01-01
    """
    reference = _parse_today(today)
    ensure_db()
    settings = get_settings()

    organization_name = str(organization_id)
    try:
        organization_name = OrganizationRepository().get(organization_id).name
    except RecordNotFoundError:
        console.print(f"[red]Organization {organization_id} not found[/red]")
        raise typer.Exit(1)
    except DataSourceError:
        # Summary still degrades to an empty result below
        pass

    service = SummaryService(DatabaseObligationSource(), days_ahead=settings.summary_horizon_days)
    summary = service.get_month_summary(organization_id, today=reference)

    if as_json:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    console.print(f"\n[bold blue]Month summary - {organization_name}[/bold blue]\n")

    table = Table(title="Totals", show_lines=True)
    table.add_column("Metric", style="cyan", width=28)
    table.add_column("Amount", style="white", justify="right", width=16)
    table.add_row("Monthly recurring costs", f"{summary.total_monthly:,.2f}")
    table.add_row("Open invoices", f"{summary.open_invoices:,.2f}")
    table.add_row(
        f"Cash out next {settings.summary_horizon_days} days",
        f"{summary.next_30_days_cash_out:,.2f}",
    )
    console.print(table)

    if not summary.upcoming_bindings:
        console.print("\n[yellow]No bindings ending soon[/yellow]")
        return

    bindings_table = Table(title="Upcoming binding ends")
    bindings_table.add_column("Cost item", style="cyan")
    bindings_table.add_column("Ends", justify="center")
    bindings_table.add_column("Days left", justify="right")
    for binding in summary.upcoming_bindings:
        bindings_table.add_row(
            binding.name,
            binding.binding_ends_at.isoformat(),
            str(binding.days_until_end),
        )
    console.print(bindings_table)
