"""Main CLI entry point for financeapp."""

import typer
from rich.console import Console

from financeapp import __version__
from financeapp.utils.config import get_settings
from financeapp.utils.logging import configure_from_settings

from .commands import db, reminders, summary

app = typer.Typer(
    name="financeapp",
    help="Recurring costs, invoices and reminders for organizations",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]financeapp[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """
    financeapp - track recurring costs and invoices per organization.
    """
    settings = get_settings()
    configure_from_settings(settings)

    if settings.metrics_enabled:
        from financeapp.metrics import start_metrics_server

        start_metrics_server(settings.metrics_port)


app.add_typer(db.app, name="db", help="Database management")
app.add_typer(summary.app, name="summary", help="Month summary per organization")
app.add_typer(reminders.app, name="reminders", help="Daily reminder run")


if __name__ == "__main__":
    app()
