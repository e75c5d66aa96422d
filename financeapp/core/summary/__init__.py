"""Per-organization month summary."""

from .service import (
    PrecomputedSummaryProvider,
    SummaryProvider,
    SummaryService,
    build_month_summary,
    calculate_next_days_cash_out,
    calculate_total_open_invoices,
)

__all__ = [
    "PrecomputedSummaryProvider",
    "SummaryProvider",
    "SummaryService",
    "build_month_summary",
    "calculate_next_days_cash_out",
    "calculate_total_open_invoices",
]
