"""Month summary computation for a single organization.

The in-process provider computes the summary from raw cost items and
invoices. A precomputed provider can stand in for it when the store already
exposes an aggregation function; both honour the same contract, including
returning an all-zero summary when the data cannot be read.
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

from financeapp import metrics
from financeapp.core.costs.normalizer import exact_sum, total_monthly
from financeapp.core.costs.windows import (
    DEFAULT_HORIZON_DAYS,
    bindings_ending_within,
    invoices_due_within,
)
from financeapp.core.ports import ObligationSource
from financeapp.domain.value_objects import CostItem, Invoice, MonthSummary, UpcomingBinding
from financeapp.exceptions import DataSourceError
from financeapp.utils.datetime import as_date, utc_today
from financeapp.utils.logging import get_logger

logger = get_logger(__name__)


def calculate_total_open_invoices(invoices: Iterable[Invoice]) -> Decimal:
    """Sum of all open invoice amounts, regardless of due date."""
    return exact_sum(invoice.amount for invoice in invoices if invoice.is_open)


def calculate_next_days_cash_out(
    invoices: Iterable[Invoice],
    days_ahead: int = DEFAULT_HORIZON_DAYS,
    today: date | None = None,
) -> Decimal:
    """Sum of open invoices due within the next ``days_ahead`` days."""
    return exact_sum(invoice.amount for invoice in invoices_due_within(invoices, days_ahead, today))


def upcoming_bindings(
    items: Iterable[CostItem],
    today: date,
    days_ahead: int = DEFAULT_HORIZON_DAYS,
) -> tuple[UpcomingBinding, ...]:
    """Bindings ending within the horizon, nearest first."""
    return tuple(
        UpcomingBinding(
            cost_item_id=item.id,
            name=item.name,
            binding_ends_at=as_date(item.binding_ends_at),
            days_until_end=(as_date(item.binding_ends_at) - today).days,
        )
        for item in bindings_ending_within(items, days_ahead, today)
    )


def build_month_summary(
    cost_items: Iterable[CostItem],
    invoices: Iterable[Invoice],
    today: date,
    days_ahead: int = DEFAULT_HORIZON_DAYS,
) -> MonthSummary:
    """Aggregate one organization's obligations into a summary."""
    cost_items = list(cost_items)
    invoices = list(invoices)
    return MonthSummary(
        total_monthly=total_monthly(cost_items),
        open_invoices=calculate_total_open_invoices(invoices),
        next_30_days_cash_out=calculate_next_days_cash_out(invoices, days_ahead, today),
        upcoming_bindings=upcoming_bindings(cost_items, today, days_ahead),
    )


class SummaryProvider(Protocol):
    """Anything able to produce a month summary for an organization."""

    def get_month_summary(self, organization_id: UUID, today: date | None = None) -> MonthSummary: ...


class SummaryService:
    """Computes month summaries in-process from the organization's raw rows.

    The source is trusted to return only rows of the requested organization.
    """

    provider_name = "in_process"

    def __init__(
        self,
        source: ObligationSource,
        days_ahead: int = DEFAULT_HORIZON_DAYS,
        clock: Callable[[], date] = utc_today,
    ):
        """Initialize service.

        Args:
            source: Reader for cost items and invoices of one organization
            days_ahead: Horizon for cash-out and upcoming bindings
            clock: Returns the reference UTC date when none is passed
        """
        self.source = source
        self.days_ahead = days_ahead
        self.clock = clock

    def get_month_summary(self, organization_id: UUID, today: date | None = None) -> MonthSummary:
        """
        Compute the summary of one organization.

        Returns an all-zero summary when the data source fails. Invariant
        violations such as an unknown billing cycle propagate.
        """
        reference = as_date(today) if today is not None else self.clock()

        try:
            cost_items = self.source.list_cost_items(organization_id)
            invoices = self.source.list_invoices(organization_id)
        except DataSourceError as e:
            logger.error(
                "month_summary_source_unavailable",
                organization_id=str(organization_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            metrics.record_summary(self.provider_name, degraded=True)
            return MonthSummary.empty()

        summary = build_month_summary(cost_items, invoices, reference, self.days_ahead)
        metrics.record_summary(self.provider_name, degraded=False)

        logger.debug(
            "month_summary_computed",
            organization_id=str(organization_id),
            cost_items=len(cost_items),
            invoices=len(invoices),
            upcoming_bindings=len(summary.upcoming_bindings),
        )
        return summary


class PrecomputedSummaryProvider:
    """Reads a summary produced by an external aggregation function.

    ``fetch`` receives the organization id and returns the raw payload with
    ``total_monthly``, ``open_invoices``, ``next_30_days_cash_out`` and
    ``upcoming_bindings``. Any failure to fetch or parse degrades to an empty
    summary, exactly like the in-process path.
    """

    provider_name = "precomputed"

    def __init__(self, fetch: Callable[[UUID], Mapping[str, Any] | None]):
        self.fetch = fetch

    def get_month_summary(self, organization_id: UUID, today: date | None = None) -> MonthSummary:
        # The remote function evaluates its own "today"; the argument is accepted
        # for interface compatibility only.
        try:
            payload = self.fetch(organization_id)
            if payload is None:
                logger.warning("precomputed_summary_empty", organization_id=str(organization_id))
                metrics.record_summary(self.provider_name, degraded=True)
                return MonthSummary.empty()
            summary = MonthSummary.from_payload(dict(payload))
        except Exception as e:
            logger.error(
                "precomputed_summary_failed",
                organization_id=str(organization_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            metrics.record_summary(self.provider_name, degraded=True)
            return MonthSummary.empty()

        metrics.record_summary(self.provider_name, degraded=False)
        return summary
