"""Billing cycle normalization.

Converts cost item amounts to a common monthly or yearly basis using
``Decimal`` arithmetic only.
"""

from collections.abc import Iterable
from decimal import Decimal, localcontext

from financeapp.domain.enums import BillingCycle
from financeapp.domain.value_objects import CostItem
from financeapp.exceptions import InvalidBillingCycleError

MONTHS_PER_YEAR = Decimal(12)

# Wide enough that adding normalized terms never rounds, so totals do not
# depend on the order of the items.
SUMMATION_PRECISION = 120


def monthly_amount(item: CostItem) -> Decimal:
    """Monthly cost of a single item."""
    match item.cycle:
        case BillingCycle.MONTHLY:
            return item.amount
        case BillingCycle.YEARLY:
            return item.amount / MONTHS_PER_YEAR
        case _:
            raise InvalidBillingCycleError(item.cycle, context={"cost_item_id": str(item.id)})


def yearly_amount(item: CostItem) -> Decimal:
    """Yearly cost of a single item."""
    match item.cycle:
        case BillingCycle.MONTHLY:
            return item.amount * MONTHS_PER_YEAR
        case BillingCycle.YEARLY:
            return item.amount
        case _:
            raise InvalidBillingCycleError(item.cycle, context={"cost_item_id": str(item.id)})


def exact_sum(amounts: Iterable[Decimal]) -> Decimal:
    """Sum decimals without intermediate rounding."""
    # Terms are computed in the caller's context; only the additions are widened.
    terms = list(amounts)
    total = Decimal(0)
    with localcontext() as ctx:
        ctx.prec = SUMMATION_PRECISION
        for amount in terms:
            total += amount
    return total


def total_monthly(items: Iterable[CostItem]) -> Decimal:
    """Total monthly cost of all items, whatever their cycle."""
    return exact_sum(monthly_amount(item) for item in items)


def total_yearly(items: Iterable[CostItem]) -> Decimal:
    """Total yearly cost of all items, whatever their cycle."""
    return exact_sum(yearly_amount(item) for item in items)
