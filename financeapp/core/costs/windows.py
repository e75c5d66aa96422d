"""Date-windowed selection of obligations.

Two selection modes:

* range mode, ``today <= date <= today + days_ahead`` (both bounds inclusive),
  used by month summaries;
* exact-distance mode, ``date == today + d`` for some ``d`` in a fixed offset
  set, used by reminder runs.

Results are always sorted ascending by the relevant date. ``sorted`` is
stable, so obligations sharing a date keep their input order.

Exact-distance mode has no catch-up: if no run happens on the day an item is
exactly ``d`` days away, the ``d`` bucket is never matched for that item.
"""

from collections.abc import Iterable
from datetime import date, timedelta

from financeapp.domain.value_objects import CostItem, Invoice
from financeapp.utils.datetime import as_date, utc_today

DEFAULT_HORIZON_DAYS = 30
INVOICE_REMINDER_OFFSETS: tuple[int, ...] = (7, 3, 1)
BINDING_REMINDER_OFFSETS: tuple[int, ...] = (30, 7)


def _reference_date(today: date | None) -> date:
    return as_date(today) if today is not None else utc_today()


def _binding_end(item: CostItem) -> date | None:
    if not item.has_binding or item.binding_ends_at is None:
        return None
    return as_date(item.binding_ends_at)


def _open_due_date(invoice: Invoice) -> date | None:
    if not invoice.is_open:
        return None
    return as_date(invoice.due_at)


def target_dates(offsets: Iterable[int], today: date | None = None) -> list[date]:
    """Calendar dates ``today + d`` for each offset, ascending and de-duplicated."""
    reference = _reference_date(today)
    return sorted({reference + timedelta(days=offset) for offset in offsets})


# =============================================================================
# Range mode
# =============================================================================


def bindings_ending_within(
    items: Iterable[CostItem],
    days_ahead: int = DEFAULT_HORIZON_DAYS,
    today: date | None = None,
) -> list[CostItem]:
    """Cost items whose binding ends within the next ``days_ahead`` days."""
    if days_ahead < 0:
        raise ValueError(f"days_ahead must be non-negative, got {days_ahead}")

    reference = _reference_date(today)
    target = reference + timedelta(days=days_ahead)

    selected = []
    for item in items:
        ends_at = _binding_end(item)
        if ends_at is not None and reference <= ends_at <= target:
            selected.append(item)
    return sorted(selected, key=_binding_end)


def invoices_due_within(
    invoices: Iterable[Invoice],
    days_ahead: int = DEFAULT_HORIZON_DAYS,
    today: date | None = None,
) -> list[Invoice]:
    """Open invoices due within the next ``days_ahead`` days."""
    if days_ahead < 0:
        raise ValueError(f"days_ahead must be non-negative, got {days_ahead}")

    reference = _reference_date(today)
    target = reference + timedelta(days=days_ahead)

    selected = []
    for invoice in invoices:
        due_at = _open_due_date(invoice)
        if due_at is not None and reference <= due_at <= target:
            selected.append(invoice)
    return sorted(selected, key=_open_due_date)


# =============================================================================
# Exact-distance mode
# =============================================================================


def bindings_ending_on_offsets(
    items: Iterable[CostItem],
    offsets: Iterable[int] = BINDING_REMINDER_OFFSETS,
    today: date | None = None,
) -> list[CostItem]:
    """Cost items whose binding ends exactly ``d`` days from today for some offset."""
    wanted = set(target_dates(offsets, today))
    selected = [item for item in items if _binding_end(item) in wanted]
    return sorted(selected, key=_binding_end)


def invoices_due_on_offsets(
    invoices: Iterable[Invoice],
    offsets: Iterable[int] = INVOICE_REMINDER_OFFSETS,
    today: date | None = None,
) -> list[Invoice]:
    """Open invoices due exactly ``d`` days from today for some offset."""
    wanted = set(target_dates(offsets, today))
    selected = [invoice for invoice in invoices if _open_due_date(invoice) in wanted]
    return sorted(selected, key=_open_due_date)
