"""Cost normalization and obligation window selection."""

from .normalizer import monthly_amount, total_monthly, total_yearly, yearly_amount
from .windows import (
    BINDING_REMINDER_OFFSETS,
    DEFAULT_HORIZON_DAYS,
    INVOICE_REMINDER_OFFSETS,
    bindings_ending_on_offsets,
    bindings_ending_within,
    invoices_due_on_offsets,
    invoices_due_within,
    target_dates,
)

__all__ = [
    "monthly_amount",
    "yearly_amount",
    "total_monthly",
    "total_yearly",
    "BINDING_REMINDER_OFFSETS",
    "DEFAULT_HORIZON_DAYS",
    "INVOICE_REMINDER_OFFSETS",
    "bindings_ending_on_offsets",
    "bindings_ending_within",
    "invoices_due_on_offsets",
    "invoices_due_within",
    "target_dates",
]
