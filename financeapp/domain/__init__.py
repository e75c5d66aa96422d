"""Domain layer: enums and immutable value objects."""

from .enums import BillingCycle, InvoiceStatus, MemberRole, OrganizationType
from .value_objects import (
    CostItem,
    Invoice,
    Membership,
    MonthSummary,
    NotificationBatch,
    Organization,
    ReminderAuditRecord,
    ReminderRunResult,
    UpcomingBinding,
)

__all__ = [
    "BillingCycle",
    "InvoiceStatus",
    "MemberRole",
    "OrganizationType",
    "CostItem",
    "Invoice",
    "Membership",
    "MonthSummary",
    "NotificationBatch",
    "Organization",
    "ReminderAuditRecord",
    "ReminderRunResult",
    "UpcomingBinding",
]
