"""Domain value objects for cost and invoice tracking.

Value Objects:
- Immutable (frozen dataclasses)
- Built by the storage boundary after enum parsing
- Read, never mutated, by the aggregation and reminder engine
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from financeapp.domain.enums import BillingCycle, InvoiceStatus, MemberRole, OrganizationType
from financeapp.utils.datetime import parse_iso_date

ZERO = Decimal("0")


@dataclass(frozen=True)
class CostItem:
    """Recurring cost of an organization, optionally under a binding period."""

    id: UUID
    organization_id: UUID
    name: str
    amount: Decimal
    cycle: BillingCycle
    currency: str = "EUR"
    category: str | None = None
    has_binding: bool = False
    binding_ends_at: date | None = None
    payment_method: str | None = None
    notes: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "organization_id": str(self.organization_id),
            "name": self.name,
            "category": self.category,
            "amount": str(self.amount),
            "currency": self.currency,
            "cycle": self.cycle.value,
            "has_binding": self.has_binding,
            "binding_ends_at": self.binding_ends_at.isoformat() if self.binding_ends_at else None,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Invoice:
    """Incoming invoice an organization has to pay."""

    id: UUID
    organization_id: UUID
    vendor: str
    amount: Decimal
    due_at: date
    status: InvoiceStatus
    currency: str = "EUR"
    category: str | None = None
    notes: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status is InvoiceStatus.OPEN

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "organization_id": str(self.organization_id),
            "vendor": self.vendor,
            "amount": str(self.amount),
            "currency": self.currency,
            "due_at": self.due_at.isoformat(),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Organization:
    """Tenant and aggregation scope."""

    id: UUID
    name: str
    type: OrganizationType
    owner_id: UUID


@dataclass(frozen=True)
class Membership:
    """User membership in an organization."""

    user_id: UUID
    organization_id: UUID
    role: MemberRole = MemberRole.MEMBER


@dataclass(frozen=True)
class UpcomingBinding:
    """A cost item binding that ends inside the summary horizon."""

    cost_item_id: UUID
    name: str
    binding_ends_at: date
    days_until_end: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "cost_item_id": str(self.cost_item_id),
            "name": self.name,
            "binding_ends_at": self.binding_ends_at.isoformat(),
            "days_until_end": self.days_until_end,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "UpcomingBinding":
        return cls(
            cost_item_id=UUID(str(payload["cost_item_id"])),
            name=str(payload["name"]),
            binding_ends_at=parse_iso_date(str(payload["binding_ends_at"])),
            days_until_end=int(payload["days_until_end"]),
        )


@dataclass(frozen=True)
class MonthSummary:
    """Point-in-time financial summary of one organization.

    Sums across different currencies are nominal; no conversion happens.
    """

    total_monthly: Decimal = ZERO
    open_invoices: Decimal = ZERO
    next_30_days_cash_out: Decimal = ZERO
    upcoming_bindings: tuple[UpcomingBinding, ...] = ()

    @classmethod
    def empty(cls) -> "MonthSummary":
        """All-zero summary returned when the data source is unavailable."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.total_monthly == ZERO
            and self.open_invoices == ZERO
            and self.next_30_days_cash_out == ZERO
            and not self.upcoming_bindings
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_monthly": str(self.total_monthly),
            "open_invoices": str(self.open_invoices),
            "next_30_days_cash_out": str(self.next_30_days_cash_out),
            "upcoming_bindings": [binding.to_dict() for binding in self.upcoming_bindings],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MonthSummary":
        """Parse a precomputed aggregation payload (snake_case keys)."""
        bindings = payload.get("upcoming_bindings") or []
        if not isinstance(bindings, list):
            raise ValueError("upcoming_bindings must be a list")
        return cls(
            total_monthly=Decimal(str(payload["total_monthly"])),
            open_invoices=Decimal(str(payload["open_invoices"])),
            next_30_days_cash_out=Decimal(str(payload["next_30_days_cash_out"])),
            upcoming_bindings=tuple(UpcomingBinding.from_payload(b) for b in bindings),
        )


@dataclass(frozen=True)
class NotificationBatch:
    """All matching obligations of one organization addressed to one member."""

    recipient: str
    subject: str
    organization_id: UUID
    invoices: tuple[Invoice, ...] = ()
    bindings: tuple[CostItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "to": self.recipient,
            "subject": self.subject,
            "organization_id": str(self.organization_id),
            "invoices": [invoice.to_dict() for invoice in self.invoices],
            "bindings": [item.to_dict() for item in self.bindings],
        }


@dataclass(frozen=True)
class ReminderAuditRecord:
    """One row per organization per reminder run. Counts only, no item detail."""

    organization_id: UUID
    reminder_type: str
    invoices_count: int
    bindings_count: int
    sent_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "organization_id": str(self.organization_id),
            "reminder_type": self.reminder_type,
            "invoices_count": self.invoices_count,
            "bindings_count": self.bindings_count,
            "sent_at": self.sent_at.isoformat(),
        }


@dataclass
class ReminderRunResult:
    """Outcome of a single reminder run."""

    success: bool
    reminders_sent: int
    organizations_processed: int
    invoices_checked: int
    bindings_checked: int
    timestamp: datetime
    organizations_failed: list[UUID] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "reminders_sent": self.reminders_sent,
            "organizations_processed": self.organizations_processed,
            "invoices_checked": self.invoices_checked,
            "bindings_checked": self.bindings_checked,
            "timestamp": self.timestamp.isoformat(),
            "organizations_failed": [str(org_id) for org_id in self.organizations_failed],
        }
