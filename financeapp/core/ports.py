"""Collaborator contracts consumed by the summary and reminder services.

The SQLAlchemy repositories in ``financeapp.storage.repositories`` implement
these; tests substitute in-memory fakes.
"""

from collections.abc import Iterable
from datetime import date
from typing import Protocol
from uuid import UUID

from financeapp.domain.value_objects import (
    CostItem,
    Invoice,
    Membership,
    NotificationBatch,
    ReminderAuditRecord,
)


class ObligationSource(Protocol):
    """Reads one organization's cost items and invoices.

    Implementations raise ``DataSourceError`` when the store is unreachable.
    """

    def list_cost_items(self, organization_id: UUID) -> list[CostItem]: ...

    def list_invoices(self, organization_id: UUID) -> list[Invoice]: ...


class ReminderSource(Protocol):
    """Tenant-spanning reads used by the reminder run."""

    def find_open_invoices_due_on(self, dates: Iterable[date]) -> list[Invoice]: ...

    def find_bindings_ending_on(self, dates: Iterable[date]) -> list[CostItem]: ...

    def list_memberships(self, organization_id: UUID) -> list[Membership]: ...


class ContactDirectory(Protocol):
    """Resolves a user id to a contact address.

    Returns None when the user has no address; raises
    ``IdentityResolutionError`` when the lookup itself fails.
    """

    def resolve_contact(self, user_id: UUID) -> str | None: ...


class AuditLog(Protocol):
    """Persists reminder audit records, one atomic write per record."""

    def record(self, audit_record: ReminderAuditRecord) -> None: ...


class Notifier(Protocol):
    """Delivers a notification batch; raises ``NotificationDeliveryError`` on failure."""

    def send(self, batch: NotificationBatch) -> None: ...
