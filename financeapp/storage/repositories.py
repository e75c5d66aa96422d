"""Repository implementations for financeapp entities.

Repositories translate rows into domain value objects, parsing the string
enum columns on the way out, and turn driver errors into ``DataSourceError``
(reads) or ``AuditWriteError`` (writes). Enum parse failures are contract
violations and are raised unchanged.

Each repository either works on a caller-owned session or opens a fresh
``db_session()`` per call, which keeps calls from worker threads independent.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from financeapp.domain.enums import BillingCycle, InvoiceStatus, MemberRole, OrganizationType
from financeapp.domain.value_objects import (
    CostItem,
    Invoice,
    Membership,
    Organization,
    ReminderAuditRecord,
)
from financeapp.exceptions import (
    AuditWriteError,
    DataSourceError,
    IdentityResolutionError,
    RecordNotFoundError,
    wrap_exception,
)
from financeapp.storage.database.models import (
    CostItemRecord,
    InvoiceRecord,
    MembershipRecord,
    OrganizationRecord,
    ReminderLog,
    UserAccount,
)
from financeapp.storage.session import session_scope
from financeapp.utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Row mappers
# =============================================================================


def to_cost_item(record: CostItemRecord) -> CostItem:
    return CostItem(
        id=record.id,
        organization_id=record.organization_id,
        name=record.name,
        category=record.category,
        amount=record.amount,
        currency=record.currency,
        cycle=BillingCycle.parse(record.cycle),
        has_binding=bool(record.has_binding),
        binding_ends_at=record.binding_ends_at,
        payment_method=record.payment_method,
        notes=record.notes,
        tags=tuple(record.tags or ()),
    )


def to_invoice(record: InvoiceRecord) -> Invoice:
    return Invoice(
        id=record.id,
        organization_id=record.organization_id,
        vendor=record.vendor,
        amount=record.amount,
        currency=record.currency,
        due_at=record.due_at,
        status=InvoiceStatus.parse(record.status),
        category=record.category,
        notes=record.notes,
    )


def to_membership(record: MembershipRecord) -> Membership:
    return Membership(
        user_id=record.user_id,
        organization_id=record.organization_id,
        role=MemberRole.parse(record.role),
    )


def to_organization(record: OrganizationRecord) -> Organization:
    return Organization(
        id=record.id,
        name=record.name,
        type=OrganizationType.parse(record.type),
        owner_id=record.owner_id,
    )


# =============================================================================
# Repositories
# =============================================================================


class CostItemRepository:
    """Reads cost items."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def list_for_organization(self, organization_id: UUID) -> list[CostItem]:
        """All cost items of an organization, ordered by name."""
        stmt = (
            select(CostItemRecord)
            .where(CostItemRecord.organization_id == organization_id)
            .order_by(CostItemRecord.name)
        )
        try:
            with session_scope(self.session) as db:
                records = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read cost items",
                source="cost_items",
                organization_id=organization_id,
                original_error=e,
            ) from e
        return [to_cost_item(record) for record in records]

    def find_bindings_ending_on(self, dates: Iterable[date]) -> list[CostItem]:
        """Cost items of any organization with a binding ending on one of ``dates``."""
        wanted = list(dates)
        if not wanted:
            return []
        stmt = (
            select(CostItemRecord)
            .where(CostItemRecord.has_binding.is_(True))
            .where(CostItemRecord.binding_ends_at.in_(wanted))
            .order_by(CostItemRecord.binding_ends_at)
        )
        try:
            with session_scope(self.session) as db:
                records = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read cost item bindings", source="cost_items", original_error=e
            ) from e
        return [to_cost_item(record) for record in records]


class InvoiceRepository:
    """Reads invoices."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def list_for_organization(self, organization_id: UUID) -> list[Invoice]:
        """All invoices of an organization, ordered by due date."""
        stmt = (
            select(InvoiceRecord)
            .where(InvoiceRecord.organization_id == organization_id)
            .order_by(InvoiceRecord.due_at)
        )
        try:
            with session_scope(self.session) as db:
                records = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read invoices",
                source="invoices",
                organization_id=organization_id,
                original_error=e,
            ) from e
        return [to_invoice(record) for record in records]

    def find_open_due_on(self, dates: Iterable[date]) -> list[Invoice]:
        """Open invoices of any organization due on one of ``dates``."""
        wanted = list(dates)
        if not wanted:
            return []
        stmt = (
            select(InvoiceRecord)
            .where(InvoiceRecord.status == InvoiceStatus.OPEN.value)
            .where(InvoiceRecord.due_at.in_(wanted))
            .order_by(InvoiceRecord.due_at)
        )
        try:
            with session_scope(self.session) as db:
                records = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read due invoices", source="invoices", original_error=e
            ) from e
        return [to_invoice(record) for record in records]


class MembershipRepository:
    """Reads organization memberships."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def list_for_organization(self, organization_id: UUID) -> list[Membership]:
        stmt = select(MembershipRecord).where(MembershipRecord.organization_id == organization_id)
        try:
            with session_scope(self.session) as db:
                records = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read memberships",
                source="memberships",
                organization_id=organization_id,
                original_error=e,
            ) from e
        return [to_membership(record) for record in records]


class OrganizationRepository:
    """Reads organizations."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def get(self, organization_id: UUID) -> Organization:
        """Find organization by ID.

        Raises:
            RecordNotFoundError: If no organization has this ID
        """
        try:
            with session_scope(self.session) as db:
                record = db.get(OrganizationRecord, organization_id)
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read organization",
                source="organizations",
                organization_id=organization_id,
                original_error=e,
            ) from e
        if record is None:
            raise RecordNotFoundError(
                f"Organization {organization_id} not found",
                entity_type="Organization",
                entity_id=organization_id,
            )
        return to_organization(record)


class UserDirectory:
    """Resolves user ids to e-mail addresses from the ``users`` table."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def resolve_contact(self, user_id: UUID) -> str | None:
        try:
            with session_scope(self.session) as db:
                record = db.get(UserAccount, user_id)
        except SQLAlchemyError as e:
            raise IdentityResolutionError(
                "Failed to look up user", user_id=user_id, original_error=e
            ) from e
        if record is None:
            logger.debug("user_not_found", user_id=str(user_id))
            return None
        return record.email or None


class ReminderLogRepository:
    """Writes reminder audit records."""

    def __init__(self, session: Session | None = None):
        self.session = session

    def record(self, audit_record: ReminderAuditRecord) -> None:
        """Persist one audit record in its own transaction."""
        row = ReminderLog(
            organization_id=audit_record.organization_id,
            reminder_type=audit_record.reminder_type,
            invoices_count=audit_record.invoices_count,
            bindings_count=audit_record.bindings_count,
            sent_at=audit_record.sent_at,
        )
        try:
            with session_scope(self.session) as db:
                try:
                    db.add(row)
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            raise wrap_exception(
                e,
                "Failed to write reminder audit record",
                exception_class=AuditWriteError,
                organization_id=str(audit_record.organization_id),
            ) from e

    def list_for_organization(self, organization_id: UUID) -> list[ReminderAuditRecord]:
        """Audit history of an organization, oldest first."""
        stmt = (
            select(ReminderLog)
            .where(ReminderLog.organization_id == organization_id)
            .order_by(ReminderLog.sent_at, ReminderLog.id)
        )
        try:
            with session_scope(self.session) as db:
                rows = list(db.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise DataSourceError(
                "Failed to read reminder logs",
                source="reminder_logs",
                organization_id=organization_id,
                original_error=e,
            ) from e
        return [
            ReminderAuditRecord(
                organization_id=row.organization_id,
                reminder_type=row.reminder_type,
                invoices_count=row.invoices_count,
                bindings_count=row.bindings_count,
                sent_at=row.sent_at,
            )
            for row in rows
        ]


class DatabaseObligationSource:
    """Adapts the repositories to the summary and reminder source contracts."""

    def __init__(self, session: Session | None = None):
        self.cost_items = CostItemRepository(session)
        self.invoices = InvoiceRepository(session)
        self.memberships = MembershipRepository(session)

    # ObligationSource
    def list_cost_items(self, organization_id: UUID) -> list[CostItem]:
        return self.cost_items.list_for_organization(organization_id)

    def list_invoices(self, organization_id: UUID) -> list[Invoice]:
        return self.invoices.list_for_organization(organization_id)

    # ReminderSource
    def find_open_invoices_due_on(self, dates: Iterable[date]) -> list[Invoice]:
        return self.invoices.find_open_due_on(dates)

    def find_bindings_ending_on(self, dates: Iterable[date]) -> list[CostItem]:
        return self.cost_items.find_bindings_ending_on(dates)

    def list_memberships(self, organization_id: UUID) -> list[Membership]:
        return self.memberships.list_for_organization(organization_id)
