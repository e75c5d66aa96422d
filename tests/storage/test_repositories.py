"""Tests for the SQLAlchemy repositories."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from conftest import TODAY
from financeapp.core.reminders.service import ReminderDispatcher
from financeapp.core.summary.service import SummaryService
from financeapp.domain.enums import BillingCycle, InvoiceStatus, MemberRole, OrganizationType
from financeapp.domain.value_objects import ReminderAuditRecord
from financeapp.exceptions import (
    AuditWriteError,
    DataSourceError,
    IdentityResolutionError,
    InvalidBillingCycleError,
    InvalidEnumValueError,
    RecordNotFoundError,
)
from financeapp.notifications import LogNotifier
from financeapp.storage.database import base
from financeapp.storage.database.models import (
    CostItemRecord,
    InvoiceRecord,
    MembershipRecord,
    OrganizationRecord,
    ReminderLog,
    UserAccount,
)
from financeapp.storage.repositories import (
    CostItemRepository,
    DatabaseObligationSource,
    InvoiceRepository,
    MembershipRepository,
    OrganizationRepository,
    ReminderLogRepository,
    UserDirectory,
)

pytestmark = pytest.mark.integration


def days(n: int) -> date:
    return TODAY + timedelta(days=n)


def add_organization(db, name="Acme GmbH", members=()):
    owner = UserAccount(email=f"owner-{uuid4().hex[:6]}@example.com")
    db.add(owner)
    db.flush()
    organization = OrganizationRecord(name=name, type="Business", owner_id=owner.id)
    db.add(organization)
    db.flush()
    for user in members:
        db.add(user)
        db.flush()
        db.add(MembershipRecord(user_id=user.id, organization_id=organization.id, role="Admin"))
    db.commit()
    return organization


def add_cost_item(db, organization, name, amount="10.00", cycle="Monthly", binding_ends_at=None):
    record = CostItemRecord(
        organization_id=organization.id,
        name=name,
        amount=Decimal(amount),
        cycle=cycle,
        has_binding=binding_ends_at is not None,
        binding_ends_at=binding_ends_at,
        tags=["infra"],
    )
    db.add(record)
    db.commit()
    return record


def add_invoice(db, organization, amount="100.00", due_at=TODAY, status="Open", vendor="Vendor"):
    record = InvoiceRecord(
        organization_id=organization.id,
        vendor=vendor,
        amount=Decimal(amount),
        due_at=due_at,
        status=status,
    )
    db.add(record)
    db.commit()
    return record


class TestCostItemRepository:
    def test_list_maps_rows(self, db_session):
        organization = add_organization(db_session)
        add_cost_item(db_session, organization, "Server", "120.00", "yearly", days(40))
        add_cost_item(db_session, organization, "Backup", "5.50")

        items = CostItemRepository(db_session).list_for_organization(organization.id)

        assert [item.name for item in items] == ["Backup", "Server"]
        server = items[1]
        assert server.cycle is BillingCycle.YEARLY
        assert server.amount == Decimal("120.00")
        assert server.has_binding is True
        assert server.binding_ends_at == days(40)
        assert server.tags == ("infra",)

    def test_scoped_to_organization(self, db_session):
        mine = add_organization(db_session, "Mine")
        other = add_organization(db_session, "Other")
        add_cost_item(db_session, other, "Foreign")

        assert CostItemRepository(db_session).list_for_organization(mine.id) == []

    def test_unknown_cycle_rejected_at_boundary(self, db_session):
        organization = add_organization(db_session)
        add_cost_item(db_session, organization, "Odd", cycle="Weekly")

        with pytest.raises(InvalidBillingCycleError):
            CostItemRepository(db_session).list_for_organization(organization.id)

    def test_find_bindings_ending_on(self, db_session):
        first = add_organization(db_session, "First")
        second = add_organization(db_session, "Second")
        add_cost_item(db_session, first, "Seven", binding_ends_at=days(7))
        add_cost_item(db_session, second, "Thirty", binding_ends_at=days(30))
        add_cost_item(db_session, second, "Eight", binding_ends_at=days(8))
        add_cost_item(db_session, first, "Unbound")

        items = CostItemRepository(db_session).find_bindings_ending_on([days(30), days(7)])

        assert [item.name for item in items] == ["Seven", "Thirty"]

    def test_find_bindings_with_no_dates(self, db_session):
        assert CostItemRepository(db_session).find_bindings_ending_on([]) == []

    def test_driver_error_wrapped(self):
        session = MagicMock()
        session.execute.side_effect = SQLAlchemyError("connection lost")

        with pytest.raises(DataSourceError) as exc_info:
            CostItemRepository(session).list_for_organization(uuid4())

        assert exc_info.value.context["source"] == "cost_items"
        assert isinstance(exc_info.value.original_error, SQLAlchemyError)


class TestInvoiceRepository:
    def test_list_ordered_by_due_date(self, db_session):
        organization = add_organization(db_session)
        add_invoice(db_session, organization, due_at=days(9), vendor="Later")
        add_invoice(db_session, organization, due_at=days(2), vendor="Sooner", status="Paid")

        invoices = InvoiceRepository(db_session).list_for_organization(organization.id)

        assert [invoice.vendor for invoice in invoices] == ["Sooner", "Later"]
        assert invoices[0].status is InvoiceStatus.PAID

    def test_find_open_due_on(self, db_session):
        organization = add_organization(db_session)
        add_invoice(db_session, organization, due_at=days(3), vendor="Due")
        add_invoice(db_session, organization, due_at=days(3), vendor="Paid", status="Paid")
        add_invoice(db_session, organization, due_at=days(4), vendor="Off")

        invoices = InvoiceRepository(db_session).find_open_due_on([days(1), days(3), days(7)])

        assert [invoice.vendor for invoice in invoices] == ["Due"]

    def test_unknown_status_rejected(self, db_session):
        organization = add_organization(db_session)
        add_invoice(db_session, organization, status="Disputed")

        with pytest.raises(InvalidEnumValueError):
            InvoiceRepository(db_session).list_for_organization(organization.id)


class TestMembershipsAndUsers:
    def test_list_memberships(self, db_session):
        member = UserAccount(email="member@example.com")
        organization = add_organization(db_session, members=[member])

        memberships = MembershipRepository(db_session).list_for_organization(organization.id)

        assert len(memberships) == 1
        assert memberships[0].user_id == member.id
        assert memberships[0].role is MemberRole.ADMIN

    def test_resolve_contact(self, db_session):
        user = UserAccount(email="someone@example.com")
        db_session.add(user)
        db_session.commit()
        directory = UserDirectory(db_session)

        assert directory.resolve_contact(user.id) == "someone@example.com"
        assert directory.resolve_contact(uuid4()) is None

    def test_resolve_contact_driver_error(self):
        session = MagicMock()
        session.get.side_effect = SQLAlchemyError("timeout")

        with pytest.raises(IdentityResolutionError):
            UserDirectory(session).resolve_contact(uuid4())


class TestOrganizationRepository:
    def test_get(self, db_session):
        organization = add_organization(db_session, "Acme GmbH")

        found = OrganizationRepository(db_session).get(organization.id)

        assert found.name == "Acme GmbH"
        assert found.type is OrganizationType.BUSINESS

    def test_get_missing(self, db_session):
        with pytest.raises(RecordNotFoundError):
            OrganizationRepository(db_session).get(uuid4())


class TestReminderLogRepository:
    def test_record_and_list(self, db_session):
        organization = add_organization(db_session)
        repository = ReminderLogRepository(db_session)
        sent_at = datetime(2024, 1, 1, 6, 0, tzinfo=UTC)

        repository.record(
            ReminderAuditRecord(
                organization_id=organization.id,
                reminder_type="daily_check",
                invoices_count=2,
                bindings_count=1,
                sent_at=sent_at,
            )
        )

        (record,) = repository.list_for_organization(organization.id)
        assert record.reminder_type == "daily_check"
        assert record.invoices_count == 2
        assert record.bindings_count == 1

    def test_write_failure_rolls_back(self):
        session = MagicMock()
        session.commit.side_effect = SQLAlchemyError("disk full")
        audit_record = ReminderAuditRecord(
            organization_id=uuid4(),
            reminder_type="daily_check",
            invoices_count=0,
            bindings_count=0,
            sent_at=datetime.now(UTC),
        )

        with pytest.raises(AuditWriteError) as exc_info:
            ReminderLogRepository(session).record(audit_record)

        session.rollback.assert_called_once()
        assert exc_info.value.context == {"organization_id": str(audit_record.organization_id)}
        assert isinstance(exc_info.value.original_error, SQLAlchemyError)


class TestDatabaseObligationSource:
    def test_summary_from_database(self, db_session):
        organization = add_organization(db_session)
        add_cost_item(db_session, organization, "Office", "10.00", "Monthly")
        add_cost_item(db_session, organization, "Licence", "120.00", "Yearly", days(10))
        add_invoice(db_session, organization, "100.00", days(5))
        add_invoice(db_session, organization, "200.00", days(5), status="Paid")
        add_invoice(db_session, organization, "150.00", days(45))

        service = SummaryService(DatabaseObligationSource(db_session))
        summary = service.get_month_summary(organization.id, today=TODAY)

        assert summary.total_monthly == Decimal("20.00")
        assert summary.open_invoices == Decimal("250.00")
        assert summary.next_30_days_cash_out == Decimal("100.00")
        assert [b.name for b in summary.upcoming_bindings] == ["Licence"]

    def test_reminder_run_writes_audit_rows(self, db_session):
        alice = UserAccount(email="alice@example.com")
        bob = UserAccount(email="bob@example.com")
        first = add_organization(db_session, "First", members=[alice])
        second = add_organization(db_session, "Second", members=[bob])
        add_invoice(db_session, first, due_at=days(7))
        add_invoice(db_session, first, due_at=days(8))
        add_cost_item(db_session, second, "Lease", binding_ends_at=days(30))

        dispatcher = ReminderDispatcher(
            source=DatabaseObligationSource(db_session),
            directory=UserDirectory(db_session),
            audit_log=ReminderLogRepository(db_session),
            notifier=LogNotifier(),
        )
        result = dispatcher.run(today=TODAY)

        assert result.reminders_sent == 2
        assert result.organizations_processed == 2
        assert result.invoices_checked == 1
        assert result.bindings_checked == 1

        rows = db_session.execute(select(ReminderLog).order_by(ReminderLog.id)).scalars().all()
        assert [(row.organization_id, row.invoices_count, row.bindings_count) for row in rows] == [
            (first.id, 1, 0),
            (second.id, 0, 1),
        ]

    def test_summary_without_initialized_database_is_empty(self, monkeypatch):
        monkeypatch.setattr(base, "SessionLocal", None)

        service = SummaryService(DatabaseObligationSource())

        assert service.get_month_summary(uuid4(), today=TODAY).is_empty
