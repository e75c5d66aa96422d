"""
Pytest configuration and global fixtures.

This module provides shared fixtures used across all tests.
"""

from collections.abc import Generator
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from financeapp.domain.enums import BillingCycle, InvoiceStatus
from financeapp.domain.value_objects import CostItem, Invoice
from financeapp.storage.database.base import Base
from financeapp.storage.database import models  # noqa: F401

TODAY = date(2024, 1, 1)
ORG_A = UUID("11111111-1111-1111-1111-111111111111")
ORG_B = UUID("22222222-2222-2222-2222-222222222222")


def make_cost_item(
    amount: str | Decimal = "10.00",
    cycle: BillingCycle = BillingCycle.MONTHLY,
    organization_id: UUID = ORG_A,
    name: str = "Hosting",
    has_binding: bool = False,
    binding_ends_at: date | None = None,
) -> CostItem:
    """Build a cost item with sensible defaults."""
    return CostItem(
        id=uuid4(),
        organization_id=organization_id,
        name=name,
        amount=Decimal(amount),
        cycle=cycle,
        has_binding=has_binding,
        binding_ends_at=binding_ends_at,
    )


def make_invoice(
    amount: str | Decimal = "100.00",
    due_at: date = TODAY,
    status: InvoiceStatus = InvoiceStatus.OPEN,
    organization_id: UUID = ORG_A,
    vendor: str = "ACME",
) -> Invoice:
    """Build an invoice with sensible defaults."""
    return Invoice(
        id=uuid4(),
        organization_id=organization_id,
        vendor=vendor,
        amount=Decimal(amount),
        due_at=due_at,
        status=status,
    )


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create a database session for testing.

    Each test gets a fresh session with automatic rollback.
    """
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
