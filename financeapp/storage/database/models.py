"""SQLAlchemy models for financeapp.

Enum-like columns (``cycle``, ``status``, ``role``, ``type``) are stored as
plain strings; the repositories parse them into the domain enums.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ...utils.datetime import utc_now
from .base import Base, UUIDPKMixin


class OrganizationRecord(UUIDPKMixin, Base):
    """Organization (tenant)."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="Personal")
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    memberships: Mapped[list[MembershipRecord]] = relationship(
        back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<OrganizationRecord(id={self.id}, name='{self.name}')>"


class UserAccount(UUIDPKMixin, Base):
    """Minimal identity record used to resolve reminder recipients."""

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(256), index=True)
    display_name: Mapped[str | None] = mapped_column(String(200))

    def __repr__(self) -> str:
        return f"<UserAccount(id={self.id}, email='{self.email}')>"


class MembershipRecord(Base):
    """(user, organization) pair with a role."""

    __tablename__ = "memberships"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), primary_key=True)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), primary_key=True, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="Member")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    organization: Mapped[OrganizationRecord] = relationship(back_populates="memberships")


class CostItemRecord(UUIDPKMixin, Base):
    """Recurring cost item."""

    __tablename__ = "cost_items"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    cycle: Mapped[str] = mapped_column(String(20), nullable=False)
    has_binding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    binding_ends_at: Mapped[date | None] = mapped_column(Date, index=True)
    payment_method: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list[str] | None] = mapped_column(JSON)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)

    def __repr__(self) -> str:
        return f"<CostItemRecord(id={self.id}, name='{self.name}', cycle='{self.cycle}')>"


class InvoiceRecord(UUIDPKMixin, Base):
    """Incoming invoice."""

    __tablename__ = "invoices"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    vendor: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    due_at: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Open", index=True)
    category: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)

    def __repr__(self) -> str:
        return f"<InvoiceRecord(id={self.id}, vendor='{self.vendor}', status='{self.status}')>"


class ReminderLog(Base):
    """Audit row written once per organization per reminder run."""

    __tablename__ = "reminder_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    reminder_type: Mapped[str] = mapped_column(String(50), nullable=False)
    invoices_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bindings_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ReminderLog(id={self.id}, organization_id={self.organization_id}, "
            f"invoices={self.invoices_count}, bindings={self.bindings_count})>"
        )
