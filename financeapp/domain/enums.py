"""Domain enums.

Storage keeps these as plain strings; ``parse`` turns a stored value into a
member and rejects anything unknown instead of carrying the string along.
"""

from enum import Enum
from typing import Self

from financeapp.exceptions import InvalidBillingCycleError, InvalidEnumValueError


class _ParsableEnum(str, Enum):
    """String enum parsed case-insensitively from storage values."""

    @classmethod
    def parse(cls, value: "str | Self") -> Self:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        raise cls._invalid(value)

    @classmethod
    def _invalid(cls, value: object) -> InvalidEnumValueError:
        return InvalidEnumValueError(
            f"Unknown {cls.__name__} value: {value!r}",
            enum_name=cls.__name__,
            value=value,
        )

    def __str__(self) -> str:
        return self.value


class BillingCycle(_ParsableEnum):
    """Recurrence basis of a cost item."""

    MONTHLY = "Monthly"
    YEARLY = "Yearly"

    @classmethod
    def _invalid(cls, value: object) -> InvalidEnumValueError:
        return InvalidBillingCycleError(value)


class InvoiceStatus(_ParsableEnum):
    """Invoice payment status.

    Lifecycle:
        OPEN → PAID
    """

    OPEN = "Open"
    PAID = "Paid"


class MemberRole(_ParsableEnum):
    """Role of a user inside an organization (not used for reminder routing)."""

    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"


class OrganizationType(_ParsableEnum):
    """Kind of organization."""

    PERSONAL = "Personal"
    BUSINESS = "Business"
