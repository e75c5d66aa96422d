"""Standardized exception hierarchy for financeapp.

All exceptions carry a human-readable message plus structured context so
they can be logged as key/value pairs without string parsing.

Usage:
    from financeapp.exceptions import DataSourceError

    try:
        items = repository.list_cost_items(org_id)
    except DataSourceError as e:
        logger.error("cost_items_unavailable", error=str(e), context=e.context)
"""

from __future__ import annotations

from typing import Any


class FinanceAppError(Exception):
    """Base exception for all financeapp errors.

    Attributes:
        message: Human-readable error message
        context: Additional context for debugging (dict)
        original_error: Original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Format exception with context for logging."""
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({ctx_str})"
        if self.original_error:
            base = f"{base} [caused by: {type(self.original_error).__name__}]"
        return base

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


# =============================================================================
# Invariant Violations
# =============================================================================


class InvariantViolationError(FinanceAppError):
    """Raised when data reaching the core breaks a contract it relies on.

    These indicate a bug upstream (corrupt rows, a caller bypassing the
    storage boundary) and are never swallowed by the aggregation engine.
    """


class InvalidEnumValueError(InvariantViolationError):
    """Raised when a storage value does not map to a known enum member."""

    def __init__(
        self,
        message: str,
        *,
        enum_name: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if enum_name:
            context["enum"] = enum_name
        if value is not None:
            context["value"] = str(value)[:100]
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class InvalidBillingCycleError(InvalidEnumValueError):
    """Raised when a cost item carries a billing cycle outside Monthly/Yearly."""

    def __init__(self, value: Any, **kwargs: Any) -> None:
        super().__init__(
            f"Unknown billing cycle: {value}",
            enum_name="BillingCycle",
            value=value,
            **kwargs,
        )


class ConfigurationError(FinanceAppError):
    """Raised when application configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        expected: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if setting:
            context["setting"] = setting
        if expected:
            context["expected"] = expected
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# =============================================================================
# Database & Persistence Errors
# =============================================================================


class DatabaseError(FinanceAppError):
    """Base class for database-related errors."""


class DataSourceError(DatabaseError):
    """Raised when obligations or memberships cannot be read from storage."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        organization_id: Any = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if source:
            context["source"] = source
        if organization_id is not None:
            context["organization_id"] = str(organization_id)
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class AuditWriteError(DatabaseError):
    """Raised when a reminder audit record cannot be persisted."""


class RecordNotFoundError(DatabaseError):
    """Raised when a database record is not found."""

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        entity_id: Any = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if entity_type:
            context["entity_type"] = entity_type
        if entity_id:
            context["entity_id"] = str(entity_id)
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# =============================================================================
# External Integration Errors
# =============================================================================


class IntegrationError(FinanceAppError):
    """Base class for external collaborator errors."""


class IdentityResolutionError(IntegrationError):
    """Raised when a member's contact address cannot be resolved."""

    def __init__(self, message: str, *, user_id: Any = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if user_id is not None:
            context["user_id"] = str(user_id)
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class NotificationDeliveryError(IntegrationError):
    """Raised when a notification batch cannot be delivered to its recipient."""

    def __init__(self, message: str, *, recipient: str | None = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if recipient:
            context["recipient"] = recipient
        kwargs["context"] = context
        super().__init__(message, **kwargs)


# =============================================================================
# Utility Functions
# =============================================================================


def wrap_exception(
    error: Exception,
    message: str,
    *,
    exception_class: type[FinanceAppError] = FinanceAppError,
    **context: Any,
) -> FinanceAppError:
    """Wrap an external exception in the financeapp hierarchy.

    Example:
        try:
            session.commit()
        except SQLAlchemyError as e:
            raise wrap_exception(e, "Audit write failed", exception_class=AuditWriteError)
    """
    return exception_class(
        message,
        context=context,
        original_error=error,
    )


__all__ = [
    "FinanceAppError",
    "InvariantViolationError",
    "InvalidEnumValueError",
    "InvalidBillingCycleError",
    "ConfigurationError",
    "DatabaseError",
    "DataSourceError",
    "AuditWriteError",
    "RecordNotFoundError",
    "IntegrationError",
    "IdentityResolutionError",
    "NotificationDeliveryError",
    "wrap_exception",
]
