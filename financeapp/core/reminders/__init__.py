"""Scheduled reminder dispatch."""

from .service import DAILY_CHECK, OrganizationOutcome, ReminderDispatcher, ReminderPolicy

__all__ = ["DAILY_CHECK", "OrganizationOutcome", "ReminderDispatcher", "ReminderPolicy"]
