"""financeapp - recurring cost and invoice tracking for organizations.

Computes per-organization month summaries and dispatches daily reminders for
invoices nearing their due date and cost bindings nearing their end date.
"""

__version__ = "0.3.0"
__author__ = "FinanceApp Contributors"
