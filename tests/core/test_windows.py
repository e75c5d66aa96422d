"""Tests for date-windowed obligation selection."""

from datetime import UTC, date, datetime, timedelta

import pytest

from conftest import TODAY, make_cost_item, make_invoice
from financeapp.core.costs.windows import (
    bindings_ending_on_offsets,
    bindings_ending_within,
    invoices_due_on_offsets,
    invoices_due_within,
    target_dates,
)
from financeapp.domain.enums import InvoiceStatus

pytestmark = pytest.mark.unit


def days(n: int) -> date:
    return TODAY + timedelta(days=n)


class TestTargetDates:
    def test_sorted_and_deduplicated(self):
        assert target_dates([7, 3, 1, 3], TODAY) == [days(1), days(3), days(7)]

    def test_datetime_reference_truncated(self):
        reference = datetime(2024, 1, 1, 23, 59, tzinfo=UTC)

        assert target_dates([0], reference) == [TODAY]


class TestBindingsEndingWithin:
    def test_horizon_thirty_days(self):
        near = make_cost_item(name="near", has_binding=True, binding_ends_at=date(2024, 1, 11))
        far = make_cost_item(name="far", has_binding=True, binding_ends_at=date(2024, 2, 20))

        assert bindings_ending_within([near, far], 30, TODAY) == [near]

    def test_without_binding_never_selected(self):
        item = make_cost_item(has_binding=False, binding_ends_at=days(5))

        assert bindings_ending_within([item], 30, TODAY) == []
        assert bindings_ending_within([item], 365, TODAY) == []

    def test_missing_end_date_ignored(self):
        item = make_cost_item(has_binding=True, binding_ends_at=None)

        assert bindings_ending_within([item], 30, TODAY) == []

    def test_bounds_inclusive(self):
        today_item = make_cost_item(name="today", has_binding=True, binding_ends_at=TODAY)
        last_day = make_cost_item(name="last", has_binding=True, binding_ends_at=days(30))
        past = make_cost_item(name="past", has_binding=True, binding_ends_at=days(-1))
        beyond = make_cost_item(name="beyond", has_binding=True, binding_ends_at=days(31))

        result = bindings_ending_within([last_day, past, beyond, today_item], 30, TODAY)

        assert result == [today_item, last_day]

    def test_sorted_ascending_and_stable(self):
        a = make_cost_item(name="a", has_binding=True, binding_ends_at=days(10))
        b = make_cost_item(name="b", has_binding=True, binding_ends_at=days(2))
        c = make_cost_item(name="c", has_binding=True, binding_ends_at=days(10))
        d = make_cost_item(name="d", has_binding=True, binding_ends_at=days(2))

        result = bindings_ending_within([a, b, c, d], 30, TODAY)

        assert [item.name for item in result] == ["b", "d", "a", "c"]

    def test_negative_horizon_rejected(self):
        with pytest.raises(ValueError):
            bindings_ending_within([], -1, TODAY)


class TestInvoicesDueWithin:
    def test_only_open_invoices_in_range(self):
        due = make_invoice("100", days(5))
        paid = make_invoice("200", days(5), status=InvoiceStatus.PAID)
        late = make_invoice("300", days(40))
        overdue = make_invoice("400", days(-3))

        assert invoices_due_within([due, paid, late, overdue], 30, TODAY) == [due]

    def test_zero_horizon_selects_today_only(self):
        today_invoice = make_invoice(due_at=TODAY)
        tomorrow = make_invoice(due_at=days(1))

        assert invoices_due_within([tomorrow, today_invoice], 0, TODAY) == [today_invoice]

    def test_negative_horizon_rejected(self):
        with pytest.raises(ValueError):
            invoices_due_within([], -5, TODAY)


class TestExactDistance:
    def test_invoice_seven_days_included_eight_excluded(self):
        seven = make_invoice(due_at=days(7))
        eight = make_invoice(due_at=days(8))

        assert invoices_due_on_offsets([seven, eight], (7, 3, 1), TODAY) == [seven]

    def test_every_offset_matches(self):
        invoices = [make_invoice(due_at=days(d)) for d in (1, 2, 3, 4, 5, 6, 7)]

        result = invoices_due_on_offsets(invoices, (7, 3, 1), TODAY)

        assert [invoice.due_at for invoice in result] == [days(1), days(3), days(7)]

    def test_paid_invoice_excluded(self):
        paid = make_invoice(due_at=days(3), status=InvoiceStatus.PAID)

        assert invoices_due_on_offsets([paid], (7, 3, 1), TODAY) == []

    def test_binding_offsets(self):
        thirty = make_cost_item(name="thirty", has_binding=True, binding_ends_at=days(30))
        seven = make_cost_item(name="seven", has_binding=True, binding_ends_at=days(7))
        twenty = make_cost_item(name="twenty", has_binding=True, binding_ends_at=days(20))
        unbound = make_cost_item(name="unbound", has_binding=False, binding_ends_at=days(7))

        result = bindings_ending_on_offsets([thirty, seven, twenty, unbound], (30, 7), TODAY)

        assert result == [seven, thirty]

    def test_default_offsets(self):
        item = make_cost_item(has_binding=True, binding_ends_at=days(30))
        invoice = make_invoice(due_at=days(1))

        assert bindings_ending_on_offsets([item], today=TODAY) == [item]
        assert invoices_due_on_offsets([invoice], today=TODAY) == [invoice]
