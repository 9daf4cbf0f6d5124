from datetime import date

from invoices import (
    CardTerms,
    InvoiceOverride,
    aggregate,
    billing_month,
    invoice_expenses,
    invoice_status,
    limit_summary,
    used_limit,
)
from models import CardType, EntryType, ExpenseStatus, InvoiceStatus
from recurrence import ExpenseInstance, Installments, expand_all

CARD = CardTerms(
    id=1, type=CardType.credit, credit_limit_cents=100_000, due_day=20, closing_day=10
)
DEBIT = CardTerms(
    id=2, type=CardType.debit, credit_limit_cents=0, due_day=10, closing_day=1
)


def _instance(
    id: str,
    on: date,
    value_cents: int = 1_000,
    card_id: int = 1,
    status: ExpenseStatus = ExpenseStatus.scheduled,
    recurrence=None,
) -> ExpenseInstance:
    return ExpenseInstance(
        id=id,
        description=f"Expense {id}",
        entry_type=EntryType.variable,
        value_cents=value_cents,
        date=on,
        status=status,
        card_id=card_id,
        recurrence=recurrence,
    )


def test_billing_month_closing_day_belongs_to_current_month():
    assert billing_month(CARD, date(2025, 3, 10)) == (3, 2025)
    assert billing_month(CARD, date(2025, 3, 1)) == (3, 2025)


def test_billing_month_day_after_closing_rolls_forward():
    assert billing_month(CARD, date(2025, 3, 11)) == (4, 2025)
    assert billing_month(CARD, date(2025, 12, 11)) == (1, 2026)


def test_invoice_status_open_closed_paid():
    today = date(2025, 3, 5)
    assert invoice_status(CARD, 3, 2025, None, today) == InvoiceStatus.open
    assert invoice_status(CARD, 2, 2025, None, today) == InvoiceStatus.closed
    # on the closing day itself the statement is finalized
    assert (
        invoice_status(CARD, 3, 2025, None, date(2025, 3, 10)) == InvoiceStatus.closed
    )
    paid = InvoiceOverride(card_id=1, month=3, year=2025)
    assert invoice_status(CARD, 3, 2025, paid, today) == InvoiceStatus.paid


def test_used_limit_ignores_paid_expenses():
    instances = [
        _instance("1", date(2025, 1, 5), 100),
        _instance("2", date(2025, 2, 5), 250),
        _instance("3", date(2025, 1, 6), 50, status=ExpenseStatus.paid),
        _instance("4", date(2025, 1, 6), 999, card_id=9),
    ]
    assert used_limit(1, instances) == 350

    summary = limit_summary(CARD, instances)
    assert summary.used_cents == 350
    assert summary.available_cents == 100_000 - 350
    assert not summary.over_limit


def test_limit_summary_reports_overspend_without_clamping():
    card = CardTerms(
        id=1, type=CardType.credit, credit_limit_cents=500, due_day=1, closing_day=1
    )
    summary = limit_summary(card, [_instance("1", date(2025, 1, 1), 800)])
    assert summary.available_cents == -300
    assert summary.over_limit


def test_aggregate_groups_by_billing_month():
    instances = [
        _instance("1", date(2025, 3, 10), 1_000),
        _instance("2", date(2025, 3, 11), 2_000),
        _instance("3", date(2025, 4, 2), 500),
    ]
    invoices = aggregate(instances, [CARD], today=date(2025, 6, 1))

    assert set(invoices) == {(1, 3, 2025), (1, 4, 2025)}
    assert invoices[(1, 3, 2025)].total_cents == 1_000
    assert invoices[(1, 4, 2025)].total_cents == 2_500
    assert invoices[(1, 4, 2025)].expense_ids == ["2", "3"]
    assert invoices[(1, 4, 2025)].status == InvoiceStatus.closed


def test_aggregate_is_idempotent():
    parent = _instance(
        "5",
        date(2025, 1, 15),
        3_000,
        recurrence=Installments(start=date(2025, 1, 15), count=6),
    )
    instances = expand_all([parent, _instance("6", date(2025, 2, 28), 700)])
    first = aggregate(instances, [CARD], {}, today=date(2025, 3, 1))
    second = aggregate(instances, [CARD], {}, today=date(2025, 3, 1))
    assert first == second
    assert len(first) == 6


def test_aggregate_excludes_missing_and_debit_cards():
    instances = [
        _instance("1", date(2025, 1, 5), card_id=42),
        _instance("2", date(2025, 1, 5), card_id=2),
        _instance("3", date(2025, 1, 5), card_id=None),
    ]
    assert aggregate(instances, [CARD, DEBIT], today=date(2025, 6, 1)) == {}


def test_override_merges_payment_fields_but_total_is_recomputed():
    override = InvoiceOverride(
        card_id=1,
        month=3,
        year=2025,
        paid_date=date(2025, 3, 20),
        paid_from_account_id=8,
        paid_amount_cents=1_000,
    )
    instances = [
        _instance("1", date(2025, 3, 1), 1_000),
        _instance("2", date(2025, 3, 2), 400),
    ]
    overrides = {override.key: override}
    invoices = aggregate(instances, [CARD], overrides, today=date(2025, 6, 1))
    invoice = invoices[(1, 3, 2025)]

    assert invoice.status == InvoiceStatus.paid
    assert invoice.paid_date == date(2025, 3, 20)
    assert invoice.paid_from_account_id == 8
    assert invoice.total_cents == 1_400
    assert invoice.drift_cents == 400


def test_invoice_expenses_filters_card_and_cycle():
    instances = [
        _instance("1", date(2025, 3, 10)),
        _instance("2", date(2025, 3, 11)),
        _instance("3", date(2025, 2, 20), card_id=2),
    ]
    selected = invoice_expenses(CARD, 3, 2025, instances)
    assert [item.id for item in selected] == ["1"]


def test_paid_override_without_expenses_is_still_listed():
    paid = InvoiceOverride(
        card_id=1,
        month=3,
        year=2025,
        paid_date=date(2025, 3, 20),
        paid_from_account_id=8,
        paid_amount_cents=1_000,
    )
    orphan = InvoiceOverride(card_id=42, month=3, year=2025)
    debit = InvoiceOverride(card_id=2, month=3, year=2025)
    overrides = {o.key: o for o in (paid, orphan, debit)}

    invoices = aggregate([], [CARD, DEBIT], overrides, today=date(2025, 6, 1))

    assert set(invoices) == {(1, 3, 2025)}
    invoice = invoices[(1, 3, 2025)]
    assert invoice.status == InvoiceStatus.paid
    assert invoice.total_cents == 0
    assert invoice.expense_ids == []
    assert invoice.drift_cents == -1_000
