from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import CardType, ExpenseStatus, InvoiceStatus, RecurrenceType
from schemas import AccountIn, CardIn, ExpenseIn, RecurrenceIn
from services import (
    AccountService,
    CardService,
    ExpenseService,
    InvoiceService,
    NotFoundError,
)


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def _setup(session):
    account = AccountService(session).create(
        AccountIn(name="Checking", balance_cents=500_000)
    )
    card = CardService(session).create(
        CardIn(
            name="Visa",
            type=CardType.credit,
            account_id=account.id,
            credit_limit_cents=300_000,
            due_day=20,
            closing_day=10,
        )
    )
    expenses = ExpenseService(session)
    expenses.create(
        ExpenseIn(
            description="Groceries",
            value_cents=12_000,
            date=date(2025, 3, 4),
            card_id=card.id,
            status=ExpenseStatus.scheduled,
        )
    )
    expenses.create(
        ExpenseIn(
            description="Laptop",
            value_cents=30_000,
            date=date(2025, 2, 15),
            card_id=card.id,
            status=ExpenseStatus.scheduled,
            recurrence=RecurrenceIn(type=RecurrenceType.installments, installments=3),
        )
    )
    return account, card


def test_pay_invoice_marks_paid_and_debits_account() -> None:
    session = make_session()
    account, card = _setup(session)
    invoices = InvoiceService(session, today=date(2025, 6, 1))

    march = invoices.get_invoice(card.id, 3, 2025)
    assert march.status == InvoiceStatus.closed
    assert march.total_cents == 42_000

    paid = invoices.pay_invoice(card.id, 3, 2025, date(2025, 3, 20), account.id)

    assert paid.status == InvoiceStatus.paid
    assert paid.paid_date == date(2025, 3, 20)
    assert paid.paid_from_account_id == account.id
    assert paid.paid_amount_cents == 42_000
    session.refresh(account)
    assert account.balance_cents == 500_000 - 42_000

    april = invoices.get_invoice(card.id, 4, 2025)
    assert april.status == InvoiceStatus.closed


def test_pay_invoice_rejects_open_and_repeated_payment() -> None:
    session = make_session()
    account, card = _setup(session)

    open_service = InvoiceService(session, today=date(2025, 3, 5))
    assert open_service.get_invoice(card.id, 3, 2025).status == InvoiceStatus.open
    with pytest.raises(ValueError, match="Only closed invoices can be paid"):
        open_service.pay_invoice(card.id, 3, 2025, date(2025, 3, 5), account.id)

    later = InvoiceService(session, today=date(2025, 6, 1))
    later.pay_invoice(card.id, 3, 2025, date(2025, 3, 20), account.id)
    with pytest.raises(ValueError, match="Invoice already paid"):
        later.pay_invoice(card.id, 3, 2025, date(2025, 3, 21), account.id)

    session.refresh(account)
    assert account.balance_cents == 500_000 - 42_000


def test_pay_invoice_unknown_invoice_or_account() -> None:
    session = make_session()
    account, card = _setup(session)
    invoices = InvoiceService(session, today=date(2025, 6, 1))

    with pytest.raises(ValueError, match="Invoice not found"):
        invoices.pay_invoice(card.id, 1, 2024, date(2025, 3, 20), account.id)
    with pytest.raises(ValueError, match="Account not found"):
        invoices.pay_invoice(card.id, 3, 2025, date(2025, 3, 20), 999)


def test_paid_invoice_total_follows_later_edits() -> None:
    session = make_session()
    account, card = _setup(session)
    invoices = InvoiceService(session, today=date(2025, 6, 1))
    invoices.pay_invoice(card.id, 3, 2025, date(2025, 3, 20), account.id)

    expenses = ExpenseService(session)
    groceries = next(e for e in expenses.stored() if e.description == "Groceries")
    expenses.update(
        groceries.id,
        ExpenseIn(
            description="Groceries",
            value_cents=15_000,
            date=date(2025, 3, 4),
            card_id=card.id,
            status=ExpenseStatus.scheduled,
        ),
    )

    march = invoices.get_invoice(card.id, 3, 2025)
    assert march.status == InvoiceStatus.paid
    assert march.total_cents == 45_000
    assert march.paid_amount_cents == 42_000
    assert march.drift_cents == 3_000


def test_paid_invoice_survives_expense_removal() -> None:
    session = make_session()
    account, card = _setup(session)
    invoices = InvoiceService(session, today=date(2025, 6, 1))
    invoices.pay_invoice(card.id, 3, 2025, date(2025, 3, 20), account.id)

    expenses = ExpenseService(session)
    for expense in expenses.stored():
        expenses.delete(expense.id)

    march = invoices.get_invoice(card.id, 3, 2025)
    assert march.status == InvoiceStatus.paid
    assert march.total_cents == 0
    assert march.drift_cents == -42_000

    listed = invoices.invoices(card.id)
    assert [(i.month, i.year, i.status) for i in listed] == [
        (3, 2025, InvoiceStatus.paid)
    ]
    assert listed[0].paid_amount_cents == 42_000

    with pytest.raises(NotFoundError, match="Invoice not found"):
        invoices.get_invoice(card.id, 4, 2025)


def test_used_limit_and_billing_month_queries() -> None:
    session = make_session()
    _account, card = _setup(session)
    invoices = InvoiceService(session, today=date(2025, 6, 1))

    assert invoices.used_limit(card.id) == 12_000 + 3 * 30_000
    assert invoices.billing_month(card.id, date(2025, 12, 11)) == (1, 2026)

    limit = CardService(session).limit_summary(card.id)
    assert limit.available_cents == 300_000 - 102_000

    listed = invoices.invoices(card.id)
    assert [(i.month, i.year) for i in listed] == [(3, 2025), (4, 2025), (5, 2025)]
