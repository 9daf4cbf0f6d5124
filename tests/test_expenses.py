from datetime import date

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import ExpenseStatus, RecurrenceFrequency, RecurrenceType
from periods import Month
from schemas import AreaIn, CategoryIn, ExpenseIn, RecurrenceIn
from services import AreaService, CategoryService, ExpenseService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def test_expanded_view_filters_month_and_sorts() -> None:
    session = make_session()
    service = ExpenseService(session)
    service.create(
        ExpenseIn(description="Coffee", value_cents=500, date=date(2025, 2, 20))
    )
    service.create(
        ExpenseIn(
            description="Rent",
            value_cents=150_000,
            date=date(2025, 1, 5),
            status=ExpenseStatus.scheduled,
            recurrence=RecurrenceIn(
                type=RecurrenceType.date_range,
                start_date=date(2025, 1, 5),
                end_date=date(2025, 6, 5),
            ),
        )
    )

    assert len(service.expanded()) == 1 + 6

    february = service.expanded(Month(2025, 2))
    assert [item.description for item in february] == ["Rent", "Coffee"]
    assert february[0].installment_number == 2
    assert february[0].total_installments == 6


def test_recurrence_columns_follow_variant() -> None:
    session = make_session()
    service = ExpenseService(session)
    expense = service.create(
        ExpenseIn(
            description="Streaming",
            value_cents="39,90",
            date=date(2025, 1, 12),
            recurrence=RecurrenceIn(
                type=RecurrenceType.frequency,
                frequency=RecurrenceFrequency.monthly,
                installments=4,
            ),
        )
    )
    assert expense.value_cents == 3_990
    assert expense.recurrence_frequency == RecurrenceFrequency.monthly
    assert expense.recurrence_installments is None
    assert expense.recurrence_end_date is None
    assert len(service.expanded()) == 12


def test_paid_expense_defaults_payment_date() -> None:
    session = make_session()
    expense = ExpenseService(session).create(
        ExpenseIn(description="Lunch", value_cents=2_500, date=date(2025, 4, 2))
    )
    assert expense.status == ExpenseStatus.paid
    assert expense.payment_date == date(2025, 4, 2)


def test_get_instance_and_set_status_through_instance_id() -> None:
    session = make_session()
    service = ExpenseService(session)
    expense = service.create(
        ExpenseIn(
            description="Sofa",
            value_cents=40_000,
            date=date(2025, 3, 1),
            status=ExpenseStatus.scheduled,
            recurrence=RecurrenceIn(type=RecurrenceType.installments, installments=4),
        )
    )

    third = service.get_instance(f"{expense.id}_3")
    assert third.date == date(2025, 5, 1)
    assert third.parent_id == str(expense.id)

    with pytest.raises(ValueError, match="Expense not found"):
        service.get_instance(f"{expense.id}_9")

    updated = service.set_status(
        f"{expense.id}_3", ExpenseStatus.paid, date(2025, 5, 2)
    )
    assert updated.status == ExpenseStatus.paid
    assert updated.payment_date == date(2025, 5, 2)
    assert all(i.status == ExpenseStatus.paid for i in service.expanded())

    service.set_status(str(expense.id), ExpenseStatus.scheduled)
    assert service.get(expense.id).payment_date is None


def test_category_must_belong_to_area() -> None:
    session = make_session()
    home = AreaService(session).create(AreaIn(name="Home"))
    leisure = AreaService(session).create(AreaIn(name="Leisure"))
    cinema = CategoryService(session).create(
        CategoryIn(name="Cinema", area_id=leisure.id)
    )

    with pytest.raises(ValueError, match="Category does not belong to area"):
        ExpenseService(session).create(
            ExpenseIn(
                description="Movie",
                value_cents=3_000,
                date=date(2025, 1, 1),
                area_id=home.id,
                category_id=cinema.id,
            )
        )
    with pytest.raises(ValueError, match="Card not found"):
        ExpenseService(session).create(
            ExpenseIn(
                description="Movie", value_cents=3_000, date=date(2025, 1, 1), card_id=5
            )
        )


def test_deleting_area_clears_expense_classification() -> None:
    session = make_session()
    area = AreaService(session).create(AreaIn(name="Transport"))
    fuel = CategoryService(session).create(CategoryIn(name="Fuel", area_id=area.id))
    expense = ExpenseService(session).create(
        ExpenseIn(
            description="Gas station",
            value_cents=20_000,
            date=date(2025, 1, 8),
            area_id=area.id,
            category_id=fuel.id,
        )
    )

    AreaService(session).delete(area.id)

    refreshed = ExpenseService(session).get(expense.id)
    assert refreshed.area_id is None
    assert refreshed.category_id is None
    assert CategoryService(session).list_all() == []


def test_expense_validation() -> None:
    with pytest.raises(ValidationError):
        ExpenseIn(
            description="Bad range",
            value_cents=100,
            date=date(2025, 5, 1),
            recurrence=RecurrenceIn(
                type=RecurrenceType.date_range, end_date=date(2025, 4, 1)
            ),
        )
    with pytest.raises(ValidationError):
        RecurrenceIn(type=RecurrenceType.installments, installments=361)
    with pytest.raises(ValidationError):
        RecurrenceIn(type=RecurrenceType.frequency)
    with pytest.raises(ValidationError):
        ExpenseIn(description="Old", value_cents=100, date=date(1999, 12, 31))
