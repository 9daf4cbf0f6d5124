from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import ExpenseStatus, RecurrenceType
from periods import Month
from schemas import AreaIn, BudgetIn, CategoryIn, ExpenseIn, RecurrenceIn
from services import AreaService, BudgetService, CategoryService, ExpenseService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def _categories(session):
    area = AreaService(session).create(AreaIn(name="Home"))
    categories = CategoryService(session)
    groceries = categories.create(CategoryIn(name="Groceries", area_id=area.id))
    utilities = categories.create(CategoryIn(name="Utilities", area_id=area.id))
    return area, groceries, utilities


def test_budget_progress_counts_paid_instances_only() -> None:
    session = make_session()
    area, groceries, utilities = _categories(session)
    expenses = ExpenseService(session)
    expenses.create(
        ExpenseIn(
            description="Market",
            value_cents=30_000,
            date=date(2025, 2, 3),
            area_id=area.id,
            category_id=groceries.id,
        )
    )
    expenses.create(
        ExpenseIn(
            description="Market (planned)",
            value_cents=9_000,
            date=date(2025, 2, 20),
            area_id=area.id,
            category_id=groceries.id,
            status=ExpenseStatus.scheduled,
        )
    )
    expenses.create(
        ExpenseIn(
            description="Power",
            value_cents=12_000,
            date=date(2025, 1, 10),
            area_id=area.id,
            category_id=utilities.id,
            recurrence=RecurrenceIn(type=RecurrenceType.installments, installments=3),
        )
    )

    budgets = BudgetService(session)
    budgets.upsert(
        BudgetIn(category_id=groceries.id, year=2025, month=2, amount_cents=25_000)
    )
    budgets.upsert(
        BudgetIn(category_id=utilities.id, year=2025, month=2, amount_cents=20_000)
    )

    rows = budgets.progress_for_month(Month(2025, 2))
    progress = {row.category_name: row for row in rows}
    assert progress["Groceries"].spent_cents == 30_000
    assert progress["Groceries"].remaining_cents == -5_000
    assert progress["Groceries"].percent_used == pytest.approx(120)
    assert progress["Utilities"].spent_cents == 12_000
    assert progress["Utilities"].area_name == "Home"

    summary = budgets.summary_for_month(Month(2025, 2))
    assert summary.total_budgeted_cents == 45_000
    assert summary.total_spent_cents == 42_000
    assert summary.over_budget_count == 1
    assert summary.within_budget_count == 1
    assert summary.total_categories == 2


def test_budget_upsert_replaces_amount() -> None:
    session = make_session()
    _area, groceries, _utilities = _categories(session)
    budgets = BudgetService(session)

    first = budgets.upsert(
        BudgetIn(category_id=groceries.id, year=2025, month=3, amount_cents=10_000)
    )
    second = budgets.upsert(
        BudgetIn(category_id=groceries.id, year=2025, month=3, amount_cents="150,00")
    )

    assert first.id == second.id
    assert second.amount_cents == 15_000
    assert len(budgets.list_for_month(Month(2025, 3))) == 1
    assert budgets.list_for_month(Month(2025, 4)) == []


def test_deleting_category_removes_its_budgets() -> None:
    session = make_session()
    _area, groceries, _utilities = _categories(session)
    budgets = BudgetService(session)
    budgets.upsert(
        BudgetIn(category_id=groceries.id, year=2025, month=3, amount_cents=10_000)
    )

    CategoryService(session).delete(groceries.id)

    assert budgets.list_for_month(Month(2025, 3)) == []
