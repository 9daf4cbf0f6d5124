from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, TypeVar

from rapidfuzz import fuzz, process, utils
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from invoices import (
    CardTerms,
    InvoiceKey,
    InvoiceOverride,
    InvoiceSummary,
    LimitSummary,
    aggregate,
    billing_month,
    invoice_expenses,
    limit_summary,
    used_limit,
)
from models import (
    Account,
    Area,
    Budget,
    Card,
    CardType,
    Category,
    Expense,
    ExpenseStatus,
    Income,
    Invoice,
    InvoiceStatus,
    RecurrenceType,
)
from periods import Month
from recurrence import ExpenseInstance, expand, expand_all, local_today, parse_instance_id
from schemas import (
    AccountIn,
    AreaIn,
    BudgetIn,
    CardIn,
    CategoryIn,
    ExpenseIn,
    IncomeIn,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class NotFoundError(ValueError):
    """Raised when a record is missing or owned by another user."""


def get_current_user_id() -> int:
    return 1


def _owned(
    session: Session, model: type[ModelT], obj_id: Optional[int], user_id: int, label: str
) -> ModelT:
    obj = session.get(model, obj_id) if obj_id is not None else None
    if not obj or obj.user_id != user_id:
        raise NotFoundError(f"{label} not found")
    return obj


class AccountService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Account]:
        stmt = (
            select(Account)
            .where(Account.user_id == self.user_id)
            .order_by(Account.name, Account.id)
        )
        return self.session.scalars(stmt).all()

    def get(self, account_id: int) -> Account:
        return _owned(self.session, Account, account_id, self.user_id, "Account")

    def create(self, data: AccountIn) -> Account:
        account = Account(
            user_id=self.user_id,
            name=data.name.strip(),
            balance_cents=data.balance_cents,
            color=data.color,
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def update(self, account_id: int, data: AccountIn) -> Account:
        account = self.get(account_id)
        account.name = data.name.strip()
        account.balance_cents = data.balance_cents
        account.color = data.color
        self.session.commit()
        self.session.refresh(account)
        return account

    def delete(self, account_id: int) -> None:
        account = self.get(account_id)
        for model in (Card, Income, Expense):
            self.session.execute(
                update(model)
                .where(model.user_id == self.user_id, model.account_id == account.id)
                .values(account_id=None)
            )
        self.session.execute(
            update(Invoice)
            .where(
                Invoice.user_id == self.user_id,
                Invoice.paid_from_account_id == account.id,
            )
            .values(paid_from_account_id=None)
        )
        self.session.delete(account)
        self.session.commit()


class CardService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Card]:
        stmt = (
            select(Card).where(Card.user_id == self.user_id).order_by(Card.name, Card.id)
        )
        return self.session.scalars(stmt).all()

    def get(self, card_id: int) -> Card:
        return _owned(self.session, Card, card_id, self.user_id, "Card")

    def _apply(self, card: Card, data: CardIn) -> None:
        if data.account_id is not None:
            _owned(self.session, Account, data.account_id, self.user_id, "Account")
        card.name = data.name.strip()
        card.type = data.type
        card.last_digits = data.last_digits
        card.color = data.color
        card.account_id = data.account_id
        # the limit only means something for credit cards
        card.credit_limit_cents = (
            data.credit_limit_cents if data.type == CardType.credit else 0
        )
        card.due_day = data.due_day
        card.closing_day = data.closing_day

    def create(self, data: CardIn) -> Card:
        card = Card(user_id=self.user_id)
        self._apply(card, data)
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return card

    def update(self, card_id: int, data: CardIn) -> Card:
        card = self.get(card_id)
        self._apply(card, data)
        self.session.commit()
        self.session.refresh(card)
        return card

    def delete(self, card_id: int) -> None:
        card = self.get(card_id)
        self.session.execute(
            update(Expense)
            .where(Expense.user_id == self.user_id, Expense.card_id == card.id)
            .values(card_id=None)
        )
        self.session.execute(
            delete(Invoice).where(
                Invoice.user_id == self.user_id, Invoice.card_id == card.id
            )
        )
        self.session.delete(card)
        self.session.commit()

    def limit_summary(self, card_id: int) -> LimitSummary:
        card = self.get(card_id)
        instances = ExpenseService(self.session, self.user_id).expanded()
        return limit_summary(CardTerms.from_model(card), instances)


class AreaService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self) -> list[Area]:
        stmt = select(Area).where(Area.user_id == self.user_id).order_by(Area.name)
        return self.session.scalars(stmt).all()

    def create(self, data: AreaIn) -> Area:
        existing = self.session.scalar(
            select(Area).where(
                Area.user_id == self.user_id,
                func.lower(Area.name) == data.name.strip().lower(),
            )
        )
        if existing:
            raise ValueError("Area with this name already exists")
        area = Area(user_id=self.user_id, name=data.name.strip(), color=data.color)
        self.session.add(area)
        self.session.commit()
        self.session.refresh(area)
        return area

    def delete(self, area_id: int) -> None:
        area = _owned(self.session, Area, area_id, self.user_id, "Area")
        category_ids = [c.id for c in area.categories]
        self.session.execute(
            update(Expense)
            .where(Expense.user_id == self.user_id, Expense.area_id == area.id)
            .values(area_id=None, category_id=None)
        )
        if category_ids:
            self.session.execute(
                delete(Budget).where(
                    Budget.user_id == self.user_id,
                    Budget.category_id.in_(category_ids),
                )
            )
        for category in list(area.categories):
            self.session.delete(category)
        self.session.delete(area)
        self.session.commit()


class CategoryService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_all(self, area_id: Optional[int] = None) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.user_id == self.user_id)
            .order_by(Category.area_id, Category.name)
        )
        if area_id is not None:
            stmt = stmt.where(Category.area_id == area_id)
        return self.session.scalars(stmt).all()

    def create(self, data: CategoryIn) -> Category:
        _owned(self.session, Area, data.area_id, self.user_id, "Area")
        existing = self.session.scalar(
            select(Category).where(
                Category.user_id == self.user_id,
                Category.area_id == data.area_id,
                func.lower(Category.name) == data.name.strip().lower(),
            )
        )
        if existing:
            raise ValueError("Category with this name already exists")
        category = Category(
            user_id=self.user_id, name=data.name.strip(), area_id=data.area_id
        )
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def delete(self, category_id: int) -> None:
        category = _owned(self.session, Category, category_id, self.user_id, "Category")
        self.session.execute(
            update(Expense)
            .where(Expense.user_id == self.user_id, Expense.category_id == category.id)
            .values(category_id=None)
        )
        self.session.execute(
            delete(Budget).where(
                Budget.user_id == self.user_id, Budget.category_id == category.id
            )
        )
        self.session.delete(category)
        self.session.commit()


class IncomeService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def get(self, income_id: int) -> Income:
        return _owned(self.session, Income, income_id, self.user_id, "Income")

    def list_all(self) -> list[Income]:
        stmt = (
            select(Income)
            .where(Income.user_id == self.user_id)
            .order_by(Income.date, Income.id)
        )
        return self.session.scalars(stmt).all()

    def list_for_month(self, month: Month) -> list[Income]:
        stmt = (
            select(Income)
            .where(
                Income.user_id == self.user_id,
                Income.date.between(month.start, month.end),
            )
            .order_by(Income.date, Income.id)
        )
        return self.session.scalars(stmt).all()

    def _apply(self, income: Income, data: IncomeIn) -> None:
        if data.account_id is not None:
            _owned(self.session, Account, data.account_id, self.user_id, "Account")
        income.description = data.description.strip()
        income.entry_type = data.entry_type
        income.value_cents = data.value_cents
        income.date = data.date
        income.origin = data.origin.strip() if data.origin else None
        income.account_id = data.account_id

    def create(self, data: IncomeIn) -> Income:
        income = Income(user_id=self.user_id)
        self._apply(income, data)
        self.session.add(income)
        self.session.commit()
        self.session.refresh(income)
        return income

    def update(self, income_id: int, data: IncomeIn) -> Income:
        income = self.get(income_id)
        self._apply(income, data)
        self.session.commit()
        self.session.refresh(income)
        return income

    def delete(self, income_id: int) -> None:
        income = self.get(income_id)
        self.session.delete(income)
        self.session.commit()


class ExpenseService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def get(self, expense_id: int) -> Expense:
        return _owned(self.session, Expense, expense_id, self.user_id, "Expense")

    def stored(self) -> list[Expense]:
        stmt = (
            select(Expense)
            .where(Expense.user_id == self.user_id)
            .order_by(Expense.id)
        )
        return self.session.scalars(stmt).all()

    def expanded(self, month: Optional[Month] = None) -> list[ExpenseInstance]:
        instances = expand_all(ExpenseInstance.from_model(e) for e in self.stored())
        if month is None:
            return instances
        in_month = [item for item in instances if month.contains(item.date)]
        return sorted(in_month, key=lambda item: item.date)

    def get_instance(self, instance_id: str) -> ExpenseInstance:
        parent_id, number = parse_instance_id(instance_id)
        expense = self.get(parent_id)
        stored = ExpenseInstance.from_model(expense)
        if number is None:
            return stored
        for item in expand(stored):
            if item.id == instance_id:
                return item
        raise NotFoundError("Expense not found")

    def _apply(self, expense: Expense, data: ExpenseIn) -> None:
        if data.account_id is not None:
            _owned(self.session, Account, data.account_id, self.user_id, "Account")
        if data.card_id is not None:
            _owned(self.session, Card, data.card_id, self.user_id, "Card")
        if data.area_id is not None:
            _owned(self.session, Area, data.area_id, self.user_id, "Area")
        if data.category_id is not None:
            category = _owned(
                self.session, Category, data.category_id, self.user_id, "Category"
            )
            if data.area_id is not None and category.area_id != data.area_id:
                raise ValueError("Category does not belong to area")

        rec = data.recurrence
        expense.description = data.description.strip()
        expense.entry_type = data.entry_type
        expense.value_cents = data.value_cents
        expense.date = data.date
        expense.account_id = data.account_id
        expense.card_id = data.card_id
        expense.area_id = data.area_id
        expense.category_id = data.category_id
        expense.status = data.status
        expense.payment_date = (
            data.payment_date or data.date
            if data.status == ExpenseStatus.paid
            else None
        )
        expense.recurrence_type = rec.type
        has_recurrence = rec.type != RecurrenceType.none
        expense.recurrence_start_date = rec.start_date if has_recurrence else None
        expense.recurrence_end_date = (
            rec.end_date if rec.type == RecurrenceType.date_range else None
        )
        expense.recurrence_installments = (
            rec.installments if rec.type == RecurrenceType.installments else None
        )
        expense.recurrence_frequency = (
            rec.frequency if rec.type == RecurrenceType.frequency else None
        )

    def create(self, data: ExpenseIn) -> Expense:
        expense = Expense(user_id=self.user_id)
        self._apply(expense, data)
        self.session.add(expense)
        self.session.commit()
        self.session.refresh(expense)
        return expense

    def update(self, expense_id: int, data: ExpenseIn) -> Expense:
        expense = self.get(expense_id)
        self._apply(expense, data)
        self.session.commit()
        self.session.refresh(expense)
        return expense

    def delete(self, expense_id: int) -> None:
        expense = self.get(expense_id)
        self.session.delete(expense)
        self.session.commit()

    def set_status(
        self,
        instance_id: str,
        status: ExpenseStatus,
        payment_date: Optional[date] = None,
    ) -> Expense:
        # status is stored on the parent, so it applies to every instance
        self.get_instance(instance_id)
        parent_id, _number = parse_instance_id(instance_id)
        expense = self.get(parent_id)
        expense.status = status
        if status == ExpenseStatus.paid:
            expense.payment_date = payment_date or local_today()
        else:
            expense.payment_date = None
        self.session.commit()
        self.session.refresh(expense)
        logger.info(
            f"expense_status: expense_id={expense.id} instance_id={instance_id} "
            f"status={status.value}"
        )
        return expense


class InvoiceService:
    def __init__(
        self,
        session: Session,
        user_id: Optional[int] = None,
        *,
        today: Optional[date] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.today = today or local_today()

    def _card(self, card_id: int) -> CardTerms:
        card = _owned(self.session, Card, card_id, self.user_id, "Card")
        return CardTerms.from_model(card)

    def _cards(self) -> list[CardTerms]:
        return [
            CardTerms.from_model(card)
            for card in CardService(self.session, self.user_id).list_all()
        ]

    def _override_rows(self) -> list[Invoice]:
        stmt = select(Invoice).where(Invoice.user_id == self.user_id)
        return self.session.scalars(stmt).all()

    def overrides(self) -> dict[InvoiceKey, InvoiceOverride]:
        rows = [InvoiceOverride.from_model(row) for row in self._override_rows()]
        return {row.key: row for row in rows}

    def _instances(self) -> list[ExpenseInstance]:
        return ExpenseService(self.session, self.user_id).expanded()

    def aggregate(self) -> dict[InvoiceKey, InvoiceSummary]:
        return aggregate(
            self._instances(), self._cards(), self.overrides(), today=self.today
        )

    def invoices(self, card_id: Optional[int] = None) -> list[InvoiceSummary]:
        if card_id is not None:
            self._card(card_id)
        rows = [
            summary
            for summary in self.aggregate().values()
            if card_id is None or summary.card_id == card_id
        ]
        return sorted(rows, key=lambda s: (s.card_id, s.year, s.month))

    def get_invoice(self, card_id: int, month: int, year: int) -> InvoiceSummary:
        self._card(card_id)
        summary = self.aggregate().get((card_id, month, year))
        if summary is None:
            raise NotFoundError("Invoice not found")
        return summary

    def invoice_expenses(
        self, card_id: int, month: int, year: int
    ) -> list[ExpenseInstance]:
        card = self._card(card_id)
        return invoice_expenses(card, month, year, self._instances())

    def used_limit(self, card_id: int) -> int:
        self._card(card_id)
        return used_limit(card_id, self._instances())

    def billing_month(self, card_id: int, on_date: date) -> tuple[int, int]:
        return billing_month(self._card(card_id), on_date)

    def pay_invoice(
        self,
        card_id: int,
        month: int,
        year: int,
        paid_date: date,
        account_id: int,
    ) -> InvoiceSummary:
        summary = self.get_invoice(card_id, month, year)
        if summary.status == InvoiceStatus.paid:
            raise ValueError("Invoice already paid")
        if summary.status != InvoiceStatus.closed:
            raise ValueError("Only closed invoices can be paid")
        account = _owned(self.session, Account, account_id, self.user_id, "Account")

        row = Invoice(
            user_id=self.user_id,
            card_id=card_id,
            month=month,
            year=year,
            status=InvoiceStatus.paid,
            paid_amount_cents=summary.total_cents,
            paid_date=paid_date,
            paid_from_account_id=account.id,
        )
        self.session.add(row)
        account.balance_cents -= summary.total_cents
        self.session.commit()
        logger.info(
            f"invoice_paid: card_id={card_id} month={month} year={year} "
            f"amount_cents={summary.total_cents} account_id={account.id}"
        )
        return self.get_invoice(card_id, month, year)


@dataclass(frozen=True)
class BudgetProgress:
    budget_id: int
    category_id: int
    category_name: str
    area_name: str
    budgeted_cents: int
    spent_cents: int

    @property
    def remaining_cents(self) -> int:
        return self.budgeted_cents - self.spent_cents

    @property
    def percent_used(self) -> float:
        if self.budgeted_cents <= 0:
            return 0.0
        return self.spent_cents / self.budgeted_cents * 100


@dataclass(frozen=True)
class BudgetSummary:
    total_budgeted_cents: int
    total_spent_cents: int
    over_budget_count: int
    within_budget_count: int
    total_categories: int

    @property
    def percent_used(self) -> float:
        if self.total_budgeted_cents <= 0:
            return 0.0
        return self.total_spent_cents / self.total_budgeted_cents * 100


class BudgetService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def list_for_month(self, month: Month) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.year == month.year,
                Budget.month == month.month,
            )
            .order_by(Budget.category_id)
        )
        return self.session.scalars(stmt).all()

    def upsert(self, data: BudgetIn) -> Budget:
        _owned(self.session, Category, data.category_id, self.user_id, "Category")
        existing = self.session.scalar(
            select(Budget).where(
                Budget.user_id == self.user_id,
                Budget.category_id == data.category_id,
                Budget.year == data.year,
                Budget.month == data.month,
            )
        )
        if existing:
            existing.amount_cents = data.amount_cents
            self.session.commit()
            self.session.refresh(existing)
            return existing

        budget = Budget(
            user_id=self.user_id,
            category_id=data.category_id,
            year=data.year,
            month=data.month,
            amount_cents=data.amount_cents,
        )
        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = _owned(self.session, Budget, budget_id, self.user_id, "Budget")
        self.session.delete(budget)
        self.session.commit()

    def spent_by_category_for_month(self, month: Month) -> dict[int, int]:
        spent: dict[int, int] = {}
        expenses = ExpenseService(self.session, self.user_id).expanded(month)
        for item in expenses:
            if item.status != ExpenseStatus.paid or item.category_id is None:
                continue
            spent[item.category_id] = spent.get(item.category_id, 0) + item.value_cents
        return spent

    def progress_for_month(self, month: Month) -> list[BudgetProgress]:
        spent = self.spent_by_category_for_month(month)
        rows: list[BudgetProgress] = []
        for budget in self.list_for_month(month):
            category = budget.category
            rows.append(
                BudgetProgress(
                    budget_id=budget.id,
                    category_id=budget.category_id,
                    category_name=category.name if category else "",
                    area_name=category.area.name if category and category.area else "",
                    budgeted_cents=budget.amount_cents,
                    spent_cents=spent.get(budget.category_id, 0),
                )
            )
        return rows

    def summary_for_month(self, month: Month) -> BudgetSummary:
        rows = self.progress_for_month(month)
        over = sum(1 for row in rows if row.percent_used >= 100)
        return BudgetSummary(
            total_budgeted_cents=sum(row.budgeted_cents for row in rows),
            total_spent_cents=sum(row.spent_cents for row in rows),
            over_budget_count=over,
            within_budget_count=len(rows) - over,
            total_categories=len(rows),
        )


@dataclass(frozen=True)
class MonthTotals:
    income_cents: int
    expense_cents: int
    scheduled_cents: int

    @property
    def balance_cents(self) -> int:
        return self.income_cents - self.expense_cents


@dataclass(frozen=True)
class MonthSummary:
    month: Month
    current: MonthTotals
    previous: MonthTotals


@dataclass(frozen=True)
class DailyBalance:
    date: date
    income_cents: int
    expense_cents: int
    balance_cents: int


class ReportService:
    """Aggregated views for the overview, calendar and yearly grids.

    Only paid expenses count as spent; scheduled ones are reported apart.
    """

    UNSPECIFIED_ORIGIN = "Unspecified"

    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.incomes = IncomeService(session, self.user_id)
        self.expenses = ExpenseService(session, self.user_id)

    def _totals(self, month: Month, instances: list[ExpenseInstance]) -> MonthTotals:
        income = sum(i.value_cents for i in self.incomes.list_for_month(month))
        paid = 0
        scheduled = 0
        for item in instances:
            if not month.contains(item.date):
                continue
            if item.status == ExpenseStatus.paid:
                paid += item.value_cents
            else:
                scheduled += item.value_cents
        return MonthTotals(
            income_cents=income, expense_cents=paid, scheduled_cents=scheduled
        )

    def month_summary(self, month: Month) -> MonthSummary:
        instances = self.expenses.expanded()
        return MonthSummary(
            month=month,
            current=self._totals(month, instances),
            previous=self._totals(month.previous(), instances),
        )

    def daily_balances(self, month: Month) -> list[DailyBalance]:
        income_by_day: dict[int, int] = {}
        for income in self.incomes.list_for_month(month):
            day = income.date.day
            income_by_day[day] = income_by_day.get(day, 0) + income.value_cents
        expense_by_day: dict[int, int] = {}
        for item in self.expenses.expanded(month):
            if item.status != ExpenseStatus.paid:
                continue
            day = item.date.day
            expense_by_day[day] = expense_by_day.get(day, 0) + item.value_cents

        balances: list[DailyBalance] = []
        running = 0
        for day in range(1, month.end.day + 1):
            income = income_by_day.get(day, 0)
            expense = expense_by_day.get(day, 0)
            running += income - expense
            balances.append(
                DailyBalance(
                    date=date(month.year, month.month, day),
                    income_cents=income,
                    expense_cents=expense,
                    balance_cents=running,
                )
            )
        return balances

    def incomes_by_origin(self, year: int) -> dict[str, list[int]]:
        grouped: dict[str, list[int]] = {}
        for income in self.incomes.list_all():
            if income.date.year != year:
                continue
            origin = income.origin or self.UNSPECIFIED_ORIGIN
            row = grouped.setdefault(origin, [0] * 12)
            row[income.date.month - 1] += income.value_cents
        return grouped

    def expenses_by_area(self, year: int) -> dict[str, dict[str, object]]:
        areas = {a.id: a for a in AreaService(self.session, self.user_id).list_all()}
        categories = {
            c.id: c for c in CategoryService(self.session, self.user_id).list_all()
        }
        grouped: dict[str, dict[str, object]] = {}
        for item in self.expenses.expanded():
            if item.status != ExpenseStatus.paid or item.date.year != year:
                continue
            area = areas.get(item.area_id)
            category = categories.get(item.category_id)
            if area is None or category is None:
                continue
            entry = grouped.setdefault(area.name, {"total": [0] * 12, "categories": {}})
            index = item.date.month - 1
            entry["total"][index] += item.value_cents
            by_category = entry["categories"].setdefault(category.name, [0] * 12)
            by_category[index] += item.value_cents
        return grouped


@dataclass(frozen=True)
class SearchResult:
    kind: str
    id: str
    label: str
    score: float
    extra: dict[str, object] = field(default_factory=dict)


class SearchService:
    SCORE_CUTOFF = 60

    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def _candidates(self) -> list[tuple[str, str, str, dict[str, object]]]:
        items: list[tuple[str, str, str, dict[str, object]]] = []
        for expense in ExpenseService(self.session, self.user_id).stored():
            items.append(
                (
                    "expense",
                    str(expense.id),
                    expense.description,
                    {"value_cents": expense.value_cents, "date": expense.date},
                )
            )
        for income in IncomeService(self.session, self.user_id).list_all():
            label = income.description
            if income.origin:
                label = f"{income.description} {income.origin}"
            items.append(
                (
                    "income",
                    str(income.id),
                    label,
                    {"value_cents": income.value_cents, "date": income.date},
                )
            )
        for account in AccountService(self.session, self.user_id).list_all():
            items.append(("account", str(account.id), account.name, {}))
        for card in CardService(self.session, self.user_id).list_all():
            items.append(("card", str(card.id), card.name, {"type": card.type}))
        return items

    def search(self, query: str, limit: int = 20) -> list[SearchResult]:
        query = query.strip()
        if not query:
            return []
        candidates = self._candidates()
        matches = process.extract(
            query,
            [label for _kind, _id, label, _extra in candidates],
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            score_cutoff=self.SCORE_CUTOFF,
            limit=limit,
        )
        results: list[SearchResult] = []
        for _label, score, index in matches:
            kind, obj_id, label, extra = candidates[index]
            results.append(
                SearchResult(kind=kind, id=obj_id, label=label, score=score, extra=extra)
            )
        return results
