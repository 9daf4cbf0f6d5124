from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class EntryType(str, Enum):
    fixed = "fixed"
    variable = "variable"
    seasonal = "seasonal"


class CardType(str, Enum):
    debit = "debit"
    credit = "credit"


class ExpenseStatus(str, Enum):
    paid = "paid"
    scheduled = "scheduled"


class RecurrenceType(str, Enum):
    none = "none"
    date_range = "date_range"
    installments = "installments"
    frequency = "frequency"


class RecurrenceFrequency(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class InvoiceStatus(str, Enum):
    open = "open"
    closed = "closed"
    paid = "paid"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    balance_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str] = mapped_column(String(9), nullable=False, default="#64748b")

    cards: Mapped[list["Card"]] = relationship("Card", back_populates="account")


class Card(Base, TimestampMixin):
    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[CardType] = mapped_column(SAEnum(CardType), nullable=False)
    last_digits: Mapped[Optional[str]] = mapped_column(String(4))
    color: Mapped[str] = mapped_column(String(9), nullable=False, default="#64748b")
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))
    credit_limit_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    due_day: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    closing_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    account: Mapped[Optional["Account"]] = relationship(
        "Account", back_populates="cards"
    )

    __table_args__ = (
        CheckConstraint("credit_limit_cents >= 0", name="ck_card_limit_positive"),
        CheckConstraint("due_day BETWEEN 1 AND 31", name="ck_card_due_day"),
        CheckConstraint("closing_day BETWEEN 1 AND 31", name="ck_card_closing_day"),
    )


class Area(Base, TimestampMixin):
    __tablename__ = "areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(9), nullable=False, default="#64748b")

    categories: Mapped[list["Category"]] = relationship(
        "Category", back_populates="area"
    )


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    area_id: Mapped[int] = mapped_column(ForeignKey("areas.id"), nullable=False)

    area: Mapped["Area"] = relationship("Area", back_populates="categories")

    __table_args__ = (
        UniqueConstraint("user_id", "area_id", "name", name="uq_category_user_area_name"),
    )


class Income(Base, TimestampMixin):
    __tablename__ = "incomes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(SAEnum(EntryType), nullable=False)
    value_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    origin: Mapped[Optional[str]] = mapped_column(String(200))
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))

    __table_args__ = (
        Index("ix_incomes_user_date", "user_id", "date"),
        CheckConstraint("value_cents >= 0", name="ck_incomes_value_positive"),
    )


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(SAEnum(EntryType), nullable=False)
    value_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("accounts.id"))
    card_id: Mapped[Optional[int]] = mapped_column(ForeignKey("cards.id"))
    area_id: Mapped[Optional[int]] = mapped_column(ForeignKey("areas.id"))
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"))
    status: Mapped[ExpenseStatus] = mapped_column(
        SAEnum(ExpenseStatus), nullable=False, default=ExpenseStatus.paid
    )
    payment_date: Mapped[Optional[date]] = mapped_column(Date)
    recurrence_type: Mapped[RecurrenceType] = mapped_column(
        SAEnum(RecurrenceType), nullable=False, default=RecurrenceType.none
    )
    recurrence_start_date: Mapped[Optional[date]] = mapped_column(Date)
    recurrence_end_date: Mapped[Optional[date]] = mapped_column(Date)
    recurrence_installments: Mapped[Optional[int]] = mapped_column(Integer)
    recurrence_frequency: Mapped[Optional[RecurrenceFrequency]] = mapped_column(
        SAEnum(RecurrenceFrequency)
    )

    card: Mapped[Optional["Card"]] = relationship("Card")
    category: Mapped[Optional["Category"]] = relationship("Category")

    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "date"),
        Index("ix_expenses_user_card", "user_id", "card_id"),
        CheckConstraint("value_cents >= 0", name="ck_expenses_value_positive"),
        CheckConstraint(
            "recurrence_installments IS NULL "
            "OR recurrence_installments BETWEEN 1 AND 360",
            name="ck_expenses_installments_range",
        ),
    )


class Invoice(Base, TimestampMixin):
    """Payment fact for one card statement.

    Totals are derived from expenses on every read; a row here only exists
    once the invoice has been paid.
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    card_id: Mapped[int] = mapped_column(ForeignKey("cards.id"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        SAEnum(InvoiceStatus), nullable=False, default=InvoiceStatus.paid
    )
    paid_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paid_date: Mapped[Optional[date]] = mapped_column(Date)
    paid_from_account_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("accounts.id")
    )

    card: Mapped["Card"] = relationship("Card")

    __table_args__ = (
        UniqueConstraint(
            "user_id", "card_id", "year", "month", name="uq_invoice_user_card_month"
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_invoice_month_range"),
    )


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    category: Mapped["Category"] = relationship("Category")

    __table_args__ = (
        CheckConstraint("amount_cents >= 0", name="ck_budget_amount_positive"),
        UniqueConstraint(
            "user_id",
            "category_id",
            "year",
            "month",
            name="uq_budget_user_category_month",
        ),
        Index("ix_budget_user_month", "user_id", "year", "month"),
    )
