from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings
from models import (
    EntryType,
    Expense,
    ExpenseStatus,
    RecurrenceFrequency,
    RecurrenceType,
)

FREQUENCY_HORIZON = 12


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def add_months(base: date, months: int) -> date:
    """Shift ``base`` by whole calendar months, snapping to the month end."""
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    day = min(base.day, days_in_month(year, month))
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


@dataclass(frozen=True)
class NoRecurrence:
    pass


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(frozen=True)
class Installments:
    start: date
    count: int


@dataclass(frozen=True)
class Frequency:
    start: date
    unit: RecurrenceFrequency


Recurrence = Union[NoRecurrence, DateRange, Installments, Frequency]


def descriptor_from_columns(
    recurrence_type: Optional[RecurrenceType],
    *,
    fallback_start: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    installments: Optional[int] = None,
    frequency: Optional[RecurrenceFrequency] = None,
) -> Optional[Recurrence]:
    """Build a descriptor from stored columns.

    Returns ``None`` when the columns cannot form a complete variant, which
    the expander treats the same as no recurrence.
    """
    base = start or fallback_start
    if recurrence_type is None or recurrence_type == RecurrenceType.none:
        return NoRecurrence()
    if recurrence_type == RecurrenceType.date_range and end is not None:
        return DateRange(start=base, end=end)
    if recurrence_type == RecurrenceType.installments and installments:
        return Installments(start=base, count=installments)
    if recurrence_type == RecurrenceType.frequency and frequency is not None:
        return Frequency(start=base, unit=RecurrenceFrequency(frequency))
    return None


@dataclass(frozen=True)
class ExpenseInstance:
    id: str
    description: str
    entry_type: EntryType
    value_cents: int
    date: date
    status: ExpenseStatus
    account_id: Optional[int] = None
    card_id: Optional[int] = None
    area_id: Optional[int] = None
    category_id: Optional[int] = None
    payment_date: Optional[date] = None
    recurrence: Optional[Recurrence] = None
    parent_id: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None

    @property
    def source_id(self) -> str:
        return self.parent_id or self.id

    @classmethod
    def from_model(cls, expense: Expense) -> "ExpenseInstance":
        recurrence = descriptor_from_columns(
            expense.recurrence_type,
            fallback_start=expense.date,
            start=expense.recurrence_start_date,
            end=expense.recurrence_end_date,
            installments=expense.recurrence_installments,
            frequency=expense.recurrence_frequency,
        )
        return cls(
            id=str(expense.id),
            description=expense.description,
            entry_type=expense.entry_type,
            value_cents=expense.value_cents,
            date=expense.date,
            status=expense.status,
            account_id=expense.account_id,
            card_id=expense.card_id,
            area_id=expense.area_id,
            category_id=expense.category_id,
            payment_date=expense.payment_date,
            recurrence=recurrence,
        )


def _occurrence_date(recurrence: Recurrence, index: int) -> date:
    if isinstance(recurrence, Frequency):
        if recurrence.unit == RecurrenceFrequency.weekly:
            return recurrence.start + timedelta(weeks=index)
        if recurrence.unit == RecurrenceFrequency.yearly:
            return add_months(recurrence.start, 12 * index)
    return add_months(recurrence.start, index)


def _instance(
    expense: ExpenseInstance, number: int, on: date, total: Optional[int]
) -> ExpenseInstance:
    return replace(
        expense,
        id=f"{expense.id}_{number}",
        date=on,
        parent_id=expense.id,
        installment_number=number,
        total_installments=total,
    )


def expand(expense: ExpenseInstance) -> list[ExpenseInstance]:
    recurrence = expense.recurrence
    if recurrence is None or isinstance(recurrence, NoRecurrence):
        return [expense]

    instances: list[ExpenseInstance] = []
    if isinstance(recurrence, DateRange):
        total = months_between(recurrence.start, recurrence.end) + 1
        for i in range(total):
            on = _occurrence_date(recurrence, i)
            instances.append(_instance(expense, i + 1, on, total))
    elif isinstance(recurrence, Installments):
        for i in range(recurrence.count):
            on = _occurrence_date(recurrence, i)
            instances.append(_instance(expense, i + 1, on, recurrence.count))
    elif isinstance(recurrence, Frequency):
        # open-ended series, so no total is recorded
        for i in range(FREQUENCY_HORIZON):
            on = _occurrence_date(recurrence, i)
            instances.append(_instance(expense, i + 1, on, None))

    return instances or [expense]


def expand_all(expenses: Iterable[ExpenseInstance]) -> list[ExpenseInstance]:
    expanded: list[ExpenseInstance] = []
    for expense in expenses:
        expanded.extend(expand(expense))
    return expanded


def parse_instance_id(instance_id: str) -> tuple[int, Optional[int]]:
    """Split ``"12_3"`` into ``(12, 3)`` and ``"12"`` into ``(12, None)``."""
    head, sep, tail = instance_id.partition("_")
    try:
        parent = int(head)
        number = int(tail) if sep else None
    except ValueError as exc:
        raise ValueError(f"Invalid expense id: {instance_id}") from exc
    return parent, number
