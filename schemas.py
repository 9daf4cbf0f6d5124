from datetime import date
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)

from csv_utils import parse_amount
from models import (
    CardType,
    EntryType,
    ExpenseStatus,
    InvoiceStatus,
    RecurrenceFrequency,
    RecurrenceType,
)

MIN_DATE = date(2000, 1, 1)
MAX_DATE = date(2100, 12, 31)
MAX_VALUE_CENTS = 99_999_999_999


def _coerce_cents(value: Any) -> Any:
    if isinstance(value, str):
        return parse_amount(value)
    return value


def _check_date(value: Any) -> Any:
    if isinstance(value, date) and not MIN_DATE <= value <= MAX_DATE:
        raise ValueError("Date must be between 2000 and 2100")
    return value


Cents = Annotated[int, BeforeValidator(_coerce_cents), Field(ge=0, le=MAX_VALUE_CENTS)]
SignedCents = Annotated[int, BeforeValidator(_coerce_cents)]
DayOfMonth = Annotated[int, Field(ge=1, le=31)]
ValidDate = Annotated[date, AfterValidator(_check_date)]


class AccountIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    balance_cents: SignedCents = 0
    color: str = Field("#64748b", max_length=9)


class CardIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CardType
    last_digits: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    color: str = Field("#64748b", max_length=9)
    account_id: Optional[int] = None
    credit_limit_cents: Cents = 0
    due_day: DayOfMonth = 10
    closing_day: DayOfMonth = 1


class AreaIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field("#64748b", max_length=9)


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    area_id: int


class IncomeIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    entry_type: EntryType = EntryType.variable
    value_cents: Cents
    date: ValidDate
    origin: Optional[str] = Field(default=None, max_length=200)
    account_id: Optional[int] = None


class RecurrenceIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: RecurrenceType = RecurrenceType.none
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    installments: Optional[int] = Field(default=None, ge=1, le=360)
    frequency: Optional[RecurrenceFrequency] = None

    @model_validator(mode="after")
    def _check_variant(self) -> "RecurrenceIn":
        if self.type == RecurrenceType.date_range:
            if self.end_date is None:
                raise ValueError("Date range recurrence requires an end date")
            if self.start_date and self.end_date < self.start_date:
                raise ValueError("End date must not be before start date")
        if self.type == RecurrenceType.installments and self.installments is None:
            raise ValueError("Installment recurrence requires an installment count")
        if self.type == RecurrenceType.frequency and self.frequency is None:
            raise ValueError("Frequency recurrence requires a frequency")
        for value in (self.start_date, self.end_date):
            _check_date(value)
        return self


class ExpenseIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    entry_type: EntryType = EntryType.variable
    value_cents: Cents
    date: ValidDate
    account_id: Optional[int] = None
    card_id: Optional[int] = None
    area_id: Optional[int] = None
    category_id: Optional[int] = None
    status: ExpenseStatus = ExpenseStatus.paid
    payment_date: Optional[date] = None
    recurrence: RecurrenceIn = Field(default_factory=RecurrenceIn)

    @model_validator(mode="after")
    def _check_date_range_start(self) -> "ExpenseIn":
        rec = self.recurrence
        if (
            rec.type == RecurrenceType.date_range
            and rec.start_date is None
            and rec.end_date is not None
            and rec.end_date < self.date
        ):
            raise ValueError("End date must not be before start date")
        return self


class ExpenseStatusIn(BaseModel):
    status: ExpenseStatus
    payment_date: Optional[date] = None


class InvoicePaymentIn(BaseModel):
    paid_date: date
    account_id: int


class BudgetIn(BaseModel):
    category_id: int
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    amount_cents: Cents


class InstanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    parent_id: Optional[str] = None
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_id: int
    month: int
    year: int
    status: InvoiceStatus
    total_cents: int
    paid_date: Optional[date] = None
    paid_from_account_id: Optional[int] = None
    paid_amount_cents: Optional[int] = None
    drift_cents: int = 0
    expense_ids: list[str] = Field(default_factory=list)


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    balance_cents: int
    color: str


class CardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: CardType
    last_digits: Optional[str] = None
    color: str
    account_id: Optional[int] = None
    credit_limit_cents: int
    due_day: int
    closing_day: int


class LimitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_id: int
    credit_limit_cents: int
    used_cents: int
    available_cents: int
    over_limit: bool


class AreaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    area_id: int


class IncomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    entry_type: EntryType
    value_cents: int
    date: date
    origin: Optional[str] = None
    account_id: Optional[int] = None


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    entry_type: EntryType
    value_cents: int
    date: date
    account_id: Optional[int] = None
    card_id: Optional[int] = None
    area_id: Optional[int] = None
    category_id: Optional[int] = None
    status: ExpenseStatus
    payment_date: Optional[date] = None
    recurrence_type: RecurrenceType
    recurrence_start_date: Optional[date] = None
    recurrence_end_date: Optional[date] = None
    recurrence_installments: Optional[int] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None


class BudgetProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    budget_id: int
    category_id: int
    category_name: str
    area_name: str
    budgeted_cents: int
    spent_cents: int
    remaining_cents: int
    percent_used: float


class BudgetSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_budgeted_cents: int
    total_spent_cents: int
    percent_used: float
    over_budget_count: int
    within_budget_count: int
    total_categories: int
