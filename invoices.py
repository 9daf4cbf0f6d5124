"""Credit card statement derivation.

Invoices are never stored as totals. They are folded from the expanded
expense set on every read and merged with the persisted payment facts
(``InvoiceOverride``) keyed by ``(card_id, month, year)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

from models import Card, CardType, ExpenseStatus, Invoice, InvoiceStatus
from recurrence import ExpenseInstance

InvoiceKey = tuple[int, int, int]  # (card_id, month, year)


@dataclass(frozen=True)
class CardTerms:
    id: int
    type: CardType
    credit_limit_cents: int
    due_day: int
    closing_day: int

    @classmethod
    def from_model(cls, card: Card) -> "CardTerms":
        return cls(
            id=card.id,
            type=card.type,
            credit_limit_cents=card.credit_limit_cents,
            due_day=card.due_day,
            closing_day=card.closing_day,
        )


@dataclass(frozen=True)
class InvoiceOverride:
    card_id: int
    month: int
    year: int
    status: InvoiceStatus = InvoiceStatus.paid
    paid_date: Optional[date] = None
    paid_from_account_id: Optional[int] = None
    paid_amount_cents: Optional[int] = None

    @property
    def key(self) -> InvoiceKey:
        return (self.card_id, self.month, self.year)

    @classmethod
    def from_model(cls, invoice: Invoice) -> "InvoiceOverride":
        return cls(
            card_id=invoice.card_id,
            month=invoice.month,
            year=invoice.year,
            status=invoice.status,
            paid_date=invoice.paid_date,
            paid_from_account_id=invoice.paid_from_account_id,
            paid_amount_cents=invoice.paid_amount_cents,
        )


@dataclass
class InvoiceSummary:
    card_id: int
    month: int
    year: int
    status: InvoiceStatus
    total_cents: int = 0
    paid_date: Optional[date] = None
    paid_from_account_id: Optional[int] = None
    paid_amount_cents: Optional[int] = None
    expense_ids: list[str] = field(default_factory=list)

    @property
    def key(self) -> InvoiceKey:
        return (self.card_id, self.month, self.year)

    @property
    def drift_cents(self) -> int:
        """Difference between the recomputed total and what was paid."""
        if self.paid_amount_cents is None:
            return 0
        return self.total_cents - self.paid_amount_cents


@dataclass(frozen=True)
class LimitSummary:
    card_id: int
    credit_limit_cents: int
    used_cents: int

    @property
    def available_cents(self) -> int:
        return self.credit_limit_cents - self.used_cents

    @property
    def over_limit(self) -> bool:
        return self.available_cents < 0


def billing_month(card: CardTerms, on_date: date) -> tuple[int, int]:
    if on_date.day <= card.closing_day:
        return on_date.month, on_date.year
    if on_date.month == 12:
        return 1, on_date.year + 1
    return on_date.month + 1, on_date.year


def invoice_status(
    card: CardTerms,
    month: int,
    year: int,
    override: Optional[InvoiceOverride],
    today: date,
) -> InvoiceStatus:
    if override is not None and override.status == InvoiceStatus.paid:
        return InvoiceStatus.paid
    if year == today.year and month == today.month and today.day < card.closing_day:
        return InvoiceStatus.open
    return InvoiceStatus.closed


def used_limit(card_id: int, instances: Iterable[ExpenseInstance]) -> int:
    return sum(
        item.value_cents
        for item in instances
        if item.card_id == card_id and item.status != ExpenseStatus.paid
    )


def limit_summary(
    card: CardTerms, instances: Iterable[ExpenseInstance]
) -> LimitSummary:
    return LimitSummary(
        card_id=card.id,
        credit_limit_cents=card.credit_limit_cents,
        used_cents=used_limit(card.id, instances),
    )


def invoice_expenses(
    card: CardTerms, month: int, year: int, instances: Iterable[ExpenseInstance]
) -> list[ExpenseInstance]:
    return [
        item
        for item in instances
        if item.card_id == card.id and billing_month(card, item.date) == (month, year)
    ]


def _summary(
    card: CardTerms,
    month: int,
    year: int,
    override: Optional[InvoiceOverride],
    today: date,
) -> InvoiceSummary:
    summary = InvoiceSummary(
        card_id=card.id,
        month=month,
        year=year,
        status=invoice_status(card, month, year, override, today),
    )
    if override is not None:
        summary.paid_date = override.paid_date
        summary.paid_from_account_id = override.paid_from_account_id
        summary.paid_amount_cents = override.paid_amount_cents
    return summary


def aggregate(
    instances: Iterable[ExpenseInstance],
    cards: Iterable[CardTerms],
    overrides: Optional[Mapping[InvoiceKey, InvoiceOverride]] = None,
    *,
    today: date,
) -> dict[InvoiceKey, InvoiceSummary]:
    overrides = overrides or {}
    credit_cards = {card.id: card for card in cards if card.type == CardType.credit}

    invoices: dict[InvoiceKey, InvoiceSummary] = {}
    for item in instances:
        if item.card_id is None:
            continue
        card = credit_cards.get(item.card_id)
        if card is None:
            continue
        month, year = billing_month(card, item.date)
        key = (card.id, month, year)
        summary = invoices.get(key)
        if summary is None:
            summary = _summary(card, month, year, overrides.get(key), today)
            invoices[key] = summary
        summary.total_cents += item.value_cents
        summary.expense_ids.append(item.id)

    # a paid statement stays listed after its billed expenses are removed
    for key, override in overrides.items():
        card = credit_cards.get(override.card_id)
        if key in invoices or card is None or override.status != InvoiceStatus.paid:
            continue
        invoices[key] = _summary(card, override.month, override.year, override, today)
    return invoices
