from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Month:
    year: int
    month: int

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return self.next().start - date.resolution

    @property
    def slug(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def previous(self) -> "Month":
        if self.month == 1:
            return Month(self.year - 1, 12)
        return Month(self.year, self.month - 1)

    def next(self) -> "Month":
        if self.month == 12:
            return Month(self.year + 1, 1)
        return Month(self.year, self.month + 1)

    def contains(self, value: date) -> bool:
        return value.year == self.year and value.month == self.month

    @classmethod
    def of(cls, value: date) -> "Month":
        return cls(value.year, value.month)


def resolve_month(value: Optional[str], *, today: Optional[date] = None) -> Month:
    """Parse a ``YYYY-MM`` query value, defaulting to the current month."""
    if not value:
        return Month.of(today or date.today())
    year_str, sep, month_str = value.partition("-")
    if not sep:
        raise ValueError("Month must be formatted as YYYY-MM")
    try:
        year = int(year_str)
        month = int(month_str)
    except ValueError as exc:
        raise ValueError("Month must be formatted as YYYY-MM") from exc
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 01 and 12")
    return Month(year, month)
