import csv
import re
from decimal import Decimal
from io import StringIO
from typing import Mapping, Sequence

from recurrence import ExpenseInstance

AMOUNT_PATTERN = re.compile(r"^-?\d+(\.\d{1,2})?$")


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^sh\s*",
        r"^\.",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def parse_amount(value: str, *, allow_negative: bool = False) -> int:
    """Parse ``"1.234,56"``, ``"R$ 2.500"`` or ``"12.50"`` into cents.

    A comma or the ``R$`` prefix marks the Brazilian format, where dots only
    group thousands. At most two fraction digits are accepted.
    """
    raw = value.strip()
    brazilian = "," in raw or "R$" in raw
    clean = (
        raw.replace("R$", "")
        .replace("€", "")
        .replace("$", "")
        .replace(" ", "")
        .replace("\u00a0", "")
    )
    if brazilian or clean.count(".") > 1:
        clean = clean.replace(".", "")
    clean = clean.replace(",", ".")
    if not AMOUNT_PATTERN.match(clean):
        _whole, sep, fraction = clean.partition(".")
        if sep and fraction.isdigit() and len(fraction) > 2:
            raise ValueError("Amount must have at most two decimal places")
        raise ValueError("Invalid amount")
    amount = Decimal(clean)
    cents = int((amount * 100).quantize(Decimal("1")))
    if cents < 0 and not allow_negative:
        raise ValueError("Amount must be positive")
    return cents


def format_cents(cents: int) -> str:
    return f"{cents / 100:.2f}"


def export_expenses(
    instances: Sequence[ExpenseInstance],
    *,
    category_names: Mapping[int, str],
    card_names: Mapping[int, str],
) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(
        [
            "Id",
            "Date",
            "Description",
            "Type",
            "Amount",
            "Status",
            "Category",
            "Card",
            "Installment",
        ]
    )
    for item in instances:
        installment = ""
        if item.installment_number is not None:
            installment = str(item.installment_number)
            if item.total_installments is not None:
                installment += f"/{item.total_installments}"
        writer.writerow(
            [
                item.id,
                item.date.isoformat(),
                sanitize_csv_value(item.description),
                item.entry_type.value,
                format_cents(item.value_cents),
                item.status.value,
                sanitize_csv_value(category_names.get(item.category_id, "")),
                sanitize_csv_value(card_names.get(item.card_id, "")),
                installment,
            ]
        )
    return output.getvalue()
