"""initial schema

Revision ID: 202610170900
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610170900"
down_revision = None
branch_labels = None
depends_on = None

ENTRY_TYPE = sa.Enum("fixed", "variable", "seasonal", name="entrytype")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "color", sa.String(length=9), nullable=False, server_default="#64748b"
        ),
        *_timestamps(),
    )

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", sa.Enum("debit", "credit", name="cardtype"), nullable=False),
        sa.Column("last_digits", sa.String(length=4)),
        sa.Column(
            "color", sa.String(length=9), nullable=False, server_default="#64748b"
        ),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        sa.Column(
            "credit_limit_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("due_day", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("closing_day", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("credit_limit_cents >= 0", name="ck_card_limit_positive"),
        sa.CheckConstraint("due_day BETWEEN 1 AND 31", name="ck_card_due_day"),
        sa.CheckConstraint("closing_day BETWEEN 1 AND 31", name="ck_card_closing_day"),
    )

    op.create_table(
        "areas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column(
            "color", sa.String(length=9), nullable=False, server_default="#64748b"
        ),
        *_timestamps(),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column(
            "area_id", sa.Integer(), sa.ForeignKey("areas.id"), nullable=False
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "area_id", "name", name="uq_category_user_area_name"
        ),
    )

    op.create_table(
        "incomes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("entry_type", ENTRY_TYPE, nullable=False),
        sa.Column("value_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("origin", sa.String(length=200)),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        *_timestamps(),
        sa.CheckConstraint("value_cents >= 0", name="ck_incomes_value_positive"),
    )
    op.create_index("ix_incomes_user_date", "incomes", ["user_id", "date"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("entry_type", ENTRY_TYPE, nullable=False),
        sa.Column("value_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        sa.Column("card_id", sa.Integer(), sa.ForeignKey("cards.id")),
        sa.Column("area_id", sa.Integer(), sa.ForeignKey("areas.id")),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id")),
        sa.Column(
            "status",
            sa.Enum("paid", "scheduled", name="expensestatus"),
            nullable=False,
            server_default="paid",
        ),
        sa.Column("payment_date", sa.Date()),
        sa.Column(
            "recurrence_type",
            sa.Enum(
                "none",
                "date_range",
                "installments",
                "frequency",
                name="recurrencetype",
            ),
            nullable=False,
            server_default="none",
        ),
        sa.Column("recurrence_start_date", sa.Date()),
        sa.Column("recurrence_end_date", sa.Date()),
        sa.Column("recurrence_installments", sa.Integer()),
        sa.Column(
            "recurrence_frequency",
            sa.Enum("weekly", "monthly", "yearly", name="recurrencefrequency"),
        ),
        *_timestamps(),
        sa.CheckConstraint("value_cents >= 0", name="ck_expenses_value_positive"),
        sa.CheckConstraint(
            "recurrence_installments IS NULL "
            "OR recurrence_installments BETWEEN 1 AND 360",
            name="ck_expenses_installments_range",
        ),
    )
    op.create_index("ix_expenses_user_date", "expenses", ["user_id", "date"])
    op.create_index("ix_expenses_user_card", "expenses", ["user_id", "card_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column(
            "card_id", sa.Integer(), sa.ForeignKey("cards.id"), nullable=False
        ),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("open", "closed", "paid", name="invoicestatus"),
            nullable=False,
            server_default="paid",
        ),
        sa.Column(
            "paid_amount_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("paid_date", sa.Date()),
        sa.Column("paid_from_account_id", sa.Integer(), sa.ForeignKey("accounts.id")),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "card_id", "year", "month", name="uq_invoice_user_card_month"
        ),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_invoice_month_range"),
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, default=1),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id"),
            nullable=False,
        ),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount_cents >= 0", name="ck_budget_amount_positive"),
        sa.UniqueConstraint(
            "user_id",
            "category_id",
            "year",
            "month",
            name="uq_budget_user_category_month",
        ),
    )
    op.create_index("ix_budget_user_month", "budgets", ["user_id", "year", "month"])


def downgrade():
    op.drop_index("ix_budget_user_month", table_name="budgets")
    op.drop_table("budgets")
    op.drop_table("invoices")
    op.drop_index("ix_expenses_user_card", table_name="expenses")
    op.drop_index("ix_expenses_user_date", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_incomes_user_date", table_name="incomes")
    op.drop_table("incomes")
    op.drop_table("categories")
    op.drop_table("areas")
    op.drop_table("cards")
    op.drop_table("accounts")
