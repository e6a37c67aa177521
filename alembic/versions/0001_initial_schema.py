"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Tiers, users, virtual cards, balance ledger and card monthly fees.
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

MONEY = sa.Numeric(precision=32, scale=8)
PERCENTAGE = sa.Numeric(precision=10, scale=4)


def upgrade() -> None:
    """Create initial database schema."""
    op.create_table(
        "user_tiers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tier_level", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("display_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("card_creation_fee", MONEY, nullable=False),
        sa.Column("card_monthly_fee", MONEY, nullable=False),
        sa.Column("deposit_fee_percentage", PERCENTAGE, nullable=False),
        sa.Column("withdrawal_fee_percentage", PERCENTAGE, nullable=False),
        sa.Column("max_cards", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(op.f("ix_user_tiers_tier_level"), "user_tiers", ["tier_level"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("balance", MONEY, nullable=False),
        sa.Column("tier_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tier_id"], ["user_tiers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_tier_id"), "users", ["tier_id"], unique=False)

    op.create_table(
        "virtual_cards",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("card_token", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("masked_pan", sqlmodel.sql.sqltypes.AutoString(length=32), nullable=False),
        sa.Column("nickname", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "FROZEN", "DELETED", name="cardstatus"),
            nullable=False,
        ),
        sa.Column("monthly_fee_amount", MONEY, nullable=False),
        sa.Column("remaining_balance", MONEY, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_virtual_cards_user_id"), "virtual_cards", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_virtual_cards_card_token"), "virtual_cards", ["card_token"], unique=True
    )
    op.create_index(op.f("ix_virtual_cards_status"), "virtual_cards", ["status"], unique=False)

    op.create_table(
        "balance_ledger_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "transaction_type",
            sa.Enum(
                "DEPOSIT",
                "REFUND",
                "CARD_FUNDING",
                "WITHDRAWAL",
                "FEE",
                "CARD_CREATION_FEE",
                "CARD_MONTHLY_FEE",
                "DEPOSIT_FEE",
                "ADJUSTMENT",
                name="ledgertransactiontype",
            ),
            nullable=False,
        ),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("balance_before", MONEY, nullable=False),
        sa.Column("balance_after", MONEY, nullable=False),
        sa.Column("reference_type", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("reference_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("user_id", "transaction_type", "reference_type", "reference_id", "created_at"):
        op.create_index(
            op.f(f"ix_balance_ledger_entries_{column}"),
            "balance_ledger_entries",
            [column],
            unique=False,
        )

    op.create_table(
        "card_monthly_fees",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("card_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("tier_id", sa.Integer(), nullable=True),
        sa.Column("fee_amount", MONEY, nullable=False),
        sa.Column("billing_month", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CHARGED", "FAILED", name="monthlyfeestatus"),
            nullable=False,
        ),
        sa.Column("charged_at", sa.DateTime(), nullable=True),
        sa.Column("balance_ledger_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["card_id"], ["virtual_cards.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tier_id"], ["user_tiers.id"]),
        sa.ForeignKeyConstraint(["balance_ledger_id"], ["balance_ledger_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("card_id", "billing_month", name="uq_card_monthly_fees_card_month"),
    )
    for column in ("card_id", "user_id", "billing_month", "due_date", "status"):
        op.create_index(
            op.f(f"ix_card_monthly_fees_{column}"), "card_monthly_fees", [column], unique=False
        )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("card_monthly_fees")
    op.drop_table("balance_ledger_entries")
    op.drop_table("virtual_cards")
    op.drop_table("users")
    op.drop_table("user_tiers")
