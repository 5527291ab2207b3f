"""Initial schema - users, plans, subscriptions, payment transactions

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Subscription plans
    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("plan_name", sa.String(100), nullable=False),
        sa.Column("plan_description", sa.Text(), nullable=True),
        sa.Column("plan_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("features", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_subscription_plans"),
        sa.UniqueConstraint("plan_name", name="uq_subscription_plans_plan_name"),
    )

    # User subscriptions
    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("plan_id", sa.Uuid(), nullable=True),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("razorpay_subscription_id", sa.String(255), nullable=True),
        sa.Column("current_billing_cycle_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_billing_cycle_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_renewal_enabled", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_user_subscriptions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_user_subscriptions_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["plan_id"], ["subscription_plans.id"],
            name="fk_user_subscriptions_plan_id_subscription_plans",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "subscription_status IN ('pending', 'active', 'cancelled')",
            name="ck_user_subscriptions_status",
        ),
    )
    op.create_index("ix_user_subscriptions_user_id", "user_subscriptions", ["user_id"])
    op.create_index(
        "ix_user_subscriptions_razorpay_subscription_id",
        "user_subscriptions",
        ["razorpay_subscription_id"],
    )

    # Payment transactions
    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("subscription_id", sa.Uuid(), nullable=False),
        sa.Column("razorpay_payment_id", sa.String(255), nullable=True),
        sa.Column("razorpay_order_id", sa.String(255), nullable=True),
        sa.Column("amount_paid", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("transaction_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_payment_transactions"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_payment_transactions_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subscription_id"], ["user_subscriptions.id"],
            name="fk_payment_transactions_subscription_id_user_subscriptions",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_payment_transactions_user_id", "payment_transactions", ["user_id"])
    op.create_index("ix_payment_transactions_subscription_id", "payment_transactions", ["subscription_id"])


def downgrade() -> None:
    op.drop_table("payment_transactions")
    op.drop_table("user_subscriptions")
    op.drop_table("subscription_plans")
    op.drop_table("users")
