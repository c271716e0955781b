"""initial schema

Kullanıcılar, push kimlik bilgileri, abonelikler, bildirimler ve onay süreçleri.

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "user_credentials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("public_key", sa.String(), nullable=False),
        sa.Column("private_key", sa.String(), nullable=False),
        sa.Column("push_token", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_credentials_email", "user_credentials", ["email"], unique=True)
    op.create_index("ix_user_credentials_push_token", "user_credentials", ["push_token"], unique=True)

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("device_fingerprint", sa.String(), nullable=False),
        sa.Column("subscription", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_email", "device_fingerprint", name="uq_subscription_device"),
    )
    op.create_index("ix_subscriptions_user_email", "subscriptions", ["user_email"])
    op.create_index("ix_subscriptions_device_fingerprint", "subscriptions", ["device_fingerprint"])

    op.create_table(
        "push_notifications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("group", sa.String(), nullable=True),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("icon_url", sa.String(), nullable=True),
        sa.Column("extra", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_push_notifications_user_email", "push_notifications", ["user_email"])
    op.create_index("ix_push_notifications_created_at", "push_notifications", ["created_at"])

    op.create_table(
        "approval_processes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("notification_id", sa.String(), sa.ForeignKey("push_notifications.id"), nullable=False),
        sa.Column("webhook_url", sa.String(), nullable=False),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False, server_default="pending"),
        sa.Column("claim_id", sa.String(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_approval_processes_notification_id", "approval_processes", ["notification_id"], unique=True)
    op.create_index("ix_approval_processes_user_email", "approval_processes", ["user_email"])
    op.create_index("ix_approval_processes_state", "approval_processes", ["state"])


def downgrade() -> None:
    op.drop_table("approval_processes")
    op.drop_table("push_notifications")
    op.drop_table("subscriptions")
    op.drop_table("user_credentials")
    op.drop_table("user")
