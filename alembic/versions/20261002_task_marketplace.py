"""open tasks, task requests, payment ledger, payouts, reviews, messages, support

Revision ID: 20261002_marketplace
Revises: 20261001_initial
Create Date: 2026-10-02 09:00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261002_marketplace"
down_revision = "20261001_initial"
branch_labels = None
depends_on = None

TASK_REQUEST_STATUSES = (
    "pending",
    "Waiting for Payment",
    "Accepted",
    "Declined",
    "paid",
    "Completed",
    "Canceled",
    "Canceled by sender",
    "refunded",
)
OPEN_TASK_STATUSES = ("open", "assigned", "completed", "cancelled")
OFFER_STATUSES = ("pending", "accepted", "rejected")
PAYMENT_STATUSES = ("waiting", "on hold", "pending", "completed", "canceled", "refunded")
PAYOUT_STATUSES = ("waiting", "paid")


def _status(values: tuple[str, ...], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "open_tasks",
        *_base_columns(),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("budget", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("cities.id"), nullable=False),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("status", _status(OPEN_TASK_STATUSES, "open_task_status"), nullable=False),
        sa.CheckConstraint("budget > 0", name="ck_open_tasks_budget_positive"),
    )
    op.create_index("ix_open_tasks_creator_id", "open_tasks", ["creator_id"])
    op.create_index("ix_open_tasks_category_id", "open_tasks", ["category_id"])
    op.create_index("ix_open_tasks_status_created", "open_tasks", ["status", "created_at"])

    op.create_table(
        "open_task_photos",
        *_base_columns(),
        sa.Column("open_task_id", sa.Integer(), sa.ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("photo_url", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_open_task_photos_open_task_id", "open_task_photos", ["open_task_id"])

    op.create_table(
        "open_task_dates",
        *_base_columns(),
        sa.Column("open_task_id", sa.Integer(), sa.ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=20), nullable=False),
    )
    op.create_index("ix_open_task_dates_open_task_id", "open_task_dates", ["open_task_id"])

    op.create_table(
        "open_task_offers",
        *_base_columns(),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("open_tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tasker_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", sa.String(length=20), nullable=False),
        sa.Column("status", _status(OFFER_STATUSES, "open_task_offer_status"), nullable=False),
        sa.UniqueConstraint("task_id", "tasker_id", name="uq_open_task_offers_task_tasker"),
        sa.CheckConstraint("hourly_rate > 0", name="ck_open_task_offers_rate_positive"),
        sa.CheckConstraint("duration > 0", name="ck_open_task_offers_duration_positive"),
    )
    op.create_index("ix_open_task_offers_task_id", "open_task_offers", ["task_id"])
    op.create_index("ix_open_task_offers_tasker_id", "open_task_offers", ["tasker_id"])

    op.create_table(
        "task_requests",
        *_base_columns(),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id", ondelete="SET NULL"), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tasker_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _status(TASK_REQUEST_STATUSES, "task_request_status"), nullable=False),
        sa.Column("is_open_task", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "open_task_id",
            sa.Integer(),
            sa.ForeignKey("open_tasks.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("ix_task_requests_open_task_id", "task_requests", ["open_task_id"])
    op.create_index("ix_task_requests_sender_status", "task_requests", ["sender_id", "status"])
    op.create_index("ix_task_requests_tasker_status", "task_requests", ["tasker_id", "status"])

    op.create_table(
        "task_request_categories",
        sa.Column(
            "task_request_id",
            sa.Integer(),
            sa.ForeignKey("task_requests.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "task_request_availability",
        *_base_columns(),
        sa.Column(
            "task_request_id",
            sa.Integer(),
            sa.ForeignKey("task_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(length=20), nullable=False),
    )
    op.create_index(
        "ix_task_request_availability_task_request_id", "task_request_availability", ["task_request_id"]
    )

    op.create_table(
        "task_request_gallery_images",
        *_base_columns(),
        sa.Column(
            "task_request_id",
            sa.Integer(),
            sa.ForeignKey("task_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_url", sa.String(length=255), nullable=False),
    )
    op.create_index(
        "ix_task_request_gallery_images_task_request_id", "task_request_gallery_images", ["task_request_id"]
    )

    op.create_table(
        "payments",
        *_base_columns(),
        sa.Column(
            "task_request_id",
            sa.Integer(),
            sa.ForeignKey("task_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("status", _status(PAYMENT_STATUSES, "payment_status"), nullable=False),
        sa.Column("is_payment", sa.Boolean(), nullable=False),
        sa.CheckConstraint("amount <> 0", name="ck_payments_amount_non_zero"),
        sa.UniqueConstraint("task_request_id", "is_payment", name="uq_payments_task_direction"),
    )
    op.create_index("ix_payments_task_request_id", "payments", ["task_request_id"])
    op.create_index("ix_payments_stripe_session_id", "payments", ["stripe_session_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_user_status", "payments", ["user_id", "status"])

    op.create_table(
        "payout_requests",
        *_base_columns(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("iban", sa.String(length=64), nullable=False),
        sa.Column("status", _status(PAYOUT_STATUSES, "payout_status"), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_payout_requests_amount_positive"),
    )
    op.create_index("ix_payout_requests_user_id", "payout_requests", ["user_id"])

    op.create_table(
        "reviews",
        *_base_columns(),
        sa.Column(
            "task_request_id",
            sa.Integer(),
            sa.ForeignKey("task_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reviewer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tasker_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("review", sa.Text(), nullable=True),
        sa.UniqueConstraint("task_request_id", name="uq_reviews_task_request_id"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_tasker_id", "reviews", ["tasker_id"])

    op.create_table(
        "messages",
        *_base_columns(),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("seen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_messages_not_self"),
    )
    op.create_index("ix_messages_pair", "messages", ["sender_id", "receiver_id"])
    op.create_index("ix_messages_receiver_seen", "messages", ["receiver_id", "seen"])

    op.create_table(
        "support_tickets",
        *_base_columns(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sender_name", sa.String(length=100), nullable=False),
        sa.Column("sender_surname", sa.String(length=100), nullable=False),
        sa.Column("sender_email", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
    )
    op.create_index("ix_support_tickets_user_id", "support_tickets", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_support_tickets_user_id", table_name="support_tickets")
    op.drop_table("support_tickets")
    op.drop_index("ix_messages_receiver_seen", table_name="messages")
    op.drop_index("ix_messages_pair", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_reviews_tasker_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_payout_requests_user_id", table_name="payout_requests")
    op.drop_table("payout_requests")
    op.drop_index("ix_payments_user_status", table_name="payments")
    op.drop_index("ix_payments_status", table_name="payments")
    op.drop_index("ix_payments_stripe_session_id", table_name="payments")
    op.drop_index("ix_payments_task_request_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_task_request_gallery_images_task_request_id", table_name="task_request_gallery_images")
    op.drop_table("task_request_gallery_images")
    op.drop_index("ix_task_request_availability_task_request_id", table_name="task_request_availability")
    op.drop_table("task_request_availability")
    op.drop_table("task_request_categories")
    op.drop_index("ix_task_requests_tasker_status", table_name="task_requests")
    op.drop_index("ix_task_requests_sender_status", table_name="task_requests")
    op.drop_index("ix_task_requests_open_task_id", table_name="task_requests")
    op.drop_table("task_requests")
    op.drop_index("ix_open_task_offers_tasker_id", table_name="open_task_offers")
    op.drop_index("ix_open_task_offers_task_id", table_name="open_task_offers")
    op.drop_table("open_task_offers")
    op.drop_index("ix_open_task_dates_open_task_id", table_name="open_task_dates")
    op.drop_table("open_task_dates")
    op.drop_index("ix_open_task_photos_open_task_id", table_name="open_task_photos")
    op.drop_table("open_task_photos")
    op.drop_index("ix_open_tasks_status_created", table_name="open_tasks")
    op.drop_index("ix_open_tasks_category_id", table_name="open_tasks")
    op.drop_index("ix_open_tasks_creator_id", table_name="open_tasks")
    op.drop_table("open_tasks")
