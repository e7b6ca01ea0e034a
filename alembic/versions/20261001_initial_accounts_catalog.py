"""accounts, catalog, tasker profiles, devices, audit and webhook tables

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01 09:00:00
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("surname", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("profile_photo", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wallet_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wallet_bank_iban", sa.String(length=64), nullable=True),
        sa.Column("current_token", sa.Text(), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("wallet_amount >= 0", name="ck_users_wallet_non_negative"),
    )

    op.create_table(
        "cities",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.UniqueConstraint("name", name="uq_cities_name"),
    )

    op.create_table(
        "categories",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    op.create_table(
        "tasker_profiles",
        *_base_columns(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("profile_photo", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("user_id", name="uq_tasker_profiles_user_id"),
    )

    op.create_table(
        "tasker_profile_categories",
        sa.Column(
            "tasker_profile_id",
            sa.Integer(),
            sa.ForeignKey("tasker_profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "tasker_profile_cities",
        sa.Column(
            "tasker_profile_id",
            sa.Integer(),
            sa.ForeignKey("tasker_profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "tasker_availability",
        *_base_columns(),
        sa.Column(
            "tasker_profile_id",
            sa.Integer(),
            sa.ForeignKey("tasker_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(length=20), nullable=False),
        sa.UniqueConstraint("tasker_profile_id", "date", "time_slot", name="uq_tasker_availability_slot"),
    )
    op.create_index(
        "ix_tasker_availability_tasker_profile_id", "tasker_availability", ["tasker_profile_id"]
    )

    op.create_table(
        "tasker_gallery_images",
        *_base_columns(),
        sa.Column(
            "tasker_profile_id",
            sa.Integer(),
            sa.ForeignKey("tasker_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_url", sa.String(length=255), nullable=False),
    )
    op.create_index(
        "ix_tasker_gallery_images_tasker_profile_id", "tasker_gallery_images", ["tasker_profile_id"]
    )

    op.create_table(
        "user_devices",
        *_base_columns(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("device_token", sa.String(length=512), nullable=False),
        sa.Column("platform", sa.String(length=20), nullable=True),
        sa.UniqueConstraint("device_token", name="uq_user_devices_device_token"),
    )
    op.create_index("ix_user_devices_user_id", "user_devices", ["user_id"])

    op.create_table(
        "audit_logs",
        *_base_columns(),
        sa.Column("actor", sa.String(length=100), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("data_json", sa.JSON(), nullable=False),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity", "entity_id"])

    op.create_table(
        "psp_webhook_events",
        *_base_columns(),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("event_id", sa.String(length=255), nullable=False),
        sa.Column("kind", sa.String(length=100), nullable=False),
        sa.Column("session_id", sa.String(length=255), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_json", sa.JSON(), nullable=False),
        sa.UniqueConstraint("provider", "event_id", name="uq_psp_webhook_events_provider_event_id"),
    )
    op.create_index("ix_psp_webhook_events_kind", "psp_webhook_events", ["kind"])


def downgrade() -> None:
    op.drop_index("ix_psp_webhook_events_kind", table_name="psp_webhook_events")
    op.drop_table("psp_webhook_events")
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_user_devices_user_id", table_name="user_devices")
    op.drop_table("user_devices")
    op.drop_index("ix_tasker_gallery_images_tasker_profile_id", table_name="tasker_gallery_images")
    op.drop_table("tasker_gallery_images")
    op.drop_index("ix_tasker_availability_tasker_profile_id", table_name="tasker_availability")
    op.drop_table("tasker_availability")
    op.drop_table("tasker_profile_cities")
    op.drop_table("tasker_profile_categories")
    op.drop_table("tasker_profiles")
    op.drop_table("categories")
    op.drop_table("cities")
    op.drop_table("users")
