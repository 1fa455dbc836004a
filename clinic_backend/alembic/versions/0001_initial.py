"""initial clinic schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01 00:00:00
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "clinic_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_minutes", sa.Integer(), nullable=False, server_default=sa.text("15")),
        sa.Column("booking_window_days", sa.Integer(), nullable=False, server_default=sa.text("31")),
        sa.Column("workday_start", sa.Text(), nullable=False, server_default=sa.text("'16:00'")),
        sa.Column("workday_end", sa.Text(), nullable=False, server_default=sa.text("'21:00'")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("single", "package", name="service_kind"),
            nullable=False,
            server_default=sa.text("'single'"),
        ),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.Column("supports_ml", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_ml", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("extra_ml_discount_percent", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("description", sa.Text()),
        sa.Column("color_code", sa.Text()),
    )

    op.create_table(
        "service_package_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "package_service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("package_service_id", "service_id"),
    )

    op.create_table(
        "service_promotions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("promo_price", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("starts_at", sa.DateTime()),
        sa.Column("ends_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_price", sa.Integer(), nullable=False),
        sa.Column("total_duration_min", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("cancel_reason", sa.Text()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("starts_at < ends_at", name="bookings_interval_check"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("bookings_employee_starts_idx", "bookings", ["employee_id", "starts_at"])

    op.create_table(
        "booking_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("unit_label", sa.Text(), nullable=False, server_default=sa.text("'kom'")),
        sa.Column("service_name_snapshot", sa.Text(), nullable=False),
        sa.Column("price_snapshot", sa.Integer(), nullable=False),
        sa.Column("regular_price_snapshot", sa.Integer(), nullable=False),
        sa.Column("duration_min_snapshot", sa.Integer(), nullable=False),
        sa.Column("used_promotion", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "source_package_service_id",
            sa.Integer(),
            sa.ForeignKey("services.id", ondelete="SET NULL"),
        ),
    )

    op.create_table(
        "booking_status_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("previous_status", sa.Text()),
        sa.Column("next_status", sa.Text(), nullable=False),
        sa.Column("changed_by_user_id", sa.Integer()),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "booking_blocks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("starts_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("created_by_user_id", sa.Integer()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("starts_at < ends_at", name="booking_blocks_interval_check"),
    )
    op.create_index("booking_blocks_employee_starts_idx", "booking_blocks", ["employee_id", "starts_at"])

    if op.get_bind().dialect.name == "postgresql":
        # Last line of defence against double booking across concurrent writers
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT bookings_no_overlap
            EXCLUDE USING gist (
                employee_id WITH =,
                tsrange(starts_at, ends_at, '[)') WITH &&
            )
            WHERE (status IN ('pending', 'confirmed'))
            """
        )


def downgrade():
    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap")

    op.drop_index("booking_blocks_employee_starts_idx", table_name="booking_blocks")
    op.drop_table("booking_blocks")
    op.drop_table("booking_status_log")
    op.drop_table("booking_items")
    op.drop_index("bookings_employee_starts_idx", table_name="bookings")
    op.drop_index("ix_bookings_user_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("service_promotions")
    op.drop_table("service_package_items")
    op.drop_table("services")
    op.drop_table("clinic_settings")
    op.drop_table("employees")

    if op.get_bind().dialect.name == "postgresql":
        sa.Enum(name="service_kind").drop(op.get_bind(), checkfirst=True)
