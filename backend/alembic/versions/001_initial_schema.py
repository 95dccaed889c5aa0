"""Initial schema: users, auth identities, properties, bookings.

Bookings carry an exclusion constraint so two stays on one property can never
overlap, whatever the application-level checks decide.

Revision ID: 001
Revises: None
Create Date: 2025-05-12
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Needed for "property_id WITH =" inside a GiST exclusion constraint
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    # Local identity provider credentials
    op.create_table(
        "auth_identities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_auth_identities_email", "auth_identities", ["email"], unique=True)

    # Users table (mirror of provider accounts)
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("auth_user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_users_auth_user_id", "users", ["auth_user_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Properties table
    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("availability", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("image_url", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price_per_night > 0", name="check_property_price_positive"),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    # Listings are always served newest first
    op.create_index("ix_properties_created_at", "properties", ["created_at"])
    # Backstop for the service's duplicate-name check (trimmed, case-insensitive)
    op.execute(
        "CREATE UNIQUE INDEX uq_properties_owner_name "
        "ON properties (owner_id, lower(btrim(name)))"
    )

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("property_id", sa.Uuid(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_booking_dates_ordered"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_property_id", "bookings", ["property_id"])
    # Overlap lookups filter on owner column + both dates
    op.create_index("ix_bookings_property_dates", "bookings", ["property_id", "check_in_date", "check_out_date"])
    op.create_index("ix_bookings_user_dates", "bookings", ["user_id", "check_in_date", "check_out_date"])
    # Authoritative overlap guard: half-open [check_in, check_out) per property
    op.execute(
        "ALTER TABLE bookings ADD CONSTRAINT bookings_no_overlap_per_property "
        "EXCLUDE USING gist (property_id WITH =, daterange(check_in_date, check_out_date, '[)') WITH &&)"
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("properties")
    op.drop_table("users")
    op.drop_table("auth_identities")
