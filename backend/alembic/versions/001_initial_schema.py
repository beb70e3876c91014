"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Restaurants (tenants)
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url_name", sa.String(100), unique=True, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=True, index=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Role catalog
    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(50), unique=True, nullable=False, index=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("scope", sa.String(20), nullable=False, server_default="location"),
        sa.Column("is_admin_role", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("can_manage_users", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("can_manage_locations", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("level BETWEEN 1 AND 5", name="ck_roles_level"),
    )

    # Restaurant locations
    op.create_table(
        "restaurant_locations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("restaurant_id", sa.Uuid(), sa.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(15), nullable=True),
        sa.Column("whatsapp", sa.String(15), nullable=True),
        sa.Column("address_zip_code", sa.String(10), nullable=True),
        sa.Column("address_street", sa.String(255), nullable=True),
        sa.Column("address_street_number", sa.String(10), nullable=True),
        sa.Column("address_complement", sa.String(255), nullable=True),
        sa.Column("address_city", sa.String(100), nullable=True),
        sa.Column("address_state", sa.String(50), nullable=True),
        sa.Column("operating_hours", sa.JSON(), nullable=False),
        sa.Column("selected_features", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("restaurant_id", "url_name", name="uq_restaurant_locations_url_name"),
    )
    op.create_index(
        "uq_restaurant_locations_one_primary",
        "restaurant_locations",
        ["restaurant_id"],
        unique=True,
        sqlite_where=sa.text("is_primary = 1"),
        postgresql_where=sa.text("is_primary"),
    )

    # User to location grants
    op.create_table(
        "user_location_assignments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("location_id", sa.Uuid(), sa.ForeignKey("restaurant_locations.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id"), nullable=True, index=True),
        sa.Column("is_primary_location", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("assigned_by", sa.Uuid(), nullable=True),
        sa.Column("kds_stations", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "location_id", name="uq_user_location_assignments_pair"),
    )
    op.create_index(
        "uq_user_location_assignments_one_primary",
        "user_location_assignments",
        ["user_id"],
        unique=True,
        sqlite_where=sa.text("is_primary_location = 1"),
        postgresql_where=sa.text("is_primary_location"),
    )


def downgrade() -> None:
    op.drop_index("uq_user_location_assignments_one_primary", table_name="user_location_assignments")
    op.drop_table("user_location_assignments")
    op.drop_index("uq_restaurant_locations_one_primary", table_name="restaurant_locations")
    op.drop_table("restaurant_locations")
    op.drop_table("roles")
    op.drop_table("users")
    op.drop_table("restaurants")
