"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for the workout map moderation service:
orgs, locations, event_types, events, events_x_event_types,
users, roles_x_users_x_org, update_requests.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- orgs ---
    op.create_table(
        "orgs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("parent_id", sa.Integer, sa.ForeignKey("orgs.id"), nullable=True),
        sa.Column("org_type", sa.String(10), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("default_location_id", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_orgs_parent_id", "orgs", ["parent_id"])

    # --- locations ---
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("orgs.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("address_street", sa.String(255), nullable=True),
        sa.Column("address_street2", sa.String(255), nullable=True),
        sa.Column("address_city", sa.String(100), nullable=True),
        sa.Column("address_state", sa.String(100), nullable=True),
        sa.Column("address_zip", sa.String(20), nullable=True),
        sa.Column("address_country", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_locations_org_id", "locations", ["org_id"])

    # --- event_types ---
    op.create_table(
        "event_types",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("orgs.id"), nullable=False),
        sa.Column("location_id", sa.Integer, sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("day_of_week", sa.String(10), nullable=True),
        sa.Column("start_time", sa.String(4), nullable=True),
        sa.Column("end_time", sa.String(4), nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("recurrence_pattern", sa.String(20), nullable=True, server_default="weekly"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_events_org_id", "events", ["org_id"])
    op.create_index("ix_events_location_id", "events", ["location_id"])

    # --- events_x_event_types ---
    op.create_table(
        "events_x_event_types",
        sa.Column("event_id", sa.Integer, sa.ForeignKey("events.id"), primary_key=True),
        sa.Column("event_type_id", sa.Integer, sa.ForeignKey("event_types.id"), primary_key=True),
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("f3_name", sa.String(100), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- roles_x_users_x_org ---
    op.create_table(
        "roles_x_users_x_org",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("orgs.id"), primary_key=True),
        sa.Column("role_name", sa.String(10), primary_key=True),
    )

    # --- update_requests ---
    op.create_table(
        "update_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("request_type", sa.String(40), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("submitted_by", sa.String(255), nullable=False),
        sa.Column("region_id", sa.Integer, sa.ForeignKey("orgs.id"), nullable=False),
        sa.Column("ao_id", sa.Integer, nullable=True),
        sa.Column("location_id", sa.Integer, nullable=True),
        sa.Column("event_id", sa.Integer, nullable=True),
        sa.Column("meta", sa.JSON, nullable=False),
        sa.Column("current_values", sa.JSON, nullable=True),
        sa.Column("event_name", sa.String(255), nullable=True),
        sa.Column("event_description", sa.String(1000), nullable=True),
        sa.Column("event_day_of_week", sa.String(10), nullable=True),
        sa.Column("event_start_time", sa.String(4), nullable=True),
        sa.Column("event_end_time", sa.String(4), nullable=True),
        sa.Column("event_start_date", sa.Date, nullable=True),
        sa.Column("event_type_ids", sa.JSON, nullable=True),
        sa.Column("ao_name", sa.String(255), nullable=True),
        sa.Column("ao_logo", sa.String(500), nullable=True),
        sa.Column("ao_website", sa.String(500), nullable=True),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("location_description", sa.String(1000), nullable=True),
        sa.Column("location_lat", sa.Float, nullable=True),
        sa.Column("location_lng", sa.Float, nullable=True),
        sa.Column("location_address", sa.String(255), nullable=True),
        sa.Column("location_address2", sa.String(255), nullable=True),
        sa.Column("location_city", sa.String(100), nullable=True),
        sa.Column("location_state", sa.String(100), nullable=True),
        sa.Column("location_zip", sa.String(20), nullable=True),
        sa.Column("location_country", sa.String(100), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(255), nullable=True),
    )
    op.create_index("ix_update_requests_status", "update_requests", ["status"])
    op.create_index("ix_update_requests_region_id", "update_requests", ["region_id"])
    op.create_index("ix_update_requests_event_id", "update_requests", ["event_id"])


def downgrade() -> None:
    op.drop_table("update_requests")
    op.drop_table("roles_x_users_x_org")
    op.drop_table("users")
    op.drop_table("events_x_event_types")
    op.drop_table("events")
    op.drop_table("event_types")
    op.drop_table("locations")
    op.drop_table("orgs")
