import uuid
import sqlalchemy
from sqlalchemy.dialects.postgresql import UUID, JSONB
from datetime import datetime

from core.database import metadata

# Families table
families = sqlalchemy.Table(
    "families",
    metadata,
    sqlalchemy.Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    sqlalchemy.Column("name", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("timezone", sqlalchemy.String(64), nullable=True),
    sqlalchemy.Column("default_handoff_location", sqlalchemy.String(255), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, nullable=True, default=datetime.now),
)

# Users table (guardian profiles)
users = sqlalchemy.Table(
    "users",
    metadata,
    sqlalchemy.Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id")),
    sqlalchemy.Column("first_name", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("last_name", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("email", sqlalchemy.String, unique=True, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, nullable=True, default=datetime.now),
)

# Family members table: guardian membership with role label ('dad', 'mom', ...)
family_members = sqlalchemy.Table(
    "family_members",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("profile_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("parent_label", sqlalchemy.String(32), nullable=False),
    sqlalchemy.Column("role", sqlalchemy.String(32), nullable=True, default="member"),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, nullable=True, default=datetime.now),
    sqlalchemy.UniqueConstraint("family_id", "profile_id", name="unique_family_member"),
)

# Children table
children = sqlalchemy.Table(
    "children",
    metadata,
    sqlalchemy.Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("name", sqlalchemy.String(100), nullable=False),
    sqlalchemy.Column("date_of_birth", sqlalchemy.Date, nullable=True),
    sqlalchemy.Column("current_status", sqlalchemy.String(32), nullable=False, default="unknown"),
    sqlalchemy.Column("current_parent_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    sqlalchemy.Column("status_changed_at", sqlalchemy.DateTime(timezone=True), nullable=True),
    sqlalchemy.Column("status_changed_by", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
)

# Custody cycles table: at most one row per family with valid_until IS NULL
custody_cycles = sqlalchemy.Table(
    "custody_cycles",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("cycle_length", sqlalchemy.Integer, nullable=False, default=14),
    sqlalchemy.Column("cycle_data", JSONB, nullable=False),
    sqlalchemy.Column("valid_from", sqlalchemy.Date, nullable=False),
    sqlalchemy.Column("valid_until", sqlalchemy.Date, nullable=True),
    sqlalchemy.Column("default_handoff_time", sqlalchemy.String(5), nullable=True),  # "HH:MM"
    sqlalchemy.Column("version_number", sqlalchemy.Integer, nullable=False, default=1),
    sqlalchemy.Column("created_by", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, nullable=True, default=datetime.now),
)

# Custody overrides table
custody_overrides = sqlalchemy.Table(
    "custody_overrides",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("from_date", sqlalchemy.Date, nullable=False),
    sqlalchemy.Column("to_date", sqlalchemy.Date, nullable=False),
    sqlalchemy.Column("override_parent", sqlalchemy.String(64), nullable=False),
    sqlalchemy.Column("status", sqlalchemy.String(16), nullable=False, default="pending"),
    sqlalchemy.Column("reason", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("requested_by", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=False),
    sqlalchemy.Column("responded_by", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=True),
    sqlalchemy.Column("responded_at", sqlalchemy.DateTime(timezone=True), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=True, default=datetime.now),
)

# Events table
events = sqlalchemy.Table(
    "events",
    metadata,
    sqlalchemy.Column("id", UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("type", sqlalchemy.String(32), nullable=False, default="manual"),
    sqlalchemy.Column("title", sqlalchemy.String(255), nullable=True),
    sqlalchemy.Column("description", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("start_time", sqlalchemy.DateTime(timezone=True), nullable=False),
    sqlalchemy.Column("end_time", sqlalchemy.DateTime(timezone=True), nullable=True),
    sqlalchemy.Column("all_day", sqlalchemy.Boolean, nullable=True, default=False),
    sqlalchemy.Column("location_name", sqlalchemy.String(255), nullable=True),
    sqlalchemy.Column("status", sqlalchemy.String(32), nullable=False, default="scheduled"),
    sqlalchemy.Column("created_by", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=True),
)

# Event <-> child links
event_children = sqlalchemy.Table(
    "event_children",
    metadata,
    sqlalchemy.Column("event_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    sqlalchemy.Column("child_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("children.id", ondelete="CASCADE"), primary_key=True),
)

# Handoffs table: immutable log of actual transfers
handoffs = sqlalchemy.Table(
    "handoffs",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True, autoincrement=True),
    sqlalchemy.Column("family_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("families.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("child_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("children.id", ondelete="CASCADE"), nullable=False),
    sqlalchemy.Column("from_parent_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=False),
    sqlalchemy.Column("to_parent_id", UUID(as_uuid=True), sqlalchemy.ForeignKey("users.id"), nullable=False),
    sqlalchemy.Column("scheduled_at", sqlalchemy.DateTime(timezone=True), nullable=True),
    sqlalchemy.Column("actual_at", sqlalchemy.DateTime(timezone=True), nullable=False),
    sqlalchemy.Column("items_sent", JSONB, nullable=True),
    sqlalchemy.Column("notes", sqlalchemy.Text, nullable=True),
)
