"""SQLAlchemy Core table definitions for the rental database.

Money columns hold integer cents.  Instants are fixed-width ISO-8601 UTC
text (see :func:`rentalctl.domain.dates.to_iso`), so range predicates such
as ``start_at < :end`` compare correctly as strings.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

equipment = Table(
    "equipment",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("category", Text, nullable=False),
    Column("daily_rate_cents", Integer, nullable=False),
    Column("condition", Text, nullable=False),
    Column("is_available", Integer, nullable=False),
    Column("current_rental_id", Text),
    Column("purchase_date", Text, nullable=False),
    Column("last_maintenance_date", Text),
)

members = Table(
    "members",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True),
    Column("tier", Text, nullable=False),
    Column("join_date", Text, nullable=False),
    Column("active_rental_count", Integer, nullable=False, server_default="0"),
    Column("total_rentals", Integer, nullable=False, server_default="0"),
    Column("is_active", Integer, nullable=False, server_default="1"),
)

rentals = Table(
    "rentals",
    metadata,
    Column("id", Text, primary_key=True),
    Column("equipment_id", Text, ForeignKey("equipment.id"), nullable=False),
    Column("member_id", Text, ForeignKey("members.id"), nullable=False),
    Column("start_at", Text, nullable=False),
    Column("end_at", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("base_cost_cents", Integer, nullable=False),
    Column("total_cost_cents", Integer, nullable=False),
    Column("late_fee_cents", Integer, nullable=False, server_default="0"),
    Column("damage_fee_cents", Integer, nullable=False, server_default="0"),
    Column("condition_at_start", Text, nullable=False),
    Column("condition_at_return", Text),
    Column("created_at", Text, nullable=False),
    Column("returned_at", Text),
    Column("cancelled_at", Text),
    Column("transaction_id", Text),
)

reservations = Table(
    "reservations",
    metadata,
    Column("id", Text, primary_key=True),
    Column("equipment_id", Text, ForeignKey("equipment.id"), nullable=False),
    Column("member_id", Text, ForeignKey("members.id"), nullable=False),
    Column("start_at", Text, nullable=False),
    Column("end_at", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("confirmed_at", Text),
    Column("cancelled_at", Text),
    Column("fulfilled_at", Text),
    Column("expired_at", Text),
    Column("cancellation_reason", Text),
    Column("authorization_id", Text),
    Column("rental_id", Text),
)

damage_assessments = Table(
    "damage_assessments",
    metadata,
    Column("id", Text, primary_key=True),
    Column("rental_id", Text, ForeignKey("rentals.id"), nullable=False),
    Column("equipment_id", Text, ForeignKey("equipment.id"), nullable=False),
    Column("condition_before", Text, nullable=False),
    Column("condition_after", Text, nullable=False),
    Column("damage_fee_cents", Integer, nullable=False),
    Column("notes", Text, nullable=False, server_default=""),
    Column("assessed_by", Text, nullable=False),
    Column("assessed_at", Text, nullable=False),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Text, nullable=False, unique=True),
    Column("event_type", Text, nullable=False),
    Column("aggregate_id", Text, nullable=False),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# --- Indexes ---

Index("ix_equipment_category", equipment.c.category)
Index("ix_rentals_equipment_status", rentals.c.equipment_id, rentals.c.status)
Index("ix_rentals_member", rentals.c.member_id)
Index("ix_rentals_status_end", rentals.c.status, rentals.c.end_at)
Index("ix_reservations_equipment_status", reservations.c.equipment_id, reservations.c.status)
Index("ix_reservations_member", reservations.c.member_id)
Index("ix_reservations_status_start", reservations.c.status, reservations.c.start_at)
Index("ix_damage_assessments_rental", damage_assessments.c.rental_id)
Index("ix_event_wal_status", event_wal.c.status)

# --- Payment ledger (separate database file, owned by the ledger gateway) ---

payment_metadata = MetaData()

payment_transactions = Table(
    "payment_transactions",
    payment_metadata,
    Column("id", Text, primary_key=True),
    Column("kind", Text, nullable=False),  # charge | authorization
    Column("status", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("amount_cents", Integer, nullable=False),
    Column("method", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("rental_id", Text),
    Column("error", Text),
    Column("created", Text, nullable=False),
    Column("updated", Text, nullable=False),
)
