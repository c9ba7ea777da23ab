"""SQLite database engine and schema via SQLAlchemy Core."""

from rentalctl.infrastructure.database.engine import create_db_engine, init_database
from rentalctl.infrastructure.database.schema import (
    damage_assessments,
    equipment,
    event_wal,
    members,
    metadata,
    payment_metadata,
    payment_transactions,
    rentals,
    reservations,
)

__all__ = [
    "create_db_engine",
    "damage_assessments",
    "equipment",
    "event_wal",
    "init_database",
    "members",
    "metadata",
    "payment_metadata",
    "payment_transactions",
    "rentals",
    "reservations",
]
