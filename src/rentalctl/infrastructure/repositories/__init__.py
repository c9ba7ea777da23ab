"""SQL repositories — one per aggregate, bound to a single connection.

A repository never opens its own transaction: the caller passes the
connection owned by :meth:`Store.transaction` or :meth:`Store.read`, so
every read and write inside a use case sees one snapshot.
"""

from rentalctl.infrastructure.repositories.assessments import SqlDamageAssessmentRepository
from rentalctl.infrastructure.repositories.equipment import SqlEquipmentRepository
from rentalctl.infrastructure.repositories.members import SqlMemberRepository
from rentalctl.infrastructure.repositories.rentals import SqlRentalRepository
from rentalctl.infrastructure.repositories.reservations import SqlReservationRepository

__all__ = [
    "SqlDamageAssessmentRepository",
    "SqlEquipmentRepository",
    "SqlMemberRepository",
    "SqlRentalRepository",
    "SqlReservationRepository",
]
