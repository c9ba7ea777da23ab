"""Store — the single dependency injected into every service.

Owns the database engine, the per-equipment locks, and the external
collaborators (payment gateway, notifier, event bus).  Services open a
:meth:`Store.transaction` for every use case that writes:

- **Per-equipment serialization**: an in-process lock keyed by equipment
  id plus a SQLite ``BEGIN IMMEDIATE`` transaction, so the conflict check
  and the write after it are atomic with respect to any other writer.
- **DB**: native SQLAlchemy transaction, committed on success and rolled
  back on any exception.  Nothing a use case wrote survives a failure.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rentalctl.infrastructure.database.engine import BEGIN_MODE_OPTION, init_database
from rentalctl.infrastructure.locks import KeyedLock
from rentalctl.infrastructure.repositories import (
    SqlDamageAssessmentRepository,
    SqlEquipmentRepository,
    SqlMemberRepository,
    SqlRentalRepository,
    SqlReservationRepository,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from rentalctl.config.settings import RentalSettings
    from rentalctl.domain.ports import (
        DamageAssessmentRepository,
        EquipmentRepository,
        MemberRepository,
        Notifier,
        PaymentGateway,
        RentalRepository,
        ReservationRepository,
    )
    from rentalctl.infrastructure.payments import LedgerPaymentGateway
    from rentalctl.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class UnitOfWork:
    """Repositories bound to one connection and one snapshot."""

    conn: Connection
    equipment: EquipmentRepository = field(init=False)
    members: MemberRepository = field(init=False)
    rentals: RentalRepository = field(init=False)
    reservations: ReservationRepository = field(init=False)
    assessments: DamageAssessmentRepository = field(init=False)

    def __post_init__(self) -> None:
        self.equipment = SqlEquipmentRepository(self.conn)
        self.members = SqlMemberRepository(self.conn)
        self.rentals = SqlRentalRepository(self.conn)
        self.reservations = SqlReservationRepository(self.conn)
        self.assessments = SqlDamageAssessmentRepository(self.conn)


class Store:
    """Persistence plus collaborators for the rental engine.

    Created once per CLI invocation (or per test) and handed to services via
    their :class:`BaseService` constructor.
    """

    def __init__(
        self,
        settings: RentalSettings,
        *,
        payments: PaymentGateway | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.data_dir)
        self._locks = KeyedLock()
        self._ledger: LedgerPaymentGateway | None = None
        if payments is None:
            from rentalctl.infrastructure.payments import LedgerPaymentGateway

            self._ledger = LedgerPaymentGateway.from_settings(settings)
            payments = self._ledger
        if notifier is None:
            from rentalctl.infrastructure.notifications import LogNotifier

            notifier = LogNotifier(channel=settings.notifications.channel)
        self._payments = payments
        self._notifier = notifier
        self._event_bus: EventBus | None = None

    @property
    def settings(self) -> RentalSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def payments(self) -> PaymentGateway:
        return self._payments

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False) -> EventBus:
        """Create a PluginManager, load entry-point plugins, and wire the EventBus."""
        from rentalctl.plugins.event_bus import EventBus
        from rentalctl.plugins.manager import PluginManager

        pm = PluginManager()
        if self._settings.plugins.enabled:
            pm.discover_and_load()
        self._event_bus = EventBus(self._engine, pm, sync=sync)
        return self._event_bus

    def close(self) -> None:
        if self._event_bus is not None:
            self._event_bus.shutdown()
        if self._ledger is not None:
            self._ledger.dispose()
        self._engine.dispose()

    @contextmanager
    def transaction(self, *, equipment_id: str | None = None) -> Iterator[UnitOfWork]:
        """Write transaction, serialized per *equipment_id* when given.

        Usage::

            with store.transaction(equipment_id=eid) as uow:
                equipment = uow.equipment.find_by_id(eid)
                ...
                uow.rentals.save(rental)
            # committed here; rolled back if the block raised
        """
        with self._locks.hold(equipment_id), self._engine.connect() as conn:
            conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            with conn.begin():
                yield UnitOfWork(conn)

    @contextmanager
    def read(self) -> Iterator[UnitOfWork]:
        """Read-only snapshot."""
        with self._engine.connect() as conn:
            yield UnitOfWork(conn)
