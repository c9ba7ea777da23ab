"""Tests for EventBus — outbox writes, hook dispatch, retries and dead letters."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import select

from rentalctl.domain.events import RentalOverdue
from rentalctl.infrastructure.database.schema import event_wal
from rentalctl.infrastructure.store import Store
from rentalctl.plugins.event_bus import EventBus
from rentalctl.plugins.hookspecs import hookimpl
from rentalctl.plugins.manager import PluginManager
from tests.conftest import add_equipment, add_member, rent


class RecordingPlugin:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def rental_created(self, rental_id: str, total_cost: str) -> None:
        self.calls.append(("rental_created", {"rental_id": rental_id, "total_cost": total_cost}))

    @hookimpl
    def rental_overdue(self, rental_id: str, days_overdue: int, late_fee: str) -> None:
        self.calls.append(
            ("rental_overdue", {"rental_id": rental_id, "days": days_overdue, "fee": late_fee})
        )


class FailingPlugin:
    @hookimpl
    def rental_overdue(self, rental_id: str) -> None:
        raise RuntimeError(f"cannot handle {rental_id}")


def _overdue_event() -> RentalOverdue:
    return RentalOverdue(
        rental_id="rnt_000000000001",
        member_id="mbr_000000000001",
        equipment_id="eqp_000000000001",
        days_overdue=2,
        late_fee=Decimal("20.00"),
    )


def _bus(store: Store, *plugins: object, sync: bool = True) -> EventBus:
    pm = PluginManager()
    for plugin in plugins:
        pm.register_plugin(plugin)
    return EventBus(store.engine, pm, sync=sync)


class TestPublish:
    def test_hook_receives_json_payload(self, store: Store) -> None:
        recorder = RecordingPlugin()
        bus = _bus(store, recorder)
        row_id = bus.publish(_overdue_event())
        assert recorder.calls == [
            ("rental_overdue", {"rental_id": "rnt_000000000001", "days": 2, "fee": "20.00"})
        ]
        with store.engine.connect() as conn:
            row = conn.execute(select(event_wal).where(event_wal.c.id == row_id)).one()
        assert row.status == "completed"
        assert row.event_type == "RentalOverdue"
        assert row.aggregate_id == "rnt_000000000001"

    def test_unimplemented_hook_completes(self, store: Store) -> None:
        bus = _bus(store)
        bus.publish(_overdue_event())
        assert bus.counts() == {"completed": 1}

    def test_service_events_reach_plugins(self, store: Store) -> None:
        recorder = RecordingPlugin()
        assert store.event_bus is not None
        store.event_bus.plugin_manager.register_plugin(recorder, "recorder")
        eq = add_equipment(store)
        member = add_member(store)
        rental = rent(store, member["id"], eq["id"], n_days=5)
        assert recorder.calls == [
            ("rental_created", {"rental_id": rental["id"], "total_cost": "250.00"})
        ]

    def test_background_dispatch(self, store: Store) -> None:
        recorder = RecordingPlugin()
        bus = _bus(store, recorder, sync=False)
        bus.publish(_overdue_event())
        bus.shutdown()
        assert len(recorder.calls) == 1
        assert bus.counts() == {"completed": 1}


class TestRetries:
    def test_failure_is_recorded_not_raised(self, store: Store) -> None:
        bus = _bus(store, FailingPlugin())
        bus.publish(_overdue_event())
        assert bus.counts() == {"failed": 1}

    def test_dead_letter_after_max_retries(self, store: Store) -> None:
        bus = _bus(store, FailingPlugin())
        bus.publish(_overdue_event())
        assert [r["status"] for r in bus.drain()] == ["failed"]
        assert [r["status"] for r in bus.drain()] == ["dead_letter"]
        assert bus.drain() == []
        assert bus.counts() == {"dead_letter": 1}
        with store.engine.connect() as conn:
            row = conn.execute(select(event_wal)).one()
        assert row.retries == 3
        assert "cannot handle" in row.error

    def test_drain_recovers_once_plugin_is_fixed(self, store: Store) -> None:
        failing = FailingPlugin()
        bus = _bus(store, failing)
        bus.publish(_overdue_event())
        bus.plugin_manager.unregister(failing)
        [result] = bus.drain()
        assert result["status"] == "completed"
        assert result["hook_name"] == "rental_overdue"
        assert result["event_type"] == "RentalOverdue"

    def test_counts_by_status(self, store: Store) -> None:
        bus = _bus(store, FailingPlugin())
        bus.publish(_overdue_event())
        bus.publish(_overdue_event())
        assert bus.counts() == {"failed": 2}
