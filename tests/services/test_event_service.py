"""Tests for EventService — outbox status and drain."""

from __future__ import annotations

from rentalctl.config.settings import RentalSettings
from rentalctl.infrastructure.store import Store
from rentalctl.plugins.hookspecs import hookimpl
from rentalctl.services.events import EventService
from tests.conftest import add_equipment, add_member, rent


class FlakyPlugin:
    def __init__(self) -> None:
        self.broken = True
        self.delivered: list[str] = []

    @hookimpl
    def rental_created(self, rental_id: str) -> None:
        if self.broken:
            raise RuntimeError("downstream unavailable")
        self.delivered.append(rental_id)


class TestEventService:
    def test_status_counts(self, store: Store) -> None:
        rent(store, add_member(store)["id"], add_equipment(store)["id"])
        result = EventService(store).status()
        assert result.op == "event_status"
        assert result.data["counts"] == {"completed": 1}
        assert result.data["total"] == 1
        assert result.warnings == []

    def test_drain_retries_failed(self, store: Store) -> None:
        plugin = FlakyPlugin()
        assert store.event_bus is not None
        store.event_bus.plugin_manager.register_plugin(plugin, "flaky")
        rental = rent(store, add_member(store)["id"], add_equipment(store)["id"])
        svc = EventService(store)
        assert svc.status().data["counts"] == {"failed": 1}
        assert "flaky" in svc.status().data["plugins"]

        plugin.broken = False
        result = svc.drain()
        assert result.op == "drain_events"
        assert result.data["count"] == 1
        assert result.data["failing"] == 0
        assert result.data["items"][0]["status"] == "completed"
        assert plugin.delivered == [rental["id"]]

    def test_dead_letters_are_reported(self, store: Store) -> None:
        assert store.event_bus is not None
        store.event_bus.plugin_manager.register_plugin(FlakyPlugin(), "flaky")
        rent(store, add_member(store)["id"], add_equipment(store)["id"])
        svc = EventService(store)
        svc.drain()
        last = svc.drain()
        assert last.data["failing"] == 1
        assert "dead_letter" in last.warnings[0]
        status = svc.status()
        assert status.data["counts"] == {"dead_letter": 1}
        assert "dead-lettered" in status.warnings[0]

    def test_initializes_bus_on_demand(self, settings: RentalSettings) -> None:
        bare = Store(settings)
        try:
            assert bare.event_bus is None
            result = EventService(bare).status()
            assert result.data["total"] == 0
            assert bare.event_bus is not None
        finally:
            bare.close()
