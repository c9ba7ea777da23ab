"""EventService — inspection and retry of the plugin event outbox."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from rentalctl.plugins.event_bus import STATUS_DEAD_LETTER, STATUS_FAILED
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import traced

if TYPE_CHECKING:
    from rentalctl.plugins.event_bus import EventBus

log = structlog.get_logger(__name__)


class EventService(BaseService):
    """Outbox status and manual drain."""

    @traced
    def status(self) -> ServiceResult:
        """Entries per status plus the loaded plugins."""
        bus = self._require_bus()
        counts = bus.counts()
        warnings: list[str] = []
        if counts.get(STATUS_DEAD_LETTER):
            warnings.append(f"{counts[STATUS_DEAD_LETTER]} event(s) dead-lettered")
        return ServiceResult(
            ok=True,
            op="event_status",
            data={
                "counts": counts,
                "total": sum(counts.values()),
                "plugins": bus.plugin_manager.list_plugin_names(),
            },
            warnings=warnings,
        )

    @traced
    def drain(self) -> ServiceResult:
        """Retry every pending or failed event inline."""
        bus = self._require_bus()
        results = bus.drain()
        still_failing = [r for r in results if r["status"] in (STATUS_FAILED, STATUS_DEAD_LETTER)]
        log.info("events.drained", retried=len(results), failing=len(still_failing))
        return ServiceResult(
            ok=True,
            op="drain_events",
            data={"items": results, "count": len(results), "failing": len(still_failing)},
            warnings=[
                f"event {r['id']} ({r['hook_name']}) is {r['status']}" for r in still_failing
            ],
        )

    def _require_bus(self) -> EventBus:
        bus = self._store.event_bus
        if bus is None:
            bus = self._store.init_event_bus(sync=True)
        return bus
