"""Outbox-backed domain event publisher.

Each :class:`~rentalctl.domain.events.DomainEvent` is appended to the
``event_wal`` table first and only then handed to the plugin hook named by
its ``hook_name``, on a worker thread or inline with ``sync=True``.  An event
whose hooks raise stays in the table as ``failed`` and is picked up again by
:meth:`EventBus.drain`; after ``max_retries`` attempts it becomes
``dead_letter`` and is never retried.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from rentalctl.domain.dates import to_iso, utc_now
from rentalctl.infrastructure.database.schema import event_wal

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from rentalctl.domain.events import DomainEvent
    from rentalctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_DEAD_LETTER = "dead_letter"

RETRYABLE_STATUSES = (STATUS_PENDING, STATUS_FAILED)


class EventBus:
    """Publishes domain events to pluggy hooks through the ``event_wal`` outbox.

    Parameters:
        engine: Engine whose database holds ``event_wal``.
        plugin_manager: PluginManager providing the hook relay.
        sync: Run hooks inline instead of on the thread pool (``--sync``).
        max_retries: Attempts before an event is dead-lettered.
        max_workers: Thread pool size.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 2,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._sync = sync
        self._max_retries = max_retries
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: list[Future[None]] = []

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def publish(self, event: DomainEvent) -> int:
        """Record *event* in the outbox, then run its hook.

        Returns the outbox row id.
        """
        payload = event.payload()
        row_id = self._append(event, payload)

        if self._executor is None:
            self._run_hook(row_id, event.hook_name, payload)
        else:
            future = self._executor.submit(self._run_hook, row_id, event.hook_name, payload)
            self._futures.append(future)
        return row_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry every pending or failed event inline.

        Waits for in-flight hooks first.  Returns ``{id, event_type,
        hook_name, status}`` for each retried event, in outbox order.
        """
        self._wait_futures()

        with self._engine.connect() as conn:
            rows = conn.execute(
                select(
                    event_wal.c.id,
                    event_wal.c.event_type,
                    event_wal.c.hook_name,
                    event_wal.c.payload,
                )
                .where(event_wal.c.status.in_(RETRYABLE_STATUSES))
                .order_by(event_wal.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            status = self._run_hook(row.id, row.hook_name, json.loads(row.payload))
            results.append(
                {
                    "id": row.id,
                    "event_type": row.event_type,
                    "hook_name": row.hook_name,
                    "status": status,
                }
            )
        return results

    def counts(self) -> dict[str, int]:
        """Number of outbox entries per status."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.status, func.count()).group_by(event_wal.c.status)
            ).fetchall()
        return {status: n for status, n in rows}

    def shutdown(self) -> None:
        """Wait for in-flight hooks and stop the thread pool."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, event: DomainEvent, payload: dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_wal).values(
                    event_id=event.event_id,
                    event_type=event.event_type,
                    aggregate_id=event.aggregate_id,
                    hook_name=event.hook_name,
                    payload=json.dumps(payload),
                    status=STATUS_PENDING,
                    retries=0,
                    created=to_iso(event.occurred_at),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _run_hook(self, row_id: int, hook_name: str, payload: dict[str, Any]) -> str:
        """Call the hook for one outbox row and record the outcome."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return self._mark_completed(row_id)

        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Plugin hook %s failed: %s", hook_name, exc)
            return self._mark_failed(row_id, str(exc))
        return self._mark_completed(row_id)

    def _mark_completed(self, row_id: int) -> str:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == row_id)
                .values(status=STATUS_COMPLETED, error=None, completed=to_iso(utc_now()))
            )
        return STATUS_COMPLETED

    def _mark_failed(self, row_id: int, error: str) -> str:
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == row_id)
            ).scalar_one()
            retries += 1
            status = STATUS_DEAD_LETTER if retries >= self._max_retries else STATUS_FAILED
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == row_id)
                .values(
                    status=status,
                    error=error,
                    retries=retries,
                    completed=to_iso(utc_now()) if status == STATUS_DEAD_LETTER else None,
                )
            )
        if status == STATUS_DEAD_LETTER:
            logger.warning("Event %d dead-lettered after %d attempts", row_id, retries)
        return status

    def _wait_futures(self) -> None:
        for future in self._futures:
            try:
                future.result(timeout=30)
            except Exception:
                logger.debug("In-flight hook did not finish cleanly", exc_info=True)
        self._futures.clear()
