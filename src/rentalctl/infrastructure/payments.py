"""Local ledger payment gateway.

Records every charge and authorization in its own SQLite file (separate
from the rental database, as a real gateway would be), so holds survive
across CLI invocations and can later be captured, cancelled or refunded.

Authorizations are open holds (PENDING) until resolved exactly once:
``capture_payment`` moves them to SUCCESS, ``cancel_authorization`` to
CANCELLED.  Any call on an already-resolved hold comes back FAILED.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from rentalctl.domain.dates import from_iso, to_iso, utc_now
from rentalctl.domain.money import Money
from rentalctl.domain.ports import PaymentMethod, PaymentResult, PaymentStatus
from rentalctl.infrastructure.database.engine import create_db_engine
from rentalctl.infrastructure.database.schema import payment_metadata, payment_transactions

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from rentalctl.config.settings import RentalSettings

logger = logging.getLogger(__name__)

_KIND_CHARGE = "charge"
_KIND_AUTHORIZATION = "authorization"


class LedgerPaymentGateway:
    """Payment gateway backed by a local transaction ledger.

    Parameters:
        db_path: SQLite file for the ledger.
        decline: Fail every call (simulates a declined card / outage).
        pend: Leave charges PENDING instead of settling them.
    """

    def __init__(self, db_path: Path, *, decline: bool = False, pend: bool = False) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine: Engine = create_db_engine(db_path)
        payment_metadata.create_all(self._engine)
        self.decline = decline
        self.pend = pend

    @classmethod
    def from_settings(cls, settings: RentalSettings) -> LedgerPaymentGateway:
        cfg = settings.payment
        return cls(settings.data_dir / cfg.ledger_file, decline=cfg.decline, pend=cfg.pend)

    # ------------------------------------------------------------------
    # Gateway API
    # ------------------------------------------------------------------

    def process_payment(
        self,
        *,
        member_id: str,
        amount: Money,
        method: PaymentMethod,
        description: str,
        rental_id: str | None = None,
    ) -> PaymentResult:
        """Single-shot charge."""
        if self.decline:
            return self._failed(amount, "Payment declined by processor")
        status = PaymentStatus.PENDING if self.pend else PaymentStatus.SUCCESS
        return self._record(
            kind=_KIND_CHARGE,
            status=status,
            member_id=member_id,
            amount=amount,
            method=method,
            description=description,
            rental_id=rental_id,
        )

    def authorize_payment(
        self,
        *,
        member_id: str,
        amount: Money,
        method: PaymentMethod,
    ) -> PaymentResult:
        """Place a hold for *amount* without capturing it."""
        if self.decline:
            return self._failed(amount, "Authorization declined by processor")
        return self._record(
            kind=_KIND_AUTHORIZATION,
            status=PaymentStatus.PENDING,
            member_id=member_id,
            amount=amount,
            method=method,
            description="Authorization hold",
        )

    def capture_payment(self, authorization_id: str, amount: Money) -> PaymentResult:
        """Capture up to the authorized amount of an open hold."""
        row = self._fetch(authorization_id)
        if row is None or row.kind != _KIND_AUTHORIZATION:
            return self._failed(amount, f"Authorization not found: {authorization_id}")
        if row.status != PaymentStatus.PENDING:
            return self._failed(amount, f"Authorization {authorization_id} is {row.status}")
        if amount.cents > row.amount_cents:
            return self._failed(
                amount,
                f"Capture of {amount} exceeds authorized {Money(row.amount_cents)}",
            )
        if self.decline:
            return self._failed(amount, "Capture declined by processor")
        return self._resolve(
            authorization_id,
            PaymentStatus.SUCCESS,
            amount,
            amount_cents=amount.cents,
        )

    def cancel_authorization(self, authorization_id: str) -> PaymentResult:
        """Release an open hold."""
        row = self._fetch(authorization_id)
        if row is None or row.kind != _KIND_AUTHORIZATION:
            return self._failed(Money.zero(), f"Authorization not found: {authorization_id}")
        if row.status != PaymentStatus.PENDING:
            return self._failed(
                Money(row.amount_cents), f"Authorization {authorization_id} is {row.status}"
            )
        return self._resolve(authorization_id, PaymentStatus.CANCELLED, Money(row.amount_cents))

    def cancel_payment(self, transaction_id: str) -> PaymentResult:
        """Void a charge the processor has not settled yet."""
        row = self._fetch(transaction_id)
        if row is None or row.kind != _KIND_CHARGE:
            return self._failed(Money.zero(), f"Charge not found: {transaction_id}")
        if row.status != PaymentStatus.PENDING:
            return self._failed(
                Money(row.amount_cents), f"Charge {transaction_id} is {row.status}"
            )
        logger.info("Voiding pending charge %s", transaction_id)
        return self._resolve(transaction_id, PaymentStatus.CANCELLED, Money(row.amount_cents))

    def process_refund(self, transaction_id: str, amount: Money, reason: str) -> PaymentResult:
        """Refund a settled charge or captured authorization."""
        row = self._fetch(transaction_id)
        if row is None:
            return self._failed(amount, f"Transaction not found: {transaction_id}")
        if row.status != PaymentStatus.SUCCESS:
            return self._failed(amount, f"Transaction {transaction_id} is {row.status}")
        if amount.cents > row.amount_cents:
            return self._failed(
                amount,
                f"Refund of {amount} exceeds original {Money(row.amount_cents)}",
            )
        logger.info("Refunding %s on %s: %s", amount, transaction_id, reason)
        return self._resolve(
            transaction_id, PaymentStatus.REFUNDED, amount, expected=PaymentStatus.SUCCESS
        )

    def get_payment_details(self, transaction_id: str) -> PaymentResult | None:
        row = self._fetch(transaction_id)
        return _to_result(row) if row is not None else None

    def dispose(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fetch(self, transaction_id: str) -> Any:
        with self._engine.connect() as conn:
            return conn.execute(
                select(payment_transactions).where(payment_transactions.c.id == transaction_id)
            ).first()

    def _record(
        self,
        *,
        kind: str,
        status: PaymentStatus,
        member_id: str,
        amount: Money,
        method: PaymentMethod,
        description: str,
        rental_id: str | None = None,
    ) -> PaymentResult:
        now = to_iso(utc_now())
        prefix = "auth" if kind == _KIND_AUTHORIZATION else "txn"
        transaction_id = f"{prefix}_{uuid.uuid4().hex[:16]}"
        with self._engine.begin() as conn:
            conn.execute(
                insert(payment_transactions).values(
                    id=transaction_id,
                    kind=kind,
                    status=str(status),
                    member_id=member_id,
                    amount_cents=amount.cents,
                    method=str(method),
                    description=description,
                    rental_id=rental_id,
                    created=now,
                    updated=now,
                )
            )
        logger.debug("Recorded %s %s for %s: %s", kind, transaction_id, member_id, status)
        return PaymentResult(
            transaction_id=transaction_id,
            status=status,
            amount=amount,
            processed_at=from_iso(now),
            metadata={"kind": kind, "method": str(method)},
        )

    def _resolve(
        self,
        transaction_id: str,
        status: PaymentStatus,
        amount: Money,
        *,
        expected: PaymentStatus = PaymentStatus.PENDING,
        amount_cents: int | None = None,
    ) -> PaymentResult:
        """Move *transaction_id* from *expected* to *status*, at most once."""
        values: dict[str, Any] = {"status": str(status), "updated": to_iso(utc_now())}
        if amount_cents is not None:
            values["amount_cents"] = amount_cents
        with self._engine.begin() as conn:
            result = conn.execute(
                update(payment_transactions)
                .where(
                    payment_transactions.c.id == transaction_id,
                    payment_transactions.c.status == str(expected),
                )
                .values(**values)
            )
        if result.rowcount == 0:
            return self._failed(amount, f"Transaction {transaction_id} was already resolved")
        return _to_result(self._fetch(transaction_id))

    @staticmethod
    def _failed(amount: Money, message: str) -> PaymentResult:
        logger.warning("Payment failure: %s", message)
        return PaymentResult(
            transaction_id=f"failed_{uuid.uuid4().hex[:16]}",
            status=PaymentStatus.FAILED,
            amount=amount,
            processed_at=utc_now(),
            error_message=message,
        )


def _to_result(row: Any) -> PaymentResult:
    processed_at: datetime = from_iso(row.updated)
    return PaymentResult(
        transaction_id=row.id,
        status=PaymentStatus(row.status),
        amount=Money(row.amount_cents),
        processed_at=processed_at,
        error_message=row.error,
        metadata={"kind": row.kind, "method": row.method},
    )
