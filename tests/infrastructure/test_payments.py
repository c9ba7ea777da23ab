"""Tests for LedgerPaymentGateway: charges, voids, holds, captures, refunds."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from rentalctl.domain.money import Money
from rentalctl.domain.ports import PaymentMethod, PaymentResult, PaymentStatus
from rentalctl.infrastructure.payments import LedgerPaymentGateway

CARD = PaymentMethod.CREDIT_CARD


@pytest.fixture
def gateway(tmp_path: Path) -> Iterator[LedgerPaymentGateway]:
    gw = LedgerPaymentGateway(tmp_path / "ledger" / "payments.db")
    try:
        yield gw
    finally:
        gw.dispose()


def _charge(gw: LedgerPaymentGateway, amount: str = "50.00") -> PaymentResult:
    return gw.process_payment(
        member_id="mbr_000000000001", amount=Money.of(amount), method=CARD, description="test"
    )


def _hold(gw: LedgerPaymentGateway, amount: str = "100.00") -> PaymentResult:
    return gw.authorize_payment(member_id="mbr_000000000001", amount=Money.of(amount), method=CARD)


class TestCharge:
    def test_success_is_recorded(self, gateway: LedgerPaymentGateway) -> None:
        result = _charge(gateway)
        assert result.succeeded
        assert result.transaction_id.startswith("txn_")
        details = gateway.get_payment_details(result.transaction_id)
        assert details is not None
        assert details.amount == Money.of("50.00")
        assert details.metadata["kind"] == "charge"

    def test_decline(self, tmp_path: Path) -> None:
        gw = LedgerPaymentGateway(tmp_path / "p.db", decline=True)
        result = _charge(gw)
        assert result.status is PaymentStatus.FAILED
        assert result.transaction_id.startswith("failed_")
        assert gw.get_payment_details(result.transaction_id) is None
        gw.dispose()

    def test_pend_leaves_charge_unsettled(self, tmp_path: Path) -> None:
        gw = LedgerPaymentGateway(tmp_path / "p.db", pend=True)
        result = _charge(gw)
        assert result.status is PaymentStatus.PENDING
        assert not result.succeeded
        gw.dispose()

    def test_void_pending_charge(self, tmp_path: Path) -> None:
        gw = LedgerPaymentGateway(tmp_path / "p.db", pend=True)
        charge = _charge(gw)
        voided = gw.cancel_payment(charge.transaction_id)
        assert voided.status is PaymentStatus.CANCELLED
        details = gw.get_payment_details(charge.transaction_id)
        assert details is not None
        assert details.status is PaymentStatus.CANCELLED
        assert gw.cancel_payment(charge.transaction_id).status is PaymentStatus.FAILED
        gw.dispose()

    def test_cannot_void_settled_charge(self, gateway: LedgerPaymentGateway) -> None:
        charge = _charge(gateway)
        result = gateway.cancel_payment(charge.transaction_id)
        assert result.status is PaymentStatus.FAILED
        details = gateway.get_payment_details(charge.transaction_id)
        assert details is not None
        assert details.status is PaymentStatus.SUCCESS

    def test_cannot_void_a_hold(self, gateway: LedgerPaymentGateway) -> None:
        hold = _hold(gateway)
        assert gateway.cancel_payment(hold.transaction_id).status is PaymentStatus.FAILED
        assert gateway.capture_payment(hold.transaction_id, Money.of("5.00")).succeeded


class TestAuthorization:
    def test_hold_then_capture(self, gateway: LedgerPaymentGateway) -> None:
        hold = _hold(gateway)
        assert hold.transaction_id.startswith("auth_")
        assert hold.is_hold
        captured = gateway.capture_payment(hold.transaction_id, Money.of("80.00"))
        assert captured.status is PaymentStatus.SUCCESS
        assert captured.amount == Money.of("80.00")

    def test_capture_more_than_held_fails(self, gateway: LedgerPaymentGateway) -> None:
        hold = _hold(gateway, "10.00")
        result = gateway.capture_payment(hold.transaction_id, Money.of("10.01"))
        assert result.status is PaymentStatus.FAILED
        assert "exceeds" in (result.error_message or "")

    def test_resolved_exactly_once(self, gateway: LedgerPaymentGateway) -> None:
        hold = _hold(gateway)
        assert gateway.cancel_authorization(hold.transaction_id).status is PaymentStatus.CANCELLED
        again = gateway.capture_payment(hold.transaction_id, Money.of("1.00"))
        assert again.status is PaymentStatus.FAILED
        assert gateway.cancel_authorization(hold.transaction_id).status is PaymentStatus.FAILED

    def test_cannot_capture_a_charge(self, gateway: LedgerPaymentGateway) -> None:
        charge = _charge(gateway)
        result = gateway.capture_payment(charge.transaction_id, Money.of("1.00"))
        assert result.status is PaymentStatus.FAILED

    def test_holds_survive_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "p.db"
        first = LedgerPaymentGateway(path)
        hold = _hold(first)
        first.dispose()
        second = LedgerPaymentGateway(path)
        assert second.capture_payment(hold.transaction_id, Money.of("100.00")).succeeded
        second.dispose()


class TestRefund:
    def test_refund_settled_charge(self, gateway: LedgerPaymentGateway) -> None:
        charge = _charge(gateway)
        refund = gateway.process_refund(charge.transaction_id, charge.amount, "cancelled")
        assert refund.status is PaymentStatus.REFUNDED

    def test_refund_twice_fails(self, gateway: LedgerPaymentGateway) -> None:
        charge = _charge(gateway)
        gateway.process_refund(charge.transaction_id, charge.amount, "cancelled")
        again = gateway.process_refund(charge.transaction_id, charge.amount, "cancelled")
        assert again.status is PaymentStatus.FAILED

    def test_refund_unknown(self, gateway: LedgerPaymentGateway) -> None:
        result = gateway.process_refund("txn_missing", Money.of("1.00"), "x")
        assert result.status is PaymentStatus.FAILED

    def test_refund_more_than_charged(self, gateway: LedgerPaymentGateway) -> None:
        charge = _charge(gateway, "5.00")
        result = gateway.process_refund(charge.transaction_id, Money.of("6.00"), "x")
        assert result.status is PaymentStatus.FAILED
