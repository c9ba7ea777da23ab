"""Tests for the Rental entity: fees, extension, cancellation."""

from datetime import UTC, datetime, timedelta

import pytest

from rentalctl.domain.dates import DateRange
from rentalctl.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    RentalAlreadyReturnedError,
)
from rentalctl.domain.lifecycle import RentalStatus
from rentalctl.domain.money import Money
from rentalctl.domain.rental import Rental
from rentalctl.domain.types import EquipmentCondition

T0 = datetime(2026, 5, 1, tzinfo=UTC)
E = EquipmentCondition


def _rental(condition: E = E.EXCELLENT) -> Rental:
    return Rental.create(
        equipment_id="eqp_000000000001",
        member_id="mbr_000000000001",
        period=DateRange.of_days(T0, 5),
        base_cost=Money.of("250.00"),
        condition_at_start=condition,
        now=T0,
    )


def _at(n: float) -> datetime:
    return T0 + timedelta(days=n)


class TestCreate:
    def test_starts_active_with_base_cost(self) -> None:
        r = _rental()
        assert r.status is RentalStatus.ACTIVE
        assert r.total_cost == Money.of("250.00")
        assert r.late_fee == Money.zero()
        assert r.is_live

    def test_rejects_zero_cost(self) -> None:
        with pytest.raises(InvalidInputError):
            Rental.create(
                equipment_id="eqp_000000000001",
                member_id="mbr_000000000001",
                period=DateRange.of_days(T0, 1),
                base_cost=Money.zero(),
                condition_at_start=E.GOOD,
                now=T0,
            )


class TestReturn:
    def test_on_time_no_fees(self) -> None:
        r = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(5))
        assert r.status is RentalStatus.RETURNED
        assert r.total_cost == Money.of("250.00")
        assert r.returned_at == _at(5)

    def test_late_and_damaged(self) -> None:
        r = _rental()
        damage = r.calculate_damage_fee(E.FAIR)
        returned = r.return_rental(E.FAIR, damage, _at(8))
        assert returned.late_fee == Money.of("30.00")
        assert returned.damage_fee == Money.of("150.00")
        assert returned.total_cost == Money.of("430.00")

    def test_partial_late_day_is_not_charged(self) -> None:
        returned = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(5.5))
        assert returned.late_fee == Money.zero()
        returned = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(6.5))
        assert returned.late_fee == Money.of("10.00")

    def test_uses_given_fallback_rate(self) -> None:
        returned = _rental().return_rental(
            E.EXCELLENT, Money.zero(), _at(7), fallback_daily_rate=Money.of("25")
        )
        assert returned.late_fee == Money.of("50.00")

    def test_overdue_keeps_accrued_fee(self) -> None:
        overdue = _rental().mark_as_overdue(Money.of("20"), _at(7))
        returned = overdue.return_rental(E.EXCELLENT, Money.zero(), _at(9))
        assert returned.late_fee == Money.of("40.00")

    def test_double_return_raises(self) -> None:
        returned = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(5))
        with pytest.raises(RentalAlreadyReturnedError):
            returned.return_rental(E.EXCELLENT, Money.zero(), _at(6))

    def test_cancelled_cannot_be_returned(self) -> None:
        with pytest.raises(InvalidTransitionError):
            _rental().cancel(T0).return_rental(E.EXCELLENT, Money.zero(), _at(1))


class TestOverdue:
    def test_mark_as_overdue(self) -> None:
        r = _rental()
        assert not r.is_overdue(_at(5) - timedelta(seconds=1))
        assert r.is_overdue(_at(6))
        overdue = r.mark_as_overdue(Money.of("10"), _at(6))
        assert overdue.status is RentalStatus.OVERDUE
        assert overdue.total_cost == Money.of("260.00")
        assert not overdue.is_overdue(_at(7))

    def test_not_before_end(self) -> None:
        with pytest.raises(InvalidInputError):
            _rental().mark_as_overdue(Money.of("10"), _at(2))

    def test_days_overdue(self) -> None:
        r = _rental()
        assert r.days_overdue(_at(3)) == 0
        assert r.days_overdue(_at(8)) == 3


class TestExtend:
    def test_extend_active(self) -> None:
        r = _rental().extend_period(2, Money.of("100.00"))
        assert r.period.end == _at(7)
        assert r.base_cost == Money.of("350.00")
        assert r.total_cost == Money.of("350.00")
        assert r.duration_days == 7

    def test_extend_overdue_forgives_late_fee(self) -> None:
        overdue = _rental().mark_as_overdue(Money.of("10"), _at(6))
        r = overdue.extend_period(3, Money.of("150.00"))
        assert r.status is RentalStatus.ACTIVE
        assert r.late_fee == Money.zero()
        assert r.total_cost == Money.of("400.00")

    def test_extend_returned_raises(self) -> None:
        returned = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(5))
        with pytest.raises(InvalidTransitionError):
            returned.extend_period(1, Money.of("50"))

    def test_needs_positive_days(self) -> None:
        with pytest.raises(InvalidInputError):
            _rental().extend_period(0, Money.zero())


class TestCancel:
    def test_cancel_zeroes_total(self) -> None:
        r = _rental().cancel(_at(1))
        assert r.status is RentalStatus.CANCELLED
        assert r.total_cost == Money.zero()
        assert not r.is_live

    def test_cannot_cancel_returned(self) -> None:
        returned = _rental().return_rental(E.EXCELLENT, Money.zero(), _at(5))
        with pytest.raises(InvalidTransitionError):
            returned.cancel(_at(6))
