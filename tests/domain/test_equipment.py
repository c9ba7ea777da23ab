"""Tests for the Equipment entity."""

from datetime import UTC, datetime, timedelta

import pytest

from rentalctl.domain.equipment import Equipment
from rentalctl.domain.errors import (
    EquipmentAlreadyRentedError,
    EquipmentConditionUnacceptableError,
    EquipmentNotRentedError,
    InvalidInputError,
)
from rentalctl.domain.ids import validate_id
from rentalctl.domain.money import Money
from rentalctl.domain.types import EquipmentCondition

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _equipment(**kwargs: object) -> Equipment:
    defaults: dict[str, object] = {
        "name": "Table Saw",
        "category": "tools",
        "daily_rate": Money.of("40.00"),
        "purchase_date": T0,
    }
    defaults.update(kwargs)
    return Equipment.create(**defaults)  # type: ignore[arg-type]


class TestCreate:
    def test_defaults(self) -> None:
        eq = _equipment(name="  Table Saw  ")
        assert validate_id(eq.id, "equipment")
        assert eq.name == "Table Saw"
        assert eq.condition is EquipmentCondition.EXCELLENT
        assert eq.is_available
        assert eq.current_rental_id is None

    def test_unrentable_condition_starts_unavailable(self) -> None:
        eq = _equipment(condition=EquipmentCondition.DAMAGED)
        assert not eq.is_available

    @pytest.mark.parametrize(
        "kwargs",
        [{"name": " "}, {"category": ""}, {"daily_rate": Money.zero()}],
    )
    def test_rejects_invalid(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(InvalidInputError):
            _equipment(**kwargs)

    def test_frozen(self) -> None:
        eq = _equipment()
        with pytest.raises(Exception):
            eq.name = "Other"  # type: ignore[misc]


class TestRentAndReturn:
    def test_mark_as_rented(self) -> None:
        eq = _equipment().mark_as_rented("rnt_000000000001")
        assert not eq.is_available
        assert eq.current_rental_id == "rnt_000000000001"

    def test_cannot_rent_twice(self) -> None:
        eq = _equipment().mark_as_rented("rnt_000000000001")
        with pytest.raises(EquipmentAlreadyRentedError):
            eq.mark_as_rented("rnt_000000000002")

    def test_cannot_rent_unrentable(self) -> None:
        eq = _equipment(condition=EquipmentCondition.POOR)
        with pytest.raises(EquipmentConditionUnacceptableError):
            eq.mark_as_rented("rnt_000000000001")

    def test_return_in_rentable_condition(self) -> None:
        eq = _equipment().mark_as_rented("rnt_000000000001")
        back = eq.mark_as_returned(EquipmentCondition.GOOD)
        assert back.is_available
        assert back.current_rental_id is None
        assert back.condition is EquipmentCondition.GOOD

    def test_return_damaged_stays_unavailable(self) -> None:
        eq = _equipment().mark_as_rented("rnt_000000000001")
        back = eq.mark_as_returned(EquipmentCondition.DAMAGED)
        assert not back.is_available
        assert back.needs_repair

    def test_return_without_rental_raises(self) -> None:
        with pytest.raises(EquipmentNotRentedError):
            _equipment().mark_as_returned(EquipmentCondition.GOOD)


class TestCondition:
    def test_unrentable_forces_unavailable(self) -> None:
        eq = _equipment().update_condition(EquipmentCondition.UNDER_REPAIR)
        assert not eq.is_available

    def test_repair_restores_availability(self) -> None:
        eq = _equipment(condition=EquipmentCondition.DAMAGED)
        assert eq.update_condition(EquipmentCondition.GOOD).is_available

    def test_rentable_condition_keeps_rented_unit_unavailable(self) -> None:
        eq = _equipment().mark_as_rented("rnt_000000000001")
        assert not eq.update_condition(EquipmentCondition.GOOD).is_available


class TestMaintenance:
    def test_due_from_purchase_date(self) -> None:
        eq = _equipment()
        assert eq.next_maintenance_due(90) == T0 + timedelta(days=90)
        assert not eq.needs_maintenance(T0 + timedelta(days=90), 90)
        assert eq.needs_maintenance(T0 + timedelta(days=91), 90)

    def test_due_from_last_service(self) -> None:
        serviced = T0 + timedelta(days=100)
        eq = _equipment().record_maintenance(serviced)
        assert eq.next_maintenance_due(30) == serviced + timedelta(days=30)


class TestPricing:
    def test_rental_cost(self) -> None:
        assert _equipment().calculate_rental_cost(3) == Money.of("120.00")

    def test_rental_cost_needs_positive_days(self) -> None:
        with pytest.raises(InvalidInputError):
            _equipment().calculate_rental_cost(0)

    def test_update_rate(self) -> None:
        assert _equipment().update_daily_rate(Money.of("45")).daily_rate == Money.of("45")
        with pytest.raises(InvalidInputError):
            _equipment().update_daily_rate(Money.zero())
