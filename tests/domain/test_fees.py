"""Tests for the damage table and late-fee accrual."""

import pytest

from rentalctl.domain.fees import (
    DAMAGE_FEE_TABLE,
    FALLBACK_LATE_FEE_RATE,
    damage_fee,
    degradation_levels,
    late_fee,
)
from rentalctl.domain.money import Money
from rentalctl.domain.types import CONDITION_ORDER, EquipmentCondition

E = EquipmentCondition


class TestDamageFee:
    @pytest.mark.parametrize(
        ("before", "after", "fee"),
        [
            (E.EXCELLENT, E.EXCELLENT, "0"),
            (E.EXCELLENT, E.GOOD, "0"),
            (E.EXCELLENT, E.FAIR, "150"),
            (E.EXCELLENT, E.POOR, "300"),
            (E.EXCELLENT, E.DAMAGED, "500"),
            (E.EXCELLENT, E.UNDER_REPAIR, "500"),
            (E.GOOD, E.DAMAGED, "300"),
            (E.POOR, E.GOOD, "0"),
        ],
    )
    def test_table(self, before: E, after: E, fee: str) -> None:
        assert damage_fee(before, after) == Money.of(fee)

    def test_improvement_counts_as_zero_levels(self) -> None:
        assert degradation_levels(E.DAMAGED, E.EXCELLENT) == 0

    def test_monotonic(self) -> None:
        fees = [damage_fee(E.EXCELLENT, after) for after in CONDITION_ORDER]
        assert fees == sorted(fees)

    def test_table_covers_every_level(self) -> None:
        assert set(DAMAGE_FEE_TABLE) == set(range(len(CONDITION_ORDER)))


class TestLateFee:
    def test_accrues_per_day(self) -> None:
        assert late_fee(FALLBACK_LATE_FEE_RATE, 3) == Money.of("30.00")

    @pytest.mark.parametrize("days_late", [0, -2])
    def test_never_negative(self, days_late: int) -> None:
        assert late_fee(Money.of("25"), days_late) == Money.zero()
