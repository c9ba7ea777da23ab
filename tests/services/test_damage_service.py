"""Tests for DamageService."""

from __future__ import annotations

from typing import Any

import pytest

from rentalctl.infrastructure.notifications import LogNotifier
from rentalctl.infrastructure.store import Store
from rentalctl.services.damage import DamageService
from rentalctl.services.rental import RentalService
from tests.conftest import NOW, add_equipment, add_member, days, rent


@pytest.fixture
def svc(store: Store) -> DamageService:
    return DamageService(store)


@pytest.fixture
def returned(store: Store) -> dict[str, Any]:
    eq = add_equipment(store)
    member = add_member(store)
    rental = rent(store, member["id"], eq["id"], n_days=2)
    RentalService(store).return_rental(rental["id"], condition="GOOD", now=NOW + days(2))
    return rental


class TestAssessDamage:
    def test_records_degradation(
        self, store: Store, svc: DamageService, notifier: LogNotifier, returned: dict[str, Any]
    ) -> None:
        notifier.outbox.clear()
        result = svc.assess_damage(
            returned["id"],
            condition_after="POOR",
            assessed_by="Sam",
            notes="cracked housing",
            now=NOW + days(3),
        )
        assert result.ok
        assessment = result.data["assessment"]
        assert assessment["id"].startswith("dmg_")
        assert assessment["condition_before"] == "EXCELLENT"
        assert assessment["condition_after"] == "POOR"
        assert assessment["damage_fee"] == "300.00"
        assert result.data["has_damage"] is True
        assert result.data["degradation_levels"] == 3
        assert [m.kind for m in notifier.outbox] == ["equipment_damaged"]

    def test_no_damage(
        self, svc: DamageService, notifier: LogNotifier, returned: dict[str, Any]
    ) -> None:
        notifier.outbox.clear()
        result = svc.assess_damage(returned["id"], condition_after="GOOD", assessed_by="Sam")
        assert result.data["has_damage"] is False
        assert result.data["assessment"]["damage_fee"] == "0.00"
        assert notifier.outbox == []

    def test_requires_returned_rental(self, store: Store, svc: DamageService) -> None:
        eq = add_equipment(store)
        member = add_member(store)
        rental = rent(store, member["id"], eq["id"])
        result = svc.assess_damage(rental["id"], condition_after="POOR", assessed_by="Sam")
        assert result.error is not None
        assert result.error.code == "INVALID_TRANSITION"
        assert "damage can only be assessed after return" in result.error.message
        assert svc.list_assessments().data["count"] == 0

    def test_unknown_rental(self, svc: DamageService) -> None:
        result = svc.assess_damage("rnt_000000000000", condition_after="POOR", assessed_by="Sam")
        assert result.error is not None
        assert result.error.code == "RENTAL_NOT_FOUND"

    def test_listed_on_rental(
        self, store: Store, svc: DamageService, returned: dict[str, Any]
    ) -> None:
        assessment = svc.assess_damage(
            returned["id"], condition_after="FAIR", assessed_by="Sam"
        ).data["assessment"]
        rental = RentalService(store).get_rental(returned["id"]).data
        assert rental["assessments"] == [assessment["id"]]


class TestQueries:
    def test_list_totals(self, svc: DamageService, returned: dict[str, Any]) -> None:
        svc.assess_damage(returned["id"], condition_after="FAIR", assessed_by="Sam")
        svc.assess_damage(returned["id"], condition_after="DAMAGED", assessed_by="Kim")
        result = svc.list_assessments(rental_id=returned["id"])
        assert result.data["count"] == 2
        assert result.data["total_fees"] == "650.00"
        assert svc.list_assessments(rental_id="rnt_000000000000").data["count"] == 0

    def test_get_and_update_notes(self, svc: DamageService, returned: dict[str, Any]) -> None:
        created = svc.assess_damage(
            returned["id"], condition_after="FAIR", assessed_by="Sam"
        ).data["assessment"]
        updated = svc.update_notes(created["id"], "scratches on the side")
        assert updated.op == "update_assessment_notes"
        assert updated.data["assessment"]["notes"] == "scratches on the side"
        fetched = svc.get_assessment(created["id"]).data["assessment"]
        assert fetched["notes"] == "scratches on the side"

    def test_missing_assessment(self, svc: DamageService) -> None:
        for result in (svc.get_assessment("dmg_000000000000"), svc.update_notes("dmg_x", "n")):
            assert result.error is not None
            assert result.error.code == "ASSESSMENT_NOT_FOUND"
