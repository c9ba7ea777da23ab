"""Tests for ServiceResult and the telemetry decorators."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rentalctl.domain.errors import ScheduleConflictError
from rentalctl.infrastructure.store import Store
from rentalctl.services.rental import RentalService
from rentalctl.services.result import ServiceError, ServiceResult
from rentalctl.services.telemetry import (
    disable_telemetry,
    enable_telemetry,
    trace_span,
    traced,
)
from tests.conftest import add_equipment, add_member


class TestServiceResult:
    def test_failure_carries_error_detail(self) -> None:
        exc = ScheduleConflictError("eqp_000000000001", ["rsv_000000000001"])
        result = ServiceResult.failure("create_rental", exc, ["note"])
        assert not result.ok
        assert result.warnings == ["note"]
        assert result.error == ServiceError(
            code="SCHEDULE_CONFLICT",
            message=str(exc),
            detail={
                "kind": "conflict",
                "id": "eqp_000000000001",
                "conflicts": ["rsv_000000000001"],
            },
        )
        assert result.error.kind == "conflict"

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="x")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


@traced
def _sample() -> ServiceResult:
    with trace_span("inner") as span:
        if span is not None:
            span.annotate("rows", 3)
    return ServiceResult(ok=True, op="sample")


class TestTelemetry:
    def test_disabled_adds_nothing(self) -> None:
        assert _sample().meta is None

    def test_enabled_records_span_tree(self) -> None:
        enable_telemetry()
        try:
            meta = _sample().meta
        finally:
            disable_telemetry()
        assert meta is not None
        telemetry = meta["telemetry"]
        assert telemetry["name"] == "_sample"
        [child] = telemetry["children"]
        assert child["name"] == "inner"
        assert child["annotations"] == {"rows": 3}
        assert child["duration_ms"] >= 0

    def test_service_payment_span(self, store: Store) -> None:
        member = add_member(store)
        eq = add_equipment(store)
        enable_telemetry()
        result = RentalService(store).create_rental(
            member_id=member["id"], equipment_id=eq["id"], days=1
        )
        disable_telemetry()
        assert result.meta is not None
        names = [c["name"] for c in result.meta["telemetry"].get("children", [])]
        assert "payment" in names
