"""Shared pytest fixtures and test helpers for rentalctl tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from rentalctl.config.settings import RentalSettings
from rentalctl.infrastructure.notifications import LogNotifier
from rentalctl.infrastructure.store import Store
from rentalctl.services.telemetry import disable_telemetry

# Fixed clock for every service test: a Friday morning.
NOW = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)


def days(n: int | float) -> timedelta:
    return timedelta(days=n)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's RENTALCTL_* environment out of the tests."""
    for var in ("RENTALCTL_CONFIG", "RENTALCTL_DATA_DIR", "RENTALCTL_FEES__LATE_FEE_PER_DAY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """``-v`` in a CLI test switches telemetry on for the whole thread."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> RentalSettings:
    return RentalSettings.from_cli(data_dir=tmp_path / "data")


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest.fixture
def store(settings: RentalSettings, notifier: LogNotifier) -> Iterator[Store]:
    """Store on a temp data dir with an inline (sync) event bus.

    The notifier is the shared ``notifier`` fixture so tests can inspect
    its outbox.
    """
    s = Store(settings, notifier=notifier)
    s.init_event_bus(sync=True)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp dir so the CLI creates an isolated ``.rentalctl/``.

    Use via ``@pytest.mark.usefixtures("_isolated_data_dir")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def add_equipment(store: Store, name: str = "Cordless Drill", **kwargs: Any) -> dict[str, Any]:
    """Register equipment via EquipmentService, asserting success."""
    from rentalctl.services.equipment import EquipmentService

    kwargs.setdefault("category", "tools")
    kwargs.setdefault("daily_rate", "50.00")
    kwargs.setdefault("purchase_date", NOW - days(365))
    result = EquipmentService(store).register_equipment(name=name, **kwargs)
    assert result.ok, result.error
    return result.data["equipment"]


def add_member(
    store: Store, name: str = "Ada Lovelace", email: str | None = None, **kwargs: Any
) -> dict[str, Any]:
    """Register a member via MemberService, asserting success."""
    from rentalctl.services.member import MemberService

    email = email or f"{name.split()[0].lower()}@example.com"
    kwargs.setdefault("join_date", NOW - days(30))
    result = MemberService(store).register_member(name=name, email=email, **kwargs)
    assert result.ok, result.error
    return result.data["member"]


def rent(
    store: Store,
    member_id: str,
    equipment_id: str,
    *,
    n_days: int = 5,
    now: datetime = NOW,
) -> dict[str, Any]:
    """Create a rental via RentalService, asserting success."""
    from rentalctl.services.rental import RentalService

    result = RentalService(store).create_rental(
        member_id=member_id, equipment_id=equipment_id, days=n_days, now=now
    )
    assert result.ok, result.error
    return result.data["rental"]


def reserve(
    store: Store,
    member_id: str,
    equipment_id: str,
    *,
    start: datetime,
    n_days: int = 3,
    authorize: bool = False,
    now: datetime = NOW,
) -> dict[str, Any]:
    """Create a reservation via ReservationService, asserting success."""
    from rentalctl.services.reservation import ReservationService

    result = ReservationService(store).create_reservation(
        member_id=member_id,
        equipment_id=equipment_id,
        start=start,
        days=n_days,
        authorize=authorize,
        now=now,
    )
    assert result.ok, result.error
    return result.data["reservation"]
