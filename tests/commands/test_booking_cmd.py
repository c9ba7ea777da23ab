"""Tests for the rental, reservation, damage and events command groups."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from rentalctl.cli import cli


def _json(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def _setup(runner: CliRunner, tier: str = "BASIC") -> tuple[str, str]:
    """Register one member and one drill; return their ids."""
    member = _json(runner, "member", "add", "Ada Lovelace", "ada@example.com", "--tier", tier)
    eq = _json(runner, "equipment", "add", "Drill", "--category", "tools", "--rate", "50")
    return member["data"]["member"]["id"], eq["data"]["equipment"]["id"]


@pytest.mark.usefixtures("_isolated_data_dir")
class TestRentalCommands:
    def test_create_and_return(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        created = _json(cli_runner, "rental", "create", mbr, eqp, "--days", "3")
        rental = created["data"]["rental"]
        assert rental["status"] == "ACTIVE"
        assert rental["total_cost"] == "150.00"
        assert created["data"]["payment"]["status"] == "SUCCESS"

        returned = _json(cli_runner, "rental", "return", rental["id"], "--condition", "EXCELLENT")
        assert returned["data"]["rental"]["status"] == "RETURNED"
        assert returned["data"]["rental"]["late_fee"] == "0.00"
        assert returned["data"]["equipment_available"] is True

    def test_equipment_already_rented(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner, tier="GOLD")
        _json(cli_runner, "rental", "create", mbr, eqp, "--days", "2")
        result = cli_runner.invoke(cli, ["rental", "create", mbr, eqp, "--days", "2"])
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_duration_limit(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        result = cli_runner.invoke(cli, ["rental", "create", mbr, eqp, "--days", "8"])
        assert result.exit_code == 1
        assert "RENTAL_DURATION_EXCEEDED" in result.output

    def test_extend_and_cancel(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rental = _json(cli_runner, "rental", "create", mbr, eqp, "--days", "2")["data"]["rental"]
        extended = _json(cli_runner, "rental", "extend", rental["id"], "1")
        assert extended["data"]["additional_cost"] == "50.00"
        assert extended["data"]["rental"]["period"]["days"] == 3

        cancelled = _json(cli_runner, "rental", "cancel", rental["id"])
        assert cancelled["data"]["rental"]["status"] == "CANCELLED"
        assert cancelled["data"]["refunded"] == "100.00"
        assert "extension charges" in cancelled["warnings"][0]

    def test_list_show_and_sweeps(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rental = _json(cli_runner, "rental", "create", mbr, eqp, "--days", "1")["data"]["rental"]

        listed = _json(cli_runner, "rental", "list", "--member", mbr, "--status", "ACTIVE")
        assert [r["id"] for r in listed["data"]["items"]] == [rental["id"]]

        shown = _json(cli_runner, "rental", "show", rental["id"])
        assert shown["data"]["is_overdue"] is False

        overdue = _json(cli_runner, "rental", "overdue")
        assert overdue["data"]["count"] == 0
        reminders = _json(cli_runner, "rental", "remind", "--days", "2")
        assert [r["rental_id"] for r in reminders["data"]["items"]] == [rental["id"]]

    def test_declined_payment_from_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        mbr, eqp = _setup(cli_runner)
        (tmp_path / "rentalctl.toml").write_text("[payment]\ndecline = true\n")
        result = cli_runner.invoke(cli, ["rental", "create", mbr, eqp, "--days", "1"])
        assert result.exit_code == 1
        assert "PAYMENT_FAILED" in result.output

    def test_method_choice(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        bad = cli_runner.invoke(
            cli, ["rental", "create", mbr, eqp, "--days", "1", "--method", "iou"]
        )
        assert bad.exit_code == 2
        assert "CREDIT_CARD" in bad.output
        created = _json(
            cli_runner, "rental", "create", mbr, eqp, "--days", "1", "--method", "cash"
        )
        assert created["data"]["payment"]["status"] == "SUCCESS"


@pytest.mark.usefixtures("_isolated_data_dir")
class TestReservationCommands:
    def test_create_confirm_cancel(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner, tier="SILVER")
        created = _json(
            cli_runner, "reservation", "create", mbr, eqp, "--start", "2030-06-01", "--days", "4"
        )
        rsv = created["data"]["reservation"]
        assert rsv["status"] == "PENDING"
        assert created["data"]["estimated_cost"] == "190.00"
        assert created["data"]["discount"] == "10.00"

        confirmed = _json(cli_runner, "reservation", "confirm", rsv["id"], "--authorize")
        assert confirmed["data"]["reservation"]["status"] == "CONFIRMED"
        assert confirmed["data"]["reservation"]["authorization_id"] is not None

        cancelled = _json(cli_runner, "reservation", "cancel", rsv["id"], "--reason", "plans")
        assert cancelled["data"]["reservation"]["status"] == "CANCELLED"

    def test_availability_reports_conflict(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rsv = _json(
            cli_runner, "reservation", "create", mbr, eqp, "--start", "2030-06-01", "--days", "3"
        )["data"]["reservation"]

        clash = _json(
            cli_runner, "reservation", "availability", eqp, "--start", "2030-06-02", "--days", "1"
        )
        assert clash["data"]["available"] is False
        assert clash["data"]["reservation_conflicts"] == [rsv["id"]]

        free = _json(
            cli_runner, "reservation", "availability", eqp, "--start", "2030-06-04", "--days", "2"
        )
        assert free["data"]["available"] is True

    def test_overlapping_reservation_fails(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        args = ["reservation", "create", mbr, eqp, "--start", "2030-06-01", "--days", "3"]
        _json(cli_runner, *args)
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 1
        assert "SCHEDULE_CONFLICT" in result.output

    def test_past_start_rejected(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        result = cli_runner.invoke(
            cli, ["reservation", "create", mbr, eqp, "--start", "2001-01-01", "--days", "2"]
        )
        assert result.exit_code == 1
        assert "INVALID_INPUT" in result.output

    def test_bad_date_is_a_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["reservation", "availability", "eqp_x", "--start", "next tuesday"]
        )
        assert result.exit_code == 2
        assert "ISO-8601" in result.output

    def test_bad_method_is_a_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["reservation", "fulfill", "rsv_x", "--method", "iou"])
        assert result.exit_code == 2

    def test_list_ready_expire_remind(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rsv = _json(
            cli_runner, "reservation", "create", mbr, eqp, "--start", "2030-06-01", "--days", "3"
        )["data"]["reservation"]
        listed = _json(cli_runner, "reservation", "list", "--status", "PENDING")
        assert [r["id"] for r in listed["data"]["items"]] == [rsv["id"]]
        assert _json(cli_runner, "reservation", "ready")["data"]["count"] == 0
        assert _json(cli_runner, "reservation", "expire")["data"]["count"] == 0
        assert _json(cli_runner, "reservation", "remind")["data"]["count"] == 0
        shown = _json(cli_runner, "reservation", "show", rsv["id"])
        assert shown["data"]["reservation"]["member_id"] == mbr


@pytest.mark.usefixtures("_isolated_data_dir")
class TestDamageAndEventCommands:
    def test_assess_list_notes(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rental = _json(cli_runner, "rental", "create", mbr, eqp, "--days", "1")["data"]["rental"]
        _json(cli_runner, "rental", "return", rental["id"], "--condition", "FAIR")

        assessed = _json(
            cli_runner, "damage", "assess", rental["id"], "POOR", "--by", "J. Ortiz"
        )
        assessment = assessed["data"]["assessment"]
        assert assessment["damage_fee"] == "300.00"
        assert assessed["data"]["has_damage"] is True

        listed = _json(cli_runner, "damage", "list", "--rental", rental["id"])
        assert listed["data"]["count"] == 1

        noted = _json(cli_runner, "damage", "notes", assessment["id"], "cracked housing")
        assert noted["data"]["assessment"]["notes"] == "cracked housing"
        shown = _json(cli_runner, "damage", "show", assessment["id"])
        assert shown["data"]["assessment"]["assessed_by"] == "J. Ortiz"

    def test_assess_active_rental_fails(self, cli_runner: CliRunner) -> None:
        mbr, eqp = _setup(cli_runner)
        rental = _json(cli_runner, "rental", "create", mbr, eqp, "--days", "1")["data"]["rental"]
        result = cli_runner.invoke(cli, ["damage", "assess", rental["id"], "POOR", "--by", "staff"])
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_events_status_and_drain(self, cli_runner: CliRunner) -> None:
        _setup(cli_runner)
        status = _json(cli_runner, "--sync", "events", "status")
        assert status["op"] == "event_status"
        assert status["data"]["total"] >= 0
        drained = _json(cli_runner, "--sync", "events", "drain")
        assert drained["data"]["failing"] == 0
