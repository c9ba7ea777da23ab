"""Tests for the root group: help, version and --examples."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from rentalctl import __version__
from rentalctl.cli import cli

EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["equipment", "--examples"], ["rentalctl equipment add"]),
    (["equipment", "add", "--examples"], ["--category tools"]),
    (["equipment", "schedule", "--examples"], ["--due"]),
    (["member", "--examples"], ["rentalctl member add"]),
    (["member", "tier", "--examples"], ["GOLD"]),
    (["rental", "--examples"], ["rentalctl rental create", "rentalctl rental overdue"]),
    (["rental", "create", "--examples"], ["--days 5", "--method CASH"]),
    (["rental", "return", "--examples"], ["--condition GOOD"]),
    (["reservation", "--examples"], ["rentalctl reservation fulfill"]),
    (["reservation", "create", "--examples"], ["--authorize"]),
    (["reservation", "availability", "--examples"], ["--start 2026-12-01"]),
    (["damage", "--examples"], ["rentalctl damage assess"]),
    (["events", "--examples"], ["rentalctl events status"]),
    (["events", "drain", "--examples"], ["--sync events drain"]),
]


class TestRootGroup:
    def test_no_subcommand_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        for group in ("equipment", "member", "rental", "reservation", "damage", "events"):
            assert group in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_command(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["nonexistent"])
        assert result.exit_code != 0


class TestExamples:
    @pytest.mark.parametrize(("args", "keywords"), EXAMPLES_COMMANDS)
    def test_examples_flag(
        self, cli_runner: CliRunner, args: list[str], keywords: list[str]
    ) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        assert "Examples for" in result.output
        for kw in keywords:
            assert kw in result.output

    def test_help_stays_short(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["rental", "create", "--help"])
        assert result.exit_code == 0
        assert "--examples" in result.output
        assert "--method CASH" not in result.output
