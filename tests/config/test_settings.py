"""Tests for RentalSettings — CLI flags, env vars and TOML in one object."""

from decimal import Decimal
from pathlib import Path

import click
import pytest
from pydantic import ValidationError

from rentalctl.config.discovery import CONFIG_ENV_VAR, find_config
from rentalctl.config.settings import DATA_DIRNAME, RentalSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = RentalSettings.from_cli(data_dir=tmp_path / "data")
        assert settings.data_dir == tmp_path / "data"
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.fees.late_fee_per_day == Decimal("10.00")
        assert settings.reservations.authorize_by_default is False
        assert settings.maintenance.interval_days == 90
        assert settings.payment.default_method == "CREDIT_CARD"
        assert settings.notifications.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = RentalSettings.from_cli(data_dir=tmp_path)
        with pytest.raises(ValidationError):
            settings.quiet = True  # type: ignore[misc]

    def test_data_dir_defaults_to_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        settings = RentalSettings.from_cli()
        assert settings.data_dir.resolve() == tmp_path.resolve() / DATA_DIRNAME

    def test_cli_flags(self, tmp_path: Path) -> None:
        settings = RentalSettings.from_cli(data_dir=tmp_path, json_output=True, sync=True)
        assert settings.json_output is True
        assert settings.sync is True


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        (tmp_path / "rentalctl.toml").write_text(
            '[fees]\nlate_fee_per_day = "12.50"\n[reservations]\nreminder_days = 3\n'
        )
        settings = RentalSettings.from_cli(data_dir=tmp_path / "data")
        assert settings.config_path == (tmp_path / "rentalctl.toml").resolve()
        assert settings.fees.late_fee_per_day == Decimal("12.50")
        assert settings.reservations.reminder_days == 3
        assert settings.reservations.authorize_by_default is False

    def test_data_dir_next_to_config(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "rentalctl.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = RentalSettings.from_cli()
        assert settings.data_dir.resolve() == tmp_path.resolve() / DATA_DIRNAME

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text("[maintenance]\ninterval_days = 30\n")
        settings = RentalSettings.from_cli(config_path=str(cfg), data_dir=tmp_path / "d")
        assert settings.maintenance.interval_days == 30

    def test_invalid_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "bad.toml"
        cfg.write_text("[fees\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            RentalSettings.from_cli(config_path=str(cfg), data_dir=tmp_path)

    def test_validation(self, tmp_path: Path) -> None:
        cfg = tmp_path / "rentalctl.toml"
        cfg.write_text("[maintenance]\ninterval_days = 0\n")
        with pytest.raises(ValidationError):
            RentalSettings.from_cli(config_path=str(cfg), data_dir=tmp_path)


class TestEnvSource:
    def test_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "rentalctl.toml").write_text('[fees]\nlate_fee_per_day = "12.50"\n')
        monkeypatch.setenv("RENTALCTL_FEES__LATE_FEE_PER_DAY", "20.00")
        settings = RentalSettings.from_cli(data_dir=tmp_path / "data")
        assert settings.fees.late_fee_per_day == Decimal("20.00")

    def test_cli_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RENTALCTL_DATA_DIR", str(tmp_path / "from-env"))
        settings = RentalSettings.from_cli(data_dir=tmp_path / "from-cli")
        assert settings.data_dir == tmp_path / "from-cli"


class TestDiscovery:
    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "rentalctl.toml").write_text("")
        deep = tmp_path / "x" / "y"
        deep.mkdir(parents=True)
        assert find_config(deep) == (tmp_path / "rentalctl.toml").resolve()

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "rentalctl.toml").write_text("")
        other = tmp_path / "elsewhere.toml"
        other.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(other))
        assert find_config(tmp_path) == other

    def test_dangling_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "rentalctl.toml").write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None
