"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``RENTALCTL_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``rentalctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from rentalctl.config.discovery import find_config
from rentalctl.config.models import (
    FeesConfig,
    MaintenanceConfig,
    NotificationsConfig,
    PaymentConfig,
    PluginsConfig,
    RentalsConfig,
    ReservationsConfig,
)

DATA_DIRNAME = ".rentalctl"


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``rentalctl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class RentalSettings(BaseSettings):
    """Settings for the rentalctl engine and CLI.

    Attributes:
        data_dir: Directory holding ``rentalctl.db`` and the payment ledger.
        config_path: The TOML file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "RENTALCTL_",
        "env_nested_delimiter": "__",
    }

    data_dir: Path = Field(default_factory=lambda: Path.cwd() / DATA_DIRNAME)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    # --- TOML sections ---
    fees: FeesConfig = Field(default_factory=FeesConfig)
    rentals: RentalsConfig = Field(default_factory=RentalsConfig)
    reservations: ReservationsConfig = Field(default_factory=ReservationsConfig)
    maintenance: MaintenanceConfig = Field(default_factory=MaintenanceConfig)
    payment: PaymentConfig = Field(default_factory=PaymentConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_dir: Path | None = None,
        **cli_flags: Any,
    ) -> RentalSettings:
        """Construct settings from a CLI invocation.

        Discovers ``rentalctl.toml`` (or uses *config_path*).  Without an
        explicit *data_dir*, data lives in ``.rentalctl/`` next to the config
        file, or under the working directory when there is none.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(data_dir.parent if data_dir else None)

        kwargs: dict[str, Any] = dict(cli_flags)
        if data_dir is not None:
            kwargs["data_dir"] = data_dir
        elif toml_path is not None:
            kwargs["data_dir"] = toml_path.parent / DATA_DIRNAME

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **kwargs)
        finally:
            _tls.toml_path = None
