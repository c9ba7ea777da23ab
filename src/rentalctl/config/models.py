"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, rentalctl.toml only contains
overrides.  A fresh install needs no config file at all.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

# --- rentalctl.toml sections ---


class FeesConfig(BaseModel):
    """[fees] section."""

    model_config = {"frozen": True}

    late_fee_per_day: Decimal = Decimal("10.00")


class RentalsConfig(BaseModel):
    """[rentals] section."""

    model_config = {"frozen": True}

    due_reminder_days: int = Field(default=2, ge=0)


class ReservationsConfig(BaseModel):
    """[reservations] section."""

    model_config = {"frozen": True}

    reminder_days: int = Field(default=1, ge=0)
    authorize_by_default: bool = False


class MaintenanceConfig(BaseModel):
    """[maintenance] section."""

    model_config = {"frozen": True}

    interval_days: int = Field(default=90, gt=0)


class PaymentConfig(BaseModel):
    """[payment] section.

    ``decline`` makes every gateway call fail; ``pend`` leaves charges
    PENDING (unsettled), which the services treat as a failed payment.
    """

    model_config = {"frozen": True}

    provider: Literal["ledger"] = "ledger"
    ledger_file: str = "payments.db"
    decline: bool = False
    pend: bool = False
    default_method: Literal["CREDIT_CARD", "DEBIT_CARD", "CASH", "BANK_TRANSFER"] = "CREDIT_CARD"


class NotificationsConfig(BaseModel):
    """[notifications] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    channel: Literal["EMAIL", "SMS", "PUSH", "IN_APP"] = "EMAIL"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
