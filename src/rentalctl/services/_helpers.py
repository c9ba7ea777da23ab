"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel

from rentalctl.domain.dates import DateRange, ensure_utc, to_iso, utc_now
from rentalctl.domain.errors import InvalidInputError
from rentalctl.domain.money import Money


def resolve_now(now: datetime | None) -> datetime:
    """The caller's clock if given (tests, replays), else the wall clock."""
    return ensure_utc(now) if now is not None else utc_now()


def money_str(value: Money) -> str:
    """Two-place decimal string, e.g. ``"250.00"``."""
    return f"{value.amount:.2f}"


def period_data(period: DateRange) -> dict[str, Any]:
    return {"start": to_iso(period.start), "end": to_iso(period.end), "days": period.days}


def snapshot(entity: BaseModel) -> dict[str, Any]:
    """JSON-ready dict of an entity snapshot.

    Money renders as a decimal string and date ranges as start/end/days.
    """
    data = entity.model_dump(mode="json")
    for name, value in entity:
        if isinstance(value, Money):
            data[name] = money_str(value)
        elif isinstance(value, DateRange):
            data[name] = period_data(value)
        elif isinstance(value, datetime):
            data[name] = to_iso(value)
    return data


_E = TypeVar("_E", bound=StrEnum)


def parse_choice(enum_cls: type[_E], value: str | _E, *, field: str) -> _E:
    """Coerce *value* (case-insensitive) into *enum_cls* or raise InvalidInputError."""
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(
            f"Invalid {field}: {value!r} (expected one of {allowed})",
            field=field,
            value=str(value),
        ) from exc


def as_money(value: Money | str | int | float | Any) -> Money:
    return value if isinstance(value, Money) else Money.of(value)
