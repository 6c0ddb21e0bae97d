"""
Shared helpers for report types.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from buildman.conf import buildman_settings


def money(value: Decimal) -> Decimal:
    """Round a currency amount to MONEY_PLACES (half up)."""
    places = Decimal(1).scaleb(-int(buildman_settings.MONEY_PLACES))
    return Decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def percent(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return value.as_dict() if hasattr(value, 'as_dict') else {
            f.name: _plain(getattr(value, f.name)) for f in fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class ReportMixin:
    """as_dict() for frozen report dataclasses (Decimal -> str, useful for APIs)."""

    def as_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
