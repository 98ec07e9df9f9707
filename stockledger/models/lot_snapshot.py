from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..utils.timezone_utils import TimezoneUtils

# Fractional digits kept for every lot quantity (matches Numeric(18, 4)).
QUANTITY_SCALE = 4


def quantity_for_api(value: Decimal | None):
    """Render a quantity for JSON: int when integral, float otherwise."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class LotSnapshot:
    """
    Immutable view of a stock lot as read from a lot store.

    The ledger plans against snapshots only; `version` is the stamp the
    store compares at write time.
    """
    id: Any
    item_name: str
    quantity_on_hand: Decimal
    received_at: datetime
    version: int
    category: Optional[str] = None
    unit: Optional[str] = None
    expiration_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_depleted(self) -> bool:
        return self.quantity_on_hand <= 0

    @property
    def is_expired(self) -> bool:
        if not self.expiration_date:
            return False
        return TimezoneUtils.ensure_timezone_aware(self.expiration_date) < TimezoneUtils.utc_now()

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.item_name,
            'category': self.category,
            'unit': self.unit,
            'quantity': quantity_for_api(self.quantity_on_hand),
            'received_at': TimezoneUtils.format_datetime_for_api(self.received_at),
            'expiration_date': TimezoneUtils.format_datetime_for_api(self.expiration_date),
            'delivery_date': TimezoneUtils.format_datetime_for_api(self.delivery_date),
            'created_at': TimezoneUtils.format_datetime_for_api(self.created_at),
            'updated_at': TimezoneUtils.format_datetime_for_api(self.updated_at),
            'version': self.version,
        }
