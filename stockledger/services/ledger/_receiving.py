import logging
from typing import Optional, Tuple

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from ...models import db, StockLot
from ...utils.timezone_utils import TimezoneUtils
from ._validation import coerce_quantity

logger = logging.getLogger(__name__)

DEFAULT_UNIT = 'pcs'


def default_unit() -> str:
    if has_app_context():
        return current_app.config.get('LEDGER_DEFAULT_UNIT') or DEFAULT_UNIT
    return DEFAULT_UNIT


def receive_lot(
    name: str,
    category: str,
    quantity,
    expiration_date,
    delivery_date,
    unit: str = None,
    received_at=None,
) -> Tuple[bool, str, Optional[StockLot]]:
    """
    Record a receiving event as a new lot.

    A lot is created once with a positive quantity and `received_at` = now
    (or the supplied timestamp, for backfills); afterwards the ledger only
    lowers it.

    Returns: (success, message, lot)
    """
    if not name or not category or quantity in (None, '') or not expiration_date or not delivery_date:
        return False, 'Name, category, quantity, delivery date, and expiration date are required', None

    qty, error = coerce_quantity(quantity)
    if error:
        return False, error, None

    expires = TimezoneUtils.parse_datetime(expiration_date)
    if expires is None:
        return False, 'Invalid expiration date', None

    delivered = TimezoneUtils.parse_datetime(delivery_date)
    if delivered is None:
        return False, 'Invalid delivery date', None

    received = TimezoneUtils.utc_now()
    if received_at is not None:
        received = TimezoneUtils.parse_datetime(received_at)
        if received is None:
            return False, 'Invalid received date', None

    try:
        lot = StockLot(
            item_name=str(name).strip(),
            category=str(category).strip(),
            unit=unit or default_unit(),
            quantity_on_hand=qty,
            received_at=received,
            expiration_date=expires,
            delivery_date=delivered,
            created_at=received,
            updated_at=received,
        )
        db.session.add(lot)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"RECEIVING: Failed to create lot for '{name}'")
        raise

    logger.info(f"RECEIVING: Created lot {lot.id} with {qty} {lot.unit} of '{lot.item_name}'")
    return True, 'Inventory item added successfully', lot
