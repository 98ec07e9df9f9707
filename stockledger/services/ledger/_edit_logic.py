import logging
from typing import Optional, Tuple

from sqlalchemy.orm.exc import StaleDataError

from ...models import db, StockLot
from ...utils.timezone_utils import TimezoneUtils
from ._results import LOT_NOT_FOUND_MESSAGE
from ._validation import coerce_quantity

logger = logging.getLogger(__name__)

STALE_LOT_MESSAGE = 'Inventory item was modified by another operation; reload and try again'


def update_lot(lot_id: int, form_data: dict) -> Tuple[bool, str, Optional[StockLot]]:
    """
    Administrative edit of a lot's fields.

    This is not a ledger operation: it may set any non-negative quantity.
    The write still goes through the lot's version stamp, so an in-flight
    withdrawal that read the old version gets a commit conflict.

    Returns: (success, message, lot)
    """
    lot = db.session.get(StockLot, lot_id)
    if not lot:
        return False, LOT_NOT_FOUND_MESSAGE, None

    if form_data.get('name'):
        lot.item_name = str(form_data['name']).strip()
    if form_data.get('category'):
        lot.category = str(form_data['category']).strip()

    if form_data.get('quantity') is not None:
        qty, error = coerce_quantity(form_data['quantity'], allow_zero=True)
        if error:
            db.session.rollback()
            return False, error, None
        lot.quantity_on_hand = qty

    if form_data.get('expirationDate'):
        expires = TimezoneUtils.parse_datetime(form_data['expirationDate'])
        if expires is None:
            db.session.rollback()
            return False, 'Invalid expiration date', None
        lot.expiration_date = expires

    if form_data.get('deliveryDate'):
        delivered = TimezoneUtils.parse_datetime(form_data['deliveryDate'])
        if delivered is None:
            db.session.rollback()
            return False, 'Invalid delivery date', None
        lot.delivery_date = delivered

    if form_data.get('unit'):
        lot.unit = str(form_data['unit']).strip()

    lot.updated_at = TimezoneUtils.utc_now()

    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        logger.warning(f"EDIT: Lot {lot_id} changed underneath the edit; nothing written")
        return False, STALE_LOT_MESSAGE, None

    logger.info(f"EDIT: Updated lot {lot.id} ('{lot.item_name}') to v{lot.version}")
    return True, 'Inventory item updated successfully', lot


def delete_lot(lot_id: int) -> Tuple[bool, str]:
    """Administrative removal of a lot; the ledger itself never deletes lots."""
    lot = db.session.get(StockLot, lot_id)
    if not lot:
        return False, LOT_NOT_FOUND_MESSAGE

    db.session.delete(lot)
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        logger.warning(f"EDIT: Lot {lot_id} changed before it could be deleted")
        return False, STALE_LOT_MESSAGE

    logger.info(f"EDIT: Deleted lot {lot_id}")
    return True, 'Inventory item deleted successfully'
