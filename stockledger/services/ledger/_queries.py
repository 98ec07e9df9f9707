from datetime import timedelta
from decimal import Decimal
from typing import List

from sqlalchemy import select

from ...models import db, LotSnapshot, StockLot, quantity_for_api
from ...utils.timezone_utils import TimezoneUtils
from ._lot_store import SqlAlchemyLotStore
from ._planner import order_lots_lifo

EXPIRING_SOON_DAYS = 7


def list_lots() -> List[LotSnapshot]:
    """All lots, newest first."""
    stmt = select(StockLot).order_by(StockLot.created_at.desc(), StockLot.id.desc())
    return [lot.to_snapshot() for lot in db.session.execute(stmt).scalars()]


def list_lots_by_category(category: str) -> List[LotSnapshot]:
    stmt = (
        select(StockLot)
        .where(StockLot.category == category)
        .order_by(StockLot.created_at.desc(), StockLot.id.desc())
    )
    return [lot.to_snapshot() for lot in db.session.execute(stmt).scalars()]


def get_lot_summary(item_name: str, store=None) -> dict:
    """Availability summary for one item name, lots in consumption order."""
    if store is None:
        store = SqlAlchemyLotStore()

    lots = order_lots_lifo(store.query_by_name(item_name))
    soon = TimezoneUtils.utc_now() + timedelta(days=EXPIRING_SOON_DAYS)
    stocked = [lot for lot in lots if not lot.is_depleted]

    return {
        'item_name': item_name,
        'total_lots': len(lots),
        'total_quantity': quantity_for_api(sum((lot.quantity_on_hand for lot in lots), Decimal('0'))),
        'expired_lots': len([lot for lot in stocked if lot.is_expired]),
        'expiring_soon': len([
            lot for lot in stocked
            if lot.expiration_date and not lot.is_expired and lot.expiration_date < soon
        ]),
        'lots': [lot.to_dict() for lot in lots],
    }
