"""Models package - imports all models for the application"""
from ..extensions import db
from .lot_snapshot import QUANTITY_SCALE, LotSnapshot, quantity_for_api
from .stock_lot import StockLot

__all__ = [
    'db',
    'LotSnapshot',
    'QUANTITY_SCALE',
    'StockLot',
    'quantity_for_api',
]
