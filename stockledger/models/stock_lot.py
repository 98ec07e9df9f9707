from decimal import Decimal

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils
from .lot_snapshot import QUANTITY_SCALE, LotSnapshot


class StockLot(db.Model):
    """
    A discrete, independently dated batch of stock for one item name.
    Lots sharing `item_name` are fungible; withdrawals consume the most
    recently received lot first.
    """
    __tablename__ = 'stock_lot'

    id = db.Column(db.Integer, primary_key=True)
    item_name = db.Column(db.String(128), nullable=False, index=True)
    category = db.Column(db.String(64), nullable=False, index=True)
    unit = db.Column(db.String(32), nullable=False, default='pcs')

    # Only ever lowered by the ledger; admin edits may set it directly.
    quantity_on_hand = db.Column(db.Numeric(18, QUANTITY_SCALE), nullable=False, default=Decimal('0'))

    # LIFO order key
    received_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False, index=True)

    expiration_date = db.Column(db.DateTime(timezone=True), nullable=False)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=TimezoneUtils.utc_now, nullable=False)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.CheckConstraint('quantity_on_hand >= 0', name='check_quantity_on_hand_non_negative'),
    )

    def __repr__(self):
        return f'<StockLot {self.id}: {self.item_name} {self.quantity_on_hand} {self.unit} v{self.version}>'

    def to_snapshot(self) -> LotSnapshot:
        return LotSnapshot(
            id=self.id,
            item_name=self.item_name,
            quantity_on_hand=Decimal(self.quantity_on_hand),
            received_at=TimezoneUtils.ensure_timezone_aware(self.received_at),
            version=self.version,
            category=self.category,
            unit=self.unit,
            expiration_date=TimezoneUtils.ensure_timezone_aware(self.expiration_date),
            delivery_date=TimezoneUtils.ensure_timezone_aware(self.delivery_date),
            created_at=TimezoneUtils.ensure_timezone_aware(self.created_at),
            updated_at=TimezoneUtils.ensure_timezone_aware(self.updated_at),
        )

    def to_dict(self) -> dict:
        return self.to_snapshot().to_dict()
