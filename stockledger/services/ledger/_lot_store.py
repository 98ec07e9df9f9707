"""Lot persistence behind a narrow, versioned interface.

Synopsis:
The ledger reads lots by item name and writes quantity changes through
`batch_write`, a multi-lot compare-and-set: every write names the version
the caller planned against, and either all writes land or none do.

Glossary:
- Snapshot: immutable `LotSnapshot` values returned by reads.
- Expected version: the snapshot's `version`, compared at write time.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import StockLot
from ...models.lot_snapshot import LotSnapshot
from ...utils.timezone_utils import TimezoneUtils
from ._results import BatchWriteOk, CommitConflict, LotWrite

logger = logging.getLogger(__name__)

BatchWriteResult = Union[BatchWriteOk, CommitConflict]


def _reject_negative_writes(writes: Sequence[LotWrite]) -> None:
    for write in writes:
        if write.new_quantity < 0:
            raise ValueError(f"Refusing to write negative quantity {write.new_quantity} to lot {write.lot_id}")


class LotStore(ABC):

    @abstractmethod
    def query_by_name(self, item_name: str) -> List[LotSnapshot]:
        """Every lot sharing `item_name`, zero-quantity lots included."""

    @abstractmethod
    def get(self, lot_id) -> Optional[LotSnapshot]:
        """The lot with `lot_id`, or None when it does not exist."""

    @abstractmethod
    def batch_write(self, writes: Sequence[LotWrite]) -> BatchWriteResult:
        """Apply every write or none; CommitConflict when a version moved."""


# --- SqlAlchemyLotStore ---
# Purpose: Production store over the stock_lot table.
class SqlAlchemyLotStore(LotStore):

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def query_by_name(self, item_name: str) -> List[LotSnapshot]:
        stmt = (
            select(StockLot)
            .where(StockLot.item_name == item_name)
            .execution_options(populate_existing=True)
        )
        lots = self.session.execute(stmt).scalars().all()
        return [lot.to_snapshot() for lot in lots]

    def get(self, lot_id) -> Optional[LotSnapshot]:
        lot = self.session.get(StockLot, lot_id, populate_existing=True)
        return lot.to_snapshot() if lot else None

    def batch_write(self, writes: Sequence[LotWrite]) -> BatchWriteResult:
        _reject_negative_writes(writes)
        if not writes:
            return BatchWriteOk()

        session = self.session
        try:
            for write in writes:
                stmt = (
                    update(StockLot)
                    .where(
                        StockLot.id == write.lot_id,
                        StockLot.version == write.expected_version,
                    )
                    .values(
                        quantity_on_hand=write.new_quantity,
                        updated_at=write.updated_at,
                        version=StockLot.version + 1,
                    )
                    .execution_options(synchronize_session=False)
                )
                result = session.execute(stmt)
                if result.rowcount != 1:
                    session.rollback()
                    logger.info(
                        f"LOT STORE: Version mismatch on lot {write.lot_id} "
                        f"(expected v{write.expected_version}); batch of {len(writes)} rolled back"
                    )
                    return CommitConflict(conflicting_lot_ids=(write.lot_id,))

            session.commit()
        except SQLAlchemyError:
            logger.exception("LOT STORE: batch write failed; rolling back")
            session.rollback()
            raise

        return BatchWriteOk(lot_ids=tuple(write.lot_id for write in writes))


# --- InMemoryLotStore ---
# Purpose: Process-local store with the same compare-and-set contract.
class InMemoryLotStore(LotStore):

    def __init__(self):
        self._lots: Dict[Any, LotSnapshot] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(
        self,
        item_name: str,
        quantity,
        received_at=None,
        *,
        lot_id=None,
        category: str = 'general',
        unit: str = 'pcs',
        expiration_date=None,
        delivery_date=None,
    ) -> LotSnapshot:
        now = TimezoneUtils.utc_now()
        with self._lock:
            lot = LotSnapshot(
                id=lot_id if lot_id is not None else next(self._ids),
                item_name=item_name,
                quantity_on_hand=Decimal(str(quantity)),
                received_at=TimezoneUtils.ensure_timezone_aware(received_at) or now,
                version=1,
                category=category,
                unit=unit,
                expiration_date=expiration_date,
                delivery_date=delivery_date,
                created_at=now,
                updated_at=now,
            )
            self._lots[lot.id] = lot
        return lot

    def query_by_name(self, item_name: str) -> List[LotSnapshot]:
        with self._lock:
            return [lot for lot in self._lots.values() if lot.item_name == item_name]

    def get(self, lot_id) -> Optional[LotSnapshot]:
        with self._lock:
            return self._lots.get(lot_id)

    def batch_write(self, writes: Sequence[LotWrite]) -> BatchWriteResult:
        _reject_negative_writes(writes)
        with self._lock:
            stale = tuple(
                write.lot_id
                for write in writes
                if write.lot_id not in self._lots
                or self._lots[write.lot_id].version != write.expected_version
            )
            if stale:
                return CommitConflict(conflicting_lot_ids=stale)

            for write in writes:
                current = self._lots[write.lot_id]
                self._lots[write.lot_id] = replace(
                    current,
                    quantity_on_hand=write.new_quantity,
                    updated_at=write.updated_at,
                    version=current.version + 1,
                )
        return BatchWriteOk(lot_ids=tuple(write.lot_id for write in writes))

    def total_quantity(self, item_name: str) -> Decimal:
        return sum((lot.quantity_on_hand for lot in self.query_by_name(item_name)), Decimal('0'))
