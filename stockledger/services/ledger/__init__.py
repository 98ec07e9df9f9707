"""
Stock Ledger Service - Canonical Entry Point

All changes to lot quantities on the consumption path go through
`withdraw` / `withdraw_from_lot`. Receiving creates lots; the admin edit
path (`update_lot`, `delete_lot`) sits outside the ledger's correctness
contract but still honours lot versions.
"""

from flask import current_app, has_app_context

from ._coordinator import WithdrawalCoordinator
from ._edit_logic import LOT_NOT_FOUND_MESSAGE, STALE_LOT_MESSAGE, delete_lot, update_lot
from ._lot_store import InMemoryLotStore, LotStore, SqlAlchemyLotStore
from ._planner import order_lots_lifo, plan_withdrawal
from ._queries import get_lot_summary, list_lots, list_lots_by_category
from ._receiving import receive_lot
from ._results import (
    AllocationPlan,
    BatchWriteOk,
    CommitConflict,
    ConcurrentModification,
    InsufficientStock,
    InvalidRequest,
    LotNotFound,
    LotWrite,
    PlannedMutation,
    WithdrawalCommitted,
    WithdrawalTimedOut,
)
from ._validation import coerce_quantity

__all__ = [
    'withdraw',
    'withdraw_from_lot',
    'build_coordinator',
    'receive_lot',
    'update_lot',
    'delete_lot',
    'LOT_NOT_FOUND_MESSAGE',
    'STALE_LOT_MESSAGE',
    'list_lots',
    'list_lots_by_category',
    'get_lot_summary',
    'plan_withdrawal',
    'order_lots_lifo',
    'WithdrawalCoordinator',
    'LotStore',
    'SqlAlchemyLotStore',
    'InMemoryLotStore',
    'AllocationPlan',
    'PlannedMutation',
    'LotWrite',
    'BatchWriteOk',
    'CommitConflict',
    'WithdrawalCommitted',
    'InvalidRequest',
    'InsufficientStock',
    'LotNotFound',
    'ConcurrentModification',
    'WithdrawalTimedOut',
]


def build_coordinator(store: LotStore = None) -> WithdrawalCoordinator:
    """Coordinator wired to app config (or library defaults outside an app)."""
    config = current_app.config if has_app_context() else {}
    return WithdrawalCoordinator(
        store if store is not None else SqlAlchemyLotStore(),
        max_retries=config.get('LEDGER_MAX_COMMIT_RETRIES', 5),
        retry_backoff=config.get('LEDGER_RETRY_BACKOFF_SECONDS', 0.01),
        timeout=config.get('LEDGER_WITHDRAW_TIMEOUT_SECONDS') or None,
    )


def withdraw(item_name, quantity, *, timeout=None, store: LotStore = None):
    """LIFO withdrawal of `quantity` across every lot named `item_name`."""
    return build_coordinator(store).withdraw(item_name, quantity, timeout=timeout)


def withdraw_from_lot(lot_id, quantity, *, timeout=None, store: LotStore = None):
    """
    Withdraw by the item name of a referenced lot.

    The referenced lot only identifies the item; consumption still spans all
    of that item's lots newest-first. The result's `target_lot` is the
    referenced lot as now persisted.
    """
    _, error = coerce_quantity(quantity)
    if error:
        return InvalidRequest(error)

    coordinator = build_coordinator(store)
    lot = coordinator.store.get(lot_id)
    if lot is None:
        return LotNotFound(lot_id=lot_id)

    return coordinator.withdraw(lot.item_name, quantity, target_lot_id=lot.id, timeout=timeout)
