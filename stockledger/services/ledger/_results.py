"""Result values returned by the ledger.

Synopsis:
Every ledger outcome is a frozen dataclass carrying an `ok` flag and a
`status` tag. Failures are values, not exceptions, so callers branch on
`result.ok` / `result.status` and the HTTP layer maps statuses to codes.

Glossary:
- Planned mutation: one lot's quantity change computed by the planner.
- Lot write: one versioned compare-and-set submitted to a lot store.
- Commit conflict: a write whose expected version no longer matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Optional, Tuple

from ...models.lot_snapshot import LotSnapshot, quantity_for_api

LOT_NOT_FOUND_MESSAGE = 'Inventory item not found'


# --- Planner values ---
@dataclass(frozen=True)
class PlannedMutation:
    lot_id: Any
    previous_quantity: Decimal
    new_quantity: Decimal
    expected_version: int

    @property
    def deducted(self) -> Decimal:
        return self.previous_quantity - self.new_quantity


@dataclass(frozen=True)
class AllocationPlan:
    ok: ClassVar[bool] = True
    status: ClassVar[str] = 'planned'

    item_name: str
    requested_quantity: Decimal
    total_available: Decimal
    mutations: Tuple[PlannedMutation, ...] = ()

    @property
    def total_deducted(self) -> Decimal:
        return sum((m.deducted for m in self.mutations), Decimal('0'))


# --- Store values ---
@dataclass(frozen=True)
class LotWrite:
    lot_id: Any
    expected_version: int
    new_quantity: Decimal
    updated_at: datetime


@dataclass(frozen=True)
class BatchWriteOk:
    ok: ClassVar[bool] = True
    status: ClassVar[str] = 'written'

    lot_ids: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class CommitConflict:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'commit_conflict'

    conflicting_lot_ids: Tuple[Any, ...] = ()


# --- Terminal withdrawal values ---
@dataclass(frozen=True)
class WithdrawalCommitted:
    ok: ClassVar[bool] = True
    status: ClassVar[str] = 'committed'

    item_name: str
    requested_quantity: Decimal
    mutated_lots: Tuple[LotSnapshot, ...]
    target_lot: Optional[LotSnapshot] = None
    attempts: int = 1

    def to_dict(self) -> dict:
        return {
            'item_name': self.item_name,
            'requested_quantity': quantity_for_api(self.requested_quantity),
            'mutated_lots': [
                {'id': lot.id, 'new_quantity': quantity_for_api(lot.quantity_on_hand)}
                for lot in self.mutated_lots
            ],
            'lot': self.target_lot.to_dict() if self.target_lot else None,
            'attempts': self.attempts,
        }


@dataclass(frozen=True)
class InvalidRequest:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'invalid_request'

    reason: str

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class LotNotFound:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'not_found'

    lot_id: Any

    @property
    def message(self) -> str:
        return LOT_NOT_FOUND_MESSAGE


@dataclass(frozen=True)
class InsufficientStock:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'insufficient_stock'

    item_name: str
    requested: Decimal
    available: Decimal

    @property
    def message(self) -> str:
        return f"Insufficient quantity. Available: {quantity_for_api(self.available)}"


@dataclass(frozen=True)
class ConcurrentModification:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'concurrent_modification'
    retryable: ClassVar[bool] = True

    item_name: str
    attempts: int
    conflicting_lot_ids: Tuple[Any, ...] = field(default=())

    @property
    def message(self) -> str:
        return f"Stock for '{self.item_name}' changed during {self.attempts} attempts; please retry"


@dataclass(frozen=True)
class WithdrawalTimedOut:
    ok: ClassVar[bool] = False
    status: ClassVar[str] = 'timed_out'
    retryable: ClassVar[bool] = True

    item_name: str
    attempts: int
    timeout: float

    @property
    def message(self) -> str:
        return f"Withdrawal of '{self.item_name}' did not complete within {self.timeout}s; no stock was changed"
