from decimal import Decimal
from typing import Iterable, List, Union

from ...models.lot_snapshot import LotSnapshot
from ._results import AllocationPlan, InsufficientStock, InvalidRequest, PlannedMutation
from ._validation import coerce_quantity, validate_item_name

PlanResult = Union[AllocationPlan, InsufficientStock, InvalidRequest]


def order_lots_lifo(lots: Iterable[LotSnapshot]) -> List[LotSnapshot]:
    """Newest `received_at` first; equal timestamps by ascending lot id."""
    by_id = sorted(lots, key=lambda lot: lot.id)
    return sorted(by_id, key=lambda lot: lot.received_at, reverse=True)


def plan_withdrawal(item_name, requested_quantity, lots: Iterable[LotSnapshot]) -> PlanResult:
    """
    Plan a LIFO withdrawal against a snapshot of lots.

    Pure: reads only its arguments and never writes. Returns an
    AllocationPlan whose mutations deduct exactly `requested_quantity`,
    or the failure that prevents one.
    """
    name, error = validate_item_name(item_name)
    if error:
        return InvalidRequest(error)

    requested, error = coerce_quantity(requested_quantity)
    if error:
        return InvalidRequest(error)

    snapshot = list(lots)
    total_available = sum((lot.quantity_on_hand for lot in snapshot), Decimal('0'))

    if total_available < requested:
        return InsufficientStock(item_name=name, requested=requested, available=total_available)

    mutations = []
    remaining = requested

    for lot in order_lots_lifo(snapshot):
        if remaining <= 0:
            break
        if lot.quantity_on_hand <= 0:
            continue

        deduct = min(lot.quantity_on_hand, remaining)
        mutations.append(PlannedMutation(
            lot_id=lot.id,
            previous_quantity=lot.quantity_on_hand,
            new_quantity=lot.quantity_on_hand - deduct,
            expected_version=lot.version,
        ))
        remaining -= deduct

    return AllocationPlan(
        item_name=name,
        requested_quantity=requested,
        total_available=total_available,
        mutations=tuple(mutations),
    )
