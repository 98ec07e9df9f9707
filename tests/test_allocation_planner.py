"""
Unit tests for the LIFO allocation planner
"""
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from stockledger.models import LotSnapshot
from stockledger.services.ledger import (
    AllocationPlan,
    InsufficientStock,
    InvalidRequest,
    order_lots_lifo,
    plan_withdrawal,
)

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _lot(lot_id, quantity, hours=0, version=1, name='flour'):
    return LotSnapshot(
        id=lot_id,
        item_name=name,
        quantity_on_hand=Decimal(str(quantity)),
        received_at=T0 + timedelta(hours=hours),
        version=version,
    )


class TestLifoOrdering:

    def test_newest_received_first(self):
        lots = [_lot(1, 5, hours=0), _lot(2, 5, hours=2), _lot(3, 5, hours=1)]
        assert [lot.id for lot in order_lots_lifo(lots)] == [2, 3, 1]

    def test_equal_timestamps_break_ties_by_ascending_id(self):
        lots = [_lot(9, 1, hours=1), _lot(4, 1, hours=1), _lot(7, 1, hours=0)]
        assert [lot.id for lot in order_lots_lifo(lots)] == [4, 9, 7]


class TestPlanWithdrawal:

    def test_consumes_newest_lot_first(self):
        plan = plan_withdrawal('flour', 3, [_lot(1, 5, hours=0), _lot(2, 5, hours=1)])

        assert isinstance(plan, AllocationPlan)
        assert [(m.lot_id, m.new_quantity) for m in plan.mutations] == [(2, Decimal('2'))]
        assert plan.total_available == Decimal('10')

    def test_spills_into_older_lots(self):
        plan = plan_withdrawal('flour', 7, [_lot(1, 5, hours=0), _lot(2, 5, hours=1)])

        assert [(m.lot_id, m.new_quantity) for m in plan.mutations] == [
            (2, Decimal('0')),
            (1, Decimal('3')),
        ]
        assert plan.total_deducted == Decimal('7')

    def test_spill_leaves_remainder_in_the_older_lot(self):
        plan = plan_withdrawal('flour', 5, [_lot('A', 3, hours=1), _lot('B', 4, hours=2)])

        assert {m.lot_id: m.new_quantity for m in plan.mutations} == {'B': 0, 'A': 2}

    def test_exact_total_depletes_every_lot(self):
        plan = plan_withdrawal('flour', 10, [_lot(1, 4), _lot(2, 6, hours=1)])

        assert plan.ok
        assert all(m.new_quantity == 0 for m in plan.mutations)
        assert {m.lot_id for m in plan.mutations} == {1, 2}

    def test_zero_quantity_lots_are_skipped(self):
        lots = [_lot(1, 5, hours=0), _lot(2, 0, hours=5)]
        plan = plan_withdrawal('flour', 2, lots)

        assert [m.lot_id for m in plan.mutations] == [1]

    def test_mutations_carry_the_version_read(self):
        plan = plan_withdrawal('flour', 1, [_lot(1, 5, version=7)])

        assert plan.mutations[0].expected_version == 7
        assert plan.mutations[0].previous_quantity == Decimal('5')

    def test_fractional_quantities(self):
        plan = plan_withdrawal('flour', '2.5', [_lot(1, '3', hours=0), _lot(2, '1.25', hours=1)])

        assert [(m.lot_id, m.new_quantity) for m in plan.mutations] == [
            (2, Decimal('0')),
            (1, Decimal('1.75')),
        ]

    @pytest.mark.parametrize('quantity', ['1.50000', '2.000000', Decimal('0.12340')])
    def test_trailing_zeros_do_not_count_against_the_scale(self, quantity):
        plan = plan_withdrawal('flour', quantity, [_lot(1, 5)])

        assert isinstance(plan, AllocationPlan)
        assert plan.total_deducted == Decimal(quantity)

    def test_insufficient_stock_reports_total_available(self):
        result = plan_withdrawal('flour', 11, [_lot(1, 4), _lot(2, 6, hours=1)])

        assert isinstance(result, InsufficientStock)
        assert not result.ok
        assert result.available == Decimal('10')
        assert result.requested == Decimal('11')
        assert result.message == 'Insufficient quantity. Available: 10'

    def test_no_lots_is_insufficient(self):
        result = plan_withdrawal('flour', 1, [])

        assert isinstance(result, InsufficientStock)
        assert result.available == 0

    @pytest.mark.parametrize('quantity', [0, -1, None, True, 'abc', 'NaN', 'inf', float('inf'), '1.00001', [3]])
    def test_rejects_invalid_quantities(self, quantity):
        result = plan_withdrawal('flour', quantity, [_lot(1, 100)])
        assert isinstance(result, InvalidRequest)

    @pytest.mark.parametrize('name', ['', '   ', None, 42])
    def test_rejects_invalid_item_names(self, name):
        result = plan_withdrawal(name, 1, [_lot(1, 100)])

        assert isinstance(result, InvalidRequest)
        assert result.message == 'Item name is required'

    def test_random_withdrawals_keep_lifo_postconditions(self):
        rng = random.Random(20260101)

        for _ in range(200):
            lots = [
                _lot(lot_id, rng.randint(0, 20), hours=rng.randint(0, 5))
                for lot_id in range(1, rng.randint(1, 8) + 1)
            ]
            total = sum(lot.quantity_on_hand for lot in lots)
            requested = rng.randint(1, 60)

            result = plan_withdrawal('flour', requested, lots)

            if requested > total:
                assert isinstance(result, InsufficientStock)
                assert result.available == total
                continue

            assert result.total_deducted == requested
            assert all(m.new_quantity >= 0 for m in result.mutations)

            mutated = {m.lot_id: m for m in result.mutations}
            ordered = [lot for lot in order_lots_lifo(lots) if lot.quantity_on_hand > 0]
            # Every lot consumed before the last touched one must be emptied
            for lot in ordered[:len(mutated) - 1]:
                assert mutated[lot.id].new_quantity == 0
            assert [lot.id for lot in ordered[:len(mutated)]] == [m.lot_id for m in result.mutations]
