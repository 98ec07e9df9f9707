"""
Service-level tests: receiving, referenced-lot withdrawals, admin edits and summaries.
"""
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from stockledger.extensions import db
from stockledger.models import StockLot
from stockledger.services.ledger import (
    LOT_NOT_FOUND_MESSAGE,
    STALE_LOT_MESSAGE,
    InvalidRequest,
    LotNotFound,
    LotWrite,
    SqlAlchemyLotStore,
    WithdrawalCommitted,
    delete_lot,
    get_lot_summary,
    receive_lot,
    update_lot,
    withdraw_from_lot,
)
from stockledger.utils.timezone_utils import TimezoneUtils


class TestReceiveLot:

    def test_creates_a_versioned_lot(self, app):
        with app.app_context():
            success, message, lot = receive_lot(
                name=' flour ',
                category='baking',
                quantity='12.5',
                expiration_date='2030-01-01',
                delivery_date='2026-01-01T08:00:00+00:00',
                unit='kg',
            )

            assert success
            assert message == 'Inventory item added successfully'
            assert lot.item_name == 'flour'
            assert lot.quantity_on_hand == Decimal('12.5')
            assert lot.version == 1
            assert lot.unit == 'kg'

    def test_missing_fields_are_rejected(self, app):
        with app.app_context():
            success, message, lot = receive_lot('flour', '', 5, '2030-01-01', '2026-01-01')

            assert not success
            assert message == 'Name, category, quantity, delivery date, and expiration date are required'
            assert lot is None
            assert db.session.query(StockLot).count() == 0

    def test_non_positive_quantity_is_rejected(self, app):
        with app.app_context():
            success, message, _ = receive_lot('flour', 'baking', 0, '2030-01-01', '2026-01-01')

            assert not success
            assert message == 'Quantity must be a positive number'

    def test_invalid_dates_are_rejected(self, app):
        with app.app_context():
            assert receive_lot('flour', 'baking', 1, 'soon', '2026-01-01')[1] == 'Invalid expiration date'
            assert receive_lot('flour', 'baking', 1, '2030-01-01', 'yesterday')[1] == 'Invalid delivery date'

    def test_unit_defaults_from_config(self, app):
        app.config['LEDGER_DEFAULT_UNIT'] = 'kg'
        with app.app_context():
            _, _, lot = receive_lot('flour', 'baking', 1, '2030-01-01', '2026-01-01')
            assert lot.unit == 'kg'


class TestWithdrawFromLot:

    def test_returns_the_referenced_lot_as_persisted(self, app, make_lot):
        with app.app_context():
            lot_id = make_lot(quantity=5)

            result = withdraw_from_lot(lot_id, 2)

            assert isinstance(result, WithdrawalCommitted)
            assert result.target_lot.id == lot_id
            assert result.target_lot.quantity_on_hand == Decimal('3')
            assert result.target_lot.version == 2

    def test_consumption_spans_the_items_newest_lots(self, app, make_lot):
        with app.app_context():
            old_id = make_lot(quantity=5, hours=0)
            new_id = make_lot(quantity=5, hours=1)

            result = withdraw_from_lot(old_id, 3)

            assert result.ok
            assert [lot.id for lot in result.mutated_lots] == [new_id]
            assert result.target_lot.quantity_on_hand == Decimal('5')
            assert SqlAlchemyLotStore().get(new_id).quantity_on_hand == Decimal('2')

    def test_unknown_lot(self, app):
        with app.app_context():
            result = withdraw_from_lot(404, 1)

            assert isinstance(result, LotNotFound)
            assert result.message == LOT_NOT_FOUND_MESSAGE
            assert update_lot(404, {}) == (False, result.message, None)

    def test_quantity_is_validated_before_the_lookup(self, app):
        with app.app_context():
            assert isinstance(withdraw_from_lot(404, 'lots'), InvalidRequest)


class TestAdminEdits:

    def test_update_lot_changes_fields_and_bumps_version(self, app, make_lot):
        with app.app_context():
            lot_id = make_lot(quantity=5)

            success, message, lot = update_lot(lot_id, {
                'name': 'rye flour',
                'quantity': '7',
                'expirationDate': '2031-06-01T00:00:00+00:00',
                'unit': 'kg',
            })

            assert success
            assert message == 'Inventory item updated successfully'
            assert lot.item_name == 'rye flour'
            assert lot.quantity_on_hand == Decimal('7')
            assert lot.unit == 'kg'
            assert lot.version == 2

    def test_update_unknown_lot(self, app):
        with app.app_context():
            assert update_lot(1, {'quantity': 1}) == (False, LOT_NOT_FOUND_MESSAGE, None)

    def test_update_rejects_negative_quantity(self, app, make_lot):
        with app.app_context():
            lot_id = make_lot(quantity=5)

            success, message, _ = update_lot(lot_id, {'quantity': -3})

            assert not success
            assert message == 'Quantity must be a non-negative number'
            assert SqlAlchemyLotStore().get(lot_id).quantity_on_hand == Decimal('5')

    def test_update_loses_to_a_concurrent_withdrawal(self, app, make_lot):
        with app.app_context():
            lot_id = make_lot(quantity=5)
            loaded = db.session.get(StockLot, lot_id)
            assert loaded.version == 1

            # Withdrawal committed on another connection after the edit loaded the lot
            with Session(db.engine) as other:
                other_store = SqlAlchemyLotStore(session=other)
                snapshot = other_store.get(lot_id)
                assert other_store.batch_write([LotWrite(
                    lot_id=lot_id,
                    expected_version=snapshot.version,
                    new_quantity=Decimal('1'),
                    updated_at=TimezoneUtils.utc_now(),
                )]).ok

            assert update_lot(lot_id, {'category': 'pantry'}) == (False, STALE_LOT_MESSAGE, None)
            assert SqlAlchemyLotStore().get(lot_id).quantity_on_hand == Decimal('1')

    def test_delete_lot(self, app, make_lot):
        with app.app_context():
            lot_id = make_lot()

            assert delete_lot(lot_id) == (True, 'Inventory item deleted successfully')
            assert delete_lot(lot_id) == (False, LOT_NOT_FOUND_MESSAGE)


class TestLotSummary:

    def test_summary_lists_lots_in_consumption_order(self, app, make_lot):
        soon = TimezoneUtils.utc_now() + timedelta(days=2)
        past = TimezoneUtils.utc_now() - timedelta(days=2)
        with app.app_context():
            old_id = make_lot(quantity=4, hours=0, expiration_date=past.isoformat())
            new_id = make_lot(quantity='1.5', hours=3, expiration_date=soon.isoformat())
            make_lot(name='sugar', quantity=9)

            summary = get_lot_summary('flour')

            assert summary['item_name'] == 'flour'
            assert summary['total_lots'] == 2
            assert summary['total_quantity'] == 5.5
            assert summary['expired_lots'] == 1
            assert summary['expiring_soon'] == 1
            assert [lot['id'] for lot in summary['lots']] == [new_id, old_id]

    def test_summary_for_unknown_item(self, app):
        with app.app_context():
            summary = get_lot_summary('nothing')

            assert summary['total_lots'] == 0
            assert summary['total_quantity'] == 0
            assert summary['lots'] == []
