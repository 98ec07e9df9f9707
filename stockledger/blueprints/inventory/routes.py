from ...services.ledger import (
    LOT_NOT_FOUND_MESSAGE,
    STALE_LOT_MESSAGE,
    delete_lot,
    get_lot_summary,
    list_lots,
    list_lots_by_category,
    receive_lot,
    update_lot,
    withdraw_from_lot,
)
from ...utils.api_responses import APIResponse
from . import inventory_bp

# Ledger failure status -> HTTP status
WITHDRAWAL_STATUS_CODES = {
    'invalid_request': 400,
    'insufficient_stock': 400,
    'not_found': 404,
    'concurrent_modification': 409,
    'timed_out': 503,
}


@inventory_bp.route('/', methods=['POST'])
def create_inventory_item():
    data = APIResponse.handle_request_content()
    success, message, lot = receive_lot(
        name=data.get('name'),
        category=data.get('category'),
        quantity=data.get('quantity'),
        expiration_date=data.get('expirationDate'),
        delivery_date=data.get('deliveryDate'),
        unit=data.get('unit'),
    )
    if not success:
        return APIResponse.error(message)
    return APIResponse.success(lot.to_dict(), message=message, status_code=201)


@inventory_bp.route('/', methods=['GET'])
def get_inventory_items():
    return APIResponse.success([lot.to_dict() for lot in list_lots()])


@inventory_bp.route('/category/<category>', methods=['GET'])
def get_inventory_by_category(category):
    return APIResponse.success([lot.to_dict() for lot in list_lots_by_category(category)])


@inventory_bp.route('/availability/<item_name>', methods=['GET'])
def get_item_availability(item_name):
    return APIResponse.success(get_lot_summary(item_name))


@inventory_bp.route('/<int:lot_id>/quantity', methods=['PATCH'])
def update_inventory_quantity(lot_id):
    """Reduce stock for the referenced lot's item, newest lots first."""
    data = APIResponse.handle_request_content()
    result = withdraw_from_lot(lot_id, data.get('quantity'))

    if not result.ok:
        errors = {'status': result.status}
        if getattr(result, 'retryable', False):
            errors['retryable'] = True
        return APIResponse.error(
            result.message,
            errors=errors,
            status_code=WITHDRAWAL_STATUS_CODES.get(result.status, 400),
        )

    return APIResponse.success(result.to_dict(), message='Inventory quantity updated successfully (LIFO)')


@inventory_bp.route('/<int:lot_id>', methods=['PUT'])
def update_inventory_item(lot_id):
    data = APIResponse.handle_request_content()
    success, message, lot = update_lot(lot_id, data)
    if not success:
        return APIResponse.error(message, status_code=_admin_failure_status(message))
    return APIResponse.success(lot.to_dict(), message=message)


@inventory_bp.route('/<int:lot_id>', methods=['DELETE'])
def delete_inventory_item(lot_id):
    success, message = delete_lot(lot_id)
    if not success:
        return APIResponse.error(message, status_code=_admin_failure_status(message))
    return APIResponse.success(message=message)


def _admin_failure_status(message: str) -> int:
    if message == LOT_NOT_FOUND_MESSAGE:
        return 404
    if message == STALE_LOT_MESSAGE:
        return 409
    return 400
