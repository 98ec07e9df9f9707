from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from ...models.lot_snapshot import QUANTITY_SCALE


def coerce_quantity(raw, *, allow_zero: bool = False) -> Tuple[Optional[Decimal], Optional[str]]:
    """
    Coerce a caller-supplied quantity to Decimal.

    Returns: (quantity, error) - exactly one of them is None.
    """
    requirement = 'a non-negative number' if allow_zero else 'a positive number'

    # bool is an int subclass; True must not read as 1
    if raw is None or isinstance(raw, bool):
        return None, f"Quantity must be {requirement}"

    try:
        if isinstance(raw, float):
            quantity = Decimal(repr(raw))
        elif isinstance(raw, str):
            quantity = Decimal(raw.strip())
        elif isinstance(raw, (int, Decimal)):
            quantity = Decimal(raw)
        else:
            return None, f"Quantity must be {requirement}"
    except (InvalidOperation, TypeError, ValueError):
        return None, f"Quantity must be {requirement}"

    if not quantity.is_finite():
        return None, f"Quantity must be {requirement}"

    if quantity < 0 or (quantity == 0 and not allow_zero):
        return None, f"Quantity must be {requirement}"

    # Trailing zeros do not count against the scale
    if quantity.normalize().as_tuple().exponent < -QUANTITY_SCALE:
        return None, f"Quantity supports at most {QUANTITY_SCALE} decimal places"

    return quantity, None


def validate_item_name(raw) -> Tuple[Optional[str], Optional[str]]:
    if not isinstance(raw, str) or not raw.strip():
        return None, "Item name is required"
    return raw.strip(), None
