"""Lookup of product variants within cart lines."""

from typing import Optional

from .cart import CartLine, CartState, MerchandiseKind


def find_line(cart: CartState, variant_id: str) -> Optional[CartLine]:
    """Return the first product variant line with the given id, or None."""
    for line in cart.lines:
        if line.merchandise_kind is MerchandiseKind.PRODUCT_VARIANT and line.merchandise_id == variant_id:
            return line
    return None
