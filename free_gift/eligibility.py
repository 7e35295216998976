"""Eligibility gate for the free gift promotion."""

from .cart import UPSELL_PROMO_ATTRIBUTE, CartState

# Written verbatim by the cart mutation orchestrator.
UPSELL_PROMO_VALUE = "true"


def is_eligible(cart: CartState) -> bool:
    """Return True if the cart carries the upsell promo flag.

    The comparison is exact and case sensitive: only the literal ``"true"``
    written by the orchestrator counts.
    """
    return cart.attribute(UPSELL_PROMO_ATTRIBUTE) == UPSELL_PROMO_VALUE
