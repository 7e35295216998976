"""Free gift discount decision.

Business Rules:
1. A configuration naming the offered and the free variant must resolve
2. The cart must carry the upsell promo flag set to exactly "true"
3. Both the offered and the free variant must already be cart lines
4. When all hold, the free variant is discounted 100% with the MAXIMUM
   application strategy so it composes with other discounts

The decision is re-derived from (configuration, cart) on every call and
never raises out of ``evaluate``/``run``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from .cart import UPSELL_PROMO_ALIAS, UPSELL_PROMO_ATTRIBUTE, CartState, parse_cart
from .config import CONFIG_MISSING, ConfigResolver, MetafieldConfigResolver, ResolvedConfig
from .eligibility import is_eligible
from .errors import errmsg
from .matcher import find_line
from .metafields import METAFIELD_KEY, METAFIELD_NAMESPACE
from .validation import optional_mapping, require_mapping

logger = structlog.get_logger()

FREE_GIFT_PERCENTAGE = 100
FREE_GIFT_MESSAGE = "Free Gift"

INPUT_QUERY = f"""
query Input {{
  cart {{
    lines {{
      quantity
      merchandise {{
        __typename
        ... on ProductVariant {{
          id
        }}
      }}
    }}
    {UPSELL_PROMO_ALIAS}: attribute(key: "{UPSELL_PROMO_ATTRIBUTE}") {{
      value
    }}
  }}
  discountNode {{
    metafield(namespace: "{METAFIELD_NAMESPACE}", key: "{METAFIELD_KEY}") {{
      value
    }}
  }}
}}
"""


class DiscountApplicationStrategy(Enum):
    FIRST = "FIRST"
    MAXIMUM = "MAXIMUM"


@dataclass(frozen=True)
class DiscountLine:
    percentage: int
    target_variant_id: str
    message: str

    def to_dict(self) -> dict:
        return {
            "value": {"percentage": {"value": self.percentage}},
            "targets": [{"productVariant": {"id": self.target_variant_id}}],
            "message": self.message,
        }


@dataclass(frozen=True)
class DiscountDecision:
    strategy: DiscountApplicationStrategy
    discounts: tuple[DiscountLine, ...] = ()

    def is_empty(self) -> bool:
        return not self.discounts

    def to_dict(self) -> dict:
        """Render the decision in the host's function result shape."""
        return {
            "discountApplicationStrategy": self.strategy.value,
            "discounts": [line.to_dict() for line in self.discounts],
        }


EMPTY_DISCOUNT = DiscountDecision(strategy=DiscountApplicationStrategy.FIRST)


def decide(config: ResolvedConfig, cart: CartState, log=logger) -> DiscountDecision:
    """Decide whether the free variant in the cart is discounted."""
    if config is CONFIG_MISSING:
        log.warning("no_offer_configuration", reason=errmsg.CONFIG_MISSING)
        return EMPTY_DISCOUNT

    if not is_eligible(cart):
        log.warning("cart_missing_upsell_promo", reason=errmsg.CART_NOT_PROMO)
        return EMPTY_DISCOUNT

    offered_line = find_line(cart, config.offered_product_id)
    free_line = find_line(cart, config.free_product_id)
    if offered_line is None or free_line is None:
        log.warning(
            "cart_missing_required_products",
            reason=errmsg.PRODUCTS_NOT_IN_CART,
            offered_found=offered_line is not None,
            free_found=free_line is not None,
        )
        return EMPTY_DISCOUNT

    return DiscountDecision(
        strategy=DiscountApplicationStrategy.MAXIMUM,
        discounts=(
            DiscountLine(
                percentage=FREE_GIFT_PERCENTAGE,
                target_variant_id=free_line.merchandise_id,
                message=FREE_GIFT_MESSAGE,
            ),
        ),
    )


def evaluate(config: ResolvedConfig, cart: CartState, log=logger) -> DiscountDecision:
    """Run ``decide``, degrading any unexpected fault to the empty decision."""
    try:
        return decide(config, cart, log)
    except Exception:
        log.exception("discount_evaluation_failed")
        return EMPTY_DISCOUNT


def metafield_value(input_data: Mapping) -> Optional[str]:
    """Extract ``discountNode.metafield.value`` from the function input."""
    metafield = optional_mapping(optional_mapping(input_data, "discountNode"), "metafield")
    value = metafield.get("value")
    return value if isinstance(value, str) else None


def run(input_data: Any, resolver: Optional[ConfigResolver] = None, log=logger) -> dict:
    """Host entry point: function input in, function result out.

    Malformed input, resolver faults and engine faults all produce the
    empty decision.
    """
    resolver = resolver or MetafieldConfigResolver()
    try:
        data = require_mapping(input_data, errmsg.INPUT_NOT_OBJECT)
        cart = parse_cart(data.get("cart"))
        config = resolver.resolve(metafield_value(data))
    except Exception:
        log.exception("function_input_rejected")
        return EMPTY_DISCOUNT.to_dict()

    return evaluate(config, cart, log).to_dict()
