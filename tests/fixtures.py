"""Shared test fixtures for cart inputs, catalog responses and host capabilities.

Variants:
- V1: the offered product that triggers the gift
- V2: the free gift
- V3: an unrelated product already in the cart
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

from free_gift.cart import UPSELL_PROMO_ATTRIBUTE, CartLine, CartState, MerchandiseKind
from free_gift.catalog import ProductQuery
from free_gift.config import Configuration
from free_gift.orchestrator import AttributeChange, CartLinesChange, CartMutations, OperationResult

V1 = "gid://shopify/ProductVariant/1"
V2 = "gid://shopify/ProductVariant/2"
V3 = "gid://shopify/ProductVariant/3"

CONFIG = Configuration(offered_product_id=V1, free_product_id=V2)
CONFIG_JSON = '{"offeredProductId": "%s", "freeProductId": "%s"}' % (V1, V2)


def make_cart(*variant_ids: str, promo: Optional[str] = "true") -> CartState:
    """Cart holding one product variant line per id."""
    attributes = {} if promo is None else {UPSELL_PROMO_ATTRIBUTE: promo}
    return CartState(
        lines=tuple(CartLine(v, MerchandiseKind.PRODUCT_VARIANT, 1) for v in variant_ids),
        attributes=attributes,
    )


def input_line(variant_id: str, typename: str = "ProductVariant", quantity: int = 1) -> dict:
    return {"quantity": quantity, "merchandise": {"__typename": typename, "id": variant_id}}


def function_input(
    *variant_ids: str,
    promo: Optional[str] = "true",
    config_json: Optional[str] = CONFIG_JSON,
) -> dict:
    """Host function input in the shape produced by the input query."""
    cart: dict[str, Any] = {"lines": [input_line(v) for v in variant_ids]}
    cart["isUpsellPromo"] = None if promo is None else {"value": promo}
    discount_node = {"metafield": None if config_json is None else {"value": config_json}}
    return {"cart": cart, "discountNode": discount_node}


def variant_record(variant_id: str, title: str, amount: str = "19.99", image_url: Optional[str] = None) -> dict:
    return {
        "id": variant_id,
        "title": title,
        "image": {"url": image_url} if image_url else None,
        "price": {"amount": amount},
    }


def catalog_body(offered: Optional[dict] = None, free: Optional[dict] = None) -> dict:
    return {"data": {"offeredProduct": offered, "freeProduct": free}}


class FakeProductQuery(ProductQuery):
    """ProductQuery returning a canned body, or raising a canned error."""

    def __init__(self, body: Optional[Mapping] = None, error: Optional[Exception] = None):
        self.body = body if body is not None else catalog_body(
            variant_record(V1, "Trail Backpack", "49.50", "https://cdn.example/backpack.png"),
            variant_record(V2, "Water Bottle", "12.00"),
        )
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    async def query(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((query, dict(variables)))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.body


class FakeCartMutations(CartMutations):
    """Host cart capabilities that record every operation.

    ``failures`` maps a merchandise id or attribute key to the error message
    the host returns for it. Successful operations are applied to
    ``lines`` and ``attributes`` the way the host cart would apply them.
    """

    def __init__(self, failures: Optional[dict[str, str]] = None, delays: Optional[dict[str, float]] = None):
        self.failures = failures or {}
        self.delays = delays or {}
        self.lines: list[str] = []
        self.attributes: dict[str, str] = {}
        self.calls: list[Any] = []
        self.completed: list[str] = []

    async def _apply(self, key: str, change) -> OperationResult:
        self.calls.append(change)
        await asyncio.sleep(self.delays.get(key, 0))
        self.completed.append(key)
        if key in self.failures:
            return OperationResult.error(self.failures[key])
        return OperationResult.success()

    async def apply_cart_lines_change(self, change: CartLinesChange) -> OperationResult:
        result = await self._apply(change.merchandise_id, change)
        if not result.is_error():
            self.lines.append(change.merchandise_id)
        return result

    async def apply_attribute_change(self, change: AttributeChange) -> OperationResult:
        result = await self._apply(change.key, change)
        if not result.is_error():
            self.attributes[change.key] = change.value
        return result

    def cart(self) -> CartState:
        """Current host cart as the discount function would see it."""
        return CartState(
            lines=tuple(CartLine(v, MerchandiseKind.PRODUCT_VARIANT, 1) for v in self.lines),
            attributes=dict(self.attributes),
        )
