"""Product data fetching for the offer display.

The storefront is reached through a ``ProductQuery`` capability. The host
normally provides one; ``StorefrontProductQuery`` talks to the storefront
GraphQL endpoint directly over httpx.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx
import structlog

from .errors import FetchError, TransportError, errmsg
from .validation import optional_mapping

logger = structlog.get_logger()

VARIANTS_QUERY = """
fragment VariantFields on ProductVariant {
  id
  title
  image {
    url
  }
  price {
    amount
  }
}

query($offeredProductId: ID!, $freeProductId: ID!) {
  offeredProduct: node(id: $offeredProductId) {
    ... VariantFields
  }
  freeProduct: node(id: $freeProductId) {
    ... VariantFields
  }
}
"""

ACCESS_TOKEN_HEADER = "X-Shopify-Storefront-Access-Token"


@dataclass(frozen=True)
class ProductVariant:
    id: str
    title: str
    image_url: Optional[str]
    price_amount: Decimal


@dataclass(frozen=True)
class FetchedProducts:
    offered_product: Optional[ProductVariant]
    free_product: Optional[ProductVariant]

    def complete(self) -> bool:
        return self.offered_product is not None and self.free_product is not None


class ProductQuery(ABC):
    """Capability for running a storefront GraphQL query."""

    @abstractmethod
    async def query(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        """Run the query and return the decoded response body."""


class StorefrontProductQuery(ProductQuery):
    """ProductQuery backed by the storefront GraphQL endpoint."""

    def __init__(self, api_url: str, access_token: str = "", timeout: float = 10.0, transport=None):
        self.api_url = api_url
        self._headers = {ACCESS_TOKEN_HEADER: access_token} if access_token else {}
        self._timeout = timeout
        self._transport = transport

    async def query(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.api_url,
                    json={"query": query, "variables": dict(variables)},
                    headers=self._headers,
                )
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError(e) from e


def parse_variant(raw: Any) -> Optional[ProductVariant]:
    """Decode one nullable variant record; incomplete records count as missing."""
    if not isinstance(raw, Mapping) or not raw.get("id"):
        return None

    amount = optional_mapping(raw, "price").get("amount")
    if amount is None:
        return None
    try:
        price = Decimal(str(amount))
    except InvalidOperation:
        return None

    return ProductVariant(
        id=str(raw["id"]),
        title=str(raw.get("title") or ""),
        image_url=optional_mapping(raw, "image").get("url") or None,
        price_amount=price,
    )


class ProductDataFetcher:
    """Fetches display data for the offered and free variants in one query."""

    def __init__(self, product_query: ProductQuery):
        self._query = product_query

    @property
    def product_query(self) -> ProductQuery:
        return self._query

    async def fetch(self, offered_id: str, free_id: str) -> FetchedProducts:
        """Fetch both variants.

        Raises:
            FetchError: the query failed in transport or returned errors.
        """
        variables = {"offeredProductId": offered_id, "freeProductId": free_id}
        try:
            body = await self._query.query(VARIANTS_QUERY, variables)
        except Exception as e:
            logger.error("product_fetch_failed", error=str(e), **variables)
            raise FetchError("catalog query failed", e) from e

        if not isinstance(body, Mapping):
            logger.error("product_fetch_failed", error="response is not an object", **variables)
            raise FetchError("catalog response is not an object")
        if body.get("errors"):
            logger.error("product_fetch_failed", error=errmsg.GRAPHQL_ERRORS, errors=body["errors"], **variables)
            raise FetchError(errmsg.GRAPHQL_ERRORS)

        data = optional_mapping(body, "data")
        products = FetchedProducts(
            offered_product=parse_variant(data.get("offeredProduct")),
            free_product=parse_variant(data.get("freeProduct")),
        )
        logger.info(
            "products_fetched",
            offered_found=products.offered_product is not None,
            free_found=products.free_product is not None,
        )
        return products
