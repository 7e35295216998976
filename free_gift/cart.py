"""Cart state and host input parsing."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .errors import errmsg
from .validation import optional_mapping, require_list, require_mapping, require_not_empty

UPSELL_PROMO_ATTRIBUTE = "__IsUpsellPromo"

# Alias under which the input query exposes the promo attribute.
UPSELL_PROMO_ALIAS = "isUpsellPromo"


class MerchandiseKind(Enum):
    PRODUCT_VARIANT = "ProductVariant"
    OTHER = "Other"

    @classmethod
    def from_typename(cls, typename: Any) -> "MerchandiseKind":
        if typename == cls.PRODUCT_VARIANT.value:
            return cls.PRODUCT_VARIANT
        return cls.OTHER


@dataclass(frozen=True)
class CartLine:
    # Empty for non-variant merchandise; the input query only selects variant ids.
    merchandise_id: str
    merchandise_kind: MerchandiseKind
    quantity: int = 1


@dataclass(frozen=True)
class CartState:
    lines: tuple[CartLine, ...] = ()
    attributes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def attribute(self, key: str) -> str | None:
        return self.attributes.get(key)


def parse_line(raw: Any) -> CartLine:
    line = require_mapping(raw, errmsg.LINES_NOT_LIST)
    merchandise = optional_mapping(line, "merchandise")
    kind = MerchandiseKind.from_typename(merchandise.get("__typename"))
    merchandise_id = merchandise.get("id")
    if kind is MerchandiseKind.PRODUCT_VARIANT:
        require_not_empty(merchandise_id, errmsg.MERCHANDISE_ID_REQUIRED)

    quantity = line.get("quantity", 1)
    return CartLine(
        merchandise_id=str(merchandise_id) if merchandise_id else "",
        merchandise_kind=kind,
        quantity=quantity if isinstance(quantity, int) else 1,
    )


def parse_cart(raw: Any) -> CartState:
    """Build a CartState from the ``cart`` object of the function input.

    Attributes come from the generic ``attributes`` list of ``{key, value}``
    pairs and from the aliased promo attribute, which wins when both are set.
    """
    cart = require_mapping(raw, errmsg.CART_REQUIRED)
    raw_lines = cart.get("lines")
    lines = tuple(parse_line(line) for line in require_list(raw_lines or [], errmsg.LINES_NOT_LIST))

    attributes: dict[str, str] = {}
    for entry in cart.get("attributes") or []:
        if isinstance(entry, Mapping) and entry.get("key") and entry.get("value") is not None:
            attributes[str(entry["key"])] = str(entry["value"])

    promo = optional_mapping(cart, UPSELL_PROMO_ALIAS)
    if promo.get("value") is not None:
        attributes[UPSELL_PROMO_ATTRIBUTE] = str(promo["value"])

    return CartState(lines=lines, attributes=attributes)


def line_ids(lines) -> list[str]:
    """Merchandise ids of every line that has one, in cart order."""
    return [line.merchandise_id for line in lines if line.merchandise_id]
