"""Cart mutation orchestration for an accepted offer.

Accepting the offer dispatches three independent operations together:

- add the offered variant (quantity 1)
- add the free variant (quantity 1)
- set the upsell promo cart attribute to "true"

The flow is best effort. Operations that succeed are never undone when a
sibling fails; the discount decision re-evaluates the cart on its own and
grants nothing until both lines and the flag are present.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

import structlog

from .cart import UPSELL_PROMO_ATTRIBUTE
from .eligibility import UPSELL_PROMO_VALUE

logger = structlog.get_logger()

RESULT_SUCCESS = "success"
RESULT_ERROR = "error"


@dataclass(frozen=True)
class CartLinesChange:
    merchandise_id: str
    quantity: int = 1
    type: Literal["addCartLine"] = "addCartLine"


@dataclass(frozen=True)
class AttributeChange:
    key: str
    value: str
    type: Literal["updateAttribute"] = "updateAttribute"


@dataclass(frozen=True)
class OperationResult:
    type: str
    message: str = ""

    @classmethod
    def success(cls) -> "OperationResult":
        return cls(type=RESULT_SUCCESS)

    @classmethod
    def error(cls, message: str) -> "OperationResult":
        return cls(type=RESULT_ERROR, message=message)

    def is_error(self) -> bool:
        return self.type == RESULT_ERROR


@dataclass(frozen=True)
class MutationOutcome:
    """Settled results of the three operations, in dispatch order."""

    results: tuple[OperationResult, ...] = field(default_factory=tuple)

    @property
    def errors(self) -> list[str]:
        return [result.message for result in self.results if result.is_error()]

    @property
    def failed(self) -> bool:
        return any(result.is_error() for result in self.results)


class CartMutations(ABC):
    """Cart mutation capabilities provided by the host checkout."""

    @abstractmethod
    async def apply_cart_lines_change(self, change: CartLinesChange) -> OperationResult:
        """Apply a cart line change."""

    @abstractmethod
    async def apply_attribute_change(self, change: AttributeChange) -> OperationResult:
        """Apply a cart attribute change."""


class CartMutationOrchestrator:
    def __init__(self, mutations: CartMutations):
        self._mutations = mutations

    async def _settle(self, operation: str, apply, change) -> OperationResult:
        # A raising capability becomes an error result so siblings still settle.
        try:
            result = await apply(change)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            result = OperationResult.error(str(e) or type(e).__name__)

        if isinstance(result, Mapping):
            result = OperationResult(type=str(result.get("type", "")), message=str(result.get("message") or ""))
        if not isinstance(result, OperationResult):
            result = OperationResult.error(f"unexpected result from {operation}: {result!r}")
        elif result.type not in (RESULT_SUCCESS, RESULT_ERROR):
            # Only an explicit success counts as applied.
            result = OperationResult.error(
                result.message or f"unexpected result type from {operation}: {result.type!r}"
            )
        if result.is_error():
            logger.error("cart_mutation_failed", operation=operation, message=result.message)
        return result

    async def apply_offer(self, offered_id: str, free_id: str) -> MutationOutcome:
        """Add both variants and set the promo flag concurrently."""
        logger.info("applying_offer", offered_id=offered_id, free_id=free_id)

        results = await asyncio.gather(
            self._settle(
                "add_offered_line",
                self._mutations.apply_cart_lines_change,
                CartLinesChange(merchandise_id=offered_id),
            ),
            self._settle(
                "add_free_line",
                self._mutations.apply_cart_lines_change,
                CartLinesChange(merchandise_id=free_id),
            ),
            self._settle(
                "set_promo_attribute",
                self._mutations.apply_attribute_change,
                AttributeChange(key=UPSELL_PROMO_ATTRIBUTE, value=UPSELL_PROMO_VALUE),
            ),
        )

        outcome = MutationOutcome(results=tuple(results))
        if outcome.failed:
            logger.warning("offer_partially_applied", errors=outcome.errors)
        else:
            logger.info("offer_applied", offered_id=offered_id, free_id=free_id)
        return outcome
