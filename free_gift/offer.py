"""Offer presentation state machine for the checkout upsell.

Phases:

    LOADING -> HIDDEN | OFFERING
    HIDDEN <-> OFFERING          (offered variant leaves / enters the cart)
    OFFERING -> ADDING -> OFFERING | ERROR_SHOWN
    ERROR_SHOWN -> OFFERING      (error display expires)
    ERROR_SHOWN -> ADDING | HIDDEN

The presenter owns the one piece of scheduled work, the error display
timer. It is an asyncio task that is cancelled when a newer error display
starts, when the offer is hidden, and on unmount.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Callable, Optional

import structlog

from .cart import CartLine, line_ids
from .catalog import FetchedProducts, ProductDataFetcher, ProductVariant
from .config import Configuration
from .errors import FetchError, InvalidTransitionError, errmsg
from .orchestrator import CartMutationOrchestrator, MutationOutcome

logger = structlog.get_logger()

ERROR_DISPLAY_SECONDS = 3.0

HEADING = "Add to your cart to get a free gift!"
BUTTON_LABEL = "Add"
PLACEHOLDER_IMAGE_URL = (
    "https://cdn.shopify.com/s/files/1/0533/2089/files/placeholder-images-image_medium.png"
    "?format=webp&v=1530129081"
)

CURRENCY_SYMBOLS = {"USD": "$", "CAD": "$", "AUD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}

CurrencyFormatter = Callable[[Decimal], str]


def currency_formatter(currency_code: str = "USD") -> CurrencyFormatter:
    """Fallback formatter for when the host does not supply its i18n one."""
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper())

    def format_currency(amount: Decimal) -> str:
        if symbol:
            return f"{symbol}{amount:,.2f}"
        return f"{amount:,.2f} {currency_code.upper()}"

    return format_currency


class OfferPhase(Enum):
    LOADING = auto()
    HIDDEN = auto()
    OFFERING = auto()
    ADDING = auto()
    ERROR_SHOWN = auto()


ALLOWED_TRANSITIONS: dict[OfferPhase, frozenset[OfferPhase]] = {
    OfferPhase.LOADING: frozenset({OfferPhase.HIDDEN, OfferPhase.OFFERING}),
    OfferPhase.HIDDEN: frozenset({OfferPhase.OFFERING}),
    OfferPhase.OFFERING: frozenset({OfferPhase.HIDDEN, OfferPhase.ADDING}),
    OfferPhase.ADDING: frozenset({OfferPhase.OFFERING, OfferPhase.ERROR_SHOWN}),
    OfferPhase.ERROR_SHOWN: frozenset({OfferPhase.OFFERING, OfferPhase.HIDDEN, OfferPhase.ADDING}),
}


@dataclass
class OfferState:
    phase: OfferPhase = OfferPhase.LOADING
    offered_product: Optional[ProductVariant] = None
    free_product: Optional[ProductVariant] = None
    error_timer: Optional[asyncio.Task] = None
    cart_line_ids: tuple[str, ...] = field(default_factory=tuple)

    def resolved(self) -> bool:
        return self.offered_product is not None and self.free_product is not None

    def error_pending(self) -> bool:
        return self.error_timer is not None and not self.error_timer.done()


@dataclass(frozen=True)
class LoadingView:
    heading: str = HEADING
    button_label: str = BUTTON_LABEL


@dataclass(frozen=True)
class OfferView:
    heading: str
    title: str
    price: str
    image_url: str
    button_label: str
    accessibility_label: str
    button_loading: bool
    error_banner: Optional[str] = None


class OfferPresenter:
    """Drives the offer display for one checkout UI instance."""

    def __init__(
        self,
        config: Configuration,
        fetcher: ProductDataFetcher,
        orchestrator: CartMutationOrchestrator,
        cart_lines: Iterable[CartLine] = (),
        format_currency: Optional[CurrencyFormatter] = None,
        error_display_seconds: float = ERROR_DISPLAY_SECONDS,
        on_change: Optional[Callable[[OfferState], None]] = None,
    ):
        self._config = config
        self._fetcher = fetcher
        self._orchestrator = orchestrator
        self._format_currency = format_currency or currency_formatter()
        self._error_display_seconds = error_display_seconds
        self._on_change = on_change
        self._state = OfferState(cart_line_ids=tuple(line_ids(cart_lines)))
        self._load_started = False
        self._mounted = True

    @property
    def state(self) -> OfferState:
        return self._state

    @property
    def phase(self) -> OfferPhase:
        return self._state.phase

    @property
    def mounted(self) -> bool:
        return self._mounted

    def _transition(self, target: OfferPhase) -> None:
        source = self._state.phase
        if target not in ALLOWED_TRANSITIONS[source]:
            raise InvalidTransitionError(source.name, target.name)

        self._state.phase = target
        logger.info("offer_transition", source=source.name, target=target.name)
        if self._on_change:
            self._on_change(self._state)

    def _offered_in_cart(self) -> bool:
        offered = self._state.offered_product
        return offered is not None and offered.id in self._state.cart_line_ids

    def _refresh_visibility(self) -> None:
        phase = self._state.phase
        if phase in (OfferPhase.OFFERING, OfferPhase.ERROR_SHOWN) and self._offered_in_cart():
            self._cancel_error_timer()
            self._transition(OfferPhase.HIDDEN)
        elif phase is OfferPhase.HIDDEN and self._state.resolved() and not self._offered_in_cart():
            self._transition(OfferPhase.OFFERING)

    async def load(self) -> OfferState:
        """Fetch the product data and leave LOADING. Runs once per instance."""
        if self._load_started:
            return self._state
        self._load_started = True

        products: Optional[FetchedProducts]
        try:
            products = await self._fetcher.fetch(
                self._config.offered_product_id,
                self._config.free_product_id,
            )
        except FetchError:
            products = None

        if not self._mounted:
            logger.debug("offer_fetch_discarded")
            return self._state

        if products is None or not products.complete():
            self._transition(OfferPhase.HIDDEN)
            return self._state

        self._state.offered_product = products.offered_product
        self._state.free_product = products.free_product
        if self._offered_in_cart():
            self._transition(OfferPhase.HIDDEN)
        else:
            self._transition(OfferPhase.OFFERING)
        return self._state

    def on_cart_lines_changed(self, lines: Iterable[CartLine]) -> None:
        """Host notification that the cart lines changed."""
        if not self._mounted:
            return
        self._state.cart_line_ids = tuple(line_ids(lines))
        self._refresh_visibility()

    async def accept(self) -> MutationOutcome:
        """Shopper accepted the offer; add both lines and set the promo flag.

        Raises:
            InvalidTransitionError: the offer is not currently actionable.
        """
        self._transition(OfferPhase.ADDING)
        offered = self._state.offered_product
        free = self._state.free_product

        outcome = await self._orchestrator.apply_offer(offered.id, free.id)

        if not self._mounted:
            logger.debug("offer_mutation_discarded", failed=outcome.failed)
            return outcome

        if outcome.failed:
            self._transition(OfferPhase.ERROR_SHOWN)
            self._start_error_timer()
        else:
            self._cancel_error_timer()
            self._transition(OfferPhase.OFFERING)
        self._refresh_visibility()
        return outcome

    def unmount(self) -> None:
        """Tear down; pending results are discarded and the timer cancelled."""
        self._mounted = False
        self._cancel_error_timer()

    def _start_error_timer(self) -> None:
        self._cancel_error_timer()
        self._state.error_timer = asyncio.get_running_loop().create_task(
            self._expire_error(self._error_display_seconds)
        )

    def _cancel_error_timer(self) -> None:
        timer = self._state.error_timer
        if timer is not None:
            timer.cancel()
            self._state.error_timer = None

    async def _expire_error(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._state.error_timer is not asyncio.current_task():
            return
        self._state.error_timer = None
        if self._mounted and self._state.phase is OfferPhase.ERROR_SHOWN:
            self._transition(OfferPhase.OFFERING)

    def render(self) -> LoadingView | OfferView | None:
        """Return the view model for the current phase; None renders nothing."""
        phase = self._state.phase
        if phase is OfferPhase.LOADING:
            return LoadingView()
        if phase is OfferPhase.HIDDEN:
            return None

        offered = self._state.offered_product
        error_visible = phase is OfferPhase.ERROR_SHOWN or (
            phase is OfferPhase.ADDING and self._state.error_pending()
        )
        return OfferView(
            heading=HEADING,
            title=offered.title,
            price=self._format_currency(offered.price_amount),
            image_url=offered.image_url or PLACEHOLDER_IMAGE_URL,
            button_label=BUTTON_LABEL,
            accessibility_label=f"Add {offered.title} to cart",
            button_loading=phase is OfferPhase.ADDING,
            error_banner=errmsg.MUTATION_FAILED if error_visible else None,
        )
