"""Free gift upsell: checkout discount decision and offer presentation."""

from .errors import (
    errmsg,
    ClientError,
    TransportError,
    FetchError,
    InvalidInputError,
    InvalidTransitionError,
)
from .cart import (
    UPSELL_PROMO_ATTRIBUTE,
    MerchandiseKind,
    CartLine,
    CartState,
    parse_cart,
)
from .config import (
    CONFIG_MISSING,
    ConfigMissing,
    Configuration,
    ConfigResolver,
    MetafieldConfigResolver,
    CompiledConfigResolver,
)
from .eligibility import UPSELL_PROMO_VALUE, is_eligible
from .matcher import find_line
from .discount import (
    EMPTY_DISCOUNT,
    INPUT_QUERY,
    DiscountApplicationStrategy,
    DiscountLine,
    DiscountDecision,
    decide,
    evaluate,
    run,
)
from .catalog import (
    VARIANTS_QUERY,
    ProductVariant,
    FetchedProducts,
    ProductQuery,
    StorefrontProductQuery,
    ProductDataFetcher,
)
from .orchestrator import (
    CartLinesChange,
    AttributeChange,
    OperationResult,
    MutationOutcome,
    CartMutations,
    CartMutationOrchestrator,
)
from .offer import (
    ERROR_DISPLAY_SECONDS,
    OfferPhase,
    OfferState,
    LoadingView,
    OfferView,
    OfferPresenter,
    currency_formatter,
)
from .metafields import (
    METAFIELD_NAMESPACE,
    METAFIELD_KEY,
    build_configuration_metafield,
    id_to_gid,
    gid_to_id,
)
from .runtime import (
    configure_logging,
    get_runtime_config,
    resolver_from_env,
    run_function,
)

__all__ = [
    # Errors
    "errmsg",
    "ClientError",
    "TransportError",
    "FetchError",
    "InvalidInputError",
    "InvalidTransitionError",
    # Cart
    "UPSELL_PROMO_ATTRIBUTE",
    "MerchandiseKind",
    "CartLine",
    "CartState",
    "parse_cart",
    # Configuration
    "CONFIG_MISSING",
    "ConfigMissing",
    "Configuration",
    "ConfigResolver",
    "MetafieldConfigResolver",
    "CompiledConfigResolver",
    # Decision
    "UPSELL_PROMO_VALUE",
    "is_eligible",
    "find_line",
    "EMPTY_DISCOUNT",
    "INPUT_QUERY",
    "DiscountApplicationStrategy",
    "DiscountLine",
    "DiscountDecision",
    "decide",
    "evaluate",
    "run",
    # Catalog
    "VARIANTS_QUERY",
    "ProductVariant",
    "FetchedProducts",
    "ProductQuery",
    "StorefrontProductQuery",
    "ProductDataFetcher",
    # Cart mutations
    "CartLinesChange",
    "AttributeChange",
    "OperationResult",
    "MutationOutcome",
    "CartMutations",
    "CartMutationOrchestrator",
    # Offer presentation
    "ERROR_DISPLAY_SECONDS",
    "OfferPhase",
    "OfferState",
    "LoadingView",
    "OfferView",
    "OfferPresenter",
    "currency_formatter",
    # Authoring
    "METAFIELD_NAMESPACE",
    "METAFIELD_KEY",
    "build_configuration_metafield",
    "id_to_gid",
    "gid_to_id",
    # Runtime
    "configure_logging",
    "get_runtime_config",
    "resolver_from_env",
    "run_function",
]
