"""Error types for the free gift upsell library."""

from typing import Optional


class errmsg:
    """Error and diagnostic message constants."""

    CONFIG_MISSING = "No offer configuration"
    CART_NOT_PROMO = "Cart does not have an upsell promo"
    PRODUCTS_NOT_IN_CART = "Cart does not contain required products"
    INPUT_NOT_OBJECT = "Function input must be a JSON object"
    CART_REQUIRED = "Function input has no cart"
    LINES_NOT_LIST = "Cart lines must be a list"
    MERCHANDISE_ID_REQUIRED = "Cart line merchandise id is required"
    PRODUCT_IDS_REQUIRED = "Offered and free product ids are required"
    PRODUCT_IDS_DISTINCT = "Offered and free product ids must differ"
    OWNER_ID_REQUIRED = "Metafield owner id is required"
    GRAPHQL_ERRORS = "Catalog query returned errors"
    MUTATION_FAILED = "There was an issue adding this product. Please try again."


class ClientError(Exception):
    """Base class for client errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class TransportError(ClientError):
    """Transport-level error."""

    def __init__(self, cause: Exception):
        super().__init__("transport error", cause)


class FetchError(ClientError):
    """Product data could not be fetched from the catalog."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"fetch failed: {message}", cause)


class InvalidInputError(ClientError):
    """Host input or authored configuration has the wrong shape."""

    def __init__(self, message: str):
        super().__init__(f"invalid input: {message}")


class InvalidTransitionError(ClientError):
    """Offer state machine was asked for a transition it does not allow."""

    def __init__(self, source: str, target: str):
        super().__init__(f"invalid transition: {source} -> {target}")
        self.source = source
        self.target = target
