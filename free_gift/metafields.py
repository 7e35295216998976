"""Metafield payloads and global id helpers used when authoring the discount."""

from .config import Configuration
from .errors import errmsg
from .validation import require_distinct, require_not_empty

METAFIELD_NAMESPACE = "$app:free-gift"
METAFIELD_KEY = "function-configuration"
METAFIELD_TYPE = "json"

GID_PREFIX = "gid://shopify/"


def id_to_gid(resource: str, resource_id: str | int) -> str:
    """Convert a numeric resource id into a global id."""
    return f"{GID_PREFIX}{resource}/{resource_id}"


def gid_to_id(gid: str) -> str:
    """Return the trailing numeric part of a global id."""
    return gid.rsplit("/", 1)[-1]


def build_configuration_metafield(config: Configuration, owner_id: str) -> dict:
    """Build the ``metafieldsSet`` input carrying the discount configuration.

    The engine does not re-check that the two ids differ, so it is enforced
    here, where the merchant authors the configuration.
    """
    require_not_empty(owner_id, errmsg.OWNER_ID_REQUIRED)
    require_not_empty(config.offered_product_id, errmsg.PRODUCT_IDS_REQUIRED)
    require_not_empty(config.free_product_id, errmsg.PRODUCT_IDS_REQUIRED)
    require_distinct(config.offered_product_id, config.free_product_id, errmsg.PRODUCT_IDS_DISTINCT)

    return {
        "ownerId": owner_id,
        "namespace": METAFIELD_NAMESPACE,
        "key": METAFIELD_KEY,
        "type": METAFIELD_TYPE,
        "value": config.to_json(),
    }
