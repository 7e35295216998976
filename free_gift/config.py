"""Configuration resolvers for the free gift discount.

Two deployment modes share one contract:

- MetafieldConfigResolver: parses the merchant-authored JSON stored on the
  discount metafield.
- CompiledConfigResolver: ignores its input and returns ids fixed at deploy
  time, for shops with no configuration mechanism provisioned.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import structlog

logger = structlog.get_logger()

OFFERED_PRODUCT_KEY = "offeredProductId"
FREE_PRODUCT_KEY = "freeProductId"

DEFAULT_OFFERED_PRODUCT_ID = "gid://shopify/ProductVariant/44983224303906"
DEFAULT_FREE_PRODUCT_ID = "gid://shopify/ProductVariant/44983223451938"


@dataclass(frozen=True)
class Configuration:
    """Variant ids of the product that triggers the gift and the gift itself."""

    offered_product_id: str
    free_product_id: str

    def to_json(self) -> str:
        return json.dumps(
            {OFFERED_PRODUCT_KEY: self.offered_product_id, FREE_PRODUCT_KEY: self.free_product_id},
            separators=(",", ":"),
        )


class ConfigMissing(Enum):
    """Sentinel for an absent or unusable configuration."""

    CONFIG_MISSING = "config_missing"


CONFIG_MISSING = ConfigMissing.CONFIG_MISSING

ResolvedConfig = Union[Configuration, ConfigMissing]


class ConfigResolver(ABC):
    """Turns the raw metafield value into a Configuration."""

    @abstractmethod
    def resolve(self, raw_config_json: Optional[str]) -> ResolvedConfig:
        """Resolve configuration for one evaluation."""


class MetafieldConfigResolver(ConfigResolver):
    def resolve(self, raw_config_json: Optional[str]) -> ResolvedConfig:
        if raw_config_json is None:
            return CONFIG_MISSING

        try:
            raw = json.loads(raw_config_json)
        except (TypeError, ValueError) as e:
            logger.warning("configuration_unparseable", error=str(e))
            return CONFIG_MISSING

        if not isinstance(raw, Mapping):
            return CONFIG_MISSING

        offered = raw.get(OFFERED_PRODUCT_KEY)
        free = raw.get(FREE_PRODUCT_KEY)
        if not offered or not free or not isinstance(offered, str) or not isinstance(free, str):
            return CONFIG_MISSING

        return Configuration(offered_product_id=offered, free_product_id=free)


class CompiledConfigResolver(ConfigResolver):
    def __init__(
        self,
        offered_product_id: str = DEFAULT_OFFERED_PRODUCT_ID,
        free_product_id: str = DEFAULT_FREE_PRODUCT_ID,
    ):
        self._config = Configuration(
            offered_product_id=offered_product_id,
            free_product_id=free_product_id,
        )

    @property
    def config(self) -> Configuration:
        return self._config

    def resolve(self, raw_config_json: Optional[str]) -> ResolvedConfig:
        return self._config
