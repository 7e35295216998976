"""Runtime wiring: logging, environment configuration and the function runner.

The host invokes the discount function with its input on stdin and reads
the result from stdout, so logs go to stderr.
"""

import json
import os
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

import structlog

from .catalog import ProductDataFetcher, StorefrontProductQuery
from .config import (
    DEFAULT_FREE_PRODUCT_ID,
    DEFAULT_OFFERED_PRODUCT_ID,
    CompiledConfigResolver,
    ConfigResolver,
    MetafieldConfigResolver,
)
from .discount import run

CONFIG_SOURCE_METAFIELD = "metafield"
CONFIG_SOURCE_COMPILED = "compiled"


def configure_logging(level: int = 0, stream: Optional[TextIO] = None) -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
    )


@dataclass(frozen=True)
class RuntimeConfig:
    config_source: str = CONFIG_SOURCE_METAFIELD
    offered_product_id: str = DEFAULT_OFFERED_PRODUCT_ID
    free_product_id: str = DEFAULT_FREE_PRODUCT_ID
    storefront_api_url: str = ""
    storefront_access_token: str = ""
    storefront_timeout_seconds: float = 10.0


def get_runtime_config() -> RuntimeConfig:
    """Read runtime configuration from the environment.

    Environment variables:
        FREE_GIFT_CONFIG_SOURCE: "metafield" (default) or "compiled"
        FREE_GIFT_OFFERED_PRODUCT_ID: compiled offered variant id
        FREE_GIFT_FREE_PRODUCT_ID: compiled free variant id
        STOREFRONT_API_URL: storefront GraphQL endpoint
        STOREFRONT_ACCESS_TOKEN: storefront access token
        STOREFRONT_TIMEOUT_SECONDS: request timeout (default: 10)
    """
    timeout = os.environ.get("STOREFRONT_TIMEOUT_SECONDS", "10")
    try:
        timeout_seconds = float(timeout)
    except ValueError:
        timeout_seconds = 10.0

    return RuntimeConfig(
        config_source=os.environ.get("FREE_GIFT_CONFIG_SOURCE", CONFIG_SOURCE_METAFIELD).lower(),
        offered_product_id=os.environ.get("FREE_GIFT_OFFERED_PRODUCT_ID", DEFAULT_OFFERED_PRODUCT_ID),
        free_product_id=os.environ.get("FREE_GIFT_FREE_PRODUCT_ID", DEFAULT_FREE_PRODUCT_ID),
        storefront_api_url=os.environ.get("STOREFRONT_API_URL", ""),
        storefront_access_token=os.environ.get("STOREFRONT_ACCESS_TOKEN", ""),
        storefront_timeout_seconds=timeout_seconds,
    )


def resolver_from_config(config: RuntimeConfig) -> ConfigResolver:
    """Pick the configuration resolver for this deployment."""
    if config.config_source == CONFIG_SOURCE_COMPILED:
        return CompiledConfigResolver(config.offered_product_id, config.free_product_id)
    return MetafieldConfigResolver()


def resolver_from_env() -> ConfigResolver:
    return resolver_from_config(get_runtime_config())


def fetcher_from_config(config: RuntimeConfig) -> ProductDataFetcher:
    """Build a product fetcher backed by the storefront endpoint."""
    return ProductDataFetcher(
        StorefrontProductQuery(
            config.storefront_api_url,
            access_token=config.storefront_access_token,
            timeout=config.storefront_timeout_seconds,
        )
    )


def run_function(stdin: TextIO, stdout: TextIO, resolver: Optional[ConfigResolver] = None) -> dict:
    """Read the function input from ``stdin`` and write the result to ``stdout``."""
    log = structlog.get_logger()
    try:
        input_data = json.load(stdin)
    except ValueError as e:
        log.error("function_input_unparseable", error=str(e))
        input_data = None

    result = run(input_data, resolver or resolver_from_env(), log)
    json.dump(result, stdout, separators=(",", ":"))
    stdout.write("\n")
    return result


def main() -> int:
    configure_logging()
    run_function(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
