"""
Shop connection settings shared by all threads.

The ShopContext is built once at application startup from the Flask config
and stored in ``app.config["SHOP_CONTEXT"]``. It holds only immutable
settings; worker threads call create_client() to get their own
ShopifyGraphQLClient.

THREAD SAFETY:
    - ShopContext is a frozen dataclass, safe to read from any thread
    - create_client() returns a new client (new HTTP session) on every call

Usage:
    shop_context = ShopContext.from_config(app.config)

    # In a worker thread
    client = shop_context.create_client(logger=job_logger)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .graphql_client import ShopifyGraphQLClient, normalize_shop_domain


@dataclass(frozen=True)
class ShopContext:
    """
    Immutable Shopify connection settings.

    Attributes:
        shop_domain: Normalized shop domain ("" when unconfigured)
        access_token: Admin API access token ("" when unconfigured)
        api_version: Admin API version
        timeout_seconds: Per-request timeout
        max_retries: Rate-limit retries per request
        backoff_seconds: Base of the exponential backoff
    """

    shop_domain: str
    access_token: str
    api_version: str = "2024-10"
    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_seconds: float = 1.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ShopContext":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            shop_domain=normalize_shop_domain(config.get("SHOPIFY_SHOP_DOMAIN", "")),
            access_token=config.get("SHOPIFY_ACCESS_TOKEN", ""),
            api_version=config.get("SHOPIFY_API_VERSION", "2024-10"),
            timeout_seconds=float(config.get("SHOPIFY_REQUEST_TIMEOUT_SECONDS", 15.0)),
            max_retries=int(config.get("SHOPIFY_MAX_RETRIES", 3)),
            backoff_seconds=float(config.get("SHOPIFY_RETRY_BACKOFF_SECONDS", 1.0)),
        )

    @property
    def is_configured(self) -> bool:
        """True if both shop domain and access token are set."""
        return bool(self.shop_domain and self.access_token)

    def create_client(self, logger: Optional[logging.Logger] = None) -> ShopifyGraphQLClient:
        """
        Create a new client for the calling thread.

        Raises:
            ConfigurationError: If the shop is not configured
        """
        return ShopifyGraphQLClient(
            shop_domain=self.shop_domain,
            access_token=self.access_token,
            api_version=self.api_version,
            timeout_seconds=self.timeout_seconds,
            max_retries=self.max_retries,
            backoff_seconds=self.backoff_seconds,
            logger=logger,
        )

    def __repr__(self) -> str:
        # Never print the token
        return (
            f"ShopContext(shop_domain={self.shop_domain!r}, api_version={self.api_version!r}, "
            f"configured={self.is_configured})"
        )
