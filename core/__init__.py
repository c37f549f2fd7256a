"""
Core module for WeightPriceAdmin.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- graphql_client: Shopify Admin GraphQL client (one per thread)
- shop_context: Immutable shop settings shared by all threads
- queries: GraphQL documents
"""

from .exceptions import (
    WeightPriceAdminError,
    ConfigurationError,
    ValidationError,
    ShopifyAPIError,
    RateLimitedError,
    UpstreamTimeoutError,
    MalformedResponseError,
    NotFoundError,
    PriceUpdateError,
)
from .graphql_client import ShopifyGraphQLClient, normalize_shop_domain
from .shop_context import ShopContext

__all__ = [
    "WeightPriceAdminError",
    "ConfigurationError",
    "ValidationError",
    "ShopifyAPIError",
    "RateLimitedError",
    "UpstreamTimeoutError",
    "MalformedResponseError",
    "NotFoundError",
    "PriceUpdateError",
    "ShopifyGraphQLClient",
    "normalize_shop_domain",
    "ShopContext",
]
