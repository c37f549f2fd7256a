"""
Custom exceptions for WeightPriceAdmin.

Exception Hierarchy:
    WeightPriceAdminError (base)
    ├── ConfigurationError        - Shopify credentials missing
    ├── ValidationError           - Bad user input, rejected before any network call
    ├── ShopifyAPIError           - Admin API transport or GraphQL failure
    │   ├── RateLimitedError      - HTTP 429 / THROTTLED (retried with backoff)
    │   ├── UpstreamTimeoutError  - Request exceeded its timeout
    │   ├── MalformedResponseError - Response missing expected data
    │   └── NotFoundError         - Requested resource does not exist
    └── PriceUpdateError          - Vendor user errors for one product

Usage:
    Validation errors become inline messages / HTTP 400.
    Per-product errors are collected without aborting sibling products.
    Fetch errors are logged and surfaced as error messages or HTTP 502.
"""

from typing import Optional, Dict, Any, List


class WeightPriceAdminError(Exception):
    """
    Base exception for all WeightPriceAdmin errors.

    Carries a human-readable message plus an optional details dict that
    ends up in the logs, never in the user-facing text.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(WeightPriceAdminError):
    """Shopify shop domain or access token is not configured."""

    def __init__(self, setting: str):
        message = f"{setting} is not set"
        details = {
            "setting": setting,
            "resolution": f"Set {setting} in the environment or .env file"
        }
        super().__init__(message, details)
        self.setting = setting


class ValidationError(WeightPriceAdminError):
    """
    User input was rejected before any call to Shopify.

    The message is shown to the user as-is.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field


# =============================================================================
# SHOPIFY ADMIN API ERRORS
# =============================================================================

class ShopifyAPIError(WeightPriceAdminError):
    """
    Base class for failures talking to the Shopify Admin API.

    Attributes:
        status_code: HTTP status, when the failure came from a response
        errors: GraphQL error messages, when present
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = dict(details or {})
        if status_code is not None:
            error_details["status_code"] = status_code
        if errors:
            error_details["errors"] = errors
        super().__init__(message, error_details)
        self.status_code = status_code
        self.errors = errors or []


class RateLimitedError(ShopifyAPIError):
    """
    Shopify throttled the request.

    Raised for HTTP 429 and for GraphQL responses whose errors carry the
    THROTTLED code. The client retries these with exponential backoff and
    only lets the error escape once retries are exhausted.
    """

    def __init__(self, message: str = "Shopify API rate limit exceeded", retry_after: Optional[float] = None):
        details = {"retry_after": retry_after} if retry_after is not None else None
        super().__init__(message, status_code=429, details=details)
        self.retry_after = retry_after


class UpstreamTimeoutError(ShopifyAPIError):
    """A single Shopify request exceeded its timeout."""

    def __init__(self, timeout_seconds: float):
        message = f"Shopify request timed out after {timeout_seconds:g}s"
        super().__init__(message, details={"timeout_seconds": timeout_seconds})
        self.timeout_seconds = timeout_seconds


class MalformedResponseError(ShopifyAPIError):
    """
    A Shopify response did not have the shape the query asked for.

    Raised at the parsing boundary (``from_node`` constructors) instead of
    silently defaulting to empty lists.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        details = {"path": path} if path else None
        super().__init__(message, details=details)
        self.path = path


class NotFoundError(ShopifyAPIError):
    """The requested collection, product or order does not exist."""

    def __init__(self, resource: str, resource_id: str):
        message = f"{resource} not found: {resource_id}"
        super().__init__(message, status_code=404, details={"resource": resource, "id": resource_id})
        self.resource = resource
        self.resource_id = resource_id


# =============================================================================
# PRICE UPDATE ERRORS
# =============================================================================

class PriceUpdateError(WeightPriceAdminError):
    """
    Shopify rejected the price update for one product.

    ``str(error)`` is not used for the user-facing text; callers build
    "<title>: <messages>" via ``summary``.
    """

    def __init__(self, product_title: str, messages: List[str]):
        message = f"Price update failed for '{product_title}'"
        super().__init__(message, {"user_errors": messages})
        self.product_title = product_title
        self.messages = messages

    @property
    def summary(self) -> str:
        return f"{self.product_title}: {', '.join(self.messages)}"
