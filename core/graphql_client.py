"""
Shopify Admin GraphQL client.

This module provides a small wrapper around ``requests`` for the Shopify
Admin GraphQL endpoint. Each worker thread should create its own
ShopifyGraphQLClient (normally through ShopContext.create_client()); the
underlying ``requests.Session`` is not shared between threads.

ERROR MAPPING:
    - requests Timeout           -> UpstreamTimeoutError
    - HTTP 429 / THROTTLED       -> RateLimitedError (retried with backoff)
    - HTTP 401 / 403 / 4xx / 5xx -> ShopifyAPIError(status_code=...)
    - non-JSON body, no "data"   -> MalformedResponseError
    - top-level GraphQL "errors" -> ShopifyAPIError(errors=[...])

Mutation ``userErrors`` are NOT raised here; they are part of a successful
response and the caller decides what a user error means.

Usage:
    client = ShopifyGraphQLClient(
        shop_domain="my-shop.myshopify.com",
        access_token="shpat_...",
        timeout_seconds=15,
    )
    data = client.execute(GET_COLLECTIONS, {"first": 50})
    edges = data["collections"]["edges"]
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import (
    ConfigurationError,
    MalformedResponseError,
    RateLimitedError,
    ShopifyAPIError,
    UpstreamTimeoutError,
)


MAX_BACKOFF_SECONDS = 30.0


def normalize_shop_domain(shop_domain: str) -> str:
    """
    Normalize a configured shop domain.

    Strips the protocol and stray slashes, and appends ``.myshopify.com``
    to a bare shop handle.

    >>> normalize_shop_domain("https://my-shop.myshopify.com/")
    'my-shop.myshopify.com'
    >>> normalize_shop_domain("my-shop")
    'my-shop.myshopify.com'
    """
    domain = (shop_domain or "").strip()
    for prefix in ("https://", "http://"):
        if domain.lower().startswith(prefix):
            domain = domain[len(prefix):]
    domain = domain.strip("/ ")
    if domain and "." not in domain:
        domain = f"{domain}.myshopify.com"
    return domain


class ShopifyGraphQLClient:
    """
    Wrapper for Shopify Admin GraphQL requests.

    Create one instance per thread. Provides:
    - execute(): run a query or mutation and return its ``data`` payload
    - bounded timeout on every request
    - exponential backoff on rate limiting

    Attributes:
        endpoint: Full GraphQL endpoint URL
        thread_id: ID of the thread that created this client
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2024-10",
        timeout_seconds: float = 15.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client.

        Args:
            shop_domain: Shop domain or handle (normalized)
            access_token: Admin API access token
            api_version: Admin API version, e.g. "2024-10"
            timeout_seconds: Timeout for each HTTP request
            max_retries: Retries after a rate-limited attempt (0 disables)
            backoff_seconds: Base of the exponential backoff
            session: Optional requests session (tests inject a mock)
            logger: Logger instance (creates default if not provided)

        Raises:
            ConfigurationError: If shop domain or access token is missing
        """
        domain = normalize_shop_domain(shop_domain)
        if not domain:
            raise ConfigurationError("SHOPIFY_SHOP_DOMAIN")
        if not access_token:
            raise ConfigurationError("SHOPIFY_ACCESS_TOKEN")

        self._endpoint = f"https://{domain}/admin/api/{api_version}/graphql.json"
        self._timeout = timeout_seconds
        self._max_retries = max(0, max_retries)
        self._backoff = backoff_seconds
        self._logger = logger or logging.getLogger("weight_price_admin.core.graphql_client")
        self._thread_id = threading.get_ident()

        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": access_token,
        })

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def thread_id(self) -> int:
        """ID of the thread that owns this client."""
        return self._thread_id

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a GraphQL query or mutation and return the ``data`` object.

        Rate-limited attempts are retried up to ``max_retries`` times with
        exponential backoff; every other failure is raised immediately.

        Args:
            query: GraphQL document
            variables: Variables for the document

        Returns:
            The response's ``data`` dictionary

        Raises:
            ShopifyAPIError: Or one of its subclasses, see module docstring
        """
        retryer = Retrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._backoff, max=MAX_BACKOFF_SECONDS),
            retry=retry_if_exception_type(RateLimitedError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return retryer(self._post, query, variables)

    def close(self) -> None:
        self._session.close()

    def _post(self, query: str, variables: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = self._session.post(self._endpoint, json=payload, timeout=self._timeout)
        except requests.exceptions.Timeout:
            self._logger.warning(f"[Thread {self._thread_id}] Shopify request timed out after {self._timeout}s")
            raise UpstreamTimeoutError(self._timeout)
        except requests.exceptions.RequestException as e:
            self._logger.error(f"[Thread {self._thread_id}] Shopify request failed: {e}")
            raise ShopifyAPIError(f"Shopify request failed: {e}")

        if response.status_code == 429:
            raise RateLimitedError(retry_after=_parse_retry_after(response.headers.get("Retry-After")))

        if response.status_code in (401, 403):
            raise ShopifyAPIError(
                "Shopify rejected the access token or its scopes",
                status_code=response.status_code
            )

        if response.status_code >= 400:
            raise ShopifyAPIError(
                f"Shopify returned HTTP {response.status_code}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError:
            raise MalformedResponseError("Invalid JSON response from Shopify")

        if not isinstance(body, dict):
            raise MalformedResponseError("Shopify response is not a JSON object")

        errors = body.get("errors")
        if errors:
            messages, codes = _split_graphql_errors(errors)
            if "THROTTLED" in codes:
                raise RateLimitedError("Shopify throttled the query")
            self._logger.error(f"[Thread {self._thread_id}] GraphQL errors: {messages}")
            raise ShopifyAPIError("GraphQL errors returned by Shopify", errors=messages)

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("Shopify response is missing 'data'", path="data")

        extensions = body.get("extensions")
        cost = extensions.get("cost") if isinstance(extensions, dict) else None
        if isinstance(cost, dict) and cost.get("actualQueryCost") is not None:
            self._logger.debug(f"[Thread {self._thread_id}] Query cost: {cost['actualQueryCost']}")

        return data

    def _log_retry(self, retry_state) -> None:
        self._logger.warning(
            f"[Thread {self._thread_id}] Rate limited by Shopify, "
            f"retrying (attempt {retry_state.attempt_number} of {self._max_retries + 1})"
        )


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _split_graphql_errors(errors: Any) -> tuple[List[str], List[str]]:
    """Return (messages, extension codes) from a GraphQL ``errors`` value."""
    if not isinstance(errors, list):
        return [str(errors)], []

    messages = []
    codes = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(error.get("message", str(error)))
            code = (error.get("extensions") or {}).get("code")
            if code:
                codes.append(code)
        else:
            messages.append(str(error))
    return messages, codes
