"""
Weight-based price update service.

Turns a selection of products and a multiplier into Shopify variant price
updates. Products are independent: each one is planned, submitted and
reported on its own, and one product's failure never aborts the others.

THREAD MODEL:
    - One task per product with at least one qualifying variant, on a
      bounded ThreadPoolExecutor (max_workers=1 gives sequential updates)
    - Each task creates its OWN ShopifyGraphQLClient from the ShopContext;
      no HTTP session is shared between threads
    - Each task returns exactly one ProductUpdateOutcome; outcomes are
      merged in input order on the calling thread after all tasks join
    - A CancellationToken is checked by every task before it submits

Integration modes:
    - "bulk":   one productVariantsBulkUpdate per product
    - "single": one productVariantUpdate per qualifying variant; the
                product fails if any of its variants reports user errors

Usage:
    service = PriceUpdateService(shop_context, mode="bulk", max_workers=4)
    result = service.run(products, "2.5")
    result.to_dict()   # {"results": [...], "errors": [...]}
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    PriceUpdateError,
    ShopifyAPIError,
    ValidationError,
)
from core.queries import BULK_UPDATE_VARIANTS, UPDATE_VARIANT
from core.shop_context import ShopContext
from core.graphql_client import ShopifyGraphQLClient
from models.catalog import Product
from models.price_update import PriceUpdateBatchResult, ProductUpdateOutcome, ProductUpdatePlan
from modules.pricing import parse_multiplier, plan_updates
from logging_config import current_log_context, get_logger, log_context


# Module logger
logger = get_logger(__name__)

MODE_BULK = "bulk"
MODE_SINGLE = "single"
UPDATE_MODES = (MODE_BULK, MODE_SINGLE)

EMPTY_SELECTION_MESSAGE = "Please select at least one product"
CANCELLED_MESSAGE = "update cancelled"
UNEXPECTED_ERROR_MESSAGE = "Unexpected error"


class CancellationToken:
    """
    Cooperative cancellation flag shared by the tasks of one batch.

    Tasks that have already submitted finish normally; tasks that have not
    started yet report "<title>: update cancelled".
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class PriceUpdateService:
    """
    Applies ``price = weight * multiplier`` to the selected products.

    Attributes:
        mode: "bulk" or "single"
        max_workers: Upper bound on concurrent product updates
        required_unit: Only variants weighed in this unit qualify (None = any)
    """

    def __init__(
        self,
        shop_context: ShopContext,
        mode: str = MODE_BULK,
        max_workers: int = 4,
        required_unit: Optional[str] = None
    ):
        if mode not in UPDATE_MODES:
            raise ValueError(f"Unknown price update mode: {mode}")
        self._shop_context = shop_context
        self.mode = mode
        self.max_workers = max(1, int(max_workers))
        self.required_unit = required_unit or None

    @classmethod
    def from_config(cls, shop_context: ShopContext, config: Mapping[str, Any]) -> "PriceUpdateService":
        return cls(
            shop_context,
            mode=config.get("PRICE_UPDATE_MODE", MODE_BULK),
            max_workers=config.get("PRICE_UPDATE_MAX_WORKERS", 4),
            required_unit=config.get("PRICE_UPDATE_REQUIRED_WEIGHT_UNIT"),
        )

    # =========================================================================
    # PLANNING
    # =========================================================================

    def prepare(
        self,
        products: Iterable[Product],
        multiplier_text: Any
    ) -> Tuple[List[ProductUpdatePlan], int]:
        """
        Validate input and compute the plans to submit.

        Returns:
            (plans, skipped) - plans for products with at least one
            qualifying variant, and the number of products skipped

        Raises:
            ValidationError: Invalid multiplier or empty selection
        """
        multiplier = parse_multiplier(multiplier_text)
        products = list(products)
        if not products:
            raise ValidationError(EMPTY_SELECTION_MESSAGE, field="selectedProducts")

        plans = plan_updates(products, multiplier, self.required_unit)
        non_empty = [plan for plan in plans if not plan.is_empty]
        skipped = len(plans) - len(non_empty)
        if skipped:
            logger.info(f"Skipping {skipped} products without a qualifying weight")
        return non_empty, skipped

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def run(
        self,
        products: Iterable[Product],
        multiplier_text: Any,
        token: Optional[CancellationToken] = None
    ) -> PriceUpdateBatchResult:
        """
        Validate, plan and submit a batch synchronously.

        Raises:
            ValidationError: Before any network call, see prepare()
        """
        plans, skipped = self.prepare(products, multiplier_text)
        return self.run_plans(plans, skipped=skipped, token=token)

    def run_plans(
        self,
        plans: List[ProductUpdatePlan],
        skipped: int = 0,
        token: Optional[CancellationToken] = None
    ) -> PriceUpdateBatchResult:
        """Submit prepared plans on the worker pool and merge the outcomes."""
        if not plans:
            return PriceUpdateBatchResult(skipped=skipped)

        workers = min(self.max_workers, len(plans))
        logger.info(f"[Action:updatePrices] Updating {len(plans)} products ({self.mode} mode, {workers} workers)")

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="PriceUpdate") as pool:
            context = current_log_context()
            futures = [pool.submit(self._run_task, plan, token, context) for plan in plans]
            outcomes = [future.result() for future in futures]

        result = PriceUpdateBatchResult.from_outcomes(outcomes, skipped=skipped)
        logger.info(
            f"[Action:updatePrices] Done: {len(result.results)} updated, "
            f"{len(result.errors)} failed, {skipped} skipped"
        )
        return result

    def update_product(self, plan: ProductUpdatePlan) -> int:
        """
        Submit one plan on the calling thread.

        Returns:
            Number of variants updated

        Raises:
            PriceUpdateError: Shopify returned user errors
            ShopifyAPIError: Transport, rate-limit or response errors
        """
        client = self._shop_context.create_client(logger=logger)
        try:
            return self.submit_plan(client, plan)
        finally:
            client.close()

    def submit_plan(self, client: ShopifyGraphQLClient, plan: ProductUpdatePlan) -> int:
        """Send the plan with the configured mutation; returns variants updated."""
        if self.mode == MODE_BULK:
            data = client.execute(BULK_UPDATE_VARIANTS, {
                "productId": plan.product_id,
                "variants": [v.to_input() for v in plan.variants],
            })
            messages = _user_error_messages(data, "productVariantsBulkUpdate")
        else:
            messages = []
            for variant in plan.variants:
                data = client.execute(UPDATE_VARIANT, {"input": variant.to_input()})
                messages.extend(_user_error_messages(data, "productVariantUpdate"))

        if messages:
            raise PriceUpdateError(plan.product_title, messages)
        return len(plan.variants)

    def _run_task(
        self,
        plan: ProductUpdatePlan,
        token: Optional[CancellationToken],
        context: Dict[str, str]
    ) -> ProductUpdateOutcome:
        """Worker body: never raises, always returns one outcome."""
        with log_context(**{**context, "product": plan.product_title}):
            return self._update_with_outcome(plan, token)

    def _update_with_outcome(
        self,
        plan: ProductUpdatePlan,
        token: Optional[CancellationToken]
    ) -> ProductUpdateOutcome:
        if token is not None and token.cancelled:
            logger.info("Skipped, batch cancelled")
            return ProductUpdateOutcome.skipped_by_cancel(plan.product_title, CANCELLED_MESSAGE)

        client = None
        try:
            client = self._shop_context.create_client()
            updated = self.submit_plan(client, plan)
            logger.info(f"Updated {updated} variants")
            return ProductUpdateOutcome.success(plan.product_title, updated)

        except PriceUpdateError as e:
            logger.warning(f"Shopify rejected the update: {e.summary}")
            return ProductUpdateOutcome.failure(plan.product_title, ", ".join(e.messages))

        except (ShopifyAPIError, ConfigurationError) as e:
            logger.error(f"Price update failed: {e}")
            return ProductUpdateOutcome.failure(plan.product_title, e.message)

        except Exception as e:
            logger.error(f"Unexpected error during price update: {e}", exc_info=True)
            return ProductUpdateOutcome.failure(plan.product_title, UNEXPECTED_ERROR_MESSAGE)

        finally:
            if client is not None:
                client.close()


def _user_error_messages(data: Mapping[str, Any], field: str) -> List[str]:
    """Messages of a mutation payload's ``userErrors``."""
    payload = data.get(field)
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Missing '{field}' in mutation response", path=field)
    errors = payload.get("userErrors") or []
    if not isinstance(errors, list):
        raise MalformedResponseError(f"'{field}.userErrors' is not a list", path=f"{field}.userErrors")

    messages = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(str(error.get("message") or "Unknown error"))
        else:
            messages.append(str(error) or "Unknown error")
    return messages
