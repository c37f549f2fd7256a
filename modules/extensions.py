"""
Server side of the two admin UI extensions.

Print action (order details page):
    Staff tick the documents to print; the panel builds the ``/print`` URL
    for the selected order or shows a banner explaining why it can't.

Weight multiplier block (product details page):
    Staff enter a multiplier; every variant of the product with a weight
    gets ``price = weight * multiplier``.

Both are plain functions over request values so the routes stay thin.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from core.exceptions import (
    ConfigurationError,
    NotFoundError,
    PriceUpdateError,
    ShopifyAPIError,
    ValidationError,
)
from modules.documents import DocumentKind, LAYOUTS
from modules.pricing import parse_multiplier, plan_product_update
from logging_config import get_logger


logger = get_logger(__name__)


# =============================================================================
# PRINT ACTION
# =============================================================================

PRINT_ACTION_KINDS = (
    DocumentKind.INVOICE,
    DocumentKind.PACKING_SLIP,
    DocumentKind.RECEIPT,
    DocumentKind.DELIVERY,
    DocumentKind.APPRAISAL,
)
DEFAULT_PRINT_KINDS = frozenset({DocumentKind.INVOICE})


@dataclass(frozen=True)
class Banner:
    tone: str
    title: str
    text: str


NO_ORDER_BANNER = Banner("critical", "No Order Selected", "Please select an order to print documents for.")
NO_DOCUMENTS_BANNER = Banner("warning", "No Documents Selected", "Please select at least one document to print.")


def build_print_src(order_id: Optional[str], kinds: List[DocumentKind]) -> Optional[str]:
    """
    URL of the print page, or None when there is nothing to print.

    ``/print?documents=invoice,packing-slip&orderId=gid://...`` (URL-encoded)
    """
    if not order_id or not kinds:
        return None
    params = {"documents": ",".join(kind.value for kind in kinds), "orderId": order_id}
    return f"/print?{urlencode(params)}"


@dataclass(frozen=True)
class PrintActionState:
    """Checkbox state of the print-action panel."""

    order_id: str = ""
    order_name: str = ""
    selected: frozenset = field(default_factory=lambda: DEFAULT_PRINT_KINDS)

    @classmethod
    def from_args(cls, args) -> "PrintActionState":
        """
        Build from query arguments.

        On the first render (no ``submitted`` flag) only the invoice is
        ticked; afterwards the ticked ``documents`` boxes are used as-is.
        """
        selected = DEFAULT_PRINT_KINDS
        if args.get("submitted"):
            values = set(args.getlist("documents"))
            selected = frozenset(kind for kind in PRINT_ACTION_KINDS if kind.value in values)
        return cls(
            order_id=(args.get("orderId") or "").strip(),
            order_name=(args.get("orderName") or "").strip(),
            selected=selected,
        )

    @property
    def selected_kinds(self) -> List[DocumentKind]:
        """Ticked documents in panel order."""
        return [kind for kind in PRINT_ACTION_KINDS if kind in self.selected]

    @property
    def checkboxes(self) -> List[Tuple[str, str, bool]]:
        """(value, label, checked) for each document checkbox."""
        return [(kind.value, LAYOUTS[kind].title, kind in self.selected) for kind in PRINT_ACTION_KINDS]

    @property
    def src(self) -> Optional[str]:
        return build_print_src(self.order_id, self.selected_kinds)

    @property
    def banner(self) -> Optional[Banner]:
        if not self.order_id:
            return NO_ORDER_BANNER
        if not self.selected:
            return NO_DOCUMENTS_BANNER
        return None


# =============================================================================
# WEIGHT MULTIPLIER BLOCK
# =============================================================================

NO_PRODUCT_MESSAGE = "No product selected"
NO_VARIANTS_MESSAGE = "No variants found for this product"
NO_WEIGHTED_VARIANTS_MESSAGE = "No variants with weight found to update"


@dataclass(frozen=True)
class WeightBlockResult:
    ok: bool
    message: str
    variants_updated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "message": self.message, "variantsUpdated": self.variants_updated}


def apply_weight_multiplier(catalog_service, price_update_service, product_id: str, multiplier_text: Any) -> WeightBlockResult:
    """
    Reprice one product's weighted variants.

    Shopify failures are reported in the result message rather than
    raised, the block shows whatever message comes back.
    """
    try:
        multiplier = parse_multiplier(multiplier_text)
    except ValidationError as e:
        return WeightBlockResult(False, e.message)

    if not product_id:
        return WeightBlockResult(False, NO_PRODUCT_MESSAGE)

    try:
        product = catalog_service.get_product_variants(product_id)
        if not product.variants:
            return WeightBlockResult(False, NO_VARIANTS_MESSAGE)

        plan = plan_product_update(product, multiplier, price_update_service.required_unit)
        if plan.is_empty:
            return WeightBlockResult(False, NO_WEIGHTED_VARIANTS_MESSAGE)

        updated = price_update_service.update_product(plan)

    except PriceUpdateError as e:
        logger.warning(f"Weight block update rejected: {e.summary}")
        return WeightBlockResult(False, f"Update failed: {', '.join(e.messages)}")
    except NotFoundError:
        return WeightBlockResult(False, NO_PRODUCT_MESSAGE)
    except (ShopifyAPIError, ConfigurationError) as e:
        logger.error(f"Weight block update failed for {product_id}: {e}")
        return WeightBlockResult(False, f"Error: {e.message}")

    if len(product.variants) == 1:
        message = "Updated product price successfully!"
    else:
        message = f"Updated {updated} variants successfully!"
    logger.info(f"Weight block updated {updated} variants of '{product.title}'")
    return WeightBlockResult(True, message, updated)
