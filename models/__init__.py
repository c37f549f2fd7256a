"""
Data models for WeightPriceAdmin.

This module contains dataclasses for:
- Catalog: Collection, Product, Variant, Weight (read-only Shopify snapshots)
- Order: order snapshot used by the document templates
- Price updates: per-product plans and outcomes, batch results, job records
- Selection: the admin table view-model and its reducers

Catalog and order models validate the Shopify response shape in their
``from_node()`` constructors and raise MalformedResponseError.
"""

from .catalog import Collection, Product, Variant, Weight
from .order import Order, LineItem, Customer, Address, order_gid
from .price_update import (
    VariantPriceUpdate,
    ProductUpdatePlan,
    ProductUpdateOutcome,
    PriceUpdateBatchResult,
    PriceJobStatus,
    PriceJobRecord,
)
from .selection import SelectionState

__all__ = [
    # Catalog models
    "Collection",
    "Product",
    "Variant",
    "Weight",
    # Order models
    "Order",
    "LineItem",
    "Customer",
    "Address",
    "order_gid",
    # Price update models
    "VariantPriceUpdate",
    "ProductUpdatePlan",
    "ProductUpdateOutcome",
    "PriceUpdateBatchResult",
    "PriceJobStatus",
    "PriceJobRecord",
    # View-model
    "SelectionState",
]
