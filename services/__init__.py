"""
Services layer for WeightPriceAdmin.

This module contains the business logic services:
- CatalogService: Collections and products (fresh reads per request)
- OrderService: Order snapshots for printable documents
- PriceUpdateService: Weight x multiplier price updates on a worker pool
- PriceJobService: Background, cancellable price update jobs

Thread Model:
    Main Thread (Flask request)
    ├── PriceUpdateService worker pool (one task per product)
    └── PriceJobService threads (one per background job)

Every thread creates its own ShopifyGraphQLClient from the ShopContext.
"""

from .catalog_service import CatalogService
from .order_service import OrderService
from .price_update_service import CancellationToken, PriceUpdateService
from .price_job_service import PriceJobService, PriceJobStore

__all__ = [
    "CatalogService",
    "OrderService",
    "CancellationToken",
    "PriceUpdateService",
    "PriceJobService",
    "PriceJobStore",
]
