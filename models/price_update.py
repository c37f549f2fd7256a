"""
Price update data models.

These models carry a price update from the planning step (which variants,
which new prices) through submission to the aggregated result returned to
the admin page.

Thread Safety:
    - ProductUpdatePlan is frozen; each worker receives its own plan
    - Each worker produces exactly one ProductUpdateOutcome
    - The batch result is assembled on the calling thread after all
      workers have joined
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VariantPriceUpdate:
    """New price for one variant, as sent to Shopify."""

    id: str
    price: str
    """Decimal string with exactly two places, e.g. "25.00"."""

    def to_input(self) -> Dict[str, str]:
        return {"id": self.id, "price": self.price}


@dataclass(frozen=True)
class ProductUpdatePlan:
    """The qualifying variants of one product and their new prices."""

    product_id: str
    product_title: str
    variants: Tuple[VariantPriceUpdate, ...]

    @property
    def is_empty(self) -> bool:
        return not self.variants


@dataclass(frozen=True)
class ProductUpdateOutcome:
    """
    Result of submitting one product's plan.

    Exactly one of ``variants_updated`` (success) or ``error`` is meaningful.
    """

    product_title: str
    variants_updated: int = 0
    error: Optional[str] = None
    """User-facing "<title>: <message>" text."""
    cancelled: bool = False
    """The plan was never submitted because the batch was cancelled."""

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, product_title: str, variants_updated: int) -> "ProductUpdateOutcome":
        return cls(product_title=product_title, variants_updated=variants_updated)

    @classmethod
    def failure(cls, product_title: str, message: str) -> "ProductUpdateOutcome":
        return cls(product_title=product_title, error=f"{product_title}: {message}")

    @classmethod
    def skipped_by_cancel(cls, product_title: str, message: str) -> "ProductUpdateOutcome":
        return cls(product_title=product_title, error=f"{product_title}: {message}", cancelled=True)


@dataclass
class PriceUpdateBatchResult:
    """
    Aggregate of a price update batch.

    ``results`` holds one entry per updated product and ``errors`` one
    message per failed product, both in the order products were submitted.
    """

    results: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped: int = 0
    """Products with no qualifying variant (no call was made for them)."""
    cancelled: int = 0
    """Products left unsubmitted because the batch was cancelled."""

    @classmethod
    def from_outcomes(cls, outcomes: List[ProductUpdateOutcome], skipped: int = 0) -> "PriceUpdateBatchResult":
        batch = cls(skipped=skipped)
        for outcome in outcomes:
            if outcome.succeeded:
                batch.results.append({
                    "productTitle": outcome.product_title,
                    "variantsUpdated": outcome.variants_updated,
                })
            else:
                batch.errors.append(outcome.error)
                if outcome.cancelled:
                    batch.cancelled += 1
        return batch

    @property
    def has_successes(self) -> bool:
        """True if the product list should be refreshed."""
        return bool(self.results)

    @property
    def variants_updated(self) -> int:
        return sum(r["variantsUpdated"] for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {"results": list(self.results), "errors": list(self.errors)}


# =============================================================================
# BACKGROUND PRICE JOBS
# =============================================================================

class PriceJobStatus(Enum):
    """
    Status of a background price update job.

    Lifecycle:
        RUNNING -> (COMPLETED | CANCELLED | FAILED)
    """

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class PriceJobRecord:
    """State of one background price update job."""

    job_id: str
    product_count: int
    multiplier: str
    status: PriceJobStatus = PriceJobStatus.RUNNING
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    result: Optional[PriceUpdateBatchResult] = None
    error: str = ""

    @property
    def is_finished(self) -> bool:
        return self.status is not PriceJobStatus.RUNNING

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "jobId": self.job_id,
            "status": self.status.value,
            "productCount": self.product_count,
            "multiplier": self.multiplier,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
        }
        if self.result is not None:
            data.update(self.result.to_dict())
        return data
