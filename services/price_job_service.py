"""
Background price update jobs with cancellation.

A job runs one PriceUpdateService batch in its own thread so that large
selections don't hold an HTTP request open. Validation happens on the
request thread before the job thread starts, so bad input is reported
immediately instead of as a failed job.

Thread Safety:
    - PriceJobStore uses threading.Lock for all operations
    - The job thread is the only writer of its record after submission
    - Routes read copies of records via get_status()

Flow:
    1. Route calls price_job_service.submit(products, multiplier)
    2. Input is validated and planned on the request thread
    3. Job thread runs the batch (which fans out to the worker pool)
    4. Job thread stores the final record in PriceJobStore
    5. Route polls price_job_service.get_status(job_id)

Usage:
    job_id = price_job_service.submit(products, "2.5")
    record = price_job_service.get_status(job_id)
    price_job_service.cancel(job_id)
"""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from models.catalog import Product
from models.price_update import PriceJobRecord, PriceJobStatus, ProductUpdatePlan
from services.price_update_service import CancellationToken, PriceUpdateService
from logging_config import get_logger, log_context


# Module logger
logger = get_logger(__name__)

DEFAULT_MAX_FINISHED_JOBS = 100


class PriceJobStore:
    """
    Thread-safe storage for job records.

    Unlike a consume-once result queue, records stay readable after the job
    finishes so status can be polled more than once. Only the newest
    ``max_finished`` finished records are kept; running jobs are never
    evicted.
    """

    def __init__(self, max_finished: int = DEFAULT_MAX_FINISHED_JOBS):
        self._records: Dict[str, PriceJobRecord] = {}
        self._lock = threading.Lock()
        self._max_finished = max(1, int(max_finished))

    def put(self, record: PriceJobRecord) -> None:
        with self._lock:
            self._records[record.job_id] = record
            self._evict_finished()
            logger.debug(f"Stored record for job {record.job_id[:8]} ({record.status.value})")

    def get(self, job_id: str) -> Optional[PriceJobRecord]:
        """Return a copy of the record, or None for an unknown job."""
        with self._lock:
            record = self._records.get(job_id)
            return copy.copy(record) if record else None

    def finish(
        self,
        job_id: str,
        status: PriceJobStatus,
        result=None,
        error: str = ""
    ) -> None:
        """Move a running job to its final status."""
        with self._lock:
            record = self._records.get(job_id)
            if record is None:
                return
            record.status = status
            record.result = result
            record.error = error
            record.finished_at = datetime.now(timezone.utc)
            self._evict_finished()

    def clear(self) -> int:
        with self._lock:
            count = len(self._records)
            self._records.clear()
            logger.info(f"Cleared {count} price jobs from store")
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _evict_finished(self) -> None:
        """Drop the oldest finished records beyond the limit. Caller holds the lock."""
        finished = [job_id for job_id, record in self._records.items() if record.is_finished]
        excess = len(finished) - self._max_finished
        for job_id in finished[:max(excess, 0)]:
            del self._records[job_id]
            logger.debug(f"Evicted finished price job {job_id[:8]}")


class PriceJobService:
    """
    Runs price update batches in background threads.

    Attributes:
        store: PriceJobStore holding every job's record
    """

    def __init__(
        self,
        price_update_service: PriceUpdateService,
        max_finished_jobs: int = DEFAULT_MAX_FINISHED_JOBS
    ):
        self._price_update_service = price_update_service
        self._store = PriceJobStore(max_finished=max_finished_jobs)

        self._active_threads: Dict[str, threading.Thread] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._threads_lock = threading.Lock()

        logger.info("PriceJobService initialized")

    @property
    def store(self) -> PriceJobStore:
        return self._store

    def submit(self, products: Iterable[Product], multiplier_text: Any, job_id: Optional[str] = None) -> str:
        """
        Validate the batch and start it in a new thread.

        Returns:
            job_id (UUID string)

        Raises:
            ValidationError: Invalid multiplier or empty selection
        """
        products = list(products)
        plans, skipped = self._price_update_service.prepare(products, multiplier_text)

        if job_id is None:
            job_id = str(uuid.uuid4())

        token = CancellationToken()
        self._store.put(PriceJobRecord(
            job_id=job_id,
            product_count=len(products),
            multiplier=str(multiplier_text).strip(),
        ))

        logger.info(f"Submitting price job {job_id[:8]} for {len(products)} products")

        thread = threading.Thread(
            target=self._job_thread_main,
            args=(job_id, plans, skipped, token),
            name=f"PriceJob-{job_id[:8]}",
            daemon=True
        )

        with self._threads_lock:
            self._active_threads[job_id] = thread
            self._tokens[job_id] = token

        thread.start()
        return job_id

    def get_status(self, job_id: str) -> Optional[PriceJobRecord]:
        return self._store.get(job_id)

    def cancel(self, job_id: str) -> bool:
        """
        Request cancellation of a running job.

        Returns:
            True if the job was running and has been signalled
        """
        with self._threads_lock:
            token = self._tokens.get(job_id)
        if token is None:
            return False

        token.cancel()
        logger.info(f"Cancellation requested for price job {job_id[:8]}")
        return True

    def is_job_pending(self, job_id: str) -> bool:
        with self._threads_lock:
            thread = self._active_threads.get(job_id)
            return thread is not None and thread.is_alive()

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Cancel outstanding jobs and wait for their threads."""
        with self._threads_lock:
            active = list(self._active_threads.items())
            tokens = list(self._tokens.values())

        if not active:
            logger.info("No active price jobs to wait for")
            return

        for token in tokens:
            token.cancel()

        logger.info(f"Waiting for {len(active)} price jobs to stop...")
        for job_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Price job {job_id[:8]} did not stop in time")

        logger.info("Price job service shutdown complete")

    def _job_thread_main(
        self,
        job_id: str,
        plans: List[ProductUpdatePlan],
        skipped: int,
        token: CancellationToken
    ) -> None:
        with log_context(job=job_id[:8]):
            logger.info(f"Price job starting: {len(plans)} products to update")

            try:
                result = self._price_update_service.run_plans(plans, skipped=skipped, token=token)
                # A cancel that lands after the last submission leaves nothing undone
                status = PriceJobStatus.CANCELLED if result.cancelled else PriceJobStatus.COMPLETED
                self._store.finish(job_id, status, result=result)
                logger.info(f"Price job finished: {status.value}")

            except Exception as e:
                logger.error(f"Price job failed: {e}", exc_info=True)
                self._store.finish(job_id, PriceJobStatus.FAILED, error=str(e))

            finally:
                with self._threads_lock:
                    self._active_threads.pop(job_id, None)
                    self._tokens.pop(job_id, None)
