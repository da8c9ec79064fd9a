"""
APScheduler Configuration for Order Expiry Sweeps

Optional background job that removes expired orders on a fixed interval.
Issuance and verification already sweep on every request; this job bounds
memory when the server sits idle after a burst of orders.

Enabled with ORDER_SWEEP_INTERVAL_SECONDS > 0. Jobs are in-memory only.
"""
import logging
from typing import Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .order_store import OrderStore

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "order_store_sweep"


class SweepScheduler:
    """
    Periodic sweep of an OrderStore on the running asyncio loop.

    Must be started from within the event loop (FastAPI lifespan).
    """

    def __init__(self, store: OrderStore, interval_seconds: float):
        self.store = store
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def _initialize_scheduler(self) -> AsyncIOScheduler:
        """
        Configure APScheduler.

        Configuration:
        - AsyncIOScheduler with the default in-memory job store
        - Coalesce: True (one catch-up run after a stall)
        - Max instances: 1 (sweeps never overlap)
        """
        job_defaults = {
            'coalesce': True,
            'max_instances': 1,
        }
        return AsyncIOScheduler(
            executors={'default': AsyncIOExecutor()},
            job_defaults=job_defaults,
            timezone='UTC'
        )

    async def _sweep(self) -> None:
        removed = self.store.sweep()
        if removed:
            logger.info(f"Background sweep removed {removed} expired orders")

    def start(self) -> None:
        """
        Start the scheduler and register the sweep job.

        Should be called during FastAPI app startup.
        """
        if self.running:
            logger.warning("Sweep scheduler already running")
            return

        self._scheduler = self._initialize_scheduler()
        self._scheduler.add_job(
            self._sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=SWEEP_JOB_ID,
            name="Sweep expired orders",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"Sweep scheduler started: interval={self.interval_seconds}s")

    def shutdown(self, wait: bool = True) -> None:
        """
        Shutdown the scheduler gracefully.

        Should be called during FastAPI app shutdown.
        """
        if self.running:
            self._scheduler.shutdown(wait=wait)
            logger.info(f"Sweep scheduler shutdown (wait={wait})")
        self._scheduler = None
