"""
Background Jobs
===============

Thin wrapper around APScheduler for the periodic maintenance jobs
(deadline reminder sweep, workload reconciliation).
"""

from typing import Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from zordon_hub.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class JobScheduler:
    """
    Manages the lifecycle of the scheduler and its interval jobs.

    Jobs registered with an interval of 0 are skipped, so a deployment can
    keep every job on its manual trigger endpoint only.
    """

    def __init__(self):
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._jobs: Dict[str, int] = {}
        self._running = False

    def add_job(
        self,
        job_id: str,
        job_func: Callable[[], Awaitable[None]],
        interval_seconds: int
    ) -> bool:
        """Register an interval job. Returns False when the job is disabled."""
        if interval_seconds <= 0:
            logger.info("Job disabled", extra={"job_id": job_id})
            return False

        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=interval_seconds,
            id=job_id,
            name=job_id,
            misfire_grace_time=60,
            max_instances=1,
            replace_existing=True
        )
        self._jobs[job_id] = interval_seconds
        return True

    def start(self) -> None:
        if self._running or self._scheduler is None:
            return

        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started", extra={"jobs": self._jobs})

    def stop(self) -> None:
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("Scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> Dict[str, int]:
        return dict(self._jobs)
