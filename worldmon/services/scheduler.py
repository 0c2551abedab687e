"""
Correlation scheduler.
Uses APScheduler to re-run the correlation engine periodically.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from worldmon.services.monitor import CorrelationMonitor


class CorrelationScheduler:
    """Periodic correlation job."""

    JOB_ID = "correlation_job"

    def __init__(self, monitor: CorrelationMonitor, interval_minutes: int):
        self.monitor = monitor
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self._is_running = False

    async def correlation_job(self) -> None:
        """Scheduled correlation run."""
        logger.info("Starting scheduled correlation run...")
        try:
            bundle = await self.monitor.run_once()
            logger.info(f"Scheduled correlation run completed: {bundle.summary().status}")
        except Exception as e:
            logger.error(f"Error in scheduled correlation run: {e}")

    def start(self) -> None:
        """Start the scheduler."""
        if self._is_running:
            logger.warning("Correlation scheduler is already running")
            return

        self.scheduler.add_job(
            self.correlation_job,
            trigger="interval",
            minutes=self.interval_minutes,
            id=self.JOB_ID,
            name="Correlation Engine",
            replace_existing=True,
        )
        self.scheduler.start()
        self._is_running = True

        logger.info(
            f"Correlation scheduler started: running every {self.interval_minutes} minutes"
        )

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self._is_running:
            logger.warning("Correlation scheduler is not running")
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Correlation scheduler stopped")

    def is_running(self) -> bool:
        return self._is_running

