"""
Periodic expiry of overdue tokens
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import TOKEN_SWEEP_INTERVAL_SECONDS
from app.core.database import async_session, utcnow
from app.core.logging_utils import error_tracker
from app.admin.services.tokens import sweep_expired

logger = logging.getLogger(__name__)


class TokenSweeper:
    """Runs ``sweep_expired`` on an interval with its own session"""

    JOB_ID = "token_sweep"

    def __init__(
        self,
        interval_seconds: int = TOKEN_SWEEP_INTERVAL_SECONDS,
        session_factory: Callable = async_session,
    ):
        self.scheduler = AsyncIOScheduler()
        self.interval_seconds = interval_seconds
        self.session_factory = session_factory
        self._is_running = False
        self._last_run: Optional[datetime] = None
        self._last_count: Optional[int] = None

    def setup(self):
        self.scheduler.add_job(
            self.run_once,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Expired token sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Token sweep scheduled every {self.interval_seconds}s")

    async def run_once(self) -> Optional[int]:
        if self._is_running:
            logger.debug("Token sweep already running, skipped")
            return None

        self._is_running = True
        try:
            async with self.session_factory() as session:
                count = await sweep_expired(session)
            self._last_run = utcnow()
            self._last_count = count
            return count
        except Exception as e:
            # logged and dropped; the next tick retries
            logger.error(f"Token sweep failed: {e}")
            error_tracker.track_error(
                "TOKEN_SWEEP_ERROR", str(e), {"component": "token_sweeper"}
            )
            return None
        finally:
            self._is_running = False

    def start(self):
        self.setup()
        self.scheduler.start()
        logger.info("Token sweeper started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Token sweeper stopped")

    def get_status(self) -> dict:
        jobs = [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self.scheduler.get_jobs()
        ]
        return {
            "scheduler_running": self.scheduler.running,
            "is_running": self._is_running,
            "interval_seconds": self.interval_seconds,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "last_expired_count": self._last_count,
            "jobs": jobs,
        }


token_sweeper = TokenSweeper()
