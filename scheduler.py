import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import get_settings
from sessions import InactivityMonitor


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SchedulerManager:
    def __init__(self, monitor: InactivityMonitor) -> None:
        settings = get_settings()
        self.monitor = monitor
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)

    def _sweep_sessions(self, source: str = "manual") -> list[str]:
        expired = self.monitor.sweep()
        logger.info(f"session_sweep: source={source} expired={len(expired)}")
        return expired

    def start(self, interval_seconds: Optional[int] = None) -> None:
        seconds = interval_seconds or 60
        trigger = IntervalTrigger(seconds=seconds)
        self.scheduler.add_job(
            self._sweep_sessions,
            trigger,
            args=["interval"],
            id="session_sweep",
            replace_existing=True,
            misfire_grace_time=60,
        )
        self.scheduler.start()
        logger.info(f"Scheduler started with session sweep every {seconds}s")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
