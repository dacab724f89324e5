"""
Reminder Sweep Scheduler

Fires the reminder sweep on a fixed interval. The sweep is safe to run twice
for the same minute, so a late or duplicated tick only costs a no-op pass.
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler

from .config import config
from .scheduler_config import (
    SWEEP_INTERVAL_SECONDS,
    SWEEP_JOB_ID,
    SWEEP_MISFIRE_GRACE_SECONDS,
)
from .sweep import run_sweep

logger = logging.getLogger(__name__)


def sweep_job():
    """Scheduled job: one sweep against the default store and WhatsApp channel."""
    from server.store import default_store
    from whatsapp.channel import default_channel

    logger.info("🔍 Running reminder sweep...")
    report = run_sweep(default_store(), default_channel(), tz=config.tz)
    if report.errors:
        logger.warning(f"Sweep reported {len(report.errors)} error(s): {report.errors[:5]}")
    return report


# Global scheduler instance
scheduler = BackgroundScheduler(timezone=config.tz)


def start_scheduler():
    """Start the sweep job if the scheduler is enabled."""
    if not config.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled by configuration")
        return

    scheduler.add_job(
        sweep_job,
        'interval',
        seconds=SWEEP_INTERVAL_SECONDS,
        id=SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=SWEEP_MISFIRE_GRACE_SECONDS,
    )

    if not scheduler.running:
        scheduler.start()
    logger.info(f"🚀 Scheduler started: reminder sweep every {SWEEP_INTERVAL_SECONDS}s ({config.TIMEZONE})")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("🛑 Scheduler stopped")
