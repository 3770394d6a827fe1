"""
APScheduler Configuration

Background job scheduler for the daily invoice housekeeping:
- overdue sweep (unpaid invoices past their due date)
- expired token blacklist cleanup
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

from app.config import settings
from app.core.exceptions import DocumentError

logger = logging.getLogger(__name__)

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 60,  # Allow 60 seconds grace time for misfires
}

# Create scheduler
scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone=settings.SCHEDULER_TIMEZONE
)


async def run_overdue_sweep():
    """Scheduler entry point for the overdue sweep."""
    from app.jobs.overdue_invoices import run_overdue_invoices_job

    try:
        await run_overdue_invoices_job()
    except DocumentError as e:
        logger.exception(f"Job 'overdue_invoices' failed: {e}")


async def run_blacklist_cleanup():
    """Scheduler entry point for the blacklist cleanup."""
    from app.jobs.overdue_invoices import run_blacklist_cleanup_job

    await run_blacklist_cleanup_job()


def start_scheduler():
    """Start the background job scheduler."""
    if scheduler.running:
        return

    if not settings.OVERDUE_CHECK_ENABLED:
        logger.info("Overdue check disabled; scheduler not started")
        return

    scheduler.add_job(
        run_overdue_sweep,
        'cron',
        hour=settings.OVERDUE_CHECK_HOUR,
        minute=0,
        id='overdue_invoices',
        name='Mark Overdue Invoices',
        replace_existing=True,
    )

    scheduler.add_job(
        run_blacklist_cleanup,
        'cron',
        hour=settings.OVERDUE_CHECK_HOUR,
        minute=30,
        id='blacklist_cleanup',
        name='Clean Up Token Blacklist',
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Background job scheduler started")

    for job in scheduler.get_jobs():
        logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")


def get_job_status():
    """Get status of all scheduled jobs."""
    return [
        {
            'id': job.id,
            'name': job.name,
            'next_run_time': str(job.next_run_time) if job.next_run_time else None,
            'trigger': str(job.trigger),
        }
        for job in scheduler.get_jobs()
    ]
