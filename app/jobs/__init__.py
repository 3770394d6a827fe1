"""
Background Jobs Module

Handles scheduled tasks for:
- Overdue invoice sweep
- Token blacklist cleanup
"""

from app.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler, get_job_status

__all__ = [
    "scheduler",
    "start_scheduler",
    "shutdown_scheduler",
    "get_job_status",
]
