"""
Overdue Invoice Job.

Moves draft, pending and confirmed invoices whose due date has passed to
``overdue``, and purges expired entries from the token blacklist.

Triggers:
- Daily scheduled job (via APScheduler)
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from app.core.security import cleanup_expired_blacklist_entries
from app.database import get_db_session
from app.services.invoice_service import mark_overdue_invoices

logger = logging.getLogger(__name__)


async def run_overdue_invoices_job(today: Optional[date] = None) -> Dict[str, Any]:
    """
    Main overdue job.

    Returns:
        Summary with the number of invoices marked overdue
    """
    logger.info("Starting overdue invoices job...")
    started_at = datetime.now(timezone.utc)

    async with get_db_session() as db:
        marked = await mark_overdue_invoices(db, today=today)

    logger.info(f"Overdue invoices job finished: {marked} invoice(s) marked overdue")
    return {
        "started_at": started_at.isoformat(),
        "marked_overdue": marked,
    }


async def run_blacklist_cleanup_job() -> int:
    """Remove blacklisted tokens that have expired anyway."""
    async with get_db_session() as db:
        removed = await cleanup_expired_blacklist_entries(db)

    if removed:
        logger.info(f"Removed {removed} expired blacklisted token(s)")
    return removed
