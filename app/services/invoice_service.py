"""Invoice Service.

Creation, editing and status changes of invoices. Status changes always go
through the document state machine; payment details for ``paid`` are
validated by app.services.payment_validation.
"""
import uuid
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import PersistenceError
from app.models.document import Invoice, InvoiceItem, InvoiceStatus
from app.schemas.document import InvoiceCreate, InvoiceStatusUpdate, PaymentDetails
from app.services.document_service import DocumentService
from app.services.document_state_machine import (
    OVERDUE_ELIGIBLE_STATUSES,
    apply_transition,
    get_allowed_transitions,
    get_transition_action,
    is_terminal,
    validate_transition,
)


logger = logging.getLogger(__name__)


def _payment_dict(payment: Optional[PaymentDetails]) -> Dict[str, Any]:
    if payment is None:
        return {}
    return payment.model_dump(exclude_none=True)


class InvoiceService(DocumentService):
    """Service for the acting user's invoices."""

    model = Invoice
    item_model = InvoiceItem
    number_prefix_setting = "INVOICE_NUMBER_PREFIX"

    async def create(self, data: InvoiceCreate) -> Invoice:
        """
        Create an invoice.

        An invoice created as ``paid`` starts as a draft and is moved to paid
        through the state machine, so it gets exactly the same payment
        validation as a later status change.
        """
        paid = data.status == InvoiceStatus.PAID.value
        payment = _payment_dict(data.payment)

        invoice = self.build_document(
            data,
            InvoiceStatus.DRAFT.value if paid else data.status,
        )
        if paid:
            validate_transition(invoice, InvoiceStatus.PAID.value, payment, self.user.id)

        invoice.document_number = await self.assign_number(data.document_number)
        if paid:
            apply_transition(invoice, InvoiceStatus.PAID.value, payment, self.user.id)

        self.db.add(invoice)
        await self.commit("create")

        logger.info(f"Invoice {invoice.document_number} created by {self.user.id} ({invoice.status})")
        return await self.reload(invoice)

    async def change_status(self, invoice_id: uuid.UUID, data: InvoiceStatusUpdate) -> Invoice:
        """Move an invoice to a new status, recording payment details for paid."""
        invoice = await self.get_owned(invoice_id)
        apply_transition(invoice, data.status.strip().lower(), _payment_dict(data.payment), self.user.id)
        await self.commit("update status of")
        return await self.reload(invoice)

    async def allowed_transitions(self, invoice_id: uuid.UUID) -> Dict[str, Any]:
        invoice = await self.get_owned(invoice_id)
        return {
            "status": invoice.status,
            "terminal": is_terminal(Invoice.KIND, invoice.status),
            "allowed": [
                {"status": status, "action": get_transition_action(Invoice.KIND, invoice.status, status)}
                for status in get_allowed_transitions(Invoice.KIND, invoice.status)
            ],
        }

    async def list_all(self) -> List[Invoice]:
        """All of the user's invoices without items, oldest first."""
        try:
            result = await self.db.execute(
                select(Invoice)
                .where(Invoice.owner_id == self.user.id)
                .order_by(Invoice.created_at)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load invoices for {self.user.id}: {e}")
            raise PersistenceError("Could not load invoices") from e
        return list(result.scalars().all())


def local_today(now: Optional[datetime] = None) -> date:
    """Calendar date in the scheduler timezone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(settings.SCHEDULER_TIMEZONE)).date()


async def mark_overdue_invoices(db: AsyncSession, today: Optional[date] = None) -> int:
    """
    Move every unpaid invoice whose due date has passed to ``overdue``.

    Runs across all owners; each move goes through the state machine.
    "Today" is taken in the scheduler timezone.

    Returns:
        Number of invoices marked overdue
    """
    today = today or local_today()
    try:
        result = await db.execute(
            select(Invoice).where(
                Invoice.status.in_(OVERDUE_ELIGIBLE_STATUSES),
                Invoice.due_date.isnot(None),
                Invoice.due_date < today,
            )
        )
        invoices = list(result.scalars().all())

        now = datetime.now(timezone.utc)
        for invoice in invoices:
            apply_transition(invoice, InvoiceStatus.OVERDUE.value, now=now)

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Overdue sweep failed: {e}")
        raise PersistenceError("Could not mark invoices overdue") from e

    if invoices:
        logger.info(f"Marked {len(invoices)} invoice(s) overdue")
    return len(invoices)
