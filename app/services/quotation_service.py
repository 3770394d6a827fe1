"""Quotation Service.

Quotations follow draft -> sent -> accepted/rejected. An accepted quotation
is converted into a pending invoice; the new invoice and the converted
quotation are committed together.
"""
import uuid
import logging
from typing import Tuple

from app.config import settings
from app.models.document import Invoice, Quotation, QuotationItem
from app.schemas.document import QuotationCreate, QuotationStatusUpdate
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_service import DocumentService
from app.services.document_state_machine import (
    apply_transition,
    convert_to_invoice,
    validate_transition,
)
from app.services.invoice_service import InvoiceService


logger = logging.getLogger(__name__)


class QuotationService(DocumentService):
    """Service for the acting user's quotations."""

    model = Quotation
    item_model = QuotationItem
    number_prefix_setting = "QUOTATION_NUMBER_PREFIX"

    async def create(self, data: QuotationCreate) -> Quotation:
        quotation = self.build_document(data, data.status)
        quotation.document_number = await self.assign_number(data.document_number)

        self.db.add(quotation)
        await self.commit("create")

        logger.info(f"Quotation {quotation.document_number} created by {self.user.id} ({quotation.status})")
        return await self.reload(quotation)

    async def change_status(self, quotation_id: uuid.UUID, data: QuotationStatusUpdate) -> Quotation:
        """Send, accept or reject a quotation. Conversion has its own endpoint."""
        quotation = await self.get_owned(quotation_id)
        apply_transition(quotation, data.status.strip().lower(), actor_id=self.user.id)
        await self.commit("update status of")
        return await self.reload(quotation)

    async def convert(self, quotation_id: uuid.UUID) -> Tuple[Quotation, Invoice]:
        """
        Convert an accepted quotation into a new pending invoice.

        The invoice number allocation, the new invoice and the quotation's
        status change share one transaction.

        Returns:
            (converted quotation, new invoice)
        """
        quotation = await self.get_owned(quotation_id)
        validate_transition(quotation, "converted", actor_id=self.user.id)

        sequences = DocumentSequenceService(self.db, self.user.id)
        invoice_number = await sequences.get_next_number(settings.INVOICE_NUMBER_PREFIX)

        quotation, invoice = convert_to_invoice(quotation, invoice_number, actor_id=self.user.id)
        self.db.add(invoice)
        await self.commit("convert")

        invoices = InvoiceService(self.db, self.user)
        return await self.reload(quotation), await invoices.reload(invoice)
