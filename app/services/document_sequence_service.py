"""
Document Sequence Service for Invoice / Quotation Numbers

- Financial year based numbering (April-March)
- Continuous sequence within financial year (NO daily reset)
- One counter per owner and prefix
- Format: {PREFIX}/{FY}/{SEQUENCE}

USAGE:
    service = DocumentSequenceService(db, owner_id)
    invoice_number = await service.get_next_number("INV")
    # Returns: INV/25-26/00001
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.document import Invoice, Quotation
from app.models.document_sequence import DocumentSequence


logger = logging.getLogger(__name__)


def _document_models() -> dict:
    return {
        settings.INVOICE_NUMBER_PREFIX: Invoice,
        settings.QUOTATION_NUMBER_PREFIX: Quotation,
    }


class DocumentSequenceService:
    """
    Service for generating document numbers.

    Numbers are allocated inside the caller's transaction (flush only), so a
    rolled back document creation also rolls back its number.
    """

    def __init__(self, db: AsyncSession, owner_id: uuid.UUID):
        self.db = db
        self.owner_id = owner_id

    def _model_for(self, prefix: str):
        models = _document_models()
        if prefix not in models:
            valid = ", ".join(models.keys())
            raise ValueError(f"Invalid document prefix '{prefix}'. Valid prefixes: {valid}")
        return models[prefix]

    async def number_exists(self, prefix: str, document_number: str) -> bool:
        """Check whether the owner already uses this number for the document kind."""
        model = self._model_for(prefix)
        result = await self.db.execute(
            select(model.id).where(
                model.owner_id == self.owner_id,
                model.document_number == document_number,
            )
        )
        return result.first() is not None

    async def get_next_number(
        self,
        prefix: str,
        financial_year: Optional[str] = None
    ) -> str:
        """
        Get next document number and increment the counter.

        Numbers already taken by manually numbered documents are skipped.

        Args:
            prefix: Document prefix (INV, QT)
            financial_year: Optional FY string. Auto-calculated if not provided.

        Returns:
            Formatted document number, e.g., INV/25-26/00001

        Raises:
            ValueError: If prefix is unknown
        """
        self._model_for(prefix)

        if not financial_year:
            financial_year = DocumentSequence.get_financial_year()

        sequence = await self._get_or_create_sequence(prefix, financial_year)

        doc_number = sequence.get_next_number()
        while await self.number_exists(prefix, doc_number):
            logger.info(f"Skipping {doc_number}: already used by owner {self.owner_id}")
            doc_number = sequence.get_next_number()

        await self.db.flush()
        return doc_number

    async def _find_sequence(
        self,
        prefix: str,
        financial_year: str
    ) -> Optional[DocumentSequence]:
        stmt = select(DocumentSequence).where(
            DocumentSequence.owner_id == self.owner_id,
            DocumentSequence.prefix == prefix,
            DocumentSequence.financial_year == financial_year,
        ).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_or_create_sequence(
        self,
        prefix: str,
        financial_year: str
    ) -> DocumentSequence:
        """
        Get existing sequence with row lock, or create new one.

        SELECT FOR UPDATE is a no-op on SQLite; PostgreSQL serialises
        concurrent allocations for the same owner.
        """
        sequence = await self._find_sequence(prefix, financial_year)
        if sequence:
            return sequence

        sequence = DocumentSequence(
            owner_id=self.owner_id,
            prefix=prefix,
            financial_year=financial_year,
            current_number=0,
            padding_length=5,
            separator="/",
        )
        self.db.add(sequence)
        await self.db.flush()
        return sequence
