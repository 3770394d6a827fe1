"""Shared persistence logic for invoices and quotations.

InvoiceService and QuotationService differ only in their model, number
prefix and status rules; everything that reads, prices and stores a
document lives here.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.core.exceptions import (
    DocumentLockedError, DocumentNotFoundError, PersistenceError, ValidationError,
)
from app.models.user import User
from app.schemas.document import DocumentCreateBase, DocumentUpdate, LineItemInput
from app.services.document_calculator import apply_totals, compute_line_amount, compute_totals
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_state_machine import can_edit, check_owner


logger = logging.getLogger(__name__)


# Party and note fields copied straight from create/update payloads
PARTY_COLUMNS = (
    "client_name", "client_email", "client_address", "client_gst_number", "client_pan_number",
    "company_name", "company_address", "company_email", "company_gst_number", "company_pan_number",
    "notes",
)

# Issuer fields filled from the user's profile when the payload omits them
PROFILE_DEFAULTS = {
    "company_name": "company_name",
    "company_address": "company_address",
    "company_email": "email",
    "company_gst_number": "company_gst_number",
    "company_pan_number": "company_pan_number",
}


class DocumentService:
    """Base service for one document kind, scoped to the acting user."""

    model: Type[Any]
    item_model: Type[Any]
    number_prefix_setting: str

    def __init__(self, db: AsyncSession, user: User):
        self.db = db
        self.user = user

    @property
    def kind(self) -> str:
        return self.model.KIND

    @property
    def number_prefix(self) -> str:
        return getattr(settings, self.number_prefix_setting)

    # ==================== Reads ====================

    def _query(self):
        return select(self.model).options(selectinload(self.model.items))

    async def get(self, document_id: uuid.UUID):
        """Load a document with its items, or raise DocumentNotFoundError."""
        try:
            result = await self.db.execute(self._query().where(self.model.id == document_id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {self.kind} {document_id}: {e}")
            raise PersistenceError(f"Could not load {self.kind}") from e
        document = result.scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(self.kind, document_id)
        return document

    async def reload(self, document: Any):
        """Re-read a committed document so every column and item is loaded."""
        try:
            result = await self.db.execute(
                self._query()
                .where(self.model.id == document.id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to reload {self.kind} {document.id}: {e}")
            raise PersistenceError(f"Could not load {self.kind}") from e
        return result.scalar_one()

    async def get_owned(self, document_id: uuid.UUID):
        """Load a document the acting user owns."""
        document = await self.get(document_id)
        check_owner(document, self.user.id)
        return document

    async def list(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Any], int]:
        """List the user's documents, newest first."""
        filters = [self.model.owner_id == self.user.id]
        if status:
            filters.append(self.model.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                self.model.document_number.ilike(pattern),
                self.model.client_name.ilike(pattern),
            ))

        count_stmt = select(func.count(self.model.id)).where(*filters)
        stmt = (
            self._query()
            .where(*filters)
            .order_by(self.model.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
        )
        try:
            total = (await self.db.execute(count_stmt)).scalar() or 0
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {self.kind}s for {self.user.id}: {e}")
            raise PersistenceError(f"Could not list {self.kind}s") from e

        return list(result.scalars().all()), total

    # ==================== Pricing ====================

    def build_items(self, items: Sequence[LineItemInput]) -> List[Any]:
        """Turn payload line items into item rows with computed amounts."""
        rows = []
        for position, item in enumerate(items):
            rows.append(self.item_model(
                id=item.id or uuid.uuid4().hex,
                position=position,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=compute_line_amount(item.quantity, item.unit_price),
            ))
        return rows

    def reprice(self, document: Any, requested_discount_rate: Optional[Decimal] = None) -> None:
        """
        Recompute every derived amount of a document from its items and rates.

        Without an explicit request the stored (effective) discount rate is
        reused, so repricing an unchanged document is a no-op.
        """
        if requested_discount_rate is None:
            requested_discount_rate = document.discount_rate
        totals = compute_totals(
            document.items,
            igst=document.igst,
            cgst=document.cgst,
            sgst=document.sgst,
            discount_rate=requested_discount_rate,
        )
        apply_totals(document, totals)

    # ==================== Writes ====================

    async def assign_number(self, requested: Optional[str]) -> str:
        sequences = DocumentSequenceService(self.db, self.user.id)
        if requested:
            requested = requested.strip()
            if await sequences.number_exists(self.number_prefix, requested):
                raise ValidationError("document_number", f"'{requested}' is already used")
            return requested
        return await sequences.get_next_number(self.number_prefix)

    async def commit(self, action: str) -> None:
        """Commit the session, translating storage failures."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} {self.kind}: {e}")
            raise PersistenceError(f"Could not {action} {self.kind}") from e

    def build_document(self, data: DocumentCreateBase, status: str):
        """
        Build (but do not persist) a priced, unnumbered document owned by the
        acting user.

        Issuer details default to the user's profile.
        """
        now = datetime.now(timezone.utc)
        issue_date = data.issue_date or now.date()
        due_date = data.due_date or issue_date + timedelta(days=settings.DEFAULT_DUE_DAYS)
        if due_date < issue_date:
            raise ValidationError("due_date", "must not be before the issue date")

        fields: Dict[str, Any] = {name: getattr(data, name) for name in PARTY_COLUMNS}
        for column, profile_attr in PROFILE_DEFAULTS.items():
            if not fields.get(column):
                fields[column] = getattr(self.user, profile_attr, None)
        if not fields.get("company_name"):
            raise ValidationError("company_name", "is required")

        document = self.model(
            id=uuid.uuid4(),
            owner_id=self.user.id,
            status=status,
            issue_date=issue_date,
            due_date=due_date,
            igst=data.igst,
            cgst=data.cgst,
            sgst=data.sgst,
            created_at=now,
            updated_at=now,
            **fields,
        )
        document.items = self.build_items(data.items)
        self.reprice(document, data.discount_rate)
        return document

    async def update(self, document_id: uuid.UUID, data: DocumentUpdate):
        """
        Edit an editable document and reprice it.

        Raises:
            DocumentLockedError: If the status no longer allows edits
        """
        document = await self.get_owned(document_id)
        if not can_edit(self.kind, document.status):
            raise DocumentLockedError(
                f"{self.kind.capitalize()} in '{document.status}' status can no longer be edited"
            )

        changes = data.model_dump(exclude_unset=True)

        for name in PARTY_COLUMNS:
            if name in changes:
                if name in ("client_name", "company_name") and not changes[name]:
                    raise ValidationError(name, "is required")
                setattr(document, name, changes[name])

        if "due_date" in changes:
            if changes["due_date"] is not None and changes["due_date"] < document.issue_date:
                raise ValidationError("due_date", "must not be before the issue date")
            document.due_date = changes["due_date"]

        for name in ("igst", "cgst", "sgst"):
            if changes.get(name) is not None:
                setattr(document, name, changes[name])

        if data.items is not None:
            # Orphans are deleted before the replacements reuse their ids
            document.items.clear()
            await self.db.flush()
            document.items = self.build_items(data.items)

        self.reprice(document, changes.get("discount_rate"))
        document.updated_at = datetime.now(timezone.utc)

        await self.commit("update")
        logger.info(f"{self.kind.capitalize()} {document.document_number} updated by {self.user.id}")
        return await self.reload(document)

    async def delete(self, document_id: uuid.UUID) -> None:
        """Delete a document the user owns, in any status."""
        document = await self.get_owned(document_id)
        number = document.document_number
        await self.db.delete(document)
        await self.commit("delete")
        logger.info(f"{self.kind.capitalize()} {number} deleted by {self.user.id}")
