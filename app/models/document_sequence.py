"""
Document Sequence Model for Invoice / Quotation Numbering

- Financial year based numbering (April-March)
- Continuous sequence within financial year, one counter per owner
- Format: {PREFIX}/{FY}/{SEQUENCE}, e.g. INV/25-26/00001, QT/25-26/00001

USAGE:
    from app.services.document_sequence_service import DocumentSequenceService

    async def create_invoice(db, owner_id):
        service = DocumentSequenceService(db, owner_id)
        number = await service.get_next_number("INV")
"""

import uuid
from datetime import datetime, date, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType


class DocumentSequence(Base):
    """
    Per-owner sequence counter for one document prefix and financial year.

    Example:
        prefix = "INV"
        financial_year = "25-26"
        current_number = 42
        → Next number: INV/25-26/00043
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint(
            "owner_id", "prefix", "financial_year",
            name="uq_document_sequence_owner_prefix_fy"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)
    prefix: Mapped[str] = mapped_column(String(10), nullable=False)

    # Financial Year (April-March)
    financial_year: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="e.g., 25-26 for FY 2025-26"
    )

    current_number: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last used sequence number"
    )
    padding_length: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    separator: Mapped[str] = mapped_column(String(5), default="/", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def format_number(self, number: int) -> str:
        seq = str(number).zfill(self.padding_length)
        sep = self.separator
        return f"{self.prefix}{sep}{self.financial_year}{sep}{seq}"

    def get_next_number(self) -> str:
        """
        Generate next document number.

        NOTE: This method increments current_number but does NOT
        commit to database. The caller must handle the transaction.
        """
        self.current_number += 1
        return self.format_number(self.current_number)

    @staticmethod
    def get_financial_year(today: Optional[date] = None) -> str:
        """
        Get financial year string.

        Indian financial year: April to March
        - Jan 2026 → FY 25-26
        - Apr 2026 → FY 26-27
        """
        today = today or datetime.now(timezone.utc).date()
        if today.month >= 4:  # April onwards
            fy_start = today.year
        else:  # Jan-Mar
            fy_start = today.year - 1
        return f"{str(fy_start)[2:]}-{str(fy_start + 1)[2:]}"
