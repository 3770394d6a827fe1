"""Invoice and Quotation models.

Both documents share the same party, pricing and line-item columns; they
differ in status vocabulary. Invoices carry payment metadata once paid,
quotations remember the invoice they were converted into.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, DateTime, ForeignKey, Integer, Text, Date, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType, RateType, QuantityType, ZERO


class InvoiceStatus(str, Enum):
    """Invoice status enumeration."""
    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    OVERDUE = "overdue"
    PAID = "paid"


class QuotationStatus(str, Enum):
    """Quotation status enumeration."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONVERTED = "converted"


class PaymentMode(str, Enum):
    """Payment modes accepted when an invoice is marked paid."""
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CASH = "cash"
    CARD = "card"
    CHEQUE = "cheque"


class DocumentMixin:
    """Columns shared by invoices and quotations."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    document_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="e.g., INV/25-26/00001"
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Client (bill to)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_gst_number: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    client_pan_number: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Issuer (bill from)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    company_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_gst_number: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    company_pan_number: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Rates
    igst: Mapped[Decimal] = mapped_column(RateType, default=ZERO, nullable=False)
    cgst: Mapped[Decimal] = mapped_column(RateType, default=ZERO, nullable=False)
    sgst: Mapped[Decimal] = mapped_column(RateType, default=ZERO, nullable=False)
    discount_rate: Mapped[Decimal] = mapped_column(
        RateType,
        default=ZERO,
        nullable=False,
        comment="Effective rate after automatic volume tier"
    )

    # Derived amounts
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)
    igst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)
    cgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)
    sgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)
    total: Mapped[Decimal] = mapped_column(MoneyType, default=ZERO, nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
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

    @property
    def tax_amount(self) -> Decimal:
        return (self.igst_amount or ZERO) + (self.cgst_amount or ZERO) + (self.sgst_amount or ZERO)


class LineItemMixin:
    """Columns shared by invoice and quotation line items."""

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Line id, unique within its document"
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="quantity * unit_price, never edited directly"
    )


class Invoice(DocumentMixin, Base):
    """Invoice with GST breakdown and recorded payment details."""
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("owner_id", "document_number", name="uq_invoice_owner_number"),
        Index("ix_invoices_status_due_date", "status", "due_date"),
    )

    KIND = "invoice"

    # Payment metadata (set on transition to paid)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bank_account: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    upi_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Set when the invoice was produced from a quotation
    source_quotation_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)

    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position"
    )

    def __repr__(self) -> str:
        return f"<Invoice(number='{self.document_number}', status='{self.status}')>"


class InvoiceItem(LineItemMixin, Base):
    __tablename__ = "invoice_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        primary_key=True
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")


class Quotation(DocumentMixin, Base):
    """Quotation that can be converted into an invoice once accepted."""
    __tablename__ = "quotations"
    __table_args__ = (
        UniqueConstraint("owner_id", "document_number", name="uq_quotation_owner_number"),
    )

    KIND = "quotation"

    converted_invoice_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)

    items: Mapped[List["QuotationItem"]] = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.position"
    )

    def __repr__(self) -> str:
        return f"<Quotation(number='{self.document_number}', status='{self.status}')>"


class QuotationItem(LineItemMixin, Base):
    __tablename__ = "quotation_items"

    quotation_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("quotations.id", ondelete="CASCADE"),
        primary_key=True
    )

    quotation: Mapped["Quotation"] = relationship("Quotation", back_populates="items")
