"""Pydantic schemas for invoices and quotations."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema


# Decimal places match the column scales in app.db_types
RateField = Field(Decimal("0"), ge=0, le=100, decimal_places=2)


# ==================== Line Items ====================

class LineItemInput(BaseCreateSchema):
    """Line item as sent by the client. Amount is always computed server side."""
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class LineItemResponse(BaseResponseSchema):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


def _check_unique_item_ids(items: Optional[List[LineItemInput]]) -> None:
    if not items:
        return
    ids = [item.id for item in items if item.id]
    if len(ids) != len(set(ids)):
        raise ValueError("Line item ids must be unique within a document")


# ==================== Payment ====================

class PaymentDetails(BaseCreateSchema):
    """
    Payment details for marking an invoice paid.

    Format rules are enforced by the payment validator so that every failure
    is reported with the offending field name.
    """
    payment_mode: Optional[str] = Field(None, description="bank_transfer, upi, cash, card or cheque")
    transaction_id: Optional[str] = Field(None, max_length=50)
    bank_account: Optional[str] = Field(None, max_length=20)
    upi_id: Optional[str] = Field(None, max_length=100)
    client_pan_number: Optional[str] = Field(None, max_length=10)
    company_pan_number: Optional[str] = Field(None, max_length=10)
    client_gst_number: Optional[str] = Field(None, max_length=15)
    company_gst_number: Optional[str] = Field(None, max_length=15)


# ==================== Calculation ====================

class CalculateRequest(BaseCreateSchema):
    """Price a set of line items without saving anything."""
    items: List[LineItemInput] = Field(default_factory=list)
    igst: Decimal = RateField
    cgst: Decimal = RateField
    sgst: Decimal = RateField
    discount_rate: Decimal = RateField


class CalculatedLineItem(BaseModel):
    id: Optional[str] = None
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class CalculateResponse(BaseModel):
    items: List[CalculatedLineItem]
    subtotal: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    tax_amount: Decimal
    requested_discount_rate: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    total: Decimal


# ==================== Documents ====================

class DocumentCreateBase(BaseCreateSchema):
    """Fields shared by invoice and quotation creation."""
    document_number: Optional[str] = Field(None, min_length=1, max_length=50)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None

    # Client Details
    client_name: str = Field(..., min_length=1, max_length=200)
    client_email: Optional[str] = Field(None, max_length=255)
    client_address: Optional[str] = None
    client_gst_number: Optional[str] = Field(None, max_length=15)
    client_pan_number: Optional[str] = Field(None, max_length=10)

    # Issuer Details (default to the user's profile)
    company_name: Optional[str] = Field(None, max_length=200)
    company_address: Optional[str] = None
    company_email: Optional[str] = Field(None, max_length=255)
    company_gst_number: Optional[str] = Field(None, max_length=15)
    company_pan_number: Optional[str] = Field(None, max_length=10)

    items: List[LineItemInput] = Field(..., min_length=1)
    igst: Decimal = RateField
    cgst: Decimal = RateField
    sgst: Decimal = RateField
    discount_rate: Decimal = RateField

    notes: Optional[str] = None

    @model_validator(mode="after")
    def unique_item_ids(self):
        _check_unique_item_ids(self.items)
        return self


class InvoiceCreate(DocumentCreateBase):
    """Schema for creating an Invoice. Creating as paid requires payment details."""
    status: Literal["draft", "pending", "paid"] = "pending"
    payment: Optional[PaymentDetails] = None


class QuotationCreate(DocumentCreateBase):
    """Schema for creating a Quotation."""
    status: Literal["draft", "sent"] = "draft"


class DocumentUpdate(BaseUpdateSchema):
    """Partial update. Totals are recomputed whenever items or rates change."""
    due_date: Optional[date] = None

    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    client_email: Optional[str] = Field(None, max_length=255)
    client_address: Optional[str] = None
    client_gst_number: Optional[str] = Field(None, max_length=15)
    client_pan_number: Optional[str] = Field(None, max_length=10)

    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    company_address: Optional[str] = None
    company_email: Optional[str] = Field(None, max_length=255)
    company_gst_number: Optional[str] = Field(None, max_length=15)
    company_pan_number: Optional[str] = Field(None, max_length=10)

    items: Optional[List[LineItemInput]] = Field(None, min_length=1)
    igst: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    cgst: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    sgst: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    discount_rate: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)

    notes: Optional[str] = None

    @model_validator(mode="after")
    def unique_item_ids(self):
        _check_unique_item_ids(self.items)
        return self


class InvoiceStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    payment: Optional[PaymentDetails] = None


class QuotationStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class DocumentResponseBase(BaseResponseSchema):
    id: UUID
    document_number: str
    status: str
    owner_id: UUID
    issue_date: date
    due_date: Optional[date] = None

    client_name: str
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    client_gst_number: Optional[str] = None
    client_pan_number: Optional[str] = None

    company_name: str
    company_address: Optional[str] = None
    company_email: Optional[str] = None
    company_gst_number: Optional[str] = None
    company_pan_number: Optional[str] = None

    items: List[LineItemResponse] = []

    igst: Decimal
    cgst: Decimal
    sgst: Decimal
    subtotal: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    tax_amount: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    total: Decimal

    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InvoiceResponse(DocumentResponseBase):
    payment_mode: Optional[str] = None
    transaction_id: Optional[str] = None
    bank_account: Optional[str] = None
    upi_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    source_quotation_id: Optional[UUID] = None


class QuotationResponse(DocumentResponseBase):
    converted_invoice_id: Optional[UUID] = None


class InvoiceListResponse(BaseModel):
    """Paginated invoice list."""
    items: List[InvoiceResponse]
    total: int
    page: int
    size: int
    pages: int


class QuotationListResponse(BaseModel):
    """Paginated quotation list."""
    items: List[QuotationResponse]
    total: int
    page: int
    size: int
    pages: int


class TransitionOption(BaseModel):
    status: str
    action: str


class TransitionsResponse(BaseModel):
    status: str
    terminal: bool
    allowed: List[TransitionOption]


class ConversionResponse(BaseModel):
    quotation: QuotationResponse
    invoice: InvoiceResponse
