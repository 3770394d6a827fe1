from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.document import (
    CalculateRequest,
    CalculateResponse,
    CalculatedLineItem,
    DocumentUpdate,
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
    TransitionsResponse,
)
from app.services.document_calculator import compute_line_amount, compute_totals
from app.services.invoice_service import InvoiceService

router = APIRouter(tags=["Invoices"])


@router.post("/calculate", response_model=CalculateResponse)
async def calculate_invoice(
    data: CalculateRequest,
    current_user: CurrentUser,
):
    """
    Price line items with taxes and discount without saving anything.
    The volume discount tier is applied automatically.
    """
    items = [
        CalculatedLineItem(
            id=item.id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=compute_line_amount(item.quantity, item.unit_price),
        )
        for item in data.items
    ]
    totals = compute_totals(
        items,
        igst=data.igst,
        cgst=data.cgst,
        sgst=data.sgst,
        discount_rate=data.discount_rate,
    )

    return CalculateResponse(
        items=items,
        tax_amount=totals.tax_amount,
        requested_discount_rate=data.discount_rate,
        **totals.as_dict(),
    )


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Invoice number or client name"),
):
    """
    Get paginated list of the current user's invoices, newest first.
    """
    service = InvoiceService(db, current_user)
    invoices, total = await service.list(status=status_filter, search=search, page=page, size=size)

    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in invoices],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Create a new invoice.

    Totals are computed server side. Creating with status `paid` requires
    `payment` details, validated exactly like a later status change.
    """
    invoice = await InvoiceService(db, current_user).create(data)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get an invoice by ID."""
    invoice = await InvoiceService(db, current_user).get_owned(invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    data: DocumentUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Update an invoice. Paid invoices are locked.
    """
    invoice = await InvoiceService(db, current_user).update(invoice_id, data)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Delete an invoice."""
    await InvoiceService(db, current_user).delete(invoice_id)


@router.post("/{invoice_id}/status", response_model=InvoiceResponse)
async def change_invoice_status(
    invoice_id: uuid.UUID,
    data: InvoiceStatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Change invoice status.

    Moving to `paid` requires `payment` details (payment mode and the
    mode's identifiers).
    """
    invoice = await InvoiceService(db, current_user).change_status(invoice_id, data)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}/transitions", response_model=TransitionsResponse)
async def get_invoice_transitions(
    invoice_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get the statuses this invoice can move to next."""
    return await InvoiceService(db, current_user).allowed_transitions(invoice_id)
