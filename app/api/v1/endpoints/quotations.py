from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.schemas.document import (
    ConversionResponse,
    DocumentUpdate,
    InvoiceResponse,
    QuotationCreate,
    QuotationListResponse,
    QuotationResponse,
    QuotationStatusUpdate,
)
from app.services.quotation_service import QuotationService

router = APIRouter(tags=["Quotations"])


@router.get("", response_model=QuotationListResponse)
async def list_quotations(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Quotation number or client name"),
):
    """
    Get paginated list of the current user's quotations, newest first.
    """
    service = QuotationService(db, current_user)
    quotations, total = await service.list(status=status_filter, search=search, page=page, size=size)

    return QuotationListResponse(
        items=[QuotationResponse.model_validate(q) for q in quotations],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(
    data: QuotationCreate,
    db: DB,
    current_user: CurrentUser,
):
    """Create a new quotation (draft or sent)."""
    quotation = await QuotationService(db, current_user).create(data)
    return QuotationResponse.model_validate(quotation)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a quotation by ID."""
    quotation = await QuotationService(db, current_user).get_owned(quotation_id)
    return QuotationResponse.model_validate(quotation)


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: uuid.UUID,
    data: DocumentUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Update a quotation. Only draft and sent quotations can be edited.
    """
    quotation = await QuotationService(db, current_user).update(quotation_id, data)
    return QuotationResponse.model_validate(quotation)


@router.delete("/{quotation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Delete a quotation."""
    await QuotationService(db, current_user).delete(quotation_id)


@router.post("/{quotation_id}/status", response_model=QuotationResponse)
async def change_quotation_status(
    quotation_id: uuid.UUID,
    data: QuotationStatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Change quotation status: sent, accepted or rejected.
    Use the convert endpoint to turn an accepted quotation into an invoice.
    """
    quotation = await QuotationService(db, current_user).change_status(quotation_id, data)
    return QuotationResponse.model_validate(quotation)


@router.post("/{quotation_id}/convert", response_model=ConversionResponse, status_code=status.HTTP_201_CREATED)
async def convert_quotation(
    quotation_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """
    Convert an accepted quotation into a new pending invoice.
    """
    quotation, invoice = await QuotationService(db, current_user).convert(quotation_id)

    return ConversionResponse(
        quotation=QuotationResponse.model_validate(quotation),
        invoice=InvoiceResponse.model_validate(invoice),
    )
