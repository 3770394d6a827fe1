from typing import List, Literal, Optional
from decimal import Decimal

from fastapi import APIRouter, Query

from app.api.deps import DB, CurrentUser
from app.schemas.transaction import (
    DailyAmountResponse,
    TransactionListResponse,
    TransactionResponse,
)
from app.services.invoice_service import InvoiceService
from app.services.transaction_service import TransactionService

router = APIRouter(tags=["Transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    db: DB,
    current_user: CurrentUser,
    search: Optional[str] = Query(None, description="Invoice number contains"),
    sort_by: Literal["date", "amount"] = Query("date"),
    direction: Literal["asc", "desc"] = Query("desc"),
):
    """
    Paid invoices as credit transactions.
    """
    service = TransactionService(InvoiceService(db, current_user))
    transactions = await service.list_transactions(search=search, sort_by=sort_by, direction=direction)

    return TransactionListResponse(
        items=[TransactionResponse(**t) for t in transactions],
        total=len(transactions),
        total_amount=sum((t["amount"] for t in transactions), Decimal("0.00")),
    )


@router.get("/daily", response_model=List[DailyAmountResponse])
async def get_daily_amounts(
    db: DB,
    current_user: CurrentUser,
):
    """
    Received (paid) and due (pending + overdue) totals per day of creation.
    """
    service = TransactionService(InvoiceService(db, current_user))
    return [DailyAmountResponse(**row) for row in await service.daily_amounts()]
