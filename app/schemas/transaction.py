"""Schemas for the transactions view (paid invoices)."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel


class TransactionResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    invoice_number: str
    client_name: str
    amount: Decimal
    type: str = "credit"
    date: datetime
    status: str
    payment_mode: Optional[str] = None


class TransactionListResponse(BaseModel):
    items: List[TransactionResponse]
    total: int
    total_amount: Decimal


class DailyAmountResponse(BaseModel):
    day: str
    date: date
    received: Decimal
    due: Decimal
